"""Structured logging helpers for the Closet Comfort service.

Every record is rendered as one JSON object. Owner ids, coordinates and image
payloads never reach the output: ``log_event`` scrubs its fields before they
are attached to the record.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import time
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterator

CORRELATION_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
}
_SENSITIVE_KEYS = frozenset(
    {
        "user_id",
        "userid",
        "owner",
        "email",
        "image",
        "image_ref",
        "image_data",
        "lat",
        "lon",
        "latitude",
        "longitude",
        "api_key",
        "appid",
    }
)
_REDACTED = "[redacted]"
_EMAIL_PATTERN = re.compile(r"[\w.\-]+@[\w.\-]+")
_QUIET_LOGGERS = ("urllib3", "httpx", "uvicorn.access")
_LOGGER = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON with correlation metadata."""

    def __init__(self, service: str = "closet-comfort") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = redact_for_log({key: value})[key]
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Install the JSON handler on the root logger, replacing existing handlers."""

    desired_level = level or os.getenv("LOG_LEVEL", "INFO")
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=desired_level, handlers=[handler], force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def _scrub_text(value: str) -> str:
    if value.lower().startswith(("http://", "https://")):
        return "[redacted-url]"
    return _EMAIL_PATTERN.sub("[redacted-email]", value)


def redact_for_log(payload: Any) -> Any:
    """Recursively scrub owner identifiers, coordinates and image payloads."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, (date, datetime)):
        return payload.isoformat()
    if isinstance(payload, dict):
        return {
            key: _REDACTED if str(key).lower() in _SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(item) for item in payload]
    return _scrub_text(str(payload))


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, keep the current one, or mint a new one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Temporarily bind a correlation id, restoring the previous one on exit."""

    token = CORRELATION_ID.set(correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit one structured event; field names that clash with LogRecord get a ``field_`` prefix."""

    correlation_id = fields.pop("correlation_id", None) or CORRELATION_ID.get() or ensure_correlation_id()
    exc_info = fields.pop("exc_info", None)
    extra = {
        (f"field_{key}" if key in _RECORD_ATTRIBUTES else key): value
        for key, value in redact_for_log(fields).items()
    }
    logger.log(level, event, exc_info=exc_info, extra={**extra, "event": event, "correlation_id": correlation_id})


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Bind a correlation id around one named operation and log its duration."""

    started = time.perf_counter()
    with correlation_context(attributes.pop("correlation_id", None)) as scoped_id:
        log_event(_LOGGER, logging.DEBUG, "operation_scope_entered", operation=name, **attributes)
        try:
            yield scoped_id
        finally:
            log_event(
                _LOGGER,
                logging.DEBUG,
                "operation_scope_exited",
                operation=name,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
