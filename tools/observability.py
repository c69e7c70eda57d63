"""Instrumentation for garment tools and agent calls.

``instrument_operation`` logs one ``operation_started`` event and exactly one
closing event per call: ``operation_completed``, ``operation_rejected`` for a
domain error or invalid input the caller can act on, or ``operation_failed`` for anything else.
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from itertools import islice
from typing import Any, Callable, Dict, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from closet_app.logging_config import ensure_correlation_id, get_logger, log_event
from models.errors import ClosetError

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

_PREVIEW_KEYS = 6


def _preview(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    preview = dict(islice(kwargs.items(), _PREVIEW_KEYS))
    if len(kwargs) > _PREVIEW_KEYS:
        preview["truncated"] = True
    return preview


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def instrument_operation(
    operation: str,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Log the lifecycle of a call and optionally validate its keyword arguments.

    With ``input_model`` the keyword arguments are replaced by the model's
    validated dump; a :class:`ValidationError` propagates to the caller.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            if input_model is not None:
                try:
                    kwargs = input_model.model_validate(kwargs).model_dump()
                except ValidationError as exc:
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "operation_validation_failed",
                        operation=operation,
                        correlation_id=correlation_id,
                        errors=[{"loc": list(error["loc"]), "type": error["type"]} for error in exc.errors()],
                    )
                    raise

            started = time.perf_counter()
            log_event(
                LOGGER,
                logging.INFO,
                "operation_started",
                operation=operation,
                correlation_id=correlation_id,
                kwargs=_preview(kwargs),
            )
            try:
                result = func(*args, **kwargs)
            except (ClosetError, ValueError) as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "operation_rejected",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(started),
                    error=getattr(exc, "code", "invalid_value"),
                )
                raise
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "operation_failed",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(started),
                    exc_info=True,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "operation_completed",
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=_elapsed_ms(started),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_operation"]
