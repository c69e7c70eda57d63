"""Configuration loading, structured logging and keyed lock behaviour."""

from __future__ import annotations

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import List

import pytest

from closet_app.config import ClosetConfig
from closet_app.logging_config import JsonFormatter, correlation_context, log_event, redact_for_log
from memory.locks import KeyedLocks
from models.errors import PersistenceFailure

_CONFIG_ENV_KEYS = (
    "APP_ENV",
    "APP_CONFIG_PATH",
    "DATABASE_PATH",
    "OPENWEATHER_API_KEY",
    "TOLERANCE_DEGREES",
    "FEEDBACK_POLICY",
    "TIMEZONE",
    "CATEGORY_WEIGHTS",
    "SESSION_STORE_BACKEND",
    "SESSION_STORE_PATH",
    "IMAGE_DIR",
    "WEATHER_TIMEOUT_SECONDS",
    "PERSISTENCE_TIMEOUT_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in _CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_config_defaults(clean_env: pytest.MonkeyPatch) -> None:
    config = ClosetConfig.from_env()

    assert config.tolerance_degrees == 5
    assert config.timezone == "UTC"
    assert config.feedback_policy == "accumulate"
    assert config.session_store_backend == "sqlite"
    assert config.weather_api_key is None


def test_config_env_overrides_yaml(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config_file = tmp_path / "staging.yaml"
    config_file.write_text(
        "# staging settings\n"
        "database_path: /srv/closet/closet.db\n"
        "tolerance_degrees: 3\n"
        "feedback_policy: \"once_per_day\"\n"
    )
    clean_env.setenv("APP_CONFIG_PATH", str(config_file))
    clean_env.setenv("TOLERANCE_DEGREES", "4")
    clean_env.setenv("OPENWEATHER_API_KEY", "secret")

    config = ClosetConfig.from_env()

    assert config.database_path == "/srv/closet/closet.db"
    assert config.tolerance_degrees == 4
    assert config.feedback_policy == "once_per_day"
    assert config.weather_api_key == "secret"


def test_config_rejects_unknown_policy_and_negative_tolerance() -> None:
    with pytest.raises(ValueError):
        ClosetConfig(feedback_policy="whenever")
    with pytest.raises(ValueError):
        ClosetConfig(tolerance_degrees=-1)
    with pytest.raises(ValueError):
        ClosetConfig(session_store_backend="redis")


def test_redaction_masks_owner_coordinates_and_images() -> None:
    scrubbed = redact_for_log(
        {
            "user_id": "owner-1",
            "lat": 51.5,
            "nested": {"image": "base64...", "note": "mail me at someone@example.com"},
            "day": date(2024, 5, 1),
            "ids": ("a", "b"),
        }
    )

    assert scrubbed["user_id"] == "[redacted]"
    assert scrubbed["lat"] == "[redacted]"
    assert scrubbed["nested"]["image"] == "[redacted]"
    assert "someone@example.com" not in scrubbed["nested"]["note"]
    assert scrubbed["day"] == "2024-05-01"
    assert scrubbed["ids"] == ["a", "b"]


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_log_event_emits_json_with_correlation_id() -> None:
    logger = logging.getLogger("closet.tests.log_event")
    logger.setLevel(logging.INFO)
    handler = _ListHandler()
    logger.addHandler(handler)
    try:
        with correlation_context("corr-123"):
            log_event(logger, logging.INFO, "outfit_registered", user_id="owner-1", garment_count=2, name="clash")
    finally:
        logger.removeHandler(handler)

    payload = json.loads(JsonFormatter().format(handler.records[0]))
    assert payload["event"] == "outfit_registered"
    assert payload["correlation_id"] == "corr-123"
    assert payload["user_id"] == "[redacted]"
    assert payload["garment_count"] == 2
    assert payload["field_name"] == "clash"


def test_keyed_locks_time_out_isolate_keys_and_evict_idle_entries() -> None:
    locks = KeyedLocks(timeout_seconds=0.05)
    held = threading.Event()
    release = threading.Event()

    def _holder() -> None:
        with locks.hold(("garment", "g1")):
            held.set()
            release.wait(2)

    worker = threading.Thread(target=_holder)
    worker.start()
    try:
        assert held.wait(2)
        assert len(locks) == 1
        with pytest.raises(PersistenceFailure):
            with locks.hold(("garment", "g1")):
                pass
        assert len(locks) == 1
        with locks.hold(("garment", "g2")):
            assert len(locks) == 2
    finally:
        release.set()
        worker.join()

    with locks.hold(("garment", "g1")):
        assert len(locks) == 1
    assert len(locks) == 0
