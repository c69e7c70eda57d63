"""Configuration helpers for the Closet Comfort service."""

from dataclasses import dataclass, fields
from pathlib import Path
import os
from typing import Callable, Dict, Optional

DEFAULT_TOLERANCE_DEGREES = 5
FEEDBACK_POLICIES = ("accumulate", "once_per_day")
SESSION_STORE_BACKENDS = ("sqlite", "json")

# Config keys whose environment variable differs from the upper-cased field name.
_ENV_ALIASES = {"weather_api_key": "OPENWEATHER_API_KEY"}


@dataclass
class ClosetConfig:
    """Configuration values for the Closet Comfort service.

    Defaults keep a local run self-contained: SQLite files and images live
    under ``data/`` and the weather lookup is disabled until an OpenWeather key
    is supplied.
    """

    database_path: str = "data/closet.db"
    image_dir: str = "data/images"
    session_store_backend: str = "sqlite"
    session_store_path: Optional[str] = None
    weather_api_key: Optional[str] = None
    weather_timeout_seconds: float = 5.0
    persistence_timeout_seconds: float = 5.0
    tolerance_degrees: int = DEFAULT_TOLERANCE_DEGREES
    timezone: str = "UTC"
    feedback_policy: str = "accumulate"
    category_weights: Optional[str] = None
    log_level: str = "INFO"
    environment: str | None = None

    def __post_init__(self) -> None:
        self.feedback_policy = self.feedback_policy.lower()
        self.session_store_backend = self.session_store_backend.lower()
        if self.feedback_policy not in FEEDBACK_POLICIES:
            raise ValueError(
                f"Unsupported feedback_policy '{self.feedback_policy}'. Allowed: {list(FEEDBACK_POLICIES)}"
            )
        if self.session_store_backend not in SESSION_STORE_BACKENDS:
            raise ValueError(
                f"Unsupported session_store_backend '{self.session_store_backend}'. "
                f"Allowed: {list(SESSION_STORE_BACKENDS)}"
            )
        if self.tolerance_degrees < 0:
            raise ValueError("tolerance_degrees cannot be negative")
        if self.weather_timeout_seconds <= 0 or self.persistence_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from an optional environment YAML file and environment variables.

        ``APP_CONFIG_PATH`` names the file directly; otherwise ``APP_ENV`` selects
        ``config/environments/<env>.yaml``. Environment variables (the upper-cased
        key, or ``OPENWEATHER_API_KEY`` for the weather key) win over the file so
        secrets never have to be written to disk.
        """

        env_name = os.getenv("APP_ENV")
        config_dir = Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments"))
        explicit_path = os.getenv("APP_CONFIG_PATH")
        path = Path(explicit_path) if explicit_path else (config_dir / f"{env_name}.yaml" if env_name else None)
        file_values = cls._load_yaml_config(path) if path and path.exists() else {}

        converters: Dict[str, Callable[[str], object]] = {
            "weather_timeout_seconds": float,
            "persistence_timeout_seconds": float,
            "tolerance_degrees": int,
        }
        values: Dict[str, object] = {}
        for config_field in fields(cls):
            if config_field.name == "environment":
                continue
            raw = os.getenv(_ENV_ALIASES.get(config_field.name, config_field.name.upper()))
            if raw is None:
                raw = file_values.get(config_field.name)
            if raw is None or raw == "":
                continue
            convert = converters.get(config_field.name, str)
            try:
                values[config_field.name] = convert(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {config_field.name}: {raw!r}") from exc
        return cls(environment=env_name, **values)

    @staticmethod
    def _load_yaml_config(path: Path) -> Dict[str, str]:
        """Read flat ``key: value`` pairs; nesting and lists are not supported."""

        config: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            key, sep, raw_value = line.partition(":")
            key = key.strip()
            if not sep or not key or key.startswith("#"):
                continue
            value = raw_value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            else:
                value = value.split(" #", 1)[0].strip()
            config[key] = value
        return config


__all__ = ["ClosetConfig", "DEFAULT_TOLERANCE_DEGREES", "FEEDBACK_POLICIES", "SESSION_STORE_BACKENDS"]
