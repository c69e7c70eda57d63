"""Closet Comfort app bootstrap."""

from datetime import date as dt_date, datetime
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from agents.feedback_engine import FeedbackEngine
from agents.outfit_recommender import OutfitRecommender
from agents.weather_agent import WeatherAgent
from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event, operation_context
from memory.feedback_log import SQLiteFeedbackLog
from memory.locks import KeyedLocks
from memory.outfit_sessions import (
    JSONOutfitSessionStore,
    OutfitSessionManager,
    OutfitSessionStore,
    SQLiteOutfitSessionStore,
)
from models.outfit import AdjustmentResult, OutfitSession
from models.taxonomy import CategoryWeightTable, parse_weight_overrides
from tools.garment_store import SQLiteGarmentStore
from tools.garment_tools import GarmentTools
from tools.image_store import LocalImageStore
from tools.weather_provider import OpenWeatherProvider, WeatherProvider


LOGGER = get_logger(__name__)


class ClosetComfortApp:
    """Wires together stores, the session manager, the feedback engine and tools."""

    def __init__(
        self,
        config: ClosetConfig | None = None,
        weather_provider: WeatherProvider | None = None,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging(self.config.log_level)

        timeout = self.config.persistence_timeout_seconds
        self.locks = KeyedLocks(timeout_seconds=timeout)
        self.garment_store = SQLiteGarmentStore(self.config.database_path, timeout_seconds=timeout, locks=self.locks)
        self.image_store = LocalImageStore(self.config.image_dir)
        self.session_store = self._build_session_store()
        self.feedback_log = SQLiteFeedbackLog(self.config.database_path, timeout_seconds=timeout)
        self.weights = CategoryWeightTable().with_overrides(parse_weight_overrides(self.config.category_weights))

        self.weather_provider = weather_provider or OpenWeatherProvider(
            api_key=self.config.weather_api_key,
            timeout_seconds=self.config.weather_timeout_seconds,
        )
        self.weather_agent = WeatherAgent(provider=self.weather_provider)
        self.garment_tools = GarmentTools(self.garment_store, image_store=self.image_store)
        self.session_manager = OutfitSessionManager(
            store=self.session_store,
            garment_store=self.garment_store,
            timezone_name=self.config.timezone,
            locks=self.locks,
        )
        self.feedback_engine = FeedbackEngine(
            session_manager=self.session_manager,
            garment_store=self.garment_store,
            feedback_log=self.feedback_log,
            weights=self.weights,
            policy=self.config.feedback_policy,
            locks=self.locks,
        )
        self.recommender = OutfitRecommender(
            garment_store=self.garment_store,
            weather_agent=self.weather_agent,
            tolerance_degrees=self.config.tolerance_degrees,
        )

    def _build_session_store(self) -> OutfitSessionStore:
        timeout = self.config.persistence_timeout_seconds
        if self.config.session_store_backend == "json":
            return JSONOutfitSessionStore(self.config.session_store_path or "data/outfits")
        return SQLiteOutfitSessionStore(
            self.config.session_store_path or self.config.database_path, timeout_seconds=timeout
        )

    def register_outfit(
        self, *, user_id: str, date: str | dt_date | datetime, garment_ids: Iterable[str]
    ) -> OutfitSession:
        """Create or replace the outfit worn on ``date``."""

        with operation_context("app:register_outfit") as correlation_id:
            log_event(LOGGER, logging.INFO, "app_call_started", method="register_outfit", user_id=user_id)
            session = self.session_manager.register_outfit(user_id, date, list(garment_ids))
            log_event(
                LOGGER,
                logging.INFO,
                "app_call_completed",
                method="register_outfit",
                correlation_id=correlation_id,
                garment_count=len(session.garment_ids),
            )
            return session

    def get_session(self, *, user_id: str, date: str | dt_date | datetime) -> OutfitSession:
        return self.session_manager.get_session(user_id, date)

    def apply_feedback(self, *, user_id: str, date: str | dt_date | datetime, rating: Any) -> AdjustmentResult:
        """Adapt the comfort temperature of every garment worn on ``date``."""

        with operation_context("app:apply_feedback") as correlation_id:
            log_event(LOGGER, logging.INFO, "app_call_started", method="apply_feedback", user_id=user_id)
            result = self.feedback_engine.apply_feedback(user_id, date, rating)
            log_event(
                LOGGER,
                logging.INFO,
                "app_call_completed",
                method="apply_feedback",
                correlation_id=correlation_id,
                status=result.status,
            )
            return result

    def recommend(
        self,
        *,
        user_id: str,
        temperature: Optional[float] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        tolerance: Optional[int] = None,
    ) -> Dict[str, Any]:
        return self.recommender.recommend(
            user_id, target_temperature=temperature, lat=lat, lon=lon, tolerance=tolerance
        )

    @classmethod
    def for_directory(cls, base_dir: str | Path, **overrides: Any) -> "ClosetComfortApp":
        """Build an app whose files all live under ``base_dir``."""

        base = Path(base_dir)
        weather_provider = overrides.pop("weather_provider", None)
        config = ClosetConfig(
            database_path=str(base / "closet.db"),
            image_dir=str(base / "images"),
            session_store_path=overrides.pop("session_store_path", None),
            **overrides,
        )
        return cls(config=config, weather_provider=weather_provider)


__all__ = ["ClosetComfortApp"]
