"""Weather agent that turns current conditions into a target temperature."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from closet_app.logging_config import get_logger, log_event
from models.garment import round_half_away_from_zero
from tools.observability import instrument_operation
from tools.weather_provider import WeatherProvider, WeatherReading

LOGGER = get_logger(__name__)


class _Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class WeatherAgent:
    """Fetches weather and derives a target temperature for garment selection."""

    def __init__(self, provider: WeatherProvider) -> None:
        self.provider = provider

    @instrument_operation("weather.current_reading", input_model=_Coordinates)
    def current_reading(self, *, lat: float, lon: float) -> Optional[WeatherReading]:
        return self.provider.get_current(lat, lon)

    def target_temperature(self, lat: float, lon: float) -> Optional[int]:
        """Rounded current temperature, or ``None`` when the lookup failed."""

        reading = self.current_reading(lat=lat, lon=lon)
        if reading is None:
            log_event(LOGGER, logging.WARNING, "weather_target_unavailable")
            return None
        return round_half_away_from_zero(reading.temperature)


__all__ = ["WeatherAgent"]
