"""Weather provider abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from models.errors import WeatherUnavailable

LOGGER = logging.getLogger(__name__)
CURRENT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


class _WeatherCondition(BaseModel):
    description: str = "unknown"


class _Main(BaseModel):
    temp: float
    feels_like: Optional[float] = None


class _CurrentResponse(BaseModel):
    main: _Main
    weather: List[_WeatherCondition] = []
    name: str = ""


@dataclass
class WeatherReading:
    """Current conditions at one location, in degrees Celsius."""

    temperature: float
    feels_like: Optional[float]
    condition: str
    location_name: str = ""


class WeatherProvider(ABC):
    """Abstract weather provider interface."""

    @abstractmethod
    def get_current(self, lat: float, lon: float) -> Optional[WeatherReading]:
        """Return current conditions, or ``None`` when no reading is available."""

    def fetch_raw(self, lat: float, lon: float) -> Dict[str, Any]:
        """Return a provider-shaped payload for the weather proxy endpoint."""

        reading = self.get_current(lat, lon)
        if reading is None:
            raise WeatherUnavailable("No weather reading available", {"reason": "no_reading"})
        return {
            "main": {"temp": reading.temperature, "feels_like": reading.feels_like},
            "weather": [{"description": reading.condition}],
            "name": reading.location_name,
        }


class OpenWeatherProvider(WeatherProvider):
    """OpenWeather current-conditions provider with schema validation.

    Failures never produce a made-up temperature: callers get ``None`` and must
    skip temperature filtering.
    """

    def __init__(self, api_key: str | None = None, timeout_seconds: float = 5.0, units: str = "metric") -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.units = units

    def fetch_raw(self, lat: float, lon: float) -> Dict[str, Any]:
        """Return the provider payload unchanged, for the weather proxy endpoint."""

        if not self.api_key:
            raise WeatherUnavailable("Weather lookups are not configured", {"reason": "missing_api_key"})

        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": self.units}
        try:
            response = requests.get(CURRENT_WEATHER_URL, params=params, timeout=self.timeout_seconds)
        except requests.Timeout as exc:
            raise WeatherUnavailable("Weather API timed out", {"reason": "timeout"}) from exc
        except requests.RequestException as exc:
            raise WeatherUnavailable("Weather API unreachable", {"reason": "request_error"}) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not response.ok:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise WeatherUnavailable(
                message or f"Weather API returned {response.status_code}",
                {"reason": "upstream_error", "status_code": response.status_code},
            )
        return payload

    def get_current(self, lat: float, lon: float) -> Optional[WeatherReading]:
        LOGGER.info("Fetching current weather")
        try:
            payload = self.fetch_raw(lat, lon)
            parsed = _CurrentResponse.model_validate(payload)
        except WeatherUnavailable as exc:
            LOGGER.warning("Weather lookup failed", extra={"reason": exc.details.get("reason")})
            return None
        except ValidationError as exc:
            LOGGER.error("Weather payload schema validation failed", exc_info=exc)
            return None

        condition = parsed.weather[0].description if parsed.weather else "unknown"
        return WeatherReading(
            temperature=parsed.main.temp,
            feels_like=parsed.main.feels_like,
            condition=condition,
            location_name=parsed.name,
        )


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for tests."""

    def __init__(self, reading: WeatherReading | None = None) -> None:
        self.reading = reading
        self.calls: List[tuple] = []

    def get_current(self, lat: float, lon: float) -> Optional[WeatherReading]:
        LOGGER.info("Returning mock weather reading")
        self.calls.append((lat, lon))
        return self.reading


__all__ = ["WeatherReading", "WeatherProvider", "OpenWeatherProvider", "MockWeatherProvider"]
