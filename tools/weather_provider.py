"""Weather provider abstractions and the Open-Meteo implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests
from pydantic import BaseModel, ValidationError


LOGGER = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m,precipitation"
CONDITIONS = ("clear", "partly_cloudy", "foggy", "rainy", "snowy", "stormy", "variable")


class WeatherUnavailableError(RuntimeError):
    """Raised when current conditions cannot be fetched or parsed."""


class _Current(BaseModel):
    temperature_2m: float
    relative_humidity_2m: float = 0.0
    weather_code: int = -1
    wind_speed_10m: float = 0.0
    precipitation: float = 0.0


class _CurrentResponse(BaseModel):
    current: _Current


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions at one coordinate, metric units."""

    temperature_c: float
    condition: str
    humidity_pct: float
    wind_speed_kph: float
    precipitation_mm: float


def condition_from_code(code: int) -> str:
    """Collapse a WMO weather interpretation code into the closed condition vocabulary."""

    if code == 0:
        return "clear"
    if 1 <= code <= 3:
        return "partly_cloudy"
    if 45 <= code <= 48:
        return "foggy"
    if 51 <= code <= 67 or 80 <= code <= 82:
        return "rainy"
    if 71 <= code <= 77:
        return "snowy"
    if code >= 95:
        return "stormy"
    return "variable"


def format_weather_for_agent(weather: WeatherSnapshot) -> str:
    summary = (
        f"Current weather: {weather.temperature_c:g}°C, {weather.condition}. "
        f"Humidity: {weather.humidity_pct:g}%, wind: {weather.wind_speed_kph:g} km/h."
    )
    if weather.precipitation_mm > 0:
        summary += (
            f" Precipitation: {weather.precipitation_mm:g} mm. Suggest rain-appropriate clothing."
        )
    return summary


class WeatherProvider(ABC):
    """Abstract weather provider interface."""

    @abstractmethod
    def get_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Return current conditions or raise :class:`WeatherUnavailableError`."""


class OpenMeteoProvider(WeatherProvider):
    """Open-Meteo client; no API key required."""

    def __init__(self, timeout_seconds: float = 10.0, session: requests.Session | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def get_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": CURRENT_FIELDS,
        }
        LOGGER.info("Fetching current weather", extra={"latitude": latitude, "longitude": longitude})
        try:
            response = self.session.get(OPEN_METEO_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            parsed = _CurrentResponse.model_validate(response.json())
        except requests.RequestException as exc:
            LOGGER.error("Weather API unreachable", exc_info=exc)
            raise WeatherUnavailableError(f"Weather API error: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            LOGGER.error("Weather payload schema validation failed", exc_info=exc)
            raise WeatherUnavailableError("Weather API returned an unexpected payload") from exc

        current = parsed.current
        return WeatherSnapshot(
            temperature_c=current.temperature_2m,
            condition=condition_from_code(current.weather_code),
            humidity_pct=current.relative_humidity_2m,
            wind_speed_kph=current.wind_speed_10m,
            precipitation_mm=current.precipitation,
        )


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for tests and local demos."""

    def __init__(self, snapshot: WeatherSnapshot | None = None) -> None:
        self.snapshot = snapshot or WeatherSnapshot(
            temperature_c=20.0,
            condition="clear",
            humidity_pct=55.0,
            wind_speed_kph=8.0,
            precipitation_mm=0.0,
        )
        self.calls = 0

    def get_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        self.calls += 1
        LOGGER.info("Returning mock weather", extra={"latitude": latitude, "longitude": longitude})
        return self.snapshot


__all__ = [
    "CONDITIONS",
    "WeatherSnapshot",
    "WeatherProvider",
    "WeatherUnavailableError",
    "OpenMeteoProvider",
    "MockWeatherProvider",
    "condition_from_code",
    "format_weather_for_agent",
]
