"""Daily forecast lookups against the Open-Meteo API."""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional

import requests

from placefinder.core.errors import GatewayError
from placefinder.schemas import WeatherSignal

_LOGGER = logging.getLogger(__name__)

_OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_DAILY_FIELDS = (
    "precipitation_probability_max",
    "precipitation_sum",
    "temperature_2m_max",
    "temperature_2m_min",
)
RAIN_MM_THRESHOLD = 1.0


def _daily_value(daily: Dict[str, object], key: str) -> Optional[float]:
    values = daily.get(key)
    if not isinstance(values, list) or not values or values[0] is None:
        return None
    try:
        return float(values[0])
    except (TypeError, ValueError):
        return None


class OpenMeteoWeather:
    """Weather provider that summarises a single day's forecast."""

    def __init__(
        self,
        *,
        rain_probability_threshold: float = 50.0,
        timeout: float = 15.0,
        http_session: Optional[requests.Session] = None,
        url: str = _OPEN_METEO_FORECAST_URL,
    ) -> None:
        self._threshold = rain_probability_threshold
        self._timeout = timeout
        self._session = http_session or requests.Session()
        self._url = url

    def _fetch_daily(self, lat: float, lon: float, day: date) -> Dict[str, object]:
        params = {
            "latitude": lat,
            "longitude": lon,
            "daily": ",".join(_DAILY_FIELDS),
            "timezone": "auto",
            "start_date": day.isoformat(),
            "end_date": day.isoformat(),
        }
        try:
            response = self._session.get(self._url, params=params, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise GatewayError(f"Open-Meteo request failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError("Open-Meteo returned invalid JSON") from exc
        daily = data.get("daily") if isinstance(data, dict) else None
        return daily if isinstance(daily, dict) else {}

    def get_daily_weather(self, lat: float, lon: float, day: date) -> Optional[WeatherSignal]:
        """Return the forecast for ``day``, or ``None`` when the day is not covered."""

        daily = self._fetch_daily(lat, lon, day)
        days: List[object] = daily.get("time") or []  # type: ignore[assignment]
        if day.isoformat() not in days:
            _LOGGER.debug("No Open-Meteo forecast for %s at %.4f,%.4f", day, lat, lon)
            return None

        probability = _daily_value(daily, "precipitation_probability_max")
        precipitation = _daily_value(daily, "precipitation_sum")
        if probability is None and precipitation is None:
            return None

        likely = (probability is not None and probability >= self._threshold) or (
            precipitation is not None and precipitation >= RAIN_MM_THRESHOLD
        )
        return WeatherSignal(
            precipitation_likely=likely,
            precipitation_probability=probability,
            precipitation_mm=precipitation,
            temperature_max_c=_daily_value(daily, "temperature_2m_max"),
            temperature_min_c=_daily_value(daily, "temperature_2m_min"),
        )


__all__ = ["OpenMeteoWeather", "RAIN_MM_THRESHOLD"]
