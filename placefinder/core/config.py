"""Environment-driven settings and gateway wiring."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    geoapify_api_key: Optional[str] = None
    database_url: Optional[str] = None
    http_timeout: float = 15.0
    travel_mode: str = "walk"
    offline_speed_kmh: float = 5.0
    dwell_minutes: int = 45
    available_minutes: int = 480
    default_radius_km: float = 2.0
    rain_probability_threshold: float = 50.0

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """Build settings from the environment, loading ``.env`` first when present."""

        if dotenv:
            load_dotenv()
        return cls(
            geoapify_api_key=os.getenv("GEOAPIFY_API_KEY") or None,
            database_url=os.getenv("DATABASE_URL") or None,
            http_timeout=_float_env("PLACEFINDER_HTTP_TIMEOUT", 15.0),
            travel_mode=os.getenv("PLACEFINDER_TRAVEL_MODE", "walk"),
            offline_speed_kmh=_float_env("PLACEFINDER_OFFLINE_SPEED_KMH", 5.0),
            dwell_minutes=int(_float_env("PLACEFINDER_DWELL_MINUTES", 45)),
            available_minutes=int(_float_env("PLACEFINDER_AVAILABLE_MINUTES", 480)),
            default_radius_km=_float_env("PLACEFINDER_DEFAULT_RADIUS_KM", 2.0),
            rain_probability_threshold=_float_env("PLACEFINDER_RAIN_PROBABILITY_THRESHOLD", 50.0),
        )


__all__ = ["Settings"]
