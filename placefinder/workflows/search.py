"""Resolve a location and rank nearby places for a user."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from placefinder.core.errors import GatewayError, NotFoundError, PlaceFinderError, Result
from placefinder.engine import PlaceRanker, PreferenceResolver
from placefinder.schemas import GeocodeResult, Place, PreferenceProfile, WeatherSignal
from placefinder.workflows.services import PlanningServices

_LOGGER = logging.getLogger(__name__)

WEATHER_UNAVAILABLE_MESSAGE = "Weather data unavailable. Results are not weather-optimized."
LOCATION_NOT_FOUND_MESSAGE = "Could not find that location."


@dataclass
class PlaceSearchResult:
    profile: PreferenceProfile
    origin: GeocodeResult
    weather: Optional[WeatherSignal]
    ranked: List[Place] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)

    @property
    def weather_used(self) -> bool:
        return self.weather is not None

    @property
    def origin_address(self) -> str:
        return self.origin.formatted_address


def fetch_weather(
    services: PlanningServices, origin: GeocodeResult, day: date
) -> Optional[WeatherSignal]:
    """Return the forecast, treating any gateway failure as unknown weather."""

    try:
        return services.weather.get_daily_weather(origin.lat, origin.lon, day)
    except GatewayError as exc:
        _LOGGER.warning("Weather lookup failed for %s on %s: %s", origin.formatted_address, day, exc)
        return None


def collect_candidates(
    services: PlanningServices, user_id: str, location_text: str, day: date
) -> PlaceSearchResult:
    """Resolve preferences, geocode, fetch weather and rank places.

    Raises :class:`PlaceFinderError` subclasses; weather failures are absorbed.
    """

    profile = PreferenceResolver(
        services.preferences, default_radius_km=services.default_radius_km
    ).resolve(user_id).unwrap()

    origin = services.geocoder.geocode(location_text)
    if origin is None:
        raise NotFoundError(LOCATION_NOT_FOUND_MESSAGE)

    weather = fetch_weather(services, origin, day)
    places = services.places.search_places(
        origin.lat, origin.lon, profile.radius_km, profile.interests
    )
    scored: List[Tuple[Place, float]] = PlaceRanker().rank_scored(places, profile.interests, weather)
    _LOGGER.info(
        "Ranked %d places near %s (weather %s)",
        len(scored),
        origin.formatted_address,
        "used" if weather is not None else "unavailable",
    )
    return PlaceSearchResult(
        profile=profile,
        origin=origin,
        weather=weather,
        ranked=[place for place, _ in scored],
        scores=[score for _, score in scored],
    )


def search_places(
    services: PlanningServices, user_id: str, location_text: str, day: date
) -> Result[PlaceSearchResult]:
    """Return ranked places near ``location_text`` without scheduling them."""

    try:
        result = collect_candidates(services, user_id, location_text, day)
    except PlaceFinderError as exc:
        return Result.failure(exc)
    info = None if result.weather_used else WEATHER_UNAVAILABLE_MESSAGE
    return Result.success(result, info=info)


__all__ = [
    "LOCATION_NOT_FOUND_MESSAGE",
    "PlaceSearchResult",
    "WEATHER_UNAVAILABLE_MESSAGE",
    "collect_candidates",
    "fetch_weather",
    "search_places",
]
