"""Plan management, preference editing and weather advice workflows.

Every function here returns a :class:`Result`; callers read ``ok`` and
``message`` instead of catching exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from placefinder.core.errors import (
    GatewayError,
    NotFoundError,
    PlaceFinderError,
    Result,
    ValidationError,
)
from placefinder.engine import PreferenceResolver
from placefinder.schemas import (
    FavoriteLocation,
    Interest,
    Plan,
    PreferenceProfile,
    WeatherSignal,
)
from placefinder.workflows.search import LOCATION_NOT_FOUND_MESSAGE
from placefinder.workflows.services import PlanningServices

_LOGGER = logging.getLogger(__name__)

PLAN_NOT_FOUND_MESSAGE = "Plan not found."


def _resolver(services: PlanningServices) -> PreferenceResolver:
    return PreferenceResolver(services.preferences, default_radius_km=services.default_radius_km)


def _owned_plan(services: PlanningServices, plan_id: str, user_id: str) -> Plan:
    plan = services.plans.find_plan(plan_id)
    if plan is None or plan.user_id != user_id:
        raise NotFoundError(PLAN_NOT_FOUND_MESSAGE)
    return plan


def list_plans(services: PlanningServices, user_id: str) -> Result[List[Plan]]:
    try:
        return Result.success(services.plans.find_plans_by_user(user_id))
    except PlaceFinderError as exc:
        return Result.failure(exc)


def get_plan_details(services: PlanningServices, plan_id: str, user_id: str) -> Result[Plan]:
    try:
        return Result.success(_owned_plan(services, plan_id, user_id))
    except PlaceFinderError as exc:
        return Result.failure(exc)


def delete_plan(services: PlanningServices, plan_id: str, user_id: str) -> Result[bool]:
    try:
        deleted = services.plans.delete_plan(plan_id, user_id)
    except PlaceFinderError as exc:
        return Result.failure(exc)
    if not deleted:
        return Result.failure(NotFoundError(PLAN_NOT_FOUND_MESSAGE))
    _LOGGER.info("Deleted plan %s for user %s", plan_id, user_id)
    return Result.success(True, info="Plan deleted.")


def apply_preferences_from_plan(
    services: PlanningServices, plan_id: str, user_id: str
) -> Result[PreferenceProfile]:
    """Copy a plan's preference snapshot back into the user's live profile."""

    try:
        plan = _owned_plan(services, plan_id, user_id)
    except PlaceFinderError as exc:
        return Result.failure(exc)
    result = _resolver(services).update(user_id, plan.snapshot_radius_km, plan.snapshot_interests)
    if not result.ok:
        return result
    return Result.success(result.unwrap(), info="Preferences updated from plan.")


@dataclass
class PreferencesView:
    profile: PreferenceProfile
    favorites: List[FavoriteLocation] = field(default_factory=list)


def get_preferences(services: PlanningServices, user_id: str) -> Result[PreferencesView]:
    resolved = _resolver(services).resolve(user_id)
    if not resolved.ok:
        return Result.failure(resolved.error)  # type: ignore[arg-type]
    try:
        favorites = services.preferences.list_favorites(user_id)
    except PlaceFinderError as exc:
        return Result.failure(exc)
    return Result.success(PreferencesView(profile=resolved.unwrap(), favorites=favorites))


def update_preferences(
    services: PlanningServices, user_id: str, radius_km: float, interests: Iterable[Interest]
) -> Result[PreferenceProfile]:
    return _resolver(services).update(user_id, radius_km, interests)


def add_favorite(
    services: PlanningServices, user_id: str, name: str, address_text: str
) -> Result[FavoriteLocation]:
    """Geocode ``address_text`` and save it as a named favourite location."""

    if not name.strip():
        return Result.failure(ValidationError("Favourite locations need a name."))
    try:
        geocoded = services.geocoder.geocode(address_text)
        if geocoded is None:
            raise NotFoundError(LOCATION_NOT_FOUND_MESSAGE)
        favorite = services.preferences.add_favorite(
            FavoriteLocation(
                user_id=user_id,
                name=name.strip(),
                address=geocoded.formatted_address,
                lat=geocoded.lat,
                lon=geocoded.lon,
            )
        )
    except PlaceFinderError as exc:
        return Result.failure(exc)
    return Result.success(favorite, info="Favourite saved.")


def delete_favorite(services: PlanningServices, favorite_id: str, user_id: str) -> Result[bool]:
    try:
        deleted = services.preferences.delete_favorite(favorite_id, user_id)
    except PlaceFinderError as exc:
        return Result.failure(exc)
    if not deleted:
        return Result.failure(NotFoundError("Favourite location not found."))
    return Result.success(True, info="Favourite deleted.")


@dataclass(frozen=True)
class WeatherAdvice:
    location: str
    day: date
    summary: str
    advice: str
    weather: WeatherSignal


def describe_weather(weather: WeatherSignal) -> str:
    parts = ["Rain likely" if weather.precipitation_likely else "Mostly dry"]
    if weather.precipitation_probability is not None:
        parts[0] += f" ({weather.precipitation_probability:.0f}% chance)"
    if weather.temperature_min_c is not None and weather.temperature_max_c is not None:
        parts.append(f"{weather.temperature_min_c:.0f} to {weather.temperature_max_c:.0f} °C")
    return ", ".join(parts)


def advise(weather: WeatherSignal) -> str:
    if weather.precipitation_likely:
        lines = ["Bring an umbrella and favour indoor places such as museums, cafes and shops."]
    else:
        lines = ["A good day for parks and outdoor sightseeing."]
    if weather.temperature_max_c is not None and weather.temperature_max_c >= 28:
        lines.append("It will be hot, so plan shaded breaks and carry water.")
    elif weather.temperature_max_c is not None and weather.temperature_max_c <= 5:
        lines.append("It will be cold, so dress warmly.")
    return " ".join(lines)


def weather_advice(
    services: PlanningServices, location_text: str, day: date
) -> Result[WeatherAdvice]:
    try:
        origin = services.geocoder.geocode(location_text)
        if origin is None:
            raise NotFoundError(LOCATION_NOT_FOUND_MESSAGE)
        weather = services.weather.get_daily_weather(origin.lat, origin.lon, day)
        if weather is None:
            raise GatewayError("Weather data unavailable for that date.")
    except PlaceFinderError as exc:
        return Result.failure(exc)
    return Result.success(
        WeatherAdvice(
            location=origin.formatted_address,
            day=day,
            summary=describe_weather(weather),
            advice=advise(weather),
            weather=weather,
        )
    )


__all__ = [
    "PLAN_NOT_FOUND_MESSAGE",
    "PreferencesView",
    "WeatherAdvice",
    "add_favorite",
    "advise",
    "apply_preferences_from_plan",
    "delete_favorite",
    "delete_plan",
    "describe_weather",
    "get_plan_details",
    "get_preferences",
    "list_plans",
    "update_preferences",
    "weather_advice",
]
