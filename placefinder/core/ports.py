"""Gateway contracts consumed by the planning engine."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

from placefinder.schemas import (
    Coordinates,
    FavoriteLocation,
    GeocodeResult,
    Interest,
    Leg,
    Place,
    Plan,
    PreferenceProfile,
    Route,
    WeatherSignal,
)


class Geocoder(Protocol):
    def geocode(self, text: str) -> Optional[GeocodeResult]:
        ...


class PlacesSearch(Protocol):
    def search_places(
        self, lat: float, lon: float, radius_km: float, interests: Sequence[Interest]
    ) -> List[Place]:
        ...


class WeatherProvider(Protocol):
    def get_daily_weather(self, lat: float, lon: float, day: date) -> Optional[WeatherSignal]:
        ...


class RouteOracle(Protocol):
    """Answers how long and how far it is between points."""

    def compute_leg(self, origin: Coordinates, destination: Coordinates) -> Leg:
        ...

    def compute_route(
        self, origin: Coordinates, start_time: datetime, stops: Sequence[Place]
    ) -> Route:
        ...


class PreferenceStore(Protocol):
    def load_preferences(self, user_id: str) -> Optional[PreferenceProfile]:
        ...

    def save_preferences(self, profile: PreferenceProfile) -> None:
        ...

    def list_favorites(self, user_id: str) -> List[FavoriteLocation]:
        ...

    def add_favorite(self, favorite: FavoriteLocation) -> FavoriteLocation:
        ...

    def delete_favorite(self, favorite_id: str, user_id: str) -> bool:
        ...


class PlanStore(Protocol):
    def save_plan(self, plan: Plan) -> Plan:
        ...

    def find_plan(self, plan_id: str) -> Optional[Plan]:
        ...

    def find_plans_by_user(self, user_id: str) -> List[Plan]:
        ...

    def delete_plan(self, plan_id: str, user_id: str) -> bool:
        ...


__all__ = [
    "Geocoder",
    "PlacesSearch",
    "PlanStore",
    "PreferenceStore",
    "RouteOracle",
    "WeatherProvider",
]
