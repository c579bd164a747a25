"""Thin wrappers around the Geoapify geocoding, places and routing APIs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import polyline
import requests

from placefinder.core.errors import GatewayError
from placefinder.schemas import (
    Coordinates,
    GeocodeResult,
    IndoorOutdoorType,
    Interest,
    Leg,
    Place,
    Route,
    Step,
)

_LOGGER = logging.getLogger(__name__)

_GEOAPIFY_BASE_URL = "https://api.geoapify.com"
_DEFAULT_TIMEOUT = 15.0
_SEARCH_LIMIT = 40

DEFAULT_CATEGORIES = ("tourism.sights", "entertainment", "leisure.park", "catering")

INTEREST_CATEGORIES: Dict[Interest, Sequence[str]] = {
    Interest.MUSEUM: ("entertainment.museum",),
    Interest.CAFE: ("catering.cafe",),
    Interest.PARK: ("leisure.park",),
    Interest.SHOPPING: ("commercial.shopping_mall", "commercial.marketplace"),
    Interest.RESTAURANT: ("catering.restaurant",),
    Interest.BAR: ("catering.bar",),
    Interest.SIGHTSEEING: ("tourism.sights",),
}

_CATEGORY_PREFIXES: Dict[str, Interest] = {
    "entertainment.museum": Interest.MUSEUM,
    "catering.cafe": Interest.CAFE,
    "leisure.park": Interest.PARK,
    "commercial.shopping_mall": Interest.SHOPPING,
    "commercial.marketplace": Interest.SHOPPING,
    "catering.restaurant": Interest.RESTAURANT,
    "catering.bar": Interest.BAR,
    "catering.pub": Interest.BAR,
    "tourism.sights": Interest.SIGHTSEEING,
    "tourism.attraction": Interest.SIGHTSEEING,
}

_OUTDOOR_PREFIXES = ("leisure.park", "natural")
_INDOOR_PREFIXES = ("catering.", "commercial.", "entertainment.")


class GeoapifyClient:
    """Issues authenticated GET requests against the Geoapify REST API."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        http_session: Optional[requests.Session] = None,
        base_url: str = _GEOAPIFY_BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._session = http_session or requests.Session()
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def get(self, path: str, params: Mapping[str, object]) -> Dict[str, object]:
        if not self._api_key:
            raise GatewayError("GEOAPIFY_API_KEY environment variable is not set")
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = self._session.get(
                url,
                params={**params, "apiKey": self._api_key},
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise GatewayError(f"Geoapify request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError(f"Geoapify returned invalid JSON for {path}") from exc
        if not isinstance(data, dict):
            raise GatewayError(f"Unexpected Geoapify payload for {path}")
        return data


def _features(data: Mapping[str, object]) -> List[Dict[str, object]]:
    features = data.get("features") or []
    if not isinstance(features, list):
        raise GatewayError("Geoapify response 'features' is not a list")
    return [feature for feature in features if isinstance(feature, dict)]


def _feature_coordinates(feature: Mapping[str, object]) -> Optional[Coordinates]:
    properties = feature.get("properties") or {}
    if isinstance(properties, dict) and properties.get("lat") is not None and properties.get("lon") is not None:
        return float(properties["lat"]), float(properties["lon"])
    geometry = feature.get("geometry") or {}
    coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if isinstance(coordinates, list) and len(coordinates) >= 2:
        return float(coordinates[1]), float(coordinates[0])
    return None


def categories_param(interests: Iterable[Interest]) -> str:
    """Return the Geoapify ``categories`` query value for the selected interests."""

    categories: List[str] = []
    for interest in interests:
        for category in INTEREST_CATEGORIES.get(interest, ("tourism",)):
            if category not in categories:
                categories.append(category)
    return ",".join(categories or DEFAULT_CATEGORIES)


def map_categories(raw_categories: Iterable[str]) -> frozenset:
    interests = set()
    for category in raw_categories:
        for prefix, interest in _CATEGORY_PREFIXES.items():
            if category.startswith(prefix):
                interests.add(interest)
    return frozenset(interests)


def classify_indoor_outdoor(raw_categories: Iterable[str]) -> IndoorOutdoorType:
    categories = list(raw_categories)
    outdoor = any(category.startswith(_OUTDOOR_PREFIXES) for category in categories)
    indoor = any(category.startswith(_INDOOR_PREFIXES) for category in categories)
    if outdoor and indoor:
        return IndoorOutdoorType.MIXED
    if outdoor:
        return IndoorOutdoorType.OUTDOOR
    if indoor:
        return IndoorOutdoorType.INDOOR
    return IndoorOutdoorType.UNKNOWN


def _normalise_place(feature: Mapping[str, object]) -> Optional[Place]:
    properties = feature.get("properties")
    if not isinstance(properties, dict):
        return None
    coordinates = _feature_coordinates(feature)
    place_id = properties.get("place_id")
    if coordinates is None or not place_id:
        _LOGGER.debug("Skipping Geoapify feature without id or coordinates: %s", properties)
        return None

    raw_categories = properties.get("categories")
    if isinstance(raw_categories, list):
        categories = [str(item) for item in raw_categories]
    elif properties.get("category"):
        categories = [str(properties["category"])]
    else:
        categories = []

    distance_m = properties.get("distance") or 0
    return Place(
        id=str(place_id),
        name=str(properties.get("name") or "(no name)"),
        address=str(properties.get("formatted") or ""),
        lat=coordinates[0],
        lon=coordinates[1],
        distance_km=max(0.0, float(distance_m) / 1000.0),
        indoor_outdoor_type=classify_indoor_outdoor(categories),
        categories=map_categories(categories),
    )


class GeoapifyGeocoder:
    def __init__(self, client: GeoapifyClient) -> None:
        self._client = client

    def geocode(self, text: str) -> Optional[GeocodeResult]:
        data = self._client.get("v1/geocode/search", {"text": text, "limit": 1})
        try:
            for feature in _features(data):
                coordinates = _feature_coordinates(feature)
                if coordinates is None:
                    continue
                properties = feature.get("properties") or {}
                formatted = properties.get("formatted") if isinstance(properties, dict) else None
                return GeocodeResult(
                    lat=coordinates[0],
                    lon=coordinates[1],
                    formatted_address=str(formatted or text),
                )
        except (AttributeError, TypeError, ValueError) as exc:
            raise GatewayError(f"Malformed Geoapify geocoding result: {exc}") from exc
        return None


class GeoapifyPlacesSearch:
    def __init__(self, client: GeoapifyClient, *, limit: int = _SEARCH_LIMIT) -> None:
        self._client = client
        self._limit = limit

    def search_places(
        self, lat: float, lon: float, radius_km: float, interests: Sequence[Interest]
    ) -> List[Place]:
        radius_m = int(radius_km * 1000)
        params = {
            "categories": categories_param(interests),
            "filter": f"circle:{lon},{lat},{radius_m}",
            "bias": f"proximity:{lon},{lat}",
            "limit": self._limit,
        }
        data = self._client.get("v2/places", params)
        places: List[Place] = []
        try:
            for feature in _features(data):
                place = _normalise_place(feature)
                if place is not None:
                    places.append(place)
        except (AttributeError, TypeError, ValueError) as exc:
            # pydantic's ValidationError is a ValueError
            raise GatewayError(f"Malformed Geoapify place: {exc}") from exc
        return places


def _encode(points: Sequence[Coordinates]) -> str:
    return polyline.encode(list(points)) if points else ""


class GeoapifyRouter:
    """Route-time oracle backed by the Geoapify Routing API."""

    def __init__(self, client: GeoapifyClient, *, mode: str = "walk") -> None:
        self._client = client
        self._mode = mode

    def _route_feature(self, waypoints: Sequence[Coordinates]) -> Dict[str, object]:
        params = {
            "waypoints": "|".join(f"{lat},{lon}" for lat, lon in waypoints),
            "mode": self._mode,
        }
        features = _features(self._client.get("v1/routing", params))
        if not features:
            raise GatewayError("Geoapify routing returned no route")
        return features[0]

    @staticmethod
    def _leg_lines(feature: Mapping[str, object]) -> List[List[Coordinates]]:
        geometry = feature.get("geometry") or {}
        coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not isinstance(coordinates, list):
            return []
        if geometry.get("type") == "LineString":
            coordinates = [coordinates]
        return [[(float(lat), float(lon)) for lon, lat, *_ in line] for line in coordinates]

    def _parse_legs(self, feature: Mapping[str, object], expected: int) -> List[Leg]:
        properties = feature.get("properties")
        raw_legs = properties.get("legs") if isinstance(properties, dict) else None
        if not isinstance(raw_legs, list) or len(raw_legs) != expected:
            raise GatewayError("Geoapify routing response has an unexpected number of legs")
        lines = self._leg_lines(feature)
        legs: List[Leg] = []
        try:
            for index, raw_leg in enumerate(raw_legs):
                steps = [
                    Step(
                        distance_meters=float(step.get("distance") or 0),
                        duration_seconds=float(step.get("time") or 0),
                        instruction=str((step.get("instruction") or {}).get("text") or ""),
                    )
                    for step in raw_leg.get("steps") or []
                ]
                legs.append(
                    Leg(
                        distance_meters=float(raw_leg.get("distance") or 0),
                        duration_seconds=float(raw_leg.get("time") or 0),
                        encoded_polyline=_encode(lines[index]) if index < len(lines) else "",
                        steps=steps,
                    )
                )
        except (AttributeError, TypeError, ValueError) as exc:
            raise GatewayError(f"Malformed Geoapify routing leg: {exc}") from exc
        return legs

    def compute_leg(self, origin: Coordinates, destination: Coordinates) -> Leg:
        feature = self._route_feature([origin, destination])
        return self._parse_legs(feature, 1)[0]

    def compute_route(
        self, origin: Coordinates, start_time: datetime, stops: Sequence[Place]
    ) -> Route:
        if not stops:
            return Route()
        waypoints = [origin, *(stop.coordinates for stop in stops)]
        feature = self._route_feature(waypoints)
        legs = self._parse_legs(feature, len(stops))
        points = [point for line in self._leg_lines(feature) for point in line]
        return Route.from_legs(legs, encoded_polyline=_encode(points))


__all__ = [
    "DEFAULT_CATEGORIES",
    "GeoapifyClient",
    "GeoapifyGeocoder",
    "GeoapifyPlacesSearch",
    "GeoapifyRouter",
    "categories_param",
    "classify_indoor_outdoor",
    "map_categories",
]
