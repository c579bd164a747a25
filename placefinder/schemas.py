"""Data schemas for the PlaceFinder day-trip planner."""

from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
)

Coordinates = Tuple[float, float]


class Interest(str, Enum):
    """Closed set of categories a traveller can select as a preference."""

    MUSEUM = "MUSEUM"
    CAFE = "CAFE"
    PARK = "PARK"
    SHOPPING = "SHOPPING"
    RESTAURANT = "RESTAURANT"
    BAR = "BAR"
    SIGHTSEEING = "SIGHTSEEING"


class IndoorOutdoorType(str, Enum):
    INDOOR = "INDOOR"
    OUTDOOR = "OUTDOOR"
    MIXED = "MIXED"
    UNKNOWN = "UNKNOWN"


MAX_INTERESTS = 3
MAX_RADIUS_KM = 5.0


def _ordered_interests(values: Iterable[Interest]) -> List[Interest]:
    """Deduplicate interests and return them in declaration order."""

    selected = set(values)
    return [interest for interest in Interest if interest in selected]


class PreferenceProfile(BaseModel):
    """A user's live search radius and interest selection.

    The radius and interest limits are validated on construction and on every
    assignment, so an invalid profile can never reach a store.
    """

    user_id: str
    radius_km: float = Field(default=2.0, ge=0.0, le=MAX_RADIUS_KM)
    interests: List[Interest] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("interests")
    @classmethod
    def _limit_interests(cls, value: List[Interest]) -> List[Interest]:
        ordered = _ordered_interests(value)
        if len(ordered) > MAX_INTERESTS:
            raise ValueError(f"at most {MAX_INTERESTS} interests may be selected")
        return ordered


class Place(BaseModel):
    """Normalised representation of a nearby point of interest."""

    id: str
    name: str
    address: str = ""
    lat: float
    lon: float
    distance_km: float = Field(default=0.0, ge=0.0)
    indoor_outdoor_type: IndoorOutdoorType = Field(
        default=IndoorOutdoorType.UNKNOWN,
        validation_alias=AliasChoices("indoor_outdoor_type", "type"),
    )
    categories: FrozenSet[Interest] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def coordinates(self) -> Coordinates:
        return (self.lat, self.lon)


class GeocodeResult(BaseModel):
    lat: float
    lon: float
    formatted_address: str

    model_config = ConfigDict(frozen=True)

    @property
    def coordinates(self) -> Coordinates:
        return (self.lat, self.lon)


class WeatherSignal(BaseModel):
    """Daily weather summary used to bias ranking towards indoor or outdoor places."""

    precipitation_likely: bool
    precipitation_probability: Optional[float] = None
    precipitation_mm: Optional[float] = None
    temperature_max_c: Optional[float] = None
    temperature_min_c: Optional[float] = None

    model_config = ConfigDict(frozen=True)


class Step(BaseModel):
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    instruction: str = Field(
        default="",
        validation_alias=AliasChoices("instruction", "nav_instruction"),
    )

    model_config = ConfigDict(populate_by_name=True)


class Leg(BaseModel):
    """Travel between two consecutive points of a route."""

    distance_meters: float = Field(default=0.0, ge=0.0)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    encoded_polyline: str = ""
    steps: List[Step] = Field(default_factory=list)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0


class PlanStop(BaseModel):
    lat: float
    lon: float
    name: str
    place_id: Optional[str] = None
    arrival_time: time
    departure_time: time


class Route(BaseModel):
    """Ordered stops with the legs that connect them.

    The origin counts as the first leg endpoint, so a route with ``n`` stops
    carries ``n`` legs.
    """

    stops: List[PlanStop] = Field(default_factory=list)
    legs: List[Leg] = Field(default_factory=list)
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    encoded_polyline: str = ""

    @classmethod
    def from_legs(cls, legs: Iterable[Leg], *, encoded_polyline: str = "") -> "Route":
        leg_list = list(legs)
        return cls(
            legs=leg_list,
            distance_meters=sum(leg.distance_meters for leg in leg_list),
            duration_seconds=sum(leg.duration_seconds for leg in leg_list),
            encoded_polyline=encoded_polyline,
        )


class Plan(BaseModel):
    """A built day trip together with the preferences it was built from."""

    id: Optional[str] = None
    user_id: str
    name: str
    date: date
    start_time: time
    origin_address: str
    route: Route = Field(default_factory=Route)
    snapshot_radius_km: float = Field(ge=0.0, le=MAX_RADIUS_KM)
    snapshot_interests: List[Interest] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def stops(self) -> List[PlanStop]:
        return self.route.stops


class FavoriteLocation(BaseModel):
    id: Optional[str] = None
    user_id: str
    name: str
    address: str
    lat: float
    lon: float


class PlanRequest(BaseModel):
    """Everything a user supplies when asking for a new day trip.

    Leaving ``available_minutes`` or ``dwell_minutes`` unset uses the configured
    defaults of the planning services.
    """

    user_id: str
    name: str
    location_text: str
    date: date
    start_time: time
    available_minutes: Optional[int] = None
    dwell_minutes: Optional[PositiveInt] = None

    @field_validator("location_text")
    @classmethod
    def _strip_location(cls, value: str) -> str:
        return value.strip()


__all__ = [
    "Coordinates",
    "FavoriteLocation",
    "GeocodeResult",
    "IndoorOutdoorType",
    "Interest",
    "Leg",
    "MAX_INTERESTS",
    "MAX_RADIUS_KM",
    "Place",
    "Plan",
    "PlanRequest",
    "PlanStop",
    "PreferenceProfile",
    "Route",
    "Step",
    "WeatherSignal",
]
