"""Unit tests for schema helpers and validators."""

from datetime import date, time

import pydantic
import pytest

from placefinder.schemas import (
    IndoorOutdoorType,
    Interest,
    Leg,
    Place,
    Plan,
    PlanRequest,
    PlanStop,
    PreferenceProfile,
    Route,
    Step,
)


def test_place_accepts_type_alias() -> None:
    """Gateway payloads label the indoor/outdoor classification as ``type``."""

    place = Place.model_validate(
        {"id": "p1", "name": "Gallery", "lat": 1.0, "lon": 2.0, "type": "INDOOR", "categories": ["MUSEUM"]}
    )

    assert place.indoor_outdoor_type is IndoorOutdoorType.INDOOR
    assert place.categories == frozenset({Interest.MUSEUM})
    assert place.coordinates == (1.0, 2.0)


def test_place_is_immutable_and_rejects_negative_distance() -> None:
    place = Place(id="p1", name="Gallery", lat=1.0, lon=2.0)

    with pytest.raises(pydantic.ValidationError):
        place.name = "Other"
    with pytest.raises(pydantic.ValidationError):
        Place(id="p2", name="Nowhere", lat=0.0, lon=0.0, distance_km=-1)


def test_profile_rejects_radius_outside_range() -> None:
    with pytest.raises(pydantic.ValidationError):
        PreferenceProfile(user_id="u", radius_km=5.01)
    with pytest.raises(pydantic.ValidationError):
        PreferenceProfile(user_id="u", radius_km=-0.1)


def test_step_accepts_nav_instruction_alias() -> None:
    step = Step.model_validate({"distance_meters": 12, "duration_seconds": 9, "nav_instruction": "Turn left"})

    assert step.instruction == "Turn left"


def test_route_totals_come_from_legs() -> None:
    route = Route.from_legs(
        [Leg(distance_meters=400, duration_seconds=300), Leg(distance_meters=600, duration_seconds=420)],
        encoded_polyline="_p~iF~ps|U",
    )

    assert route.distance_meters == 1000
    assert route.duration_seconds == 720
    assert route.encoded_polyline == "_p~iF~ps|U"
    assert route.legs[1].duration_minutes == 7


def test_plan_json_round_trip_preserves_route() -> None:
    stop = PlanStop(
        lat=1.0, lon=2.0, name="Gallery", place_id="p1", arrival_time=time(9, 15), departure_time=time(10, 0)
    )
    plan = Plan(
        user_id="u",
        name="Gallery day",
        date=date(2024, 5, 4),
        start_time=time(9, 0),
        origin_address="Main St",
        route=Route(stops=[stop], legs=[Leg(distance_meters=900, duration_seconds=900)]),
        snapshot_radius_km=1.0,
        snapshot_interests=[Interest.MUSEUM],
    )

    restored = Plan.model_validate(plan.model_dump(mode="json"))

    assert restored == plan
    assert restored.stops == [stop]


def test_plan_request_strips_location_and_requires_positive_dwell() -> None:
    request = PlanRequest(
        user_id="u", name="", location_text="  Main St  ", date=date(2024, 5, 4), start_time=time(9, 0)
    )

    assert request.location_text == "Main St"
    assert request.available_minutes is None
    assert request.dwell_minutes is None
    with pytest.raises(pydantic.ValidationError):
        PlanRequest(
            user_id="u",
            name="",
            location_text="Main St",
            date=date(2024, 5, 4),
            start_time=time(9, 0),
            dwell_minutes=0,
        )
