from __future__ import annotations

from datetime import date, time
from typing import List, Optional

import pytest

from placefinder.core.errors import (
    BuildCancelledError,
    CancellationToken,
    GatewayError,
    NotFoundError,
    PersistenceError,
)
from placefinder.core.plan_store import InMemoryPlanStore
from placefinder.core.preference_store import InMemoryPreferenceStore
from placefinder.schemas import (
    GeocodeResult,
    IndoorOutdoorType,
    Interest,
    Leg,
    Place,
    PlanRequest,
    PreferenceProfile,
    Route,
    WeatherSignal,
)
from placefinder.workflows import BuildStage, PlanningServices, run_plan_build, search_places
from placefinder.workflows.plan_builder import NO_PLACES_MESSAGE, NOTHING_FITS_MESSAGE, TRUNCATED_MESSAGE
from placefinder.workflows.plans import update_preferences
from placefinder.workflows.search import LOCATION_NOT_FOUND_MESSAGE, WEATHER_UNAVAILABLE_MESSAGE

ORIGIN = GeocodeResult(lat=43.6453, lon=-79.3806, formatted_address="Union Station, Toronto")


def _places() -> List[Place]:
    return [
        Place(
            id="cafe",
            name="Cafe",
            lat=43.646,
            lon=-79.381,
            distance_km=0.3,
            indoor_outdoor_type=IndoorOutdoorType.INDOOR,
            categories=frozenset({Interest.CAFE}),
        ),
        Place(
            id="park",
            name="Park",
            lat=43.647,
            lon=-79.382,
            distance_km=0.5,
            indoor_outdoor_type=IndoorOutdoorType.OUTDOOR,
            categories=frozenset({Interest.PARK}),
        ),
        Place(
            id="museum",
            name="Museum",
            lat=43.648,
            lon=-79.383,
            distance_km=1.0,
            indoor_outdoor_type=IndoorOutdoorType.INDOOR,
            categories=frozenset({Interest.MUSEUM}),
        ),
    ]


class FakeGeocoder:
    def __init__(self, result: Optional[GeocodeResult] = ORIGIN) -> None:
        self.result = result
        self.queries: List[str] = []

    def geocode(self, query: str) -> Optional[GeocodeResult]:
        self.queries.append(query)
        return self.result


class FakePlaces:
    def __init__(self, places: Optional[List[Place]] = None, error: Optional[Exception] = None) -> None:
        self.places = _places() if places is None else places
        self.error = error
        self.calls: list = []

    def search_places(self, lat, lon, radius_km, interests) -> List[Place]:
        self.calls.append((lat, lon, radius_km, list(interests)))
        if self.error is not None:
            raise self.error
        return list(self.places)


class FakeWeather:
    def __init__(self, signal: Optional[WeatherSignal] = None, error: Optional[Exception] = None) -> None:
        self.signal = signal
        self.error = error

    def get_daily_weather(self, lat, lon, day) -> Optional[WeatherSignal]:
        if self.error is not None:
            raise self.error
        return self.signal


class FakeRouter:
    def __init__(self, minutes: float = 15, error: Optional[Exception] = None) -> None:
        self.minutes = minutes
        self.error = error
        self.leg_calls = 0

    def _leg(self) -> Leg:
        return Leg(distance_meters=1000, duration_seconds=self.minutes * 60, encoded_polyline="abc")

    def compute_leg(self, origin, destination) -> Leg:
        self.leg_calls += 1
        if self.error is not None:
            raise self.error
        return self._leg()

    def compute_route(self, origin, start_time, stops) -> Route:
        return Route.from_legs([self._leg() for _ in stops], encoded_polyline="route")


class FailingPlanStore(InMemoryPlanStore):
    def save_plan(self, plan):
        raise PersistenceError("Could not save plan: disk full")


def _services(**overrides) -> PlanningServices:
    preferences = InMemoryPreferenceStore()
    preferences.save_preferences(
        PreferenceProfile(user_id="user-1", radius_km=2.0, interests=[Interest.PARK, Interest.MUSEUM])
    )
    values = dict(
        preferences=preferences,
        plans=InMemoryPlanStore(),
        geocoder=FakeGeocoder(),
        places=FakePlaces(),
        weather=FakeWeather(WeatherSignal(precipitation_likely=True, precipitation_probability=80)),
        router=FakeRouter(),
    )
    values.update(overrides)
    return PlanningServices(**values)


def _request(**overrides) -> PlanRequest:
    values = dict(
        user_id="user-1",
        name="Saturday downtown",
        location_text="  Union Station ",
        date=date(2024, 6, 1),
        start_time=time(9, 0),
        available_minutes=120,
        dwell_minutes=30,
    )
    values.update(overrides)
    return PlanRequest(**values)


def test_rainy_day_plan_is_built_and_saved() -> None:
    services = _services()

    outcome = run_plan_build(_request(), services)

    assert outcome.stage is BuildStage.SAVED
    assert outcome.ok and outcome.built
    assert outcome.message == "Plan saved."
    assert [place.id for place in outcome.ranked_places] == ["museum", "park", "cafe"]
    assert [stop.name for stop in outcome.plan.stops] == ["Museum", "Park"]
    assert outcome.plan.stops[0].arrival_time == time(9, 15)
    assert outcome.plan.stops[1].departure_time == time(10, 30)
    assert outcome.truncated is True
    assert outcome.weather_used is True
    assert outcome.info_messages == [TRUNCATED_MESSAGE]
    assert outcome.plan.origin_address == "Union Station, Toronto"
    assert outcome.plan.snapshot_radius_km == 2.0
    assert outcome.plan.snapshot_interests == [Interest.MUSEUM, Interest.PARK]
    assert services.geocoder.queries == ["Union Station"]
    assert services.places.calls[0][2:] == (2.0, [Interest.MUSEUM, Interest.PARK])

    stored = services.plans.find_plan(outcome.plan.id)
    assert stored == outcome.plan
    assert len(stored.route.legs) == len(stored.stops)


def test_plan_snapshot_survives_later_preference_changes() -> None:
    services = _services()
    outcome = run_plan_build(_request(), services)

    assert update_preferences(services, "user-1", 4.5, [Interest.BAR]).ok

    stored = services.plans.find_plan(outcome.plan.id)
    assert stored.snapshot_radius_km == 2.0
    assert stored.snapshot_interests == [Interest.MUSEUM, Interest.PARK]


def test_blank_name_falls_back_to_origin_address() -> None:
    outcome = run_plan_build(_request(name="   "), _services())

    assert outcome.plan.name == "Union Station, Toronto"


def test_weather_failure_is_absorbed() -> None:
    services = _services(weather=FakeWeather(error=GatewayError("Open-Meteo timed out")))

    outcome = run_plan_build(_request(available_minutes=240), services)

    assert outcome.ok
    assert outcome.weather_used is False
    assert outcome.info_messages == [WEATHER_UNAVAILABLE_MESSAGE]
    assert [stop.place_id for stop in outcome.stops] == ["park", "museum", "cafe"]


def test_unknown_location_fails_without_saving() -> None:
    services = _services(geocoder=FakeGeocoder(result=None))

    outcome = run_plan_build(_request(), services)

    assert outcome.stage is BuildStage.FAILED
    assert outcome.failed_stage is BuildStage.COLLECTING
    assert isinstance(outcome.error, NotFoundError)
    assert outcome.message == LOCATION_NOT_FOUND_MESSAGE
    assert outcome.info_messages == []
    assert services.plans.find_plans_by_user("user-1") == []


def test_places_failure_fails_without_saving() -> None:
    services = _services(places=FakePlaces(error=GatewayError("Geoapify returned 503")))

    outcome = run_plan_build(_request(), services)

    assert outcome.failed_stage is BuildStage.COLLECTING
    assert isinstance(outcome.error, GatewayError)
    assert services.plans.find_plans_by_user("user-1") == []


def test_no_places_found_fails() -> None:
    services = _services(places=FakePlaces(places=[]))

    outcome = run_plan_build(_request(), services)

    assert outcome.stage is BuildStage.FAILED
    assert outcome.message == NO_PLACES_MESSAGE
    assert services.router.leg_calls == 0


def test_router_failure_fails_during_scheduling() -> None:
    services = _services(router=FakeRouter(error=GatewayError("routing unavailable")))

    outcome = run_plan_build(_request(), services)

    assert outcome.failed_stage is BuildStage.SCHEDULING
    assert outcome.message == "routing unavailable"
    assert outcome.plan is None
    assert services.plans.find_plans_by_user("user-1") == []


def test_nothing_fitting_the_budget_fails() -> None:
    outcome = run_plan_build(_request(available_minutes=20), _services())

    assert outcome.failed_stage is BuildStage.SCHEDULING
    assert outcome.message == NOTHING_FITS_MESSAGE


def test_save_failure_still_returns_assembled_plan() -> None:
    outcome = run_plan_build(_request(), _services(plans=FailingPlanStore()))

    assert outcome.stage is BuildStage.ASSEMBLED
    assert outcome.built and not outcome.ok
    assert outcome.plan is not None and outcome.plan.id is None
    assert isinstance(outcome.error, PersistenceError)
    assert outcome.message.startswith("Plan was built but could not be saved:")


def test_cancelled_build_stops_before_routing() -> None:
    services = _services()
    token = CancellationToken()
    token.cancel()

    outcome = run_plan_build(_request(), services, cancel_token=token)

    assert outcome.stage is BuildStage.FAILED
    assert isinstance(outcome.error, BuildCancelledError)
    assert services.router.leg_calls == 0
    assert services.plans.find_plans_by_user("user-1") == []


@pytest.mark.parametrize("dwell", [0, -5])
def test_request_rejects_non_positive_dwell(dwell: int) -> None:
    with pytest.raises(ValueError):
        _request(dwell_minutes=dwell)


def test_search_places_reports_missing_weather() -> None:
    services = _services(weather=FakeWeather(signal=None))

    result = search_places(services, "user-1", "Union Station", date(2024, 6, 1))

    assert result.ok
    assert result.message == WEATHER_UNAVAILABLE_MESSAGE
    assert result.unwrap().scores == sorted(result.unwrap().scores, reverse=True)


def test_search_places_reports_unknown_location() -> None:
    result = search_places(_services(geocoder=FakeGeocoder(result=None)), "user-1", "Nowhere", date(2024, 6, 1))

    assert not result.ok
    assert result.message == LOCATION_NOT_FOUND_MESSAGE


def test_request_without_times_uses_service_defaults() -> None:
    services = _services(dwell_minutes=20, available_minutes=70)

    outcome = run_plan_build(_request(dwell_minutes=None, available_minutes=None), services)

    assert outcome.ok
    assert [(stop.arrival_time, stop.departure_time) for stop in outcome.stops] == [
        (time(9, 15), time(9, 35)),
        (time(9, 50), time(10, 10)),
    ]
    assert outcome.truncated is True
