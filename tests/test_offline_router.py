from __future__ import annotations

from datetime import datetime

import polyline
import pytest

from placefinder.core.offline_router import StraightLineRouter, haversine_km
from placefinder.schemas import Place

ORIGIN = (48.8584, 2.2945)
LOUVRE = Place(id="louvre", name="Louvre", lat=48.8606, lon=2.3376)
ORSAY = Place(id="orsay", name="Musee d'Orsay", lat=48.8600, lon=2.3266)


def test_haversine_matches_known_distance() -> None:
    assert haversine_km(*ORIGIN, *LOUVRE.coordinates) == pytest.approx(3.17, abs=0.05)
    assert haversine_km(*ORIGIN, *ORIGIN) == 0


def test_walking_leg_uses_five_kmh() -> None:
    leg = StraightLineRouter().compute_leg((0.0, 0.0), (0.0, 0.0449661))

    assert leg.distance_meters == pytest.approx(5000, rel=1e-3)
    assert leg.duration_minutes == pytest.approx(60, rel=1e-3)
    start, end = polyline.decode(leg.encoded_polyline)
    assert start == pytest.approx((0.0, 0.0))
    assert end == pytest.approx((0.0, 0.04497))
    assert len(leg.steps) == 1


def test_mode_and_explicit_speed() -> None:
    walk = StraightLineRouter(mode="walk").compute_leg(ORIGIN, LOUVRE.coordinates)
    drive = StraightLineRouter(mode="drive").compute_leg(ORIGIN, LOUVRE.coordinates)
    fast = StraightLineRouter(mode="walk", speed_kmh=10).compute_leg(ORIGIN, LOUVRE.coordinates)

    assert drive.duration_seconds == pytest.approx(walk.duration_seconds * 5 / 35)
    assert fast.duration_seconds == pytest.approx(walk.duration_seconds / 2)


def test_route_has_one_leg_per_stop() -> None:
    route = StraightLineRouter().compute_route(ORIGIN, datetime(2024, 6, 1, 9), [ORSAY, LOUVRE])

    assert len(route.legs) == 2
    assert route.legs[0].steps[0].instruction == "Head to Musee d'Orsay"
    assert route.duration_seconds == pytest.approx(sum(leg.duration_seconds for leg in route.legs))
    assert len(polyline.decode(route.encoded_polyline)) == 3


def test_empty_route() -> None:
    route = StraightLineRouter().compute_route(ORIGIN, datetime(2024, 6, 1, 9), [])

    assert route.legs == [] and route.encoded_polyline == ""
