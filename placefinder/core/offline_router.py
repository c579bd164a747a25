"""Offline-friendly route-time oracle based on straight-line distances."""

from __future__ import annotations

from datetime import datetime
from math import asin, cos, radians, sin, sqrt
from typing import Sequence

import polyline

from placefinder.schemas import Coordinates, Leg, Place, Route, Step

_SPEED_KMH = {
    "walk": 5.0,
    "bicycle": 15.0,
    "drive": 35.0,
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the spherical distance in kilometres between two coordinates."""

    radius_km = 6371.0
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return radius_km * c


class StraightLineRouter:
    """Estimates legs from great-circle distance at a constant speed."""

    def __init__(self, *, mode: str = "walk", speed_kmh: float | None = None) -> None:
        speed = speed_kmh if speed_kmh is not None else _SPEED_KMH.get(mode, _SPEED_KMH["walk"])
        if speed <= 0:
            speed = _SPEED_KMH["walk"]
        self._speed_kmh = speed

    def compute_leg(self, origin: Coordinates, destination: Coordinates) -> Leg:
        km = haversine_km(*origin, *destination)
        seconds = km / self._speed_kmh * 3600
        meters = km * 1000
        return Leg(
            distance_meters=meters,
            duration_seconds=seconds,
            encoded_polyline=polyline.encode([origin, destination]),
            steps=[
                Step(
                    distance_meters=meters,
                    duration_seconds=seconds,
                    instruction=f"Head to {destination[0]:.5f}, {destination[1]:.5f}",
                )
            ],
        )

    def compute_route(
        self, origin: Coordinates, start_time: datetime, stops: Sequence[Place]
    ) -> Route:
        if not stops:
            return Route()
        points = [origin, *(stop.coordinates for stop in stops)]
        legs = []
        for start, stop in zip(points, stops):
            leg = self.compute_leg(start, stop.coordinates)
            leg.steps[0].instruction = f"Head to {stop.name}"
            legs.append(leg)
        return Route.from_legs(legs, encoded_polyline=polyline.encode(points))


__all__ = ["StraightLineRouter", "haversine_km"]
