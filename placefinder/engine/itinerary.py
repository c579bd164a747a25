"""Greedy construction of a time-bounded day itinerary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from placefinder.core.errors import CancellationToken, GatewayError, PlaceFinderError
from placefinder.core.ports import RouteOracle
from placefinder.schemas import Coordinates, Leg, Place, PlanStop, Route

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Itinerary:
    """Outcome of a scheduling pass."""

    stops: List[PlanStop] = field(default_factory=list)
    route: Route = field(default_factory=Route)
    truncated: bool = False
    places: List[Place] = field(default_factory=list)


class ItineraryBuilder:
    """Fits ranked places into an available time budget.

    Candidates are visited once, in ranked order. A candidate whose travel leg
    plus dwell time does not fit in the remaining budget is skipped and the
    pass continues, so a later and closer place may still be scheduled. The
    travel-time oracle is asked once per candidate and once more for the final
    route of the accepted stops.
    """

    def __init__(self, oracle: RouteOracle) -> None:
        self._oracle = oracle
        self._leg_cache: Dict[Tuple[Coordinates, Coordinates], Leg] = {}

    def _call_oracle(self, description: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except PlaceFinderError:
            raise
        except Exception as exc:  # noqa: BLE001 - any oracle failure aborts the build
            raise GatewayError(f"Could not compute {description}: {exc}") from exc

    def _leg(self, origin: Coordinates, destination: Coordinates) -> Leg:
        key = (origin, destination)
        cached = self._leg_cache.get(key)
        if cached is not None:
            return cached
        leg = self._call_oracle(
            "travel time", lambda: self._oracle.compute_leg(origin, destination)
        )
        self._leg_cache[key] = leg
        return leg

    def build(
        self,
        ranked_places: Sequence[Place],
        origin: Coordinates,
        start_time: datetime,
        dwell_minutes: float,
        available_minutes: float,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Itinerary:
        if not ranked_places:
            return Itinerary()
        if available_minutes <= 0:
            return Itinerary(truncated=True)

        current_location = origin
        current_time = start_time
        remaining = float(available_minutes)
        truncated = False
        dwell = timedelta(minutes=dwell_minutes)
        stops: List[PlanStop] = []
        accepted: List[Place] = []

        for candidate in ranked_places:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            leg = self._leg(current_location, candidate.coordinates)
            needed = leg.duration_minutes + dwell_minutes
            if needed > remaining:
                _LOGGER.debug(
                    "Skipping %s: needs %.1f min, %.1f min remaining",
                    candidate.name,
                    needed,
                    remaining,
                )
                truncated = True
                continue

            arrival = current_time + timedelta(seconds=leg.duration_seconds)
            departure = arrival + dwell
            # stop times are wall-clock values within the plan date
            if departure.date() != start_time.date():
                _LOGGER.debug("Skipping %s: visit would end after midnight", candidate.name)
                truncated = True
                continue
            stops.append(
                PlanStop(
                    lat=candidate.lat,
                    lon=candidate.lon,
                    name=candidate.name,
                    place_id=candidate.id,
                    arrival_time=arrival.time(),
                    departure_time=departure.time(),
                )
            )
            accepted.append(candidate)
            current_location = candidate.coordinates
            current_time = departure
            remaining -= needed

        if not accepted:
            return Itinerary(truncated=truncated)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        route = self._call_oracle(
            "route", lambda: self._oracle.compute_route(origin, start_time, accepted)
        )
        route = route.model_copy(update={"stops": stops})
        return Itinerary(stops=stops, route=route, truncated=truncated, places=accepted)


__all__ = ["Itinerary", "ItineraryBuilder"]
