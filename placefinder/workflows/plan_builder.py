"""Orchestrates the end-to-end flow for building and saving a day plan."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from placefinder.core.errors import (
    CancellationToken,
    NotFoundError,
    PersistenceError,
    PlaceFinderError,
)
from placefinder.engine import ItineraryBuilder, PlanAssembler
from placefinder.schemas import Place, Plan, PlanRequest, PlanStop, Route
from placefinder.workflows.search import WEATHER_UNAVAILABLE_MESSAGE, collect_candidates
from placefinder.workflows.services import PlanningServices

_LOGGER = logging.getLogger(__name__)

TRUNCATED_MESSAGE = "Plan exceeds available time; some places were not included."
NO_PLACES_MESSAGE = "No places matching your preferences were found nearby."
NOTHING_FITS_MESSAGE = "None of the recommended places fit in the available time."


class BuildStage(str, Enum):
    COLLECTING = "COLLECTING"
    SCHEDULING = "SCHEDULING"
    ROUTED = "ROUTED"
    ASSEMBLED = "ASSEMBLED"
    SAVED = "SAVED"
    FAILED = "FAILED"


@dataclass
class PlanBuildOutcome:
    """Tagged result of a plan build.

    ``stage`` is SAVED on full success, ASSEMBLED when the plan was built but
    could not be persisted, and FAILED otherwise; ``failed_stage`` records where
    a failure happened.
    """

    stage: BuildStage
    plan: Optional[Plan] = None
    ranked_places: List[Place] = field(default_factory=list)
    stops: List[PlanStop] = field(default_factory=list)
    route: Optional[Route] = None
    truncated: bool = False
    weather_used: bool = False
    origin_address: Optional[str] = None
    error: Optional[PlaceFinderError] = None
    failed_stage: Optional[BuildStage] = None

    @property
    def ok(self) -> bool:
        return self.stage is BuildStage.SAVED

    @property
    def built(self) -> bool:
        return self.stage in (BuildStage.ASSEMBLED, BuildStage.SAVED)

    @property
    def message(self) -> Optional[str]:
        if self.stage is BuildStage.ASSEMBLED and self.error is not None:
            return f"Plan was built but could not be saved: {self.error.message}"
        if self.error is not None:
            return self.error.message
        if self.ok:
            return "Plan saved."
        return None

    @property
    def info_messages(self) -> List[str]:
        messages: List[str] = []
        # weather is only known once the origin has been resolved
        if self.origin_address is not None and not self.weather_used:
            messages.append(WEATHER_UNAVAILABLE_MESSAGE)
        if self.truncated:
            messages.append(TRUNCATED_MESSAGE)
        return messages


def _log_stage(stage: BuildStage, duration: float) -> None:
    _LOGGER.info("%s stage completed in %.2fs", stage.value.capitalize(), duration)


def run_plan_build(
    request: PlanRequest,
    services: PlanningServices,
    *,
    cancel_token: Optional[CancellationToken] = None,
) -> PlanBuildOutcome:
    """Build, assemble and persist a plan for ``request``.

    Never raises :class:`PlaceFinderError`; failures are reported on the
    returned outcome and leave nothing in the plan store.
    """

    token = cancel_token or CancellationToken()
    dwell_minutes = request.dwell_minutes or services.dwell_minutes
    available_minutes = (
        request.available_minutes
        if request.available_minutes is not None
        else services.available_minutes
    )
    pipeline_start = time.perf_counter()
    outcome = PlanBuildOutcome(stage=BuildStage.COLLECTING)
    _LOGGER.info("Starting plan build for user %s at %s", request.user_id, request.location_text)

    try:
        start = time.perf_counter()
        candidates = collect_candidates(
            services, request.user_id, request.location_text, request.date
        )
        outcome.ranked_places = candidates.ranked
        outcome.weather_used = candidates.weather_used
        outcome.origin_address = candidates.origin_address
        _log_stage(BuildStage.COLLECTING, time.perf_counter() - start)
        if not candidates.ranked:
            raise NotFoundError(NO_PLACES_MESSAGE)
        token.raise_if_cancelled()

        outcome.stage = BuildStage.SCHEDULING
        start = time.perf_counter()
        itinerary = ItineraryBuilder(services.router).build(
            candidates.ranked,
            candidates.origin.coordinates,
            datetime.combine(request.date, request.start_time),
            dwell_minutes,
            available_minutes,
            cancel_token=token,
        )
        outcome.truncated = itinerary.truncated
        _log_stage(BuildStage.SCHEDULING, time.perf_counter() - start)
        if not itinerary.stops:
            raise NotFoundError(NOTHING_FITS_MESSAGE)

        outcome.stage = BuildStage.ROUTED
        outcome.stops = itinerary.stops
        outcome.route = itinerary.route
        token.raise_if_cancelled()
    except PlaceFinderError as exc:
        outcome.failed_stage = outcome.stage
        outcome.stage = BuildStage.FAILED
        outcome.error = exc
        _LOGGER.info("Plan build failed during %s: %s", outcome.failed_stage.value, exc.message)
        return outcome

    start = time.perf_counter()
    assembled = PlanAssembler(services.plans).assemble(
        request.user_id,
        request.name,
        request.date,
        request.start_time,
        candidates.origin_address,
        itinerary.stops,
        itinerary.route,
        candidates.profile,
    )
    outcome.plan = assembled.plan
    if not assembled.saved:
        outcome.stage = BuildStage.ASSEMBLED
        outcome.error = assembled.error or PersistenceError("Plan could not be saved.")
        return outcome

    outcome.stage = BuildStage.SAVED
    _log_stage(BuildStage.SAVED, time.perf_counter() - start)
    _LOGGER.info(
        "Plan build completed in %.2fs with %d stops%s",
        time.perf_counter() - pipeline_start,
        len(itinerary.stops),
        " (truncated)" if itinerary.truncated else "",
    )
    return outcome


__all__ = [
    "BuildStage",
    "NOTHING_FITS_MESSAGE",
    "NO_PLACES_MESSAGE",
    "PlanBuildOutcome",
    "TRUNCATED_MESSAGE",
    "run_plan_build",
]
