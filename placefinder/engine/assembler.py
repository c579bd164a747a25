"""Packages a scheduled itinerary into a persisted :class:`Plan`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Sequence

from placefinder.core.errors import PersistenceError
from placefinder.core.ports import PlanStore
from placefinder.schemas import Plan, PlanStop, PreferenceProfile, Route

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblyResult:
    """A built plan and whether it was made durable."""

    plan: Plan
    saved: bool
    error: Optional[PersistenceError] = None


class PlanAssembler:
    def __init__(self, plan_store: PlanStore) -> None:
        self._plan_store = plan_store

    @staticmethod
    def build_plan(
        *,
        user_id: str,
        name: str,
        date: date,
        start_time: time,
        origin_address: str,
        stops: Sequence[PlanStop],
        route: Route,
        profile: PreferenceProfile,
    ) -> Plan:
        """Construct a plan whose preference snapshot is detached from ``profile``."""

        plan_route = route.model_copy(
            update={"stops": [stop.model_copy() for stop in stops]}, deep=True
        )
        return Plan(
            user_id=user_id,
            name=name.strip() or origin_address,
            date=date,
            start_time=start_time,
            origin_address=origin_address,
            route=plan_route,
            snapshot_radius_km=profile.radius_km,
            snapshot_interests=list(profile.interests),
        )

    def assemble(
        self,
        user_id: str,
        name: str,
        date: date,
        start_time: time,
        origin_address: str,
        stops: Sequence[PlanStop],
        route: Route,
        profile: PreferenceProfile,
    ) -> AssemblyResult:
        plan = self.build_plan(
            user_id=user_id,
            name=name,
            date=date,
            start_time=start_time,
            origin_address=origin_address,
            stops=stops,
            route=route,
            profile=profile,
        )
        try:
            stored = self._plan_store.save_plan(plan)
        except PersistenceError as exc:
            _LOGGER.warning("Plan for user %s was built but not saved: %s", user_id, exc)
            return AssemblyResult(plan=plan, saved=False, error=exc)
        return AssemblyResult(plan=stored, saved=True)


__all__ = ["AssemblyResult", "PlanAssembler"]
