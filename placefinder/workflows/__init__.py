"""Workflow entry points for planning day trips."""

from .plan_builder import BuildStage, PlanBuildOutcome, run_plan_build
from .plans import (
    add_favorite,
    apply_preferences_from_plan,
    delete_favorite,
    delete_plan,
    get_plan_details,
    get_preferences,
    list_plans,
    update_preferences,
    weather_advice,
)
from .search import PlaceSearchResult, search_places
from .services import PlanningServices, build_services

__all__ = [
    "BuildStage",
    "PlaceSearchResult",
    "PlanBuildOutcome",
    "PlanningServices",
    "add_favorite",
    "apply_preferences_from_plan",
    "build_services",
    "delete_favorite",
    "delete_plan",
    "get_plan_details",
    "get_preferences",
    "list_plans",
    "run_plan_build",
    "search_places",
    "update_preferences",
    "weather_advice",
]
