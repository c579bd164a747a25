"""Ranking and itinerary-construction engine."""

from .assembler import AssemblyResult, PlanAssembler
from .itinerary import Itinerary, ItineraryBuilder
from .preferences import PreferenceResolver, validate_preferences
from .ranker import PlaceRanker

__all__ = [
    "AssemblyResult",
    "Itinerary",
    "ItineraryBuilder",
    "PlaceRanker",
    "PlanAssembler",
    "PreferenceResolver",
    "validate_preferences",
]
