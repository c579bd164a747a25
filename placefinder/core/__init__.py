"""Core utilities for PlaceFinder."""

from .errors import (
    BuildCancelledError,
    CancellationToken,
    GatewayError,
    NotFoundError,
    PersistenceError,
    PlaceFinderError,
    Result,
    ValidationError,
)

__all__ = [
    "BuildCancelledError",
    "CancellationToken",
    "GatewayError",
    "NotFoundError",
    "PersistenceError",
    "PlaceFinderError",
    "Result",
    "ValidationError",
]
