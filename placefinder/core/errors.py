"""Error taxonomy and the result type returned across workflow boundaries."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class PlaceFinderError(RuntimeError):
    """Base class for failures that carry a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PlaceFinderError):
    """Raised when user input breaks a preference or request invariant."""


class NotFoundError(PlaceFinderError):
    """Raised when a location or record could not be found."""


class GatewayError(PlaceFinderError):
    """Raised when an external API call fails or returns an unusable payload."""


class PersistenceError(PlaceFinderError):
    """Raised when a store cannot load or save a record."""


class BuildCancelledError(PlaceFinderError):
    """Raised when a plan build is cancelled between gateway calls."""


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a build."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise BuildCancelledError("Plan build was cancelled.")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a :class:`PlaceFinderError`, never both."""

    value: Optional[T] = None
    error: Optional[PlaceFinderError] = None
    info: Optional[str] = None

    @classmethod
    def success(cls, value: T, *, info: Optional[str] = None) -> "Result[T]":
        return cls(value=value, info=info)

    @classmethod
    def failure(cls, error: PlaceFinderError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> Optional[str]:
        """Return the error message, or the informational note on success."""

        if self.error is not None:
            return self.error.message
        return self.info

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


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
