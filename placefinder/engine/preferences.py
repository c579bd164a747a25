"""Loading and validating a user's live preference profile."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List

import pydantic

from placefinder.core.errors import PlaceFinderError, Result, ValidationError
from placefinder.core.ports import PreferenceStore
from placefinder.schemas import MAX_INTERESTS, MAX_RADIUS_KM, Interest, PreferenceProfile

_LOGGER = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 2.0


def _parse_interests(interests: Iterable[object]) -> List[Interest]:
    parsed: List[Interest] = []
    for value in interests:
        try:
            parsed.append(Interest(value))
        except ValueError as exc:
            raise ValidationError(f"Unknown interest: {value}.") from exc
    return parsed


def validate_preferences(radius_km: float, interests: Iterable[Interest]) -> None:
    """Raise :class:`ValidationError` for an invalid radius or interest selection."""

    if len(set(_parse_interests(interests))) > MAX_INTERESTS:
        raise ValidationError(f"You can select at most {MAX_INTERESTS} interests.")
    try:
        radius = float(radius_km)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Radius must be a number.") from exc
    if not math.isfinite(radius) or radius < 0 or radius > MAX_RADIUS_KM:
        raise ValidationError(f"Radius must be between 0 and {MAX_RADIUS_KM:g} km.")


class PreferenceResolver:
    """Reads and writes preference profiles through a :class:`PreferenceStore`."""

    def __init__(self, store: PreferenceStore, *, default_radius_km: float = DEFAULT_RADIUS_KM) -> None:
        self._store = store
        self._default_radius_km = default_radius_km

    def resolve(self, user_id: str) -> Result[PreferenceProfile]:
        """Return the stored profile, creating the default one on first use."""

        try:
            profile = self._store.load_preferences(user_id)
            if profile is None:
                profile = PreferenceProfile(user_id=user_id, radius_km=self._default_radius_km)
                self._store.save_preferences(profile)
                _LOGGER.info("Created default preferences for user %s", user_id)
        except PlaceFinderError as exc:
            return Result.failure(exc)
        return Result.success(profile)

    def update(
        self, user_id: str, radius_km: float, interests: Iterable[Interest]
    ) -> Result[PreferenceProfile]:
        selected = list(interests)
        try:
            validate_preferences(radius_km, selected)
        except ValidationError as exc:
            return Result.failure(exc)

        current = self.resolve(user_id)
        if not current.ok:
            return current
        profile = current.unwrap().model_copy(deep=True)
        try:
            profile.radius_km = radius_km
            profile.interests = selected
        except pydantic.ValidationError as exc:
            return Result.failure(ValidationError(f"Invalid preferences: {exc.errors()[0]['msg']}"))
        try:
            self._store.save_preferences(profile)
        except PlaceFinderError as exc:
            return Result.failure(exc)
        return Result.success(profile, info="Preferences saved.")


__all__ = ["DEFAULT_RADIUS_KM", "PreferenceResolver", "validate_preferences"]
