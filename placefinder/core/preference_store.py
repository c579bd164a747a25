"""Persistence for preference profiles and favourite locations."""

from __future__ import annotations

import itertools
from typing import Dict, List, MutableMapping, Optional

import psycopg2
import pydantic
from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import RealDictCursor

from placefinder.core import db
from placefinder.core.errors import PersistenceError
from placefinder.schemas import FavoriteLocation, PreferenceProfile


class InMemoryPreferenceStore:
    """Fallback store used when no database is configured."""

    def __init__(self) -> None:
        self._profiles: MutableMapping[str, PreferenceProfile] = {}
        self._favorites: Dict[str, FavoriteLocation] = {}
        self._ids = itertools.count(1)

    def load_preferences(self, user_id: str) -> Optional[PreferenceProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    def save_preferences(self, profile: PreferenceProfile) -> None:
        self._profiles[profile.user_id] = profile.model_copy(deep=True)

    def list_favorites(self, user_id: str) -> List[FavoriteLocation]:
        return [
            favorite.model_copy()
            for favorite in self._favorites.values()
            if favorite.user_id == user_id
        ]

    def add_favorite(self, favorite: FavoriteLocation) -> FavoriteLocation:
        stored = favorite.model_copy(update={"id": str(next(self._ids))})
        self._favorites[stored.id] = stored
        return stored.model_copy()

    def delete_favorite(self, favorite_id: str, user_id: str) -> bool:
        favorite = self._favorites.get(favorite_id)
        if favorite is None or favorite.user_id != user_id:
            return False
        del self._favorites[favorite_id]
        return True


class PostgresPreferenceStore:
    """PostgreSQL implementation using a connection owned by the caller."""

    def __init__(self, connection: PGConnection) -> None:
        self._connection = connection

    def _fail(self, action: str, exc: Exception) -> PersistenceError:
        self._connection.rollback()
        return PersistenceError(f"Could not {action}: {exc}")

    def load_preferences(self, user_id: str) -> Optional[PreferenceProfile]:
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT radius_km, interests FROM {db.PREFERENCES_TABLE} WHERE user_id = %s",
                    (user_id,),
                )
                row = cursor.fetchone()
        except psycopg2.Error as exc:
            raise self._fail("load preferences", exc) from exc
        if not row:
            return None
        try:
            return PreferenceProfile(
                user_id=user_id,
                radius_km=row["radius_km"],
                interests=db.parse_interests(row.get("interests")),
            )
        except (KeyError, pydantic.ValidationError) as exc:
            raise PersistenceError(f"Failed to parse stored preferences: {exc}") from exc

    def save_preferences(self, profile: PreferenceProfile) -> None:
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO {db.PREFERENCES_TABLE} (user_id, radius_km, interests)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (user_id) DO UPDATE
                    SET radius_km = EXCLUDED.radius_km,
                        interests = EXCLUDED.interests
                    """,
                    (profile.user_id, profile.radius_km, db.serialize_interests(profile.interests)),
                )
            self._connection.commit()
        except psycopg2.Error as exc:
            raise self._fail("save preferences", exc) from exc

    def list_favorites(self, user_id: str) -> List[FavoriteLocation]:
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT id, user_id, name, address, lat, lon FROM {db.FAVORITES_TABLE} "
                    "WHERE user_id = %s ORDER BY id",
                    (user_id,),
                )
                rows = cursor.fetchall()
        except psycopg2.Error as exc:
            raise self._fail("list favourite locations", exc) from exc
        return [FavoriteLocation.model_validate({**row, "id": str(row["id"])}) for row in rows]

    def add_favorite(self, favorite: FavoriteLocation) -> FavoriteLocation:
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO {db.FAVORITES_TABLE} (user_id, name, address, lat, lon)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (favorite.user_id, favorite.name, favorite.address, favorite.lat, favorite.lon),
                )
                row = cursor.fetchone()
            self._connection.commit()
        except psycopg2.Error as exc:
            raise self._fail("save favourite location", exc) from exc
        if not row:
            raise PersistenceError("Database did not return an id for the favourite location")
        return favorite.model_copy(update={"id": str(row["id"])})

    def delete_favorite(self, favorite_id: str, user_id: str) -> bool:
        if not str(favorite_id).isdigit():
            return False
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(
                    f"DELETE FROM {db.FAVORITES_TABLE} WHERE id = %s AND user_id = %s",
                    (int(favorite_id), user_id),
                )
                deleted = cursor.rowcount
            self._connection.commit()
        except psycopg2.Error as exc:
            raise self._fail("delete favourite location", exc) from exc
        return deleted > 0


__all__ = ["InMemoryPreferenceStore", "PostgresPreferenceStore"]
