"""Database helpers for the PostgreSQL-backed stores.

Connections are created explicitly and handed to each store; nothing here
keeps a process-wide connection.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator, Iterable, List, Optional

import psycopg2
from psycopg2.extensions import connection as PGConnection

from placefinder.core.errors import PersistenceError
from placefinder.schemas import Interest

PREFERENCES_TABLE = "preferences"
FAVORITES_TABLE = "favorite_locations"
PLANS_TABLE = "plans"


def get_connection(dsn: Optional[str] = None) -> PGConnection:
    """Return a new database connection using the supplied or configured DSN."""

    connection_dsn = dsn or os.getenv("DATABASE_URL")
    if not connection_dsn:
        raise PersistenceError("No database DSN configured via DATABASE_URL")
    try:
        return psycopg2.connect(connection_dsn)
    except psycopg2.Error as exc:
        raise PersistenceError(f"Could not connect to the database: {exc}") from exc


@contextmanager
def connection_ctx(dsn: Optional[str] = None) -> Generator[PGConnection, None, None]:
    """Context manager that yields a database connection and ensures it is closed."""

    connection = get_connection(dsn)
    try:
        yield connection
    finally:
        connection.close()


def ensure_schema(connection: PGConnection) -> None:
    """Create the preference, favourite and plan tables if they do not exist."""

    with connection.cursor() as cursor:
        cursor.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {PREFERENCES_TABLE} (
                user_id TEXT PRIMARY KEY,
                radius_km DOUBLE PRECISION NOT NULL,
                interests TEXT NOT NULL DEFAULT ''
            )
            """
        )
        cursor.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {FAVORITES_TABLE} (
                id SERIAL PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                address TEXT NOT NULL,
                lat DOUBLE PRECISION NOT NULL,
                lon DOUBLE PRECISION NOT NULL
            )
            """
        )
        cursor.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {PLANS_TABLE} (
                id SERIAL PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                plan_date DATE NOT NULL,
                start_time TIME NOT NULL,
                origin_address TEXT NOT NULL,
                route JSONB NOT NULL,
                snapshot_radius_km DOUBLE PRECISION NOT NULL,
                snapshot_interests TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
    connection.commit()


def serialize_interests(interests: Iterable[Interest]) -> str:
    """Store interests as a comma separated list of enum names."""

    return ",".join(interest.value for interest in interests)


def parse_interests(raw: Optional[str]) -> List[Interest]:
    """Parse a stored interest list, ignoring names that are no longer known."""

    if not raw:
        return []
    interests: List[Interest] = []
    for part in raw.split(","):
        name = part.strip()
        if name in Interest.__members__:
            interests.append(Interest[name])
    return interests


__all__ = [
    "FAVORITES_TABLE",
    "PLANS_TABLE",
    "PREFERENCES_TABLE",
    "connection_ctx",
    "ensure_schema",
    "get_connection",
    "parse_interests",
    "serialize_interests",
]
