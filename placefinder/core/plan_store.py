"""Persistence helpers for storing built day plans."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any, List, Mapping, MutableMapping, Optional

import psycopg2
from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import Json, RealDictCursor

from placefinder.core import db
from placefinder.core.errors import PersistenceError
from placefinder.schemas import Plan, Route


class InMemoryPlanStore:
    """Fallback store used when no database is configured."""

    def __init__(self) -> None:
        self._records: MutableMapping[str, Plan] = {}
        self._ids = itertools.count(1)

    def save_plan(self, plan: Plan) -> Plan:
        stored = plan.model_copy(
            update={"id": str(next(self._ids)), "created_at": datetime.now(timezone.utc)},
            deep=True,
        )
        self._records[stored.id] = stored
        return stored.model_copy(deep=True)

    def find_plan(self, plan_id: str) -> Optional[Plan]:
        plan = self._records.get(plan_id)
        return plan.model_copy(deep=True) if plan else None

    def find_plans_by_user(self, user_id: str) -> List[Plan]:
        plans = [plan for plan in self._records.values() if plan.user_id == user_id]
        plans.sort(key=lambda plan: plan.created_at or datetime.now(timezone.utc), reverse=True)
        return [plan.model_copy(deep=True) for plan in plans]

    def delete_plan(self, plan_id: str, user_id: str) -> bool:
        plan = self._records.get(plan_id)
        if plan is None or plan.user_id != user_id:
            return False
        del self._records[plan_id]
        return True


def _compose_plan(row: Mapping[str, Any]) -> Plan:
    try:
        return Plan(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            name=str(row["name"]),
            date=row["plan_date"],
            start_time=row["start_time"],
            origin_address=str(row["origin_address"]),
            route=Route.model_validate(row.get("route") or {}),
            snapshot_radius_km=row["snapshot_radius_km"],
            snapshot_interests=db.parse_interests(row.get("snapshot_interests")),
            created_at=row.get("created_at"),
        )
    except Exception as exc:  # noqa: BLE001 - surface data errors to callers
        raise PersistenceError(f"Failed to parse stored plan: {exc}") from exc


class PostgresPlanStore:
    """PostgreSQL implementation using a connection owned by the caller."""

    _COLUMNS = (
        "id, user_id, name, plan_date, start_time, origin_address, route, "
        "snapshot_radius_km, snapshot_interests, created_at"
    )

    def __init__(self, connection: PGConnection) -> None:
        self._connection = connection

    def _fail(self, action: str, exc: Exception) -> PersistenceError:
        self._connection.rollback()
        return PersistenceError(f"Could not {action}: {exc}")

    def save_plan(self, plan: Plan) -> Plan:
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO {db.PLANS_TABLE} (
                        user_id, name, plan_date, start_time, origin_address,
                        route, snapshot_radius_km, snapshot_interests
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id, created_at
                    """,
                    (
                        plan.user_id,
                        plan.name,
                        plan.date,
                        plan.start_time,
                        plan.origin_address,
                        Json(plan.route.model_dump(mode="json")),
                        plan.snapshot_radius_km,
                        db.serialize_interests(plan.snapshot_interests),
                    ),
                )
                row = cursor.fetchone()
            self._connection.commit()
        except psycopg2.Error as exc:
            raise self._fail("save plan", exc) from exc
        if not row:
            raise PersistenceError("Database did not return plan row on insert")
        return plan.model_copy(update={"id": str(row["id"]), "created_at": row.get("created_at")}, deep=True)

    def find_plan(self, plan_id: str) -> Optional[Plan]:
        if not str(plan_id).isdigit():
            return None
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT {self._COLUMNS} FROM {db.PLANS_TABLE} WHERE id = %s",
                    (int(plan_id),),
                )
                row = cursor.fetchone()
        except psycopg2.Error as exc:
            raise self._fail("load plan", exc) from exc
        return _compose_plan(row) if row else None

    def find_plans_by_user(self, user_id: str) -> List[Plan]:
        try:
            with self._connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT {self._COLUMNS} FROM {db.PLANS_TABLE} "
                    "WHERE user_id = %s ORDER BY created_at DESC, id DESC",
                    (user_id,),
                )
                rows = cursor.fetchall()
        except psycopg2.Error as exc:
            raise self._fail("list plans", exc) from exc
        return [_compose_plan(row) for row in rows]

    def delete_plan(self, plan_id: str, user_id: str) -> bool:
        if not str(plan_id).isdigit():
            return False
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(
                    f"DELETE FROM {db.PLANS_TABLE} WHERE id = %s AND user_id = %s",
                    (int(plan_id), user_id),
                )
                deleted = cursor.rowcount
            self._connection.commit()
        except psycopg2.Error as exc:
            raise self._fail("delete plan", exc) from exc
        return deleted > 0


__all__ = ["InMemoryPlanStore", "PostgresPlanStore"]
