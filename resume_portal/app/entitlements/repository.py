"""PostgreSQL persistence for usage grants and plans."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import psycopg2.extras

from ..persistence import PostgresRepository, managed_connection
from .models import InsertOutcome, Plan, PlanName
from .resolver import UserPlanAssignment

logger = logging.getLogger(__name__)


USAGE_LEDGER_SCHEMA = """
CREATE TABLE IF NOT EXISTS user_template_usage (
    user_id TEXT NOT NULL,
    template_id TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT unique_user_template UNIQUE (user_id, template_id)
);
CREATE INDEX IF NOT EXISTS idx_user_template_usage_template
    ON user_template_usage (template_id);
"""

PLAN_SCHEMA = """
CREATE TABLE IF NOT EXISTS plans (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    price INTEGER NOT NULL DEFAULT 0,
    billing_cycle TEXT NOT NULL DEFAULT 'monthly',
    validity_days INTEGER NOT NULL DEFAULT 30,
    description TEXT,
    features JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_plans_is_active ON plans (is_active);
"""


def ensure_schema(conn=None) -> None:
    """Create the entitlement tables when they are missing."""

    with managed_connection(conn) as (connection, _managed):
        with connection.cursor() as cursor:
            cursor.execute(USAGE_LEDGER_SCHEMA)
            cursor.execute(PLAN_SCHEMA)


class PostgresUsageLedger(PostgresRepository):
    """Usage ledger backed by a table with a unique (user_id, template_id) constraint."""

    def exists(self, user_id: str, template_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT 1
                FROM user_template_usage
                WHERE user_id = %s AND template_id = %s
                LIMIT 1
                """,
                (user_id, template_id),
            )
            return cursor.fetchone() is not None

    def count_for_user(self, user_id: str) -> int:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT COUNT(*) AS total FROM user_template_usage WHERE user_id = %s",
                (user_id,),
            )
            row = cursor.fetchone()
            return int(row["total"]) if row else 0

    def try_insert(self, user_id: str, template_id: str) -> InsertOutcome:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO user_template_usage (user_id, template_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, template_id) DO NOTHING
                RETURNING created_at
                """,
                (user_id, template_id),
            )
            row = cursor.fetchone()
        if row is None:
            logger.debug(
                "Usage grant already present user=%s template=%s", user_id, template_id
            )
            return InsertOutcome.ALREADY_EXISTS
        return InsertOutcome.INSERTED

    def list_template_ids(self, user_id: str) -> List[str]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT template_id
                FROM user_template_usage
                WHERE user_id = %s
                ORDER BY created_at ASC, template_id ASC
                """,
                (user_id,),
            )
            return [row["template_id"] for row in cursor.fetchall()]


def _row_to_plan(row: Dict[str, Any]) -> Plan:
    return Plan.from_document(
        {
            "id": row["id"],
            "name": row["name"],
            "isActive": row["is_active"],
            "price": row["price"],
            "billingCycle": row["billing_cycle"],
            "validityDays": row["validity_days"],
            "description": row.get("description"),
            "features": row.get("features"),
        }
    )


class PostgresPlanRepository(PostgresRepository):
    """Plan storage persisting the feature map as JSONB."""

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM plans WHERE id = %s LIMIT 1", (plan_id,))
            row = cursor.fetchone()
        return _row_to_plan(row) if row else None

    def get_plan_by_name(self, name: PlanName, *, active_only: bool = True) -> Optional[Plan]:
        query = "SELECT * FROM plans WHERE name = %s"
        if active_only:
            query += " AND is_active = TRUE"
        with self._cursor() as cursor:
            cursor.execute(query + " LIMIT 1", (PlanName(name).value,))
            row = cursor.fetchone()
        return _row_to_plan(row) if row else None

    def save_plan(self, plan: Plan) -> Plan:
        features = plan.features.model_dump(by_alias=True) if plan.features else None
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO plans (
                    id, name, is_active, price, billing_cycle, validity_days, description, features
                )
                VALUES (%(id)s, %(name)s, %(is_active)s, %(price)s, %(billing_cycle)s,
                        %(validity_days)s, %(description)s, %(features)s)
                ON CONFLICT (name) DO UPDATE SET
                    is_active = EXCLUDED.is_active,
                    price = EXCLUDED.price,
                    billing_cycle = EXCLUDED.billing_cycle,
                    validity_days = EXCLUDED.validity_days,
                    description = EXCLUDED.description,
                    features = EXCLUDED.features,
                    updated_at = NOW()
                RETURNING *
                """,
                {
                    "id": plan.id,
                    "name": plan.name.value,
                    "is_active": plan.is_active,
                    "price": plan.price,
                    "billing_cycle": plan.billing_cycle.value,
                    "validity_days": plan.validity_days,
                    "description": plan.description,
                    "features": psycopg2.extras.Json(features) if features is not None else None,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist plan")
        return _row_to_plan(row)


class PostgresUserPlanStore(PostgresRepository):
    """Reads and repairs the plan columns stored on user rows."""

    def get_assignment(self, user_id: str) -> Optional[UserPlanAssignment]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, plan_id, plan_name, plan_start, plan_expiry
                FROM users
                WHERE id = %s
                LIMIT 1
                """,
                (user_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return UserPlanAssignment(
            user_id=row["id"],
            plan_id=row.get("plan_id"),
            plan_name=PlanName.parse(row.get("plan_name")),
            plan_start=row.get("plan_start"),
            plan_expiry=row.get("plan_expiry"),
        )

    def save_assignment(self, assignment: UserPlanAssignment) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE users SET
                    plan_id = %s,
                    plan_name = %s,
                    plan_start = %s,
                    plan_expiry = %s
                WHERE id = %s
                """,
                (
                    assignment.plan_id,
                    assignment.plan_name.value if assignment.plan_name else None,
                    assignment.plan_start,
                    assignment.plan_expiry,
                    assignment.user_id,
                ),
            )
