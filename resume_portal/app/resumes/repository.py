"""PostgreSQL persistence for resumes and templates."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import psycopg2.extras

from ..entitlements.models import Template
from ..persistence import PostgresRepository, managed_connection
from .models import PlanType, Resume, ResumeStatus

RESUME_SCHEMA = """
CREATE TABLE IF NOT EXISTS templates (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    display_name TEXT,
    is_premium BOOLEAN NOT NULL DEFAULT FALSE,
    is_active BOOLEAN NOT NULL DEFAULT TRUE
);
CREATE TABLE IF NOT EXISTS resumes (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    template_id TEXT NOT NULL REFERENCES templates (id),
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'Draft',
    resume_data JSONB NOT NULL DEFAULT '{}'::jsonb,
    plan_type TEXT NOT NULL DEFAULT 'Free',
    is_public BOOLEAN NOT NULL DEFAULT FALSE,
    completion_percentage INTEGER NOT NULL DEFAULT 0,
    views INTEGER NOT NULL DEFAULT 0,
    downloads INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_resumes_user_status ON resumes (user_id, status);
CREATE INDEX IF NOT EXISTS idx_resumes_template ON resumes (template_id);
"""

_RESUME_COLUMNS = (
    "id",
    "user_id",
    "template_id",
    "title",
    "status",
    "resume_data",
    "plan_type",
    "is_public",
    "completion_percentage",
    "views",
    "downloads",
    "created_at",
    "updated_at",
)


def ensure_schema(conn=None) -> None:
    """Create the template and resume tables when they are missing."""

    with managed_connection(conn) as (connection, _managed):
        with connection.cursor() as cursor:
            cursor.execute(RESUME_SCHEMA)


def _row_to_resume(row: Dict[str, Any]) -> Resume:
    return Resume(
        id=row["id"],
        user_id=row["user_id"],
        template_id=row["template_id"],
        title=row["title"],
        status=ResumeStatus(row["status"]),
        resume_data=row.get("resume_data") or {},
        plan_type=PlanType(row["plan_type"]),
        is_public=bool(row["is_public"]),
        completion_percentage=int(row["completion_percentage"]),
        views=int(row["views"]),
        downloads=int(row["downloads"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _resume_params(resume: Resume) -> Dict[str, Any]:
    return {
        "id": resume.id,
        "user_id": resume.user_id,
        "template_id": resume.template_id,
        "title": resume.title,
        "status": resume.status.value,
        "resume_data": psycopg2.extras.Json(resume.resume_data),
        "plan_type": resume.plan_type.value,
        "is_public": resume.is_public,
        "completion_percentage": resume.completion_percentage,
        "views": resume.views,
        "downloads": resume.downloads,
        "created_at": resume.created_at,
        "updated_at": resume.updated_at,
    }


class PostgresResumeStore(PostgresRepository):
    """Concrete resume store persisting resumes in PostgreSQL."""

    def create_resume(self, resume: Resume) -> Resume:
        placeholders = ", ".join(f"%({column})s" for column in _RESUME_COLUMNS)
        with self._cursor() as cursor:
            cursor.execute(
                f"INSERT INTO resumes ({', '.join(_RESUME_COLUMNS)}) "
                f"VALUES ({placeholders}) RETURNING *",
                _resume_params(resume),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist resume")
        return _row_to_resume(row)

    def get_resume(self, resume_id: str) -> Optional[Resume]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM resumes WHERE id = %s LIMIT 1", (resume_id,))
            row = cursor.fetchone()
        return _row_to_resume(row) if row else None

    def list_resumes(self, user_id: str, *, status: Optional[ResumeStatus] = None) -> List[Resume]:
        query = "SELECT * FROM resumes WHERE user_id = %s"
        params: list[Any] = [user_id]
        if status is not None:
            query += " AND status = %s"
            params.append(ResumeStatus(status).value)
        query += " ORDER BY updated_at DESC"
        with self._cursor() as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [_row_to_resume(row) for row in rows]

    def save_resume(self, resume: Resume) -> Resume:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE resumes SET
                    template_id = %(template_id)s,
                    title = %(title)s,
                    status = %(status)s,
                    resume_data = %(resume_data)s,
                    plan_type = %(plan_type)s,
                    is_public = %(is_public)s,
                    completion_percentage = %(completion_percentage)s,
                    views = %(views)s,
                    downloads = %(downloads)s,
                    updated_at = %(updated_at)s
                WHERE id = %(id)s
                RETURNING *
                """,
                _resume_params(resume),
            )
            row = cursor.fetchone()
            if not row:
                raise LookupError(f"Resume {resume.id} not found")
        return _row_to_resume(row)

    def delete_resume(self, resume_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM resumes WHERE id = %s", (resume_id,))
            return cursor.rowcount > 0

    def count_active_resumes(self, user_id: str, *, exclude_resume_id: Optional[str] = None) -> int:
        query = "SELECT COUNT(*) AS total FROM resumes WHERE user_id = %s AND status = %s"
        params: list[Any] = [user_id, ResumeStatus.COMPLETED.value]
        if exclude_resume_id is not None:
            query += " AND id <> %s"
            params.append(exclude_resume_id)
        with self._cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
        return int(row["total"]) if row else 0


class PostgresTemplateStore(PostgresRepository):
    """Read-only view over the templates table."""

    def get_template(self, template_id: str) -> Optional[Template]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, name, display_name, is_premium, is_active
                FROM templates
                WHERE id = %s
                LIMIT 1
                """,
                (template_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return Template(
            id=row["id"],
            name=row["name"],
            display_name=row.get("display_name"),
            is_premium=bool(row["is_premium"]),
            is_active=bool(row["is_active"]),
        )
