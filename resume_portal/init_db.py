"""Create the portal tables and seed the default subscription plans."""
import logging
import uuid

import psycopg2
from dotenv import load_dotenv

from .app.entitlements import PLAN_CATALOG, PlanName
from .app.entitlements.repository import PostgresPlanRepository
from .app.entitlements.repository import ensure_schema as ensure_entitlement_schema
from .app.resumes.repository import ensure_schema as ensure_resume_schema
from .settings import load_portal_config

logger = logging.getLogger("resume_portal.init_db")

USER_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE,
    full_name TEXT,
    plan_id TEXT,
    plan_name TEXT,
    plan_start TIMESTAMPTZ,
    plan_expiry TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def seed_plans(repository, *, max_free_templates=None) -> int:
    seeded = 0
    for definition in PLAN_CATALOG.values():
        override = max_free_templates if definition.name is PlanName.FREE else None
        plan = definition.to_plan(uuid.uuid4().hex, max_free_templates=override)
        saved = repository.save_plan(plan)
        logger.info("Plan %s ready (id=%s)", saved.name.value, saved.id)
        seeded += 1
    return seeded


def main():
    load_dotenv()
    config = load_portal_config()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    with psycopg2.connect(**config.db_params()) as conn:
        with conn.cursor() as cur:
            cur.execute(USER_SCHEMA)
        ensure_entitlement_schema(conn)
        ensure_resume_schema(conn)
        count = seed_plans(
            PostgresPlanRepository(conn=conn),
            max_free_templates=config.default_max_free_templates,
        )
        conn.commit()
    print(f"Done. Schema ensured and {count} plans seeded.")


if __name__ == "__main__":
    main()
