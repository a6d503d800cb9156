"""Application wiring for resume and entitlement services."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from ...settings import PortalConfig, load_portal_config
from ..entitlements import EntitlementEvaluator, Plan, PlanName, PlanResolver, UserPlanAssignment
from ..entitlements.repository import (
    PostgresPlanRepository,
    PostgresUsageLedger,
    PostgresUserPlanStore,
)
from ..resumes import ResumeService
from ..resumes.repository import PostgresResumeStore, PostgresTemplateStore

logger = logging.getLogger("entitlements")


@lru_cache(maxsize=1)
def get_portal_config() -> PortalConfig:
    return load_portal_config()


@lru_cache(maxsize=1)
def get_plan_resolver() -> PlanResolver:
    config = get_portal_config()
    return PlanResolver(
        PostgresPlanRepository(),
        default_max_free_templates=config.default_max_free_templates,
    )


@lru_cache(maxsize=1)
def get_user_plan_store() -> PostgresUserPlanStore:
    return PostgresUserPlanStore()


@lru_cache(maxsize=1)
def get_resume_service() -> ResumeService:
    config = get_portal_config()
    evaluator = EntitlementEvaluator(PostgresUsageLedger(), upgrade_url=config.upgrade_url)
    return ResumeService(
        resumes=PostgresResumeStore(),
        templates=PostgresTemplateStore(),
        evaluator=evaluator,
    )


def resolve_user_plan(current_user: Any) -> Plan:
    """Resolve the effective plan for a user, persisting any repaired assignment."""

    assignment = UserPlanAssignment(
        user_id=str(current_user.id),
        plan_id=getattr(current_user, "plan_id", None),
        plan_name=PlanName.parse(getattr(current_user, "plan_name", None)),
        plan_start=getattr(current_user, "plan_start", None),
        plan_expiry=getattr(current_user, "plan_expiry", None),
    )
    resolved = get_plan_resolver().resolve(assignment)
    if resolved.changed:
        get_user_plan_store().save_assignment(resolved.assignment)
        logger.info(
            "User %s plan synchronized: plan=%s",
            assignment.user_id,
            resolved.plan.name.value,
        )
    return resolved.plan


__all__ = [
    "get_plan_resolver",
    "get_portal_config",
    "get_resume_service",
    "get_user_plan_store",
    "resolve_user_plan",
]
