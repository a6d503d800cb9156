"""Resolution of a user's effective plan before entitlement checks run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, Optional, Protocol
from uuid import uuid4

from .catalog import get_plan_definition
from .models import Plan, PlanName

logger = logging.getLogger(__name__)


class PlanRepository(Protocol):
    """Data access layer for plan documents."""

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        ...

    def get_plan_by_name(self, name: PlanName, *, active_only: bool = True) -> Optional[Plan]:
        ...

    def save_plan(self, plan: Plan) -> Plan:
        ...


class InMemoryPlanRepository:
    """Dictionary backed plan repository for tests and local development."""

    def __init__(self) -> None:
        self._plans: Dict[str, Plan] = {}
        self._lock = Lock()

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        return self._plans.get(plan_id)

    def get_plan_by_name(self, name: PlanName, *, active_only: bool = True) -> Optional[Plan]:
        for plan in self._plans.values():
            if plan.name == name and (plan.is_active or not active_only):
                return plan
        return None

    def save_plan(self, plan: Plan) -> Plan:
        with self._lock:
            for existing_id, existing in list(self._plans.items()):
                if existing.name == plan.name and existing_id != plan.id:
                    del self._plans[existing_id]
            self._plans[plan.id] = plan
        return plan


@dataclass(frozen=True)
class UserPlanAssignment:
    """The plan fields stored on a user record."""

    user_id: str
    plan_id: Optional[str] = None
    plan_name: Optional[PlanName] = None
    plan_start: Optional[datetime] = None
    plan_expiry: Optional[datetime] = None


@dataclass(frozen=True)
class ResolvedPlan:
    """Effective plan for a request and the possibly repaired assignment."""

    plan: Plan
    assignment: UserPlanAssignment
    changed: bool = False


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PlanResolver:
    """Resolves the plan attached to a user, falling back to the FREE plan.

    Missing or dangling plan references and expired paid plans are repaired by
    assigning the FREE plan, which is created from the catalog on first use.
    """

    def __init__(
        self,
        repository: PlanRepository,
        *,
        default_max_free_templates: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._repository = repository
        self._default_max_free_templates = default_max_free_templates
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._free_plan_lock = Lock()

    def get_or_create_free_plan(self) -> Plan:
        plan = self._repository.get_plan_by_name(PlanName.FREE)
        if plan is not None:
            return plan
        with self._free_plan_lock:
            plan = self._repository.get_plan_by_name(PlanName.FREE)
            if plan is not None:
                return plan
            logger.warning("FREE plan not found in storage, creating default FREE plan")
            definition = get_plan_definition(PlanName.FREE)
            plan = definition.to_plan(
                uuid4().hex,
                max_free_templates=self._default_max_free_templates,
            )
            return self._repository.save_plan(plan)

    def resolve(self, assignment: UserPlanAssignment) -> ResolvedPlan:
        plan: Optional[Plan] = None
        if assignment.plan_id:
            plan = self._repository.get_plan(assignment.plan_id)
            if plan is None and assignment.plan_name:
                plan = self._repository.get_plan_by_name(assignment.plan_name)

        if plan is None:
            if assignment.plan_id:
                logger.warning(
                    "Plan not found for user %s (plan_id=%s), assigning FREE plan",
                    assignment.user_id,
                    assignment.plan_id,
                )
            return self._assign_free(assignment)

        if plan.is_paid and assignment.plan_expiry is not None:
            if self._clock() > _as_utc(assignment.plan_expiry):
                logger.info(
                    "Plan %s expired for user %s, downgrading to FREE",
                    plan.name.value,
                    assignment.user_id,
                )
                return self._assign_free(assignment)

        changed = assignment.plan_id != plan.id or assignment.plan_name != plan.name
        if changed:
            assignment = replace(assignment, plan_id=plan.id, plan_name=plan.name)
        return ResolvedPlan(plan=plan, assignment=assignment, changed=changed)

    def _assign_free(self, assignment: UserPlanAssignment) -> ResolvedPlan:
        free_plan = self.get_or_create_free_plan()
        updated = replace(
            assignment,
            plan_id=free_plan.id,
            plan_name=PlanName.FREE,
            plan_start=self._clock(),
            plan_expiry=None,
        )
        return ResolvedPlan(plan=free_plan, assignment=updated, changed=True)
