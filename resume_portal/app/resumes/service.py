"""Resume operations guarded by template entitlement and plan limits."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from ..entitlements.evaluator import EntitlementEvaluator
from ..entitlements.exceptions import PlanConfigurationError
from ..entitlements.models import DenialCode, Denied, EntitlementDecision, Plan, Template
from ..feature_gates.exceptions import FeatureGateError
from ..feature_gates.quota import TemplateUsageSummary
from ..feature_gates.resume_limits import check_active_resume_limit
from .completion import calculate_completion
from .models import PlanType, Resume, ResumeStatus
from .store import ResumeStore, TemplateStore

logger = logging.getLogger(__name__)


def _new_resume_id() -> str:
    return uuid4().hex


def _enforce(decision: EntitlementDecision) -> None:
    if not decision.allowed:
        raise FeatureGateError.from_denial(decision)


def _require_plan(plan: Optional[Plan]) -> Plan:
    if plan is None or plan.features is None:
        logger.error("Plan configuration error: plan=%s", plan.name.value if plan else None)
        raise PlanConfigurationError(
            "Plan configuration error. Plan features are not properly configured.",
            plan_name=plan.name.value if plan else None,
        )
    return plan


@dataclass
class ResumeService:
    """Coordinates resume persistence with entitlement checks.

    Template entitlement applies to every status; the active resume limit is
    only consulted when a resume becomes Completed.
    """

    resumes: ResumeStore
    templates: TemplateStore
    evaluator: EntitlementEvaluator
    clock: Optional[Callable[[], datetime]] = None
    id_factory: Callable[[], str] = field(default=_new_resume_id)

    def create_resume(
        self,
        user_id: str,
        plan: Optional[Plan],
        *,
        title: Optional[str],
        template_id: Optional[str],
        resume_data: Optional[Mapping[str, Any]] = None,
        status: Optional[str] = None,
    ) -> Resume:
        if not title or not title.strip():
            raise ValueError("Resume title is required")
        if not template_id:
            raise ValueError("Template ID is required")
        target_status = ResumeStatus.normalize(status)

        template = self._get_active_template(template_id)
        plan = _require_plan(plan)
        if not plan.is_active:
            logger.warning("User %s attempted resume creation on inactive plan %s", user_id, plan.name.value)
            _enforce(Denied(code=DenialCode.PLAN_INACTIVE, details={"plan": plan.name.value}))

        if target_status == ResumeStatus.COMPLETED:
            active_count = self.resumes.count_active_resumes(user_id)
            _enforce(check_active_resume_limit(plan, active_count))

        now = self._now()
        data = dict(resume_data or {})
        resume = Resume(
            id=self.id_factory(),
            user_id=user_id,
            template_id=template.id,
            title=title.strip(),
            status=target_status,
            resume_data=data,
            plan_type=PlanType.for_template(template),
            completion_percentage=calculate_completion(data),
            created_at=now,
            updated_at=now,
        )

        # must stay the last check; ledger grants are permanent
        _enforce(self.evaluator.evaluate(user_id, plan, template))
        created = self.resumes.create_resume(resume)
        logger.info(
            "Created resume %s for user %s template=%s status=%s",
            created.id,
            user_id,
            template.id,
            created.status.value,
        )
        return created

    def update_resume(
        self,
        user_id: str,
        plan: Optional[Plan],
        resume_id: str,
        *,
        title: Optional[str] = None,
        template_id: Optional[str] = None,
        resume_data: Optional[Mapping[str, Any]] = None,
        status: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Resume:
        resume = self._get_owned_resume(user_id, resume_id)
        plan = _require_plan(plan)

        new_status = ResumeStatus.normalize(status) if status is not None else resume.status
        updates: Dict[str, Any] = {"status": new_status}
        if title is not None:
            if not title.strip():
                raise ValueError("Resume title cannot be empty")
            updates["title"] = title.strip()
        if resume_data is not None:
            data = dict(resume_data)
            updates["resume_data"] = data
            updates["completion_percentage"] = calculate_completion(data)
        if is_public is not None:
            updates["is_public"] = is_public

        if new_status == ResumeStatus.COMPLETED and resume.status == ResumeStatus.DRAFT:
            active_count = self.resumes.count_active_resumes(user_id, exclude_resume_id=resume.id)
            _enforce(check_active_resume_limit(plan, active_count))

        # must stay the last check; ledger grants are permanent
        if template_id and template_id != resume.template_id:
            template = self._get_active_template(template_id)
            _enforce(self.evaluator.evaluate(user_id, plan, template))
            updates["template_id"] = template.id
            updates["plan_type"] = PlanType.for_template(template)
        updates["updated_at"] = self._now()

        saved = self.resumes.save_resume(resume.model_copy(update=updates))
        logger.info("Updated resume %s for user %s", saved.id, user_id)
        return saved

    def duplicate_resume(self, user_id: str, plan: Optional[Plan], resume_id: str) -> Resume:
        original = self._get_owned_resume(user_id, resume_id)
        plan = _require_plan(plan)
        template = self._get_active_template(original.template_id)

        # same template as the original, so a held grant resolves through reuse
        _enforce(self.evaluator.evaluate(user_id, plan, template))

        now = self._now()
        data = copy.deepcopy(original.resume_data)
        duplicate = Resume(
            id=self.id_factory(),
            user_id=original.user_id,
            template_id=original.template_id,
            title=f"{original.title} (Copy)",
            status=ResumeStatus.DRAFT,
            resume_data=data,
            plan_type=PlanType.for_template(template),
            is_public=False,
            completion_percentage=calculate_completion(data),
            created_at=now,
            updated_at=now,
        )
        created = self.resumes.create_resume(duplicate)
        logger.info("Duplicated resume %s into %s for user %s", original.id, created.id, user_id)
        return created

    def list_resumes(self, user_id: str, *, status: Optional[str] = None) -> List[Resume]:
        status_filter = ResumeStatus.normalize(status) if status else None
        return self.resumes.list_resumes(user_id, status=status_filter)

    def get_resume(self, user_id: Optional[str], resume_id: str) -> Resume:
        resume = self.resumes.get_resume(resume_id)
        if resume is None:
            raise LookupError("Resume not found")
        is_owner = user_id is not None and resume.user_id == user_id
        if not is_owner and not resume.is_public:
            raise PermissionError("You do not have permission to view this resume")
        if not is_owner:
            resume = self.resumes.save_resume(resume.model_copy(update={"views": resume.views + 1}))
        return resume

    def delete_resume(self, user_id: str, resume_id: str) -> None:
        resume = self._get_owned_resume(user_id, resume_id)
        self.resumes.delete_resume(resume.id)
        logger.info("Deleted resume %s for user %s", resume.id, user_id)

    def template_usage(self, user_id: str, plan: Optional[Plan]) -> TemplateUsageSummary:
        return self.evaluator.usage_summary(user_id, _require_plan(plan))

    def _get_active_template(self, template_id: str) -> Template:
        template = self.templates.get_template(template_id)
        if template is None or not template.is_active:
            raise LookupError("Template not found or inactive")
        return template

    def _get_owned_resume(self, user_id: str, resume_id: str) -> Resume:
        resume = self.resumes.get_resume(resume_id)
        if resume is None:
            raise LookupError("Resume not found")
        if resume.user_id != user_id:
            raise PermissionError("You do not have permission to modify this resume")
        return resume

    def _now(self) -> datetime:
        if self.clock is None:
            return datetime.now(timezone.utc)
        value = self.clock()
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
