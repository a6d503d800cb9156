"""Active resume count limits applied when a resume is finalized."""
from __future__ import annotations

from ..entitlements.models import Allowed, DenialCode, Denied, EntitlementDecision, Plan


def check_active_resume_limit(plan: Plan, active_count: int) -> EntitlementDecision:
    """Compare a user's finalized resumes against the plan limit.

    Drafts never count toward this limit. Plans with unlimited resume
    creation, or an unlimited template allowance, skip the check.
    """

    features = plan.features
    if features is None or features.resume_create_unlimited:
        return Allowed()

    limit = features.template_limit
    if limit is None or active_count < limit:
        return Allowed()

    return Denied(
        code=DenialCode.PLAN_RESUME_LIMIT_REACHED,
        details={"allowed": limit, "active": active_count, "plan": plan.name.value},
    )
