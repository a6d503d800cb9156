from __future__ import annotations

import pytest

from resume_portal.app.entitlements import (
    Allowed,
    DenialCode,
    Denied,
    Plan,
    PlanFeatures,
    PlanName,
)
from resume_portal.app.feature_gates import (
    FeatureGateError,
    check_active_resume_limit,
    summarize_template_usage,
)


@pytest.fixture
def free_plan() -> Plan:
    return Plan(id="free-id", name=PlanName.FREE, features=PlanFeatures(max_free_templates=2))


def test_feature_gate_error_converts_to_http_exception() -> None:
    error = FeatureGateError(code="PLAN_INACTIVE", message="inactive")
    http_exc = error.to_http_exception()

    assert http_exc.status_code == 403
    assert http_exc.detail == {"error": "PLAN_INACTIVE", "message": "inactive"}


def test_from_denial_carries_details_into_payload() -> None:
    denial = Denied(
        code=DenialCode.FREE_TEMPLATE_LIMIT_REACHED,
        details={"limit": 3, "used": 3, "upgradeUrl": "/pricing"},
    )

    error = FeatureGateError.from_denial(denial)

    assert error.code == "FREE_TEMPLATE_LIMIT_REACHED"
    assert error.status_code == 403
    assert error.payload["limit"] == 3
    assert error.payload["used"] == 3
    assert error.payload["upgradeUrl"] == "/pricing"
    assert error.payload["message"] == "Free template limit reached."


def test_denial_to_dict_is_camel_cased() -> None:
    denial = Denied(code=DenialCode.PREMIUM_TEMPLATE_LOCKED, details={"templateName": "Modern"})

    assert denial.to_dict() == {
        "code": "PREMIUM_TEMPLATE_LOCKED",
        "httpStatusHint": 403,
        "details": {"templateName": "Modern"},
    }


def test_active_resume_limit_allows_below_limit(free_plan: Plan) -> None:
    assert check_active_resume_limit(free_plan, 1) == Allowed()


def test_active_resume_limit_denies_at_limit(free_plan: Plan) -> None:
    decision = check_active_resume_limit(free_plan, 2)

    assert isinstance(decision, Denied)
    assert decision.code is DenialCode.PLAN_RESUME_LIMIT_REACHED
    assert dict(decision.details) == {"allowed": 2, "active": 2, "plan": "FREE"}


def test_active_resume_limit_skipped_for_unlimited_plans() -> None:
    unlimited = Plan(
        id="pro-id",
        name=PlanName.PRO,
        features=PlanFeatures(resume_create_unlimited=True, max_free_templates=1),
    )
    uncapped = Plan(id="free-id", name=PlanName.FREE, features=PlanFeatures(max_free_templates=-1))

    assert check_active_resume_limit(unlimited, 50).allowed
    assert check_active_resume_limit(uncapped, 50).allowed


def test_usage_summary_clamps_and_reports_remaining() -> None:
    summary = summarize_template_usage(used=-2, limit=3)

    assert summary.used == 0
    assert summary.remaining == 3
    assert summary.limit_reached is False

    full = summarize_template_usage(used=4, limit=3, template_ids=["a", "b", "c", "d"])
    assert full.remaining == 0
    assert full.limit_reached is True
