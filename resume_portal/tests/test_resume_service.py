from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from resume_portal.app.entitlements import (
    EntitlementEvaluator,
    InMemoryUsageLedger,
    Plan,
    PlanConfigurationError,
    PlanFeatures,
    PlanName,
    Template,
)
from resume_portal.app.feature_gates import FeatureGateError
from resume_portal.app.resumes import (
    InMemoryResumeStore,
    InMemoryTemplateStore,
    PlanType,
    ResumeService,
    ResumeStatus,
    calculate_completion,
)

USER = "user-1"


def _free_plan(limit=2, *, active: bool = True) -> Plan:
    return Plan(
        id="free-id",
        name=PlanName.FREE,
        is_active=active,
        features=PlanFeatures(max_free_templates=limit),
    )


PRO_PLAN = Plan(
    id="pro-id",
    name=PlanName.PRO,
    features=PlanFeatures(
        premium_templates_access=True,
        resume_create_unlimited=True,
        max_free_templates=None,
    ),
)


@pytest.fixture
def ledger() -> InMemoryUsageLedger:
    return InMemoryUsageLedger()


@pytest.fixture
def templates() -> InMemoryTemplateStore:
    return InMemoryTemplateStore(
        [
            Template(id="A", name="Classic"),
            Template(id="B", name="Modern"),
            Template(id="C", name="Minimal"),
            Template(id="P", name="Executive", display_name="Executive Gold", is_premium=True),
            Template(id="X", name="Retired", is_active=False),
        ]
    )


@pytest.fixture
def service(ledger, templates) -> ResumeService:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = count()
    ids = count(1)
    return ResumeService(
        resumes=InMemoryResumeStore(),
        templates=templates,
        evaluator=EntitlementEvaluator(ledger),
        clock=lambda: start + timedelta(seconds=next(ticks)),
        id_factory=lambda: f"resume-{next(ids)}",
    )


def test_create_resume_records_template_grant(service, ledger) -> None:
    resume = service.create_resume(USER, _free_plan(), title=" My CV ", template_id="A")

    assert resume.id == "resume-1"
    assert resume.title == "My CV"
    assert resume.status is ResumeStatus.DRAFT
    assert resume.plan_type is PlanType.FREE
    assert resume.completion_percentage == 0
    assert ledger.list_template_ids(USER) == ["A"]


def test_create_resume_requires_title_and_template(service) -> None:
    with pytest.raises(ValueError):
        service.create_resume(USER, _free_plan(), title="  ", template_id="A")
    with pytest.raises(ValueError):
        service.create_resume(USER, _free_plan(), title="CV", template_id=None)


def test_create_resume_rejects_inactive_template(service) -> None:
    with pytest.raises(LookupError):
        service.create_resume(USER, _free_plan(), title="CV", template_id="X")
    with pytest.raises(LookupError):
        service.create_resume(USER, _free_plan(), title="CV", template_id="missing")


def test_free_template_limit_blocks_third_distinct_template(service) -> None:
    plan = _free_plan(limit=2)
    service.create_resume(USER, plan, title="One", template_id="A")
    service.create_resume(USER, plan, title="Two", template_id="B")

    with pytest.raises(FeatureGateError) as exc:
        service.create_resume(USER, plan, title="Three", template_id="C")

    assert exc.value.code == "FREE_TEMPLATE_LIMIT_REACHED"
    assert exc.value.payload["limit"] == 2
    assert exc.value.payload["used"] == 2


def test_drafts_count_toward_template_entitlement_and_reuse_is_free(service, ledger) -> None:
    plan = _free_plan(limit=1)
    service.create_resume(USER, plan, title="Draft one", template_id="A")

    again = service.create_resume(USER, plan, title="Draft two", template_id="A")

    assert again.template_id == "A"
    assert ledger.count_for_user(USER) == 1


def test_premium_template_locked_on_free_plan(service) -> None:
    with pytest.raises(FeatureGateError) as exc:
        service.create_resume(USER, _free_plan(), title="CV", template_id="P")

    assert exc.value.code == "PREMIUM_TEMPLATE_LOCKED"
    assert exc.value.payload["templateName"] == "Executive Gold"


def test_pro_plan_creates_premium_resume_without_ledger_write(service, ledger) -> None:
    resume = service.create_resume(USER, PRO_PLAN, title="CV", template_id="P", status="ACTIVE")

    assert resume.plan_type is PlanType.PREMIUM
    assert resume.status is ResumeStatus.COMPLETED
    assert ledger.count_for_user(USER) == 0


def test_inactive_plan_blocks_creation(service) -> None:
    with pytest.raises(FeatureGateError) as exc:
        service.create_resume(USER, _free_plan(active=False), title="CV", template_id="A")

    assert exc.value.code == "PLAN_INACTIVE"


def test_missing_plan_features_raise_configuration_error(service) -> None:
    broken = Plan(id="free-id", name=PlanName.FREE, features=None)

    with pytest.raises(PlanConfigurationError):
        service.create_resume(USER, broken, title="CV", template_id="A")


def test_completed_resumes_limited_but_drafts_are_not(service) -> None:
    plan = _free_plan(limit=1)
    service.create_resume(USER, plan, title="Done", template_id="A", status="Completed")
    draft = service.create_resume(USER, plan, title="Draft", template_id="A")

    with pytest.raises(FeatureGateError) as exc:
        service.create_resume(USER, plan, title="Done again", template_id="A", status="Completed")
    assert exc.value.code == "PLAN_RESUME_LIMIT_REACHED"

    with pytest.raises(FeatureGateError):
        service.update_resume(USER, plan, draft.id, status="Completed")


def test_update_of_already_completed_resume_skips_active_limit(service) -> None:
    plan = _free_plan(limit=1)
    done = service.create_resume(USER, plan, title="Done", template_id="A", status="Completed")

    updated = service.update_resume(USER, plan, done.id, title="Renamed", status="Completed")

    assert updated.title == "Renamed"
    assert updated.status is ResumeStatus.COMPLETED


def test_update_template_switch_is_evaluated(service) -> None:
    plan = _free_plan(limit=1)
    resume = service.create_resume(USER, plan, title="CV", template_id="A")

    with pytest.raises(FeatureGateError) as exc:
        service.update_resume(USER, plan, resume.id, template_id="B")
    assert exc.value.code == "FREE_TEMPLATE_LIMIT_REACHED"

    unchanged = service.update_resume(USER, plan, resume.id, template_id="A", is_public=True)
    assert unchanged.template_id == "A"
    assert unchanged.is_public is True


def test_update_recomputes_completion(service) -> None:
    resume = service.create_resume(USER, _free_plan(), title="CV", template_id="A")
    data = {
        "personalInfo": {"fullName": "Sam Lee", "email": "sam@example.com"},
        "skills": ["python"],
        "education": [{"school": "State"}],
    }

    updated = service.update_resume(USER, _free_plan(), resume.id, resume_data=data)

    assert updated.completion_percentage == calculate_completion(data) == 38
    assert updated.updated_at > resume.updated_at


def test_update_rejects_other_users(service) -> None:
    resume = service.create_resume(USER, _free_plan(), title="CV", template_id="A")

    with pytest.raises(PermissionError):
        service.update_resume("user-2", _free_plan(), resume.id, title="Mine now")
    with pytest.raises(LookupError):
        service.update_resume(USER, _free_plan(), "missing", title="Nope")


def test_duplicate_is_never_blocked_by_free_limit(service, ledger) -> None:
    plan = _free_plan(limit=2)
    original = service.create_resume(
        USER,
        plan,
        title="CV",
        template_id="A",
        resume_data={"skills": ["go"]},
        status="Completed",
    )
    service.create_resume(USER, plan, title="Other", template_id="B")

    copy = service.duplicate_resume(USER, plan, original.id)

    assert copy.id != original.id
    assert copy.title == "CV (Copy)"
    assert copy.status is ResumeStatus.DRAFT
    assert copy.is_public is False
    assert copy.resume_data == original.resume_data
    assert copy.completion_percentage == original.completion_percentage
    assert ledger.count_for_user(USER) == 2


def test_list_resumes_filters_by_status(service) -> None:
    plan = _free_plan(limit=3)
    service.create_resume(USER, plan, title="Draft", template_id="A")
    done = service.create_resume(USER, plan, title="Done", template_id="B", status="completed")
    service.create_resume("user-2", plan, title="Other user", template_id="A")

    assert [resume.id for resume in service.list_resumes(USER, status="Completed")] == [done.id]
    assert len(service.list_resumes(USER)) == 2

    with pytest.raises(ValueError):
        service.list_resumes(USER, status="archived")


def test_get_public_resume_counts_views_for_visitors(service) -> None:
    resume = service.create_resume(USER, _free_plan(), title="CV", template_id="A")

    with pytest.raises(PermissionError):
        service.get_resume("user-2", resume.id)

    service.update_resume(USER, _free_plan(), resume.id, is_public=True)
    viewed = service.get_resume("user-2", resume.id)
    owner_view = service.get_resume(USER, resume.id)

    assert viewed.views == 1
    assert owner_view.views == 1


def test_delete_does_not_release_template_grant(service, ledger) -> None:
    plan = _free_plan(limit=1)
    resume = service.create_resume(USER, plan, title="CV", template_id="A")

    service.delete_resume(USER, resume.id)

    with pytest.raises(LookupError):
        service.get_resume(USER, resume.id)
    with pytest.raises(FeatureGateError):
        service.create_resume(USER, plan, title="New", template_id="B")
    assert ledger.count_for_user(USER) == 1


def test_template_usage_summary(service) -> None:
    plan = _free_plan(limit=3)
    service.create_resume(USER, plan, title="CV", template_id="A")

    summary = service.template_usage(USER, plan)

    assert summary.used == 1
    assert summary.remaining == 2
    assert summary.template_ids == ("A",)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, ResumeStatus.DRAFT), ("", ResumeStatus.DRAFT), ("ACTIVE", ResumeStatus.COMPLETED)],
)
def test_status_normalisation(raw, expected) -> None:
    assert ResumeStatus.normalize(raw) is expected


def test_completion_rounds_half_up() -> None:
    data = {
        "personalInfo": {"fullName": "Sam", "email": "sam@example.com"},
        "professionalSummary": {"summary": "Engineer"},
        "workExperience": [{"company": "Acme"}],
        "education": [{"school": "State"}],
        "skills": ["python"],
    }

    assert calculate_completion(data) == 63
    assert calculate_completion({}) == 0


def test_rejected_update_does_not_consume_template_grant(service, ledger) -> None:
    plan = _free_plan(limit=2)
    resume = service.create_resume(USER, plan, title="CV", template_id="A")

    with pytest.raises(ValueError):
        service.update_resume(USER, plan, resume.id, template_id="B", title="   ")

    assert service.get_resume(USER, resume.id).template_id == "A"
    assert ledger.list_template_ids(USER) == ["A"]


def test_active_limit_denial_does_not_consume_template_grant(service, ledger) -> None:
    plan = _free_plan(limit=2)
    service.create_resume(USER, plan, title="Done", template_id="A", status="Completed")
    service.create_resume(USER, plan, title="Also done", template_id="A", status="Completed")
    draft = service.create_resume(USER, plan, title="Draft", template_id="A")

    with pytest.raises(FeatureGateError) as created:
        service.create_resume(USER, plan, title="Third", template_id="B", status="Completed")
    with pytest.raises(FeatureGateError) as updated:
        service.update_resume(USER, plan, draft.id, template_id="B", status="Completed")

    assert created.value.code == "PLAN_RESUME_LIMIT_REACHED"
    assert updated.value.code == "PLAN_RESUME_LIMIT_REACHED"
    assert ledger.list_template_ids(USER) == ["A"]


def test_malformed_personal_info_scores_as_incomplete(service) -> None:
    resume = service.create_resume(
        USER,
        _free_plan(),
        title="CV",
        template_id="A",
        resume_data={"personalInfo": "Sam Lee", "skills": ["python"]},
    )

    assert resume.completion_percentage == 13
    assert calculate_completion({"personalInfo": ["Sam"], "summary": "Engineer"}) == 13
