from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from resume_portal.app.entitlements import (
    InMemoryPlanRepository,
    PlanName,
    PlanResolver,
    UserPlanAssignment,
    get_plan_definition,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository() -> InMemoryPlanRepository:
    return InMemoryPlanRepository()


@pytest.fixture
def resolver(repository: InMemoryPlanRepository) -> PlanResolver:
    return PlanResolver(repository, clock=lambda: NOW)


def test_user_without_plan_gets_free_plan_created(resolver, repository) -> None:
    resolved = resolver.resolve(UserPlanAssignment(user_id="user-1"))

    assert resolved.changed is True
    assert resolved.plan.name is PlanName.FREE
    assert resolved.assignment.plan_id == resolved.plan.id
    assert resolved.assignment.plan_name is PlanName.FREE
    assert resolved.assignment.plan_start == NOW
    assert repository.get_plan_by_name(PlanName.FREE) == resolved.plan


def test_free_plan_is_created_only_once(resolver) -> None:
    first = resolver.get_or_create_free_plan()
    second = resolver.get_or_create_free_plan()

    assert first.id == second.id


def test_configured_default_limit_applies_to_created_free_plan(repository) -> None:
    resolver = PlanResolver(repository, default_max_free_templates=5, clock=lambda: NOW)

    plan = resolver.get_or_create_free_plan()

    assert plan.features.template_limit == 5


def test_existing_plan_is_returned_unchanged(resolver, repository) -> None:
    pro = repository.save_plan(get_plan_definition(PlanName.PRO).to_plan("pro-id"))
    assignment = UserPlanAssignment(
        user_id="user-1",
        plan_id="pro-id",
        plan_name=PlanName.PRO,
        plan_expiry=NOW + timedelta(days=10),
    )

    resolved = resolver.resolve(assignment)

    assert resolved.plan == pro
    assert resolved.changed is False
    assert resolved.assignment == assignment


def test_dangling_plan_id_falls_back_to_plan_name(resolver, repository) -> None:
    pro = repository.save_plan(get_plan_definition(PlanName.PRO).to_plan("pro-id"))

    resolved = resolver.resolve(
        UserPlanAssignment(user_id="user-1", plan_id="deleted-id", plan_name=PlanName.PRO)
    )

    assert resolved.plan == pro
    assert resolved.changed is True
    assert resolved.assignment.plan_id == "pro-id"


def test_dangling_plan_without_name_downgrades_to_free(resolver) -> None:
    resolved = resolver.resolve(UserPlanAssignment(user_id="user-1", plan_id="deleted-id"))

    assert resolved.plan.name is PlanName.FREE
    assert resolved.changed is True


def test_expired_paid_plan_downgrades_to_free(resolver, repository) -> None:
    repository.save_plan(get_plan_definition(PlanName.PREMIUM).to_plan("premium-id"))

    resolved = resolver.resolve(
        UserPlanAssignment(
            user_id="user-1",
            plan_id="premium-id",
            plan_name=PlanName.PREMIUM,
            plan_expiry=datetime(2024, 5, 1),
        )
    )

    assert resolved.plan.name is PlanName.FREE
    assert resolved.assignment.plan_expiry is None
    assert resolved.changed is True
