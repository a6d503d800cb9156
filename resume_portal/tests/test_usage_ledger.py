from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from resume_portal.app.entitlements import InMemoryUsageLedger, InsertOutcome


def test_try_insert_reports_existing_pair() -> None:
    ledger = InMemoryUsageLedger()

    assert ledger.try_insert("user-1", "tpl-a") is InsertOutcome.INSERTED
    assert ledger.try_insert("user-1", "tpl-a") is InsertOutcome.ALREADY_EXISTS
    assert ledger.count_for_user("user-1") == 1
    assert ledger.exists("user-1", "tpl-a") is True
    assert ledger.exists("user-1", "tpl-b") is False


def test_grants_are_scoped_per_user() -> None:
    ledger = InMemoryUsageLedger()

    ledger.try_insert("user-1", "tpl-a")
    ledger.try_insert("user-2", "tpl-a")

    assert ledger.count_for_user("user-1") == 1
    assert ledger.count_for_user("user-2") == 1
    assert ledger.count_for_user("user-3") == 0


def test_concurrent_inserts_for_same_pair_leave_one_record() -> None:
    ledger = InMemoryUsageLedger()

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: ledger.try_insert("user-1", "tpl-a"), range(32)))

    assert outcomes.count(InsertOutcome.INSERTED) == 1
    assert outcomes.count(InsertOutcome.ALREADY_EXISTS) == 31
    assert len(ledger.records()) == 1


def test_count_never_decreases_as_grants_accumulate() -> None:
    ledger = InMemoryUsageLedger()
    observed = []

    for template_id in ["tpl-a", "tpl-b", "tpl-a", "tpl-c", "tpl-b"]:
        ledger.try_insert("user-1", template_id)
        observed.append(ledger.count_for_user("user-1"))

    assert observed == sorted(observed)
    assert observed[-1] == 3


def test_list_template_ids_is_ordered_by_grant_time() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = iter(start + timedelta(minutes=offset) for offset in range(10))
    ledger = InMemoryUsageLedger(clock=lambda: next(ticks))

    ledger.try_insert("user-1", "tpl-c")
    ledger.try_insert("user-1", "tpl-a")
    ledger.try_insert("user-1", "tpl-b")

    assert ledger.list_template_ids("user-1") == ["tpl-c", "tpl-a", "tpl-b"]
    assert ledger.list_template_ids("user-2") == []
