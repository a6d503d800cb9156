"""Usage ledger abstractions for distinct free-template grants."""
from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, List, Optional, Protocol

from .models import InsertOutcome, UsageRecord


class UsageLedger(Protocol):
    """Append-only store of (user, template) grants.

    Implementations must guarantee at most one record per pair; a duplicate
    insert reports :attr:`InsertOutcome.ALREADY_EXISTS` instead of raising.
    """

    def exists(self, user_id: str, template_id: str) -> bool:
        ...

    def count_for_user(self, user_id: str) -> int:
        ...

    def try_insert(self, user_id: str, template_id: str) -> InsertOutcome:
        ...

    def list_template_ids(self, user_id: str) -> List[str]:
        ...


class InMemoryUsageLedger:
    """Thread-safe in-memory ledger suitable for tests and local development."""

    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._records: Dict[str, Dict[str, UsageRecord]] = {}
        self._lock = Lock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def exists(self, user_id: str, template_id: str) -> bool:
        with self._lock:
            return template_id in self._records.get(user_id, {})

    def count_for_user(self, user_id: str) -> int:
        with self._lock:
            return len(self._records.get(user_id, {}))

    def try_insert(self, user_id: str, template_id: str) -> InsertOutcome:
        with self._lock:
            grants = self._records.setdefault(user_id, {})
            if template_id in grants:
                return InsertOutcome.ALREADY_EXISTS
            grants[template_id] = UsageRecord(
                user_id=user_id,
                template_id=template_id,
                created_at=self._clock(),
            )
            return InsertOutcome.INSERTED

    def list_template_ids(self, user_id: str) -> List[str]:
        with self._lock:
            grants = list(self._records.get(user_id, {}).values())
        grants.sort(key=lambda record: record.created_at)
        return [record.template_id for record in grants]

    def records(self) -> List[UsageRecord]:
        with self._lock:
            return [record for grants in self._records.values() for record in grants.values()]
