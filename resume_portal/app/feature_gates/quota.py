"""Template quota summaries for displaying remaining free-template grants."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class TemplateUsageSummary:
    """Snapshot of how many distinct free templates a user has consumed."""

    used: int
    limit: Optional[int]
    template_ids: Tuple[str, ...] = ()
    tracked: bool = True

    @property
    def unlimited(self) -> bool:
        return self.limit is None

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self.used, 0)

    @property
    def limit_reached(self) -> bool:
        return self.limit is not None and self.used >= self.limit

    def to_dict(self) -> dict[str, object]:
        """Serialize the summary for API responses and logging."""

        return {
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "unlimited": self.unlimited,
            "limitReached": self.limit_reached,
            "tracked": self.tracked,
            "templateIds": list(self.template_ids),
        }


def summarize_template_usage(
    *,
    used: int,
    limit: Optional[int],
    template_ids: Sequence[str] = (),
    tracked: bool = True,
) -> TemplateUsageSummary:
    """Build a usage summary, clamping negative counts to zero."""

    return TemplateUsageSummary(
        used=max(used, 0),
        limit=limit,
        template_ids=tuple(template_ids),
        tracked=tracked,
    )
