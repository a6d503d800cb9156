"""Custom exceptions used for feature gating enforcement."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status

from ..entitlements.models import Denied

_DENIAL_MESSAGES = {
    "PREMIUM_TEMPLATE_LOCKED": "This template requires a premium plan.",
    "FREE_TEMPLATE_LIMIT_REACHED": "Free template limit reached.",
    "PLAN_RESUME_LIMIT_REACHED": "Active resume limit reached for your plan.",
    "PLAN_INACTIVE": "Your plan is currently inactive. Please contact support.",
}


@dataclass
class FeatureGateError(Exception):
    """Represents an actionable gating failure surfaced to API callers."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    @classmethod
    def from_denial(cls, decision: Denied) -> "FeatureGateError":
        code = decision.code.value
        return cls(
            code=code,
            message=_DENIAL_MESSAGES.get(code, code),
            status_code=decision.http_status_hint,
            detail=dict(decision.details),
        )

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))
