"""Domain models for user resumes."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import Template


class ResumeStatus(str, Enum):
    """Content state of a resume; only finalized resumes count as active."""

    DRAFT = "Draft"
    COMPLETED = "Completed"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "ResumeStatus":
        """Map client supplied status spellings onto a canonical status."""

        if value is None or value == "":
            return cls.DRAFT
        if isinstance(value, ResumeStatus):
            return value
        lookup = str(value).strip()
        if lookup in {"Draft", "DRAFT", "draft"}:
            return cls.DRAFT
        if lookup in {"Completed", "COMPLETED", "completed", "Active", "ACTIVE", "active"}:
            return cls.COMPLETED
        raise ValueError(f"Unsupported resume status: {value!r}")


class PlanType(str, Enum):
    """Snapshot of whether the resume's template was premium."""

    FREE = "Free"
    PREMIUM = "Premium"

    @classmethod
    def for_template(cls, template: Template) -> "PlanType":
        return cls.PREMIUM if template.is_premium else cls.FREE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Resume(BaseModel):
    """A resume owned by a user and rendered with a template."""

    id: str
    user_id: str
    template_id: str
    title: str
    status: ResumeStatus = ResumeStatus.DRAFT
    resume_data: Dict[str, Any] = Field(default_factory=dict)
    plan_type: PlanType = PlanType.FREE
    is_public: bool = False
    completion_percentage: int = Field(default=0, ge=0, le=100)
    views: int = Field(default=0, ge=0)
    downloads: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def is_active(self) -> bool:
        return self.status == ResumeStatus.COMPLETED
