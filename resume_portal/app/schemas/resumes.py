"""API schemas for resume endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..feature_gates.quota import TemplateUsageSummary
from ..resumes.models import PlanType, Resume, ResumeStatus


class ResumeCreateRequest(BaseModel):
    title: Optional[str] = None
    template_id: Optional[str] = Field(alias="templateId", default=None)
    resume_data: Optional[Dict[str, Any]] = Field(alias="resumeData", default=None)
    status: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class ResumeUpdateRequest(BaseModel):
    title: Optional[str] = None
    template_id: Optional[str] = Field(alias="templateId", default=None)
    resume_data: Optional[Dict[str, Any]] = Field(alias="resumeData", default=None)
    status: Optional[str] = None
    is_public: Optional[bool] = Field(alias="isPublic", default=None)

    model_config = ConfigDict(populate_by_name=True)


class ResumeOut(BaseModel):
    id: str
    user_id: str = Field(alias="userId")
    template_id: str = Field(alias="templateId")
    title: str
    status: ResumeStatus
    resume_data: Dict[str, Any] = Field(alias="resumeData", default_factory=dict)
    plan_type: PlanType = Field(alias="planType")
    is_public: bool = Field(alias="isPublic")
    completion_percentage: int = Field(alias="completionPercentage")
    views: int = 0
    downloads: int = 0
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_resume(cls, resume: Resume) -> "ResumeOut":
        return cls(**resume.model_dump())


class ResumeListResponse(BaseModel):
    resumes: List[ResumeOut]
    count: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_resumes(cls, resumes: List[Resume]) -> "ResumeListResponse":
        items = [ResumeOut.from_resume(resume) for resume in resumes]
        return cls(resumes=items, count=len(items))


class TemplateUsageResponse(BaseModel):
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    unlimited: bool
    limit_reached: bool = Field(alias="limitReached")
    tracked: bool
    template_ids: List[str] = Field(alias="templateIds", default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_summary(cls, summary: TemplateUsageSummary) -> "TemplateUsageResponse":
        return cls(
            used=summary.used,
            limit=summary.limit,
            remaining=summary.remaining,
            unlimited=summary.unlimited,
            limit_reached=summary.limit_reached,
            tracked=summary.tracked,
            template_ids=list(summary.template_ids),
        )
