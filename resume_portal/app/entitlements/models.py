"""Domain models for plans, templates and template entitlement decisions."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import PlanConfigurationError


class PlanName(str, Enum):
    """Canonical subscription tiers."""

    FREE = "FREE"
    PREMIUM = "PREMIUM"
    PRO = "PRO"

    @classmethod
    def parse(cls, value: Any) -> Optional["PlanName"]:
        """Return the matching tier, or ``None`` for empty or unknown names."""

        if value is None or value == "":
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class BillingCycle(str, Enum):
    """Billing frequencies a plan can be sold with."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one-time"


def _normalize_limit(value: Any) -> Optional[int]:
    """Coerce a stored limit into an int, with ``None`` meaning unlimited."""

    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("limit must be a number or 'unlimited'")
    if isinstance(value, str):
        stripped = value.strip().lower()
        if stripped == "unlimited":
            return None
        try:
            value = int(stripped)
        except ValueError as exc:
            raise ValueError(f"limit must be a number or 'unlimited', got {value!r}") from exc
    if isinstance(value, float):
        value = int(value)
    if not isinstance(value, int):
        raise ValueError(f"limit must be a number or 'unlimited', got {value!r}")
    if value < 0:
        return None
    return value


class PlanFeatures(BaseModel):
    """Typed feature map attached to a plan.

    ``max_free_templates`` and ``resume_download_limit`` use ``None`` as the
    explicit unlimited sentinel. Stored documents may express unlimited as
    ``-1`` or ``"unlimited"``; both normalise to ``None``.
    """

    resume_create_unlimited: bool = Field(default=False, alias="resumeCreateUnlimited")
    max_free_templates: Optional[int] = Field(default=3, alias="maxFreeTemplates")
    premium_templates_access: bool = Field(default=False, alias="premiumTemplatesAccess")
    resume_export_pdf: bool = Field(default=True, alias="resumeExportPdf")
    resume_export_html: bool = Field(default=False, alias="resumeExportHtml")
    resume_download_limit: Optional[int] = Field(default=0, alias="resumeDownloadLimit")
    resume_share_url: bool = Field(default=True, alias="resumeShareUrl")
    resume_url_validity_days: int = Field(default=1, alias="resumeUrlValidityDays", ge=0)
    auto_apply_jobs: bool = Field(default=False, alias="autoApplyJobs")
    resume_analytics: bool = Field(default=False, alias="resumeAnalytics")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("max_free_templates", "resume_download_limit", mode="before")
    @classmethod
    def _validate_limit(cls, value: Any) -> Optional[int]:
        return _normalize_limit(value)

    @property
    def is_unlimited_templates(self) -> bool:
        return self.max_free_templates is None

    @property
    def template_limit(self) -> Optional[int]:
        return self.max_free_templates


class Plan(BaseModel):
    """Subscription plan as resolved for a request."""

    id: str
    name: PlanName
    is_active: bool = Field(default=True, alias="isActive")
    features: Optional[PlanFeatures] = None
    price: int = Field(default=0, ge=0)
    billing_cycle: BillingCycle = Field(default=BillingCycle.MONTHLY, alias="billingCycle")
    validity_days: int = Field(default=30, alias="validityDays", ge=0)
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_free_tier(self) -> bool:
        return self.features is None or self.features.premium_templates_access is not True

    @property
    def is_paid(self) -> bool:
        return self.name != PlanName.FREE

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Plan":
        """Parse a stored plan document, rejecting malformed feature maps."""

        if not isinstance(document, Mapping):
            raise PlanConfigurationError("Plan document is missing")
        plan_name = document.get("name")
        features = document.get("features")
        if not isinstance(features, Mapping):
            raise PlanConfigurationError(
                "Plan features are not properly configured", plan_name=plan_name
            )
        data = dict(document)
        if "id" not in data and "_id" in data:
            data["id"] = str(data.pop("_id"))
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise PlanConfigurationError(
                f"Plan {plan_name!r} failed validation: {exc.error_count()} error(s)",
                plan_name=plan_name,
            ) from exc


class Template(BaseModel):
    """Resume template as stored by administrators."""

    id: str
    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    is_premium: bool = Field(default=False, alias="isPremium")
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def label(self) -> str:
        return self.display_name or self.name


class UsageRecord(BaseModel):
    """A single permanent grant of a free template to a user."""

    user_id: str
    template_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


class InsertOutcome(str, Enum):
    """Result of attempting to append a usage record."""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


class DenialCode(str, Enum):
    """Codes surfaced when an entitlement check blocks a request."""

    PREMIUM_TEMPLATE_LOCKED = "PREMIUM_TEMPLATE_LOCKED"
    FREE_TEMPLATE_LIMIT_REACHED = "FREE_TEMPLATE_LIMIT_REACHED"
    PLAN_RESUME_LIMIT_REACHED = "PLAN_RESUME_LIMIT_REACHED"
    PLAN_INACTIVE = "PLAN_INACTIVE"


@dataclass(frozen=True)
class Allowed:
    """The request may proceed.

    ``recorded`` is true only when this evaluation appended a new usage record.
    """

    recorded: bool = False

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    """The request is blocked by a plan rule."""

    code: DenialCode
    details: Mapping[str, Any] = field(default_factory=dict)
    http_status_hint: int = 403

    @property
    def allowed(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "httpStatusHint": self.http_status_hint,
            "details": dict(self.details),
        }


EntitlementDecision = Union[Allowed, Denied]
