"""Static catalog of the default subscription plans."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .models import BillingCycle, Plan, PlanFeatures, PlanName


@dataclass(frozen=True)
class PlanDefinition:
    """Describes a default plan used to seed or repair plan storage."""

    name: PlanName
    display_name: str
    price: int
    billing_cycle: BillingCycle
    features: PlanFeatures
    validity_days: int = 30
    description: str = ""

    def to_plan(self, plan_id: str, *, max_free_templates: Optional[int] = None) -> Plan:
        features = self.features
        if max_free_templates is not None:
            limit = max_free_templates if max_free_templates >= 0 else None
            features = features.model_copy(update={"max_free_templates": limit})
        return Plan(
            id=plan_id,
            name=self.name,
            is_active=True,
            features=features,
            price=self.price,
            billing_cycle=self.billing_cycle,
            validity_days=self.validity_days,
            description=self.description,
        )


FREE_FEATURES = PlanFeatures(
    resume_create_unlimited=False,
    max_free_templates=3,
    premium_templates_access=False,
    resume_export_pdf=True,
    resume_export_html=False,
    resume_download_limit=0,
    resume_share_url=True,
    resume_url_validity_days=1,
)

PRO_FEATURES = PlanFeatures(
    resume_create_unlimited=True,
    max_free_templates=None,
    premium_templates_access=True,
    resume_export_pdf=True,
    resume_export_html=True,
    resume_download_limit=None,
    resume_share_url=True,
    resume_url_validity_days=60,
    auto_apply_jobs=True,
    resume_analytics=True,
)

PREMIUM_FEATURES = PRO_FEATURES.model_copy(
    update={"resume_url_validity_days": 30, "auto_apply_jobs": False}
)

PLAN_CATALOG: Dict[PlanName, PlanDefinition] = {
    PlanName.FREE: PlanDefinition(
        name=PlanName.FREE,
        display_name="Free",
        price=0,
        billing_cycle=BillingCycle.MONTHLY,
        features=FREE_FEATURES,
        validity_days=0,
        description="Free plan with basic features",
    ),
    PlanName.PREMIUM: PlanDefinition(
        name=PlanName.PREMIUM,
        display_name="Premium",
        price=499,
        billing_cycle=BillingCycle.MONTHLY,
        features=PREMIUM_FEATURES,
        description="Premium templates and unlimited resumes",
    ),
    PlanName.PRO: PlanDefinition(
        name=PlanName.PRO,
        display_name="Pro",
        price=999,
        billing_cycle=BillingCycle.MONTHLY,
        features=PRO_FEATURES,
        description="All features including premium templates, exports and analytics",
    ),
}


def get_plan_definition(name: PlanName) -> PlanDefinition:
    """Return a plan definition, raising if unsupported."""

    try:
        return PLAN_CATALOG[PlanName(name)]
    except (KeyError, ValueError) as exc:
        raise KeyError(f"Unknown plan name: {name}") from exc
