"""Template entitlement decisions backed by the usage ledger."""
from __future__ import annotations

import logging
from typing import Optional

from ..feature_gates.quota import TemplateUsageSummary, summarize_template_usage
from .exceptions import PlanConfigurationError
from .ledger import UsageLedger
from .models import (
    Allowed,
    DenialCode,
    Denied,
    EntitlementDecision,
    InsertOutcome,
    Plan,
    PlanFeatures,
    Template,
)

logger = logging.getLogger(__name__)

DEFAULT_UPGRADE_URL = "/user/pricing"


def _require_features(plan: Optional[Plan]) -> PlanFeatures:
    if plan is None:
        raise PlanConfigurationError("No plan resolved for request")
    if not isinstance(plan.features, PlanFeatures):
        raise PlanConfigurationError(
            "Plan features are not properly configured", plan_name=plan.name.value
        )
    return plan.features


def _limits_free_templates(plan: Plan, features: PlanFeatures) -> bool:
    return plan.is_free_tier and features.resume_create_unlimited is not True


class EntitlementEvaluator:
    """Decides whether a user may use a template under their plan.

    The premium rule is checked first and never consults usage history. The
    free-template limit only applies to non-premium templates on free-tier
    plans without unlimited resume creation. A newly granted template is
    appended to the ledger; the ledger's uniqueness constraint collapses
    concurrent grants for the same pair into one record, so the count check
    and the insert are not wrapped in a transaction.
    """

    def __init__(self, ledger: UsageLedger, *, upgrade_url: str = DEFAULT_UPGRADE_URL) -> None:
        self._ledger = ledger
        self._upgrade_url = upgrade_url

    def evaluate(self, user_id: str, plan: Optional[Plan], template: Template) -> EntitlementDecision:
        features = _require_features(plan)

        if template.is_premium and features.premium_templates_access is not True:
            logger.info(
                "Premium template %s locked for user %s on plan %s",
                template.id,
                user_id,
                plan.name.value,
            )
            return Denied(
                code=DenialCode.PREMIUM_TEMPLATE_LOCKED,
                details={
                    "templateName": template.label or "Premium template",
                    "upgradeMessage": (
                        "This premium template requires a PRO plan. Upgrade to PRO to "
                        "access all premium templates and features."
                    ),
                    "upgradeUrl": self._upgrade_url,
                },
            )

        if template.is_premium or not _limits_free_templates(plan, features):
            return Allowed()

        if self._ledger.exists(user_id, template.id):
            return Allowed()

        limit = features.template_limit
        if limit is None:
            return Allowed()

        used = self._ledger.count_for_user(user_id)
        if used >= limit:
            logger.info(
                "Free template limit reached user=%s used=%s limit=%s template=%s",
                user_id,
                used,
                limit,
                template.id,
            )
            return Denied(
                code=DenialCode.FREE_TEMPLATE_LIMIT_REACHED,
                details={
                    "limit": limit,
                    "used": used,
                    "maxFreeTemplates": limit,
                    "usedTemplates": used,
                    "upgradeMessage": (
                        f"You have reached the maximum free template limit ({limit} templates). "
                        "Upgrade to PRO to unlock unlimited templates and premium features."
                    ),
                    "upgradeUrl": self._upgrade_url,
                },
            )

        outcome = self._ledger.try_insert(user_id, template.id)
        if outcome is InsertOutcome.ALREADY_EXISTS:
            logger.debug(
                "Concurrent grant already recorded user=%s template=%s", user_id, template.id
            )
            return Allowed()
        logger.info(
            "Granted free template %s to user %s (%s/%s)", template.id, user_id, used + 1, limit
        )
        return Allowed(recorded=True)

    def usage_summary(self, user_id: str, plan: Optional[Plan]) -> TemplateUsageSummary:
        """Report the user's free-template consumption against their plan."""

        features = _require_features(plan)
        template_ids = self._ledger.list_template_ids(user_id)
        tracked = _limits_free_templates(plan, features)
        limit = features.template_limit if tracked else None
        return summarize_template_usage(
            used=len(template_ids),
            limit=limit,
            template_ids=template_ids,
            tracked=tracked,
        )
