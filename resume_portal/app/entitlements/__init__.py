"""Template entitlement domain: plans, templates, usage ledger and evaluator."""

from .catalog import PLAN_CATALOG, PlanDefinition, get_plan_definition
from .evaluator import EntitlementEvaluator
from .exceptions import PlanConfigurationError
from .ledger import InMemoryUsageLedger, UsageLedger
from .models import (
    Allowed,
    BillingCycle,
    DenialCode,
    Denied,
    EntitlementDecision,
    InsertOutcome,
    Plan,
    PlanFeatures,
    PlanName,
    Template,
    UsageRecord,
)
from .resolver import (
    InMemoryPlanRepository,
    PlanRepository,
    PlanResolver,
    ResolvedPlan,
    UserPlanAssignment,
)

__all__ = [
    "PLAN_CATALOG",
    "PlanDefinition",
    "get_plan_definition",
    "EntitlementEvaluator",
    "PlanConfigurationError",
    "InMemoryUsageLedger",
    "UsageLedger",
    "Allowed",
    "BillingCycle",
    "DenialCode",
    "Denied",
    "EntitlementDecision",
    "InsertOutcome",
    "Plan",
    "PlanFeatures",
    "PlanName",
    "Template",
    "UsageRecord",
    "InMemoryPlanRepository",
    "PlanRepository",
    "PlanResolver",
    "ResolvedPlan",
    "UserPlanAssignment",
]
