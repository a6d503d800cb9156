"""Feature gating utilities coordinating entitlement enforcement."""
from .exceptions import FeatureGateError
from .quota import TemplateUsageSummary, summarize_template_usage
from .resume_limits import check_active_resume_limit

__all__ = [
    "FeatureGateError",
    "TemplateUsageSummary",
    "check_active_resume_limit",
    "summarize_template_usage",
]
