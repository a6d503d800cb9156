"""Errors raised by the entitlement domain."""
from __future__ import annotations


class PlanConfigurationError(Exception):
    """Raised when a plan is missing or its feature map cannot be interpreted.

    This signals a data-integrity problem with the stored plan rather than a
    user-facing denial, so callers surface it as a server error.
    """

    def __init__(self, message: str, *, plan_name: str | None = None) -> None:
        self.plan_name = plan_name
        super().__init__(message)
