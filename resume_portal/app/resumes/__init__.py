"""Resume domain models, storage and service."""

from .completion import calculate_completion
from .models import PlanType, Resume, ResumeStatus
from .service import ResumeService
from .store import InMemoryResumeStore, InMemoryTemplateStore, ResumeStore, TemplateStore

__all__ = [
    "calculate_completion",
    "PlanType",
    "Resume",
    "ResumeStatus",
    "ResumeService",
    "InMemoryResumeStore",
    "InMemoryTemplateStore",
    "ResumeStore",
    "TemplateStore",
]
