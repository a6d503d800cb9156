"""Storage interfaces for resumes and templates."""
from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional, Protocol

from ..entitlements.models import Template
from .models import Resume, ResumeStatus


class ResumeStore(Protocol):
    """Persistence operations required by the resume service."""

    def create_resume(self, resume: Resume) -> Resume:
        ...

    def get_resume(self, resume_id: str) -> Optional[Resume]:
        ...

    def list_resumes(self, user_id: str, *, status: Optional[ResumeStatus] = None) -> List[Resume]:
        ...

    def save_resume(self, resume: Resume) -> Resume:
        ...

    def delete_resume(self, resume_id: str) -> bool:
        ...

    def count_active_resumes(self, user_id: str, *, exclude_resume_id: Optional[str] = None) -> int:
        ...


class TemplateStore(Protocol):
    """Read access to administrator-managed templates."""

    def get_template(self, template_id: str) -> Optional[Template]:
        ...


class InMemoryResumeStore:
    def __init__(self) -> None:
        self._resumes: Dict[str, Resume] = {}
        self._lock = Lock()

    def create_resume(self, resume: Resume) -> Resume:
        with self._lock:
            if resume.id in self._resumes:
                raise ValueError(f"Resume {resume.id} already exists")
            self._resumes[resume.id] = resume
        return resume

    def get_resume(self, resume_id: str) -> Optional[Resume]:
        return self._resumes.get(resume_id)

    def list_resumes(self, user_id: str, *, status: Optional[ResumeStatus] = None) -> List[Resume]:
        matching = [
            resume
            for resume in self._resumes.values()
            if resume.user_id == user_id and (status is None or resume.status == status)
        ]
        return sorted(matching, key=lambda resume: resume.updated_at, reverse=True)

    def save_resume(self, resume: Resume) -> Resume:
        with self._lock:
            self._resumes[resume.id] = resume
        return resume

    def delete_resume(self, resume_id: str) -> bool:
        with self._lock:
            return self._resumes.pop(resume_id, None) is not None

    def count_active_resumes(self, user_id: str, *, exclude_resume_id: Optional[str] = None) -> int:
        return sum(
            1
            for resume in self._resumes.values()
            if resume.user_id == user_id
            and resume.status == ResumeStatus.COMPLETED
            and resume.id != exclude_resume_id
        )


class InMemoryTemplateStore:
    def __init__(self, templates: Optional[List[Template]] = None) -> None:
        self._templates: Dict[str, Template] = {}
        for template in templates or []:
            self.add(template)

    def add(self, template: Template) -> None:
        self._templates[template.id] = template

    def get_template(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)
