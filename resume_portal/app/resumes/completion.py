"""Resume completion scoring."""
from __future__ import annotations

from typing import Any, Mapping

COMPLETION_SECTIONS = (
    "personalDetails",
    "professionalSummary",
    "workExperience",
    "education",
    "skills",
    "certifications",
    "projects",
    "languages",
)


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _personal_block(data: Mapping[str, Any]) -> Mapping[str, Any]:
    personal = data.get("personalInfo") or data.get("personalDetails")
    return personal if isinstance(personal, Mapping) else {}


def _section_complete(section: str, data: Mapping[str, Any]) -> bool:
    if section == "personalDetails":
        personal = _personal_block(data)
        return bool(personal.get("fullName")) and bool(personal.get("email"))
    if section == "professionalSummary":
        summary_block = data.get("professionalSummary")
        summary = summary_block.get("summary") if isinstance(summary_block, Mapping) else None
        summary = summary or data.get("summary") or _personal_block(data).get("profileSummary")
        return isinstance(summary, str) and bool(summary.strip())
    if section == "workExperience":
        return _non_empty_list(data.get("workExperience") or data.get("experience"))
    if section == "skills":
        skills = data.get("skills")
        if _non_empty_list(skills):
            return True
        if isinstance(skills, Mapping):
            return _non_empty_list(skills.get("technical")) or _non_empty_list(skills.get("primarySkills"))
        return False
    if section == "languages":
        languages = data.get("languages")
        if languages is None and isinstance(data.get("skills"), Mapping):
            languages = data["skills"].get("languages")
        return _non_empty_list(languages)
    return _non_empty_list(data.get(section))


def calculate_completion(resume_data: Mapping[str, Any] | None) -> int:
    """Percentage of the standard resume sections that contain content."""

    if not resume_data:
        return 0
    completed = sum(1 for section in COMPLETION_SECTIONS if _section_complete(section, resume_data))
    # half-up rounding; round() would send 62.5 to 62
    return int(completed * 100 / len(COMPLETION_SECTIONS) + 0.5)
