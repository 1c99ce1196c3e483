"""
Required-skill extraction for job postings.

Structured gap analysis wins when present; otherwise skills are picked out of
the free-text description by looking for a fixed vocabulary.
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence


COMMON_SKILLS: Sequence[str] = (
    "JavaScript", "TypeScript", "React", "Vue", "Angular", "Next.js", "Node.js",
    "Python", "Django", "Flask", "FastAPI", "Java", "Spring", "Kotlin",
    "Go", "Golang", "Rust", "C++", "C#", ".NET",
    "SQL", "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Terraform",
    "GraphQL", "REST API", "gRPC", "Microservices",
    "Git", "CI/CD", "Jenkins", "GitHub Actions",
    "HTML", "CSS", "Tailwind", "Sass", "SCSS",
    "Testing", "Jest", "Cypress", "Playwright", "Vitest",
    "Agile", "Scrum", "Jira", "Figma",
    "Machine Learning", "AI", "TensorFlow", "PyTorch",
    "NoSQL", "Linux", "Bash", "Shell",
)


def extract_skills_from_description(
    description: Optional[str],
    vocabulary: Sequence[str] = COMMON_SKILLS,
) -> List[str]:
    """Return the vocabulary entries mentioned in ``description`` (case-insensitive)."""
    if not description:
        return []

    lower = description.lower()
    return [skill for skill in vocabulary if skill.lower() in lower]


def required_skills(gap_analysis: Any) -> List[str]:
    """Read ``requiredSkills`` from a gap analysis model or raw mapping."""
    if gap_analysis is None:
        return []
    if isinstance(gap_analysis, Mapping):
        skills = gap_analysis.get("requiredSkills") or gap_analysis.get("required_skills")
    else:
        skills = getattr(gap_analysis, "required_skills", None)
    if not isinstance(skills, (list, tuple)):
        return []
    return [s for s in skills if isinstance(s, str)]


def get_job_skills(gap_analysis: Any, description: Optional[str]) -> List[str]:
    """
    Resolve the required skills of a posting.

    Args:
        gap_analysis: Structured hint data attached to the match, if any
        description: Posting description used when no hint data exists

    Returns:
        List[str]: Raw skill spellings, in source order
    """
    skills = required_skills(gap_analysis)
    if skills:
        return skills
    return extract_skills_from_description(description)


def job_skills(match: Any) -> List[str]:
    """Required skills of a ``JobMatch``."""
    return get_job_skills(
        getattr(match, "gap_analysis", None), getattr(match, "description", None)
    )
