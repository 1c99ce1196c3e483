"""
Skill category taxonomy.

A fixed category -> member table used to bucket aggregated skills. The
lookup is substring tolerant: a skill belongs to the first category holding a
member that equals it, is contained in it or contains it.
"""

from types import MappingProxyType
from typing import Mapping, Tuple


OTHER_CATEGORY = "Other"

SKILL_CATEGORIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Frontend": (
        "react", "vue", "angular", "nextjs", "next.js", "html", "css",
        "tailwind", "sass", "scss",
    ),
    "Backend": (
        "nodejs", "node.js", "python", "java", "go", "golang", "rust", "c#",
        ".net", "django", "flask", "fastapi", "spring",
    ),
    "Database": (
        "sql", "postgresql", "mysql", "mongodb", "redis", "elasticsearch",
        "nosql",
    ),
    "Cloud & DevOps": (
        "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "ci/cd",
        "jenkins", "github actions",
    ),
    "Languages": (
        "javascript", "typescript", "python", "java", "go", "rust", "c++",
        "kotlin",
    ),
    "AI & Data": ("machine learning", "ai", "tensorflow", "pytorch"),
    "Testing": ("jest", "cypress", "playwright", "vitest", "testing"),
    OTHER_CATEGORY: (
        "graphql", "rest api", "grpc", "microservices", "agile", "scrum",
        "git", "linux", "bash", "figma",
    ),
})


def categorize(skill: str, categories: Mapping[str, Tuple[str, ...]] = SKILL_CATEGORIES) -> str:
    """
    Resolve the category of a skill.

    Args:
        skill: Raw skill spelling
        categories: Category -> member table, checked in insertion order

    Returns:
        str: Category name, ``"Other"`` when nothing matches
    """
    lower = skill.lower().strip()
    if not lower:
        return OTHER_CATEGORY

    for category, members in categories.items():
        if any(m == lower or m in lower or lower in m for m in members):
            return category
    return OTHER_CATEGORY
