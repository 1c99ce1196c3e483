"""
Skill normalization and comparison engine.
"""

from app.libs.skills.normalization import SKILL_VARIATIONS, normalize, variations
from app.libs.skills.comparison import (
    SkillComparison,
    SkillStatus,
    classify_skill,
    compare_skills,
    coverage_percentage,
)
from app.libs.skills.extraction import (
    COMMON_SKILLS,
    extract_skills_from_description,
    get_job_skills,
    job_skills,
)
from app.libs.skills.taxonomy import OTHER_CATEGORY, SKILL_CATEGORIES, categorize

__all__ = [
    "SKILL_VARIATIONS",
    "normalize",
    "variations",
    "SkillComparison",
    "SkillStatus",
    "classify_skill",
    "compare_skills",
    "coverage_percentage",
    "COMMON_SKILLS",
    "extract_skills_from_description",
    "get_job_skills",
    "job_skills",
    "OTHER_CATEGORY",
    "SKILL_CATEGORIES",
    "categorize",
]
