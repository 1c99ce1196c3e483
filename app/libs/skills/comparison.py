"""
Fuzzy skill comparison between a candidate and a job.

Every skill is compared through its variation set so casing, punctuation and
known aliases do not produce false gaps. A job skill is classified as

* matched  - a candidate variation set shares a token with the job's set
* partial  - a candidate token is a substring of the job token or vice versa
* missing  - neither

Partial matches count for half in the match percentage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from app.libs.skills.normalization import normalize, normalized_pair
from app.utils.rounding import round_half_up


PARTIAL_CREDIT = 0.5


class SkillStatus(str, Enum):
    """Relationship of a required skill to the candidate's skills."""
    MATCHED = "matched"
    PARTIAL = "partial"
    MISSING = "missing"


@dataclass
class SkillComparison:
    """Per-job comparison result. Derived on demand, never stored."""
    matched: List[str] = field(default_factory=list)
    partial: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    match_percentage: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {
            "matched": list(self.matched),
            "partial": list(self.partial),
            "missing": list(self.missing),
            "matchPercentage": self.match_percentage,
            "total": self.total,
        }


CandidateProfile = List[Tuple[str, FrozenSet[str]]]


def candidate_profile(candidate_skills: Sequence[str]) -> CandidateProfile:
    """Precompute ``(token, variations)`` for each candidate skill, dropping empty tokens."""
    profile = []
    for skill in candidate_skills or ():
        token, tokens = normalized_pair(skill)
        if token:
            profile.append((token, tokens))
    return profile


def classify_skill(token: str, tokens: FrozenSet[str], profile: CandidateProfile) -> SkillStatus:
    """
    Classify one required skill against the whole candidate profile.

    Args:
        token: Normalized form of the required skill
        tokens: Variation set of the required skill
        profile: Output of :func:`candidate_profile`

    Returns:
        SkillStatus: matched beats partial beats missing
    """
    partial = False
    for candidate_token, candidate_tokens in profile:
        if candidate_tokens & tokens:
            return SkillStatus.MATCHED
        if candidate_token in token or token in candidate_token:
            partial = True
    return SkillStatus.PARTIAL if partial else SkillStatus.MISSING


def coverage_percentage(matched: int, partial: int, total: int) -> int:
    """``round((matched + 0.5 * partial) / total * 100)``, 0 for an empty set."""
    if total <= 0:
        return 0
    return round_half_up((matched + partial * PARTIAL_CREDIT) / total * 100)


def dedupe_skills(skills: Sequence[str]) -> Dict[str, str]:
    """Normalized token -> first raw spelling, in first-seen order."""
    unique: Dict[str, str] = {}
    for skill in skills or ():
        if not isinstance(skill, str):
            continue
        token = normalize(skill)
        if token and token not in unique:
            unique[token] = skill
    return unique


def compare_skills(
    candidate_skills: Sequence[str],
    job_skills: Sequence[str],
    order: Optional[Sequence[str]] = None,
) -> SkillComparison:
    """
    Compare a candidate's skills with the skills a job requires.

    Args:
        candidate_skills: Raw skills of the candidate
        job_skills: Raw skills required by the job, duplicates allowed
        order: Optional demand-weighted ordering (raw spellings); job skills
            listed there come first in that order, the rest keep insertion order

    Returns:
        SkillComparison: Classified skills and the match percentage
    """
    unique = dedupe_skills(job_skills)
    tokens = list(unique)

    if order:
        rank = {}
        for position, skill in enumerate(order):
            rank.setdefault(normalize(skill), position)
        tokens.sort(key=lambda t: rank.get(t, len(rank)))

    profile = candidate_profile(candidate_skills)
    result = SkillComparison(total=len(tokens))

    for token in tokens:
        _, job_tokens = normalized_pair(unique[token])
        status = classify_skill(token, job_tokens, profile)
        if status is SkillStatus.MATCHED:
            result.matched.append(unique[token])
        elif status is SkillStatus.PARTIAL:
            result.partial.append(unique[token])
        else:
            result.missing.append(unique[token])

    result.match_percentage = coverage_percentage(
        len(result.matched), len(result.partial), result.total
    )
    return result
