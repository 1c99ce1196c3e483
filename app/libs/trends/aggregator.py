"""
Demand aggregation over a batch of job matches.

Counts, for every distinct normalized skill, how many postings require it,
classifies it against the candidate's skills and buckets it into the skill
taxonomy. The report is recomputed from scratch on every call.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

from app.log.logging import logger
from app.libs.skills.comparison import (
    SkillStatus,
    candidate_profile,
    classify_skill,
    coverage_percentage,
)
from app.libs.skills.extraction import job_skills as default_job_skills
from app.libs.skills.normalization import normalize, variations
from app.libs.skills.taxonomy import SKILL_CATEGORIES, categorize
from app.utils.performance import performance_log
from app.utils.rounding import round_half_up


@dataclass
class DemandStat:
    """Demand of one normalized skill across the batch."""
    canonical_name: str
    demand_count: int
    demand_percent: int
    status: SkillStatus
    category: str

    def to_dict(self) -> dict:
        return {
            "canonicalName": self.canonical_name,
            "demandCount": self.demand_count,
            "demandPercent": self.demand_percent,
            "status": self.status.value,
            "category": self.category,
        }


@dataclass
class DemandSummary:
    total: int = 0
    matched: int = 0
    partial: int = 0
    missing: int = 0
    coverage: int = 0


@dataclass
class DemandReport:
    """Aggregation output. ``by_category`` is ordered by summed demand."""
    stats: List[DemandStat] = field(default_factory=list)
    by_category: "OrderedDict[str, List[DemandStat]]" = field(default_factory=OrderedDict)
    summary: DemandSummary = field(default_factory=DemandSummary)
    total_matches: int = 0


def demand_label(percent: int) -> str:
    """Bucket a demand percentage."""
    if percent >= 60:
        return "Very High"
    if percent >= 40:
        return "High"
    if percent >= 20:
        return "Moderate"
    return "Low"


def _count_demand(
    matches: Sequence[Any], job_skills: Callable[[Any], Sequence[str]]
) -> "OrderedDict[str, Tuple[str, int]]":
    """Normalized token -> (first raw spelling, number of matches requiring it)."""
    counts: "OrderedDict[str, Tuple[str, int]]" = OrderedDict()
    for match in matches:
        seen = set()
        for skill in job_skills(match) or ():
            if not isinstance(skill, str):
                continue
            token = normalize(skill)
            if not token or token in seen:
                continue
            seen.add(token)
            canonical, count = counts.get(token, (skill, 0))
            counts[token] = (canonical, count + 1)
    return counts


@performance_log
def aggregate(
    matches: Sequence[Any],
    candidate_skills: Sequence[str],
    job_skills: Callable[[Any], Sequence[str]] = default_job_skills,
    categories: Mapping[str, Tuple[str, ...]] = SKILL_CATEGORIES,
) -> DemandReport:
    """
    Aggregate skill demand over a batch of matches.

    Args:
        matches: Job matches of the batch
        candidate_skills: Raw skills of the candidate
        job_skills: Resolves the required skills of one match
        categories: Category lookup table

    Returns:
        DemandReport with sorted stats, category groups and a summary
    """
    report = DemandReport(total_matches=len(matches or ()))
    if not matches:
        return report

    counts = _count_demand(matches, job_skills)
    profile = candidate_profile(candidate_skills)

    stats = []
    for token, (canonical, count) in counts.items():
        stats.append(
            DemandStat(
                canonical_name=canonical,
                demand_count=count,
                demand_percent=round_half_up(count / report.total_matches * 100),
                status=classify_skill(token, variations(canonical), profile),
                category=categorize(canonical, categories),
            )
        )

    # sorted() is stable, so ties keep first-seen order
    report.stats = sorted(stats, key=lambda s: s.demand_count, reverse=True)

    groups: Dict[str, List[DemandStat]] = OrderedDict()
    for stat in report.stats:
        groups.setdefault(stat.category, []).append(stat)
    report.by_category = OrderedDict(
        sorted(
            groups.items(),
            key=lambda item: sum(s.demand_count for s in item[1]),
            reverse=True,
        )
    )

    matched = sum(1 for s in report.stats if s.status is SkillStatus.MATCHED)
    partial = sum(1 for s in report.stats if s.status is SkillStatus.PARTIAL)
    total = len(report.stats)
    report.summary = DemandSummary(
        total=total,
        matched=matched,
        partial=partial,
        missing=total - matched - partial,
        coverage=coverage_percentage(matched, partial, total),
    )

    logger.debug(
        "Demand aggregated",
        total_matches=report.total_matches,
        distinct_skills=total,
        coverage=report.summary.coverage,
    )
    return report
