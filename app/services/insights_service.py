"""
Skill insights for the candidate: per-job skill comparison and skill demand
trends over recent matches.
"""

from typing import List, Optional

from app.core.config import settings
from app.log.logging import logger
from app.libs.skills.comparison import SkillComparison, compare_skills
from app.libs.skills.extraction import job_skills
from app.libs.trends.aggregator import DemandReport, DemandStat, aggregate, demand_label
from app.schemas.insights import (
    CategoryGroupSchema,
    DemandStatSchema,
    DemandSummarySchema,
    SkillComparisonResponse,
    TrendsResponse,
)
from app.services import search_service
from app.tasks.search_store import ProfileStore


async def candidate_skills(user_id: str) -> List[str]:
    """Skills of the user's latest parsed CV, empty when no CV was parsed."""
    profile = await ProfileStore.get_profile(user_id)
    if profile is None:
        logger.debug("No CV profile for user", user_id=user_id)
        return []
    return list(profile.skills)


def improvement_tips(comparison: SkillComparison) -> List[str]:
    """Suggestions shown when the candidate is missing required skills."""
    if not comparison.missing:
        return []
    return [
        f"Consider taking online courses for {' and '.join(comparison.missing[:2])}",
        "Highlight transferable skills in your application",
        "Add relevant projects to your portfolio",
    ]


async def compare_match_skills(
    match_id: str, user_id: str = settings.default_user_id
) -> Optional[SkillComparisonResponse]:
    """
    Compare the user's CV skills with the skills a match requires.

    Returns:
        SkillComparisonResponse, or None when the match is unknown
    """
    match = await search_service.get_match(match_id, user_id)
    if match is None:
        return None

    comparison = compare_skills(await candidate_skills(user_id), job_skills(match))
    return SkillComparisonResponse(
        match_id=match.id,
        matched=comparison.matched,
        partial=comparison.partial,
        missing=comparison.missing,
        match_percentage=comparison.match_percentage,
        total=comparison.total,
        tips=improvement_tips(comparison),
    )


def _stat_schema(stat: DemandStat) -> DemandStatSchema:
    return DemandStatSchema(
        canonical_name=stat.canonical_name,
        demand_count=stat.demand_count,
        demand_percent=stat.demand_percent,
        status=stat.status.value,
        category=stat.category,
        demand_label=demand_label(stat.demand_percent),
    )


def trends_response(report: DemandReport) -> TrendsResponse:
    """Wire form of a demand report."""
    return TrendsResponse(
        total_matches=report.total_matches,
        stats=[_stat_schema(s) for s in report.stats],
        by_category=[
            CategoryGroupSchema(
                category=category,
                total_demand=sum(s.demand_count for s in stats),
                skills=[_stat_schema(s) for s in stats],
            )
            for category, stats in report.by_category.items()
        ],
        summary=DemandSummarySchema(
            total=report.summary.total,
            matched=report.summary.matched,
            partial=report.summary.partial,
            missing=report.summary.missing,
            coverage=report.summary.coverage,
        ),
    )


async def skill_trends(
    user_id: str = settings.default_user_id,
    limit: int = settings.trends_matches_limit,
) -> TrendsResponse:
    """Skill demand over the user's most recent matches."""
    matches = await search_service.list_matches(user_id=user_id, limit=limit)
    report = aggregate(matches, await candidate_skills(user_id))
    return trends_response(report)
