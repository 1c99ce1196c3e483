"""
Skill insight endpoints: how a candidate compares to one job, and which
skills are in demand across their recent matches.
"""

from fastapi import APIRouter, HTTPException, Path, Query, status

from app.core.config import settings
from app.log.logging import logger
from app.schemas.insights import SkillComparisonResponse, TrendsResponse
from app.services import insights_service


router = APIRouter(tags=["insights"])


@router.get(
    "/jobs/{match_id}/skills",
    response_model=SkillComparisonResponse,
    summary="Compare Skills",
    description="Matched, partial and missing skills of the current user for one job.",
)
async def compare_skills(match_id: str = Path(..., description="Match id")):
    try:
        comparison = await insights_service.compare_match_skills(match_id)
    except Exception:
        logger.exception("Skill comparison failed", match_id=match_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )

    if comparison is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return comparison


@router.get(
    "/skills/trends",
    response_model=TrendsResponse,
    summary="Skill Demand Trends",
    description="Skill demand across the most recent matches of the current user.",
)
async def skill_trends(
    limit: int = Query(settings.trends_matches_limit, ge=1, le=200, description="Number of recent matches"),
):
    try:
        return await insights_service.skill_trends(limit=limit)
    except Exception:
        logger.exception("Skill trends failed", limit=limit)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )
