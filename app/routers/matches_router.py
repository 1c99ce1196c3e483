from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.core.config import settings
from app.log.logging import logger
from app.schemas.job_match import MatchesResponse
from app.services import search_service


router = APIRouter(prefix="/matches", tags=["matches"])


@router.get(
    "",
    response_model=MatchesResponse,
    summary="List Matches",
    description="Matches of the current user, newest first.",
)
async def list_matches(
    search_id: Optional[str] = Query(None, alias="searchId", description="Only matches of this search"),
    limit: int = Query(settings.matches_default_limit, ge=1, le=100, description="Maximum number of matches"),
):
    try:
        matches = await search_service.list_matches(search_id=search_id, limit=limit)
    except Exception:
        logger.exception("Failed to list matches", search_id=search_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )
    return MatchesResponse(matches=matches)
