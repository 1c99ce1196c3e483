"""
Job search router.

Searches are started here and polled by id until they resolve. Once a search
completed its matches can be re-ranked with a semantic signal.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Path, Response, status
from pydantic import ValidationError

from app.log.logging import logger
from app.schemas.insights import SemanticRankRequest, SemanticRankResponse
from app.schemas.job_match import JobDetailResponse
from app.schemas.search import SearchCreateRequest, SearchCreateResponse, SearchStatusResponse
from app.services import search_service
from app.services.reranking_service import semantic_ranker
from app.services.search_service import SearchNotFound


router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    responses={
        400: {"description": "Invalid request"},
        404: {"description": "Search or match not found"},
        500: {"description": "Internal server error"},
    },
)


@router.post(
    "/search",
    response_model=SearchCreateResponse,
    summary="Start Job Search",
    description="Creates a search and returns its id for polling.",
)
async def start_search(response: Response, body: Dict[str, Any] = Body(...)):
    """
    Start a job search.

    The search is resolved asynchronously by the search workflow; when the
    workflow is unreachable and the demo fallback is enabled, it is resolved
    immediately and the response already carries ``status: completed``.
    """
    try:
        request = SearchCreateRequest.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required")

    try:
        logger.info("Search requested", query=request.query)
        result = await search_service.start_search(request.query, request.filters)
    except Exception:
        logger.exception("Job search failed", query=request.query)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )

    if not result.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result


@router.get(
    "/search/{search_id}",
    response_model=SearchStatusResponse,
    summary="Check Search Status",
    description="Status of a search, with its matches once completed.",
)
async def get_search_status(
    search_id: str = Path(..., description="Search id returned when the search was started"),
):
    try:
        return await search_service.get_search_status(search_id)
    except SearchNotFound:
        logger.warning("Search not found", search_id=search_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Search {search_id} not found.",
        )
    except Exception:
        logger.exception("Failed to read search status", search_id=search_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )


@router.post(
    "/semantic-rank",
    response_model=SemanticRankResponse,
    summary="Re-rank Search Matches",
    description="Blends a semantic similarity score into the matches of a search.",
)
async def semantic_rank(body: Dict[str, Any] = Body(...)):
    try:
        request = SemanticRankRequest.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="searchId is required")

    try:
        result = await semantic_ranker.rank(request.search_id, request.query)
    except Exception:
        logger.exception("Semantic rank failed", search_id=request.search_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )

    return SemanticRankResponse(method=result.method, updated=result.updated, scores=result.scores)


@router.get(
    "/{match_id}",
    response_model=JobDetailResponse,
    summary="Get Match",
    description="A single job match of the current user.",
)
async def get_match(match_id: str = Path(..., description="Match id")):
    match = await search_service.get_match(match_id)
    if match is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return JobDetailResponse(job=match)
