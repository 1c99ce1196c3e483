"""
Server side of the search lifecycle.

A search is created ``pending`` and handed to the ``job-search`` workflow; the
workflow reports its matches back through the webhook, which completes the
search. When the workflow cannot be reached the demo fallback resolves the
search synchronously with canned matches.
"""

import uuid
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.log.logging import logger
from app.libs.search.match_validator import match_validator
from app.schemas.job_match import JobMatch
from app.schemas.search import SearchCreateResponse, SearchStatus, SearchStatusResponse
from app.schemas.webhook import CVParsedPayload, JobMatchesPayload
from app.services.workflow_client import WorkflowClient, workflow_client
from app.tasks.search_store import CVProfile, ProfileStore, SearchStore


JOB_SEARCH_WORKFLOW = "job-search"

DEFAULT_TOP_SCORE = 95
DEFAULT_SCORE_STEP = 5
DEFAULT_SCORE_FLOOR = 50


class SearchNotFound(LookupError):
    """Raised when a search id is unknown."""


def default_keyword_score(index: int) -> int:
    """Keyword score assigned to the ``index``-th workflow match that carries none."""
    return max(DEFAULT_TOP_SCORE - DEFAULT_SCORE_STEP * index, DEFAULT_SCORE_FLOOR)


def demo_matches(query: str) -> List[Dict[str, Any]]:
    """Canned matches used when the search workflow is unreachable."""
    return [
        {
            "title": f"Senior {query} Developer",
            "company": "Tech Giant Corp",
            "location": "Remote",
            "salary": "$140k - $180k",
            "postedDate": "Just now",
            "description": (
                f"We are looking for a Senior {query} Developer to join our engineering team. "
                "You will be responsible for building scalable applications using modern technologies.\n\n"
                "Requirements:\n"
                "- 5+ years of experience with JavaScript and TypeScript\n"
                "- Strong experience with React and Next.js\n"
                "- Experience with Node.js and REST APIs\n"
                "- Familiarity with PostgreSQL and MongoDB\n"
                "- Experience with AWS or cloud platforms\n"
                "- Knowledge of Docker and CI/CD pipelines\n\n"
                "Nice to have:\n"
                "- Experience with GraphQL\n"
                "- Knowledge of Kubernetes\n"
                "- Experience with testing frameworks like Jest or Vitest"
            ),
            "keywordScore": 85,
            "gapAnalysis": {
                "requiredSkills": [
                    "JavaScript", "TypeScript", "React", "Next.js", "Node.js",
                    "PostgreSQL", "MongoDB", "AWS", "Docker", "CI/CD",
                ],
                "niceToHaveSkills": ["GraphQL", "Kubernetes", "Jest", "Vitest"],
            },
        },
        {
            "title": f"Lead {query} Engineer",
            "company": "StartupAI",
            "location": "New York, NY",
            "salary": "$160k - $210k",
            "postedDate": "2 hours ago",
            "description": (
                f"Join our fast-growing AI startup as a Lead {query} Engineer. "
                "You'll architect solutions and mentor junior developers.\n\n"
                "Requirements:\n"
                "- 7+ years of software development experience\n"
                "- Expert in Python and JavaScript\n"
                "- Experience with React or Vue.js\n"
                "- Strong background in SQL and NoSQL databases\n"
                "- Experience with cloud infrastructure (GCP or AWS)\n\n"
                "Bonus points:\n"
                "- Machine learning experience\n"
                "- Experience with Terraform"
            ),
            "keywordScore": 72,
            "gapAnalysis": {
                "requiredSkills": ["Python", "JavaScript", "React", "Vue", "SQL", "NoSQL", "GCP", "AWS"],
                "niceToHaveSkills": ["Machine Learning", "Terraform", "Open Source"],
            },
        },
        {
            "title": f"{query} Full Stack Developer",
            "company": "FinTech Solutions",
            "location": "San Francisco, CA (Hybrid)",
            "salary": "$130k - $165k",
            "postedDate": "1 day ago",
            "description": (
                "FinTech Solutions is hiring a Full Stack Developer to build our "
                "next-generation financial platform.\n\n"
                "Must have:\n"
                "- 3+ years with TypeScript and React\n"
                "- Backend experience with Node.js or Python\n"
                "- Database experience with PostgreSQL\n"
                "- Understanding of REST APIs and microservices\n"
                "- Git version control\n\n"
                "Nice to have:\n"
                "- Knowledge of Tailwind CSS\n"
                "- Experience with Redis caching"
            ),
            "keywordScore": 65,
            "gapAnalysis": {
                "requiredSkills": ["TypeScript", "React", "Node.js", "Python", "PostgreSQL", "REST API", "Git"],
                "niceToHaveSkills": ["Tailwind", "Redis"],
            },
        },
    ]


def _with_ids(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [row if row.get("id") else {**row, "id": str(uuid.uuid4())} for row in rows]


async def start_search(
    query: str,
    filters: Optional[Dict[str, Any]] = None,
    user_id: str = settings.default_user_id,
    client: WorkflowClient = workflow_client,
    demo_fallback: Optional[bool] = None,
) -> SearchCreateResponse:
    """
    Create a search and hand it to the search workflow.

    Args:
        query: Non-empty free text query
        filters: Opaque filter bag forwarded to the workflow
        user_id: Owner of the search
        client: Workflow client
        demo_fallback: Overrides ``settings.search_demo_fallback``

    Returns:
        SearchCreateResponse: ``pending`` when the workflow accepted the
        search, ``completed`` when the demo fallback resolved it and
        ``success=False`` when it failed
    """
    if demo_fallback is None:
        demo_fallback = settings.search_demo_fallback

    search = await SearchStore.create_search(user_id, query, filters)

    result = await client.trigger(
        JOB_SEARCH_WORKFLOW,
        {"userId": user_id, "searchId": search.id, "query": query, "filters": filters},
    )
    if result.success:
        return SearchCreateResponse(
            success=True,
            message="Search initiated",
            search_id=search.id,
            status=SearchStatus.PENDING,
        )

    if not demo_fallback:
        await SearchStore.update_status(search.id, SearchStatus.FAILED)
        return SearchCreateResponse(
            success=False,
            message="Search failed",
            search_id=search.id,
            status=SearchStatus.FAILED,
            error=result.error or "Failed to start search",
        )

    logger.warning(
        "Search workflow unavailable, resolving with demo matches",
        search_id=search.id,
        error=result.error,
    )
    matches = match_validator.filter_matches(_with_ids(demo_matches(query)), search_id=search.id)
    await SearchStore.add_matches(search.id, matches)
    await SearchStore.update_status(search.id, SearchStatus.COMPLETED)

    return SearchCreateResponse(
        success=True,
        message="Search initiated (Mock)",
        search_id=search.id,
        status=SearchStatus.COMPLETED,
    )


async def get_search_status(
    search_id: str, user_id: str = settings.default_user_id
) -> SearchStatusResponse:
    """
    Status of a search. Matches are attached once it completed, best first.

    Raises:
        SearchNotFound: If the search does not exist or belongs to another user
    """
    search = await SearchStore.get_search(search_id)
    if search is None or search.user_id != user_id:
        raise SearchNotFound(search_id)

    matches = None
    if search.status is SearchStatus.COMPLETED:
        matches = sorted(
            await SearchStore.list_matches(search_id=search_id),
            key=lambda m: m.keyword_score,
            reverse=True,
        )

    return SearchStatusResponse(
        search_id=search.id,
        status=search.status,
        query=search.query,
        filters=search.filters,
        created_at=search.created_at,
        matches=matches,
    )


async def list_matches(
    search_id: Optional[str] = None,
    user_id: str = settings.default_user_id,
    limit: int = settings.matches_default_limit,
) -> List[JobMatch]:
    """Matches of the user, optionally restricted to one search, newest first."""
    return await SearchStore.list_matches(search_id=search_id, user_id=user_id, limit=limit)


async def get_match(match_id: str, user_id: str = settings.default_user_id) -> Optional[JobMatch]:
    """A single match of the user, None when unknown."""
    match = await SearchStore.get_match(match_id)
    if match is None:
        return None
    search = await SearchStore.get_search(match.search_id) if match.search_id else None
    if search is None or search.user_id != user_id:
        return None
    return match


async def ingest_job_matches(payload: JobMatchesPayload) -> int:
    """
    Store the matches a search workflow reported and complete the search.

    Matches without a keyword score get ``max(95 - 5 * index, 50)``.

    Returns:
        int: Number of matches stored

    Raises:
        SearchNotFound: If the search does not exist
    """
    search = await SearchStore.get_search(payload.search_id)
    if search is None:
        raise SearchNotFound(payload.search_id)

    rows = []
    for index, row in enumerate(payload.matches):
        if not isinstance(row, dict):
            continue
        score = row.get("keywordScore", row.get("matchScore"))
        rows.append({**row, "keywordScore": default_keyword_score(index) if score is None else score})

    matches = match_validator.filter_matches(_with_ids(rows), search_id=payload.search_id)
    stored = await SearchStore.add_matches(payload.search_id, matches)
    await SearchStore.update_status(payload.search_id, SearchStatus.COMPLETED)

    logger.info(
        "Processed workflow matches",
        search_id=payload.search_id,
        received=len(payload.matches),
        stored=len(stored),
    )
    return len(stored)


async def ingest_search_status(search_id: str, status: SearchStatus) -> bool:
    """Apply a status reported by the workflow. Unknown searches raise SearchNotFound."""
    if await SearchStore.get_search(search_id) is None:
        raise SearchNotFound(search_id)
    return await SearchStore.update_status(search_id, status)


async def ingest_cv_parsed(payload: CVParsedPayload) -> CVProfile:
    """Store the skills and vector of a parsed CV as the user's latest profile."""
    return await ProfileStore.save_profile(
        user_id=payload.user_id or settings.default_user_id,
        cv_id=payload.cv_id,
        skills=payload.skills,
        embedding=payload.embedding,
        summary=payload.summary,
    )
