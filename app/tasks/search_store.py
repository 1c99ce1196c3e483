"""
In-memory persistence for searches, matches and parsed CV profiles.

Searches are created ``pending`` and flipped to a terminal state exactly once,
either by a workflow callback, the demo fallback, or the expiry task that
fails searches nobody resolved in time.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.core.config import settings
from app.log.logging import logger
from app.schemas.job_match import JobMatch
from app.schemas.search import SearchRecord, SearchStatus


@dataclass
class CVProfile:
    """Most recent parsed CV of a user."""
    user_id: str
    cv_id: str
    skills: List[str] = field(default_factory=list)
    embedding: Optional[List[float]] = None
    summary: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SearchStore:
    """Stores search requests and their match rows."""

    # Structure: {search_id: SearchRecord}
    _searches: Dict[str, SearchRecord] = {}

    # Structure: {match_id: (sequence, JobMatch)}; sequence breaks created_at ties
    _matches: Dict[str, Tuple[int, JobMatch]] = {}
    _sequence = count()

    _search_expiration = timedelta(minutes=settings.search_expiration_minutes)

    _cleanup_task: Optional[asyncio.Task] = None

    _lock = asyncio.Lock()

    @classmethod
    def reset(cls) -> None:
        """Drop every search and match. Used at shutdown and by tests."""
        cls._searches = {}
        cls._matches = {}
        cls._sequence = count()
        cls._lock = asyncio.Lock()

    @classmethod
    async def create_search(
        cls,
        user_id: str,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> SearchRecord:
        """
        Create a pending search.

        Args:
            user_id: Owner of the search
            query: Free text query
            filters: Opaque filter bag

        Returns:
            SearchRecord: The stored record
        """
        now = datetime.now(UTC)
        record = SearchRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            query=query,
            filters=filters,
            status=SearchStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        async with cls._lock:
            cls._searches[record.id] = record

        logger.info("Created search", search_id=record.id, user_id=user_id)
        return record.model_copy()

    @classmethod
    async def get_search(cls, search_id: str) -> Optional[SearchRecord]:
        async with cls._lock:
            record = cls._searches.get(search_id)
            return record.model_copy() if record is not None else None

    @classmethod
    async def update_status(cls, search_id: str, status: SearchStatus) -> bool:
        """
        Move a search to a new status.

        A search that already reached a terminal state is never changed.

        Returns:
            True if the status was updated, False otherwise
        """
        async with cls._lock:
            record = cls._searches.get(search_id)
            if record is None:
                return False
            if record.status.is_terminal:
                logger.warning(
                    "Ignoring status update of a resolved search",
                    search_id=search_id,
                    current=record.status,
                    requested=status,
                )
                return False

            cls._searches[search_id] = record.model_copy(
                update={"status": status, "updated_at": datetime.now(UTC)}
            )

        logger.info("Updated search status", search_id=search_id, status=status)
        return True

    @classmethod
    async def add_matches(cls, search_id: str, matches: Iterable[JobMatch]) -> List[JobMatch]:
        """
        Store match rows of a search. Malformed matches are skipped.

        Returns:
            List[JobMatch]: The stored matches
        """
        now = datetime.now(UTC)
        stored = []
        async with cls._lock:
            record = cls._searches.get(search_id)
            for match in matches:
                if match.is_malformed:
                    continue
                match = match.model_copy(
                    update={
                        "search_id": search_id,
                        "created_at": match.created_at or now,
                        "search_query": match.search_query or (record.query if record else None),
                    }
                )
                cls._matches[match.id] = (next(cls._sequence), match)
                stored.append(match)

        logger.info("Stored matches", search_id=search_id, matches_stored=len(stored))
        return [m.model_copy() for m in stored]

    @classmethod
    async def get_match(cls, match_id: str) -> Optional[JobMatch]:
        async with cls._lock:
            entry = cls._matches.get(match_id)
            return entry[1].model_copy() if entry is not None else None

    @classmethod
    async def list_matches(
        cls,
        search_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[JobMatch]:
        """
        List matches newest first.

        Args:
            search_id: Only matches of this search
            user_id: Only matches of searches owned by this user
            limit: Maximum number of matches

        Returns:
            List[JobMatch]: Well formed matches, newest first
        """
        async with cls._lock:
            entries = list(cls._matches.values())
            owners = {sid: r.user_id for sid, r in cls._searches.items()}

        if search_id is not None:
            entries = [e for e in entries if e[1].search_id == search_id]
        if user_id is not None:
            entries = [e for e in entries if owners.get(e[1].search_id) == user_id]

        epoch = datetime.min.replace(tzinfo=UTC)
        entries.sort(key=lambda e: (e[1].created_at or epoch, e[0]), reverse=True)

        matches = [m.model_copy() for _, m in entries if not m.is_malformed]
        if limit is not None:
            matches = matches[: max(limit, 0)]
        return matches

    @classmethod
    async def update_match_scores(
        cls,
        match_id: str,
        semantic_score: Optional[float],
        composite_score: float,
    ) -> bool:
        """Persist re-ranking scores of a match."""
        async with cls._lock:
            entry = cls._matches.get(match_id)
            if entry is None:
                return False
            sequence, match = entry
            cls._matches[match_id] = (
                sequence,
                match.model_copy(
                    update={"semantic_score": semantic_score, "composite_score": composite_score}
                ),
            )
        return True

    @classmethod
    async def expire_stale_searches(cls, now: Optional[datetime] = None) -> List[str]:
        """
        Fail pending searches older than the expiration window.

        Returns:
            List[str]: Identifiers of the searches marked failed
        """
        now = now or datetime.now(UTC)
        async with cls._lock:
            expired = [
                sid
                for sid, record in cls._searches.items()
                if record.status is SearchStatus.PENDING
                and now - record.created_at > cls._search_expiration
            ]

        for search_id in expired:
            await cls.update_status(search_id, SearchStatus.FAILED)

        if expired:
            logger.info("Expired stale searches", expired_count=len(expired))
        return expired

    @classmethod
    async def cleanup_expired_searches(cls) -> None:
        """Periodically fail searches stuck in pending."""
        logger.info("Starting search expiry process")
        while True:
            try:
                await cls.expire_stale_searches()
                await asyncio.sleep(settings.search_cleanup_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(
                    "Error during search expiry",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await asyncio.sleep(60)

    @classmethod
    async def start_cleanup_task(cls) -> None:
        """Start the background expiry process."""
        if cls._cleanup_task is None or cls._cleanup_task.done():
            cls._cleanup_task = asyncio.create_task(
                cls.cleanup_expired_searches(), name="search-store-expiry"
            )
            logger.info("Started search expiry process")

    @classmethod
    async def stop_cleanup_task(cls) -> None:
        """Stop the background expiry process."""
        if cls._cleanup_task is not None and not cls._cleanup_task.done():
            cls._cleanup_task.cancel()
            try:
                await cls._cleanup_task
            except asyncio.CancelledError:
                pass
            logger.info("Stopped search expiry process")
        cls._cleanup_task = None


class ProfileStore:
    """Keeps the latest parsed CV of each user."""

    _profiles: Dict[str, CVProfile] = {}
    _lock = asyncio.Lock()

    @classmethod
    def reset(cls) -> None:
        cls._profiles = {}
        cls._lock = asyncio.Lock()

    @classmethod
    async def save_profile(
        cls,
        user_id: str,
        cv_id: str,
        skills: Optional[List[str]] = None,
        embedding: Optional[List[float]] = None,
        summary: Optional[str] = None,
    ) -> CVProfile:
        """Store a parsed CV, replacing the user's previous one."""
        profile = CVProfile(
            user_id=user_id,
            cv_id=cv_id,
            skills=[s for s in skills or [] if isinstance(s, str)],
            embedding=list(embedding) if embedding else None,
            summary=summary,
        )
        async with cls._lock:
            cls._profiles[user_id] = profile

        logger.info(
            "Stored CV profile",
            user_id=user_id,
            cv_id=cv_id,
            skills=len(profile.skills),
            has_embedding=profile.embedding is not None,
        )
        return profile

    @classmethod
    async def get_profile(cls, user_id: str) -> Optional[CVProfile]:
        async with cls._lock:
            return cls._profiles.get(user_id)


async def setup_search_store():
    """Set up the search store during application startup."""
    await SearchStore.start_cleanup_task()


async def teardown_search_store():
    """Tear down the search store during application shutdown."""
    await SearchStore.stop_cleanup_task()
