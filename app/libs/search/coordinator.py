"""
Search lifecycle coordinator.

Tracks one job search at a time from submission to completion:

    idle -> pending -> completed | failed

A search the job store resolves synchronously is completed in a single state
transition that already carries its matches. Any other search is polled on a
fixed cadence until it reaches a terminal state. The coordinator owns at most
one polling timer; submitting, resetting and closing cancel it before doing
anything else, and results of a cancelled search never reach the state.

Failures are terminal for the search. Retrying means calling ``submit`` again.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Set

from app.core.config import settings
from app.log.logging import logger
from app.libs.search.client import JobStoreClient
from app.libs.search.exceptions import PollError, SearchError, SubmissionError, TerminalFailure
from app.schemas.job_match import JobMatch
from app.schemas.search import SearchStatus


SEARCH_FAILED_MESSAGE = "Search failed. Please try again."


@dataclass(frozen=True)
class SearchState:
    """Snapshot of the coordinator state exposed to callers."""
    search_id: Optional[str] = None
    status: SearchStatus = SearchStatus.IDLE
    matches: List[JobMatch] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "searchId": self.search_id,
            "status": self.status.value,
            "matches": [m.model_dump(by_alias=True, mode="json") for m in self.matches],
            "error": self.error,
        }


StateListener = Callable[[SearchState], None]


class SearchCoordinator:
    """Client-side search state machine with polling."""

    def __init__(
        self,
        client: Optional[JobStoreClient] = None,
        poll_interval: Optional[float] = None,
    ):
        self._client = client or JobStoreClient()
        self._owns_client = client is None
        self._poll_interval = (
            settings.search_poll_interval if poll_interval is None else poll_interval
        )
        self._state = SearchState()
        self._listeners: List[StateListener] = []

        # Bumped on every submit/reset/close; work tagged with an older
        # generation must not touch the state.
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._closed = False

        self._settled = asyncio.Event()
        self._settled.set()
        self._failure: Optional[SearchError] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return replace(self._state, matches=list(self._state.matches))

    @property
    def search_id(self) -> Optional[str]:
        return self._state.search_id

    @property
    def status(self) -> SearchStatus:
        return self._state.status

    @property
    def matches(self) -> List[JobMatch]:
        return list(self._state.matches)

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def is_polling(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with every committed state.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def submit(self, query: str, filters: Optional[Dict[str, Any]] = None) -> SearchState:
        """
        Start a new search, replacing whatever the coordinator was tracking.

        Args:
            query: Non-empty free text query
            filters: Optional serializable filter bag

        Returns:
            SearchState after submission (completed, failed or pending)
        """
        if not isinstance(query, str) or not query.strip():
            raise ValueError("query must be a non-empty string")
        if self._closed:
            raise RuntimeError("SearchCoordinator is closed")

        generation = self._next_generation()
        self._commit(
            generation,
            search_id=None,
            status=SearchStatus.PENDING,
            matches=[],
            error=None,
        )

        try:
            submission = await self._client.start_search(query, filters)
        except SubmissionError as e:
            logger.warning("Search submission failed", query=query, error=str(e))
            self._commit(generation, failure=e, status=SearchStatus.FAILED, error=str(e))
            return self.state

        search_id = submission.search_id
        if not self._commit(generation, search_id=search_id):
            return self.state

        if submission.status is SearchStatus.COMPLETED:
            await self._complete_resolved(search_id, generation)
        else:
            self._start_polling(search_id, generation)
        return self.state

    def reset(self) -> SearchState:
        """Cancel polling and return to idle. Safe to call in any state."""
        generation = self._next_generation()
        self._commit(generation, search_id=None, status=SearchStatus.IDLE, matches=[], error=None)
        return self.state

    async def wait(self, timeout: Optional[float] = None) -> SearchState:
        """
        Wait until the current search settles.

        Args:
            timeout: Seconds to wait, ``None`` waits indefinitely

        Returns:
            SearchState of the completed (or idle) search

        Raises:
            SubmissionError, PollError, TerminalFailure: When the search failed
            asyncio.TimeoutError: When the timeout elapses first
        """
        await asyncio.wait_for(self._settled.wait(), timeout)
        if self._failure is not None:
            raise self._failure
        return self.state

    async def aclose(self) -> None:
        """Tear down: cancel the timer and every in-flight poll."""
        if self._closed:
            return
        self._closed = True
        pending = self._cancel_polling()
        self._generation += 1
        self._settled.set()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
        logger.debug("SearchCoordinator closed")

    async def __aenter__(self) -> "SearchCoordinator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_generation(self) -> int:
        self._cancel_polling()
        self._generation += 1
        return self._generation

    def _commit(self, generation: int, failure: Optional[SearchError] = None, **changes: Any) -> bool:
        """Apply changes atomically unless the generation is stale."""
        if generation != self._generation:
            return False
        self._state = replace(self._state, **changes)
        if "status" in changes:
            self._failure = failure
            if self._state.status is SearchStatus.PENDING:
                self._settled.clear()
            else:
                self._settled.set()
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)
        return True

    async def _complete_resolved(self, search_id: str, generation: int) -> None:
        """Fetch matches of an already resolved search, then mark it completed."""
        matches: List[JobMatch] = []
        try:
            matches = await self._client.get_matches(search_id)
        except PollError as e:
            if e.status_code is None:
                logger.warning("Fetching resolved matches failed", search_id=search_id, error=str(e))
                self._commit(generation, failure=e, status=SearchStatus.FAILED, error=str(e))
                return
            logger.warning(
                "Resolved search matches unavailable",
                search_id=search_id,
                status_code=e.status_code,
            )

        # Status and matches land in the same commit
        if self._commit(generation, matches=matches, status=SearchStatus.COMPLETED):
            logger.info("Search completed synchronously", search_id=search_id, matches_found=len(matches))

    def _start_polling(self, search_id: str, generation: int) -> None:
        self._cancel_polling()
        self._timer = asyncio.create_task(
            self._run_timer(search_id, generation),
            name=f"search-poll-timer-{search_id}",
        )
        logger.debug("Polling started", search_id=search_id, interval=self._poll_interval)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_polling(self) -> List[asyncio.Task]:
        """Cancel the timer and in-flight polls; returns the cancelled tasks."""
        cancelled = []
        if self._timer is not None:
            cancelled.append(self._timer)
        self._stop_timer()
        current = asyncio.current_task() if self._has_running_loop() else None
        for task in list(self._inflight):
            if task is not current:
                task.cancel()
                cancelled.append(task)
        self._inflight.clear()
        return cancelled

    @staticmethod
    def _has_running_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    async def _run_timer(self, search_id: str, generation: int) -> None:
        # Each tick fires a poll without waiting for it, so a hung request
        # never delays the next one.
        while generation == self._generation:
            task = asyncio.create_task(
                self._poll_once(search_id, generation),
                name=f"search-poll-{search_id}",
            )
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self._poll_interval)

    async def _poll_once(self, search_id: str, generation: int) -> None:
        try:
            poll = await self._client.get_search(search_id)
        except PollError as e:
            if self._is_live(generation):
                logger.warning("Polling error", search_id=search_id, error=str(e))
                self._stop_timer()
                self._commit(generation, failure=e, status=SearchStatus.FAILED, error=str(e))
            return

        if not self._is_live(generation):
            return

        if poll.status is SearchStatus.COMPLETED:
            self._stop_timer()
            changes: Dict[str, Any] = {"status": SearchStatus.COMPLETED}
            if poll.matches is not None:
                changes["matches"] = list(poll.matches)
            self._commit(generation, **changes)
            logger.info("Search completed", search_id=search_id, matches_found=len(self._state.matches))
        elif poll.status is SearchStatus.FAILED:
            self._stop_timer()
            self._commit(
                generation,
                failure=TerminalFailure(SEARCH_FAILED_MESSAGE),
                status=SearchStatus.FAILED,
                error=SEARCH_FAILED_MESSAGE,
            )
            logger.info("Search failed server side", search_id=search_id)

    def _is_live(self, generation: int) -> bool:
        """True while the generation is current and its search not yet terminal."""
        return generation == self._generation and not self._state.status.is_terminal
