"""
HTTP client for the job store / search API.

Wraps the three calls the search coordinator needs: submitting a search,
polling its status and fetching the matches of a search that resolved
synchronously. Every failure is translated into a ``SubmissionError`` or
``PollError``; nothing is retried here.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.log.logging import logger
from app.libs.search.exceptions import PollError, SubmissionError
from app.libs.search.match_validator import match_validator
from app.schemas.job_match import JobMatch
from app.schemas.search import SearchCreateResponse, SearchStatus, SearchStatusResponse


def _error_message(error: Exception, default: str) -> str:
    message = str(error).strip()
    return message or default


class JobStoreClient:
    """Async client for the search endpoints."""

    def __init__(
        self,
        base_url: str = settings.job_store_base_url,
        timeout: float = settings.job_store_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "JobStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def start_search(
        self, query: str, filters: Optional[Dict[str, Any]] = None
    ) -> SearchCreateResponse:
        """
        Submit a search.

        Args:
            query: Free text query
            filters: Optional opaque filter bag

        Returns:
            SearchCreateResponse with a search id and the initial status

        Raises:
            SubmissionError: On transport failure, a non-success status or an
                unsuccessful result payload
        """
        try:
            response = await self._client.post(
                "/jobs/search", json={"query": query, "filters": filters}
            )
        except httpx.HTTPError as e:
            logger.warning("Search submission transport error", error=str(e), error_type=type(e).__name__)
            raise SubmissionError(_error_message(e, "Failed to start search")) from e

        data = self._json(response)
        if response.is_error:
            logger.warning("Search submission rejected", status_code=response.status_code)
            raise SubmissionError(self._payload_error(data) or "Failed to start search")

        if not data.get("success"):
            raise SubmissionError(self._payload_error(data) or "Search failed")

        try:
            submission = SearchCreateResponse.model_validate(data)
        except ValidationError as e:
            raise SubmissionError("Search failed") from e
        if not submission.search_id:
            raise SubmissionError("Search failed")

        logger.info(
            "Search submitted",
            search_id=submission.search_id,
            status=submission.status,
        )
        return submission

    async def get_search(self, search_id: str) -> SearchStatusResponse:
        """
        Fetch the current status of a search.

        Malformed matches in the payload are dropped; a completed payload
        without a usable match list carries ``matches=None``.

        Raises:
            PollError: On transport failure, a non-success status or a payload
                without a valid status
        """
        try:
            response = await self._client.get(f"/jobs/search/{search_id}")
        except httpx.HTTPError as e:
            raise PollError(_error_message(e, "Polling failed")) from e

        if response.is_error:
            raise PollError("Failed to fetch search status", status_code=response.status_code)

        data = self._json(response)
        raw_matches = data.pop("matches", None)
        data.setdefault("searchId", search_id)
        try:
            poll = SearchStatusResponse.model_validate(data)
        except ValidationError as e:
            raise PollError("Invalid search status payload") from e
        if poll.status is SearchStatus.IDLE:
            raise PollError("Invalid search status payload")

        if isinstance(raw_matches, list):
            poll.matches = match_validator.filter_matches(raw_matches)
        return poll

    async def get_matches(self, search_id: str) -> List[JobMatch]:
        """
        Fetch the matches of a resolved search.

        Raises:
            PollError: On transport failure or a non-success status
        """
        try:
            response = await self._client.get("/matches", params={"searchId": search_id})
        except httpx.HTTPError as e:
            raise PollError(_error_message(e, "Failed to fetch matches")) from e

        if response.is_error:
            raise PollError("Failed to fetch matches", status_code=response.status_code)

        return match_validator.filter_matches(self._json(response).get("matches"))

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _payload_error(data: Dict[str, Any]) -> Optional[str]:
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error
        return None
