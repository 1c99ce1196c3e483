"""
Search lifecycle: job store client, match validation and the polling coordinator.
"""

from app.libs.search.exceptions import (
    SearchError,
    SubmissionError,
    PollError,
    TerminalFailure,
    MalformedMatch,
)
from app.libs.search.match_validator import MatchValidator, match_validator
from app.libs.search.client import JobStoreClient
from app.libs.search.coordinator import SEARCH_FAILED_MESSAGE, SearchCoordinator, SearchState

__all__ = [
    "SearchError",
    "SubmissionError",
    "PollError",
    "TerminalFailure",
    "MalformedMatch",
    "MatchValidator",
    "match_validator",
    "JobStoreClient",
    "SEARCH_FAILED_MESSAGE",
    "SearchCoordinator",
    "SearchState",
]
