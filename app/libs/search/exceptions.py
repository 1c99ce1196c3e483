"""
Custom exceptions for the search lifecycle.

Submission and poll errors end the current search in the ``failed`` state; the
caller decides whether to submit again. Nothing here is retried automatically.
"""

from typing import Optional


class SearchError(Exception):
    """Base exception for search lifecycle errors."""
    pass


class SubmissionError(SearchError):
    """Exception raised when a search could not be started."""
    pass


class PollError(SearchError):
    """Exception raised when a status or match fetch failed.

    ``status_code`` is set when the server answered with a non-success
    status and left as ``None`` for transport failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TerminalFailure(SearchError):
    """Exception raised when the search itself resolved as failed."""
    pass


class MalformedMatch(SearchError):
    """Exception raised for match rows missing required fields. Never surfaced to callers."""
    pass
