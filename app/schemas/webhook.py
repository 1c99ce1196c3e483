"""
Inbound workflow callback schemas.

Match rows stay loosely typed here; each row is validated individually by
``MatchValidator`` so one malformed posting does not reject the batch.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.job_match import CamelModel


class WebhookEventType(str, Enum):
    JOB_MATCHES = "job-matches"
    CV_PARSED = "cv-parsed"
    SEARCH_STATUS = "search-status"
    DOCUMENT_GENERATED = "document-generated"


class WebhookEnvelope(CamelModel):
    type: WebhookEventType
    payload: Dict[str, Any] = Field(default_factory=dict)


class JobMatchesPayload(CamelModel):
    search_id: str
    user_id: str
    matches: List[Dict[str, Any]]


class CVParsedPayload(CamelModel):
    cv_id: str
    user_id: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    embedding: Optional[List[float]] = None
    summary: Optional[str] = None


class WebhookAck(CamelModel):
    success: bool = True
    processed: int = 0
