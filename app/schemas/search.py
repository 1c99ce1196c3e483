"""
Search lifecycle schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.schemas.job_match import CamelModel, JobMatch


class SearchStatus(str, Enum):
    """Search status enum. ``idle`` only exists on the client side."""
    IDLE = "idle"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SearchStatus.COMPLETED, SearchStatus.FAILED)


class SearchCreateRequest(CamelModel):
    """Request model for starting a search."""
    query: str = Field(..., description="Free text search query")
    filters: Optional[Dict[str, Any]] = Field(None, description="Opaque filter bag")

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Query is required")
        return value


class SearchCreateResponse(CamelModel):
    """Response model for search submission."""
    success: bool = Field(..., description="Whether the search was started")
    message: Optional[str] = Field(None, description="Human readable outcome")
    search_id: Optional[str] = Field(None, description="Identifier used for polling")
    status: Optional[SearchStatus] = Field(None, description="Status right after submission")
    error: Optional[str] = Field(None, description="Failure reason when success is false")


class SearchRecord(CamelModel):
    """A stored search request."""
    id: str
    user_id: str
    query: str
    filters: Optional[Dict[str, Any]] = None
    status: SearchStatus = SearchStatus.PENDING
    created_at: datetime
    updated_at: datetime


class SearchStatusResponse(CamelModel):
    """Response model for search polling. ``matches`` is only set once completed."""
    search_id: str = Field(..., description="Unique identifier for the search")
    status: SearchStatus = Field(..., description="Current status of the search")
    query: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    matches: Optional[List[JobMatch]] = None
