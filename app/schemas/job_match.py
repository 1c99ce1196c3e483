"""
Job match schemas.

Matches travel over the wire in camelCase; internally fields are snake_case.
Title and company are the only required job fields: a match missing either is
malformed and is dropped at the boundary (see ``MatchValidator``).
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.libs.scoring.blender import score_label as label_for_score


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting both spellings."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GapAnalysis(CamelModel):
    """Structured skill hints attached to a match by the job store."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    required_skills: List[str] = Field(default_factory=list)
    nice_to_have_skills: List[str] = Field(default_factory=list)
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def keep_string_lists(cls, value):
        if isinstance(value, (list, tuple)):
            return [v for v in value if isinstance(v, str)]
        return []


class JobMatch(CamelModel):
    """A job posting matched to a search, with its ranking scores."""
    id: str
    search_id: Optional[str] = None
    title: str = ""
    company: str = ""
    location: str = "Remote"
    salary: Optional[str] = None
    url: Optional[str] = None
    posted_date: Optional[str] = None
    description: Optional[str] = None
    keyword_score: float = Field(
        0.0,
        ge=0,
        le=100,
        validation_alias=AliasChoices("keywordScore", "keyword_score", "matchScore", "match_score"),
    )
    semantic_score: Optional[float] = Field(None, ge=0, le=1)
    composite_score: Optional[float] = Field(None, ge=0, le=100)
    gap_analysis: Optional[GapAnalysis] = None
    created_at: Optional[datetime] = None
    search_query: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("title", "company", mode="before")
    @classmethod
    def empty_when_missing(cls, value):
        if value is None:
            return ""
        return value

    @field_validator("location", mode="before")
    @classmethod
    def remote_when_missing(cls, value):
        return value or "Remote"

    @field_validator("keyword_score", mode="before")
    @classmethod
    def clamp_keyword_score(cls, value):
        if value is None:
            return 0.0
        if isinstance(value, (int, float)):
            return max(0.0, min(100.0, float(value)))
        return value

    @field_validator("gap_analysis", mode="before")
    @classmethod
    def drop_unstructured_gap_analysis(cls, value: Any):
        if value is None or isinstance(value, (dict, GapAnalysis)):
            return value
        return None

    @model_validator(mode="after")
    def default_composite(self) -> "JobMatch":
        if self.composite_score is None:
            self.composite_score = self.keyword_score
        return self

    @computed_field(alias="scoreLabel")
    @property
    def score_label(self) -> str:
        """Label of the score the match is ranked by."""
        return label_for_score(self.composite_score)

    @property
    def is_malformed(self) -> bool:
        return not self.title.strip() or not self.company.strip()


class MatchesResponse(CamelModel):
    """Response model for match listings."""
    matches: List[JobMatch] = Field(default_factory=list)


class JobDetailResponse(CamelModel):
    """Response model for a single match."""
    job: JobMatch
