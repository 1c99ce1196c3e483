"""
Skill comparison, demand trend and re-ranking schemas.
"""

from typing import Dict, List, Optional

from pydantic import Field

from app.schemas.job_match import CamelModel


class SkillComparisonResponse(CamelModel):
    match_id: str
    matched: List[str] = Field(default_factory=list)
    partial: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    match_percentage: int = 0
    total: int = 0
    tips: List[str] = Field(default_factory=list)


class DemandStatSchema(CamelModel):
    canonical_name: str
    demand_count: int
    demand_percent: int
    status: str
    category: str
    demand_label: str


class DemandSummarySchema(CamelModel):
    total: int = 0
    matched: int = 0
    partial: int = 0
    missing: int = 0
    coverage: int = 0


class CategoryGroupSchema(CamelModel):
    category: str
    total_demand: int
    skills: List[DemandStatSchema]


class TrendsResponse(CamelModel):
    total_matches: int = 0
    stats: List[DemandStatSchema] = Field(default_factory=list)
    by_category: List[CategoryGroupSchema] = Field(default_factory=list)
    summary: DemandSummarySchema = Field(default_factory=DemandSummarySchema)


class SemanticRankRequest(CamelModel):
    search_id: str = Field(..., description="Search whose matches are re-ranked")
    query: Optional[str] = Field(None, description="Query used by the lexical fallback")


class SemanticRankResponse(CamelModel):
    method: str
    updated: int
    scores: Dict[str, int] = Field(default_factory=dict)
