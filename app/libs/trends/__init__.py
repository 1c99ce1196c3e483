"""
Skill demand aggregation.
"""

from app.libs.trends.aggregator import (
    DemandReport,
    DemandStat,
    DemandSummary,
    aggregate,
    demand_label,
)

__all__ = ["DemandReport", "DemandStat", "DemandSummary", "aggregate", "demand_label"]
