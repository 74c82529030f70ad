"""
Aggregation - Package.

============================================================
PURPOSE
============================================================
Turns the scored-profile set into the combined report that
external callers consume, and caches it.

============================================================
USAGE
============================================================
    from aggregation import RiskAggregationService

    service = RiskAggregationService(orchestrator, cache)
    report = await service.get_combined_data()
    payload = report.to_dict()

============================================================
"""

from .service import COMBINED_CACHE_KEY, GLOBAL_CACHE_KEY, RiskAggregationService
from .summary import (
    EXTREME_INDICATORS,
    CombinedRiskReport,
    RegionSummary,
    RiskSummary,
    average_score,
    build_report,
    count_by_level,
    find_extreme,
    find_extremes,
    group_by_region,
    high_risk,
    sort_by_score,
)


__all__ = [
    # Service
    "RiskAggregationService",
    "COMBINED_CACHE_KEY",
    "GLOBAL_CACHE_KEY",
    # Report
    "CombinedRiskReport",
    "RiskSummary",
    "RegionSummary",
    "build_report",
    # Reductions
    "sort_by_score",
    "count_by_level",
    "average_score",
    "high_risk",
    "find_extreme",
    "find_extremes",
    "group_by_region",
    "EXTREME_INDICATORS",
]
