"""
Aggregation - Summary Reductions.

============================================================
RESPONSIBILITY
============================================================
Pure reductions over a scored-profile set. No I/O.

- Ordering by score
- Counts per risk level
- Mean score
- Extremal lookups by indicator
- Grouping by region

============================================================
OUTPUT CONTRACT
============================================================
{
  profiles:  [ profile + risk ],
  highRisk:  [ critical + high profiles ],
  summary: {
    total, critical, high,
    countsByLevel: {critical, high, elevated, moderate, low},
    avgScore,
    extremes: {youngestPopulation, oldestPopulation,
               mostDense, highestYouthUnemployment}
  },
  regions:   [ {region, countries, avgRisk, count} ],
  updatedAt: ISO-8601
}

Absent values are explicit nulls.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.clock import to_iso8601
from risk_scoring.types import RiskLevel, ScoredProfile, json_number, round_int, to_camel


# name in output -> indicator it maximizes
EXTREME_INDICATORS: Tuple[Tuple[str, str], ...] = (
    ("youngestPopulation", "youth_pct"),
    ("oldestPopulation", "elderly_pct"),
    ("mostDense", "density"),
    ("highestYouthUnemployment", "youth_unemployment"),
)


# ============================================================
# REDUCTIONS
# ============================================================


def sort_by_score(profiles: Iterable[ScoredProfile]) -> List[ScoredProfile]:
    """Highest score first; ties keep their input order."""
    return sorted(profiles, key=lambda p: p.score, reverse=True)


def count_by_level(profiles: Iterable[ScoredProfile]) -> Dict[str, int]:
    counts = {level.value: 0 for level in RiskLevel.ordered()}
    for profile in profiles:
        counts[profile.level.value] += 1
    return counts


def average_score(profiles: Sequence[ScoredProfile]) -> int:
    """Arithmetic mean rounded half up; 0 for an empty set."""
    if not profiles:
        return 0
    return round_int(sum(p.score for p in profiles) / len(profiles))


def high_risk(profiles: Iterable[ScoredProfile]) -> List[ScoredProfile]:
    return [p for p in profiles if p.level.is_high_risk]


def find_extreme(
    profiles: Iterable[ScoredProfile],
    indicator: str,
) -> Optional[Dict[str, Any]]:
    """
    Profile with the largest value of an indicator.

    Profiles lacking the indicator are skipped; the first of equal
    maxima wins. Returns {country, iso2, <indicatorCamel>} or None.
    """
    best: Optional[ScoredProfile] = None
    best_value: Optional[float] = None

    for profile in profiles:
        value = profile.indicator(indicator)
        if value is None:
            continue
        if best_value is None or value > best_value:
            best, best_value = profile, value

    if best is None:
        return None
    return {
        "country": best.name,
        "iso2": best.iso2,
        to_camel(indicator): json_number(best_value),
    }


def find_extremes(profiles: Sequence[ScoredProfile]) -> Dict[str, Optional[Dict[str, Any]]]:
    return {name: find_extreme(profiles, indicator) for name, indicator in EXTREME_INDICATORS}


# ============================================================
# REGIONS
# ============================================================


@dataclass(frozen=True)
class RegionSummary:
    """Per-region aggregate; countries ordered by score."""

    region: str
    countries: Tuple[ScoredProfile, ...]
    avg_risk: int

    @property
    def count(self) -> int:
        return len(self.countries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": self.region,
            "countries": [
                {
                    "country": p.name,
                    "iso2": p.iso2,
                    "riskScore": p.score,
                    "riskLevel": p.level.value,
                }
                for p in self.countries
            ],
            "avgRisk": self.avg_risk,
            "count": self.count,
        }


def group_by_region(profiles: Iterable[ScoredProfile]) -> List[RegionSummary]:
    """Regions ordered by average risk, highest first (stable)."""
    grouped: Dict[str, List[ScoredProfile]] = {}
    for profile in profiles:
        grouped.setdefault(profile.region, []).append(profile)

    summaries = [
        RegionSummary(
            region=region,
            countries=tuple(sort_by_score(members)),
            avg_risk=average_score(members),
        )
        for region, members in grouped.items()
    ]
    return sorted(summaries, key=lambda r: r.avg_risk, reverse=True)


# ============================================================
# COMBINED REPORT
# ============================================================


@dataclass(frozen=True)
class RiskSummary:
    total: int
    counts_by_level: Dict[str, int]
    avg_score: int
    extremes: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)

    @property
    def critical(self) -> int:
        return self.counts_by_level.get(RiskLevel.CRITICAL.value, 0)

    @property
    def high(self) -> int:
        return self.counts_by_level.get(RiskLevel.HIGH.value, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "countsByLevel": dict(self.counts_by_level),
            "avgScore": self.avg_score,
            "extremes": {name: self.extremes.get(name) for name, _ in EXTREME_INDICATORS},
        }


@dataclass(frozen=True)
class CombinedRiskReport:
    """Everything external callers receive from one aggregation pass."""

    profiles: Tuple[ScoredProfile, ...]
    summary: RiskSummary
    regions: Tuple[RegionSummary, ...]
    updated_at: datetime

    @property
    def high_risk(self) -> List[ScoredProfile]:
        return high_risk(self.profiles)

    def find(self, iso2: str) -> Optional[ScoredProfile]:
        iso2 = iso2.upper()
        for profile in self.profiles:
            if profile.iso2 == iso2:
                return profile
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profiles": [p.to_dict() for p in self.profiles],
            "highRisk": [p.to_dict() for p in self.high_risk],
            "summary": self.summary.to_dict(),
            "regions": [r.to_dict() for r in self.regions],
            "updatedAt": to_iso8601(self.updated_at),
        }


def build_report(profiles: Iterable[ScoredProfile], updated_at: datetime) -> CombinedRiskReport:
    """Run every reduction over one profile set."""
    ordered = sort_by_score(profiles)
    summary = RiskSummary(
        total=len(ordered),
        counts_by_level=count_by_level(ordered),
        avg_score=average_score(ordered),
        extremes=find_extremes(ordered),
    )
    return CombinedRiskReport(
        profiles=tuple(ordered),
        summary=summary,
        regions=tuple(group_by_region(ordered)),
        updated_at=updated_at,
    )
