"""
Risk Scoring Engine - Configuration.

============================================================
PURPOSE
============================================================
Thresholds, ramps, ceilings and level bands for every risk
factor. The values are empirically calibrated product constants;
they are kept here, never inlined in assessor logic.

============================================================
RAMP PATTERN
============================================================
Every single-indicator factor follows the same shape:

    gate:          value > threshold
    severity:      (value - origin) / span       (origin defaults to threshold)
    contribution:  min(ceiling, round(severity * ceiling))

"Lower is worse" factors (outward migration, GDP contraction)
are assessed on the negated value so the same ramp applies.

============================================================
LEVEL BANDS
============================================================
    score >= 75  critical
    score >= 55  high
    score >= 35  elevated
    score >= 20  moderate
    otherwise    low

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .types import RiskLevel, round_int


# ============================================================
# LINEAR RAMP
# ============================================================


@dataclass(frozen=True)
class RampConfig:
    """Gate, ramp and ceiling for one single-indicator factor."""

    threshold: float
    span: float
    ceiling: int
    origin: Optional[float] = None

    def __post_init__(self) -> None:
        if self.span <= 0:
            raise ValueError(f"span must be > 0, got {self.span}")
        if self.ceiling < 0:
            raise ValueError(f"ceiling must be >= 0, got {self.ceiling}")

    @property
    def ramp_origin(self) -> float:
        return self.threshold if self.origin is None else self.origin

    def is_active(self, value: Optional[float]) -> bool:
        return value is not None and value > self.threshold

    def severity(self, value: float) -> float:
        return (value - self.ramp_origin) / self.span

    def contribution(self, value: float) -> int:
        return max(0, min(self.ceiling, round_int(self.severity(value) * self.ceiling)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "span": self.span,
            "ceiling": self.ceiling,
            "origin": self.ramp_origin,
        }


# ============================================================
# COMPOUND FACTORS
# ============================================================


@dataclass(frozen=True)
class AgingCrisisConfig:
    """
    Aging population combined with low fertility.

    Active when elderly share exceeds its threshold AND fertility
    is below the low-fertility threshold:

        severity = (elderly - 15) / 15 + (1.8 - fertility) / 1.0
        contribution = min(10, round(severity * 5))
    """

    elderly_threshold: float = 15.0
    elderly_span: float = 15.0
    fertility_threshold: float = 1.8
    fertility_span: float = 1.0
    scale: float = 5.0
    ceiling: int = 10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elderly_threshold": self.elderly_threshold,
            "elderly_span": self.elderly_span,
            "fertility_threshold": self.fertility_threshold,
            "fertility_span": self.fertility_span,
            "scale": self.scale,
            "ceiling": self.ceiling,
        }


@dataclass(frozen=True)
class YouthUnemploymentConfig:
    """Youth unemployment ramp over the 15-60% range, ceiling 20."""

    ramp: RampConfig = field(default_factory=lambda: RampConfig(threshold=15.0, span=45.0, ceiling=20))
    critical_above: float = 25.0

    def to_dict(self) -> Dict[str, Any]:
        return {"ramp": self.ramp.to_dict(), "critical_above": self.critical_above}


# ============================================================
# LEVEL BANDS
# ============================================================


@dataclass(frozen=True)
class LevelBands:
    """Lower edges (inclusive) of each level above LOW."""

    critical: int = 75
    high: int = 55
    elevated: int = 35
    moderate: int = 20

    def __post_init__(self) -> None:
        edges = [self.critical, self.high, self.elevated, self.moderate]
        if any(a <= b for a, b in zip(edges, edges[1:])):
            raise ValueError(f"level bands must be strictly descending, got {edges}")
        if self.moderate <= 0 or self.critical > 100:
            raise ValueError(f"level bands must lie within (0, 100], got {edges}")

    def classify(self, score: float) -> RiskLevel:
        if score >= self.critical:
            return RiskLevel.CRITICAL
        if score >= self.high:
            return RiskLevel.HIGH
        if score >= self.elevated:
            return RiskLevel.ELEVATED
        if score >= self.moderate:
            return RiskLevel.MODERATE
        return RiskLevel.LOW

    def to_dict(self) -> Dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "elevated": self.elevated,
            "moderate": self.moderate,
        }


# ============================================================
# ENGINE CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class RiskScoringConfig:
    """
    Complete engine configuration.

    ============================================================
    DEMOGRAPHIC FACTORS
    ============================================================
    youth_bulge        0-14 share above 35%, full at 50%, max 15
    aging_crisis       see AgingCrisisConfig, max 10
    youth_unemployment above 15%, full at 60%, max 20
    urbanization       growth x urban share above 1.5, max 10
    brain_drain        net outflow above 100k, full at 2M, max 10
    density            above 400/km2, full at 1400, max 10
    population_growth  above 2.5%/yr, full at 4.5%, max 10

    ============================================================
    SUPPLEMENTARY FACTORS (fire only when data is present)
    ============================================================
    armed_conflict     UCDP fatalities above 25, full at 1000, max 15
    sanctions          programme severity (0.6 targeted, 1.0 comprehensive), max 5
    civil_unrest       unrest articles above 10, full at 50, max 5
    inflation          CPI above 10%, full at 50%, max 10
    debt_burden        debt/GDP above 90%, full at 150%, max 5
    contraction        GDP growth below 0, full at -5%, max 5

    ============================================================
    """

    youth_bulge: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=35.0, span=15.0, ceiling=15)
    )
    aging_crisis: AgingCrisisConfig = field(default_factory=AgingCrisisConfig)
    youth_unemployment: YouthUnemploymentConfig = field(default_factory=YouthUnemploymentConfig)
    urbanization: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=1.5, span=2.0, ceiling=10)
    )
    brain_drain: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=100_000.0, span=2_000_000.0, ceiling=10, origin=0.0)
    )
    density: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=400.0, span=1000.0, ceiling=10)
    )
    population_growth: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=2.5, span=2.0, ceiling=10)
    )

    armed_conflict: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=25.0, span=975.0, ceiling=15)
    )
    sanctions: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=0.0, span=1.0, ceiling=5)
    )
    civil_unrest: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=10.0, span=40.0, ceiling=5)
    )
    inflation: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=10.0, span=40.0, ceiling=10)
    )
    debt_burden: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=90.0, span=60.0, ceiling=5)
    )
    contraction: RampConfig = field(
        default_factory=lambda: RampConfig(threshold=0.0, span=5.0, ceiling=5)
    )

    bands: LevelBands = field(default_factory=LevelBands)

    max_score: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "youth_bulge": self.youth_bulge.to_dict(),
            "aging_crisis": self.aging_crisis.to_dict(),
            "youth_unemployment": self.youth_unemployment.to_dict(),
            "urbanization": self.urbanization.to_dict(),
            "brain_drain": self.brain_drain.to_dict(),
            "density": self.density.to_dict(),
            "population_growth": self.population_growth.to_dict(),
            "armed_conflict": self.armed_conflict.to_dict(),
            "sanctions": self.sanctions.to_dict(),
            "civil_unrest": self.civil_unrest.to_dict(),
            "inflation": self.inflation.to_dict(),
            "debt_burden": self.debt_burden.to_dict(),
            "contraction": self.contraction.to_dict(),
            "bands": self.bands.to_dict(),
            "max_score": self.max_score,
        }


DEFAULT_CONFIG = RiskScoringConfig()
