"""
Risk Scoring Engine - Package.

============================================================
PURPOSE
============================================================
Deterministic 0-100 country risk score from demographic,
economic, conflict, sanctions and unrest indicators.

============================================================
SCORING
============================================================
Each factor: threshold gate -> linear severity -> ceiling clamp.
Total = sum of active factors, clamped to [0, 100].

Levels (LevelBands):
- CRITICAL  >= 75
- HIGH      >= 55
- ELEVATED  >= 35
- MODERATE  >= 20
- LOW        < 20

============================================================
USAGE
============================================================
    from risk_scoring import RiskScoringEngine, EntityProfile, IndicatorSet, DataSource

    profile = EntityProfile(
        iso2="NG",
        name="Nigeria",
        region="Sub-Saharan Africa",
        indicators=IndicatorSet(youth_pct=43.3, youth_unemployment=19.6),
        data_source=DataSource.LIVE,
        fetched_indicators=10,
    )

    risk = RiskScoringEngine().score(profile)
    print(risk.score, risk.level.value)

============================================================
"""

from .config import (
    DEFAULT_CONFIG,
    AgingCrisisConfig,
    LevelBands,
    RampConfig,
    RiskScoringConfig,
    YouthUnemploymentConfig,
)
from .engine import (
    RiskScoringEngine,
    classify_risk_level,
    format_risk_summary,
    score_profile,
)
from .types import (
    DataSource,
    EntityProfile,
    IndicatorSet,
    RiskFactor,
    RiskLevel,
    RiskScore,
    RiskScoringError,
    ScoredProfile,
    format_number,
    round_half_up,
    round_int,
    to_camel,
)


__all__ = [
    # Engine
    "RiskScoringEngine",
    "score_profile",
    "classify_risk_level",
    "format_risk_summary",
    # Config
    "RiskScoringConfig",
    "RampConfig",
    "AgingCrisisConfig",
    "YouthUnemploymentConfig",
    "LevelBands",
    "DEFAULT_CONFIG",
    # Types
    "DataSource",
    "EntityProfile",
    "IndicatorSet",
    "RiskFactor",
    "RiskLevel",
    "RiskScore",
    "ScoredProfile",
    "RiskScoringError",
    # Helpers
    "round_half_up",
    "round_int",
    "format_number",
    "to_camel",
]
