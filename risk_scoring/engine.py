"""
Risk Scoring Engine - Main Entry Point.

============================================================
PURPOSE
============================================================
Maps an EntityProfile to a RiskScore:

1. Run every factor assessor against the profile's indicators
2. Sum the active contributions
3. Clamp the total to [0, 100]
4. Classify the level from fixed bands
5. Order factors by contribution (descending, stable)

============================================================
DESIGN PRINCIPLES
============================================================
- Pure and stateless per call: same profile, same result
- Factors are evaluated independently of each other
- Ties keep factor declaration order
- Thresholds come from RiskScoringConfig, never literals here

============================================================
USAGE
============================================================
    from risk_scoring import RiskScoringEngine

    engine = RiskScoringEngine()
    risk = engine.score(profile)

    print(f"{profile.name}: {risk.score}/100 ({risk.level.value})")
    for factor in risk.factors:
        print(f"  +{factor.contribution} {factor.name} ({factor.value})")

============================================================
"""

from typing import List, Optional

from .assessors import (
    AgingCrisisAssessor,
    ArmedConflictAssessor,
    BaseRiskAssessor,
    BrainDrainAssessor,
    CivilUnrestAssessor,
    ContractionAssessor,
    DebtBurdenAssessor,
    DensityAssessor,
    InflationAssessor,
    PopulationGrowthAssessor,
    SanctionsAssessor,
    UrbanizationAssessor,
    YouthBulgeAssessor,
    YouthUnemploymentAssessor,
)
from .config import DEFAULT_CONFIG, RiskScoringConfig
from .types import (
    EntityProfile,
    IndicatorSet,
    RiskFactor,
    RiskLevel,
    RiskScore,
    RiskScoringError,
    ScoredProfile,
)


class RiskScoringEngine:
    """
    Deterministic factor-sum scorer.

    ============================================================
    FACTOR ORDER
    ============================================================
    Declaration order doubles as the tiebreak when two factors
    contribute equally:

     1. Youth bulge            8. Armed conflict
     2. Aging crisis           9. Sanctions exposure
     3. Youth unemployment    10. Civil unrest
     4. Rapid urbanization    11. High inflation
     5. Brain drain           12. Debt burden
     6. Population density    13. Economic contraction
     7. Rapid population growth

    ============================================================
    """

    def __init__(self, config: Optional[RiskScoringConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Factor thresholds and level bands.
                    Uses defaults if not provided.
        """
        self.config = config or DEFAULT_CONFIG

        cfg = self.config
        self._assessors: List[BaseRiskAssessor] = [
            YouthBulgeAssessor(cfg.youth_bulge),
            AgingCrisisAssessor(cfg.aging_crisis),
            YouthUnemploymentAssessor(cfg.youth_unemployment),
            UrbanizationAssessor(cfg.urbanization),
            BrainDrainAssessor(cfg.brain_drain),
            DensityAssessor(cfg.density),
            PopulationGrowthAssessor(cfg.population_growth),
            ArmedConflictAssessor(cfg.armed_conflict),
            SanctionsAssessor(cfg.sanctions),
            CivilUnrestAssessor(cfg.civil_unrest),
            InflationAssessor(cfg.inflation),
            DebtBurdenAssessor(cfg.debt_burden),
            ContractionAssessor(cfg.contraction),
        ]

    @property
    def assessors(self) -> List[BaseRiskAssessor]:
        return list(self._assessors)

    def score(self, profile: EntityProfile) -> RiskScore:
        """
        Score one entity profile.

        Args:
            profile: Assembled profile

        Returns:
            RiskScore with clamped score, level and ordered factors

        Raises:
            RiskScoringError: If an assessor fails (programming error)
        """
        return self.score_indicators(profile.indicators, iso2=profile.iso2)

    def score_indicators(self, indicators: IndicatorSet, iso2: Optional[str] = None) -> RiskScore:
        """Score a bare indicator bundle."""
        # --------------------------------------------------
        # Step 1: Evaluate factors independently
        # --------------------------------------------------
        factors: List[RiskFactor] = []
        for assessor in self._assessors:
            try:
                factor = assessor.assess(indicators)
            except Exception as e:
                raise RiskScoringError(
                    f"{assessor.factor_name} assessment failed: {e}",
                    iso2=iso2,
                ) from e
            if factor is not None:
                factors.append(factor)

        # --------------------------------------------------
        # Step 2: Sum and clamp
        # --------------------------------------------------
        total = sum(f.contribution for f in factors)
        total = max(0, min(self.config.max_score, total))

        # --------------------------------------------------
        # Step 3: Order factors (sorted() is stable)
        # --------------------------------------------------
        ordered = sorted(factors, key=lambda f: f.contribution, reverse=True)

        return RiskScore(
            score=total,
            level=self.config.bands.classify(total),
            factors=tuple(ordered),
        )

    def score_profile(self, profile: EntityProfile) -> ScoredProfile:
        return ScoredProfile(profile=profile, risk=self.score(profile))

    def classify(self, score: int) -> RiskLevel:
        return self.config.bands.classify(score)


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


_default_engine: Optional[RiskScoringEngine] = None


def _engine() -> RiskScoringEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = RiskScoringEngine()
    return _default_engine


def score_profile(profile: EntityProfile) -> RiskScore:
    """Score with the default configuration."""
    return _engine().score(profile)


def classify_risk_level(score: int) -> RiskLevel:
    """Level for a 0-100 score under the default bands."""
    return DEFAULT_CONFIG.bands.classify(score)


def format_risk_summary(scored: ScoredProfile) -> str:
    """
    Human-readable multi-line summary.

    Useful for CLI output and logs.
    """
    lines = [
        "=" * 50,
        f"{scored.name} ({scored.iso2}) - {scored.region}",
        "=" * 50,
        f"Risk Score: {scored.score}/100",
        f"Risk Level: {scored.level.value.upper()}",
        f"Data Source: {scored.profile.data_source.value} "
        f"({scored.profile.fetched_indicators} live indicators)",
        "",
        "Factors:",
    ]

    if not scored.risk.factors:
        lines.append("  (none)")
    for factor in scored.risk.factors:
        lines.append(f"  +{factor.contribution:<3} {factor.name}: {factor.value}")

    lines.append("=" * 50)
    return "\n".join(lines)
