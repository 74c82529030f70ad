"""
Risk Scoring Engine - Assessors.

============================================================
PURPOSE
============================================================
One assessor per risk factor. Each assessor:
1. Reads the indicators it needs from an IndicatorSet
2. Returns None when its gate is closed or data is missing
3. Otherwise returns a RiskFactor with a clamped contribution

============================================================
DESIGN PRINCIPLES
============================================================
- Pure: same indicators = same factor
- A missing indicator never contributes (absent is not zero)
- Contributions are clamped to the factor ceiling
- Value strings show indicators in their published precision

============================================================
"""

from abc import ABC, abstractmethod
from typing import Optional

from .config import AgingCrisisConfig, RampConfig, YouthUnemploymentConfig
from .types import IndicatorSet, RiskFactor, format_number, round_int


# ============================================================
# BASE ASSESSORS
# ============================================================


class BaseRiskAssessor(ABC):
    """Abstract base class for factor assessors."""

    @property
    @abstractmethod
    def factor_name(self) -> str:
        """Display name of the factor."""
        pass

    @abstractmethod
    def assess(self, indicators: IndicatorSet) -> Optional[RiskFactor]:
        """Return the factor if it fires, otherwise None."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.factor_name})>"


class RampAssessor(BaseRiskAssessor):
    """
    Single-indicator factor driven by a RampConfig.

    Subclasses set the indicator name and texts; negate=True flips
    the indicator so that "more negative is worse" reads as a
    regular upward ramp.
    """

    indicator: str = ""
    description: str = ""
    negate: bool = False

    def __init__(self, config: RampConfig):
        self.config = config

    def assess(self, indicators: IndicatorSet) -> Optional[RiskFactor]:
        raw = indicators.get(self.indicator)
        if raw is None:
            return None

        value = -raw if self.negate else raw
        if not self.config.is_active(value):
            return None

        return RiskFactor(
            name=self.factor_name,
            contribution=self.config.contribution(value),
            value=self.value_text(raw, indicators),
            description=self.describe(raw),
        )

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return format_number(raw)

    def describe(self, raw: float) -> str:
        return self.description


# ============================================================
# DEMOGRAPHIC ASSESSORS
# ============================================================


class YouthBulgeAssessor(RampAssessor):
    """Large 0-14 cohort: social instability pressure."""

    indicator = "youth_pct"
    description = "Large youth population increases social instability pressure"

    @property
    def factor_name(self) -> str:
        return "Youth bulge"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)}% under 14"


class AgingCrisisAssessor(BaseRiskAssessor):
    """
    Aging population with low fertility: economic pressure.

    Both sub-indicators must be present and past their thresholds.
    """

    def __init__(self, config: Optional[AgingCrisisConfig] = None):
        self.config = config or AgingCrisisConfig()

    @property
    def factor_name(self) -> str:
        return "Aging crisis"

    def assess(self, indicators: IndicatorSet) -> Optional[RiskFactor]:
        elderly = indicators.elderly_pct
        fertility = indicators.fertility_rate
        if elderly is None or fertility is None:
            return None

        cfg = self.config
        if not (elderly > cfg.elderly_threshold and fertility < cfg.fertility_threshold):
            return None

        aging_severity = (elderly - cfg.elderly_threshold) / cfg.elderly_span
        fertility_severity = (cfg.fertility_threshold - fertility) / cfg.fertility_span
        contribution = min(cfg.ceiling, round_int((aging_severity + fertility_severity) * cfg.scale))

        return RiskFactor(
            name=self.factor_name,
            contribution=max(0, contribution),
            value=f"{format_number(elderly)}% over 65, fertility {format_number(fertility)}",
            description="Aging population with low fertility creates economic pressure",
        )


class YouthUnemploymentAssessor(BaseRiskAssessor):
    """Youth (15-24) unemployment above 15%; wording escalates above 25%."""

    def __init__(self, config: Optional[YouthUnemploymentConfig] = None):
        self.config = config or YouthUnemploymentConfig()

    @property
    def factor_name(self) -> str:
        return "Youth unemployment"

    def assess(self, indicators: IndicatorSet) -> Optional[RiskFactor]:
        value = indicators.youth_unemployment
        if not self.config.ramp.is_active(value):
            return None

        if value > self.config.critical_above:
            description = "Critical youth unemployment levels increase unrest risk"
        else:
            description = "Elevated youth unemployment is a destabilizing factor"

        return RiskFactor(
            name=self.factor_name,
            contribution=self.config.ramp.contribution(value),
            value=f"{format_number(value)}%",
            description=description,
        )


class UrbanizationAssessor(BaseRiskAssessor):
    """
    Rapid urbanization, proxied by growth rate x urban share.

    e.g. 3.2% growth at 46.8% urban -> proxy 1.50 (just below gate)
    """

    def __init__(self, config: RampConfig):
        self.config = config

    @property
    def factor_name(self) -> str:
        return "Rapid urbanization"

    def assess(self, indicators: IndicatorSet) -> Optional[RiskFactor]:
        urban = indicators.urban_pct
        growth = indicators.pop_growth
        if urban is None or growth is None:
            return None

        proxy = growth * (urban / 100)
        if not self.config.is_active(proxy):
            return None

        return RiskFactor(
            name=self.factor_name,
            contribution=self.config.contribution(proxy),
            value=f"{format_number(urban)}% urban, {format_number(growth)}% growth",
            description="Rapid urban growth strains infrastructure and services",
        )


class BrainDrainAssessor(RampAssessor):
    indicator = "net_migration"
    description = "Significant outward migration indicates brain drain"
    negate = True

    @property
    def factor_name(self) -> str:
        return "Brain drain"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"Net migration: {raw / 1000:.0f}K"


class DensityAssessor(RampAssessor):
    indicator = "density"
    description = "Very high population density increases resource competition"

    @property
    def factor_name(self) -> str:
        return "Population density"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)} per km²"


class PopulationGrowthAssessor(RampAssessor):
    indicator = "pop_growth"
    description = "High growth rate strains resources and sustainability"

    @property
    def factor_name(self) -> str:
        return "Rapid population growth"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)}% annual"


# ============================================================
# SUPPLEMENTARY ASSESSORS
# ============================================================


class ArmedConflictAssessor(RampAssessor):
    indicator = "conflict_fatalities"
    description = "Organized violence with recorded fatalities in the current reporting year"

    @property
    def factor_name(self) -> str:
        return "Armed conflict"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        events = indicators.conflict_events
        if events is None:
            return f"{format_number(raw)} fatalities"
        return f"{format_number(raw)} fatalities in {format_number(events)} events"


class SanctionsAssessor(RampAssessor):
    indicator = "sanctions_severity"

    @property
    def factor_name(self) -> str:
        return "Sanctions exposure"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        regime = "comprehensive" if raw >= 1.0 else "targeted"
        programs = indicators.sanctions_programs
        if programs is None:
            return regime
        suffix = "program" if programs == 1 else "programs"
        return f"{regime}, {format_number(programs)} {suffix}"

    def describe(self, raw: float) -> str:
        if raw >= 1.0:
            return "Comprehensive sanctions restrict trade and finance"
        return "Targeted sanctions constrain key sectors"


class CivilUnrestAssessor(RampAssessor):
    indicator = "unrest_articles"
    description = "Sustained protest and unrest coverage over the last two weeks"

    @property
    def factor_name(self) -> str:
        return "Civil unrest"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)} articles (14d)"


class InflationAssessor(RampAssessor):
    indicator = "inflation"
    description = "High consumer price inflation erodes living standards"

    @property
    def factor_name(self) -> str:
        return "High inflation"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)}% CPI"


class DebtBurdenAssessor(RampAssessor):
    indicator = "debt_to_gdp"
    description = "Heavy central government debt limits fiscal room"

    @property
    def factor_name(self) -> str:
        return "Debt burden"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)}% of GDP"


class ContractionAssessor(RampAssessor):
    indicator = "gdp_growth"
    description = "Shrinking output raises unemployment and fiscal stress"
    negate = True

    @property
    def factor_name(self) -> str:
        return "Economic contraction"

    def value_text(self, raw: float, indicators: IndicatorSet) -> str:
        return f"{format_number(raw)}% GDP growth"
