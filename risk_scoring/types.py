"""
Risk Scoring Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts shared by the scoring engine, the batch
orchestrator and the aggregation layer.

============================================================
DESIGN PRINCIPLES
============================================================
- All records are immutable (frozen dataclasses)
- An indicator is either a finite float or None (absent)
- No placeholder sentinels: 0 always means zero
- JSON renderings use camelCase keys and explicit nulls

============================================================
INDICATORS
============================================================
Demographic (World Bank):
    population, pop_growth, fertility_rate, life_expectancy,
    youth_pct, elderly_pct, urban_pct, youth_unemployment,
    density, net_migration
Economic (World Bank):
    inflation, gdp_growth, unemployment, debt_to_gdp,
    trade_pct_gdp, current_account
Conflict (UCDP):
    conflict_events, conflict_fatalities
Sanctions (static reference):
    sanctions_programs, sanctions_severity
Unrest (GDELT):
    unrest_articles

============================================================
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


# ============================================================
# NUMERIC HELPERS
# ============================================================


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round with ties going towards +infinity.

    round_half_up(2.5) == 3, round_half_up(-2.5) == -2,
    round_half_up(44.35, 1) == 44.4 (subject to binary representation).
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_number(value: Optional[float]) -> str:
    """Shortest display form: 45.0 -> '45', 44.3 -> '44.3'."""
    if value is None:
        return "n/a"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


# ============================================================
# ENUMS
# ============================================================


class RiskLevel(str, Enum):
    """
    Discrete risk level derived from a 0-100 score.

    Band edges live in config.LevelBands; see LevelBands.classify().
    """

    CRITICAL = "critical"
    HIGH = "high"
    ELEVATED = "elevated"
    MODERATE = "moderate"
    LOW = "low"

    @classmethod
    def ordered(cls) -> List["RiskLevel"]:
        """Most to least severe."""
        return [cls.CRITICAL, cls.HIGH, cls.ELEVATED, cls.MODERATE, cls.LOW]

    @classmethod
    def from_score(cls, score: float, bands: Any = None) -> "RiskLevel":
        """Classify a score against `bands` (default LevelBands())."""
        if bands is None:
            from .config import LevelBands
            bands = LevelBands()
        return bands.classify(score)

    @property
    def severity_order(self) -> int:
        """0 for LOW up to 4 for CRITICAL."""
        return 4 - RiskLevel.ordered().index(self)

    @property
    def is_high_risk(self) -> bool:
        return self in (RiskLevel.CRITICAL, RiskLevel.HIGH)


class DataSource(str, Enum):
    """Provenance tag of an assembled profile."""

    LIVE = "live"
    FALLBACK = "fallback"


# ============================================================
# INDICATORS
# ============================================================


# Indicators published with one decimal
ONE_DECIMAL_INDICATORS: Tuple[str, ...] = (
    "pop_growth",
    "fertility_rate",
    "life_expectancy",
    "youth_pct",
    "elderly_pct",
    "urban_pct",
    "youth_unemployment",
    "density",
    "inflation",
    "gdp_growth",
    "unemployment",
    "debt_to_gdp",
    "trade_pct_gdp",
    "current_account",
    "sanctions_severity",
)


@dataclass(frozen=True)
class IndicatorSet:
    """
    Bundle of indicator values for one entity.

    Every field is a finite float or None. Integers are accepted and
    stored as floats; NaN, infinities, booleans and strings are
    rejected with ValueError.
    """

    # Demographic
    population: Optional[float] = None
    pop_growth: Optional[float] = None
    fertility_rate: Optional[float] = None
    life_expectancy: Optional[float] = None
    youth_pct: Optional[float] = None
    elderly_pct: Optional[float] = None
    urban_pct: Optional[float] = None
    youth_unemployment: Optional[float] = None
    density: Optional[float] = None
    net_migration: Optional[float] = None

    # Economic
    inflation: Optional[float] = None
    gdp_growth: Optional[float] = None
    unemployment: Optional[float] = None
    debt_to_gdp: Optional[float] = None
    trade_pct_gdp: Optional[float] = None
    current_account: Optional[float] = None

    # Conflict
    conflict_events: Optional[float] = None
    conflict_fatalities: Optional[float] = None

    # Sanctions
    sanctions_programs: Optional[float] = None
    sanctions_severity: Optional[float] = None

    # Unrest
    unrest_articles: Optional[float] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{f.name} must be a number or None, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value!r}")
            object.__setattr__(self, f.name, float(value))

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[float]]) -> "IndicatorSet":
        """Build from a name -> value mapping; unknown names are ignored."""
        known = set(cls.names())
        return cls(**{k: v for k, v in values.items() if k in known})

    def get(self, name: str) -> Optional[float]:
        return getattr(self, name)

    def present(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in self.names() if getattr(self, name) is not None}

    def present_count(self) -> int:
        return len(self.present())

    def merged_over(self, fallback: Optional["IndicatorSet"]) -> "IndicatorSet":
        """Own values win; gaps are filled from fallback."""
        if fallback is None:
            return self
        merged = {}
        for name in self.names():
            own = getattr(self, name)
            merged[name] = own if own is not None else getattr(fallback, name)
        return IndicatorSet(**merged)

    def rounded(self) -> "IndicatorSet":
        """Round rate/percentage/density indicators to one decimal."""
        values = {}
        for name in self.names():
            value = getattr(self, name)
            if value is not None and name in ONE_DECIMAL_INDICATORS:
                value = round_half_up(value, 1)
            values[name] = value
        return IndicatorSet(**values)

    def to_dict(self) -> Dict[str, Optional[float]]:
        """camelCase keys, every indicator present, None for absent."""
        return {to_camel(name): json_number(getattr(self, name)) for name in self.names()}


def json_number(value: Optional[float]) -> Optional[float]:
    if value is not None and value.is_integer():
        return int(value)
    return value


# ============================================================
# PROFILES
# ============================================================


@dataclass(frozen=True)
class EntityProfile:
    """One monitored entity with its assembled indicators."""

    iso2: str
    name: str
    region: str
    indicators: IndicatorSet
    data_source: DataSource
    fetched_indicators: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "country": self.name,
            "iso2": self.iso2,
            "region": self.region,
        }
        data.update(self.indicators.to_dict())
        data["dataSource"] = self.data_source.value
        data["fetchedIndicators"] = self.fetched_indicators
        return data


@dataclass(frozen=True)
class RiskFactor:
    """One scored contributor to a risk score."""

    name: str
    contribution: int
    value: str
    description: str

    def __post_init__(self) -> None:
        if self.contribution < 0:
            raise ValueError(f"contribution must be >= 0, got {self.contribution}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "contribution": self.contribution,
            "value": self.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class RiskScore:
    """Total score, its level, and factors ordered by contribution."""

    score: int
    level: RiskLevel
    factors: Tuple[RiskFactor, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class ScoredProfile:
    """An entity profile with its risk attached."""

    profile: EntityProfile
    risk: RiskScore

    @property
    def iso2(self) -> str:
        return self.profile.iso2

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def region(self) -> str:
        return self.profile.region

    @property
    def score(self) -> int:
        return self.risk.score

    @property
    def level(self) -> RiskLevel:
        return self.risk.level

    def indicator(self, name: str) -> Optional[float]:
        return self.profile.indicators.get(name)

    def to_dict(self) -> Dict[str, Any]:
        data = self.profile.to_dict()
        data["risk"] = self.risk.to_dict()
        return data


# ============================================================
# EXCEPTIONS
# ============================================================


class RiskScoringError(Exception):
    """Raised when scoring hits a programming error."""

    def __init__(self, message: str, iso2: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.iso2 = iso2
        self.details = details or {}
