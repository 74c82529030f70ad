"""
Providers package - Indicator source implementations.
"""

from data_sources.providers.gdelt import GdeltUnrestSource
from data_sources.providers.sanctions import SANCTIONED_REGIMES, SanctionsReferenceSource, SanctionsRegime
from data_sources.providers.ucdp import UcdpConflictSource
from data_sources.providers.worldbank import (
    DEMOGRAPHIC_INDICATORS,
    ECONOMIC_INDICATORS,
    WorldBankDemographicSource,
    WorldBankEconomicSource,
    WorldBankIndicatorSource,
)


__all__ = [
    "WorldBankIndicatorSource",
    "WorldBankDemographicSource",
    "WorldBankEconomicSource",
    "UcdpConflictSource",
    "SanctionsReferenceSource",
    "SanctionsRegime",
    "SANCTIONED_REGIMES",
    "GdeltUnrestSource",
    "DEMOGRAPHIC_INDICATORS",
    "ECONOMIC_INDICATORS",
]
