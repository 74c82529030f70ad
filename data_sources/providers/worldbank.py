"""
World Bank Indicator Sources - Public API adapters.

Implements demographic and economic indicator fetching from the
World Bank Indicators API (v2). No authentication required.
Data license: CC BY 4.0.
"""

import logging
import math
from typing import Any, Optional

from data_sources.base import BaseIndicatorSource
from data_sources.exceptions import NormalizationError
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


WB_BASE = "https://api.worldbank.org/v2/country"

DEMOGRAPHIC_INDICATORS: dict[str, str] = {
    "population": "SP.POP.TOTL",
    "pop_growth": "SP.POP.GROW",
    "fertility_rate": "SP.DYN.TFRT.IN",
    "life_expectancy": "SP.DYN.LE00.IN",
    "elderly_pct": "SP.POP.65UP.TO.ZS",
    "youth_pct": "SP.POP.0014.TO.ZS",
    "urban_pct": "SP.URB.TOTL.IN.ZS",
    "youth_unemployment": "SL.UEM.1524.ZS",
    "density": "EN.POP.DNST",
    "net_migration": "SM.POP.NETM",
}

ECONOMIC_INDICATORS: dict[str, str] = {
    "inflation": "FP.CPI.TOTL.ZG",
    "gdp_growth": "NY.GDP.MKTP.KD.ZG",
    "unemployment": "SL.UEM.TOTL.ZS",
    "debt_to_gdp": "GC.DOD.TOTL.GD.ZS",
    "trade_pct_gdp": "NE.TRD.GNFS.ZS",
    "current_account": "BN.CAB.XOKA.GD.ZS",
}


class WorldBankIndicatorSource(BaseIndicatorSource):
    """
    One World Bank call per (country, indicator).

    Response shape:
        [ {page metadata}, [ {"value": 43.3, "date": "2023", ...}, ... ] ]

    The most recent row with a non-null value wins (mrv=1 asks for the
    most recent value, per_page=5 leaves room for null padding rows).
    """

    INDICATORS: dict[str, str] = {}

    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        return [
            IndicatorRequest(entity=entity, indicator=name, code=code)
            for name, code in self.INDICATORS.items()
        ]

    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        url = f"{WB_BASE}/{request.iso2}/indicator/{request.code}"
        params = {"format": "json", "per_page": "5", "mrv": "1"}
        return await self._make_request(url, params=params)

    def normalize(
        self,
        raw_data: Any,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        if not isinstance(raw_data, list) or len(raw_data) < 2 or not isinstance(raw_data[1], list):
            raise NormalizationError(
                message=f"Unexpected body for {request.describe()}",
                source_name=self.name,
                raw_data=raw_data,
            )

        for row in raw_data[1]:
            if not isinstance(row, dict):
                continue
            value = row.get("value")
            if value is None:
                continue
            number = _to_finite_float(value)
            if number is None:
                raise NormalizationError(
                    message=f"Non-numeric value {value!r} for {request.describe()}",
                    source_name=self.name,
                    raw_data=row,
                    field_name="value",
                )
            date = row.get("date")
            return {
                request.indicator: IndicatorObservation(
                    value=number,
                    observed_at=str(date) if date is not None else None,
                )
            }

        return {}


class WorldBankDemographicSource(WorldBankIndicatorSource):
    """
    Population, age structure, urbanization and migration.

    Indicators:
        SP.POP.TOTL        total population
        SP.POP.GROW        population growth (annual %)
        SP.DYN.TFRT.IN     fertility rate (births per woman)
        SP.DYN.LE00.IN     life expectancy at birth (years)
        SP.POP.65UP.TO.ZS  ages 65+ (% of total)
        SP.POP.0014.TO.ZS  ages 0-14 (% of total)
        SP.URB.TOTL.IN.ZS  urban population (% of total)
        SL.UEM.1524.ZS     youth unemployment, ages 15-24 (%)
        EN.POP.DNST        people per sq. km
        SM.POP.NETM        net migration
    """

    INDICATORS = DEMOGRAPHIC_INDICATORS

    @property
    def name(self) -> str:
        return "worldbank_demographic"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="worldbank_demographic",
            display_name="World Bank Demographic Indicators",
            indicators=tuple(DEMOGRAPHIC_INDICATORS),
            timeout_seconds=15.0,
            base_url=WB_BASE,
            documentation_url="https://datahelpdesk.worldbank.org/knowledgebase/articles/889392",
            counts_toward_live=True,
            tags=("demographic", "annual"),
        )


class WorldBankEconomicSource(WorldBankIndicatorSource):
    """Inflation, growth, unemployment, debt, trade and current account."""

    INDICATORS = ECONOMIC_INDICATORS

    @property
    def name(self) -> str:
        return "worldbank_economic"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="worldbank_economic",
            display_name="World Bank Economic Indicators",
            indicators=tuple(ECONOMIC_INDICATORS),
            timeout_seconds=10.0,
            base_url=WB_BASE,
            documentation_url="https://datahelpdesk.worldbank.org/knowledgebase/articles/889392",
            tags=("economic", "annual"),
        )


def _to_finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
