"""
Sanctions Reference Source - Static OFAC/EU programme reference data.

No network I/O. Emits observations only for sanctioned countries;
everyone else simply has no sanctions indicators.
"""

from dataclasses import dataclass
from typing import Any

from data_sources.base import BaseIndicatorSource
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceMetadata,
)


COMPREHENSIVE = "comprehensive"
TARGETED = "targeted"

SEVERITY = {
    COMPREHENSIVE: 1.0,
    TARGETED: 0.6,
}


@dataclass(frozen=True)
class SanctionsRegime:
    iso2: str
    country: str
    programs: tuple[str, ...]
    level: str
    sectors: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "iso2": self.iso2,
            "country": self.country,
            "programs": list(self.programs),
            "level": self.level,
            "sectors": list(self.sectors),
        }


SANCTIONED_REGIMES: tuple[SanctionsRegime, ...] = (
    SanctionsRegime("RU", "Russia", ("UKRAINE-EO13661", "RUSSIA-EO14024"), COMPREHENSIVE,
                    ("energy", "finance", "tech", "defense")),
    SanctionsRegime("IR", "Iran", ("IRAN", "IRAN-HR"), COMPREHENSIVE,
                    ("energy", "finance", "nuclear", "metals")),
    SanctionsRegime("KP", "North Korea", ("DPRK", "DPRK2", "DPRK3"), COMPREHENSIVE, ("all",)),
    SanctionsRegime("SY", "Syria", ("SYRIA",), COMPREHENSIVE, ("energy", "finance", "defense")),
    SanctionsRegime("CU", "Cuba", ("CUBA",), COMPREHENSIVE, ("all",)),
    SanctionsRegime("VE", "Venezuela", ("VENEZUELA-EO13692",), TARGETED, ("energy", "finance", "mining")),
    SanctionsRegime("MM", "Myanmar", ("BURMA-EO14014",), TARGETED, ("defense", "mining")),
    SanctionsRegime("BY", "Belarus", ("BELARUS-EO14038",), TARGETED, ("energy", "finance", "potash")),
    SanctionsRegime("CN", "China", ("CHINA-EO13959", "CMIC"), TARGETED, ("tech", "defense", "surveillance")),
    SanctionsRegime("YE", "Yemen (Houthis)", ("YEMEN",), TARGETED, ("defense", "maritime")),
)


class SanctionsReferenceSource(BaseIndicatorSource):
    """
    Sanctions exposure from the static regime table.

    Produces:
        sanctions_programs   number of programmes
        sanctions_severity   1.0 comprehensive, 0.6 targeted
    """

    def __init__(self, *args: Any, regimes: tuple[SanctionsRegime, ...] = SANCTIONED_REGIMES, **kwargs: Any) -> None:
        self._regimes = {r.iso2: r for r in regimes}
        super().__init__(*args, **kwargs)

    @property
    def name(self) -> str:
        return "sanctions"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="sanctions",
            display_name="Sanctions Programmes (OFAC/EU reference)",
            indicators=("sanctions_programs", "sanctions_severity"),
            timeout_seconds=1.0,
            documentation_url="https://ofac.treasury.gov/sanctions-programs-and-country-information",
            is_reference=True,
            tags=("sanctions", "static"),
        )

    def regime_for(self, iso2: str) -> SanctionsRegime | None:
        return self._regimes.get(iso2.upper())

    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        if entity.iso2 not in self._regimes:
            return []
        return [IndicatorRequest(entity=entity, indicator="sanctions", code="reference")]

    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        return self._regimes.get(request.iso2)

    def normalize(
        self,
        raw_data: Any,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        if raw_data is None:
            return {}
        return {
            "sanctions_programs": IndicatorObservation(value=float(len(raw_data.programs))),
            "sanctions_severity": IndicatorObservation(value=SEVERITY.get(raw_data.level, 0.0)),
        }
