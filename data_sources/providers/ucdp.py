"""
UCDP Conflict Source - Uppsala Conflict Data Program GED API adapter.

Counts georeferenced organized-violence events and their best-estimate
fatalities for the current calendar year, falling back to the previous
year when the current one has no published events yet.
"""

import logging
from typing import Any, Optional

from core.clock import ClockFactory, ClockProtocol
from data_sources.base import BaseIndicatorSource
from data_sources.exceptions import NormalizationError
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


UCDP_BASE = "https://ucdpapi.pcr.uu.se/api"
GED_VERSION = "24.1"
PAGE_SIZE = 1000
MAX_PAGES = 10

# Gleditsch-Ward country codes, which the GED "Country" filter expects
GW_CODES: dict[str, int] = {
    "NG": 475, "ET": 530, "EG": 651, "CD": 490, "ZA": 560, "KE": 501,
    "SD": 625, "TZ": 510, "SA": 670, "IQ": 645, "YE": 678, "SY": 652,
    "JO": 663, "LB": 660, "IN": 750, "PK": 770, "BD": 771, "AF": 700,
    "NP": 790, "CN": 710, "JP": 740, "ID": 850, "PH": 840, "VN": 816,
    "MM": 775, "TH": 800, "KR": 732, "DE": 260, "FR": 220, "GB": 200,
    "IT": 325, "UA": 369, "PL": 290, "RU": 365, "TR": 640, "US": 2,
    "BR": 140, "MX": 70, "CO": 100, "AR": 160, "VE": 101, "PE": 135,
    "HT": 41, "AU": 900,
}


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class UcdpConflictSource(BaseIndicatorSource):
    """
    UCDP GED events for one country-year.

    Response shape:
        {"TotalCount": 12, "TotalPages": 1, "Result": [{"best": 3, ...}, ...], ...}

    Pages are followed up to MAX_PAGES. The event count comes from
    TotalCount when present, so it is never capped by paging.

    Produces:
        conflict_events      number of events (TotalCount)
        conflict_fatalities  sum of "best" estimates
    """

    def __init__(
        self,
        *args: Any,
        access_token: Optional[str] = None,
        clock: Optional[ClockProtocol] = None,
        **kwargs: Any,
    ) -> None:
        self._access_token = access_token
        self._clock = clock or ClockFactory.get_clock()
        super().__init__(*args, **kwargs)

    @property
    def name(self) -> str:
        return "ucdp"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="ucdp",
            display_name="UCDP Georeferenced Event Dataset",
            indicators=("conflict_events", "conflict_fatalities"),
            timeout_seconds=20.0,
            base_url=UCDP_BASE,
            documentation_url="https://ucdp.uu.se/apidocs/",
            max_concurrency=2,
            tags=("conflict", "annual"),
        )

    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        code = GW_CODES.get(entity.iso2)
        if code is None:
            return []
        return [IndicatorRequest(entity=entity, indicator="conflict", code=str(code))]

    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        year = self._clock.current_year()
        body = await self._fetch_year(request, year)
        if self._events(body, request):
            return {"year": year, "body": body}

        logger.debug(f"[{self.name}] No {year} events for {request.iso2}, trying {year - 1}")
        body = await self._fetch_year(request, year - 1)
        return {"year": year - 1, "body": body}

    async def _fetch_year(self, request: IndicatorRequest, year: int) -> dict[str, Any]:
        """Fetch every page of one country-year, up to MAX_PAGES."""
        url = f"{UCDP_BASE}/gedevents/{GED_VERSION}"
        headers = {"x-ucdp-access-token": self._access_token} if self._access_token else None

        events: list[dict[str, Any]] = []
        total_count: Optional[int] = None
        page = 0
        total_pages = 1
        while page < total_pages and page < MAX_PAGES:
            params = {
                "pagesize": str(PAGE_SIZE),
                "page": str(page),
                "Country": request.code,
                "StartDate": f"{year}-01-01",
                "EndDate": f"{year}-12-31",
            }
            body = await self._make_request(url, params=params, headers=headers)
            events.extend(self._events(body, request))
            if page == 0:
                total_count = _as_int(body.get("TotalCount"))
                total_pages = _as_int(body.get("TotalPages")) or 1
            page += 1

        if total_pages > MAX_PAGES:
            logger.warning(
                f"[{self.name}] {request.iso2} {year}: {total_pages} pages, "
                f"fatalities summed over the first {MAX_PAGES}"
            )
        return {"TotalCount": total_count, "Result": events}

    def _events(self, body: Any, request: IndicatorRequest) -> list[dict[str, Any]]:
        if not isinstance(body, dict):
            raise NormalizationError(
                message=f"Unexpected body for {request.describe()}",
                source_name=self.name,
                raw_data=body,
            )
        events = body.get("Result") or []
        if not isinstance(events, list):
            raise NormalizationError(
                message="Result is not a list",
                source_name=self.name,
                raw_data=body,
                field_name="Result",
            )
        return [e for e in events if isinstance(e, dict)]

    def normalize(
        self,
        raw_data: Any,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        year = str(raw_data["year"])
        events = self._events(raw_data["body"], request)

        fatalities = 0
        for event in events:
            best = event.get("best")
            if best is None:
                continue
            try:
                fatalities += int(best)
            except (TypeError, ValueError):
                continue

        count = _as_int(raw_data["body"].get("TotalCount"))
        if count is None or count < len(events):
            count = len(events)

        return {
            "conflict_events": IndicatorObservation(value=float(count), observed_at=year),
            "conflict_fatalities": IndicatorObservation(value=float(fatalities), observed_at=year),
        }
