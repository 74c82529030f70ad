"""
GDELT Unrest Source - GDELT DOC 2.0 API adapter.

Counts protest/unrest articles mentioning a country over the last
14 days. GDELT asks clients to keep to one request every five
seconds, so calls are serialized and spaced.
"""

import logging
from typing import Any

from data_sources.base import BaseIndicatorSource
from data_sources.exceptions import NormalizationError
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


GDELT_DOC_BASE = "https://api.gdeltproject.org/api/v2/doc/doc"

UNREST_TERMS = 'protest OR unrest OR demonstration OR riot OR "strike action"'
TIMESPAN = "14d"
MAX_RECORDS = 250


class GdeltUnrestSource(BaseIndicatorSource):
    """
    Article-list query per country.

    Response shape:
        {"articles": [{"url": ..., "title": ..., "seendate": ...}, ...]}

    GDELT answers an empty object when nothing matches.
    """

    @property
    def name(self) -> str:
        return "gdelt"

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name="gdelt",
            display_name="GDELT DOC 2.0 (unrest coverage)",
            indicators=("unrest_articles",),
            timeout_seconds=12.0,
            base_url=GDELT_DOC_BASE,
            documentation_url="https://blog.gdeltproject.org/gdelt-doc-2-0-api-debuts/",
            max_concurrency=1,
            min_interval_seconds=5.0,
            tags=("unrest", "news"),
        )

    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        return [IndicatorRequest(entity=entity, indicator="unrest_articles", code=TIMESPAN)]

    def build_query(self, entity: MonitoredEntity) -> str:
        return f'({UNREST_TERMS}) "{entity.name}"'

    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        params = {
            "query": self.build_query(request.entity),
            "mode": "artlist",
            "format": "json",
            "maxrecords": str(MAX_RECORDS),
            "timespan": TIMESPAN,
        }
        return await self._make_request(GDELT_DOC_BASE, params=params)

    def normalize(
        self,
        raw_data: Any,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        if not isinstance(raw_data, dict):
            raise NormalizationError(
                message=f"Unexpected body for {request.describe()}",
                source_name=self.name,
                raw_data=raw_data,
            )
        articles = raw_data.get("articles") or []
        if not isinstance(articles, list):
            raise NormalizationError(
                message="articles is not a list",
                source_name=self.name,
                raw_data=raw_data,
                field_name="articles",
            )
        return {
            "unrest_articles": IndicatorObservation(value=float(len(articles)), observed_at=TIMESPAN),
        }
