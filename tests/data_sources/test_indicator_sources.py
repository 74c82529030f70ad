"""
Tests for the Provider Adapters.

============================================================
PURPOSE
============================================================
Verify each provider's request shape, body normalization and
failure isolation without touching the network.

TEST PRINCIPLES:
- HTTP is replaced by a scripted fake session
- A failed call yields None, never an exception
- Only successful observations are cached

============================================================
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from cache.store import InMemoryCacheStore
from core.clock import MockClock
from data_sources.models import IndicatorRequest, MonitoredEntity, SourceStatus
from data_sources.providers import (
    GdeltUnrestSource,
    SanctionsReferenceSource,
    UcdpConflictSource,
    WorldBankDemographicSource,
    WorldBankEconomicSource,
)


# ============================================================
# FAKE HTTP
# ============================================================

class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status=200, body=None, headers=None):
        self.status = status
        self._body = body
        self.headers = headers or {}

    async def json(self, content_type=None):
        if isinstance(self._body, str):
            raise ValueError("not JSON")
        return self._body

    async def text(self):
        return str(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records requests and answers them from a responder callable."""

    def __init__(self, responder):
        self._responder = responder
        self.calls = []
        self.closed = False

    def request(self, method, url, params=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "headers": headers})
        return self._responder(url, params or {})

    async def close(self):
        self.closed = True


def respond_with(*responses):
    """Responder returning the given responses in order, repeating the last."""
    queue = list(responses)

    def responder(url, params):
        return queue.pop(0) if len(queue) > 1 else queue[0]

    return responder


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def nigeria():
    return MonitoredEntity(iso2="NG", name="Nigeria", region="Sub-Saharan Africa")


@pytest.fixture
def russia():
    return MonitoredEntity(iso2="RU", name="Russia", region="Europe")


@pytest.fixture
def clock():
    return MockClock(datetime(2024, 6, 1, tzinfo=timezone.utc))


@pytest.fixture
def youth_request(nigeria):
    return IndicatorRequest(entity=nigeria, indicator="youth_pct", code="SP.POP.0014.TO.ZS")


# ============================================================
# WORLD BANK
# ============================================================

class TestWorldBankSource:
    """Tests for the World Bank adapters."""

    @pytest.mark.asyncio
    async def test_first_non_null_row_wins(self, youth_request):
        body = [
            {"page": 1, "pages": 1},
            [
                {"value": None, "date": "2023"},
                {"value": 43.3, "date": "2022"},
                {"value": 44.0, "date": "2021"},
            ],
        ]
        session = FakeSession(respond_with(FakeResponse(body=body)))
        source = WorldBankDemographicSource(session=session)

        observation = await source.fetch_indicator(youth_request)

        assert observation.value == 43.3
        assert observation.observed_at == "2022"
        call = session.calls[0]
        assert call["url"].endswith("/NG/indicator/SP.POP.0014.TO.ZS")
        assert call["params"]["format"] == "json"

    @pytest.mark.asyncio
    async def test_all_null_rows_is_absent(self, youth_request):
        body = [{"page": 1}, [{"value": None, "date": "2023"}]]
        source = WorldBankDemographicSource(session=FakeSession(respond_with(FakeResponse(body=body))))

        assert await source.fetch_indicator(youth_request) is None
        assert source.get_incidents() == []

    @pytest.mark.asyncio
    async def test_server_error_is_none_with_incident(self, youth_request):
        source = WorldBankDemographicSource(
            session=FakeSession(respond_with(FakeResponse(status=500, body="boom"))),
        )

        assert await source.fetch_indicator(youth_request) is None

        incidents = source.get_incidents()
        assert len(incidents) == 1
        assert incidents[0].incident_type == "FetchError"
        assert incidents[0].request_params["indicator"] == "youth_pct"

    @pytest.mark.asyncio
    async def test_error_body_is_normalization_failure(self, youth_request):
        body = [{"message": [{"id": "120", "value": "Invalid value"}]}]
        source = WorldBankDemographicSource(session=FakeSession(respond_with(FakeResponse(body=body))))

        assert await source.fetch_indicator(youth_request) is None
        assert source.get_incidents()[0].incident_type == "NormalizationError"

    @pytest.mark.asyncio
    async def test_non_json_body(self, youth_request):
        source = WorldBankDemographicSource(
            session=FakeSession(respond_with(FakeResponse(body="<html>maintenance</html>"))),
        )
        assert await source.fetch_indicator(youth_request) is None

    @pytest.mark.asyncio
    async def test_degraded_after_repeated_failures(self, youth_request):
        source = WorldBankDemographicSource(
            session=FakeSession(respond_with(FakeResponse(status=503, body=""))),
        )
        for _ in range(3):
            await source.fetch_indicator(youth_request)

        assert source.get_health().status == SourceStatus.DEGRADED
        assert source.get_health().uptime_percentage == 0

    @pytest.mark.asyncio
    async def test_retry_on_server_error(self, youth_request):
        body = [{"page": 1}, [{"value": 41.0, "date": "2023"}]]
        sleep = AsyncMock()
        source = WorldBankDemographicSource(
            session=FakeSession(respond_with(FakeResponse(status=503, body=""), FakeResponse(body=body))),
            max_retries=2,
            sleep=sleep,
        )

        observation = await source.fetch_indicator(youth_request)

        assert observation.value == 41.0
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_successes_are_cached(self, youth_request, clock):
        body = [{"page": 1}, [{"value": 43.3, "date": "2022"}]]
        session = FakeSession(respond_with(FakeResponse(body=body)))
        source = WorldBankDemographicSource(cache=InMemoryCacheStore(clock), session=session)

        first = await source.fetch_indicator(youth_request)
        second = await source.fetch_indicator(youth_request)

        assert first == second
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, youth_request, clock):
        body = [{"page": 1}, [{"value": 43.3, "date": "2022"}]]
        session = FakeSession(respond_with(FakeResponse(status=500, body=""), FakeResponse(body=body)))
        source = WorldBankDemographicSource(cache=InMemoryCacheStore(clock), session=session)

        assert await source.fetch_indicator(youth_request) is None
        assert (await source.fetch_indicator(youth_request)).value == 43.3

    @pytest.mark.asyncio
    async def test_fetch_entity_covers_every_indicator(self, nigeria):
        body = [{"page": 1}, [{"value": 2.4, "date": "2023"}]]
        session = FakeSession(respond_with(FakeResponse(body=body)))
        source = WorldBankEconomicSource(session=session)

        observations = await source.fetch_entity(nigeria)

        assert set(observations) == set(source.metadata().indicators)
        assert all(o.value == 2.4 for o in observations.values())
        assert len(session.calls) == 6

    def test_timeout_is_capped(self):
        assert WorldBankDemographicSource(max_timeout=5.0).timeout == 5.0
        assert WorldBankEconomicSource(max_timeout=30.0).timeout == 10.0

    def test_only_demographic_counts_toward_live(self):
        assert WorldBankDemographicSource().metadata().counts_toward_live
        assert not WorldBankEconomicSource().metadata().counts_toward_live


# ============================================================
# UCDP
# ============================================================

class TestUcdpConflictSource:
    """Tests for the UCDP GED adapter."""

    @pytest.mark.asyncio
    async def test_falls_back_to_previous_year(self, nigeria, clock):
        def responder(url, params):
            if params["StartDate"].startswith("2024"):
                return FakeResponse(body={"TotalCount": 0, "Result": []})
            return FakeResponse(body={
                "TotalCount": 3,
                "Result": [{"best": 3}, {"best": "7"}, {"best": None}],
            })

        session = FakeSession(responder)
        source = UcdpConflictSource(session=session, clock=clock, access_token="secret")

        observations = await source.fetch_entity(nigeria)

        assert observations["conflict_events"].value == 3
        assert observations["conflict_fatalities"].value == 10
        assert observations["conflict_fatalities"].observed_at == "2023"
        assert [c["params"]["Country"] for c in session.calls] == ["475", "475"]
        assert session.calls[0]["headers"] == {"x-ucdp-access-token": "secret"}

    @pytest.mark.asyncio
    async def test_current_year_used_when_present(self, nigeria, clock):
        session = FakeSession(respond_with(FakeResponse(body={"Result": [{"best": 12}]})))
        source = UcdpConflictSource(session=session, clock=clock)

        observations = await source.fetch_entity(nigeria)

        assert observations["conflict_fatalities"].observed_at == "2024"
        assert len(session.calls) == 1
        assert session.calls[0]["headers"] is None

    @pytest.mark.asyncio
    async def test_follows_every_page(self, nigeria, clock):
        def responder(url, params):
            size = 500 if params["page"] == "2" else 1000
            return FakeResponse(body={
                "TotalCount": 2500,
                "TotalPages": 3,
                "Result": [{"best": 1}] * size,
            })

        session = FakeSession(responder)
        source = UcdpConflictSource(session=session, clock=clock)

        observations = await source.fetch_entity(nigeria)

        assert observations["conflict_events"].value == 2500
        assert observations["conflict_fatalities"].value == 2500
        assert [c["params"]["page"] for c in session.calls] == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_event_count_not_capped_by_page_limit(self, nigeria, clock):
        body = {"TotalCount": 15000, "TotalPages": 15, "Result": [{"best": 2}] * 1000}
        session = FakeSession(respond_with(FakeResponse(body=body)))
        source = UcdpConflictSource(session=session, clock=clock)

        observations = await source.fetch_entity(nigeria)

        assert len(session.calls) == 10
        assert observations["conflict_events"].value == 15000
        assert observations["conflict_fatalities"].value == 20000

    @pytest.mark.asyncio
    async def test_unknown_country_not_requested(self, clock):
        source = UcdpConflictSource(clock=clock)
        entity = MonitoredEntity(iso2="ZZ", name="Nowhere", region="Test")
        assert await source.fetch_entity(entity) == {}


# ============================================================
# GDELT
# ============================================================

class TestGdeltUnrestSource:
    """Tests for the GDELT article-count adapter."""

    @pytest.mark.asyncio
    async def test_counts_articles(self, nigeria):
        session = FakeSession(respond_with(FakeResponse(body={"articles": [{}, {}, {}]})))
        source = GdeltUnrestSource(session=session, sleep=AsyncMock())

        observations = await source.fetch_entity(nigeria)

        assert observations["unrest_articles"].value == 3
        params = session.calls[0]["params"]
        assert params["query"].endswith('"Nigeria"')
        assert params["timespan"] == "14d"
        assert params["mode"] == "artlist"

    @pytest.mark.asyncio
    async def test_empty_object_is_zero(self, nigeria):
        session = FakeSession(respond_with(FakeResponse(body={})))
        source = GdeltUnrestSource(session=session, sleep=AsyncMock())

        observations = await source.fetch_entity(nigeria)
        assert observations["unrest_articles"].value == 0

    @pytest.mark.asyncio
    async def test_malformed_articles(self, nigeria):
        session = FakeSession(respond_with(FakeResponse(body={"articles": "nope"})))
        source = GdeltUnrestSource(session=session, sleep=AsyncMock())

        observations = await source.fetch_entity(nigeria)
        assert observations == {"unrest_articles": None}


# ============================================================
# SANCTIONS
# ============================================================

class TestSanctionsReferenceSource:
    """Tests for the static sanctions table."""

    @pytest.mark.asyncio
    async def test_comprehensive_regime(self, russia):
        source = SanctionsReferenceSource()

        observations = await source.fetch_entity(russia)

        assert observations["sanctions_severity"].value == 1.0
        assert observations["sanctions_programs"].value == 2

    @pytest.mark.asyncio
    async def test_unsanctioned_country_has_no_data(self, nigeria):
        source = SanctionsReferenceSource()
        assert await source.fetch_entity(nigeria) == {}

    @pytest.mark.asyncio
    async def test_reference_source_is_healthy(self):
        health = await SanctionsReferenceSource().health_check()
        assert health.status == SourceStatus.HEALTHY

    def test_regime_lookup_is_case_insensitive(self):
        assert SanctionsReferenceSource().regime_for("ve").level == "targeted"
