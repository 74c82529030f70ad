"""
Tests for the SourceRegistry.

============================================================
PURPOSE
============================================================
Verify the per-entity fan-out: observations merged across
sources, live counting, and isolation of failing sources.

============================================================
"""

from typing import Any

import pytest

from core.config import PipelineSettings
from data_sources.base import BaseIndicatorSource
from data_sources.exceptions import FetchError
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceMetadata,
)
from data_sources.registry import SourceRegistry, build_default_registry


# ============================================================
# STUB SOURCES
# ============================================================

class StubSource(BaseIndicatorSource):
    """Serves fixed values; can be told to fail every call."""

    def __init__(self, name: str, values: dict[str, Any], live: bool = False, fail: bool = False):
        self._name = name
        self._values = values
        self._live = live
        self._fail = fail
        super().__init__()

    @property
    def name(self) -> str:
        return self._name

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self._name,
            display_name=self._name.title(),
            indicators=tuple(self._values),
            timeout_seconds=1.0,
            counts_toward_live=self._live,
        )

    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        return [IndicatorRequest(entity=entity, indicator=name) for name in self._values]

    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        if self._fail:
            raise FetchError(message="HTTP 503", source_name=self._name, status_code=503)
        return self._values[request.indicator]

    def normalize(self, raw_data: Any, request: IndicatorRequest) -> dict[str, IndicatorObservation]:
        if raw_data is None:
            return {}
        return {request.indicator: IndicatorObservation(value=float(raw_data), observed_at="2023")}


class CrashingSource(StubSource):
    """Raises straight out of fetch_entity."""

    async def fetch_entity(self, entity):
        raise RuntimeError("bug in adapter")


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def entity():
    return MonitoredEntity(iso2="KE", name="Kenya", region="Sub-Saharan Africa")


@pytest.fixture
def registry():
    """Registry with one live and one supplementary source."""
    registry = SourceRegistry()
    registry.register(StubSource(
        "demo", {"youth_pct": 38.0, "pop_growth": 2.0, "density": 95, "net_migration": None}, live=True,
    ))
    registry.register(StubSource("econ", {"inflation": 7.7, "gdp_growth": 5.6}))
    return registry


# ============================================================
# FETCH
# ============================================================

class TestFetchEntity:
    """Tests for SourceRegistry.fetch_entity."""

    @pytest.mark.asyncio
    async def test_merges_observations(self, registry, entity):
        result = await registry.fetch_entity(entity)

        assert result.values() == {
            "youth_pct": 38.0,
            "pop_growth": 2.0,
            "density": 95.0,
            "inflation": 7.7,
            "gdp_growth": 5.6,
        }
        assert result.source_counts == {"demo": 3, "econ": 2}
        assert result.failed_sources == ()

    @pytest.mark.asyncio
    async def test_only_live_sources_count(self, registry, entity):
        result = await registry.fetch_entity(entity)
        assert result.fetched_count == 3

    @pytest.mark.asyncio
    async def test_failing_source_is_isolated(self, registry, entity):
        registry.register(StubSource("broken", {"conflict_events": 4}, fail=True))
        registry.register(CrashingSource("crashing", {"unrest_articles": 9}))

        result = await registry.fetch_entity(entity)

        assert result.fetched_count == 3
        assert "conflict_events" not in result.observations
        assert set(result.failed_sources) == {"broken", "crashing"}

    @pytest.mark.asyncio
    async def test_empty_registry(self, entity):
        result = await SourceRegistry().fetch_entity(entity)
        assert result.fetched_count == 0
        assert result.observations == {}


# ============================================================
# REGISTRATION
# ============================================================

class TestRegistration:
    """Tests for register/unregister and views."""

    def test_registration_order_and_replace(self, registry):
        registry.register(StubSource("econ", {"inflation": 1.0}))
        assert registry.list_sources() == ["demo", "econ"]

    def test_unregister(self, registry):
        assert registry.unregister("econ").name == "econ"
        assert registry.unregister("econ") is None
        assert registry.list_sources() == ["demo"]

    def test_stats(self, registry):
        stats = registry.get_stats()
        assert stats["total_sources"] == 2
        assert stats["sources"]["demo"]["counts_toward_live"] is True

    @pytest.mark.asyncio
    async def test_close_empties_registry(self, registry):
        await registry.close()
        assert registry.list_sources() == []


# ============================================================
# DEFAULT REGISTRY
# ============================================================

class TestBuildDefaultRegistry:
    """Tests for build_default_registry."""

    def test_enabled_sources_in_order(self):
        settings = PipelineSettings(enabled_sources=("worldbank_demographic", "sanctions", "gdelt"))
        registry = build_default_registry(settings)
        assert registry.list_sources() == ["worldbank_demographic", "sanctions", "gdelt"]

    def test_sources_keep_own_timeouts_by_default(self):
        settings = PipelineSettings(
            enabled_sources=("worldbank_demographic", "worldbank_economic", "ucdp", "gdelt"),
        )
        registry = build_default_registry(settings)

        assert registry.get_source("ucdp").timeout == 20.0
        assert registry.get_source("gdelt").timeout == 12.0
        assert registry.get_source("worldbank_demographic").timeout == 15.0
        assert registry.get_source("worldbank_economic").timeout == 10.0

    def test_explicit_http_timeout_caps_provider_timeout(self):
        settings = PipelineSettings(
            enabled_sources=("worldbank_demographic", "sanctions"),
            http_timeout_seconds=5.0,
        )
        registry = build_default_registry(settings)
        assert registry.get_source("worldbank_demographic").timeout == 5.0
        assert registry.get_source("sanctions").timeout == 1.0

    def test_unknown_source_skipped(self):
        settings = PipelineSettings(enabled_sources=("sanctions", "acled"))
        registry = build_default_registry(settings)
        assert registry.list_sources() == ["sanctions"]
