"""
Tests for the Batch Fetch Orchestrator.

============================================================
PURPOSE
============================================================
Verify batching and pacing, live/fallback assembly, and that
one entity's failure never fails a run.

TEST PRINCIPLES:
- The registry is mocked; no provider code runs
- Pacing is observed through an injected sleep
- Snapshots come from the real default store

============================================================
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cache.store import InMemoryCacheStore
from core.clock import MockClock
from core.config import PipelineSettings
from data_sources.fallback import default_snapshot_store
from data_sources.models import EntityFetchResult, IndicatorObservation, MonitoredEntity
from data_sources.roster import MONITORED_ENTITIES
from orchestrator.batch import BatchFetchOrchestrator, batch_count_for, partition
from risk_scoring.engine import RiskScoringEngine
from risk_scoring.types import DataSource


# ============================================================
# HELPERS
# ============================================================

def make_result(entity, values, fetched_count=None):
    return EntityFetchResult(
        entity=entity,
        observations={k: IndicatorObservation(value=v, observed_at="2023") for k, v in values.items()},
        fetched_count=len(values) if fetched_count is None else fetched_count,
    )


LIVE_VALUES = {"youth_pct": 40.0, "pop_growth": 2.0, "urban_pct": 50.0}


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock():
    return MockClock(datetime(2024, 6, 1, tzinfo=timezone.utc))


@pytest.fixture
def registry():
    """Registry mock returning three live indicators for every entity."""
    registry = MagicMock()
    registry.fetch_entity = AsyncMock(side_effect=lambda entity: make_result(entity, LIVE_VALUES))
    return registry


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def orchestrator(registry, clock, sleep):
    return BatchFetchOrchestrator(
        registry=registry,
        snapshots=default_snapshot_store(),
        engine=RiskScoringEngine(),
        settings=PipelineSettings(),
        clock=clock,
        sleep=sleep,
    )


@pytest.fixture
def nigeria():
    return MonitoredEntity(iso2="NG", name="Nigeria", region="Sub-Saharan Africa")


# ============================================================
# PARTITIONING
# ============================================================

class TestPartition:
    """Tests for partition and batch_count_for."""

    def test_consecutive_batches(self):
        batches = partition(MONITORED_ENTITIES, 8)
        assert [len(b) for b in batches] == [8, 8, 8, 8, 8, 4]
        assert [e for b in batches for e in b] == list(MONITORED_ENTITIES)

    def test_batch_count(self):
        assert batch_count_for(44, 8) == 6
        assert batch_count_for(8, 8) == 1
        assert batch_count_for(0, 8) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition(MONITORED_ENTITIES, 0)


# ============================================================
# RUN
# ============================================================

class TestRun:
    """Tests for BatchFetchOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_batch_concurrent_batches_sequential(self, orchestrator, registry):
        entities = MONITORED_ENTITIES[:16]
        codes = [e.iso2 for e in entities]
        gate = asyncio.Event()
        started, finished = [], []
        finished_at_start = {}

        async def gated_fetch(entity):
            started.append(entity.iso2)
            finished_at_start[entity.iso2] = len(finished)
            if len(started) <= 8:
                await gate.wait()
            finished.append(entity.iso2)
            return make_result(entity, LIVE_VALUES)

        registry.fetch_entity.side_effect = gated_fetch
        task = asyncio.create_task(orchestrator.run(entities))
        for _ in range(20):
            await asyncio.sleep(0)

        # Whole first batch in flight, nothing from the second
        assert started == codes[:8]
        assert finished == []

        gate.set()
        result = await task

        assert started == codes
        assert all(finished_at_start[iso2] == 8 for iso2 in codes[8:])
        assert len(result.profiles) == 16

    @pytest.mark.asyncio
    async def test_pauses_only_between_batches(self, orchestrator, sleep):
        result = await orchestrator.run(MONITORED_ENTITIES)

        assert result.batch_count == 6
        assert sleep.await_count == 5
        sleep.assert_awaited_with(0.5)
        assert len(result.profiles) == 44

    @pytest.mark.asyncio
    async def test_single_batch_never_pauses(self, orchestrator, sleep):
        result = await orchestrator.run(MONITORED_ENTITIES[:8])

        assert result.batch_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_pause_never_sleeps(self, registry, clock, sleep):
        orchestrator = BatchFetchOrchestrator(
            registry=registry,
            snapshots=default_snapshot_store(),
            engine=RiskScoringEngine(),
            settings=PipelineSettings(batch_size=4, batch_pause_seconds=0),
            clock=clock,
            sleep=sleep,
        )
        result = await orchestrator.run(MONITORED_ENTITIES[:12])

        assert result.batch_count == 3
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_profiles_keep_roster_order(self, orchestrator):
        result = await orchestrator.run(MONITORED_ENTITIES[:10])
        assert [p.iso2 for p in result.profiles] == [e.iso2 for e in MONITORED_ENTITIES[:10]]

    @pytest.mark.asyncio
    async def test_entity_failure_is_recovered(self, orchestrator, registry):
        def fetch(entity):
            if entity.iso2 == "NG":
                raise RuntimeError("registry bug")
            return make_result(entity, LIVE_VALUES)

        registry.fetch_entity.side_effect = fetch

        result = await orchestrator.run(MONITORED_ENTITIES[:8])

        nigeria = next(p for p in result.profiles if p.iso2 == "NG")
        assert nigeria.profile.data_source == DataSource.FALLBACK
        assert nigeria.profile.fetched_indicators == 0
        assert "RuntimeError" in result.errors["NG"]
        assert result.fallback_count == 1
        assert result.live_count == 7

    @pytest.mark.asyncio
    async def test_unknown_entity_without_data_is_omitted(self, orchestrator, registry):
        registry.fetch_entity.side_effect = lambda entity: make_result(entity, {})
        unknown = MonitoredEntity(iso2="ZZ", name="Nowhere", region="Test")

        result = await orchestrator.run([unknown, *MONITORED_ENTITIES[:2]])

        assert result.omitted == ("ZZ",)
        assert len(result.profiles) == 2
        assert result.to_dict()["omitted"] == ["ZZ"]


# ============================================================
# ASSEMBLY
# ============================================================

class TestAssemble:
    """Tests for the live/fallback rules."""

    def test_live_at_threshold(self, orchestrator, nigeria):
        scored = orchestrator.assemble(nigeria, make_result(nigeria, LIVE_VALUES))

        assert scored.profile.data_source == DataSource.LIVE
        assert scored.profile.fetched_indicators == 3
        # Live value wins, gaps come from the snapshot
        assert scored.indicator("youth_pct") == 40.0
        assert scored.indicator("population") == 223_800_000

    def test_fallback_below_threshold(self, orchestrator, nigeria):
        scored = orchestrator.assemble(nigeria, make_result(nigeria, {"youth_pct": 41.0, "density": 250}))

        assert scored.profile.data_source == DataSource.FALLBACK
        assert scored.profile.fetched_indicators == 2
        assert scored.indicator("youth_pct") == 41.0
        assert scored.indicator("elderly_pct") == 2.7

    def test_supplementary_indicators_do_not_count(self, orchestrator, nigeria):
        values = {"youth_pct": 41.0, "inflation": 24.7, "gdp_growth": 2.9, "unemployment": 5.0}
        scored = orchestrator.assemble(nigeria, make_result(nigeria, values, fetched_count=1))

        assert scored.profile.data_source == DataSource.FALLBACK
        assert scored.indicator("inflation") == 24.7

    def test_values_rounded(self, orchestrator, nigeria):
        values = dict(LIVE_VALUES, youth_pct=43.349, population=223_804_632)
        scored = orchestrator.assemble(nigeria, make_result(nigeria, values, fetched_count=3))

        assert scored.indicator("youth_pct") == 43.3
        assert scored.indicator("population") == 223_804_632

    def test_omitted_without_snapshot(self, orchestrator):
        unknown = MonitoredEntity(iso2="ZZ", name="Nowhere", region="Test")
        assert orchestrator.assemble(unknown, make_result(unknown, {"youth_pct": 40.0})) is None

    def test_live_without_snapshot(self, orchestrator):
        unknown = MonitoredEntity(iso2="ZZ", name="Nowhere", region="Test")
        scored = orchestrator.assemble(unknown, make_result(unknown, LIVE_VALUES))

        assert scored.profile.data_source == DataSource.LIVE
        assert scored.indicator("population") is None


# ============================================================
# PROFILE CACHE
# ============================================================

class TestFetchProfile:
    """Tests for per-entity caching."""

    @pytest.mark.asyncio
    async def test_cached_per_entity(self, registry, clock, sleep, nigeria):
        cache = InMemoryCacheStore(clock)
        orchestrator = BatchFetchOrchestrator(
            registry=registry,
            snapshots=default_snapshot_store(),
            engine=RiskScoringEngine(),
            cache=cache,
            settings=PipelineSettings(),
            clock=clock,
            sleep=sleep,
        )

        first = await orchestrator.fetch_profile(nigeria)
        second = await orchestrator.fetch_profile(nigeria)

        assert second is first
        assert registry.fetch_entity.await_count == 1
        assert await cache.get("profile:NG") is first

        clock.advance(86400)
        await orchestrator.fetch_profile(nigeria)
        assert registry.fetch_entity.await_count == 2
