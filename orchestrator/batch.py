"""
Orchestrator - Batch Fetch.

============================================================
RESPONSIBILITY
============================================================
Fetches the full monitored roster without overwhelming
upstream rate limits, and assembles one scored profile per
entity.

- Fixed-size batches, strictly sequential
- Settle-all within a batch (no short-circuit)
- Fixed pause between batches, never after the last one
- Live/fallback provenance per entity
- One entity's failure never fails the run

============================================================
ASSEMBLY RULES
============================================================
value     = live value, else snapshot value, else absent
live      = fetched_count >= min_live_indicators
fallback  = below threshold, snapshot exists
omitted   = below threshold, no snapshot (WARNING, not error)

============================================================
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from cache.store import CacheStore
from core.clock import ClockFactory, ClockProtocol, to_iso8601
from core.config import PipelineSettings
from data_sources.fallback import FallbackSnapshotStore
from data_sources.models import EntityFetchResult, MonitoredEntity
from data_sources.registry import SourceRegistry
from risk_scoring.engine import RiskScoringEngine
from risk_scoring.types import DataSource, EntityProfile, IndicatorSet, ScoredProfile


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

PROFILE_CACHE_PREFIX = "profile"


# ============================================================
# RESULT
# ============================================================


@dataclass(frozen=True)
class BatchRunResult:
    """Outcome of one pass over a roster."""

    profiles: Tuple[ScoredProfile, ...]
    omitted: Tuple[str, ...]
    batch_count: int
    duration_seconds: float
    started_at: datetime
    fallback_count: int = 0
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def live_count(self) -> int:
        return len(self.profiles) - self.fallback_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profiles": len(self.profiles),
            "live": self.live_count,
            "fallback": self.fallback_count,
            "omitted": list(self.omitted),
            "batch_count": self.batch_count,
            "duration_seconds": round(self.duration_seconds, 3),
            "started_at": to_iso8601(self.started_at),
            "errors": dict(self.errors),
        }


def partition(entities: Sequence[MonitoredEntity], size: int) -> List[List[MonitoredEntity]]:
    """Split into consecutive batches of at most `size` entities."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(entities[i:i + size]) for i in range(0, len(entities), size)]


def batch_count_for(total: int, size: int) -> int:
    return math.ceil(total / size) if total else 0


# ============================================================
# ORCHESTRATOR
# ============================================================


class BatchFetchOrchestrator:
    """
    Drives the registry over a roster in paced batches.

    Usage:
        orchestrator = BatchFetchOrchestrator(registry, snapshots, engine, cache, settings)
        result = await orchestrator.run(MONITORED_ENTITIES)
    """

    def __init__(
        self,
        registry: SourceRegistry,
        snapshots: FallbackSnapshotStore,
        engine: RiskScoringEngine,
        cache: Optional[CacheStore] = None,
        settings: Optional[PipelineSettings] = None,
        clock: Optional[ClockProtocol] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self._registry = registry
        self._snapshots = snapshots
        self._engine = engine
        self._cache = cache
        self._settings = settings or PipelineSettings()
        self._clock = clock or ClockFactory.get_clock()
        self._sleep = sleep or asyncio.sleep

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    @staticmethod
    def cache_key(iso2: str) -> str:
        return f"{PROFILE_CACHE_PREFIX}:{iso2.upper()}"

    async def invalidate(self, entities: Sequence[MonitoredEntity]) -> None:
        """Drop cached profiles so the next fetch goes upstream."""
        if self._cache is None:
            return
        for entity in entities:
            await self._cache.delete(self.cache_key(entity.iso2))
        logger.info(f"[BatchFetch] Dropped {len(entities)} cached profiles")

    # --------------------------------------------------------
    # Single entity
    # --------------------------------------------------------

    async def fetch_profile(self, entity: MonitoredEntity) -> Optional[ScoredProfile]:
        """
        Fetch, assemble and score one entity.

        Returns None when the entity has too little live data and no
        snapshot. Cached per entity under profile:{iso2}.
        """
        key = self.cache_key(entity.iso2)
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.debug(f"[BatchFetch] Cache hit for {entity.iso2}")
                return cached

        result = await self._registry.fetch_entity(entity)
        scored = self.assemble(entity, result)
        if scored is None:
            return None

        if self._cache is not None:
            await self._cache.set(key, scored, self._settings.profile_cache_ttl)
        return scored

    def assemble(self, entity: MonitoredEntity, result: EntityFetchResult) -> Optional[ScoredProfile]:
        """Apply the live/fallback rules to one fetch result and score it."""
        snapshot = self._snapshots.lookup(entity.iso2)
        live = IndicatorSet.from_mapping(result.values())

        if result.fetched_count >= self._settings.min_live_indicators:
            data_source = DataSource.LIVE
        elif snapshot is not None:
            data_source = DataSource.FALLBACK
            logger.warning(
                f"[BatchFetch] {entity.iso2}: {result.fetched_count} live indicators "
                f"(< {self._settings.min_live_indicators}), using fallback snapshot"
            )
        else:
            logger.warning(
                f"[BatchFetch] {entity.iso2}: {result.fetched_count} live indicators "
                f"and no fallback snapshot, omitted"
            )
            return None

        profile = EntityProfile(
            iso2=entity.iso2,
            name=entity.name,
            region=entity.region,
            indicators=live.merged_over(snapshot).rounded(),
            data_source=data_source,
            fetched_indicators=result.fetched_count,
        )
        return self._engine.score_profile(profile)

    def recover(self, entity: MonitoredEntity) -> Optional[ScoredProfile]:
        """Snapshot-only profile for an entity whose fetch blew up."""
        snapshot = self._snapshots.lookup(entity.iso2)
        if snapshot is None:
            return None
        profile = EntityProfile(
            iso2=entity.iso2,
            name=entity.name,
            region=entity.region,
            indicators=snapshot.rounded(),
            data_source=DataSource.FALLBACK,
            fetched_indicators=0,
        )
        return self._engine.score_profile(profile)

    # --------------------------------------------------------
    # Full roster
    # --------------------------------------------------------

    async def run(self, entities: Sequence[MonitoredEntity]) -> BatchRunResult:
        """
        Fetch every entity in paced batches.

        Note:
            Never raises exceptions - failing entities are recovered
            from their snapshot or omitted
        """
        started_at = self._clock.now()
        batches = partition(list(entities), self._settings.batch_size)

        logger.info(
            f"[BatchFetch] Starting run: {len(entities)} entities in {len(batches)} batches "
            f"(size={self._settings.batch_size}, pause={self._settings.batch_pause_seconds}s)"
        )

        profiles: List[ScoredProfile] = []
        omitted: List[str] = []
        errors: Dict[str, str] = {}

        for index, batch in enumerate(batches):
            if index > 0 and self._settings.batch_pause_seconds > 0:
                await self._sleep(self._settings.batch_pause_seconds)

            results = await asyncio.gather(
                *(self.fetch_profile(entity) for entity in batch),
                return_exceptions=True,
            )

            for entity, outcome in zip(batch, results):
                if isinstance(outcome, BaseException):
                    errors[entity.iso2] = f"{type(outcome).__name__}: {outcome}"
                    logger.error(f"[BatchFetch] {entity.iso2} failed unexpectedly: {outcome}")
                    outcome = self._safe_recover(entity)

                if outcome is None:
                    omitted.append(entity.iso2)
                else:
                    profiles.append(outcome)

            logger.info(
                f"[BatchFetch] Batch {index + 1}/{len(batches)} complete "
                f"({len(profiles)} profiles so far)"
            )

        duration = (self._clock.now() - started_at).total_seconds()
        fallback_count = sum(1 for p in profiles if p.profile.data_source is DataSource.FALLBACK)

        logger.info(
            f"[BatchFetch] Run complete: {len(profiles)} profiles "
            f"({fallback_count} fallback, {len(omitted)} omitted) in {duration:.2f}s"
        )

        return BatchRunResult(
            profiles=tuple(profiles),
            omitted=tuple(omitted),
            batch_count=len(batches),
            duration_seconds=duration,
            started_at=started_at,
            fallback_count=fallback_count,
            errors=errors,
        )

    def _safe_recover(self, entity: MonitoredEntity) -> Optional[ScoredProfile]:
        try:
            return self.recover(entity)
        except Exception as e:
            logger.error(f"[BatchFetch] {entity.iso2} could not be recovered: {e}")
            return None
