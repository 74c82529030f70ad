"""
Aggregation - Risk Aggregation Service.

============================================================
RESPONSIBILITY
============================================================
The single entry point external callers use (API, CLI).

- Runs the batch orchestrator over the monitored roster
- Caches the global profile set and the combined report
- One build at a time: concurrent callers on a cold cache share it
- Serves per-country, distribution and regional views
- Never raises from get_combined_data()

============================================================
CACHE KEYS
============================================================
risk:global     scored profiles, profile_cache_ttl
risk:combined   CombinedRiskReport, combined_cache_ttl
profile:{iso2}  per entity (owned by the orchestrator)

============================================================
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from aggregation.summary import (
    CombinedRiskReport,
    RegionSummary,
    build_report,
    count_by_level,
    sort_by_score,
)
from cache.store import CacheStore
from core.clock import ClockFactory, ClockProtocol
from core.config import PipelineSettings
from data_sources.models import MonitoredEntity
from data_sources.roster import MONITORED_ENTITIES, validate_roster
from orchestrator.batch import BatchFetchOrchestrator, BatchRunResult
from risk_scoring.types import ScoredProfile


logger = logging.getLogger(__name__)


COMBINED_CACHE_KEY = "risk:combined"
GLOBAL_CACHE_KEY = "risk:global"


class RiskAggregationService:
    """
    Cached aggregation over the monitored roster.

    Raises:
        RosterError: at construction, if the roster is malformed
    """

    def __init__(
        self,
        orchestrator: BatchFetchOrchestrator,
        cache: Optional[CacheStore] = None,
        roster: Iterable[MonitoredEntity] = MONITORED_ENTITIES,
        settings: Optional[PipelineSettings] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._orchestrator = orchestrator
        self._cache = cache
        self._roster = validate_roster(roster)
        self._by_iso2 = {e.iso2: e for e in self._roster}
        self._settings = settings or orchestrator.settings
        self._clock = clock or ClockFactory.get_clock()
        self._last_run: Optional[BatchRunResult] = None
        self._global_lock = asyncio.Lock()
        self._combined_lock = asyncio.Lock()

    @property
    def roster(self) -> Tuple[MonitoredEntity, ...]:
        return self._roster

    @property
    def orchestrator(self) -> BatchFetchOrchestrator:
        return self._orchestrator

    @property
    def last_run(self) -> Optional[BatchRunResult]:
        return self._last_run

    # --------------------------------------------------------
    # Cached views
    # --------------------------------------------------------

    async def get_global_profiles(self) -> Tuple[ScoredProfile, ...]:
        """Every scored profile, highest score first."""
        cached = await self._cache_get(GLOBAL_CACHE_KEY)
        if cached is not None:
            return cached

        async with self._global_lock:
            cached = await self._cache_get(GLOBAL_CACHE_KEY)
            if cached is not None:
                return cached

            result = await self._orchestrator.run(self._roster)
            self._last_run = result
            profiles = tuple(sort_by_score(result.profiles))

            # An empty pass is not cached so the next call retries
            if profiles:
                await self._cache_set(GLOBAL_CACHE_KEY, profiles, self._settings.profile_cache_ttl)
            return profiles

    async def get_combined_data(self) -> CombinedRiskReport:
        """
        Combined report (main entry point).

        Within combined_cache_ttl the same object is returned.

        Note:
            Never raises - worst case is an empty report
        """
        try:
            cached = await self._cache_get(COMBINED_CACHE_KEY)
            if cached is not None:
                return cached

            async with self._combined_lock:
                cached = await self._cache_get(COMBINED_CACHE_KEY)
                if cached is not None:
                    return cached

                profiles = await self.get_global_profiles()
                report = build_report(profiles, self._clock.now())
                if profiles:
                    await self._cache_set(COMBINED_CACHE_KEY, report, self._settings.combined_cache_ttl)

                logger.info(
                    f"[Aggregation] Combined report built: {report.summary.total} profiles, "
                    f"avg score {report.summary.avg_score}"
                )
                return report

        except Exception as e:
            logger.error(f"[Aggregation] Combined report failed: {e}", exc_info=True)
            return build_report((), self._clock.now())

    async def get_country_profile(self, iso2: str) -> Optional[ScoredProfile]:
        """One monitored country, or None when it is not on the roster."""
        entity = self._by_iso2.get(iso2.strip().upper())
        if entity is None:
            return None

        cached = await self._cache_get(GLOBAL_CACHE_KEY)
        if cached is not None:
            for profile in cached:
                if profile.iso2 == entity.iso2:
                    return profile

        try:
            return await self._orchestrator.fetch_profile(entity)
        except Exception as e:
            logger.error(f"[Aggregation] {entity.iso2} fetch failed: {e}")
            return self._orchestrator.recover(entity)

    def is_monitored(self, iso2: str) -> bool:
        return iso2.strip().upper() in self._by_iso2

    def get_monitored_countries(self) -> List[Dict[str, str]]:
        return [entity.to_dict() for entity in self._roster]

    async def get_risk_distribution(self) -> Dict[str, int]:
        """Profile count for each of the five levels."""
        report = await self.get_combined_data()
        return count_by_level(report.profiles)

    async def get_regional_summary(self) -> List[RegionSummary]:
        report = await self.get_combined_data()
        return list(report.regions)

    async def refresh(self) -> CombinedRiskReport:
        """Drop the aggregate and per-country cache entries and rebuild."""
        if self._cache is not None:
            await self._cache.delete(COMBINED_CACHE_KEY)
            await self._cache.delete(GLOBAL_CACHE_KEY)
        await self._orchestrator.invalidate(self._roster)
        logger.info("[Aggregation] Cache dropped, rebuilding")
        return await self.get_combined_data()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "roster_size": len(self._roster),
            "sources": self._orchestrator.registry.list_sources(),
            "last_run": self._last_run.to_dict() if self._last_run else None,
        }

    # --------------------------------------------------------
    # Cache helpers
    # --------------------------------------------------------

    async def _cache_get(self, key: str) -> Optional[Any]:
        if self._cache is None:
            return None
        return await self._cache.get(key)

    async def _cache_set(self, key: str, value: Any, ttl: float) -> None:
        if self._cache is not None:
            await self._cache.set(key, value, ttl)
