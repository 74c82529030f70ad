"""
Source Registry - Central registry for indicator sources.

Provides:
- Source registration and discovery
- Per-entity fan-out across every registered source
- Health and metadata views for the dashboard
- No downstream dependency on specific providers
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from cache.store import CacheStore
from core.clock import ClockProtocol
from core.config import PipelineSettings
from data_sources.base import BaseIndicatorSource, SleepFunc
from data_sources.models import (
    EntityFetchResult,
    IndicatorObservation,
    MonitoredEntity,
    SourceHealth,
    SourceMetadata,
    SourceStatus,
)


logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Central registry for indicator sources.

    Features:
    - Register multiple data sources
    - Concurrent per-entity fetch across all sources (settle-all)
    - Live-indicator counting for profile assembly
    - No downstream code depends on specific providers

    Usage:
        registry = SourceRegistry()
        registry.register(WorldBankDemographicSource(cache=cache))
        registry.register(SanctionsReferenceSource())

        result = await registry.fetch_entity(entity)
    """

    def __init__(self) -> None:
        self._sources: dict[str, BaseIndicatorSource] = {}

    def register(self, source: BaseIndicatorSource) -> None:
        """Register a data source; a source with the same name is replaced."""
        name = source.name

        if name in self._sources:
            logger.warning(f"Source '{name}' already registered, replacing")

        self._sources[name] = source
        logger.info(f"Registered source '{name}'")

    def unregister(self, name: str) -> Optional[BaseIndicatorSource]:
        """Unregister a data source."""
        if name in self._sources:
            source = self._sources.pop(name)
            logger.info(f"Unregistered source '{name}'")
            return source
        return None

    def get_source(self, name: str) -> Optional[BaseIndicatorSource]:
        """Get a specific source by name."""
        return self._sources.get(name)

    def list_sources(self) -> list[str]:
        """List all registered source names in registration order."""
        return list(self._sources)

    def get_all_metadata(self) -> dict[str, SourceMetadata]:
        """Get metadata for all registered sources."""
        return {name: source.metadata() for name, source in self._sources.items()}

    def get_all_health(self) -> dict[str, SourceHealth]:
        """Get health status for all registered sources."""
        return {name: source.get_health() for name, source in self._sources.items()}

    async def fetch_entity(self, entity: MonitoredEntity) -> EntityFetchResult:
        """
        Fetch every indicator for one entity from all sources concurrently.

        Returns:
            EntityFetchResult with the successful observations, the number
            of them that count toward the live threshold, and the sources
            that yielded nothing at all

        Note:
            Never raises exceptions - a failing source contributes nothing
        """
        names = list(self._sources)
        results = await asyncio.gather(
            *(self._sources[name].fetch_entity(entity) for name in names),
            return_exceptions=True,
        )

        observations: dict[str, IndicatorObservation] = {}
        source_counts: dict[str, int] = {}
        failed: list[str] = []
        fetched_count = 0

        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"[{name}] Unhandled failure for {entity.iso2}: {result}")
                failed.append(name)
                continue

            present = {k: v for k, v in result.items() if v is not None}
            source_counts[name] = len(present)
            if result and not present:
                failed.append(name)

            observations.update(present)
            if self._sources[name].metadata().counts_toward_live:
                fetched_count += len(present)

        if failed:
            logger.debug(f"[registry] {entity.iso2}: no data from {', '.join(failed)}")

        return EntityFetchResult(
            entity=entity,
            observations=observations,
            fetched_count=fetched_count,
            failed_sources=tuple(failed),
            source_counts=source_counts,
        )

    async def health_check_all(self) -> dict[str, SourceHealth]:
        """Run health check on all sources."""
        results = {}
        for name, source in self._sources.items():
            try:
                results[name] = await source.health_check()
            except Exception as e:
                logger.warning(f"[{name}] Health check failed: {e}")
                results[name] = source.get_health()
        return results

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        health_summary = {}
        for status in SourceStatus:
            health_summary[status.value] = sum(
                1 for s in self._sources.values()
                if s.get_health().status == status
            )

        return {
            "total_sources": len(self._sources),
            "health_summary": health_summary,
            "sources": {
                name: {
                    "status": source.get_health().status.value,
                    "is_usable": source.is_usable(),
                    "counts_toward_live": source.metadata().counts_toward_live,
                }
                for name, source in self._sources.items()
            },
        }

    async def close(self) -> None:
        """Close all resources."""
        for source in self._sources.values():
            try:
                await source.close()
            except Exception as e:
                logger.error(f"Error closing source {source.name}: {e}")

        self._sources.clear()
        logger.info("Registry closed")

    async def __aenter__(self) -> "SourceRegistry":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def build_default_registry(
    settings: PipelineSettings,
    cache: Optional[CacheStore] = None,
    clock: Optional[ClockProtocol] = None,
    session: Optional[aiohttp.ClientSession] = None,
    sleep: Optional[SleepFunc] = None,
) -> SourceRegistry:
    """
    Build a registry holding every source enabled in settings.

    Sources share the cache and, when given, one HTTP session.
    """
    from data_sources.providers import (
        GdeltUnrestSource,
        SanctionsReferenceSource,
        UcdpConflictSource,
        WorldBankDemographicSource,
        WorldBankEconomicSource,
    )

    common: dict[str, Any] = {
        "cache": cache,
        "cache_ttl": settings.indicator_cache_ttl,
        "session": session,
        "sleep": sleep,
        "max_timeout": settings.http_timeout_seconds,
    }

    factories = {
        "worldbank_demographic": lambda: WorldBankDemographicSource(**common),
        "worldbank_economic": lambda: WorldBankEconomicSource(**common),
        "ucdp": lambda: UcdpConflictSource(
            access_token=settings.ucdp_access_token, clock=clock, **common
        ),
        "sanctions": lambda: SanctionsReferenceSource(**common),
        "gdelt": lambda: GdeltUnrestSource(**common),
    }

    registry = SourceRegistry()
    for name in settings.enabled_sources:
        factory = factories.get(name)
        if factory is None:
            logger.warning(f"[registry] Unknown source '{name}' skipped")
            continue
        registry.register(factory())

    return registry
