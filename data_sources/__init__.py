"""
Data Sources Package - Indicator provider layer.

Provides pluggable, fail-safe indicator sources for the country risk pipeline.

Features:
- Isolated, replaceable data providers
- Normalized observations across all sources
- Per-source rate limiting (concurrency bound, request spacing)
- Health monitoring with incident logging
- Static fallback snapshots for every monitored country

Quick Start:
    from data_sources import (
        SourceRegistry,
        WorldBankDemographicSource,
        SanctionsReferenceSource,
        MONITORED_ENTITIES,
    )

    async def setup():
        registry = SourceRegistry()
        registry.register(WorldBankDemographicSource())
        registry.register(SanctionsReferenceSource())

        result = await registry.fetch_entity(MONITORED_ENTITIES[0])
        print(result.fetched_count, result.values())

Adding New Providers:
    1. Create class extending BaseIndicatorSource
    2. Implement: requests_for(), fetch_raw(), normalize(), metadata()
    3. Register with SourceRegistry
    4. New indicators need a field on IndicatorSet to reach scoring
"""

from data_sources.base import BaseIndicatorSource
from data_sources.exceptions import (
    DataSourceError,
    FetchError,
    NormalizationError,
    RateLimitError,
    SourceTimeoutError,
)
from data_sources.fallback import (
    DEFAULT_SNAPSHOTS,
    FallbackSnapshotStore,
    default_snapshot_store,
)
from data_sources.models import (
    EntityFetchResult,
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)
from data_sources.providers import (
    GdeltUnrestSource,
    SanctionsReferenceSource,
    UcdpConflictSource,
    WorldBankDemographicSource,
    WorldBankEconomicSource,
)
from data_sources.registry import SourceRegistry, build_default_registry
from data_sources.roster import MONITORED_ENTITIES, validate_roster


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseIndicatorSource",

    # Models
    "MonitoredEntity",
    "IndicatorObservation",
    "IndicatorRequest",
    "EntityFetchResult",
    "SourceHealth",
    "SourceMetadata",
    "SourceIncident",
    "SourceStatus",

    # Exceptions
    "DataSourceError",
    "FetchError",
    "NormalizationError",
    "RateLimitError",
    "SourceTimeoutError",

    # Providers
    "WorldBankDemographicSource",
    "WorldBankEconomicSource",
    "UcdpConflictSource",
    "SanctionsReferenceSource",
    "GdeltUnrestSource",

    # Registry
    "SourceRegistry",
    "build_default_registry",

    # Roster and fallback
    "MONITORED_ENTITIES",
    "validate_roster",
    "FallbackSnapshotStore",
    "DEFAULT_SNAPSHOTS",
    "default_snapshot_store",
]
