"""
Orchestrator - Core.

============================================================
RESPONSIBILITY
============================================================
Process-level wiring for the risk pipeline.

- Structured logging setup
- Builds every component once and injects dependencies
  clock -> cache -> registry -> snapshots -> engine
        -> batch orchestrator -> aggregation service
- Owns shutdown of network sessions and cache connections

============================================================
ARCHITECTURAL POSITION
============================================================
- No business logic
- No module-level singletons: callers hold the Pipeline

============================================================
"""

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cache import create_cache
from cache.store import SafeCache
from core.clock import ClockFactory, ClockProtocol
from core.config import PipelineSettings
from data_sources.fallback import FallbackSnapshotStore, default_snapshot_store
from data_sources.registry import SourceRegistry, build_default_registry
from risk_scoring.config import RiskScoringConfig
from risk_scoring.engine import RiskScoringEngine

from .batch import BatchFetchOrchestrator, SleepFunc


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Set up structured logging.

    Args:
        level: Log level
        log_format: Output format (json or text)
        correlation_id: Correlation ID for tracing

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
                "correlation_id": correlation_id or "",
            })
        )
    else:
        formatter = logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | %(name)s | {correlation_id or ''} | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("orchestrator")


# ============================================================
# PIPELINE
# ============================================================

@dataclass
class Pipeline:
    """Every long-lived component of one process."""

    settings: PipelineSettings
    clock: ClockProtocol
    cache: SafeCache
    registry: SourceRegistry
    snapshots: FallbackSnapshotStore
    engine: RiskScoringEngine
    orchestrator: BatchFetchOrchestrator
    service: Any  # RiskAggregationService

    async def close(self) -> None:
        """Close sources and the cache backend."""
        await self.registry.close()
        await self.cache.close()
        logger.info("Pipeline closed")

    def describe(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "sources": self.registry.list_sources(),
            "snapshots": len(self.snapshots),
            "cache": repr(self.cache),
        }


def build_pipeline(
    settings: Optional[PipelineSettings] = None,
    clock: Optional[ClockProtocol] = None,
    scoring_config: Optional[RiskScoringConfig] = None,
    sleep: Optional[SleepFunc] = None,
) -> Pipeline:
    """
    Wire up the full pipeline.

    Args:
        settings: Pipeline settings (or load from environment)
        clock: Clock for cache expiry and timestamps
        scoring_config: Scoring thresholds (default calibration if omitted)
        sleep: Awaitable sleep used for batch pacing and retries

    Returns:
        Pipeline holding every component

    Raises:
        ConfigurationError: If settings come from a bad environment
        RosterError: If the monitored roster is malformed
    """
    from aggregation.service import RiskAggregationService

    if settings is None:
        settings = PipelineSettings.from_env()
    clock = clock or ClockFactory.get_clock()

    cache = create_cache(settings, clock)
    registry = build_default_registry(settings, cache=cache, clock=clock, sleep=sleep)
    snapshots = default_snapshot_store()
    engine = RiskScoringEngine(scoring_config)

    orchestrator = BatchFetchOrchestrator(
        registry=registry,
        snapshots=snapshots,
        engine=engine,
        cache=cache,
        settings=settings,
        clock=clock,
        sleep=sleep,
    )
    service = RiskAggregationService(
        orchestrator=orchestrator,
        cache=cache,
        settings=settings,
        clock=clock,
    )

    logger.info(
        f"Pipeline built: sources={registry.list_sources()}, "
        f"cache={settings.cache_backend}, batch_size={settings.batch_size}"
    )

    return Pipeline(
        settings=settings,
        clock=clock,
        cache=cache,
        registry=registry,
        snapshots=snapshots,
        engine=engine,
        orchestrator=orchestrator,
        service=service,
    )


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Pipeline",
    "build_pipeline",
    "setup_logging",
]
