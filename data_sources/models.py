"""
Data Source Models - Observation, request and health records for indicator providers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SourceStatus(Enum):
    """Health status of a data source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MonitoredEntity:
    """One country on the monitored roster."""
    iso2: str
    name: str
    region: str

    def to_dict(self) -> dict[str, str]:
        return {"iso2": self.iso2, "name": self.name, "region": self.region}


@dataclass(frozen=True)
class IndicatorObservation:
    """
    A single normalized indicator value.

    observed_at is the provider's period label (e.g. "2023" for a
    World Bank annual series), or None for reference data.
    """
    value: float
    observed_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "date": self.observed_at}


@dataclass(frozen=True)
class IndicatorRequest:
    """One upstream call: an indicator for an entity."""
    entity: MonitoredEntity
    indicator: str
    code: str = ""

    @property
    def iso2(self) -> str:
        return self.entity.iso2

    def describe(self) -> str:
        return f"{self.entity.iso2}/{self.code or self.indicator}"


@dataclass
class SourceHealth:
    """Health status of a data source."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int = 0
    uptime_percentage: float = 100.0

    def is_usable(self) -> bool:
        return self.status in (SourceStatus.HEALTHY, SourceStatus.DEGRADED, SourceStatus.UNKNOWN)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "latency_ms": self.latency_ms,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "consecutive_failures": self.consecutive_failures,
            "uptime_percentage": round(self.uptime_percentage, 2),
        }


@dataclass(frozen=True)
class SourceMetadata:
    """
    Static description of a provider.

    counts_toward_live: observations from this source count toward the
        minimum-live-indicators threshold of profile assembly.
    is_reference: static data, no network I/O.
    """
    name: str
    display_name: str
    indicators: tuple[str, ...]
    timeout_seconds: float
    base_url: str = ""
    documentation_url: str = ""
    counts_toward_live: bool = False
    is_reference: bool = False
    max_concurrency: Optional[int] = None
    min_interval_seconds: float = 0.0
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "indicators": list(self.indicators),
            "timeout_seconds": self.timeout_seconds,
            "base_url": self.base_url,
            "documentation_url": self.documentation_url,
            "counts_toward_live": self.counts_toward_live,
            "is_reference": self.is_reference,
            "max_concurrency": self.max_concurrency,
            "min_interval_seconds": self.min_interval_seconds,
            "tags": list(self.tags),
        }


@dataclass
class SourceIncident:
    """Record of a failed upstream request."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str
    request_params: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_name": self.source_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
            "request_params": self.request_params,
        }


@dataclass(frozen=True)
class EntityFetchResult:
    """
    Everything the registry gathered for one entity.

    observations holds only successful values; fetched_count counts
    those from sources flagged counts_toward_live.
    """
    entity: MonitoredEntity
    observations: dict[str, IndicatorObservation]
    fetched_count: int
    failed_sources: tuple[str, ...] = ()
    source_counts: dict[str, int] = field(default_factory=dict)

    def values(self) -> dict[str, float]:
        return {name: obs.value for name, obs in self.observations.items()}
