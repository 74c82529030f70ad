"""
Core Module - Pipeline Settings.

Settings are read from the environment (a local .env file is loaded
first when present). Everything has a default, so an empty
environment yields a working pipeline backed by the in-memory cache.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from core.exceptions import ConfigurationError


load_dotenv()


SOURCE_NAMES: Tuple[str, ...] = (
    "worldbank_demographic",
    "worldbank_economic",
    "ucdp",
    "sanctions",
    "gdelt",
)

CACHE_BACKENDS: Tuple[str, ...] = ("memory", "redis")

DEFAULT_ENABLED_SOURCES: Tuple[str, ...] = (
    "worldbank_demographic",
    "worldbank_economic",
    "sanctions",
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return _env_float(name, 0.0)


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class PipelineSettings:
    """
    Runtime settings for the aggregation pipeline.

    Environment variables:
        RISK_BATCH_SIZE            entities fetched concurrently per batch
        RISK_BATCH_PAUSE_SECONDS   pause between consecutive batches
        RISK_MIN_LIVE_INDICATORS   live indicators needed to tag a profile "live"
        RISK_PROFILE_CACHE_TTL     per-entity profile TTL (seconds)
        RISK_COMBINED_CACHE_TTL    combined report TTL (seconds)
        RISK_INDICATOR_CACHE_TTL   per-indicator observation TTL (seconds)
        RISK_HTTP_TIMEOUT          optional cap on every source timeout (seconds)
        RISK_ENABLED_SOURCES       comma-separated provider names
        RISK_CACHE_BACKEND         memory | redis
        REDIS_URL                  used when the backend is redis
        UCDP_ACCESS_TOKEN          optional token for the UCDP API
        LOG_LEVEL                  DEBUG | INFO | WARNING | ERROR
    """

    batch_size: int = 8
    batch_pause_seconds: float = 0.5
    min_live_indicators: int = 3

    profile_cache_ttl: int = 86400
    combined_cache_ttl: int = 1800
    indicator_cache_ttl: int = 86400

    http_timeout_seconds: Optional[float] = None
    enabled_sources: Tuple[str, ...] = field(default=DEFAULT_ENABLED_SOURCES)

    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    ucdp_access_token: Optional[str] = None

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If a value cannot be parsed or fails validation
        """
        settings = cls(
            batch_size=_env_int("RISK_BATCH_SIZE", cls.batch_size),
            batch_pause_seconds=_env_float("RISK_BATCH_PAUSE_SECONDS", cls.batch_pause_seconds),
            min_live_indicators=_env_int("RISK_MIN_LIVE_INDICATORS", cls.min_live_indicators),
            profile_cache_ttl=_env_int("RISK_PROFILE_CACHE_TTL", cls.profile_cache_ttl),
            combined_cache_ttl=_env_int("RISK_COMBINED_CACHE_TTL", cls.combined_cache_ttl),
            indicator_cache_ttl=_env_int("RISK_INDICATOR_CACHE_TTL", cls.indicator_cache_ttl),
            http_timeout_seconds=_env_optional_float("RISK_HTTP_TIMEOUT"),
            enabled_sources=_env_list("RISK_ENABLED_SOURCES", DEFAULT_ENABLED_SOURCES),
            cache_backend=os.getenv("RISK_CACHE_BACKEND", cls.cache_backend).strip().lower(),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            ucdp_access_token=os.getenv("UCDP_ACCESS_TOKEN") or None,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).strip().upper(),
        )

        errors = settings.validate()
        if errors:
            raise ConfigurationError("Invalid pipeline settings", errors=errors)
        return settings

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the settings are usable."""
        errors: List[str] = []

        if self.batch_size < 1:
            errors.append(f"batch_size must be >= 1, got {self.batch_size}")
        if self.batch_pause_seconds < 0:
            errors.append(f"batch_pause_seconds must be >= 0, got {self.batch_pause_seconds}")
        if self.min_live_indicators < 0:
            errors.append(f"min_live_indicators must be >= 0, got {self.min_live_indicators}")

        for name in ("profile_cache_ttl", "combined_cache_ttl", "indicator_cache_ttl"):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be > 0, got {getattr(self, name)}")

        if self.http_timeout_seconds is not None and self.http_timeout_seconds <= 0:
            errors.append(f"http_timeout_seconds must be > 0, got {self.http_timeout_seconds}")

        unknown = [s for s in self.enabled_sources if s not in SOURCE_NAMES]
        if unknown:
            errors.append(f"unknown sources: {', '.join(unknown)}")

        if self.cache_backend not in CACHE_BACKENDS:
            errors.append(f"cache_backend must be one of {CACHE_BACKENDS}, got {self.cache_backend!r}")

        return errors

    def is_enabled(self, source_name: str) -> bool:
        return source_name in self.enabled_sources

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["enabled_sources"] = list(self.enabled_sources)
        if self.ucdp_access_token:
            data["ucdp_access_token"] = "***"
        return data


_settings: Optional[PipelineSettings] = None


def get_settings() -> PipelineSettings:
    """Process-wide settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = PipelineSettings.from_env()
    return _settings
