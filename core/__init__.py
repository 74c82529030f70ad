"""
Core Module Package.

Shared infrastructure that every other package depends on.

Components:
- clock: UTC time abstraction (mockable)
- config: environment-driven pipeline settings
- exceptions: contract-error hierarchy
"""

from core.clock import ClockFactory, ClockProtocol, MockClock, SystemClock, now_utc, to_iso8601
from core.config import PipelineSettings, get_settings
from core.exceptions import ConfigurationError, PipelineError, RosterError


__all__ = [
    # Clock
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "now_utc",
    "to_iso8601",
    # Config
    "PipelineSettings",
    "get_settings",
    # Exceptions
    "PipelineError",
    "ConfigurationError",
    "RosterError",
]
