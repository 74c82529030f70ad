"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Contract errors for the risk pipeline.

Runtime conditions (upstream timeouts, malformed bodies, missing
data, cache outages) are absorbed where they occur and never reach
callers. The exceptions here describe deployment defects instead:
a bad setting or a malformed monitored roster. They are the only
errors allowed to propagate out of the pipeline.

============================================================
EXCEPTION HIERARCHY
============================================================
PipelineError (base)
├── ConfigurationError
└── RosterError

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class PipelineError(Exception):
    """
    Base exception for contract errors.

    Carries:
    - context: for debugging
    - timestamp: when the error occurred
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} ({self.context})"
        return self.message


class ConfigurationError(PipelineError):
    """Invalid pipeline settings."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        if errors:
            context["errors"] = list(errors)
        super().__init__(message, context=context)
        self.errors = list(errors or [])


class RosterError(PipelineError):
    """Malformed monitored-entity roster."""

    def __init__(
        self,
        message: str,
        iso2: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        if iso2 is not None:
            context["iso2"] = iso2
        super().__init__(message, context=context)
        self.iso2 = iso2
