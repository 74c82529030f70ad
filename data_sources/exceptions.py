"""
Data Source Exceptions - Upstream failure hierarchy for indicator providers.

These are raised inside adapters and always caught by
BaseIndicatorSource.fetch_indicator(); callers only ever see "no value".
"""

from datetime import datetime, timezone
from typing import Any, Optional


class DataSourceError(Exception):
    """Base exception for all data source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FetchError(DataSourceError):
    """Non-success HTTP status or connection failure."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class RateLimitError(FetchError):
    """HTTP 429 from the provider."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        retry_after_seconds: Optional[float] = None,
        request_url: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            source_name=source_name,
            status_code=429,
            request_url=request_url,
            context=context,
        )
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data


class SourceTimeoutError(FetchError):
    """Request exceeded the source's timeout."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            source_name=source_name,
            request_url=request_url,
            original_error=original_error,
        )
        self.timeout_seconds = timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["timeout_seconds"] = self.timeout_seconds
        return data


class NormalizationError(DataSourceError):
    """Response body did not have the expected shape."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.raw_data = raw_data
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_data": str(self.raw_data)[:500] if self.raw_data is not None else None,
            "field_name": self.field_name,
        })
        return data
