"""
Base Indicator Source - Abstract interface for all indicator providers.

All providers MUST implement this interface to ensure:
- Isolation (one provider's failure never touches another)
- Replaceability
- Fail-safety (fetch_indicator never raises)
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import aiohttp

from cache.store import CacheStore
from core.clock import now_utc
from data_sources.exceptions import (
    DataSourceError,
    FetchError,
    NormalizationError,
    RateLimitError,
    SourceTimeoutError,
)
from data_sources.models import (
    IndicatorObservation,
    IndicatorRequest,
    MonitoredEntity,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class BaseIndicatorSource(ABC):
    """
    Abstract base class for all indicator sources.

    Each implementation must:
    1. Implement requests_for() - Which indicator calls an entity needs
    2. Implement fetch_raw() - Get the raw body for one call
    3. Implement normalize() - Turn the body into an IndicatorObservation
    4. Implement metadata() - Describe the provider

    Features:
    - Per-observation caching (successes only)
    - Bounded timeout, optional retry with backoff
    - Per-source concurrency bound and request spacing
    - Health tracking and incident log
    """

    DEFAULT_TIMEOUT = 15.0
    MAX_RETRIES = 1  # attempts per observation
    RETRY_BACKOFF_BASE = 2.0
    DEGRADED_THRESHOLD = 3  # consecutive failures before degraded
    UNAVAILABLE_THRESHOLD = 10  # consecutive failures before unavailable
    CACHE_PREFIX = "indicator"

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        cache_ttl: float = 86400,
        timeout: Optional[float] = None,
        max_retries: int = MAX_RETRIES,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[SleepFunc] = None,
        max_timeout: Optional[float] = None,
    ) -> None:
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._timeout = timeout if timeout is not None else self.metadata().timeout_seconds
        if max_timeout is not None:
            self._timeout = min(self._timeout, max_timeout)
        self._max_retries = max(1, max_retries)
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep or asyncio.sleep

        meta = self.metadata()
        self._semaphore = asyncio.Semaphore(meta.max_concurrency) if meta.max_concurrency else None
        self._min_interval = meta.min_interval_seconds
        self._spacing_lock = asyncio.Lock()
        self._last_request_started = 0.0

        # Health tracking
        self._health = SourceHealth(status=SourceStatus.UNKNOWN, last_check=now_utc())
        self._request_count = 0
        self._success_count = 0
        self._error_count = 0

        # Incident log
        self._incidents: list[SourceIncident] = []
        self._max_incidents = 100

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this data source."""
        pass

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        pass

    @abstractmethod
    def requests_for(self, entity: MonitoredEntity) -> list[IndicatorRequest]:
        """Indicator calls needed for one entity (may be empty)."""
        pass

    @abstractmethod
    async def fetch_raw(self, request: IndicatorRequest) -> Any:
        """
        Fetch the raw provider body for one request.

        Raises:
            FetchError: On HTTP or connection failure
            SourceTimeoutError: On timeout
        """
        pass

    @abstractmethod
    def normalize(
        self,
        raw_data: Any,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        """
        Convert a raw body to observations keyed by indicator name.

        Most providers return a single entry keyed by request.indicator.
        An empty dict means the body is well-formed but carries no value.

        Raises:
            NormalizationError: If the body is malformed
        """
        pass

    # --------------------------------------------------------
    # Main entry points
    # --------------------------------------------------------

    @property
    def timeout(self) -> float:
        return self._timeout

    def cache_key(self, request: IndicatorRequest) -> str:
        return f"{self.CACHE_PREFIX}:{self.name}:{request.iso2}:{request.indicator}"

    async def fetch_request(
        self,
        request: IndicatorRequest,
    ) -> dict[str, IndicatorObservation]:
        """
        Run one upstream call (main entry point).

        Returns:
            Observations produced by the call; empty on any failure

        Note:
            Never raises unhandled exceptions
        """
        key = self.cache_key(request)
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return cached

        try:
            raw_data = await self._fetch_with_retry(request)
            observations = self.normalize(raw_data, request)
            self._on_success()

        except DataSourceError as e:
            self._on_error(e, request)
            return {}
        except Exception as e:
            error = DataSourceError(
                message=f"Unexpected error: {e}",
                source_name=self.name,
                original_error=e,
            )
            self._on_error(error, request)
            return {}

        if not observations:
            logger.debug(f"[{self.name}] No value for {request.describe()}")
            return {}

        if self._cache is not None:
            await self._cache.set(key, observations, self._cache_ttl)
        return observations

    async def fetch_indicator(
        self,
        request: IndicatorRequest,
    ) -> Optional[IndicatorObservation]:
        """
        Fetch one indicator.

        Returns:
            {value, observed_at} or None on failure or missing value
        """
        observations = await self.fetch_request(request)
        return observations.get(request.indicator)

    async def fetch_entity(
        self,
        entity: MonitoredEntity,
    ) -> dict[str, Optional[IndicatorObservation]]:
        """
        Fetch every indicator of this source for one entity concurrently.

        Each call settles independently; a failed call yields None for
        its indicators only. Entities the source does not cover get {}.
        """
        requests = self.requests_for(entity)
        if not requests:
            return {}

        results = await asyncio.gather(
            *(self.fetch_request(r) for r in requests),
            return_exceptions=True,
        )

        observations: dict[str, Optional[IndicatorObservation]] = {
            indicator: None for indicator in self.metadata().indicators
        }
        for request, result in zip(requests, results):
            if isinstance(result, BaseException):
                logger.error(f"[{self.name}] Unhandled failure for {request.describe()}: {result}")
                continue
            observations.update(result)
        return observations

    async def health_check(self) -> SourceHealth:
        """Current health; reference sources are always healthy."""
        if self.metadata().is_reference:
            self._health.status = SourceStatus.HEALTHY
        self._health.last_check = now_utc()
        return self.get_health()

    # --------------------------------------------------------
    # HTTP plumbing
    # --------------------------------------------------------

    async def _fetch_with_retry(self, request: IndicatorRequest) -> Any:
        """Fetch with exponential backoff between attempts."""
        last_error: Optional[DataSourceError] = None

        for attempt in range(self._max_retries):
            is_last = attempt == self._max_retries - 1
            try:
                return await self.fetch_raw(request)

            except RateLimitError as e:
                last_error = e
                if is_last:
                    break
                wait_time = e.retry_after_seconds or self.RETRY_BACKOFF_BASE ** (attempt + 1)
                logger.warning(
                    f"[{self.name}] Rate limited, waiting {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )
                await self._sleep(wait_time)

            except FetchError as e:
                # Timeouts and 5xx are worth another attempt; 4xx is not
                if not (isinstance(e, SourceTimeoutError) or e.is_server_error()):
                    raise
                last_error = e
                if is_last:
                    break
                wait_time = self.RETRY_BACKOFF_BASE ** attempt
                logger.warning(
                    f"[{self.name}] {e.message}, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )
                await self._sleep(wait_time)

        assert last_error is not None
        raise last_error

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "CountryRiskPipeline/1.0",
        }

    @asynccontextmanager
    async def _throttled(self) -> AsyncIterator[None]:
        """Apply the concurrency bound and minimum request spacing."""
        if self._semaphore is not None:
            await self._semaphore.acquire()
        try:
            if self._min_interval > 0:
                async with self._spacing_lock:
                    loop = asyncio.get_running_loop()
                    wait = self._last_request_started + self._min_interval - loop.time()
                    if wait > 0:
                        await self._sleep(wait)
                    self._last_request_started = loop.time()
            yield
        finally:
            if self._semaphore is not None:
                self._semaphore.release()

    async def _make_request(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        method: str = "GET",
    ) -> Any:
        """Issue one request and decode its JSON body."""
        session = await self._get_session()

        async with self._throttled():
            start_time = time.monotonic()
            try:
                async with session.request(
                    method,
                    url,
                    params=params,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as response:
                    latency_ms = (time.monotonic() - start_time) * 1000
                    self._health.latency_ms = latency_ms

                    if response.status == 429:
                        retry_after = response.headers.get("Retry-After")
                        raise RateLimitError(
                            message="Rate limit exceeded",
                            source_name=self.name,
                            retry_after_seconds=_parse_retry_after(retry_after),
                            request_url=url,
                        )

                    if response.status >= 400:
                        body = await response.text()
                        raise FetchError(
                            message=f"HTTP {response.status}",
                            source_name=self.name,
                            status_code=response.status,
                            response_body=body[:1000],
                            request_url=url,
                        )

                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise NormalizationError(
                            message="Response body is not JSON",
                            source_name=self.name,
                            original_error=e,
                        ) from e

                    logger.debug(f"[{self.name}] Request completed in {latency_ms:.1f}ms")
                    return data

            except asyncio.TimeoutError as e:
                raise SourceTimeoutError(
                    message=f"Timed out after {self._timeout}s",
                    source_name=self.name,
                    timeout_seconds=self._timeout,
                    request_url=url,
                    original_error=e,
                ) from e
            except aiohttp.ClientError as e:
                raise FetchError(
                    message=f"Connection error: {e}",
                    source_name=self.name,
                    request_url=url,
                    original_error=e,
                ) from e

    # --------------------------------------------------------
    # Health tracking
    # --------------------------------------------------------

    def _on_success(self) -> None:
        self._request_count += 1
        self._success_count += 1
        self._health.consecutive_failures = 0

        if self._health.status != SourceStatus.HEALTHY:
            if self._health.status != SourceStatus.UNKNOWN:
                logger.info(f"[{self.name}] Recovered to HEALTHY status")
            self._health.status = SourceStatus.HEALTHY

    def _on_error(
        self,
        error: DataSourceError,
        request: Optional[IndicatorRequest] = None,
    ) -> None:
        self._request_count += 1
        self._error_count += 1
        self._health.error_count += 1
        self._health.consecutive_failures += 1
        self._health.last_error = str(error)
        self._health.last_error_time = now_utc()

        failures = self._health.consecutive_failures
        if failures >= self.UNAVAILABLE_THRESHOLD:
            if self._health.status != SourceStatus.UNAVAILABLE:
                self._health.status = SourceStatus.UNAVAILABLE
                logger.error(f"[{self.name}] Marked UNAVAILABLE after {failures} failures")
        elif failures >= self.DEGRADED_THRESHOLD:
            if self._health.status != SourceStatus.DEGRADED:
                self._health.status = SourceStatus.DEGRADED
                logger.warning(f"[{self.name}] Marked DEGRADED after {failures} failures")

        self._log_incident(error, request)

    def _log_incident(
        self,
        error: DataSourceError,
        request: Optional[IndicatorRequest] = None,
    ) -> None:
        incident = SourceIncident(
            source_name=self.name,
            incident_type=error.__class__.__name__,
            timestamp=now_utc(),
            error_message=str(error),
            request_params={
                "iso2": request.iso2,
                "indicator": request.indicator,
                "code": request.code,
            } if request else None,
        )

        self._incidents.append(incident)
        if len(self._incidents) > self._max_incidents:
            self._incidents = self._incidents[-self._max_incidents:]

        target = request.describe() if request else "-"
        logger.warning(f"[{self.name}] Failed {target}: {error.message}")

    def get_health(self) -> SourceHealth:
        if self._request_count > 0:
            self._health.uptime_percentage = self._success_count / self._request_count * 100
        return self._health

    def get_incidents(self, limit: int = 10) -> list[SourceIncident]:
        return self._incidents[-limit:]

    def is_usable(self) -> bool:
        return self._health.is_usable()

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseIndicatorSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, status={self._health.status.value})>"


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None
