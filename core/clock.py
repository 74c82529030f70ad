"""
Core Module - Pipeline Clock.

============================================================
RESPONSIBILITY
============================================================
Single source of "now" for the risk pipeline.

- Cache expiry is computed against this clock
- Report timestamps (updatedAt) are taken from this clock
- Conflict-year windows are derived from this clock

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only
- Injected into components; ClockFactory holds the process default
- MockClock makes TTL behavior testable without sleeping

============================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Generator, Optional
import threading
import time


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the pipeline clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    @abstractmethod
    def timestamp(self) -> float:
        """Get current Unix timestamp."""
        pass

    def today(self) -> date:
        """Get current UTC date."""
        return self.now().date()

    def current_year(self) -> int:
        return self.now().year

    def isoformat(self) -> str:
        """Current time as ISO 8601 with a trailing Z."""
        return to_iso8601(self.now())


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Wall clock, UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def timestamp(self) -> float:
        return time.time()


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Manually driven clock for tests.

    Time only moves when advance() or set_time() is called.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        """
        Initialize mock clock.

        Args:
            initial_time: Starting time (defaults to current UTC)
        """
        initial_time = initial_time or datetime.now(timezone.utc)
        if initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def timestamp(self) -> float:
        with self._lock:
            return self._time.timestamp()

    def set_time(self, new_time: datetime) -> None:
        """Jump to an absolute time."""
        with self._lock:
            if new_time.tzinfo is None:
                new_time = new_time.replace(tzinfo=timezone.utc)
            self._time = new_time

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Move time forward.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (minutes, hours, days)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)

    @contextmanager
    def freeze(self, at_time: Optional[datetime] = None) -> Generator[None, None, None]:
        """Pin the clock for the duration of the block, then restore it."""
        with self._lock:
            original_time = self._time
            if at_time is not None:
                if at_time.tzinfo is None:
                    at_time = at_time.replace(tzinfo=timezone.utc)
                self._time = at_time
        try:
            yield
        finally:
            with self._lock:
                self._time = original_time


# ============================================================
# CLOCK FACTORY
# ============================================================

class ClockFactory:
    """Holds the process-wide default clock."""

    _instance: Optional[ClockProtocol] = None
    _lock = threading.Lock()

    @classmethod
    def get_clock(cls) -> ClockProtocol:
        with cls._lock:
            if cls._instance is None:
                cls._instance = SystemClock()
            return cls._instance

    @classmethod
    def set_clock(cls, clock: ClockProtocol) -> None:
        with cls._lock:
            cls._instance = clock

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = SystemClock()

    @classmethod
    @contextmanager
    def use_mock(
        cls,
        initial_time: Optional[datetime] = None,
    ) -> Generator[MockClock, None, None]:
        """
        Temporarily install a MockClock as the default.

        Args:
            initial_time: Initial time for mock clock
        """
        original = cls._instance
        mock = MockClock(initial_time)
        cls.set_clock(mock)
        try:
            yield mock
        finally:
            cls._instance = original


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def to_iso8601(dt: datetime) -> str:
    """Render a datetime as ISO 8601 in UTC with millisecond precision."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def now_utc() -> datetime:
    """Get current UTC time using the default clock."""
    return ClockFactory.get_clock().now()
