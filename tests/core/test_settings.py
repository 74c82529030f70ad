"""
Tests for pipeline settings, clock and contract errors.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.clock import ClockFactory, MockClock, SystemClock, to_iso8601
from core.config import PipelineSettings
from core.exceptions import ConfigurationError, PipelineError


ENV_VARS = (
    "RISK_BATCH_SIZE",
    "RISK_BATCH_PAUSE_SECONDS",
    "RISK_MIN_LIVE_INDICATORS",
    "RISK_PROFILE_CACHE_TTL",
    "RISK_COMBINED_CACHE_TTL",
    "RISK_INDICATOR_CACHE_TTL",
    "RISK_HTTP_TIMEOUT",
    "RISK_ENABLED_SOURCES",
    "RISK_CACHE_BACKEND",
    "REDIS_URL",
    "UCDP_ACCESS_TOKEN",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with every pipeline variable unset."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestPipelineSettings:
    """Tests for PipelineSettings.from_env."""

    def test_defaults(self, clean_env):
        settings = PipelineSettings.from_env()

        assert settings.batch_size == 8
        assert settings.batch_pause_seconds == 0.5
        assert settings.min_live_indicators == 3
        assert settings.combined_cache_ttl == 1800
        assert settings.profile_cache_ttl == 86400
        assert settings.cache_backend == "memory"
        assert settings.http_timeout_seconds is None
        assert settings.validate() == []

    def test_overrides(self, clean_env):
        clean_env.setenv("RISK_BATCH_SIZE", "4")
        clean_env.setenv("RISK_BATCH_PAUSE_SECONDS", "0")
        clean_env.setenv("RISK_ENABLED_SOURCES", "UCDP, gdelt,")
        clean_env.setenv("RISK_CACHE_BACKEND", " Redis ")
        clean_env.setenv("RISK_HTTP_TIMEOUT", "7.5")

        settings = PipelineSettings.from_env()

        assert settings.batch_size == 4
        assert settings.batch_pause_seconds == 0
        assert settings.enabled_sources == ("ucdp", "gdelt")
        assert settings.cache_backend == "redis"
        assert settings.http_timeout_seconds == 7.5
        assert settings.is_enabled("gdelt")
        assert not settings.is_enabled("sanctions")

    def test_blank_value_uses_default(self, clean_env):
        clean_env.setenv("RISK_BATCH_SIZE", "  ")
        assert PipelineSettings.from_env().batch_size == 8

    def test_unparseable_number(self, clean_env):
        clean_env.setenv("RISK_COMBINED_CACHE_TTL", "half an hour")
        with pytest.raises(ConfigurationError):
            PipelineSettings.from_env()

    def test_validation_errors_collected(self, clean_env):
        clean_env.setenv("RISK_BATCH_SIZE", "0")
        clean_env.setenv("RISK_ENABLED_SOURCES", "worldbank_demographic,acled")

        with pytest.raises(ConfigurationError) as exc_info:
            PipelineSettings.from_env()

        errors = exc_info.value.errors
        assert len(errors) == 2
        assert any("batch_size" in e for e in errors)
        assert any("acled" in e for e in errors)
        assert isinstance(exc_info.value, PipelineError)

    def test_token_masked(self, clean_env):
        clean_env.setenv("UCDP_ACCESS_TOKEN", "s3cret")
        settings = PipelineSettings.from_env()

        assert settings.ucdp_access_token == "s3cret"
        assert settings.to_dict()["ucdp_access_token"] == "***"
        assert PipelineSettings().to_dict()["ucdp_access_token"] is None


class TestClock:
    """Tests for MockClock and the clock factory."""

    def test_mock_clock_advance(self):
        clock = MockClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        clock.advance(90)
        assert clock.now() == datetime(2024, 1, 1, 0, 1, 30, tzinfo=timezone.utc)
        clock.advance(hours=1)
        assert clock.now() - datetime(2024, 1, 1, tzinfo=timezone.utc) == timedelta(hours=1, seconds=90)

    def test_iso8601_milliseconds(self):
        moment = datetime(2024, 6, 1, 12, 0, 5, 123456, tzinfo=timezone.utc)
        assert to_iso8601(moment) == "2024-06-01T12:00:05.123Z"

    def test_factory_override_and_reset(self):
        mock = MockClock()
        ClockFactory.set_clock(mock)
        try:
            assert ClockFactory.get_clock() is mock
        finally:
            ClockFactory.reset()
        assert isinstance(ClockFactory.get_clock(), SystemClock)
