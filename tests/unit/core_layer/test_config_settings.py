"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, and default values.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from specular_api.core.config.settings import (
    CircuitBreakerSettings,
    Settings,
    get_settings,
    reload_settings,
)


@pytest.mark.unit
class TestSettingsDefaults:
    """Defaults match the documented protection parameters."""

    def test_settings_has_section_views(self):
        settings = Settings()

        for section in ("cache", "circuit_breaker", "request_limiter", "networks", "logging", "app"):
            assert hasattr(settings, section)

    def test_cache_defaults(self):
        cache = Settings().cache

        assert cache.CACHE_MAX_SIZE == 100
        assert cache.CACHE_TTL == 300
        assert cache.CACHE_CLEANUP_INTERVAL == 60

    def test_circuit_breaker_defaults(self):
        breaker = Settings().circuit_breaker

        assert breaker.CB_MEMORY_THRESHOLD == 0.85
        assert breaker.CB_CHECK_INTERVAL == 5
        assert breaker.CB_COOLDOWN_PERIOD == 30

    def test_request_limiter_defaults(self):
        limiter = Settings().request_limiter

        assert limiter.LIMITER_MAX_CONCURRENT == 20
        assert limiter.LIMITER_QUEUE_SIZE == 100
        assert limiter.LIMITER_TIMEOUT == 30


@pytest.mark.unit
class TestSettingsFromEnvironment:

    def test_environment_overrides(self):
        env = {"CACHE_MAX_SIZE": "7", "LIMITER_TIMEOUT": "2.5", "DEFAULT_NETWORK": "base"}
        with patch.dict(os.environ, env):
            settings = Settings()

        assert settings.cache.CACHE_MAX_SIZE == 7
        assert settings.request_limiter.LIMITER_TIMEOUT == 2.5
        assert settings.networks.DEFAULT_NETWORK == "base"

    def test_log_level_normalized(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert Settings().logging.LOG_LEVEL == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}):
            with pytest.raises(ValidationError):
                Settings()

    @pytest.mark.parametrize("threshold", ["0", "1.5", "85"])
    def test_threshold_must_be_ratio(self, threshold):
        with patch.dict(os.environ, {"CB_MEMORY_THRESHOLD": threshold}):
            with pytest.raises(ValidationError):
                Settings()

    def test_section_validates_on_its_own(self):
        with pytest.raises(ValidationError):
            CircuitBreakerSettings(CB_MEMORY_THRESHOLD=2)

    def test_non_positive_cache_size_rejected(self):
        with patch.dict(os.environ, {"CACHE_MAX_SIZE": "0"}):
            with pytest.raises(ValidationError):
                Settings()

    @pytest.mark.parametrize("limit", ["0", "-512"])
    def test_memory_limit_must_be_positive(self, limit):
        with patch.dict(os.environ, {"MEMORY_LIMIT_MB": limit}):
            with pytest.raises(ValidationError):
                Settings()

        with pytest.raises(ValidationError):
            CircuitBreakerSettings(MEMORY_LIMIT_MB=int(limit))

    def test_memory_limit_accepts_positive_budget(self):
        with patch.dict(os.environ, {"MEMORY_LIMIT_MB": "2048"}):
            assert Settings().circuit_breaker.MEMORY_LIMIT_MB == 2048


@pytest.mark.unit
class TestSettingsSingleton:

    def test_get_settings_returns_same_instance(self):
        assert get_settings() is get_settings()

    def test_reload_settings_picks_up_changes(self):
        try:
            with patch.dict(os.environ, {"API_PORT": "4100"}):
                assert reload_settings().app.API_PORT == 4100
        finally:
            reload_settings()
