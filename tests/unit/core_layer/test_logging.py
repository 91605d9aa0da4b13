"""
Unit Tests for Logging Module

Tests request ID context, the custom structlog processors and log_stage.
"""

from unittest.mock import MagicMock

import pytest

from specular_api.core.config.constants import Stage
from specular_api.core.logging.logger import (
    add_log_level_name,
    add_request_id,
    add_timestamp,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    redact_secrets,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)

        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")

    def test_setup_logging_accepts_both_formats(self):
        setup_logging(log_level="DEBUG", log_format="console")
        setup_logging(log_level="INFO", log_format="json")

        get_logger("test").info("configured", stage=Stage.INITIALIZATION)


@pytest.mark.unit
class TestRequestContext:

    def teardown_method(self):
        clear_request_id()

    def test_set_and_get_request_id(self):
        set_request_id("req_abc")

        assert get_request_id() == "req_abc"

    def test_clear_request_id(self):
        set_request_id("req_abc")
        clear_request_id()

        assert get_request_id() is None

    def test_processor_injects_request_id(self):
        set_request_id("req_xyz")

        event = add_request_id(None, "info", {"event": "hello"})

        assert event["request_id"] == "req_xyz"

    def test_processor_skips_missing_request_id(self):
        event = add_request_id(None, "info", {"event": "hello"})

        assert "request_id" not in event


@pytest.mark.unit
class TestProcessors:

    def test_timestamp_is_utc_iso(self):
        event = add_timestamp(None, "info", {"event": "x"})

        assert event["timestamp"].endswith("Z")
        assert "T" in event["timestamp"]

    def test_level_uppercased(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"

    def test_private_key_redacted(self):
        key = "0x" + "ab" * 32

        event = redact_secrets(None, "info", {"event": f"signing with {key}"})

        assert event["event"] == "signing with [PRIVATE_KEY]"

    def test_api_key_redacted(self):
        event = redact_secrets(None, "info", {"event": "token sk-abcdefghijklmnop1234"})

        assert event["event"] == "token [REDACTED]"

    def test_address_not_redacted(self):
        address = "0x741C03c0d95d2c15E479CE1c7E69B3196d86faD7"

        event = redact_secrets(None, "info", {"event": f"registry {address}"})

        assert event["event"] == f"registry {address}"

    def test_non_string_event_left_alone(self):
        event = redact_secrets(None, "info", {"event": {"k": "v"}})

        assert event["event"] == {"k": "v"}


@pytest.mark.unit
class TestLogStage:

    def test_log_stage_calls_level_method(self):
        logger = MagicMock()

        log_stage(logger, Stage.CACHE_SWEEP, "Cache cleanup", level="warning", removed=3)

        logger.warning.assert_called_once_with(
            "Cache cleanup", stage=Stage.CACHE_SWEEP, removed=3
        )
