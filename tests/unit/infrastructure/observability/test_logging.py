"""Tests for structured logging."""

import io
import json
import logging

from musiclt.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


def capture(formatter: logging.Formatter) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(formatter)
    logger = logging.getLogger(f"musiclt.test.{id(stream)}")
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    return logger, stream


class TestCorrelationId:
    """Test correlation ID functionality."""

    def test_set_and_get_correlation_id(self):
        """Test setting and getting correlation ID."""
        test_id = "test-123-abc"
        result = set_correlation_id(test_id)
        assert result == test_id
        assert get_correlation_id() == test_id

    def test_set_correlation_id_generates_uuid_when_none(self):
        """Test that setting None generates a UUID."""
        result = set_correlation_id(None)
        assert len(result) == 36
        assert get_correlation_id() == result

    def test_empty_header_value_generates_uuid(self):
        """An empty X-Correlation-ID is treated like a missing one."""
        result = set_correlation_id("")
        assert result != ""


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        """Test configuring logging with DEBUG level."""
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        logger = logging.getLogger("test")
        assert logger.getEffectiveLevel() <= logging.DEBUG

    def test_configure_logging_info_level(self):
        """Test configuring logging with INFO level."""
        configure_logging(log_level="INFO", json_format=False, app_name="test-app")
        logger = logging.getLogger("test")
        assert logger.getEffectiveLevel() == logging.INFO

    def test_configure_logging_replaces_handlers(self):
        """Calling configure_logging twice leaves exactly one root handler."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        configure_logging(log_level="INFO", json_format=False, app_name="test-app")
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CompactExceptionFormatter)

    def test_configure_logging_json_format(self):
        """Test configuring logging with JSON format."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        root_logger = logging.getLogger()
        assert isinstance(root_logger.handlers[0].formatter, CustomJsonFormatter)

    def test_third_party_loggers_quieted(self):
        configure_logging(log_level="DEBUG", json_format=False)
        assert logging.getLogger("httpx").level == logging.WARNING


class TestFormatters:
    """Test log output."""

    def test_json_record_has_correlation_id(self):
        logger, stream = capture(
            CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        )
        set_correlation_id("req-42")

        logger.info("Saved artist %s", "g1")

        record = json.loads(stream.getvalue())
        assert record["message"] == "Saved artist g1"
        assert record["level"] == "INFO"
        assert record["correlation_id"] == "req-42"
        assert record["function"] == "test_json_record_has_correlation_id"

    def test_compact_formatter_shows_root_cause_first(self):
        logger, stream = capture(CompactExceptionFormatter("%(message)s"))

        try:
            try:
                raise KeyError("g1")
            except KeyError as e:
                raise RuntimeError("save failed") from e
        except RuntimeError:
            logger.exception("Failed to save artist")

        output = stream.getvalue()
        assert "╰─► KeyError" in output
        assert "╰─► RuntimeError: save failed" in output
        assert output.index("KeyError") < output.index("RuntimeError")
