"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from pyreflect.config.models import LoggingConfig, LogOutputConfig
from pyreflect.core.errors import ClassNotFound
from pyreflect.core.logging import (
    configure_logging,
    get_log_file_path,
    get_logger,
    source_context,
)


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def test_given_json_format_when_log_then_valid_json_output(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """JSON format produces valid JSON with required fields."""
        # Given
        configure_logging(json_format=True, level="INFO")
        logger = get_logger("test")

        # When
        logger.info("test message", key="value")

        # Then
        captured = capsys.readouterr()
        lines = [line for line in captured.err.strip().split("\n") if line]
        if lines:
            data = json.loads(lines[-1])
            assert data["event"] == "test message"
            assert data["key"] == "value"
            assert "timestamp" in data
            assert data["level"] == "info"

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When
        configure_logging(config=config, json_format=False, level="ERROR")
        logger = get_logger()
        logger.debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()
        assert get_log_file_path() == log_file

    def test_given_multi_output_config_when_configure_then_levels_apply(
        self, tmp_path: Path
    ) -> None:
        """Each output filters by its own level."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="console", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_console_only_config_has_no_log_file(self) -> None:
        """Console outputs leave the file pointer unset."""
        configure_logging(level="WARNING")
        assert get_log_file_path() is None

    def test_source_context_binds_file(self, tmp_path: Path) -> None:
        """Events inside source_context carry the file and module."""
        # Given
        log_file = tmp_path / "scope.log"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        logger = get_logger("index")

        # When
        with source_context(tmp_path / "mod.py", "pkg.mod"):
            logger.debug("inside")
        logger.debug("outside")

        # Then
        inside, outside = (json.loads(line) for line in log_file.read_text().splitlines())
        assert inside["module"] == "pkg.mod"
        assert inside["path"].endswith("mod.py")
        assert inside["component"] == "index"
        assert "module" not in outside

    def test_reflection_errors_are_expanded(self, tmp_path: Path) -> None:
        """ReflectionError values are rendered through to_dict."""
        log_file = tmp_path / "errors.log"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        get_logger().warning("lookup_failed", error=ClassNotFound.for_name("pkg.Missing"))

        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["error"]["error"] == "CLASS_NOT_FOUND"
        assert data["error"]["details"]["name"] == "pkg.Missing"


class TestLogOutputConfig:
    """Destination validation tests."""

    def test_relative_file_destination_rejected(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValueError, match="absolute"):
            LogOutputConfig(destination="logs/out.log")

    @pytest.mark.parametrize("destination", ["stderr", "stdout"])
    def test_stream_destinations_accepted(self, destination: str) -> None:
        """Stream names pass through unchanged."""
        assert LogOutputConfig(destination=destination).destination == destination
