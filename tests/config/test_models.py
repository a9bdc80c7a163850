"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from pyreflect.config.models import (
    EvaluatorConfig,
    LocatorConfig,
    LoggingConfig,
    PyReflectConfig,
)


class TestModels:
    """Default and validation behavior of the config sections."""

    def test_root_config_defaults(self) -> None:
        """Every section has usable defaults."""
        config = PyReflectConfig()
        assert config.locator == LocatorConfig()
        assert config.logging.outputs[0].destination == "stderr"

    def test_negative_max_power_rejected(self) -> None:
        """max_power must be non-negative."""
        with pytest.raises(ValidationError):
            EvaluatorConfig(max_power=-5)

    def test_zero_max_power_allowed(self) -> None:
        """Zero disables large exponents but is valid."""
        assert EvaluatorConfig(max_power=0).max_power == 0

    def test_unknown_level_rejected(self) -> None:
        """Log levels are a closed set."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]
