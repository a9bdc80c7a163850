"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- load_config() precedence and path resolution
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from pyreflect.config.loader import CONFIG_FILE_NAME, _load_yaml, find_project_root, load_config
from pyreflect.config.models import PyReflectConfig
from pyreflect.core.errors import ConfigError


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")
        assert _load_yaml(yaml_file) == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestFindProjectRoot:
    """Tests for config file discovery."""

    def test_finds_nearest_ancestor(self, tmp_path: Path) -> None:
        """The closest directory holding pyreflect.yaml wins."""
        # Given
        (tmp_path / CONFIG_FILE_NAME).write_text("")
        nested = tmp_path / "pkg" / "sub"
        nested.mkdir(parents=True)

        # When
        root = find_project_root(nested)

        # Then
        assert root == tmp_path.resolve()

    def test_falls_back_to_start(self, tmp_path: Path) -> None:
        """Without a config file anywhere above, the start directory is used."""
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_load_config_discovers_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """load_config without a root reads the discovered file."""
        (tmp_path / CONFIG_FILE_NAME).write_text("locator:\n  search_paths: [src]\n")
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config.locator.search_paths == [str((tmp_path / "src").resolve())]


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """No YAML and no env vars gives built-in defaults."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(tmp_path)

        assert isinstance(config, PyReflectConfig)
        assert config.logging.level == "WARNING"
        assert config.locator.search_paths == []
        assert config.evaluator.allow_live_constants is True
        assert config.evaluator.max_power == 1024
        assert config.reflection.case_insensitive_lookup is True

    def test_yaml_values_applied(self, tmp_path: Path) -> None:
        """Values from pyreflect.yaml override defaults."""
        # Given
        (tmp_path / CONFIG_FILE_NAME).write_text(
            "evaluator:\n  max_power: 64\nreflection:\n  case_insensitive_lookup: false\n"
        )

        # When
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(tmp_path)

        # Then
        assert config.evaluator.max_power == 64
        assert config.reflection.case_insensitive_lookup is False

    def test_relative_search_paths_resolved_against_root(self, tmp_path: Path) -> None:
        """YAML search paths are made absolute relative to the project root."""
        # Given
        (tmp_path / CONFIG_FILE_NAME).write_text("locator:\n  search_paths: [src, lib]\n")

        # When
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(tmp_path)

        # Then
        assert config.locator.search_paths == [
            str((tmp_path / "src").resolve()),
            str((tmp_path / "lib").resolve()),
        ]

    def test_env_overrides_yaml(self, tmp_path: Path) -> None:
        """Environment variables beat the YAML file."""
        # Given
        (tmp_path / CONFIG_FILE_NAME).write_text("logging:\n  level: INFO\n")

        # When
        with patch.dict(os.environ, {"PYREFLECT__LOGGING__LEVEL": "DEBUG"}, clear=True):
            config = load_config(tmp_path)

        # Then
        assert config.logging.level == "DEBUG"

    def test_kwargs_override_env(self, tmp_path: Path) -> None:
        """Direct kwargs have the highest precedence."""
        with patch.dict(os.environ, {"PYREFLECT__LOGGING__LEVEL": "DEBUG"}, clear=True):
            config = load_config(tmp_path, logging={"level": "ERROR"})

        assert config.logging.level == "ERROR"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        """A YAML list at top level is a parse error."""
        (tmp_path / CONFIG_FILE_NAME).write_text("- one\n- two\n")

        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        """Validation failures surface as ConfigError with the field path."""
        # Given
        (tmp_path / CONFIG_FILE_NAME).write_text("evaluator:\n  max_power: -1\n")

        # When
        with patch.dict(os.environ, {}, clear=True), pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        # Then
        assert "evaluator" in exc_info.value.details["field"]
