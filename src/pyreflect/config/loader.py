"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (PYREFLECT__SECTION__KEY)
3. Project config (pyreflect.yaml in the project root, found by walking up
   from the working directory when no root is given)
4. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from pyreflect.config.models import (
    EvaluatorConfig,
    LocatorConfig,
    LoggingConfig,
    PyReflectConfig,
    ReflectionConfig,
)
from pyreflect.core.errors import ConfigError

CONFIG_FILE_NAME = "pyreflect.yaml"


def find_project_root(start: Path | None = None) -> Path:
    """Nearest directory at or above ``start`` holding pyreflect.yaml.

    Falls back to ``start`` (the working directory by default) when no
    ancestor has one.
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        if (directory / CONFIG_FILE_NAME).is_file():
            return directory
    return start


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class PyReflectSettings(BaseSettings):
        """Root config. Env vars: PYREFLECT__LOGGING__LEVEL, PYREFLECT__EVALUATOR__MAX_POWER, ..."""

        model_config = SettingsConfigDict(
            env_prefix="PYREFLECT__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        locator: LocatorConfig = LocatorConfig()
        evaluator: EvaluatorConfig = EvaluatorConfig()
        reflection: ReflectionConfig = ReflectionConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return PyReflectSettings


def load_config(project_root: Path | None = None, **kwargs: Any) -> PyReflectConfig:
    """Load config: defaults < pyreflect.yaml < env vars < kwargs.

    Relative ``locator.search_paths`` from the YAML file are resolved
    against ``project_root``.

    Args:
        project_root: Directory holding pyreflect.yaml. Defaults to
            :func:`find_project_root` from the working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    project_root = project_root or find_project_root()
    yaml_config = _load_yaml(project_root / CONFIG_FILE_NAME)
    if not isinstance(yaml_config, dict):
        raise ConfigError.parse_error(
            str(project_root / CONFIG_FILE_NAME), "top level must be a mapping"
        )

    locator = yaml_config.get("locator")
    if isinstance(locator, dict) and isinstance(locator.get("search_paths"), list):
        locator["search_paths"] = [
            str((project_root / p).resolve()) for p in locator["search_paths"]
        ]

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return PyReflectConfig.model_validate(settings.model_dump())
