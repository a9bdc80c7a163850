"""Config module exports."""

from pyreflect.config.loader import find_project_root, load_config
from pyreflect.config.models import (
    EvaluatorConfig,
    LocatorConfig,
    LoggingConfig,
    LogOutputConfig,
    PyReflectConfig,
    ReflectionConfig,
)

__all__ = [
    "find_project_root",
    "load_config",
    "PyReflectConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "LocatorConfig",
    "EvaluatorConfig",
    "ReflectionConfig",
]
