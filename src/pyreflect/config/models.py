"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (PYREFLECT__SECTION__KEY)
3. Project YAML (pyreflect.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    PYREFLECT__<SECTION>__<KEY>=<VALUE>

Examples:
    PYREFLECT__LOGGING__LEVEL=DEBUG
    PYREFLECT__EVALUATOR__ALLOW_LIVE_CONSTANTS=false
    PYREFLECT__LOCATOR__SEARCH_PATHS='["src", "lib"]'
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        PYREFLECT__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG logs every parse and lookup.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LocatorConfig(BaseModel):
    """Symbol locator configuration.

    Env vars:
        PYREFLECT__LOCATOR__SEARCH_PATHS: JSON list of source roots
        PYREFLECT__LOCATOR__INCLUDE_SYS_PATH: Also probe sys.path entries
    """

    search_paths: list[str] = Field(
        default_factory=list,
        description="Source roots probed in order when mapping a dotted name to a file.",
    )
    include_sys_path: bool = Field(
        default=False,
        description="Append sys.path entries after search_paths. "
        "Makes installed packages reflectable without importing them.",
    )


class EvaluatorConfig(BaseModel):
    """Constant expression evaluator configuration.

    Env vars:
        PYREFLECT__EVALUATOR__ALLOW_LIVE_CONSTANTS: Read unindexed constants from the live runtime
        PYREFLECT__EVALUATOR__MAX_POWER: Largest exponent evaluated for ``**``
    """

    allow_live_constants: bool = Field(
        default=True,
        description="Read constants declared outside indexed source (e.g. math.pi) "
        "through the live runtime. RISK: imports the owning module.",
    )
    max_power: int = Field(
        default=1024,
        description="Exponents above this are refused to bound evaluation cost.",
    )

    @field_validator("max_power")
    @classmethod
    def validate_max_power(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_power must be non-negative, got {v}")
        return v


class ReflectionConfig(BaseModel):
    """Reflection object model configuration.

    Env vars:
        PYREFLECT__REFLECTION__CASE_INSENSITIVE_LOOKUP: Fall back to case-folded name matches
    """

    case_insensitive_lookup: bool = Field(
        default=True,
        description="When no exact-case match exists, match names case-insensitively.",
    )


class PyReflectConfig(BaseModel):
    """Root configuration for pyreflect."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    reflection: ReflectionConfig = Field(default_factory=ReflectionConfig)
