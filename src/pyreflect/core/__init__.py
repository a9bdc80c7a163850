"""Core module exports."""

from pyreflect.core.errors import (
    AccessDenied,
    CircularInheritance,
    ClassNotFound,
    ConfigError,
    ConstantNotFound,
    ErrorCode,
    FunctionNotFound,
    InconsistentHierarchy,
    InheritanceError,
    InvalidTarget,
    MethodNotFound,
    NotLoaded,
    ParseError,
    PropertyNotFound,
    ReflectionError,
    SourceIOError,
    SymbolNotFound,
    UnsupportedExpression,
)
from pyreflect.core.logging import (
    configure_logging,
    get_log_file_path,
    get_logger,
    source_context,
)

__all__ = [
    # Errors
    "AccessDenied",
    "CircularInheritance",
    "ClassNotFound",
    "ConfigError",
    "ConstantNotFound",
    "ErrorCode",
    "FunctionNotFound",
    "InconsistentHierarchy",
    "InheritanceError",
    "InvalidTarget",
    "MethodNotFound",
    "NotLoaded",
    "ParseError",
    "PropertyNotFound",
    "ReflectionError",
    "SourceIOError",
    "SymbolNotFound",
    "UnsupportedExpression",
    # Logging
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "source_context",
]
