"""pyreflect - static reflection for Python source files.

Answers structural questions about modules, classes, functions and their
members from the parsed source, without importing it. Value-level
operations (invoke, get/set values, instantiate) import the declaring
module on demand.
"""

from pyreflect.core.errors import (
    AccessDenied,
    CircularInheritance,
    ClassNotFound,
    ConstantNotFound,
    FunctionNotFound,
    InconsistentHierarchy,
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
from pyreflect.reflection import (
    ClassKind,
    Modifier,
    ParameterKind,
    PropertyOrigin,
    ReflectionClass,
    ReflectionClassConstant,
    ReflectionFile,
    ReflectionFileNamespace,
    ReflectionFunction,
    ReflectionMethod,
    ReflectionParameter,
    ReflectionProperty,
    Visibility,
)
from pyreflect.resolve.evaluator import UNKNOWN
from pyreflect.engine import FileScope, ReflectionEngine

__version__ = "0.1.0"

__all__ = [
    "UNKNOWN",
    "AccessDenied",
    "CircularInheritance",
    "ClassKind",
    "ClassNotFound",
    "ConstantNotFound",
    "FileScope",
    "FunctionNotFound",
    "InconsistentHierarchy",
    "InvalidTarget",
    "MethodNotFound",
    "Modifier",
    "NotLoaded",
    "ParameterKind",
    "ParseError",
    "PropertyNotFound",
    "PropertyOrigin",
    "ReflectionClass",
    "ReflectionClassConstant",
    "ReflectionEngine",
    "ReflectionError",
    "ReflectionFile",
    "ReflectionFileNamespace",
    "ReflectionFunction",
    "ReflectionMethod",
    "ReflectionParameter",
    "ReflectionProperty",
    "SourceIOError",
    "SymbolNotFound",
    "UnsupportedExpression",
    "Visibility",
]
