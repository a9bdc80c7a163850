"""pyreflect error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Source (read / parse)
- 4xxx: Lookup
- 5xxx: Inheritance
- 6xxx: Evaluation
- 7xxx: Live runtime
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Source (3xxx)
    SOURCE_SYNTAX_ERROR = 3001
    SOURCE_UNREADABLE = 3002

    # Lookup (4xxx)
    SYMBOL_NOT_FOUND = 4001
    CLASS_NOT_FOUND = 4002
    FUNCTION_NOT_FOUND = 4003
    CONSTANT_NOT_FOUND = 4004
    METHOD_NOT_FOUND = 4005
    PROPERTY_NOT_FOUND = 4006

    # Inheritance (5xxx)
    CIRCULAR_INHERITANCE = 5001
    INCONSISTENT_HIERARCHY = 5002

    # Evaluation (6xxx)
    UNSUPPORTED_EXPRESSION = 6001

    # Live runtime (7xxx)
    ACCESS_DENIED = 7001
    INVALID_TARGET = 7002
    NOT_LOADED = 7003


@dataclass(frozen=True, slots=True)
class ReflectionError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CLASS_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ReflectionError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ParseError(ReflectionError):
    """The parser rejected a source file. Other files stay usable."""

    @property
    def line(self) -> int | None:
        return self.details.get("line")

    @classmethod
    def syntax_error(cls, path: str, line: int | None, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.SOURCE_SYNTAX_ERROR,
            message=f"Syntax error in {path} at line {line}: {reason}",
            details={"path": path, "line": line, "reason": reason},
        )


class SourceIOError(ReflectionError):
    """A source file could not be read or decoded."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "SourceIOError":
        return cls(
            code=ErrorCode.SOURCE_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class SymbolNotFound(ReflectionError):
    """No file or declaration is known for a fully-qualified name."""

    @classmethod
    def for_name(cls, name: str, reason: str = "no declaring file") -> "SymbolNotFound":
        return cls(
            code=ErrorCode.SYMBOL_NOT_FOUND,
            message=f"Symbol '{name}' not found: {reason}",
            details={"name": name, "reason": reason},
        )


class ClassNotFound(SymbolNotFound):
    @classmethod
    def for_name(cls, name: str, reason: str = "no class declaration") -> "ClassNotFound":
        return cls(
            code=ErrorCode.CLASS_NOT_FOUND,
            message=f"Class '{name}' not found: {reason}",
            details={"name": name, "reason": reason},
        )


class FunctionNotFound(SymbolNotFound):
    @classmethod
    def for_name(cls, name: str, reason: str = "no function declaration") -> "FunctionNotFound":
        return cls(
            code=ErrorCode.FUNCTION_NOT_FOUND,
            message=f"Function '{name}' not found: {reason}",
            details={"name": name, "reason": reason},
        )


class ConstantNotFound(SymbolNotFound):
    @classmethod
    def for_name(cls, name: str, reason: str = "no constant declaration") -> "ConstantNotFound":
        return cls(
            code=ErrorCode.CONSTANT_NOT_FOUND,
            message=f"Constant '{name}' not found: {reason}",
            details={"name": name, "reason": reason},
        )


class MethodNotFound(ReflectionError):
    @classmethod
    def for_member(cls, class_name: str, name: str) -> "MethodNotFound":
        return cls(
            code=ErrorCode.METHOD_NOT_FOUND,
            message=f"Method {class_name}.{name}() does not exist",
            details={"class": class_name, "name": name},
        )


class PropertyNotFound(ReflectionError):
    @classmethod
    def for_member(cls, class_name: str, name: str) -> "PropertyNotFound":
        return cls(
            code=ErrorCode.PROPERTY_NOT_FOUND,
            message=f"Property {class_name}.{name} does not exist",
            details={"class": class_name, "name": name},
        )


class InheritanceError(ReflectionError):
    """Base for hierarchy failures. Non-inheritance queries still succeed."""


class CircularInheritance(InheritanceError):
    @classmethod
    def for_chain(cls, chain: list[str]) -> "CircularInheritance":
        return cls(
            code=ErrorCode.CIRCULAR_INHERITANCE,
            message="Circular inheritance: " + " -> ".join(chain),
            details={"chain": chain},
        )


class InconsistentHierarchy(InheritanceError):
    @classmethod
    def for_class(cls, name: str, bases: list[str]) -> "InconsistentHierarchy":
        return cls(
            code=ErrorCode.INCONSISTENT_HIERARCHY,
            message=f"Cannot create a consistent method resolution order for {name}",
            details={"class": name, "bases": bases},
        )


class UnsupportedExpression(ReflectionError):
    """An expression lies outside the constant-expression grammar."""

    @classmethod
    def for_node(cls, expression: str, reason: str) -> "UnsupportedExpression":
        return cls(
            code=ErrorCode.UNSUPPORTED_EXPRESSION,
            message=f"Cannot evaluate '{expression}' statically: {reason}",
            details={"expression": expression, "reason": reason},
        )


class AccessDenied(ReflectionError):
    """A value-level operation was blocked by member visibility."""

    @classmethod
    def for_member(cls, kind: str, qualified_name: str, visibility: str) -> "AccessDenied":
        return cls(
            code=ErrorCode.ACCESS_DENIED,
            message=(
                f"Cannot access {visibility} {kind} {qualified_name}; "
                "call set_accessible(True) first"
            ),
            details={"kind": kind, "name": qualified_name, "visibility": visibility},
        )


class InvalidTarget(ReflectionError):
    """A value-level operation got the wrong kind of target."""

    @classmethod
    def instance_required(cls, qualified_name: str) -> "InvalidTarget":
        return cls(
            code=ErrorCode.INVALID_TARGET,
            message=f"{qualified_name} is an instance member and needs an object",
            details={"name": qualified_name},
        )

    @classmethod
    def wrong_instance(cls, qualified_name: str, type_name: str) -> "InvalidTarget":
        return cls(
            code=ErrorCode.INVALID_TARGET,
            message=f"Given object of type {type_name} is not an instance of {qualified_name}",
            details={"name": qualified_name, "type": type_name},
        )


class NotLoaded(ReflectionError):
    """The live runtime has no handle for a name."""

    @classmethod
    def for_name(cls, name: str, reason: str = "not loaded") -> "NotLoaded":
        return cls(
            code=ErrorCode.NOT_LOADED,
            message=f"No live handle for '{name}': {reason}",
            details={"name": name, "reason": reason},
        )
