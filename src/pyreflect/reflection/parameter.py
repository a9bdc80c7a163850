"""Parameter reflection."""

from __future__ import annotations

import ast
from enum import Enum
from typing import TYPE_CHECKING, Any

from pyreflect.core.errors import UnsupportedExpression
from pyreflect.reflection.types import TypeHint, type_hint_from_annotation
from pyreflect.resolve.evaluator import UNKNOWN
from pyreflect.resolve.namespace import dotted_name
from pyreflect.source.index import DeclarationKind

if TYPE_CHECKING:
    from pyreflect.reflection.function import ReflectionFunctionAbstract
    from pyreflect.reflection.klass import ReflectionClass

_UNSET: Any = object()


class ParameterKind(str, Enum):
    """The five kinds of ``inspect.Parameter``, by the same names."""

    POSITIONAL_ONLY = "POSITIONAL_ONLY"
    POSITIONAL_OR_KEYWORD = "POSITIONAL_OR_KEYWORD"
    VAR_POSITIONAL = "VAR_POSITIONAL"
    KEYWORD_ONLY = "KEYWORD_ONLY"
    VAR_KEYWORD = "VAR_KEYWORD"


class ReflectionParameter:
    """One parameter of a function or method."""

    SNAPSHOT_FIELDS = ("name",)

    def __init__(
        self,
        function: ReflectionFunctionAbstract,
        position: int,
        arg: ast.arg,
        kind: ParameterKind,
        default: ast.expr | None = None,
    ) -> None:
        self._function = function
        self._position = position
        self._arg = arg
        self._kind = kind
        self._default = default
        self._value: Any = _UNSET

    def get_name(self) -> str:
        return self._arg.arg

    def get_position(self) -> int:
        return self._position

    def get_kind(self) -> ParameterKind:
        return self._kind

    def get_node(self) -> ast.arg:
        return self._arg

    def get_declaring_function(self) -> ReflectionFunctionAbstract:
        return self._function

    def get_declaring_class(self) -> ReflectionClass | None:
        return self._function.get_declaring_class()

    # ------------------------------------------------------------------
    # Kind
    # ------------------------------------------------------------------

    def is_positional_only(self) -> bool:
        return self._kind is ParameterKind.POSITIONAL_ONLY

    def is_keyword_only(self) -> bool:
        return self._kind is ParameterKind.KEYWORD_ONLY

    def is_variadic(self) -> bool:
        return self._kind is ParameterKind.VAR_POSITIONAL

    def is_keyword_variadic(self) -> bool:
        return self._kind is ParameterKind.VAR_KEYWORD

    def is_optional(self) -> bool:
        return self._default is not None or self.is_variadic() or self.is_keyword_variadic()

    def is_passed_by_reference(self) -> bool:
        return False

    def can_be_passed_by_value(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Type
    # ------------------------------------------------------------------

    def has_type(self) -> bool:
        return self._arg.annotation is not None

    def get_type(self) -> TypeHint | None:
        return type_hint_from_annotation(self._arg.annotation, self._function._resolve)

    def allows_null(self) -> bool:
        hint = self.get_type()
        if hint is None:
            return True
        if self._default is not None and isinstance(self._default, ast.Constant):
            if self._default.value is None:
                return True
        return hint.allows_null()

    # ------------------------------------------------------------------
    # Default value
    # ------------------------------------------------------------------

    def is_default_value_available(self) -> bool:
        return self._default is not None

    def get_default_value_expression(self) -> str | None:
        return ast.unparse(self._default) if self._default is not None else None

    def get_default_value(self) -> Any:
        """Evaluated default, or ``UNKNOWN`` when not statically known."""
        if self._default is None:
            raise UnsupportedExpression.for_node(self.get_name(), "parameter has no default value")
        if self._value is _UNSET:
            self._value = self._function._evaluate(self._default)
        return self._value

    def is_default_value_constant(self) -> bool:
        return self.get_default_value_constant_name() is not None

    def get_default_value_constant_name(self) -> str | None:
        """Fully-qualified name of the constant used as default, if any."""
        if self._default is None:
            return None
        dotted = dotted_name(self._default)
        if dotted is None:
            return None
        klass = self.get_declaring_class()
        if klass is not None and "." not in dotted:
            member = klass._own_members().get(dotted, case_insensitive=False)
            if member is not None and member.value is not None:
                return f"{klass.get_name()}.{member.name}"
        fqn = self._function._resolve_name(dotted)
        engine = self._function._engine
        found = engine.find_declaration(fqn, (DeclarationKind.CONSTANT,))
        if found is not None:
            return found[1].qualified_name
        owner, _, member_name = fqn.rpartition(".")
        owner_class = engine.find_class(owner) if owner else None
        if owner_class is not None and owner_class.has_constant(member_name):
            return fqn
        if not fqn.startswith("builtins.") and engine.evaluator.try_evaluate(
            self._default, self._function._evaluation_scope()
        ) is not UNKNOWN:
            return fqn
        return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _format_default(self) -> str:
        value = self.get_default_value()
        if value is UNKNOWN:
            return self.get_default_value_expression() or ""
        return repr(value)

    def __str__(self) -> str:
        """Same text as ``str(inspect.Parameter)``."""
        text = self.get_name()
        annotation = self._function._format_annotation(self._arg.annotation)
        if annotation is not None:
            text = f"{text}: {annotation}"
        if self._default is not None:
            separator = " = " if annotation is not None else "="
            text = f"{text}{separator}{self._format_default()}"
        if self.is_variadic():
            text = f"*{text}"
        elif self.is_keyword_variadic():
            text = f"**{text}"
        return text

    def __repr__(self) -> str:
        return f'<ReflectionParameter "{self}">'

    def debug_info(self) -> dict[str, Any]:
        return {"name": self.get_name()}
