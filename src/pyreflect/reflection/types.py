"""Type hints as a small closed set.

An annotation maps to one of :class:`ScalarType`, :class:`ClassType`,
:class:`NullableType` or :class:`UnionType`; a missing annotation is ``None``.
``text`` always holds the annotation source as ``ast.unparse`` renders it,
which is also what the interpreter stores under postponed evaluation.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass

SCALAR_NAMES = frozenset({"int", "float", "str", "bool", "bytes", "complex", "bytearray"})
OPTIONAL_NAMES = frozenset({"typing.Optional", "typing_extensions.Optional"})
UNION_NAMES = frozenset({"typing.Union", "typing_extensions.Union"})
NULL_ACCEPTING = frozenset({"typing.Any", "typing_extensions.Any", "builtins.object"})

Resolve = Callable[[ast.expr], str | None]


@dataclass(frozen=True)
class TypeHint:
    text: str

    def allows_null(self) -> bool:
        return False

    def is_builtin(self) -> bool:
        return False

    def get_name(self) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ScalarType(TypeHint):
    name: str

    def allows_null(self) -> bool:
        return self.name == "None"

    def is_builtin(self) -> bool:
        return True

    def get_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class ClassType(TypeHint):
    name: str  # fully qualified

    def allows_null(self) -> bool:
        return self.name in NULL_ACCEPTING

    def is_builtin(self) -> bool:
        return self.name.startswith("builtins.")

    def get_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class NullableType(TypeHint):
    inner: TypeHint

    def allows_null(self) -> bool:
        return True

    def get_name(self) -> str:
        return self.inner.get_name()


@dataclass(frozen=True)
class UnionType(TypeHint):
    members: tuple[TypeHint, ...]

    def allows_null(self) -> bool:
        return any(m.allows_null() for m in self.members)

    def get_types(self) -> list[TypeHint]:
        return list(self.members)


def _is_none(hint: TypeHint) -> bool:
    return isinstance(hint, ScalarType) and hint.name == "None"


def _combine(members: list[TypeHint], text: str) -> TypeHint:
    flat: list[TypeHint] = []
    for member in members:
        if isinstance(member, UnionType):
            flat.extend(member.members)
        elif isinstance(member, NullableType):
            flat.extend([member.inner, ScalarType("None", "None")])
        else:
            flat.append(member)

    non_null = [m for m in flat if not _is_none(m)]
    has_null = len(non_null) != len(flat)
    if not non_null:
        return ScalarType(text, "None")
    if len(non_null) == 1:
        core = non_null[0]
    else:
        core = UnionType(" | ".join(m.text for m in non_null), tuple(non_null))
    if has_null:
        return NullableType(text, core)
    return core if len(non_null) == 1 else UnionType(text, tuple(non_null))


def _flatten_bitor(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _flatten_bitor(node.left) + _flatten_bitor(node.right)
    return [node]


def type_hint_from_annotation(node: ast.expr | None, resolve: Resolve) -> TypeHint | None:
    """Classify an annotation expression. ``resolve`` qualifies names."""
    if node is None:
        return None
    text = ast.unparse(node)

    if isinstance(node, ast.Constant):
        if node.value is None:
            return ScalarType(text, "None")
        if isinstance(node.value, str):
            try:
                inner = ast.parse(node.value.strip(), mode="eval").body
            except SyntaxError:
                return ClassType(text, node.value)
            hint = type_hint_from_annotation(inner, resolve)
            return hint
        return ClassType(text, text)

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        members = [type_hint_from_annotation(m, resolve) for m in _flatten_bitor(node)]
        return _combine([m for m in members if m is not None], text)

    if isinstance(node, ast.Subscript):
        base = resolve(node.value)
        if base in OPTIONAL_NAMES:
            inner = type_hint_from_annotation(node.slice, resolve)
            if inner is None:
                return ClassType(text, base)
            return _combine([inner, ScalarType("None", "None")], text)
        if base in UNION_NAMES:
            elements = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
            members = [type_hint_from_annotation(e, resolve) for e in elements]
            return _combine([m for m in members if m is not None], text)
        return ClassType(text, base or ast.unparse(node.value))

    name = resolve(node)
    if name is None:
        return ClassType(text, text)
    if name.startswith("builtins.") and name[len("builtins.") :] in SCALAR_NAMES:
        return ScalarType(text, name[len("builtins.") :])
    if name == "builtins.None":
        return ScalarType(text, "None")
    return ClassType(text, name)
