"""Shared pieces of the reflection object model.

- :class:`NameMap`: case-preserving map with case-insensitive fallback lookup
- :class:`Modifier` / :class:`Visibility`: member modifiers
- :class:`NodeReflection`: getters common to every AST-backed entity
"""

from __future__ import annotations

import ast
import re
import sys
from collections.abc import Iterator
from enum import Enum, IntFlag
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

if TYPE_CHECKING:
    from pyreflect.engine import FileScope, ReflectionEngine

T = TypeVar("T")

# Well-known decorator and base names, fully qualified
STATICMETHOD = frozenset({"builtins.staticmethod", "abc.abstractstaticmethod"})
CLASSMETHOD = frozenset({"builtins.classmethod", "abc.abstractclassmethod"})
ABSTRACT = frozenset(
    {
        "abc.abstractmethod",
        "abc.abstractproperty",
        "abc.abstractstaticmethod",
        "abc.abstractclassmethod",
    }
)
PROPERTY = frozenset({"builtins.property", "functools.cached_property", "abc.abstractproperty"})
FINAL = frozenset({"typing.final", "typing_extensions.final"})
OVERLOAD = frozenset({"typing.overload", "typing_extensions.overload"})
DEPRECATED = frozenset({"warnings.deprecated", "typing_extensions.deprecated"})
DOCUMENTED_NODES = (ast.Module, ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)

# Dunders Python turns into static/class methods without a decorator
IMPLICIT_STATIC = frozenset({"__new__"})
IMPLICIT_CLASS = frozenset({"__init_subclass__", "__class_getitem__"})

_DUNDER = re.compile(r"__\w+__")


class NameMap(Generic[T]):
    """Insertion-ordered map keyed by exact name, with case-folded fallback.

    An exact-case match always wins. Otherwise the first inserted name with
    the same case-folded key is returned. Stored names are never altered.
    """

    def __init__(self) -> None:
        self._items: dict[str, T] = {}
        self._folded: dict[str, str] = {}

    def set(self, name: str, value: T) -> None:
        self._items.pop(name, None)
        self._items[name] = value
        self._folded.setdefault(name.casefold(), name)

    def canonical(self, name: str, *, case_insensitive: bool = True) -> str | None:
        if name in self._items:
            return name
        if not case_insensitive:
            return None
        return self._folded.get(name.casefold())

    def get(self, name: str, *, case_insensitive: bool = True) -> T | None:
        key = self.canonical(name, case_insensitive=case_insensitive)
        return self._items[key] if key is not None else None

    def has_exact(self, name: str) -> bool:
        return name in self._items

    def names(self) -> list[str]:
        return list(self._items)

    def values(self) -> list[T]:
        return list(self._items.values())

    def items(self) -> list[tuple[str, T]]:
        return list(self._items.items())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.canonical(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class Visibility(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


class Modifier(IntFlag):
    """Member modifier bits, combinable like the native modifier mask."""

    STATIC = 0x1
    ABSTRACT = 0x2
    FINAL = 0x4
    CLASSMETHOD = 0x8
    PUBLIC = 0x100
    PROTECTED = 0x200
    PRIVATE = 0x400

    @classmethod
    def names(cls, mask: int) -> list[str]:
        """Lower-case names of the bits set in ``mask``, visibility first."""
        order = (
            cls.PUBLIC,
            cls.PROTECTED,
            cls.PRIVATE,
            cls.ABSTRACT,
            cls.FINAL,
            cls.STATIC,
            cls.CLASSMETHOD,
        )
        return [flag.name.lower() for flag in order if mask & flag and flag.name]

    @classmethod
    def for_visibility(cls, visibility: Visibility) -> Modifier:
        return {
            Visibility.PUBLIC: cls.PUBLIC,
            Visibility.PROTECTED: cls.PROTECTED,
            Visibility.PRIVATE: cls.PRIVATE,
        }[visibility]


def visibility_of(name: str) -> Visibility:
    """Python naming convention: ``__x`` private, ``_x`` protected, dunders public."""
    if _DUNDER.fullmatch(name):
        return Visibility.PUBLIC
    if name.startswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def mangle(class_name: str, name: str) -> str:
    """Attribute name Python stores a private member under."""
    if visibility_of(name) is not Visibility.PRIVATE:
        return name
    stripped = class_name.split(".")[-1].lstrip("_")
    if not stripped:
        return name
    return f"_{stripped}{name}"


def default_engine() -> ReflectionEngine:
    from pyreflect.engine import ReflectionEngine

    return ReflectionEngine.get()


def first_line(node: ast.AST) -> int:
    """First source line of a node, counting decorators like ``inspect`` does."""
    line = getattr(node, "lineno", 0)
    for decorator in getattr(node, "decorator_list", ()):
        line = min(line, decorator.lineno)
    return line


def compiled_docstring(doc: str) -> str:
    """Docstring as the running interpreter stores it in ``__doc__``.

    From 3.13 the compiler expands tabs, strips leading spaces from the first
    line and removes the common indentation of the remaining lines. Blank
    lines are kept.
    """
    if sys.version_info < (3, 13):
        return doc
    lines = doc.expandtabs().split("\n")
    indents = [len(line) - len(line.lstrip(" ")) for line in lines[1:] if line.strip(" ")]
    margin = min(indents, default=0)
    cleaned = [lines[0].lstrip(" ")]
    for line in lines[1:]:
        cleaned.append(line[min(margin, len(line) - len(line.lstrip(" "))) :])
    return "\n".join(cleaned)


def attribute_docstring(body: list[ast.stmt], stmt: ast.stmt) -> str | None:
    """String literal statement directly following ``stmt`` in ``body``."""
    try:
        position = next(i for i, s in enumerate(body) if s is stmt)
    except StopIteration:
        return None
    if position + 1 >= len(body):
        return None
    following = body[position + 1]
    if (
        isinstance(following, ast.Expr)
        and isinstance(following.value, ast.Constant)
        and isinstance(following.value.value, str)
    ):
        return following.value.value
    return None


class NodeReflection:
    """Getters shared by every entity backed by an AST node."""

    SNAPSHOT_FIELDS: ClassVar[tuple[str, ...]] = ()

    _engine: ReflectionEngine
    _scope: FileScope
    _node: ast.AST

    def get_node(self) -> ast.AST:
        return self._node

    def get_file_name(self) -> str:
        return str(self._scope.parsed.path)

    def get_start_line(self) -> int:
        return first_line(self._node)

    def get_end_line(self) -> int:
        return getattr(self._node, "end_lineno", None) or self.get_start_line()

    def get_doc_comment(self) -> str | None:
        """Docstring as ``__doc__`` holds it, ``None`` when absent."""
        if isinstance(self._node, DOCUMENTED_NODES):
            doc = ast.get_docstring(self._node, clean=False)
            return None if doc is None else compiled_docstring(doc)
        return None

    def is_internal(self) -> bool:
        return False

    def is_user_defined(self) -> bool:
        return True

    def _snapshot_value(self, field: str) -> Any:
        raise NotImplementedError

    def debug_info(self) -> dict[str, Any]:
        """Ordered structural snapshot over :attr:`SNAPSHOT_FIELDS`."""
        return {field: self._snapshot_value(field) for field in self.SNAPSHOT_FIELDS}

    def _case_insensitive(self) -> bool:
        return self._engine.config.reflection.case_insensitive_lookup
