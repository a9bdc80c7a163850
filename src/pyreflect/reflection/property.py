"""Property reflection.

A property is any attribute a class declares for its instances or itself:

- class attributes (``x = 1``): static
- annotated attributes (``x: int = 1`` or ``x: int``): instance, the value is the default
- ``ClassVar`` annotations: static
- ``self.x = ...`` in ``__init__``: instance, not a declared default
- ``@property`` / ``functools.cached_property``: computed
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from pyreflect.core.errors import PropertyNotFound
from pyreflect.live.bridge import LiveMember
from pyreflect.reflection.base import (
    Modifier,
    NodeReflection,
    Visibility,
    default_engine,
    mangle,
    visibility_of,
)
from pyreflect.reflection.klass import ReflectionClass
from pyreflect.reflection.members import MemberDecl, MemberKind, PropertyOrigin
from pyreflect.reflection.types import TypeHint, type_hint_from_annotation

if TYPE_CHECKING:
    from pyreflect.engine import ReflectionEngine

_UNSET: Any = object()


class ReflectionProperty(NodeReflection):
    SNAPSHOT_FIELDS = ("name", "class")

    def __init__(
        self,
        klass: str | ReflectionClass,
        name: str,
        node: ast.AST | None = None,
        *,
        engine: ReflectionEngine | None = None,
    ) -> None:
        if not isinstance(klass, ReflectionClass):
            klass = (engine or default_engine()).get_class(klass)
        ref = klass._find_member(name, MemberKind.PROPERTY)
        if ref is None:
            raise PropertyNotFound.for_member(klass.get_name(), name)
        self._setup(ref.owner, ref.decl, node or ref.decl.node)

    @classmethod
    def _create(cls, owner: ReflectionClass, decl: MemberDecl) -> ReflectionProperty:
        prop = cls.__new__(cls)
        prop._setup(owner, decl, decl.node)
        return prop

    def _setup(self, owner: ReflectionClass, decl: MemberDecl, node: ast.AST) -> None:
        self._engine = owner._engine
        self._scope = owner.get_file_scope()
        self._class = owner
        self._decl = decl
        self._node = node
        self._accessible = False
        self._default: Any = _UNSET
        self._live: LiveMember | None = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_name(self) -> str:
        return self._decl.name

    def get_declaring_class(self) -> ReflectionClass:
        return self._class

    def get_class_name(self) -> str:
        return self._class.get_name()

    def get_origin(self) -> PropertyOrigin:
        assert self._decl.origin is not None
        return self._decl.origin

    def get_doc_comment(self) -> str | None:
        if self._decl.origin is PropertyOrigin.DESCRIPTOR:
            return super().get_doc_comment()
        return self._decl.doc

    def _snapshot_value(self, field: str) -> Any:
        return {"name": self.get_name(), "class": self.get_class_name()}[field]

    def __repr__(self) -> str:
        return f"<ReflectionProperty {self.get_class_name()}.{self.get_name()}>"

    def __str__(self) -> str:
        modifiers = " ".join(Modifier.names(self.get_modifiers()))
        text = f"{modifiers} {self.get_name()}"
        if self.has_type():
            text = f"{text}: {ast.unparse(self._type_node())}"
        if self.has_default_value():
            text = f"{text} = {self.get_default_value_expression()}"
        return text

    # ------------------------------------------------------------------
    # Modifiers
    # ------------------------------------------------------------------

    def get_visibility(self) -> Visibility:
        return visibility_of(self.get_name())

    def is_public(self) -> bool:
        return self.get_visibility() is Visibility.PUBLIC

    def is_protected(self) -> bool:
        return self.get_visibility() is Visibility.PROTECTED

    def is_private(self) -> bool:
        return self.get_visibility() is Visibility.PRIVATE

    def is_static(self) -> bool:
        return self._decl.is_static

    def is_default(self) -> bool:
        """False for attributes only assigned at runtime in ``__init__``."""
        return self._decl.origin is not PropertyOrigin.INSTANCE_ASSIGNMENT

    def is_computed(self) -> bool:
        return self._decl.origin is PropertyOrigin.DESCRIPTOR

    def is_abstract(self) -> bool:
        return self._decl.is_abstract

    def is_read_only(self) -> bool:
        if self._decl.is_final:
            return True
        return self.is_computed() and self._decl.setter is None

    def get_modifiers(self) -> int:
        mask = int(Modifier.for_visibility(self.get_visibility()))
        if self.is_static():
            mask |= Modifier.STATIC
        if self.is_abstract():
            mask |= Modifier.ABSTRACT
        if self._decl.is_final:
            mask |= Modifier.FINAL
        return mask

    # ------------------------------------------------------------------
    # Type and default
    # ------------------------------------------------------------------

    def _type_node(self) -> ast.expr | None:
        return self._decl.annotation

    def has_type(self) -> bool:
        return self._type_node() is not None

    def get_type(self) -> TypeHint | None:
        return type_hint_from_annotation(self._type_node(), self._class._resolve)

    def has_default_value(self) -> bool:
        return self._decl.value is not None and self._decl.origin in (
            PropertyOrigin.CLASS_ATTRIBUTE,
            PropertyOrigin.ANNOTATION,
        )

    def get_default_value_expression(self) -> str | None:
        if not self.has_default_value():
            return None
        assert self._decl.value is not None
        return ast.unparse(self._decl.value)

    def get_default_value(self) -> Any:
        """Evaluated default, ``None`` without one, ``UNKNOWN`` when not static."""
        if not self.has_default_value():
            return None
        if self._default is _UNSET:
            assert self._decl.value is not None
            self._default = self._engine.evaluator.try_evaluate(
                self._decl.value, self._class._evaluation_scope(self._decl.lineno)
            )
        return self._default

    # ------------------------------------------------------------------
    # Accessibility and live operations
    # ------------------------------------------------------------------

    def set_accessible(self, accessible: bool) -> None:
        self._accessible = accessible

    def is_accessible(self) -> bool:
        return self._accessible

    def live(self) -> LiveMember:
        if self._live is None:
            self._live = LiveMember(
                self._engine.runtime,
                path=self._scope.path,
                module=self._scope.namespace,
                owner=self._class.get_name(),
                member=self.get_name(),
                attribute=mangle(self._class.get_name(), self.get_name()),
                kind="property",
                visibility=self.get_visibility().value,
                needs_instance=not self.is_static(),
                accessible=self.is_accessible,
            )
        return self._live

    def get_value(self, obj: Any = None) -> Any:
        """Live value, read from ``obj`` or from the class for static properties."""
        return self.live().get_value(obj)

    def set_value(self, obj: Any, value: Any = _UNSET) -> None:
        """Write the live value. ``set_value(value)`` is accepted for static properties."""
        if value is _UNSET:
            obj, value = None, obj
        self.live().set_value(obj, value)
