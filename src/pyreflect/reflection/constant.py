"""Class constant reflection."""

from __future__ import annotations

import ast
from typing import Any

from pyreflect.core.errors import ConstantNotFound
from pyreflect.reflection.base import (
    Modifier,
    NodeReflection,
    Visibility,
    default_engine,
    visibility_of,
)
from pyreflect.reflection.klass import ReflectionClass
from pyreflect.reflection.members import MemberDecl
from pyreflect.reflection.types import TypeHint, type_hint_from_annotation

_UNSET: Any = object()


class ReflectionClassConstant(NodeReflection):
    """An UPPER_CASE or ``Final`` class-level binding (or an enum member)."""

    SNAPSHOT_FIELDS = ("name", "class")

    def __init__(self, klass: str | ReflectionClass, name: str) -> None:
        if not isinstance(klass, ReflectionClass):
            klass = default_engine().get_class(klass)
        constant = klass.get_reflection_constant(name)
        if constant is None:
            raise ConstantNotFound.for_name(f"{klass.get_name()}.{name}")
        self._setup(constant._class, constant._decl)

    @classmethod
    def _create(cls, owner: ReflectionClass, decl: MemberDecl) -> ReflectionClassConstant:
        constant = cls.__new__(cls)
        constant._setup(owner, decl)
        return constant

    def _setup(self, owner: ReflectionClass, decl: MemberDecl) -> None:
        self._engine = owner._engine
        self._scope = owner.get_file_scope()
        self._class = owner
        self._decl = decl
        self._node = decl.node
        self._value: Any = _UNSET

    def get_name(self) -> str:
        return self._decl.name

    def get_declaring_class(self) -> ReflectionClass:
        return self._class

    def get_class_name(self) -> str:
        return self._class.get_name()

    def get_doc_comment(self) -> str | None:
        return self._decl.doc

    def _snapshot_value(self, field: str) -> Any:
        return {"name": self.get_name(), "class": self.get_class_name()}[field]

    def get_visibility(self) -> Visibility:
        return visibility_of(self.get_name())

    def is_public(self) -> bool:
        return self.get_visibility() is Visibility.PUBLIC

    def is_protected(self) -> bool:
        return self.get_visibility() is Visibility.PROTECTED

    def is_private(self) -> bool:
        return self.get_visibility() is Visibility.PRIVATE

    def is_final(self) -> bool:
        return self._decl.is_final

    def is_enum_case(self) -> bool:
        return self._class.is_enum()

    def get_modifiers(self) -> int:
        mask = int(Modifier.for_visibility(self.get_visibility()))
        if self.is_final():
            mask |= Modifier.FINAL
        return mask

    def has_type(self) -> bool:
        return self._decl.annotation is not None

    def get_type(self) -> TypeHint | None:
        return type_hint_from_annotation(self._decl.annotation, self._class._resolve)

    def get_value_expression(self) -> str:
        assert self._decl.value is not None
        return ast.unparse(self._decl.value)

    def get_value(self) -> Any:
        """Evaluated value, ``UNKNOWN`` when not statically known."""
        if self._value is _UNSET:
            assert self._decl.value is not None
            self._value = self._engine.evaluator.try_evaluate(
                self._decl.value, self._class._evaluation_scope(self._decl.lineno)
            )
        return self._value

    def __repr__(self) -> str:
        return f"<ReflectionClassConstant {self.get_class_name()}.{self.get_name()}>"

    def __str__(self) -> str:
        modifiers = " ".join(Modifier.names(self.get_modifiers()))
        return f"{modifiers} const {self.get_name()} = {self.get_value_expression()}"
