"""Class-body scanning.

Turns the statements of a ``class`` block into :class:`MemberDecl` records:
methods, properties (class attributes, annotations, ``@property``
descriptors), constants and nested classes. Instance attributes assigned
through ``self`` in ``__init__`` are scanned separately.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from pyreflect.reflection.base import ABSTRACT, OVERLOAD, PROPERTY, NameMap, attribute_docstring
from pyreflect.source.index import (
    FunctionNode,
    is_constant_name,
    is_final_annotation,
    iter_assignments,
    iter_block_statements,
)

ResolveDecorator = Callable[[ast.expr], str]

_ACCESSORS = frozenset({"setter", "getter", "deleter"})


class MemberKind(str, Enum):
    METHOD = "method"
    PROPERTY = "property"
    CONSTANT = "constant"
    CLASS = "class"


class PropertyOrigin(str, Enum):
    CLASS_ATTRIBUTE = "class_attribute"
    ANNOTATION = "annotation"
    INSTANCE_ASSIGNMENT = "instance_assignment"
    DESCRIPTOR = "descriptor"


@dataclass
class MemberDecl:
    """One member as declared in a class body."""

    kind: MemberKind
    name: str
    node: ast.AST
    value: ast.expr | None = None
    annotation: ast.expr | None = None
    origin: PropertyOrigin | None = None
    decorators: tuple[str, ...] = ()
    doc: str | None = None
    is_static: bool = False
    setter: ast.AST | None = field(default=None, repr=False)

    @property
    def lineno(self) -> int:
        return getattr(self.node, "lineno", 0)

    @property
    def is_abstract(self) -> bool:
        return any(d in ABSTRACT for d in self.decorators)

    @property
    def is_final(self) -> bool:
        return is_final_annotation(self.annotation)


def is_classvar_annotation(annotation: ast.expr | None) -> bool:
    if annotation is None:
        return False
    if isinstance(annotation, ast.Subscript):
        annotation = annotation.value
    if isinstance(annotation, ast.Name):
        return annotation.id == "ClassVar"
    if isinstance(annotation, ast.Attribute):
        return annotation.attr == "ClassVar"
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return annotation.value.startswith("ClassVar")
    return False


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _is_sunder(name: str) -> bool:
    return len(name) > 2 and name[0] == name[-1] == "_" and name[1] != "_" and name[-2] != "_"


def _accessor_of(node: FunctionNode) -> str | None:
    """``x`` for a function decorated with ``@x.setter`` / ``@x.deleter``."""
    for decorator in node.decorator_list:
        if (
            isinstance(decorator, ast.Attribute)
            and decorator.attr in _ACCESSORS
            and isinstance(decorator.value, ast.Name)
        ):
            return decorator.value.id
    return None


def scan_class_body(
    node: ast.ClassDef,
    resolve_decorator: ResolveDecorator,
    *,
    is_enum: bool = False,
) -> NameMap[MemberDecl]:
    """Members declared directly in ``node``'s body, in declaration order."""
    body = list(iter_block_statements(node.body))
    members: NameMap[MemberDecl] = NameMap()

    for stmt in body:
        if isinstance(stmt, FunctionNode):
            accessor = _accessor_of(stmt)
            if accessor is not None:
                existing = members.get(accessor, case_insensitive=False)
                if existing is not None and existing.origin is PropertyOrigin.DESCRIPTOR:
                    if stmt.name == accessor and any(
                        isinstance(d, ast.Attribute) and d.attr == "setter"
                        for d in stmt.decorator_list
                    ):
                        existing.setter = stmt
                    continue
            decorators = tuple(resolve_decorator(d) for d in stmt.decorator_list)
            if any(d in OVERLOAD for d in decorators):
                continue
            if any(d in PROPERTY for d in decorators):
                members.set(
                    stmt.name,
                    MemberDecl(
                        MemberKind.PROPERTY,
                        stmt.name,
                        stmt,
                        annotation=stmt.returns,
                        origin=PropertyOrigin.DESCRIPTOR,
                        decorators=decorators,
                    ),
                )
            else:
                members.set(
                    stmt.name,
                    MemberDecl(MemberKind.METHOD, stmt.name, stmt, decorators=decorators),
                )
        elif isinstance(stmt, ast.ClassDef):
            members.set(stmt.name, MemberDecl(MemberKind.CLASS, stmt.name, stmt))
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is None:
            if not isinstance(stmt.target, ast.Name) or _is_dunder(stmt.target.id):
                continue
            name = stmt.target.id
            members.set(
                name,
                MemberDecl(
                    MemberKind.PROPERTY,
                    name,
                    stmt,
                    annotation=stmt.annotation,
                    origin=PropertyOrigin.ANNOTATION,
                    doc=attribute_docstring(body, stmt),
                    is_static=is_classvar_annotation(stmt.annotation),
                ),
            )
        elif isinstance(stmt, (ast.Assign, ast.AnnAssign)):
            for name, value, annotation in iter_assignments(stmt):
                if _is_dunder(name) or (is_enum and _is_sunder(name)):
                    continue
                doc = attribute_docstring(body, stmt)
                if is_enum or is_constant_name(name) or is_final_annotation(annotation):
                    members.set(
                        name,
                        MemberDecl(
                            MemberKind.CONSTANT,
                            name,
                            stmt,
                            value=value,
                            annotation=annotation,
                            doc=doc,
                            is_static=True,
                        ),
                    )
                    continue
                plain = annotation is None or is_classvar_annotation(annotation)
                members.set(
                    name,
                    MemberDecl(
                        MemberKind.PROPERTY,
                        name,
                        stmt,
                        value=value,
                        annotation=annotation,
                        origin=(
                            PropertyOrigin.CLASS_ATTRIBUTE if plain else PropertyOrigin.ANNOTATION
                        ),
                        doc=doc,
                        is_static=plain,
                    ),
                )
    return members


def _self_name(init: FunctionNode) -> str | None:
    positional = init.args.posonlyargs + init.args.args
    return positional[0].arg if positional else None


def _self_attribute(target: ast.expr, self_name: str) -> str | None:
    if (
        isinstance(target, ast.Attribute)
        and isinstance(target.value, ast.Name)
        and target.value.id == self_name
    ):
        return target.attr
    return None


def scan_instance_attributes(init: FunctionNode) -> NameMap[MemberDecl]:
    """Attributes bound on ``self`` by straight-line code of ``__init__``."""
    attributes: NameMap[MemberDecl] = NameMap()
    self_name = _self_name(init)
    if self_name is None:
        return attributes

    body = list(iter_block_statements(init.body))
    for stmt in body:
        if isinstance(stmt, ast.Assign):
            targets = stmt.targets
            annotation = None
        elif isinstance(stmt, ast.AnnAssign):
            targets = [stmt.target]
            annotation = stmt.annotation
        else:
            continue
        for target in targets:
            name = _self_attribute(target, self_name)
            if name is None or name in attributes or _is_dunder(name):
                continue
            attributes.set(
                name,
                MemberDecl(
                    MemberKind.PROPERTY,
                    name,
                    stmt,
                    value=stmt.value,
                    annotation=annotation,
                    origin=PropertyOrigin.INSTANCE_ASSIGNMENT,
                    doc=attribute_docstring(body, stmt),
                ),
            )
    return attributes
