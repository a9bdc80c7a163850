"""Class reflection.

A :class:`ReflectionClass` is a lazily evaluated view over one ``class``
statement plus the namespace context of its module. Members are scanned
from the class body on first use; inherited members come from the
inheritance resolver, which walks the MRO through the engine registry.
"""

from __future__ import annotations

import ast
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from pyreflect.core.errors import (
    ClassNotFound,
    ConstantNotFound,
    MethodNotFound,
    PropertyNotFound,
    UnsupportedExpression,
)
from pyreflect.live.bridge import LiveMember
from pyreflect.reflection.base import FINAL, Modifier, NameMap, NodeReflection, default_engine
from pyreflect.reflection.members import (
    MemberDecl,
    MemberKind,
    scan_class_body,
    scan_instance_attributes,
)
from pyreflect.resolve.evaluator import EvaluationScope
from pyreflect.resolve.inheritance import (
    OBJECT,
    PROTOCOL_NAMES,
    ClassRef,
    ExternalClass,
    MemberRef,
)
from pyreflect.source.index import Declaration, DeclarationKind, FunctionNode

if TYPE_CHECKING:
    from pyreflect.engine import FileScope, ReflectionEngine
    from pyreflect.reflection.constant import ReflectionClassConstant
    from pyreflect.reflection.method import ReflectionMethod
    from pyreflect.reflection.property import ReflectionProperty

logger = structlog.get_logger()

_MISSING: Any = object()


class ClassKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"


class ReflectionClass(NodeReflection):
    """Static view of a class, mirroring what a live class object reports."""

    SNAPSHOT_FIELDS = ("__name__", "__qualname__", "__module__")

    _node: ast.ClassDef

    def __init__(
        self,
        name: str,
        node: ast.ClassDef | None = None,
        *,
        engine: ReflectionEngine | None = None,
    ) -> None:
        engine = engine or default_engine()
        found = engine.find_declaration(name, (DeclarationKind.CLASS,))
        if found is None:
            raise ClassNotFound.for_name(name)
        scope, decl = found
        self._setup(engine, scope, decl, node or decl.node)

    @classmethod
    def _create(
        cls, engine: ReflectionEngine, scope: FileScope, decl: Declaration
    ) -> ReflectionClass:
        klass = cls.__new__(cls)
        klass._setup(engine, scope, decl, decl.node)
        return klass

    def _setup(
        self, engine: ReflectionEngine, scope: FileScope, decl: Declaration, node: ast.AST
    ) -> None:
        assert isinstance(node, ast.ClassDef)
        self._engine = engine
        self._scope = scope
        self._node = node
        self._name = decl.qualified_name
        self._qualname = decl.name
        self._members: NameMap[MemberDecl] | None = None
        self._instance_attrs: NameMap[MemberDecl] | None = None
        self._resolved: NameMap[MemberRef] | None = None
        self._mro: list[ClassRef] | None = None
        self._entities: dict[tuple[MemberKind, str], Any] = {}
        self._live: LiveMember | None = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_name(self) -> str:
        return self._name

    def get_qualname(self) -> str:
        return self._qualname

    def get_short_name(self) -> str:
        return self._qualname.rsplit(".", 1)[-1]

    def get_namespace_name(self) -> str:
        return self._scope.namespace

    def in_namespace(self) -> bool:
        return bool(self._scope.namespace)

    def get_file_scope(self) -> FileScope:
        return self._scope

    def _snapshot_value(self, field: str) -> Any:
        return {
            "__name__": self.get_short_name(),
            "__qualname__": self._qualname,
            "__module__": self._scope.namespace,
        }[field]

    def __repr__(self) -> str:
        return f"<ReflectionClass {self._name}>"

    def __str__(self) -> str:
        bases = ", ".join(self.get_base_names())
        lines = [f"{self.get_kind().value} {self._name}({bases})"]
        lines.append(f"  @@ {self.get_file_name()} {self.get_start_line()}-{self.get_end_line()}")
        for constant in self.get_reflection_constants():
            lines.append(f"  {constant}")
        for prop in self.get_properties():
            lines.append(f"  {prop}")
        for method in self.get_methods():
            lines.append(f"  {method}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _resolve(self, expr: ast.expr, lineno: int | None = None) -> str | None:
        return self._engine.namespaces.resolve_expr(
            expr, self._scope.context, lineno if lineno is not None else self._node.lineno
        )

    def _resolve_decorator(self, expr: ast.expr) -> str:
        target = expr.func if isinstance(expr, ast.Call) else expr
        return self._resolve(target) or ast.unparse(target)

    def _evaluation_scope(self, lineno: int | None = None) -> EvaluationScope:
        return EvaluationScope(file=self._scope, klass=self, lineno=lineno)

    # ------------------------------------------------------------------
    # Kind and modifiers
    # ------------------------------------------------------------------

    def get_decorators(self) -> list[str]:
        return [self._resolve_decorator(d) for d in self._node.decorator_list]

    def get_base_names(self) -> list[str]:
        """Fully-qualified names of the direct bases, like ``__bases__``."""
        names = [self._resolve(base) or ast.unparse(base) for base in self._node.bases]
        return names or [OBJECT]

    def get_metaclass_name(self) -> str | None:
        for keyword in self._node.keywords:
            if keyword.arg == "metaclass":
                return self._resolve(keyword.value)
        return None

    def get_kind(self) -> ClassKind:
        if any(name in PROTOCOL_NAMES for name in self.get_base_names()):
            return ClassKind.INTERFACE
        if self.get_short_name().endswith("Mixin"):
            return ClassKind.TRAIT
        return ClassKind.CLASS

    def is_interface(self) -> bool:
        return self.get_kind() is ClassKind.INTERFACE

    def is_trait(self) -> bool:
        return self.get_kind() is ClassKind.TRAIT

    def is_enum(self) -> bool:
        return self._engine.inheritance.is_enum(self)

    def is_abstract(self) -> bool:
        """Same answer as ``inspect.isabstract`` on the live class."""
        return self._engine.inheritance.is_abstract(self)

    def get_abstract_method_names(self) -> list[str]:
        return self._engine.inheritance.abstract_members(self)

    def is_final(self) -> bool:
        return any(d in FINAL for d in self.get_decorators())

    def is_instantiable(self) -> bool:
        return not (self.is_interface() or self.is_abstract() or self.is_enum())

    def is_cloneable(self) -> bool:
        return self.is_instantiable()

    def get_modifiers(self) -> int:
        mask = 0
        if self.is_abstract():
            mask |= Modifier.ABSTRACT
        if self.is_final():
            mask |= Modifier.FINAL
        return mask

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def get_mro(self) -> list[ClassRef]:
        """Linearized ancestors, this class first."""
        if self._mro is None:
            self._mro = self._engine.inheritance.linearize(self)
        return self._mro

    def get_mro_names(self) -> list[str]:
        return [ref.get_name() for ref in self.get_mro()]

    def get_base_classes(self) -> list[ClassRef]:
        return self._engine.inheritance.base_refs(self)

    def _parent_ref(self) -> ClassRef | None:
        for ref in self.get_base_classes():
            if isinstance(ref, ExternalClass):
                if ref.is_interface() or ref.name == OBJECT or ref.name.startswith("typing."):
                    continue
                return ref
            if ref.get_kind() is ClassKind.CLASS:
                return ref
        return None

    def get_parent_class(self) -> ReflectionClass | None:
        """First direct base that is an indexed plain class."""
        ref = self._parent_ref()
        return None if isinstance(ref, ExternalClass) else ref

    def get_parent_class_name(self) -> str | None:
        ref = self._parent_ref()
        return ref.get_name() if ref is not None else None

    def get_interfaces(self) -> dict[str, ReflectionClass]:
        """Protocol classes in the MRO, in MRO order."""
        return {
            ref.get_name(): ref
            for ref in self.get_mro()[1:]
            if not isinstance(ref, ExternalClass) and ref.is_interface()
        }

    def get_interface_names(self) -> list[str]:
        return list(self.get_interfaces())

    def implements_interface(self, name: str) -> bool:
        folded = name.casefold()
        return any(n.casefold() == folded for n in self.get_interface_names())

    def get_traits(self) -> dict[str, ReflectionClass]:
        return {
            ref.get_name(): ref
            for ref in self.get_base_classes()
            if not isinstance(ref, ExternalClass) and ref.is_trait()
        }

    def get_trait_names(self) -> list[str]:
        return list(self.get_traits())

    def is_subclass_of(self, name: str | ReflectionClass) -> bool:
        target = name.get_name() if isinstance(name, ReflectionClass) else name
        folded = target.casefold()
        return any(n.casefold() == folded for n in self.get_mro_names()[1:])

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _own_members(self) -> NameMap[MemberDecl]:
        if self._members is None:
            self._members = scan_class_body(
                self._node, self._resolve_decorator, is_enum=self.is_enum()
            )
        return self._members

    def _instance_attributes(self) -> NameMap[MemberDecl]:
        if self._instance_attrs is None:
            init = self._own_members().get("__init__", case_insensitive=False)
            if (
                init is not None
                and init.kind is MemberKind.METHOD
                and isinstance(init.node, FunctionNode)
            ):
                self._instance_attrs = scan_instance_attributes(init.node)
            else:
                self._instance_attrs = NameMap()
        return self._instance_attrs

    def _resolved_members(self) -> NameMap[MemberRef]:
        if self._resolved is None:
            self._resolved = self._engine.inheritance.members(self)
        return self._resolved

    def _find_member(self, name: str, kind: MemberKind) -> MemberRef | None:
        ref = self._resolved_members().get(name, case_insensitive=self._case_insensitive())
        if ref is None or ref.decl.kind is not kind:
            return None
        return ref

    def _member_entity(self, decl: MemberDecl) -> Any:
        """Cached entity for a member declared by this class."""
        key = (decl.kind, decl.name)
        entity = self._entities.get(key)
        if entity is None:
            if decl.kind is MemberKind.METHOD:
                from pyreflect.reflection.method import ReflectionMethod

                entity = ReflectionMethod._create(self, decl)
            elif decl.kind is MemberKind.PROPERTY:
                from pyreflect.reflection.property import ReflectionProperty

                entity = ReflectionProperty._create(self, decl)
            elif decl.kind is MemberKind.CONSTANT:
                from pyreflect.reflection.constant import ReflectionClassConstant

                entity = ReflectionClassConstant._create(self, decl)
            else:
                entity = self._engine.get_class(f"{self._name}.{decl.name}")
            self._entities[key] = entity
        return entity

    def _entities_of(self, kind: MemberKind) -> list[Any]:
        return [
            ref.owner._member_entity(ref.decl)
            for ref in self._resolved_members().values()
            if ref.decl.kind is kind
        ]

    @staticmethod
    def _filtered(entities: list[Any], filter: int | None) -> list[Any]:
        if filter is None:
            return entities
        return [e for e in entities if e.get_modifiers() & filter]

    # Methods

    def get_methods(self, filter: int | None = None) -> list[ReflectionMethod]:
        """Own methods in declaration order, then inherited ones in MRO order."""
        return self._filtered(self._entities_of(MemberKind.METHOD), filter)

    def has_method(self, name: str) -> bool:
        return self._find_member(name, MemberKind.METHOD) is not None

    def get_method(self, name: str) -> ReflectionMethod:
        ref = self._find_member(name, MemberKind.METHOD)
        if ref is None:
            raise MethodNotFound.for_member(self._name, name)
        return ref.owner._member_entity(ref.decl)

    def get_constructor(self) -> ReflectionMethod | None:
        return self.get_method("__init__") if self.has_method("__init__") else None

    # Properties

    def get_properties(self, filter: int | None = None) -> list[ReflectionProperty]:
        return self._filtered(self._entities_of(MemberKind.PROPERTY), filter)

    def has_property(self, name: str) -> bool:
        return self._find_member(name, MemberKind.PROPERTY) is not None

    def get_property(self, name: str) -> ReflectionProperty:
        ref = self._find_member(name, MemberKind.PROPERTY)
        if ref is None:
            raise PropertyNotFound.for_member(self._name, name)
        return ref.owner._member_entity(ref.decl)

    def get_default_properties(self) -> dict[str, Any]:
        """Defaults of every property that declares one (class attributes included)."""
        return {
            prop.get_name(): prop.get_default_value()
            for prop in self.get_properties()
            if prop.has_default_value()
        }

    def get_static_properties(self) -> dict[str, Any]:
        return {
            prop.get_name(): prop.get_default_value()
            for prop in self.get_properties()
            if prop.is_static()
        }

    # Constants

    def get_reflection_constants(self, filter: int | None = None) -> list[ReflectionClassConstant]:
        return self._filtered(self._entities_of(MemberKind.CONSTANT), filter)

    def get_reflection_constant(self, name: str) -> ReflectionClassConstant | None:
        ref = self._find_member(name, MemberKind.CONSTANT)
        return ref.owner._member_entity(ref.decl) if ref is not None else None

    def has_constant(self, name: str) -> bool:
        return self._find_member(name, MemberKind.CONSTANT) is not None

    def get_constants(self) -> dict[str, Any]:
        return {c.get_name(): c.get_value() for c in self.get_reflection_constants()}

    def get_constant(self, name: str) -> Any:
        constant = self.get_reflection_constant(name)
        if constant is None:
            raise ConstantNotFound.for_name(f"{self._name}.{name}")
        return constant.get_value()

    def _static_value(self, name: str, expression: str) -> Any:
        """Statically known value of a class-level name, for the evaluator."""
        ref = self._resolved_members().get(name, case_insensitive=False)
        if ref is None or ref.decl.value is None or not ref.decl.is_static:
            raise UnsupportedExpression.for_node(expression, f"'{name}' is not a class constant")
        return self._engine.evaluator.evaluate(
            ref.decl.value, ref.owner._evaluation_scope(ref.decl.lineno)
        )

    # Nested classes

    def get_nested_classes(self) -> list[ReflectionClass]:
        return [
            self._member_entity(decl)
            for decl in self._own_members().values()
            if decl.kind is MemberKind.CLASS
        ]

    # ------------------------------------------------------------------
    # Live operations
    # ------------------------------------------------------------------

    def live(self) -> LiveMember:
        if self._live is None:
            self._live = LiveMember(
                self._engine.runtime,
                path=self._scope.path,
                module=self._scope.namespace,
                owner=self._name,
                kind="class",
            )
        return self._live

    def get_live_class(self) -> type:
        """The live class object. Imports the declaring module."""
        return self.live().handle()

    def new_instance(self, *args: Any, **kwargs: Any) -> Any:
        return self.live().instantiate(args, kwargs)

    def new_instance_args(
        self, args: list[Any] | tuple[Any, ...] = (), kwargs: dict[str, Any] | None = None
    ) -> Any:
        return self.live().instantiate(args, kwargs)

    def new_instance_without_constructor(self) -> Any:
        return self.live().allocate()

    def is_instance(self, obj: Any) -> bool:
        return self.live().is_instance(obj)

    def get_static_property_value(self, name: str, default: Any = _MISSING) -> Any:
        """Live value of a static property. Returns ``default`` when given and missing."""
        if not self.has_property(name) and default is not _MISSING:
            return default
        prop = self.get_property(name)
        return prop.get_value()

    def set_static_property_value(self, name: str, value: Any) -> None:
        self.get_property(name).set_value(None, value)
