"""Method reflection."""

from __future__ import annotations

import ast
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pyreflect.core.errors import MethodNotFound
from pyreflect.live.bridge import LiveMember
from pyreflect.reflection.base import (
    CLASSMETHOD,
    FINAL,
    IMPLICIT_CLASS,
    IMPLICIT_STATIC,
    STATICMETHOD,
    Modifier,
    Visibility,
    default_engine,
    mangle,
    visibility_of,
)
from pyreflect.reflection.function import ReflectionFunctionAbstract
from pyreflect.reflection.klass import ReflectionClass
from pyreflect.reflection.members import MemberDecl, MemberKind

if TYPE_CHECKING:
    from pyreflect.engine import ReflectionEngine


class ReflectionMethod(ReflectionFunctionAbstract):
    """A method declared in a class body.

    Entities obtained through :meth:`ReflectionClass.get_method` are shared
    per declaring class, so an inherited method is the same object seen from
    every subclass. Constructing one directly gives a fresh instance with
    its own accessibility flag.
    """

    def __init__(
        self,
        klass: str | ReflectionClass,
        name: str,
        node: ast.FunctionDef | ast.AsyncFunctionDef | None = None,
        *,
        engine: ReflectionEngine | None = None,
    ) -> None:
        if not isinstance(klass, ReflectionClass):
            klass = (engine or default_engine()).get_class(klass)
        ref = klass._find_member(name, MemberKind.METHOD)
        if ref is None:
            raise MethodNotFound.for_member(klass.get_name(), name)
        self._setup(ref.owner, ref.decl, node or ref.decl.node)

    @classmethod
    def _create(cls, owner: ReflectionClass, decl: MemberDecl) -> ReflectionMethod:
        method = cls.__new__(cls)
        method._setup(owner, decl, decl.node)
        return method

    def _setup(self, owner: ReflectionClass, decl: MemberDecl, node: ast.AST) -> None:
        self._setup_function(owner._engine, owner.get_file_scope(), node)
        self._class = owner
        self._decl = decl
        self._accessible = False
        self._live: LiveMember | None = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_name(self) -> str:
        return self._node.name

    def get_qualname(self) -> str:
        return f"{self._class.get_qualname()}.{self._node.name}"

    def get_declaring_class(self) -> ReflectionClass:
        return self._class

    def get_class_name(self) -> str:
        return self._class.get_name()

    def __repr__(self) -> str:
        return f"<ReflectionMethod {self.get_class_name()}.{self.get_name()}>"

    def __str__(self) -> str:
        modifiers = " ".join(Modifier.names(self.get_modifiers()))
        prefix = "async def" if isinstance(self._node, ast.AsyncFunctionDef) else "def"
        return f"{modifiers} {prefix} {self.get_name()}{self.format_signature()}"

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
        """True for ``@staticmethod`` and the implicit static ``__new__``."""
        return self.get_name() in IMPLICIT_STATIC or any(
            d in STATICMETHOD for d in self._decl.decorators
        )

    def is_classmethod(self) -> bool:
        return self.get_name() in IMPLICIT_CLASS or any(
            d in CLASSMETHOD for d in self._decl.decorators
        )

    def is_abstract(self) -> bool:
        """Like ``__isabstractmethod__`` on the live function."""
        return self._decl.is_abstract

    def is_final(self) -> bool:
        return any(d in FINAL for d in self._decl.decorators)

    def is_constructor(self) -> bool:
        return self.get_name() == "__init__"

    def is_destructor(self) -> bool:
        return self.get_name() == "__del__"

    def get_modifiers(self) -> int:
        mask = int(Modifier.for_visibility(self.get_visibility()))
        if self.is_static():
            mask |= Modifier.STATIC
        if self.is_classmethod():
            mask |= Modifier.CLASSMETHOD
        if self.is_abstract():
            mask |= Modifier.ABSTRACT
        if self.is_final():
            mask |= Modifier.FINAL
        return mask

    # ------------------------------------------------------------------
    # Prototype
    # ------------------------------------------------------------------

    def get_prototype(self) -> ReflectionMethod | None:
        """Nearest abstract or interface-declared ancestor method, or None."""
        return self._engine.inheritance.find_prototype(self)

    def has_prototype(self) -> bool:
        return self.get_prototype() is not None

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
                kind="method",
                visibility=self.get_visibility().value,
                needs_instance=not (self.is_static() or self.is_classmethod()),
                accessible=self.is_accessible,
            )
        return self._live

    def get_closure(self, obj: Any = None) -> Callable[..., Any]:
        """Bound (or static) callable for the live method."""
        return self.live().get_closure(obj)

    def invoke(self, obj: Any = None, *args: Any, **kwargs: Any) -> Any:
        return self.live().invoke(obj, args, kwargs)

    def invoke_args(
        self,
        obj: Any = None,
        args: list[Any] | tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
    ) -> Any:
        return self.live().invoke(obj, args, kwargs)
