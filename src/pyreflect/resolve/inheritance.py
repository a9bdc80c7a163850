"""Inheritance resolution.

Classes reference their bases by fully-qualified name; names are resolved
through the engine (locator + declaration index) on demand, so ancestor
files are only parsed when a query needs them. Cycles are detected with a
walk stack rather than by following object pointers.

The method resolution order is the C3 linearization Python itself uses.
Bases that cannot be located are represented by :class:`ExternalClass`
placeholders that contribute their name and ``builtins.object`` only.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import structlog

from pyreflect.core.errors import CircularInheritance, InconsistentHierarchy
from pyreflect.reflection.base import NameMap
from pyreflect.reflection.members import MemberDecl, MemberKind

if TYPE_CHECKING:
    from pyreflect.engine import ReflectionEngine
    from pyreflect.reflection.klass import ReflectionClass
    from pyreflect.reflection.method import ReflectionMethod

logger = structlog.get_logger()

OBJECT = "builtins.object"
PROTOCOL_NAMES = frozenset({"typing.Protocol", "typing_extensions.Protocol"})
GENERIC_NAMES = frozenset({"typing.Generic", "typing_extensions.Generic"})
ABC_BASES = frozenset({"abc.ABC"}) | PROTOCOL_NAMES
ABC_META = frozenset({"abc.ABCMeta"})
ENUM_NAMES = frozenset(
    {
        "enum.Enum",
        "enum.IntEnum",
        "enum.StrEnum",
        "enum.Flag",
        "enum.IntFlag",
        "enum.ReprEnum",
    }
)
# Never reflected from source even when the stdlib is on the search path
_OPAQUE_BASES = PROTOCOL_NAMES | GENERIC_NAMES | ABC_BASES | ENUM_NAMES


@dataclass(frozen=True)
class ExternalClass:
    """A base class outside the indexed source."""

    name: str

    def get_name(self) -> str:
        return self.name

    def is_interface(self) -> bool:
        return self.name in PROTOCOL_NAMES

    def linearization(self) -> list[ExternalClass]:
        if self.name == OBJECT:
            return [self]
        return [self, ExternalClass(OBJECT)]


ClassRef = Union["ReflectionClass", ExternalClass]


@dataclass(frozen=True)
class MemberRef:
    """A member as seen from a class: who declares it and how."""

    owner: ReflectionClass
    decl: MemberDecl


def _c3_merge(sequences: list[list[ClassRef]]) -> list[ClassRef] | None:
    """C3 merge by class name. None when no consistent order exists."""
    pending = [list(seq) for seq in sequences if seq]
    result: list[ClassRef] = []
    while pending:
        for seq in pending:
            head = seq[0].get_name()
            if not any(head in (c.get_name() for c in other[1:]) for other in pending):
                break
        else:
            return None
        result.append(seq[0])
        pending = [
            [c for c in other if c.get_name() != head] if other[0].get_name() == head else other
            for other in pending
        ]
        pending = [seq for seq in pending if seq]
    return result


class InheritanceResolver:
    """Computes MROs, merged member maps and prototypes."""

    def __init__(self, engine: ReflectionEngine) -> None:
        self._engine = engine
        self._walk: list[str] = []

    def base_refs(self, klass: ReflectionClass) -> list[ClassRef]:
        refs: list[ClassRef] = []
        for name in klass.get_base_names():
            if name == OBJECT or name in _OPAQUE_BASES:
                refs.append(ExternalClass(name))
                continue
            target = self._engine.find_class(name)
            refs.append(target if target is not None else ExternalClass(name))
        return refs

    def linearize(self, klass: ReflectionClass) -> list[ClassRef]:
        """C3 linearization of ``klass``, itself first."""
        key = klass.get_name().casefold()
        walk = [name.casefold() for name in self._walk]
        if key in walk:
            chain = self._walk[walk.index(key) :] + [klass.get_name()]
            raise CircularInheritance.for_chain(chain)

        self._walk.append(klass.get_name())
        try:
            bases = self.base_refs(klass)
            sequences = [self._linearization_of(base) for base in bases]
            merged = _c3_merge(sequences + [list(bases)])
        finally:
            self._walk.pop()

        if merged is None:
            raise InconsistentHierarchy.for_class(klass.get_name(), [b.get_name() for b in bases])
        logger.debug("class_linearized", name=klass.get_name(), depth=len(merged) + 1)
        return [klass, *merged]

    def _linearization_of(self, ref: ClassRef) -> list[ClassRef]:
        if isinstance(ref, ExternalClass):
            return ref.linearization()
        return ref.get_mro()

    def members(self, klass: ReflectionClass) -> NameMap[MemberRef]:
        """Member map seen from ``klass``: first declaring class in MRO order wins."""
        merged: NameMap[MemberRef] = NameMap()
        mro = [ref for ref in klass.get_mro() if not isinstance(ref, ExternalClass)]
        for owner in mro:
            for name, decl in owner._own_members().items():
                if not merged.has_exact(name):
                    merged.set(name, MemberRef(owner, decl))
        for owner in mro:
            for name, decl in owner._instance_attributes().items():
                if not merged.has_exact(name):
                    merged.set(name, MemberRef(owner, decl))
        return merged

    def abstract_members(self, klass: ReflectionClass) -> list[str]:
        """Names ABCMeta would put in ``__abstractmethods__``."""
        return [name for name, ref in klass._resolved_members().items() if ref.decl.is_abstract]

    def uses_abc_meta(self, klass: ReflectionClass) -> bool:
        for ref in klass.get_mro():
            name = ref.get_name()
            if name in ABC_BASES or name.startswith("collections.abc."):
                return True
            if not isinstance(ref, ExternalClass) and ref.get_metaclass_name() in ABC_META:
                return True
        return False

    def is_abstract(self, klass: ReflectionClass) -> bool:
        return self.uses_abc_meta(klass) and bool(self.abstract_members(klass))

    def is_enum(self, klass: ReflectionClass) -> bool:
        return any(name in ENUM_NAMES for name in self._base_names_upward(klass))

    def _base_names_upward(self, klass: ReflectionClass) -> Sequence[str]:
        try:
            return [ref.get_name() for ref in klass.get_mro()[1:]]
        except (CircularInheritance, InconsistentHierarchy):
            return klass.get_base_names()

    def find_prototype(self, method: ReflectionMethod) -> ReflectionMethod | None:
        """Nearest ancestor method that is abstract or declared by an interface."""
        owner = method.get_declaring_class()
        name = method.get_name()
        for ref in owner.get_mro()[1:]:
            if isinstance(ref, ExternalClass):
                continue
            decl = ref._own_members().get(name, case_insensitive=False)
            if decl is None or decl.kind is not MemberKind.METHOD:
                continue
            if decl.is_abstract or ref.is_interface():
                return ref._member_entity(decl)
        return None
