"""File and namespace reflection.

A Python file declares exactly one namespace: its module. The namespace
entity lists what the module declares at top level, without importing it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from pyreflect.core.errors import (
    ClassNotFound,
    ConstantNotFound,
    FunctionNotFound,
    SymbolNotFound,
)
from pyreflect.reflection.base import NodeReflection, default_engine
from pyreflect.resolve.evaluator import EvaluationScope
from pyreflect.source.index import Declaration, DeclarationKind

if TYPE_CHECKING:
    from pyreflect.engine import FileScope, ReflectionEngine
    from pyreflect.reflection.function import ReflectionFunction
    from pyreflect.reflection.klass import ReflectionClass


class ReflectionFile(NodeReflection):
    SNAPSHOT_FIELDS = ("name",)

    def __init__(self, path: Path | str, *, engine: ReflectionEngine | None = None) -> None:
        engine = engine or default_engine()
        self._setup(engine, engine.get_file_scope(path))

    @classmethod
    def _create(cls, engine: ReflectionEngine, scope: FileScope) -> ReflectionFile:
        reflected = cls.__new__(cls)
        reflected._setup(engine, scope)
        return reflected

    def _setup(self, engine: ReflectionEngine, scope: FileScope) -> None:
        self._engine = engine
        self._scope = scope
        self._node = scope.parsed.tree
        self._namespace: ReflectionFileNamespace | None = None

    def get_name(self) -> str:
        return str(self._scope.path)

    def get_module_name(self) -> str:
        return self._scope.namespace

    def get_start_line(self) -> int:
        return 1

    def get_end_line(self) -> int:
        return self._scope.parsed.line_count

    def _snapshot_value(self, field: str) -> Any:
        return {"name": self.get_name()}[field]

    def _the_namespace(self) -> ReflectionFileNamespace:
        if self._namespace is None:
            self._namespace = ReflectionFileNamespace(self._engine, self._scope)
        return self._namespace

    def get_file_namespaces(self) -> dict[str, ReflectionFileNamespace]:
        namespace = self._the_namespace()
        return {namespace.get_name(): namespace}

    def has_file_namespace(self, name: str) -> bool:
        folded = name.casefold()
        return folded == self._scope.namespace.casefold()

    def get_file_namespace(self, name: str | None = None) -> ReflectionFileNamespace:
        if name is not None and not self.has_file_namespace(name):
            raise SymbolNotFound.for_name(name, f"not declared in {self.get_name()}")
        return self._the_namespace()

    def __repr__(self) -> str:
        return f"<ReflectionFile {self.get_name()}>"

    def __str__(self) -> str:
        return f"file {self.get_name()} (module {self.get_module_name()})"


class ReflectionFileNamespace(NodeReflection):
    SNAPSHOT_FIELDS = ("name",)

    def __init__(self, engine: ReflectionEngine, scope: FileScope) -> None:
        self._engine = engine
        self._scope = scope
        self._node = scope.parsed.tree

    def get_name(self) -> str:
        return self._scope.namespace

    def get_start_line(self) -> int:
        return 1

    def get_end_line(self) -> int:
        return self._scope.parsed.line_count

    def get_namespace_aliases(self) -> dict[str, str]:
        """Import aliases in effect at the end of the module."""
        return self._scope.context.aliases()

    def _snapshot_value(self, field: str) -> Any:
        return {"name": self.get_name()}[field]

    def _local(self, name: str) -> str:
        local = self._scope.owns(name, case_insensitive=self._case_insensitive())
        return local if local is not None else name

    def _top_level(self, kind: DeclarationKind) -> list[Declaration]:
        return [d for d in self._scope.index.of_kind(kind) if "." not in d.name]

    def _find(self, name: str, kind: DeclarationKind) -> Declaration | None:
        return self._scope.index.find(
            self._local(name), (kind,), case_insensitive=self._case_insensitive()
        )

    # Classes

    def get_classes(self) -> dict[str, ReflectionClass]:
        return {
            d.qualified_name: self._engine.class_for(self._scope, d)
            for d in self._top_level(DeclarationKind.CLASS)
        }

    def has_class(self, name: str) -> bool:
        return self._find(name, DeclarationKind.CLASS) is not None

    def get_class(self, name: str) -> ReflectionClass:
        """Class by short or fully-qualified name."""
        decl = self._find(name, DeclarationKind.CLASS)
        if decl is None:
            raise ClassNotFound.for_name(name, f"not declared in {self.get_name()}")
        return self._engine.class_for(self._scope, decl)

    # Functions

    def get_functions(self) -> dict[str, ReflectionFunction]:
        return {
            d.qualified_name: self._engine.function_for(self._scope, d)
            for d in self._top_level(DeclarationKind.FUNCTION)
        }

    def has_function(self, name: str) -> bool:
        return self._find(name, DeclarationKind.FUNCTION) is not None

    def get_function(self, name: str) -> ReflectionFunction:
        decl = self._find(name, DeclarationKind.FUNCTION)
        if decl is None:
            raise FunctionNotFound.for_name(name, f"not declared in {self.get_name()}")
        return self._engine.function_for(self._scope, decl)

    # Constants

    def _constant_value(self, decl: Declaration) -> Any:
        assert decl.value is not None
        return self._engine.evaluator.try_evaluate(
            decl.value, EvaluationScope(file=self._scope, lineno=decl.lineno)
        )

    def get_constants(self) -> dict[str, Any]:
        return {
            d.name: self._constant_value(d) for d in self._top_level(DeclarationKind.CONSTANT)
        }

    def has_constant(self, name: str) -> bool:
        return self._find(name, DeclarationKind.CONSTANT) is not None

    def get_constant(self, name: str) -> Any:
        decl = self._find(name, DeclarationKind.CONSTANT)
        if decl is None:
            raise ConstantNotFound.for_name(name, f"not declared in {self.get_name()}")
        return self._constant_value(decl)

    def __repr__(self) -> str:
        return f"<ReflectionFileNamespace {self.get_name()}>"

    def __str__(self) -> str:
        return f"namespace {self.get_name()}"
