"""Reflection engine: wiring and process-wide registries.

The engine owns one instance of each collaborator (source cache, locator,
namespace/inheritance resolvers, evaluator, live runtime) and the registries
that make entities unique per process: one :class:`FileScope` per parsed
file and one :class:`ReflectionClass` / :class:`ReflectionFunction` per
fully-qualified name.

Usage::

    engine = ReflectionEngine.configure(search_paths=["src"])
    klass = engine.get_class("pkg.mod.Widget")
    klass.get_method("render").get_parameters()
"""

from __future__ import annotations

import ast
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from pyreflect.config.loader import load_config
from pyreflect.config.models import PyReflectConfig
from pyreflect.core.errors import ClassNotFound, ConstantNotFound, FunctionNotFound, SymbolNotFound
from pyreflect.core.logging import source_context
from pyreflect.live.runtime import ImportlibRuntime, LiveRuntime
from pyreflect.resolve.evaluator import ConstantExpressionEvaluator, EvaluationScope
from pyreflect.resolve.inheritance import InheritanceResolver
from pyreflect.resolve.namespace import NamespaceContext, NamespaceResolver
from pyreflect.source.cache import ParsedFile, SourceCache
from pyreflect.source.index import Declaration, DeclarationKind, FileIndex, index_file
from pyreflect.source.locator import Locator, SearchPathLocator
from pyreflect.source.module_mapping import is_package_file

if TYPE_CHECKING:
    from pyreflect.reflection.file import ReflectionFile
    from pyreflect.reflection.function import ReflectionFunction
    from pyreflect.reflection.klass import ReflectionClass

logger = structlog.get_logger()


@dataclass(frozen=True)
class FileScope:
    """Everything derived from one parsed file."""

    parsed: ParsedFile
    namespace: str
    is_package: bool
    index: FileIndex
    context: NamespaceContext

    @property
    def path(self) -> Path:
        return self.parsed.path

    @property
    def has_postponed_annotations(self) -> bool:
        """True when the module starts with ``from __future__ import annotations``."""
        for stmt in self.parsed.tree.body:
            if isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__":
                if any(alias.name == "annotations" for alias in stmt.names):
                    return True
        return False

    def owns(self, name: str, *, case_insensitive: bool) -> str | None:
        """Local part of ``name`` if it lies in this module's namespace."""
        prefix = f"{self.namespace}."
        if name.startswith(prefix):
            return name[len(prefix) :]
        if case_insensitive and name.casefold().startswith(prefix.casefold()):
            return name[len(prefix) :]
        return None


class ReflectionEngine:
    """Entry point that resolves names to reflection entities."""

    _instance: ReflectionEngine | None = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        locator: Locator | None = None,
        *,
        config: PyReflectConfig | None = None,
        runtime: LiveRuntime | None = None,
        cache: SourceCache | None = None,
    ) -> None:
        self.config = config or PyReflectConfig()
        if locator is None:
            locator = SearchPathLocator(
                self.config.locator.search_paths,
                include_sys_path=self.config.locator.include_sys_path,
            )
        self.locator = locator
        self.runtime: LiveRuntime = runtime or ImportlibRuntime()
        self.cache = cache or SourceCache()
        self.namespaces = NamespaceResolver()
        self.inheritance = InheritanceResolver(self)
        self.evaluator = ConstantExpressionEvaluator(
            self,
            allow_live_constants=self.config.evaluator.allow_live_constants,
            max_power=self.config.evaluator.max_power,
        )
        self._scopes: dict[Path, FileScope] = {}
        self._classes: dict[str, ReflectionClass] = {}
        self._functions: dict[str, ReflectionFunction] = {}
        self._files: dict[Path, ReflectionFile] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Process-wide default engine
    # ------------------------------------------------------------------

    @classmethod
    def get(cls) -> ReflectionEngine:
        """Default engine, created from :func:`load_config` on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(config=load_config())
        return cls._instance

    @classmethod
    def configure(
        cls,
        locator: Locator | None = None,
        *,
        search_paths: list[str] | list[Path] | None = None,
        config: PyReflectConfig | None = None,
        runtime: LiveRuntime | None = None,
    ) -> ReflectionEngine:
        """Replace the default engine."""
        config = config or PyReflectConfig()
        if search_paths is not None:
            config = config.model_copy(
                update={
                    "locator": config.locator.model_copy(
                        update={"search_paths": [str(p) for p in search_paths]}
                    )
                }
            )
        engine = cls(locator, config=config, runtime=runtime)
        with cls._instance_lock:
            cls._instance = engine
        return engine

    @classmethod
    def reset(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def module_name_for(self, path: Path) -> str:
        """Dotted module name of ``path``; bare file name outside known roots."""
        module = self.locator.module_name(path)
        if module:
            return module
        if is_package_file(path):
            return path.parent.name
        return path.stem

    def get_file_scope(self, path: Path | str) -> FileScope:
        """Parse, index and resolve a file once per engine."""
        resolved = Path(path).resolve()
        with self._lock:
            scope = self._scopes.get(resolved)
            if scope is not None:
                return scope
            namespace = self.module_name_for(resolved)
            with source_context(resolved, namespace):
                parsed = self.cache.get(resolved)
                is_package = is_package_file(resolved)
                index = index_file(parsed, namespace)
                context = self.namespaces.build(
                    parsed, namespace, is_package=is_package, index=index
                )
                scope = FileScope(parsed, namespace, is_package, index, context)
                self._scopes[resolved] = scope
                logger.debug("file_scope_built", declarations=len(index))
        return scope

    def loaded_scopes(self) -> list[FileScope]:
        with self._lock:
            return list(self._scopes.values())

    def locate(self, name: str) -> Path:
        return self.locator.locate(name)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @property
    def case_insensitive(self) -> bool:
        return self.config.reflection.case_insensitive_lookup

    def _find_in(
        self, scope: FileScope, name: str, kinds: tuple[DeclarationKind, ...]
    ) -> Declaration | None:
        local = scope.owns(name, case_insensitive=self.case_insensitive)
        if local is None:
            return None
        return scope.index.find(local, kinds, case_insensitive=self.case_insensitive)

    def find_declaration(
        self, name: str, kinds: tuple[DeclarationKind, ...]
    ) -> tuple[FileScope, Declaration] | None:
        """Declaration for a fully-qualified name, parsing its file if needed."""
        scopes = sorted(self.loaded_scopes(), key=lambda s: len(s.namespace), reverse=True)
        for scope in scopes:
            decl = self._find_in(scope, name, kinds)
            if decl is not None:
                return scope, decl
        try:
            path = self.locate(name)
        except SymbolNotFound:
            return None
        scope = self.get_file_scope(path)
        decl = self._find_in(scope, name, kinds)
        return (scope, decl) if decl is not None else None

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def class_for(self, scope: FileScope, decl: Declaration) -> ReflectionClass:
        """Registered class entity for a class declaration."""
        from pyreflect.reflection.klass import ReflectionClass

        key = decl.qualified_name.casefold()
        with self._lock:
            klass = self._classes.get(key)
            if klass is None or klass.get_node() is not decl.node:
                klass = ReflectionClass._create(self, scope, decl)
                self._classes[key] = klass
        return klass

    def find_class(self, name: str) -> ReflectionClass | None:
        key = name.casefold()
        with self._lock:
            klass = self._classes.get(key)
        if klass is not None and (self.case_insensitive or klass.get_name() == name):
            return klass
        found = self.find_declaration(name, (DeclarationKind.CLASS,))
        if found is None:
            return None
        return self.class_for(*found)

    def get_class(self, name: str) -> ReflectionClass:
        """Class entity for a fully-qualified name. Raises ClassNotFound."""
        klass = self.find_class(name)
        if klass is None:
            raise ClassNotFound.for_name(name)
        return klass

    def function_for(self, scope: FileScope, decl: Declaration) -> ReflectionFunction:
        from pyreflect.reflection.function import ReflectionFunction

        key = decl.qualified_name.casefold()
        with self._lock:
            function = self._functions.get(key)
            if function is None or function.get_node() is not decl.node:
                function = ReflectionFunction._create(self, scope, decl)
                self._functions[key] = function
        return function

    def get_function(self, name: str) -> ReflectionFunction:
        """Function entity for a fully-qualified name. Raises FunctionNotFound."""
        found = self.find_declaration(name, (DeclarationKind.FUNCTION,))
        if found is None:
            raise FunctionNotFound.for_name(name)
        return self.function_for(*found)

    def get_file(self, path: Path | str) -> ReflectionFile:
        from pyreflect.reflection.file import ReflectionFile

        scope = self.get_file_scope(path)
        with self._lock:
            reflected = self._files.get(scope.path)
            if reflected is None:
                reflected = ReflectionFile._create(self, scope)
                self._files[scope.path] = reflected
        return reflected

    def get_constant(self, name: str) -> Any:
        """Value of a module-level constant. Raises ConstantNotFound."""
        found = self.find_declaration(name, (DeclarationKind.CONSTANT,))
        if found is None:
            raise ConstantNotFound.for_name(name)
        scope, decl = found
        return self.evaluator.try_evaluate(
            decl.value, EvaluationScope(file=scope, lineno=decl.lineno)
        )
