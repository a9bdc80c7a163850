"""Function and method reflection: the shared part and free functions."""

from __future__ import annotations

import ast
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from pyreflect.core.errors import FunctionNotFound
from pyreflect.live.bridge import LiveMember
from pyreflect.reflection.base import DEPRECATED, NodeReflection, default_engine
from pyreflect.reflection.parameter import ParameterKind, ReflectionParameter
from pyreflect.reflection.types import TypeHint, type_hint_from_annotation
from pyreflect.resolve.evaluator import EvaluationScope
from pyreflect.source.index import Declaration, DeclarationKind, FunctionNode

if TYPE_CHECKING:
    from pyreflect.engine import FileScope, ReflectionEngine
    from pyreflect.reflection.klass import ReflectionClass

_NESTED_SCOPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)


def _walk_own_scope(node: ast.AST) -> Iterator[ast.AST]:
    """Nodes of a function body, not descending into nested scopes."""
    for child in ast.iter_child_nodes(node):
        yield child
        if not isinstance(child, _NESTED_SCOPES):
            yield from _walk_own_scope(child)


def _is_placeholder(stmt: ast.stmt) -> bool:
    if isinstance(stmt, ast.Pass):
        return True
    return isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Constant) and (
        stmt.value.value is Ellipsis or isinstance(stmt.value.value, str)
    )


class ReflectionFunctionAbstract(NodeReflection):
    """Getters shared by functions and methods."""

    SNAPSHOT_FIELDS = ("__name__", "__qualname__", "__module__")

    _node: FunctionNode

    def _setup_function(self, engine: ReflectionEngine, scope: FileScope, node: ast.AST) -> None:
        assert isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
        self._engine = engine
        self._scope = scope
        self._node = node
        self._parameters: list[ReflectionParameter] | None = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_short_name(self) -> str:
        return self._node.name

    def get_qualname(self) -> str:
        return self._node.name

    def get_namespace_name(self) -> str:
        return self._scope.namespace

    def in_namespace(self) -> bool:
        return bool(self._scope.namespace)

    def get_declaring_class(self) -> ReflectionClass | None:
        return None

    def _snapshot_value(self, field: str) -> Any:
        return {
            "__name__": self._node.name,
            "__qualname__": self.get_qualname(),
            "__module__": self._scope.namespace,
        }[field]

    # ------------------------------------------------------------------
    # Context helpers used by parameters
    # ------------------------------------------------------------------

    def _resolve(self, expr: ast.expr) -> str | None:
        return self._engine.namespaces.resolve_expr(expr, self._scope.context, self._node.lineno)

    def _resolve_name(self, dotted: str) -> str:
        return self._engine.namespaces.resolve_name(dotted, self._scope.context, self._node.lineno)

    def _evaluation_scope(self) -> EvaluationScope:
        return EvaluationScope(
            file=self._scope, klass=self.get_declaring_class(), lineno=self._node.lineno
        )

    def _evaluate(self, node: ast.expr) -> Any:
        return self._engine.evaluator.try_evaluate(node, self._evaluation_scope())

    def _format_annotation(self, node: ast.expr | None) -> str | None:
        """Annotation text as ``inspect.formatannotation`` would print it."""
        if node is None:
            return None
        text = ast.unparse(node)
        if self._scope.has_postponed_annotations:
            return repr(text)
        if isinstance(node, (ast.Name, ast.Attribute)):
            resolved = self._resolve(node)
            if resolved is not None:
                return resolved.removeprefix("builtins.").removeprefix("typing.")
        return text

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _build_parameters(self) -> list[ReflectionParameter]:
        args = self._node.args
        positional = args.posonlyargs + args.args
        first_default = len(positional) - len(args.defaults)
        parameters: list[ReflectionParameter] = []

        for i, arg in enumerate(positional):
            kind = (
                ParameterKind.POSITIONAL_ONLY
                if i < len(args.posonlyargs)
                else ParameterKind.POSITIONAL_OR_KEYWORD
            )
            default = args.defaults[i - first_default] if i >= first_default else None
            parameters.append(ReflectionParameter(self, len(parameters), arg, kind, default))
        if args.vararg is not None:
            parameters.append(
                ReflectionParameter(
                    self, len(parameters), args.vararg, ParameterKind.VAR_POSITIONAL
                )
            )
        for arg, default in zip(args.kwonlyargs, args.kw_defaults, strict=True):
            parameters.append(
                ReflectionParameter(self, len(parameters), arg, ParameterKind.KEYWORD_ONLY, default)
            )
        if args.kwarg is not None:
            parameters.append(
                ReflectionParameter(self, len(parameters), args.kwarg, ParameterKind.VAR_KEYWORD)
            )
        return parameters

    def get_parameters(self) -> list[ReflectionParameter]:
        if self._parameters is None:
            self._parameters = self._build_parameters()
        return list(self._parameters)

    def get_parameter(self, name: str) -> ReflectionParameter | None:
        return next((p for p in self.get_parameters() if p.get_name() == name), None)

    def get_number_of_parameters(self) -> int:
        return len(self.get_parameters())

    def get_number_of_required_parameters(self) -> int:
        return sum(1 for p in self.get_parameters() if not p.is_optional())

    def is_variadic(self) -> bool:
        return any(p.is_variadic() for p in self.get_parameters())

    # ------------------------------------------------------------------
    # Return type and body
    # ------------------------------------------------------------------

    def has_return_type(self) -> bool:
        return self._node.returns is not None

    def get_return_type(self) -> TypeHint | None:
        return type_hint_from_annotation(self._node.returns, self._resolve)

    def returns_reference(self) -> bool:
        return False

    def is_closure(self) -> bool:
        return False

    def _yields(self) -> bool:
        return any(isinstance(n, (ast.Yield, ast.YieldFrom)) for n in _walk_own_scope(self._node))

    def is_generator(self) -> bool:
        """Like ``inspect.isgeneratorfunction``."""
        return isinstance(self._node, ast.FunctionDef) and self._yields()

    def is_coroutine(self) -> bool:
        """Like ``inspect.iscoroutinefunction``."""
        return isinstance(self._node, ast.AsyncFunctionDef) and not self._yields()

    def is_async_generator(self) -> bool:
        return isinstance(self._node, ast.AsyncFunctionDef) and self._yields()

    def has_body(self) -> bool:
        """False when the body is only a docstring, ``...`` or ``pass``."""
        return not all(_is_placeholder(stmt) for stmt in self._node.body)

    def get_decorators(self) -> list[str]:
        names = []
        for decorator in self._node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            names.append(self._resolve(target) or ast.unparse(target))
        return names

    def is_deprecated(self) -> bool:
        return any(d in DEPRECATED for d in self.get_decorators())

    # ------------------------------------------------------------------
    # Signature
    # ------------------------------------------------------------------

    def format_signature(self) -> str:
        """Same text as ``str(inspect.signature(func))`` for the underlying function."""
        rendered: list[str] = []
        parameters = self.get_parameters()
        has_var_positional = any(p.is_variadic() for p in parameters)
        slash_pending = False
        star_done = has_var_positional
        for parameter in parameters:
            if parameter.is_positional_only():
                slash_pending = True
            elif slash_pending:
                rendered.append("/")
                slash_pending = False
            if parameter.is_keyword_only() and not star_done:
                rendered.append("*")
                star_done = True
            rendered.append(str(parameter))
        if slash_pending:
            rendered.append("/")

        text = f"({', '.join(rendered)})"
        returns = self._format_annotation(self._node.returns)
        if returns is not None:
            text = f"{text} -> {returns}"
        return text


class ReflectionFunction(ReflectionFunctionAbstract):
    """A module-level function."""

    def __init__(
        self,
        name: str,
        node: FunctionNode | None = None,
        *,
        engine: ReflectionEngine | None = None,
    ) -> None:
        engine = engine or default_engine()
        found = engine.find_declaration(name, (DeclarationKind.FUNCTION,))
        if found is None:
            raise FunctionNotFound.for_name(name)
        scope, decl = found
        self._setup(engine, scope, decl, node or decl.node)

    @classmethod
    def _create(
        cls, engine: ReflectionEngine, scope: FileScope, decl: Declaration
    ) -> ReflectionFunction:
        function = cls.__new__(cls)
        function._setup(engine, scope, decl, decl.node)
        return function

    def _setup(
        self, engine: ReflectionEngine, scope: FileScope, decl: Declaration, node: ast.AST
    ) -> None:
        self._setup_function(engine, scope, node)
        self._name = decl.qualified_name
        self._live: LiveMember | None = None

    def get_name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<ReflectionFunction {self._name}>"

    def __str__(self) -> str:
        prefix = "async def" if isinstance(self._node, ast.AsyncFunctionDef) else "def"
        return f"{prefix} {self._name}{self.format_signature()}"

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
                kind="function",
            )
        return self._live

    def get_closure(self) -> Callable[..., Any]:
        return self.live().get_closure()

    def invoke(self, *args: Any, **kwargs: Any) -> Any:
        return self.get_closure()(*args, **kwargs)

    def invoke_args(
        self, args: list[Any] | tuple[Any, ...] = (), kwargs: dict[str, Any] | None = None
    ) -> Any:
        return self.get_closure()(*args, **(kwargs or {}))
