"""Constant expression evaluator.

Evaluates the restricted expression grammar found in default values,
attribute initializers and constant declarations:

- literals and tuple/list/set/dict displays (with ``*`` / ``**`` unpacking)
- unary, binary, boolean and comparison operators, ``a if c else b``
- f-strings and subscripts of already-evaluated values
- names and dotted names bound to constants, either in the enclosing class
  body, the module, another indexed module, or a class (constant lookup)

Names declared outside any indexed source (``math.pi``) are read from the
live runtime when allowed. Anything else, notably calls, raises
:class:`UnsupportedExpression`.
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from pyreflect.core.errors import NotLoaded, SymbolNotFound, UnsupportedExpression
from pyreflect.resolve.namespace import dotted_name
from pyreflect.source.index import DeclarationKind
from pyreflect.source.module_mapping import module_prefixes

if TYPE_CHECKING:
    from pyreflect.engine import FileScope, ReflectionEngine
    from pyreflect.reflection.klass import ReflectionClass

logger = structlog.get_logger()

_MAX_SEQUENCE = 1_000_000

_BINARY: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
    ast.BitAnd: operator.and_,
}

_UNARY: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
    ast.Invert: operator.invert,
}

_COMPARE: dict[type[ast.cmpop], Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_LIVE_VALUE_TYPES = (int, float, complex, str, bytes, bool, type(None), tuple, frozenset)


class _Unknown:
    """Sentinel for a value that has no statically known value."""

    _instance: _Unknown | None = None

    def __new__(cls) -> _Unknown:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


UNKNOWN: Any = _Unknown()


@dataclass(frozen=True)
class EvaluationScope:
    """Where an expression appears: its file, enclosing class body and line."""

    file: FileScope
    klass: ReflectionClass | None = None
    lineno: int | None = None


class ConstantExpressionEvaluator:
    """Evaluates constant expressions without running user code."""

    def __init__(
        self,
        engine: ReflectionEngine,
        *,
        allow_live_constants: bool = True,
        max_power: int = 1024,
    ) -> None:
        self._engine = engine
        self._allow_live = allow_live_constants
        self._max_power = max_power
        self._active: set[int] = set()

    def evaluate(self, node: ast.expr, scope: EvaluationScope) -> Any:
        """Evaluate ``node``. Raises :class:`UnsupportedExpression`."""
        key = id(node)
        if key in self._active:
            raise UnsupportedExpression.for_node(ast.unparse(node), "recursive definition")
        self._active.add(key)
        try:
            return self._eval(node, scope)
        finally:
            self._active.discard(key)

    def try_evaluate(self, node: ast.expr, scope: EvaluationScope) -> Any:
        """Evaluate ``node``, returning :data:`UNKNOWN` when unsupported."""
        try:
            return self.evaluate(node, scope)
        except UnsupportedExpression as e:
            logger.debug("constant_unresolved", error=e)
            return UNKNOWN

    def evaluate_qualified(self, name: str) -> Any:
        """Value of a constant given by its fully-qualified dotted name."""
        return self._lookup_qualified(name, name)

    # ------------------------------------------------------------------
    # Node dispatch
    # ------------------------------------------------------------------

    def _eval(self, node: ast.expr, scope: EvaluationScope) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Tuple):
            return tuple(self._eval_elements(node.elts, scope))
        if isinstance(node, ast.List):
            return self._eval_elements(node.elts, scope)
        if isinstance(node, ast.Set):
            return set(self._eval_elements(node.elts, scope))
        if isinstance(node, ast.Dict):
            return self._eval_dict(node, scope)
        if isinstance(node, ast.UnaryOp):
            return self._apply(node, _UNARY[type(node.op)], self._eval(node.operand, scope))
        if isinstance(node, ast.BinOp):
            return self._eval_binop(node, scope)
        if isinstance(node, ast.BoolOp):
            return self._eval_boolop(node, scope)
        if isinstance(node, ast.Compare):
            return self._eval_compare(node, scope)
        if isinstance(node, ast.IfExp):
            branch = node.body if self._eval(node.test, scope) else node.orelse
            return self._eval(branch, scope)
        if isinstance(node, ast.JoinedStr):
            return self._eval_fstring(node, scope)
        if isinstance(node, ast.Subscript):
            return self._eval_subscript(node, scope)
        if isinstance(node, (ast.Name, ast.Attribute)):
            return self._eval_reference(node, scope)
        if isinstance(node, ast.Call):
            raise UnsupportedExpression.for_node(ast.unparse(node), "calls are not evaluated")
        raise UnsupportedExpression.for_node(
            ast.unparse(node), f"{type(node).__name__} is not a constant expression"
        )

    def _apply(self, node: ast.expr, fn: Callable[..., Any], *operands: Any) -> Any:
        try:
            return fn(*operands)
        except (ArithmeticError, TypeError, ValueError, KeyError, IndexError) as e:
            raise UnsupportedExpression.for_node(ast.unparse(node), str(e)) from e

    def _eval_elements(self, elts: list[ast.expr], scope: EvaluationScope) -> list[Any]:
        values: list[Any] = []
        for elt in elts:
            if isinstance(elt, ast.Starred):
                values.extend(self._apply(elt, list, self._eval(elt.value, scope)))
            else:
                values.append(self._eval(elt, scope))
        return values

    def _eval_dict(self, node: ast.Dict, scope: EvaluationScope) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key, value in zip(node.keys, node.values, strict=True):
            if key is None:
                self._apply(node, result.update, self._eval(value, scope))
            else:
                item = self._eval(key, scope)
                self._apply(node, result.__setitem__, item, self._eval(value, scope))
        return result

    def _eval_binop(self, node: ast.BinOp, scope: EvaluationScope) -> Any:
        fn = _BINARY.get(type(node.op))
        if fn is None:
            raise UnsupportedExpression.for_node(ast.unparse(node), "unsupported operator")
        left = self._eval(node.left, scope)
        right = self._eval(node.right, scope)
        if isinstance(node.op, (ast.Pow, ast.LShift)) and isinstance(right, int):
            if abs(right) > self._max_power:
                raise UnsupportedExpression.for_node(ast.unparse(node), "exponent too large")
        if isinstance(node.op, ast.Mult):
            for seq, count in ((left, right), (right, left)):
                if isinstance(seq, (str, bytes, list, tuple)) and isinstance(count, int):
                    if len(seq) * count > _MAX_SEQUENCE:
                        raise UnsupportedExpression.for_node(ast.unparse(node), "result too large")
        return self._apply(node, fn, left, right)

    def _eval_boolop(self, node: ast.BoolOp, scope: EvaluationScope) -> Any:
        value: Any = None
        for operand in node.values:
            value = self._eval(operand, scope)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def _eval_compare(self, node: ast.Compare, scope: EvaluationScope) -> bool:
        left = self._eval(node.left, scope)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self._eval(comparator, scope)
            if not self._apply(node, _COMPARE[type(op)], left, right):
                return False
            left = right
        return True

    def _eval_fstring(self, node: ast.JoinedStr, scope: EvaluationScope) -> str:
        parts: list[str] = []
        for value in node.values:
            if isinstance(value, ast.Constant):
                parts.append(str(value.value))
            elif isinstance(value, ast.FormattedValue):
                item = self._eval(value.value, scope)
                if value.conversion == ord("s"):
                    item = str(item)
                elif value.conversion == ord("r"):
                    item = repr(item)
                elif value.conversion == ord("a"):
                    item = ascii(item)
                spec = self._eval_fstring(value.format_spec, scope) if value.format_spec else ""
                parts.append(self._apply(node, format, item, spec))
            else:
                raise UnsupportedExpression.for_node(ast.unparse(node), "unsupported f-string part")
        return "".join(parts)

    def _eval_subscript(self, node: ast.Subscript, scope: EvaluationScope) -> Any:
        container = self._eval(node.value, scope)
        if isinstance(node.slice, ast.Slice):
            bounds = [
                self._eval(part, scope) if part is not None else None
                for part in (node.slice.lower, node.slice.upper, node.slice.step)
            ]
            index: Any = slice(*bounds)
        else:
            index = self._eval(node.slice, scope)
        return self._apply(node, operator.getitem, container, index)

    # ------------------------------------------------------------------
    # Constant lookup
    # ------------------------------------------------------------------

    def _eval_reference(self, node: ast.Name | ast.Attribute, scope: EvaluationScope) -> Any:
        dotted = dotted_name(node)
        if dotted is None:
            raise UnsupportedExpression.for_node(ast.unparse(node), "not a constant reference")
        head, _, rest = dotted.partition(".")

        if scope.klass is not None:
            found, value = self._lookup_class_body(head, scope)
            if found:
                return self._walk_attributes(node, value, rest)

        ctx = scope.file.context
        target = ctx.lookup(head, scope.lineno)
        if target is not None and target == ctx.qualify(head):
            decl = scope.file.index.find(
                head, (DeclarationKind.CONSTANT, DeclarationKind.VARIABLE), case_insensitive=False
            )
            if decl is not None and decl.value is not None:
                value = self._evaluate_in(decl.value, scope.file, decl.lineno)
                return self._walk_attributes(node, value, rest)

        fqn = self._engine.namespaces.resolve_name(dotted, ctx, scope.lineno)
        if fqn.startswith("builtins.") and not rest:
            raise UnsupportedExpression.for_node(dotted, "builtin names are not constants")
        return self._lookup_qualified(fqn, dotted)

    def _walk_attributes(self, node: ast.expr, value: Any, rest: str) -> Any:
        if not rest:
            return value
        raise UnsupportedExpression.for_node(ast.unparse(node), "attribute access on a value")

    def _evaluate_in(self, node: ast.expr, file: FileScope, lineno: int | None) -> Any:
        return self.evaluate(node, EvaluationScope(file=file, lineno=lineno))

    def _lookup_class_body(self, name: str, scope: EvaluationScope) -> tuple[bool, Any]:
        """Names bound earlier in the enclosing class body."""
        klass = scope.klass
        assert klass is not None
        decl = klass._own_members().get(name, case_insensitive=False)
        if decl is None or decl.value is None:
            return False, None
        if scope.lineno is not None and getattr(decl.node, "lineno", 0) >= scope.lineno:
            return False, None
        if klass.is_enum():
            raise UnsupportedExpression.for_node(name, "enum members are not plain constants")
        value = self.evaluate(
            decl.value,
            EvaluationScope(
                file=klass._scope, klass=klass, lineno=getattr(decl.node, "lineno", None)
            ),
        )
        return True, value

    def _lookup_qualified(self, fqn: str, expression: str) -> Any:
        engine = self._engine
        found = engine.find_declaration(fqn, (DeclarationKind.CONSTANT, DeclarationKind.VARIABLE))
        if found is not None:
            file, decl = found
            if decl.value is None:
                raise UnsupportedExpression.for_node(expression, "declared without a value")
            return self._evaluate_in(decl.value, file, decl.lineno)

        owner, _, member = fqn.rpartition(".")
        if owner:
            klass = engine.find_class(owner)
            if klass is not None:
                if klass.is_enum():
                    raise UnsupportedExpression.for_node(
                        expression, "enum members are not plain constants"
                    )
                return klass._static_value(member, expression)

        if self._indexed(fqn):
            raise UnsupportedExpression.for_node(expression, f"'{fqn}' is not a constant")
        if not self._allow_live:
            raise UnsupportedExpression.for_node(expression, f"'{fqn}' is not in indexed source")
        try:
            value = engine.runtime.read_constant(fqn, exclude=self._reflected_modules())
        except NotLoaded as e:
            raise UnsupportedExpression.for_node(expression, e.message) from e
        if not isinstance(value, _LIVE_VALUE_TYPES):
            raise UnsupportedExpression.for_node(
                expression, f"live value of type {type(value).__name__} is not a constant"
            )
        logger.debug("constant_read_live", name=fqn)
        return value

    def _reflected_modules(self) -> set[str]:
        return {scope.namespace for scope in self._engine.loaded_scopes()}

    def _indexed(self, fqn: str) -> bool:
        """True when ``fqn`` lies in source the engine parses instead of imports."""
        reflected = self._reflected_modules()
        if any(prefix in reflected for prefix in module_prefixes(fqn)[1:]):
            return True
        try:
            self._engine.locate(fqn)
        except SymbolNotFound:
            return False
        return True
