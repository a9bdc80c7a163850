"""Namespace resolution for a parsed module.

A module is one namespace. Its alias table is the set of names bound by
``import`` statements plus the module's own top-level declarations. Names
appearing in declarations (base classes, decorators, annotations, default
values) are resolved against that table to dotted, fully-qualified names.

Bindings carry their line number: a reference resolves to the latest
binding made before it, which mirrors module execution order for
everything evaluated at definition time.
"""

from __future__ import annotations

import ast
import builtins
from dataclasses import dataclass, field
from enum import Enum

from pyreflect.source.cache import ParsedFile
from pyreflect.source.index import FileIndex, iter_block_statements

BUILTIN_NAMES: frozenset[str] = frozenset(dir(builtins))


class BindingKind(str, Enum):
    IMPORT = "import"
    IMPORT_FROM = "import_from"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class Binding:
    alias: str
    target: str
    lineno: int
    kind: BindingKind


@dataclass(frozen=True)
class NamespaceContext:
    """Alias table and namespace prefix of one module."""

    namespace: str
    package: str
    bindings: tuple[Binding, ...] = ()
    star_imports: tuple[str, ...] = field(default=())

    def aliases(self) -> dict[str, str]:
        """Import aliases (alias -> fully-qualified name), last binding wins."""
        result: dict[str, str] = {}
        for binding in self.bindings:
            if binding.kind is not BindingKind.DECLARATION:
                result[binding.alias] = binding.target
        return result

    def lookup(self, name: str, lineno: int | None = None) -> str | None:
        """Target bound to ``name`` as seen from ``lineno``."""
        before: Binding | None = None
        latest: Binding | None = None
        for binding in self.bindings:
            if binding.alias != name:
                continue
            latest = binding
            if lineno is not None and binding.lineno < lineno:
                before = binding
        chosen = before or latest
        return chosen.target if chosen else None

    def qualify(self, name: str) -> str:
        return f"{self.namespace}.{name}" if self.namespace else name


def package_of(namespace: str, is_package: bool) -> str:
    if is_package:
        return namespace
    return namespace.rpartition(".")[0]


def resolve_relative(module: str | None, level: int, package: str) -> str:
    """Absolute module for ``from <level dots><module> import ...``."""
    if level == 0:
        return module or ""
    parts = package.split(".") if package else []
    if level - 1 > len(parts):
        return "." * level + (module or "")
    base_parts = parts[: len(parts) - (level - 1)]
    if module:
        base_parts.append(module)
    return ".".join(base_parts)


class NamespaceResolver:
    """Builds :class:`NamespaceContext` objects and resolves names against them."""

    def build(
        self,
        parsed: ParsedFile,
        namespace: str,
        *,
        is_package: bool = False,
        index: FileIndex | None = None,
    ) -> NamespaceContext:
        package = package_of(namespace, is_package)
        bindings: list[Binding] = []
        stars: list[str] = []

        for stmt in iter_block_statements(parsed.tree.body):
            if isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    if alias.asname:
                        bindings.append(
                            Binding(alias.asname, alias.name, stmt.lineno, BindingKind.IMPORT)
                        )
                    else:
                        # ``import a.b`` binds ``a``
                        head = alias.name.split(".")[0]
                        bindings.append(Binding(head, head, stmt.lineno, BindingKind.IMPORT))
            elif isinstance(stmt, ast.ImportFrom):
                source = resolve_relative(stmt.module, stmt.level, package)
                for alias in stmt.names:
                    if alias.name == "*":
                        stars.append(source)
                        continue
                    target = f"{source}.{alias.name}" if source else alias.name
                    bindings.append(
                        Binding(
                            alias.asname or alias.name,
                            target,
                            stmt.lineno,
                            BindingKind.IMPORT_FROM,
                        )
                    )

        if index is not None:
            for decl in index:
                if "." in decl.name:
                    continue  # nested classes are not module-level bindings
                bindings.append(
                    Binding(decl.name, decl.qualified_name, decl.lineno, BindingKind.DECLARATION)
                )

        bindings.sort(key=lambda b: b.lineno)
        return NamespaceContext(
            namespace=namespace,
            package=package,
            bindings=tuple(bindings),
            star_imports=tuple(stars),
        )

    def resolve_name(self, name: str, ctx: NamespaceContext, lineno: int | None = None) -> str:
        """Fully-qualified name for a (possibly dotted) name used in ``ctx``."""
        head, _, rest = name.partition(".")
        target = ctx.lookup(head, lineno)
        if target is None:
            if head in BUILTIN_NAMES:
                target = f"builtins.{head}"
            elif ctx.star_imports:
                target = f"{ctx.star_imports[0]}.{head}"
            else:
                target = ctx.qualify(head)
        return f"{target}.{rest}" if rest else target

    def resolve_expr(
        self, node: ast.expr, ctx: NamespaceContext, lineno: int | None = None
    ) -> str | None:
        """Fully-qualified name for a name-like expression, or None.

        Subscripts resolve to their subscripted value (``Generic[T]`` ->
        ``typing.Generic``); string forward references are parsed first.
        """
        dotted = dotted_name(node)
        if dotted is not None:
            return self.resolve_name(dotted, ctx, lineno)
        if isinstance(node, ast.Subscript):
            return self.resolve_expr(node.value, ctx, lineno)
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                parsed = ast.parse(node.value.strip(), mode="eval").body
            except SyntaxError:
                return None
            return self.resolve_expr(parsed, ctx, lineno)
        return None


def dotted_name(node: ast.expr) -> str | None:
    """``a.b.c`` for Name/Attribute chains, else None."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))
