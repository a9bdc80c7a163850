"""Declaration index for one parsed file.

Walks the module body once and maps ``(namespace, name)`` to the AST node
declaring it. Conditional blocks (``if``/``try``/``with``) are walked too;
when a name is declared more than once the last declaration wins, which is
also the binding Python itself ends up with for straight-line code.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

import structlog

from pyreflect.source.cache import ParsedFile

logger = structlog.get_logger()

_CONSTANT_NAME = re.compile(r"_*[A-Z][A-Z0-9_]*")

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


class DeclarationKind(str, Enum):
    CLASS = "class"
    FUNCTION = "function"
    CONSTANT = "constant"
    VARIABLE = "variable"


@dataclass(frozen=True)
class Declaration:
    """One declared name. ``node`` is the declaring statement."""

    kind: DeclarationKind
    namespace: str
    name: str  # dotted for nested classes: Outer.Inner
    node: ast.AST
    value: ast.expr | None = None  # assigned expression for constants/variables
    annotation: ast.expr | None = None

    @property
    def lineno(self) -> int:
        return getattr(self.node, "lineno", 0)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name


@dataclass
class FileIndex:
    """Declarations of one file, keyed by ``(namespace, name)``."""

    namespace: str
    declarations: dict[tuple[str, str], Declaration] = field(default_factory=dict)
    duplicates: list[Declaration] = field(default_factory=list)

    def add(self, decl: Declaration) -> None:
        key = (decl.namespace, decl.name)
        previous = self.declarations.get(key)
        if previous is not None:
            self.duplicates.append(previous)
            logger.warning(
                "duplicate_declaration",
                name=decl.qualified_name,
                first_line=previous.lineno,
                line=decl.lineno,
            )
            # Re-insert so iteration order follows the winning declaration
            del self.declarations[key]
        self.declarations[key] = decl

    def find(
        self,
        name: str,
        kinds: tuple[DeclarationKind, ...] | None = None,
        *,
        case_insensitive: bool = True,
    ) -> Declaration | None:
        """Find a declaration by local name, exact case first."""
        decl = self.declarations.get((self.namespace, name))
        if decl is not None and (kinds is None or decl.kind in kinds):
            return decl
        if not case_insensitive:
            return None
        folded = name.casefold()
        for (_, candidate), decl in self.declarations.items():
            if candidate.casefold() == folded and (kinds is None or decl.kind in kinds):
                return decl
        return None

    def of_kind(self, *kinds: DeclarationKind) -> list[Declaration]:
        return [d for d in self.declarations.values() if d.kind in kinds]

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self.declarations.values())

    def __len__(self) -> int:
        return len(self.declarations)


def is_constant_name(name: str) -> bool:
    return bool(_CONSTANT_NAME.fullmatch(name))


def is_final_annotation(annotation: ast.expr | None) -> bool:
    """``Final``, ``typing.Final`` or ``Final[...]``."""
    if annotation is None:
        return False
    if isinstance(annotation, ast.Subscript):
        annotation = annotation.value
    if isinstance(annotation, ast.Name):
        return annotation.id == "Final"
    if isinstance(annotation, ast.Attribute):
        return annotation.attr == "Final"
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return annotation.value == "Final" or annotation.value.startswith("Final[")
    return False


def iter_assignments(
    stmt: ast.stmt,
) -> Iterator[tuple[str, ast.expr | None, ast.expr | None]]:
    """Yield ``(name, value, annotation)`` for simple-name bindings in ``stmt``.

    Tuple unpacking of a same-length tuple/list display is split per name.
    """
    if isinstance(stmt, ast.AnnAssign):
        if isinstance(stmt.target, ast.Name):
            yield stmt.target.id, stmt.value, stmt.annotation
        return
    if not isinstance(stmt, ast.Assign):
        return
    for target in stmt.targets:
        if isinstance(target, ast.Name):
            yield target.id, stmt.value, None
        elif isinstance(target, (ast.Tuple, ast.List)) and isinstance(
            stmt.value, (ast.Tuple, ast.List)
        ):
            if len(target.elts) != len(stmt.value.elts):
                continue
            for elt, value in zip(target.elts, stmt.value.elts, strict=True):
                if isinstance(elt, ast.Name):
                    yield elt.id, value, None


def iter_block_statements(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Statements of a block, flattening if/try/with bodies."""
    for stmt in body:
        if isinstance(stmt, ast.If):
            yield from iter_block_statements(stmt.body)
            yield from iter_block_statements(stmt.orelse)
        elif isinstance(stmt, (ast.Try, ast.TryStar)):
            yield from iter_block_statements(stmt.body)
            for handler in stmt.handlers:
                yield from iter_block_statements(handler.body)
            yield from iter_block_statements(stmt.orelse)
            yield from iter_block_statements(stmt.finalbody)
        elif isinstance(stmt, (ast.With, ast.AsyncWith)):
            yield from iter_block_statements(stmt.body)
        else:
            yield stmt


def _index_class(index: FileIndex, node: ast.ClassDef, prefix: str) -> None:
    name = f"{prefix}.{node.name}" if prefix else node.name
    index.add(Declaration(DeclarationKind.CLASS, index.namespace, name, node))
    for stmt in iter_block_statements(node.body):
        if isinstance(stmt, ast.ClassDef):
            _index_class(index, stmt, name)


def index_file(parsed: ParsedFile, namespace: str) -> FileIndex:
    """Build the declaration index of a parsed file. Executes nothing."""
    index = FileIndex(namespace=namespace)
    for stmt in iter_block_statements(parsed.tree.body):
        if isinstance(stmt, ast.ClassDef):
            _index_class(index, stmt, "")
        elif isinstance(stmt, FunctionNode):
            index.add(Declaration(DeclarationKind.FUNCTION, namespace, stmt.name, stmt))
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is None:
            continue  # annotation only, binds nothing
        else:
            for name, value, annotation in iter_assignments(stmt):
                kind = (
                    DeclarationKind.CONSTANT
                    if is_constant_name(name) or is_final_annotation(annotation)
                    else DeclarationKind.VARIABLE
                )
                index.add(Declaration(kind, namespace, name, stmt, value, annotation))
    logger.debug("file_indexed", path=str(parsed.path), namespace=namespace, count=len(index))
    return index
