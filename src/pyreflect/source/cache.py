"""Process-wide parse cache.

Each absolute path is parsed at most once per cache. Entries are only
dropped through :meth:`SourceCache.evict` or :meth:`SourceCache.clear`;
source files are assumed stable for the lifetime of the process.
"""

from __future__ import annotations

import ast
import hashlib
import threading
import time
from dataclasses import dataclass
from importlib.util import decode_source
from pathlib import Path

import structlog

from pyreflect.core.errors import ParseError, SourceIOError

logger = structlog.get_logger()


@dataclass(frozen=True)
class ParsedFile:
    """A parsed source file. Immutable once produced."""

    path: Path
    tree: ast.Module
    source: str
    digest: str  # sha256 of the raw bytes, the parse identity
    parsed_at: float

    @property
    def line_count(self) -> int:
        return len(self.source.splitlines())


def parse_source(path: Path, data: bytes) -> ParsedFile:
    """Decode and parse raw bytes for ``path``.

    Raises:
        SourceIOError: The bytes cannot be decoded.
        ParseError: The parser rejects the source.
    """
    try:
        source = decode_source(data)
    except (SyntaxError, UnicodeDecodeError, LookupError) as e:
        raise SourceIOError.unreadable(str(path), str(e)) from e
    try:
        tree = ast.parse(source, filename=str(path), type_comments=False)
    except SyntaxError as e:
        raise ParseError.syntax_error(str(path), e.lineno, e.msg) from e
    return ParsedFile(
        path=path,
        tree=tree,
        source=source,
        digest=hashlib.sha256(data).hexdigest(),
        parsed_at=time.time(),
    )


class SourceCache:
    """Unbounded path -> :class:`ParsedFile` cache.

    Usage::

        cache = SourceCache()
        tree = cache.get_ast(Path("pkg/mod.py"))
    """

    def __init__(self) -> None:
        self._entries: dict[Path, ParsedFile] = {}
        self._lock = threading.Lock()

    def get(self, path: Path | str) -> ParsedFile:
        """Return the parsed file, parsing on first request."""
        key = Path(path).resolve()
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            try:
                data = key.read_bytes()
            except OSError as e:
                raise SourceIOError.unreadable(str(key), e.strerror or str(e)) from e

            start = time.perf_counter()
            parsed = parse_source(key, data)
            self._entries[key] = parsed
            logger.debug(
                "source_parsed",
                path=str(key),
                ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return parsed

    def get_ast(self, path: Path | str) -> ast.Module:
        return self.get(path).tree

    def evict(self, path: Path | str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        with self._lock:
            return self._entries.pop(Path(path).resolve(), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return Path(path).resolve() in self._entries

    def __len__(self) -> int:
        return len(self._entries)
