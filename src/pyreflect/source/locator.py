"""Symbol locators: fully-qualified name -> declaring file.

Locators never import anything. They only look at the filesystem or at an
explicit module map, the way an autoloader's class map would.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from pyreflect.core.errors import SymbolNotFound
from pyreflect.source.module_mapping import (
    build_module_index,
    module_name_for,
    module_prefixes,
    module_to_candidate_paths,
)

logger = structlog.get_logger()


@runtime_checkable
class Locator(Protocol):
    """Maps a dotted symbol name to the file declaring it."""

    def locate(self, name: str) -> Path:
        """Return the file for ``name`` or raise :class:`SymbolNotFound`."""
        ...

    def module_name(self, path: Path) -> str | None:
        """Dotted module name of a located file, if the locator knows it."""
        ...


class SearchPathLocator:
    """Probes source roots for the longest module prefix of a name.

    ``pkg.mod.Klass.method`` tries ``pkg/mod/Klass/method.py``, then
    ``pkg/mod/Klass.py``, then ``pkg/mod.py`` and so on, under each root
    in order.
    """

    def __init__(self, search_paths: list[Path] | list[str], *, include_sys_path: bool = False):
        roots = [Path(p).resolve() for p in search_paths]
        if include_sys_path:
            roots.extend(Path(p).resolve() for p in sys.path if p and Path(p).is_dir())
        self._roots: list[Path] = list(dict.fromkeys(roots))

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    def locate(self, name: str) -> Path:
        for module in module_prefixes(name.strip(".")):
            for root in self._roots:
                for candidate in module_to_candidate_paths(module):
                    path = root / candidate
                    if path.is_file():
                        logger.debug("symbol_located", name=name, path=str(path))
                        return path
        raise SymbolNotFound.for_name(name, "not under any search path")

    def module_name(self, path: Path) -> str | None:
        return module_name_for(path, self._roots)


class ModuleMapLocator:
    """Explicit module -> file map, the static equivalent of an autoload map."""

    def __init__(self, modules: dict[str, Path] | dict[str, str]):
        self._modules: dict[str, Path] = {m: Path(p).resolve() for m, p in modules.items()}
        self._folded: dict[str, str] = {}
        for module in self._modules:
            self._folded.setdefault(module.casefold(), module)
        self._by_path: dict[Path, str] = {p: m for m, p in self._modules.items()}

    @classmethod
    def from_files(cls, root: Path, files: list[Path]) -> ModuleMapLocator:
        return cls(build_module_index(root, files))

    def locate(self, name: str) -> Path:
        for module in module_prefixes(name.strip(".")):
            path = self._modules.get(module)
            if path is None:
                folded = self._folded.get(module.casefold())
                path = self._modules.get(folded) if folded else None
            if path is not None:
                logger.debug("symbol_located", name=name, path=str(path))
                return path
        raise SymbolNotFound.for_name(name, "not in module map")

    def module_name(self, path: Path) -> str | None:
        return self._by_path.get(path.resolve())


class ChainLocator:
    """Tries each locator in order."""

    def __init__(self, *locators: Locator):
        self._locators = locators

    def locate(self, name: str) -> Path:
        for locator in self._locators:
            try:
                return locator.locate(name)
            except SymbolNotFound:
                continue
        raise SymbolNotFound.for_name(name, "no locator matched")

    def module_name(self, path: Path) -> str | None:
        for locator in self._locators:
            module = locator.module_name(path)
            if module:
                return module
        return None
