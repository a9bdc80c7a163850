"""Live runtime: the only place where reflected code is executed.

Metadata never goes through here. Value-level operations (invoke, property
get/set, closures, instantiation) ask the runtime for a live handle, which
may import the declaring module and so run its top-level code.
"""

from __future__ import annotations

import importlib
import sys
import threading
from pathlib import Path
from collections.abc import Collection
from typing import Any, Protocol, runtime_checkable

import structlog

from pyreflect.core.errors import NotLoaded
from pyreflect.source.module_mapping import is_package_file, module_prefixes

logger = structlog.get_logger()


@runtime_checkable
class LiveRuntime(Protocol):
    """What the reflection layer needs from a live interpreter."""

    def load(self, path: Path, module_name: str) -> None:
        """Make the module declared by ``path`` importable and import it once."""
        ...

    def get_live_handle(self, name: str) -> Any:
        """Live object for a fully-qualified name. Raises NotLoaded."""
        ...

    def read_constant(self, name: str, *, exclude: Collection[str] = ()) -> Any:
        """Value of a fully-qualified name outside indexed source.

        Modules named in ``exclude``, and their submodules, are never imported.
        """
        ...


def _import_root(path: Path, module_name: str) -> Path:
    """Directory that has to be on ``sys.path`` for ``module_name`` to import."""
    depth = len(module_name.split("."))
    if is_package_file(path):
        return path.parents[depth]
    return path.parents[depth - 1]


def _walk(obj: Any, attributes: list[str], name: str) -> Any:
    for attribute in attributes:
        try:
            obj = getattr(obj, attribute)
        except AttributeError as e:
            raise NotLoaded.for_name(name, f"no attribute '{attribute}'") from e
    return obj


class ImportlibRuntime:
    """:class:`LiveRuntime` backed by this interpreter's import system."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def load(self, path: Path, module_name: str) -> None:
        if module_name in sys.modules:
            return
        with self._lock:
            if module_name in sys.modules:
                return
            root = str(_import_root(path.resolve(), module_name))
            if root not in sys.path:
                sys.path.insert(0, root)
            importlib.import_module(module_name)
        logger.info("live_module_loaded", module=module_name, path=str(path))

    def get_live_handle(self, name: str) -> Any:
        for prefix in module_prefixes(name):
            module = sys.modules.get(prefix)
            if module is None:
                continue
            rest = name[len(prefix) + 1 :]
            return _walk(module, rest.split(".") if rest else [], name)
        raise NotLoaded.for_name(name, "declaring module is not imported")

    def read_constant(self, name: str, *, exclude: Collection[str] = ()) -> Any:
        prefixes = [p for p in module_prefixes(name) if p != name]
        refused = next((p for p in prefixes if p in exclude), None)
        if refused is not None:
            raise NotLoaded.for_name(name, f"module '{refused}' is reflected from source")
        for prefix in prefixes:
            try:
                module = importlib.import_module(prefix)
            except ImportError:
                continue
            except Exception as e:
                raise NotLoaded.for_name(name, f"importing '{prefix}' failed: {e}") from e
            return _walk(module, name[len(prefix) + 1 :].split("."), name)
        raise NotLoaded.for_name(name, "no importable module")
