"""Live fallback bridge.

Static entities never hold runtime state. When a caller asks for a value
(invoke, read, write, closure, new instance) the entity hands the request
to a :class:`LiveMember`, which loads the declaring module on first use,
enforces visibility and forwards to the live object. Exceptions raised by
the reflected code propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from pyreflect.core.errors import AccessDenied, InvalidTarget, NotLoaded
from pyreflect.live.runtime import LiveRuntime

logger = structlog.get_logger()


@runtime_checkable
class ValueAccessible(Protocol):
    """Value-level operations on one reflected member."""

    def invoke(self, obj: Any, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any: ...

    def get_value(self, obj: Any = None) -> Any: ...

    def set_value(self, obj: Any, value: Any) -> None: ...

    def get_closure(self, obj: Any = None) -> Callable[..., Any]: ...


def _always_denied() -> bool:
    return False


class LiveMember:
    """Live capability for a class, one of its members, or a function.

    ``owner`` is the fully-qualified name of the live object to load (the
    declaring class for members, the function itself for functions).
    ``member`` is None when the owner is the target. ``attribute`` is the
    name the member is stored under on the live class (mangled for private
    names) and defaults to ``member``.
    """

    def __init__(
        self,
        runtime: LiveRuntime,
        *,
        path: Path,
        module: str,
        owner: str,
        member: str | None = None,
        kind: str = "method",
        attribute: str | None = None,
        visibility: str = "public",
        needs_instance: bool = True,
        accessible: Callable[[], bool] = _always_denied,
    ) -> None:
        self._runtime = runtime
        self._path = path
        self._module = module
        self._owner = owner
        self._member = member
        self._kind = kind
        self._attribute = attribute or member
        self._visibility = visibility
        self._needs_instance = needs_instance
        self._accessible = accessible
        self._handle: Any = None

    @property
    def qualified_name(self) -> str:
        return f"{self._owner}.{self._member}" if self._member else self._owner

    @property
    def attribute(self) -> str:
        """Attribute name the member is stored under (private names mangled)."""
        if self._attribute is None:
            raise NotLoaded.for_name(self._owner, "not a member")
        return self._attribute

    def handle(self) -> Any:
        """Live owner object, importing the declaring module on first use."""
        if self._handle is None:
            self._runtime.load(self._path, self._module)
            self._handle = self._runtime.get_live_handle(self._owner)
            logger.debug("live_handle_acquired", name=self._owner)
        return self._handle

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _check_access(self) -> None:
        if self._visibility == "public" or self._accessible():
            return
        raise AccessDenied.for_member(self._kind, self.qualified_name, self._visibility)

    def _check_target(self, obj: Any) -> None:
        if obj is None:
            if self._needs_instance:
                raise InvalidTarget.instance_required(self.qualified_name)
            return
        owner = self.handle()
        if not isinstance(obj, owner):
            raise InvalidTarget.wrong_instance(self._owner, type(obj).__qualname__)

    # ------------------------------------------------------------------
    # ValueAccessible
    # ------------------------------------------------------------------

    def get_closure(self, obj: Any = None) -> Callable[..., Any]:
        if self._member is None:
            return self.handle()
        self._check_access()
        self._check_target(obj)
        owner = self.handle()
        try:
            descriptor = vars(owner)[self.attribute]
        except KeyError as e:
            raise NotLoaded.for_name(self.qualified_name, "member missing at runtime") from e
        if obj is None:
            return descriptor.__get__(None, owner)
        return descriptor.__get__(obj, type(obj))

    def invoke(
        self, obj: Any, args: Sequence[Any] = (), kwargs: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get_closure(obj)(*args, **(kwargs or {}))

    def get_value(self, obj: Any = None) -> Any:
        self._check_access()
        self._check_target(obj)
        target = self.handle() if obj is None else obj
        return getattr(target, self.attribute)

    def set_value(self, obj: Any, value: Any) -> None:
        self._check_access()
        self._check_target(obj)
        target = self.handle() if obj is None else obj
        setattr(target, self.attribute, value)

    # ------------------------------------------------------------------
    # Class-level operations
    # ------------------------------------------------------------------

    def instantiate(self, args: Sequence[Any] = (), kwargs: Mapping[str, Any] | None = None) -> Any:
        return self.handle()(*args, **(kwargs or {}))

    def allocate(self) -> Any:
        """New instance without running ``__init__``."""
        owner = self.handle()
        return owner.__new__(owner)

    def is_instance(self, obj: Any) -> bool:
        return isinstance(obj, self.handle())
