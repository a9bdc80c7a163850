"""Live fallback: importing reflected code for value-level operations."""

from pyreflect.live.bridge import LiveMember, ValueAccessible
from pyreflect.live.runtime import ImportlibRuntime, LiveRuntime

__all__ = ["ImportlibRuntime", "LiveMember", "LiveRuntime", "ValueAccessible"]
