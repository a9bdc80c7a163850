"""Three-level chain with an abstract root."""

from __future__ import annotations

import abc


class Base(abc.ABC):
    """Root of the chain."""

    LIMIT = 10

    @abc.abstractmethod
    def foo(self, value: int) -> str:
        """Declared abstract."""

    def shared(self, times: int = LIMIT) -> int:
        return self.LIMIT * times


class Mid(Base):
    """Implements foo."""

    def foo(self, value: int) -> str:
        """Mid implementation."""
        return f"mid:{value}"


class Leaf(Mid):
    """Overrides foo again."""

    def foo(self, value: int) -> str:
        """Leaf implementation."""
        return f"leaf:{value}"


class Plain(Mid):
    """Inherits foo without overriding it."""


class Documented(Mid):
    """Carries multi-line docstrings.

    Indented continuation lines are kept
        with their relative indentation.
    """

    def foo(self, value: int) -> str:
        """Documented implementation.

        Second paragraph.
        """
        return f"documented:{value}"
