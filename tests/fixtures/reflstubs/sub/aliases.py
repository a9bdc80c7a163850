"""Relative and aliased imports."""

import reflstubs.shapes

from .. import hierarchy as h
from ..hierarchy import Base as Root


class Child(Root):
    def foo(self, value):
        return str(value)


class Other(h.Mid):
    pass


class Third(reflstubs.shapes.Square):
    pass


class CaseSensitive:
    def Render(self):
        return "upper"

    def render(self):
        return "lower"
