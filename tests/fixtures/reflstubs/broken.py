"""Never imported: hierarchies and bindings Python would reject at runtime."""

import enum

FIRST = SECOND + 1
SECOND = FIRST + 1


class Loop(Knot):
    pass


class Knot(Loop):
    pass


class X:
    pass


class Y(X):
    pass


class Z(X, Y):
    pass


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Palette:
    FAVOURITE = Color.RED


def helper():
    return 1


def helper():
    return 2


def paint(color=Color.RED):
    return color
