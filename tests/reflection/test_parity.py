"""Static answers agree with ``inspect`` on the imported fixture modules."""

import importlib
import inspect
from typing import Any

import pytest

from pyreflect.engine import ReflectionEngine
from pyreflect.reflection.base import mangle

CLASSES = [
    "reflstubs.hierarchy.Base",
    "reflstubs.hierarchy.Mid",
    "reflstubs.hierarchy.Leaf",
    "reflstubs.hierarchy.Plain",
    "reflstubs.hierarchy.Documented",
    "reflstubs.shapes.Drawable",
    "reflstubs.shapes.LoggingMixin",
    "reflstubs.shapes.Shape",
    "reflstubs.shapes.Square",
    "reflstubs.members.Account",
    "reflstubs.members.Savings",
]

FUNCTIONS = [
    "reflstubs.funcs.add",
    "reflstubs.funcs.counter",
    "reflstubs.funcs.fetch",
    "reflstubs.funcs.stream",
    "reflstubs.funcs.outer",
    "reflstubs.funcs.stub",
    "reflstubs.shapes.total_area",
    "reflstubs.shapes.build",
]


def _live(name: str) -> Any:
    module, _, attr = name.rpartition(".")
    return getattr(importlib.import_module(module), attr)


def _own_functions(cls: type) -> dict[str, Any]:
    """Plain functions declared in the class body, unwrapped from descriptors."""
    found = {}
    mangled = f"_{cls.__name__.lstrip('_')}__"
    prefix = f"{cls.__qualname__}."
    for attr, value in vars(cls).items():
        if isinstance(value, (staticmethod, classmethod)):
            value = value.__func__
        # typing injects helpers into Protocol bodies
        if not inspect.isfunction(value) or not value.__qualname__.startswith(prefix):
            continue
        found[attr] = value
    return {
        (f"__{attr[len(mangled):]}" if attr.startswith(mangled) else attr): value
        for attr, value in found.items()
    }


def _source_span(obj: Any) -> tuple[int, int]:
    lines, start = inspect.getsourcelines(obj)
    return start, start + len(lines) - 1


@pytest.mark.parametrize("name", CLASSES)
class TestClassParity:
    """Per-class agreement."""

    def test_identity_and_doc(self, engine: ReflectionEngine, name: str) -> None:
        """Names, docstrings and the debug snapshot match the class object."""
        live = _live(name)
        klass = engine.get_class(name)
        assert klass.get_short_name() == live.__name__
        assert klass.get_qualname() == live.__qualname__
        assert klass.get_doc_comment() == live.__doc__
        assert klass.debug_info() == {f: getattr(live, f) for f in klass.SNAPSHOT_FIELDS}

    def test_lines(self, engine: ReflectionEngine, name: str) -> None:
        """Source spans match ``inspect.getsourcelines``."""
        klass = engine.get_class(name)
        assert (klass.get_start_line(), klass.get_end_line()) == _source_span(_live(name))

    def test_abstract(self, engine: ReflectionEngine, name: str) -> None:
        """Abstractness matches ``inspect.isabstract``."""
        assert engine.get_class(name).is_abstract() == inspect.isabstract(_live(name))

    def test_methods(self, engine: ReflectionEngine, name: str) -> None:
        """Every declared function agrees on flags, lines, signature and snapshot."""
        live = _live(name)
        klass = engine.get_class(name)
        for attr, function in _own_functions(live).items():
            method = klass.get_method(attr)
            raw = vars(live)[mangle(name, attr)]
            assert method.get_declaring_class() is klass
            assert method.is_static() == isinstance(raw, staticmethod)
            assert method.is_classmethod() == isinstance(raw, classmethod)
            assert method.is_abstract() == getattr(function, "__isabstractmethod__", False)
            assert method.get_doc_comment() == function.__doc__
            assert (method.get_start_line(), method.get_end_line()) == _source_span(function)
            assert method.format_signature() == str(inspect.signature(function))
            assert method.debug_info() == {f: getattr(function, f) for f in method.SNAPSHOT_FIELDS}


@pytest.mark.parametrize("name", FUNCTIONS)
class TestFunctionParity:
    """Per-function agreement."""

    def test_signature(self, engine: ReflectionEngine, name: str) -> None:
        """Parameters and rendering match ``inspect.signature``."""
        live = _live(name)
        function = engine.get_function(name)
        signature = inspect.signature(live)
        assert [p.get_name() for p in function.get_parameters()] == list(signature.parameters)
        assert function.format_signature() == str(signature)
        required = [
            p
            for p in signature.parameters.values()
            if p.default is inspect.Parameter.empty
            and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        ]
        assert function.get_number_of_required_parameters() == len(required)

    def test_defaults(self, engine: ReflectionEngine, name: str) -> None:
        """Evaluated defaults equal the runtime defaults."""
        signature = inspect.signature(_live(name))
        for parameter in engine.get_function(name).get_parameters():
            expected = signature.parameters[parameter.get_name()].default
            if expected is inspect.Parameter.empty:
                assert not parameter.is_default_value_available()
            else:
                assert parameter.get_default_value() == expected

    def test_kind_flags(self, engine: ReflectionEngine, name: str) -> None:
        """Generator and coroutine flags match ``inspect``."""
        live = _live(name)
        function = engine.get_function(name)
        assert function.is_generator() == inspect.isgeneratorfunction(live)
        assert function.is_coroutine() == inspect.iscoroutinefunction(live)
        assert function.is_async_generator() == inspect.isasyncgenfunction(live)

    def test_doc_and_lines(self, engine: ReflectionEngine, name: str) -> None:
        """Docstrings, spans and the debug snapshot match the function object."""
        live = _live(name)
        function = engine.get_function(name)
        assert function.get_doc_comment() == live.__doc__
        assert function.debug_info() == {f: getattr(live, f) for f in function.SNAPSHOT_FIELDS}
        assert (function.get_start_line(), function.get_end_line()) == _source_span(live)
