"""Tests for ReflectionClass."""

from pathlib import Path

import pytest

from pyreflect.core.errors import ClassNotFound, ConstantNotFound, MethodNotFound, PropertyNotFound
from pyreflect.engine import ReflectionEngine
from pyreflect.reflection.base import Modifier
from pyreflect.reflection.klass import ClassKind, ReflectionClass
from pyreflect.source.locator import SearchPathLocator


class TestIdentity:
    """Names, files and registry identity."""

    def test_names(self, engine: ReflectionEngine) -> None:
        """Fully-qualified, short and namespace names."""
        klass = engine.get_class("reflstubs.shapes.Square")
        assert klass.get_name() == "reflstubs.shapes.Square"
        assert klass.get_short_name() == "Square"
        assert klass.get_namespace_name() == "reflstubs.shapes"
        assert klass.in_namespace()
        assert klass.get_file_name().endswith("shapes.py")
        assert repr(klass) == "<ReflectionClass reflstubs.shapes.Square>"

    def test_registry_returns_same_instance(self, engine: ReflectionEngine) -> None:
        """The engine hands out one entity per class."""
        first = engine.get_class("reflstubs.shapes.Square")
        assert engine.get_class("reflstubs.shapes.Square") is first
        assert engine.get_class("reflstubs.shapes.SQUARE") is first

    def test_direct_construction_is_fresh(self, engine: ReflectionEngine) -> None:
        """Constructing directly builds a new view over the same declaration."""
        direct = ReflectionClass("reflstubs.shapes.Square")
        registered = engine.get_class("reflstubs.shapes.Square")
        assert direct is not registered
        assert direct.get_node() is registered.get_node()

    def test_unknown_class(self, engine: ReflectionEngine) -> None:
        """Unknown names raise ClassNotFound."""
        with pytest.raises(ClassNotFound):
            engine.get_class("reflstubs.shapes.Hexagon")
        with pytest.raises(ClassNotFound):
            ReflectionClass("nowhere.Thing", engine=engine)

    def test_lines_and_doc(self, engine: ReflectionEngine) -> None:
        """Start/end lines cover the class statement; the docstring is raw."""
        klass = engine.get_class("reflstubs.hierarchy.Plain")
        assert klass.get_end_line() - klass.get_start_line() == 1
        assert klass.get_doc_comment() == "Inherits foo without overriding it."

    def test_debug_info(self, engine: ReflectionEngine) -> None:
        """The snapshot mirrors the live dunder attributes."""
        assert engine.get_class("reflstubs.hierarchy.Leaf").debug_info() == {
            "__name__": "Leaf",
            "__qualname__": "Leaf",
            "__module__": "reflstubs.hierarchy",
        }

    def test_str_summary(self, engine: ReflectionEngine) -> None:
        """str() lists kind, bases and members."""
        text = str(engine.get_class("reflstubs.constants.Limits"))
        assert text.startswith("class reflstubs.constants.Limits(builtins.object)")
        assert "const HIGH = LOW * 100" in text


class TestKind:
    """Interfaces, traits, enums and abstractness."""

    @pytest.mark.parametrize(
        ("name", "kind"),
        [
            ("reflstubs.shapes.Drawable", ClassKind.INTERFACE),
            ("reflstubs.shapes.LoggingMixin", ClassKind.TRAIT),
            ("reflstubs.shapes.Shape", ClassKind.CLASS),
        ],
    )
    def test_kind(self, engine: ReflectionEngine, name: str, kind: ClassKind) -> None:
        """Protocols are interfaces and mixins are traits."""
        assert engine.get_class(name).get_kind() is kind

    def test_abstract_and_instantiable(self, engine: ReflectionEngine) -> None:
        """Abstract classes and protocols cannot be instantiated."""
        shape = engine.get_class("reflstubs.shapes.Shape")
        square = engine.get_class("reflstubs.shapes.Square")
        assert shape.is_abstract()
        assert shape.get_modifiers() & Modifier.ABSTRACT
        assert not shape.is_instantiable()
        assert not square.is_abstract()
        assert square.is_instantiable()
        assert square.is_cloneable()
        assert not engine.get_class("reflstubs.shapes.Drawable").is_instantiable()

    def test_enum(self, engine: ReflectionEngine) -> None:
        """Enum members are constants and enum cases."""
        color = engine.get_class("reflstubs.broken.Color")
        assert color.is_enum()
        assert not color.is_instantiable()
        assert color.get_constants() == {"RED": 1, "GREEN": 2}
        constant = color.get_reflection_constant("RED")
        assert constant is not None
        assert constant.is_enum_case()

    def test_abstract_without_abc_meta(self, tmp_path: Path) -> None:
        """abstractmethod alone does not make a class abstract without ABCMeta."""
        (tmp_path / "plainabs.py").write_text(
            "import abc\n\n"
            "class Loose:\n"
            "    @abc.abstractmethod\n"
            "    def run(self):\n"
            "        pass\n\n"
            "class Strict(metaclass=abc.ABCMeta):\n"
            "    @abc.abstractmethod\n"
            "    def run(self):\n"
            "        pass\n"
        )
        engine = ReflectionEngine(SearchPathLocator([tmp_path]))
        assert not engine.get_class("plainabs.Loose").is_abstract()
        assert engine.get_class("plainabs.Strict").is_abstract()
        assert engine.get_class("plainabs.Strict").get_metaclass_name() == "abc.ABCMeta"


class TestHierarchy:
    """Parents, interfaces and traits."""

    def test_parent_class(self, engine: ReflectionEngine) -> None:
        """The parent is the first plain indexed base."""
        leaf = engine.get_class("reflstubs.hierarchy.Leaf")
        parent = leaf.get_parent_class()
        assert parent is engine.get_class("reflstubs.hierarchy.Mid")
        assert engine.get_class("reflstubs.shapes.Square").get_parent_class_name() == (
            "reflstubs.shapes.Shape"
        )

    def test_external_parent(self, engine: ReflectionEngine) -> None:
        """External bases have a name but no entity."""
        base = engine.get_class("reflstubs.hierarchy.Base")
        assert base.get_parent_class() is None
        assert base.get_parent_class_name() == "abc.ABC"
        assert engine.get_class("reflstubs.members.Account").get_parent_class_name() is None

    def test_interfaces(self, engine: ReflectionEngine) -> None:
        """Protocol bases are interfaces, matched case-insensitively."""
        square = engine.get_class("reflstubs.shapes.Square")
        assert square.get_interface_names() == ["reflstubs.shapes.Drawable"]
        assert square.implements_interface("REFLSTUBS.SHAPES.drawable")
        assert not engine.get_class("reflstubs.shapes.Shape").get_interface_names()

    def test_traits(self, engine: ReflectionEngine) -> None:
        """Direct mixin bases are traits."""
        shape = engine.get_class("reflstubs.shapes.Shape")
        assert shape.get_trait_names() == ["reflstubs.shapes.LoggingMixin"]
        assert shape.get_traits()["reflstubs.shapes.LoggingMixin"].is_trait()

    def test_is_subclass_of(self, engine: ReflectionEngine) -> None:
        """Subclass checks accept names or entities, never the class itself."""
        leaf = engine.get_class("reflstubs.hierarchy.Leaf")
        base = engine.get_class("reflstubs.hierarchy.Base")
        assert leaf.is_subclass_of(base)
        assert leaf.is_subclass_of("abc.ABC")
        assert not leaf.is_subclass_of(leaf)
        assert not base.is_subclass_of("reflstubs.hierarchy.Leaf")


class TestMembers:
    """Method, property and constant lookup."""

    def test_methods_in_mro_order(self, engine: ReflectionEngine) -> None:
        """Own methods first, then inherited ones, each name once."""
        square = engine.get_class("reflstubs.shapes.Square")
        assert [m.get_name() for m in square.get_methods()] == [
            "__init__",
            "area",
            "draw",
            "scale",
            "unit",
            "describe",
            "log",
        ]

    def test_method_filter(self, engine: ReflectionEngine) -> None:
        """Modifier masks filter methods."""
        square = engine.get_class("reflstubs.shapes.Square")
        assert [m.get_name() for m in square.get_methods(Modifier.STATIC)] == ["unit"]
        assert [m.get_name() for m in square.get_methods(Modifier.CLASSMETHOD)] == ["describe"]

    def test_case_insensitive_fallback(self, engine: ReflectionEngine) -> None:
        """Exact case wins; otherwise the first folded match is used."""
        klass = engine.get_class("reflstubs.sub.aliases.CaseSensitive")
        assert klass.get_method("render").get_name() == "render"
        assert klass.get_method("Render").get_name() == "Render"
        assert klass.get_method("RENDER").get_name() == "Render"
        assert engine.get_class("reflstubs.shapes.Square").has_method("AREA")

    def test_case_sensitive_config(self, fixtures_root: Path) -> None:
        """With case-insensitive lookup off, only exact names match."""
        from pyreflect.config.models import PyReflectConfig, ReflectionConfig

        config = PyReflectConfig(reflection=ReflectionConfig(case_insensitive_lookup=False))
        engine = ReflectionEngine(SearchPathLocator([fixtures_root]), config=config)
        square = engine.get_class("reflstubs.shapes.Square")
        assert not square.has_method("AREA")
        assert engine.find_class("reflstubs.shapes.SQUARE") is None

    def test_missing_members_raise(self, engine: ReflectionEngine) -> None:
        """Unknown members raise their specific error."""
        square = engine.get_class("reflstubs.shapes.Square")
        with pytest.raises(MethodNotFound):
            square.get_method("rotate")
        with pytest.raises(PropertyNotFound):
            square.get_property("colour")
        with pytest.raises(ConstantNotFound):
            square.get_constant("CORNERS")
        assert square.get_reflection_constant("CORNERS") is None

    def test_constructor(self, engine: ReflectionEngine) -> None:
        """The constructor is __init__, inherited or not."""
        assert engine.get_class("reflstubs.shapes.Square").get_constructor().is_constructor()
        assert engine.get_class("reflstubs.shapes.LoggingMixin").get_constructor() is None
        savings_init = engine.get_class("reflstubs.members.Savings").get_constructor()
        assert savings_init.get_class_name() == "reflstubs.members.Account"

    def test_constants_overridden(self, engine: ReflectionEngine) -> None:
        """Redeclared constants shadow inherited ones."""
        assert engine.get_class("reflstubs.shapes.Square").get_constant("SIDES") == 4
        assert engine.get_class("reflstubs.shapes.Shape").get_constant("SIDES") == 0
        assert engine.get_class("reflstubs.hierarchy.Leaf").has_constant("LIMIT")

    def test_properties(self, engine: ReflectionEngine) -> None:
        """Class attributes, annotations, instance attributes and descriptors."""
        account = engine.get_class("reflstubs.members.Account")
        assert [p.get_name() for p in account.get_properties()] == [
            "owner",
            "_audit",
            "__pin",
            "count",
            "currency",
            "doubled",
            "nickname",
            "balance",
            "_history",
            "__secret",
        ]

    def test_default_and_static_properties(self, engine: ReflectionEngine) -> None:
        """Only declared defaults are reported."""
        account = engine.get_class("reflstubs.members.Account")
        assert account.get_default_properties() == {
            "owner": "nobody",
            "_audit": True,
            "__pin": 1234,
            "count": 0,
        }
        assert account.get_static_properties() == {"owner": "nobody", "_audit": True, "__pin": 1234}
        assert engine.get_class("reflstubs.shapes.Square").get_static_properties() == {
            "registry": []
        }

    def test_nested_classes(self, tmp_path: Path) -> None:
        """Nested classes are reflected with dotted qualnames."""
        (tmp_path / "nesting.py").write_text(
            "from typing import final\n\n"
            "@final\n"
            "class Outer:\n"
            "    class Inner:\n"
            "        VALUE = 1\n"
        )
        engine = ReflectionEngine(SearchPathLocator([tmp_path]))
        outer = engine.get_class("nesting.Outer")
        (inner,) = outer.get_nested_classes()
        assert inner.get_name() == "nesting.Outer.Inner"
        assert inner.get_qualname() == "Outer.Inner"
        assert inner.get_constant("VALUE") == 1
        assert outer.is_final()
        assert outer.get_start_line() == 3


class TestLive:
    """Value-level class operations."""

    def test_new_instance(self, engine: ReflectionEngine) -> None:
        """Instances are built through the live class."""
        square_class = engine.get_class("reflstubs.shapes.Square")
        square = square_class.new_instance(2)
        assert square.area() == 4
        assert square_class.is_instance(square)
        assert square_class.new_instance_args([3], {"label": "x"}).label == "x"
        assert square_class.get_live_class() is type(square)

    def test_new_instance_without_constructor(self, engine: ReflectionEngine) -> None:
        """Allocation skips __init__."""
        square = engine.get_class("reflstubs.shapes.Square").new_instance_without_constructor()
        assert not hasattr(square, "side")

    def test_static_property_values(self, engine: ReflectionEngine) -> None:
        """Static properties are read and written on the live class."""
        account = engine.get_class("reflstubs.members.Account")
        assert account.get_static_property_value("owner") == "nobody"
        assert account.get_static_property_value("missing", "fallback") == "fallback"
        with pytest.raises(PropertyNotFound):
            account.get_static_property_value("missing")

        account.set_static_property_value("owner", "bank")
        try:
            assert account.get_live_class().owner == "bank"
        finally:
            account.set_static_property_value("owner", "nobody")
