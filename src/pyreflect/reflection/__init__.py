"""Reflection object model: file, namespace, class and member entities."""

from pyreflect.reflection.base import Modifier, NameMap, Visibility
from pyreflect.reflection.klass import ClassKind, ReflectionClass
from pyreflect.reflection.constant import ReflectionClassConstant
from pyreflect.reflection.file import ReflectionFile, ReflectionFileNamespace
from pyreflect.reflection.function import ReflectionFunction, ReflectionFunctionAbstract
from pyreflect.reflection.members import MemberKind, PropertyOrigin
from pyreflect.reflection.method import ReflectionMethod
from pyreflect.reflection.parameter import ParameterKind, ReflectionParameter
from pyreflect.reflection.property import ReflectionProperty
from pyreflect.reflection.types import ClassType, NullableType, ScalarType, TypeHint, UnionType

__all__ = [
    "ClassKind",
    "ClassType",
    "MemberKind",
    "Modifier",
    "NameMap",
    "NullableType",
    "ParameterKind",
    "PropertyOrigin",
    "ReflectionClass",
    "ReflectionClassConstant",
    "ReflectionFile",
    "ReflectionFileNamespace",
    "ReflectionFunction",
    "ReflectionFunctionAbstract",
    "ReflectionMethod",
    "ReflectionParameter",
    "ReflectionProperty",
    "ScalarType",
    "TypeHint",
    "UnionType",
    "Visibility",
]
