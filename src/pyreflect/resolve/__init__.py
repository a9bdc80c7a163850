"""Name, inheritance and constant-expression resolution."""

from pyreflect.resolve.namespace import NamespaceContext, NamespaceResolver
from pyreflect.resolve.evaluator import UNKNOWN, ConstantExpressionEvaluator, EvaluationScope
from pyreflect.resolve.inheritance import ExternalClass, InheritanceResolver

__all__ = [
    "UNKNOWN",
    "ConstantExpressionEvaluator",
    "EvaluationScope",
    "ExternalClass",
    "InheritanceResolver",
    "NamespaceContext",
    "NamespaceResolver",
]
