"""Tests for error types and codes."""

import pytest

from pyreflect.core.errors import (
    AccessDenied,
    CircularInheritance,
    ClassNotFound,
    ConfigError,
    ErrorCode,
    InconsistentHierarchy,
    InheritanceError,
    InvalidTarget,
    NotLoaded,
    ParseError,
    ReflectionError,
    SymbolNotFound,
    UnsupportedExpression,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.SOURCE_SYNTAX_ERROR, 3000),
            (ErrorCode.CLASS_NOT_FOUND, 4000),
            (ErrorCode.CIRCULAR_INHERITANCE, 5000),
            (ErrorCode.UNSUPPORTED_EXPRESSION, 6000),
            (ErrorCode.ACCESS_DENIED, 7000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000


class TestReflectionError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = ReflectionError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = ReflectionError(code=ErrorCode.NOT_LOADED, message="Something broke")

        # When
        result = str(error)

        # Then
        assert result == "[7003] NOT_LOADED: Something broke"

    def test_errors_are_raisable(self) -> None:
        """Frozen dataclass errors still behave as exceptions."""
        with pytest.raises(ReflectionError):
            raise NotLoaded.for_name("pkg.thing", "boom")


class TestFactories:
    """Factory classmethod tests."""

    def test_config_parse_error(self) -> None:
        """parse_error records path and reason."""
        error = ConfigError.parse_error("/tmp/pyreflect.yaml", "bad indent")
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert error.details == {"path": "/tmp/pyreflect.yaml", "reason": "bad indent"}

    def test_parse_error_exposes_line(self) -> None:
        """ParseError carries the failing line."""
        error = ParseError.syntax_error("mod.py", 7, "invalid syntax")
        assert error.line == 7
        assert "mod.py" in error.message

    def test_class_not_found_is_symbol_not_found(self) -> None:
        """Lookup errors share the SymbolNotFound base."""
        error = ClassNotFound.for_name("pkg.Missing")
        assert isinstance(error, SymbolNotFound)
        assert error.code == ErrorCode.CLASS_NOT_FOUND
        assert error.details["name"] == "pkg.Missing"

    def test_circular_inheritance_message_lists_chain(self) -> None:
        """The chain is rendered in walk order."""
        error = CircularInheritance.for_chain(["m.A", "m.B", "m.A"])
        assert isinstance(error, InheritanceError)
        assert error.message == "Circular inheritance: m.A -> m.B -> m.A"

    def test_inconsistent_hierarchy_records_bases(self) -> None:
        """Bases are kept for diagnostics."""
        error = InconsistentHierarchy.for_class("m.Z", ["m.X", "m.Y"])
        assert error.details == {"class": "m.Z", "bases": ["m.X", "m.Y"]}

    def test_unsupported_expression(self) -> None:
        """The expression text is part of the message."""
        error = UnsupportedExpression.for_node("len(x)", "calls are not evaluated")
        assert "len(x)" in error.message
        assert error.details["reason"] == "calls are not evaluated"

    def test_access_denied_mentions_set_accessible(self) -> None:
        """Access errors tell the caller how to opt in."""
        error = AccessDenied.for_member("method", "m.C._hidden", "protected")
        assert "set_accessible(True)" in error.message
        assert error.details["visibility"] == "protected"

    @pytest.mark.parametrize(
        "error",
        [
            InvalidTarget.instance_required("m.C.run"),
            InvalidTarget.wrong_instance("m.C", "int"),
        ],
    )
    def test_invalid_target_code(self, error: InvalidTarget) -> None:
        """Both target failures share one code."""
        assert error.code == ErrorCode.INVALID_TARGET

    def test_not_loaded_default_reason(self) -> None:
        """NotLoaded defaults its reason."""
        error = NotLoaded.for_name("m.C")
        assert error.details == {"name": "m.C", "reason": "not loaded"}
