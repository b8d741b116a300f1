# tests/unit/test_validator.py
"""
Unit tests for argument validation.
"""

import pytest

from cbx_mcp_exec.config import ParameterSpec
from cbx_mcp_exec.executor import (
    BooleanValue,
    MissingParameterError,
    NumberValue,
    ParameterValidator,
    PatternMismatchError,
    StringArrayValue,
    StringValue,
    TypeMismatchError,
    validate_arguments,
)


def spec(**kwargs) -> ParameterSpec:
    return ParameterSpec.model_validate(kwargs)


class TestRequiredParameters:
    """Tests for presence and defaults."""

    def test_required_string(self):
        params = validate_arguments({"message": spec(type="string")}, {"message": "hi"})
        assert params == {"message": StringValue("hi")}

    def test_missing_required(self):
        with pytest.raises(MissingParameterError) as exc_info:
            validate_arguments({"message": spec(type="string")}, {})

        assert str(exc_info.value) == "Missing required parameter: message"
        assert exc_info.value.parameter == "message"
        assert exc_info.value.code == "MISSING_PARAMETER"

    def test_none_arguments_treated_as_empty(self):
        with pytest.raises(MissingParameterError):
            validate_arguments({"message": spec(type="string")}, None)

    def test_null_value_is_missing(self):
        with pytest.raises(MissingParameterError):
            validate_arguments({"message": spec(type="string")}, {"message": None})

    def test_required_with_default(self):
        params = validate_arguments(
            {"format": spec(type="string", default="txt")}, {}
        )
        assert params == {"format": StringValue("txt")}

    def test_optional_absent_is_omitted(self):
        params = validate_arguments(
            {"verbose": spec(type="boolean", required=False, default=True)}, {}
        )
        assert params == {}

    def test_extra_arguments_ignored(self):
        params = validate_arguments(
            {"message": spec(type="string")}, {"message": "hi", "other": 1}
        )
        assert list(params) == ["message"]


class TestTypeChecks:
    """Tests for per-type checks."""

    def test_number(self):
        params = validate_arguments({"n": spec(type="number")}, {"n": 2.5})
        assert params["n"] == NumberValue(2.5)
        assert params["n"].render() == "2.5"

    def test_integral_number_renders_without_fraction(self):
        params = validate_arguments({"n": spec(type="number")}, {"n": 3.0})
        assert params["n"].render() == "3"

    def test_bool_is_not_a_number(self):
        with pytest.raises(TypeMismatchError, match="Parameter n must be a number"):
            validate_arguments({"n": spec(type="number")}, {"n": True})

    def test_boolean(self):
        params = validate_arguments({"flag": spec(type="boolean")}, {"flag": False})
        assert params["flag"] == BooleanValue(False)
        assert params["flag"].render() == "false"

    def test_string_for_boolean(self):
        with pytest.raises(TypeMismatchError, match="Parameter flag must be a boolean"):
            validate_arguments({"flag": spec(type="boolean")}, {"flag": "true"})

    def test_number_for_string(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            validate_arguments({"message": spec(type="string")}, {"message": 42})
        assert exc_info.value.code == "TYPE_MISMATCH"

    def test_array(self):
        params = validate_arguments(
            {"files": spec(type="array", items={"type": "string"})},
            {"files": ["a.txt", "b.txt"]},
        )
        assert params["files"] == StringArrayValue(("a.txt", "b.txt"))

    def test_array_scalars_are_rendered(self):
        params = validate_arguments(
            {"values": spec(type="array")}, {"values": [1, 2.5, True]}
        )
        assert params["values"].items == ("1", "2.5", "true")

    def test_empty_array(self):
        params = validate_arguments({"files": spec(type="array")}, {"files": []})
        assert params["files"].items == ()

    def test_string_for_array(self):
        with pytest.raises(TypeMismatchError, match="Parameter files must be an array"):
            validate_arguments({"files": spec(type="array")}, {"files": "a.txt"})

    def test_nested_array_rejected(self):
        with pytest.raises(TypeMismatchError):
            validate_arguments({"files": spec(type="array")}, {"files": [["a"]]})


class TestPatterns:
    """Tests for string pattern constraints."""

    def test_pattern_match(self):
        params = validate_arguments(
            {"format": spec(type="string", pattern="^(txt|md)$")}, {"format": "md"}
        )
        assert params["format"] == StringValue("md")

    def test_pattern_mismatch(self):
        with pytest.raises(PatternMismatchError) as exc_info:
            validate_arguments(
                {"format": spec(type="string", pattern="^(txt|md)$")}, {"format": "pdf"}
            )
        assert str(exc_info.value) == "Parameter format does not match pattern: ^(txt|md)$"
        assert exc_info.value.code == "PATTERN_MISMATCH"

    def test_pattern_must_match_whole_value(self):
        with pytest.raises(PatternMismatchError):
            validate_arguments(
                {"name": spec(type="string", pattern="[a-z]+")}, {"name": "abc123"}
            )

    def test_default_is_checked_against_pattern(self):
        with pytest.raises(PatternMismatchError):
            validate_arguments(
                {"format": spec(type="string", pattern="^(txt|md)$", default="pdf")}, {}
            )

    def test_compiled_patterns_are_cached(self):
        validator = ParameterValidator()
        parameters = {"format": spec(type="string", pattern="^(txt|md)$")}

        validator.validate(parameters, {"format": "txt"})
        validator.validate(parameters, {"format": "md"})

        assert list(validator._compiled) == ["^(txt|md)$"]
