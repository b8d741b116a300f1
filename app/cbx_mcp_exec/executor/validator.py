"""
Argument validation against a tool's parameter schema.

Turns the caller's raw JSON arguments into tagged parameter values.
Validation never executes anything: it either returns the validated
mapping or raises a ParameterValidationError naming the parameter.
"""

import re
from collections.abc import Mapping
from typing import Any

from cbx_mcp_exec.config.models import ParameterSpec
from cbx_mcp_exec.executor.types import (
    BooleanValue,
    MissingParameterError,
    NumberValue,
    ParamValue,
    PatternMismatchError,
    StringArrayValue,
    StringValue,
    TypeMismatchError,
    format_scalar,
)


class ParameterValidator:
    """
    Validates tool arguments against parameter specs.

    Compiled patterns are cached per validator instance.
    """

    def __init__(self) -> None:
        self._compiled: dict[str, re.Pattern] = {}

    def validate(
        self,
        parameters: Mapping[str, ParameterSpec],
        arguments: Mapping[str, Any] | None,
    ) -> dict[str, ParamValue]:
        """
        Validate raw arguments.

        Args:
            parameters: The tool's parameter schema
            arguments: Raw argument mapping from the caller

        Returns:
            Mapping of parameter name to tagged value. Optional parameters
            that were not supplied are absent.

        Raises:
            MissingParameterError, TypeMismatchError, PatternMismatchError
        """
        arguments = arguments or {}
        validated: dict[str, ParamValue] = {}

        for name, spec in parameters.items():
            value = arguments.get(name)

            if value is None:
                if not spec.required:
                    continue
                if not spec.has_default:
                    raise MissingParameterError(name)
                # Defaults come from the registry and are checked like input
                value = spec.default

            validated[name] = self._validate_value(name, spec, value)

        return validated

    def _validate_value(self, name: str, spec: ParameterSpec, value: Any) -> ParamValue:
        if spec.type == "string":
            if not isinstance(value, str):
                raise TypeMismatchError(name, "string")
            if spec.pattern is not None and not self._pattern(spec.pattern).fullmatch(value):
                raise PatternMismatchError(name, spec.pattern)
            return StringValue(value)

        if spec.type == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeMismatchError(name, "number")
            return NumberValue(value)

        if spec.type == "boolean":
            if not isinstance(value, bool):
                raise TypeMismatchError(name, "boolean")
            return BooleanValue(value)

        # array: items are only shape-checked, the sanitizer vets their content
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise TypeMismatchError(name, "array")
        items = []
        for item in value:
            if item is None or isinstance(item, (dict, list, tuple)):
                raise TypeMismatchError(name, "array of scalar values")
            items.append(format_scalar(item))
        return StringArrayValue(tuple(items))

    def _pattern(self, pattern: str) -> re.Pattern:
        compiled = self._compiled.get(pattern)
        if compiled is None:
            compiled = re.compile(pattern)
            self._compiled[pattern] = compiled
        return compiled


def validate_arguments(
    parameters: Mapping[str, ParameterSpec],
    arguments: Mapping[str, Any] | None,
) -> dict[str, ParamValue]:
    """Convenience wrapper for one-off validation."""
    return ParameterValidator().validate(parameters, arguments)
