"""
Type definitions for command execution.

This module defines the data structures used throughout the executor:
the tagged parameter values produced by validation, the execution result,
the caller-facing tool call result and the error taxonomy.
"""

import signal
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class ParameterType(str, Enum):
    """Declared type of a tool parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


def format_number(value: Union[int, float]) -> str:
    """Render a number the way it should appear on a command line."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_scalar(value: Union[str, int, float, bool]) -> str:
    """Render a scalar JSON value as a command-line argument."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


@dataclass(frozen=True)
class StringValue:
    """A validated string parameter."""

    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class NumberValue:
    """A validated number parameter."""

    value: Union[int, float]

    def render(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class BooleanValue:
    """A validated boolean parameter."""

    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class StringArrayValue:
    """
    A validated array parameter.

    Items are stored already rendered as strings, in caller order.
    They are sanitized one by one when the template is expanded.
    """

    items: tuple[str, ...]


ScalarValue = Union[StringValue, NumberValue, BooleanValue]
ParamValue = Union[StringValue, NumberValue, BooleanValue, StringArrayValue]


@dataclass
class ExecutionResult:
    """
    Result of a finished subprocess.

    Attributes:
        exit_code: Process exit code (0 if the process died from a signal)
        stdout: Captured standard output, decoded and trimmed
        stderr: Captured standard error, decoded and trimmed
        success: True only when the process exited normally with code 0
        execution_time_ms: Wall-clock time from spawn to exit
        signal: Number of the signal that killed the process, if any
    """

    exit_code: int
    stdout: str
    stderr: str
    success: bool
    execution_time_ms: int
    signal: Optional[int] = None

    @property
    def signal_name(self) -> Optional[str]:
        if self.signal is None:
            return None
        try:
            return signal.Signals(self.signal).name
        except ValueError:
            return str(self.signal)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "success": self.success,
            "execution_time_ms": self.execution_time_ms,
            "signal": self.signal,
        }


@dataclass
class ToolCallResult:
    """
    What the engine hands back to the protocol layer for one call.

    Either the formatted transcript of a finished command, or an error
    message with is_error set.
    """

    text: str
    is_error: bool = False
    error_code: Optional[str] = None
    result: Optional[ExecutionResult] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Render as an MCP CallToolResult payload."""
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


# =============================================================================
# Errors
# =============================================================================
class ExecutorError(Exception):
    """Base exception for executor errors."""

    code = "EXECUTOR_ERROR"


class ConfigurationMissingError(ExecutorError):
    """Raised when no tool registry is loaded."""

    code = "CONFIGURATION_MISSING"

    def __init__(self) -> None:
        super().__init__("No configuration loaded")


class ToolNotFoundError(ExecutorError):
    """Raised when the requested tool is not in the registry."""

    code = "TOOL_NOT_FOUND"

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ParameterValidationError(ExecutorError):
    """Base class for argument validation failures."""

    code = "INVALID_PARAMETER"

    def __init__(self, message: str, parameter: str):
        super().__init__(message)
        self.parameter = parameter


class MissingParameterError(ParameterValidationError):
    code = "MISSING_PARAMETER"

    def __init__(self, parameter: str):
        super().__init__(f"Missing required parameter: {parameter}", parameter)


class TypeMismatchError(ParameterValidationError):
    code = "TYPE_MISMATCH"

    def __init__(self, parameter: str, expected: str):
        article = "an" if expected[0] in "aeiou" else "a"
        super().__init__(f"Parameter {parameter} must be {article} {expected}", parameter)
        self.expected = expected


class PatternMismatchError(ParameterValidationError):
    code = "PATTERN_MISMATCH"

    def __init__(self, parameter: str, pattern: str):
        super().__init__(
            f"Parameter {parameter} does not match pattern: {pattern}", parameter
        )
        self.pattern = pattern


class SandboxViolationError(ExecutorError):
    """Raised when a path parameter resolves outside the allowed directories."""

    code = "SANDBOX_VIOLATION"

    def __init__(self, path: str):
        super().__init__(f"File not in allowed directories: {path}")
        self.path = path


class SanitizationError(ExecutorError):
    """Base class for values rejected before they become arguments."""

    code = "UNSAFE_PARAMETER"

    def __init__(self, message: str, value: str):
        super().__init__(message)
        self.value = value


class DangerousCharacterError(SanitizationError):
    code = "DANGEROUS_CHARACTER"

    def __init__(self, value: str):
        super().__init__(f"Parameter contains dangerous characters: {value}", value)


class NullByteError(SanitizationError):
    code = "NULL_BYTE"

    def __init__(self, value: str):
        super().__init__("Parameter contains null byte", value)


class RateLimitExceededError(ExecutorError):
    """Raised when a caller exceeds its per-minute invocation ceiling."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, caller_id: str, limit: int):
        super().__init__("Rate limit exceeded")
        self.caller_id = caller_id
        self.limit = limit


class CommandExecutionError(ExecutorError):
    """Base class for failures once execution has been attempted."""

    code = "EXECUTION_ERROR"


class CommandNotAllowedError(CommandExecutionError):
    code = "COMMAND_NOT_ALLOWED"

    def __init__(self, command: str):
        super().__init__(f"Command not allowed: {command}")
        self.command = command


class SpawnFailureError(CommandExecutionError):
    code = "SPAWN_FAILURE"

    def __init__(self, command: str, reason: str):
        super().__init__(f"Failed to start command: {reason}")
        self.command = command
        self.reason = reason


class ResourceLimitError(CommandExecutionError):
    """Base class for limit breaches that terminate the child process."""

    code = "RESOURCE_LIMIT"


class CommandTimeoutError(ResourceLimitError):
    code = "TIMEOUT"

    def __init__(self, command: str, timeout_ms: int):
        super().__init__(f"Command timed out after {timeout_ms}ms: {command}")
        self.command = command
        self.timeout_ms = timeout_ms


class OutputSizeExceededError(ResourceLimitError):
    code = "OUTPUT_SIZE_EXCEEDED"

    def __init__(self, limit: int):
        super().__init__("Output size limit exceeded")
        self.limit = limit
