"""
Command execution engine with security enforcement.

This module handles:
- Parameter validation against tool schemas
- Per-value sanitization and argument template expansion
- Directory sandboxing and rate limiting
- Async subprocess execution with timeout and output limits
"""

from cbx_mcp_exec.executor.types import (
    BooleanValue,
    CommandExecutionError,
    CommandNotAllowedError,
    CommandTimeoutError,
    ConfigurationMissingError,
    DangerousCharacterError,
    ExecutionResult,
    ExecutorError,
    MissingParameterError,
    NullByteError,
    NumberValue,
    OutputSizeExceededError,
    ParameterValidationError,
    ParamValue,
    PatternMismatchError,
    RateLimitExceededError,
    ResourceLimitError,
    SandboxViolationError,
    SanitizationError,
    SpawnFailureError,
    StringArrayValue,
    StringValue,
    ToolCallResult,
    ToolNotFoundError,
    TypeMismatchError,
)
from cbx_mcp_exec.executor.validator import ParameterValidator, validate_arguments
from cbx_mcp_exec.executor.sanitizer import sanitize_parameter
from cbx_mcp_exec.executor.template import substitute_parameters
from cbx_mcp_exec.executor.sandbox import PathSandbox
from cbx_mcp_exec.executor.rate_limiter import RateLimiter
from cbx_mcp_exec.executor.runner import CommandRunner
from cbx_mcp_exec.executor.formatter import format_command_result
from cbx_mcp_exec.executor.engine import CallMetrics, CommandExecutionEngine

__all__ = [
    # Values and results
    "StringValue",
    "NumberValue",
    "BooleanValue",
    "StringArrayValue",
    "ParamValue",
    "ExecutionResult",
    "ToolCallResult",
    # Exceptions
    "ExecutorError",
    "ConfigurationMissingError",
    "ToolNotFoundError",
    "ParameterValidationError",
    "MissingParameterError",
    "TypeMismatchError",
    "PatternMismatchError",
    "SandboxViolationError",
    "SanitizationError",
    "DangerousCharacterError",
    "NullByteError",
    "RateLimitExceededError",
    "CommandExecutionError",
    "CommandNotAllowedError",
    "SpawnFailureError",
    "ResourceLimitError",
    "CommandTimeoutError",
    "OutputSizeExceededError",
    # Pipeline
    "ParameterValidator",
    "validate_arguments",
    "sanitize_parameter",
    "substitute_parameters",
    "PathSandbox",
    "RateLimiter",
    "CommandRunner",
    "format_command_result",
    "CallMetrics",
    "CommandExecutionEngine",
]
