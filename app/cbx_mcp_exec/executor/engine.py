"""
Command execution engine.

Ties the pipeline together for one tool call:

    lookup -> validate -> sandbox -> substitute (sanitize)
           -> rate limit -> execute -> format

call_tool() is the call boundary: every ExecutorError raised along the way
becomes an error ToolCallResult instead of propagating to the server.
"""

from collections.abc import Mapping
from typing import Any, Optional, Protocol

from cbx_mcp_exec.config.models import ToolConfig, ToolRegistryConfig
from cbx_mcp_exec.executor.formatter import format_command_result
from cbx_mcp_exec.executor.rate_limiter import DEFAULT_CALLER, RateLimiter
from cbx_mcp_exec.executor.runner import CommandRunner
from cbx_mcp_exec.executor.sandbox import PathSandbox
from cbx_mcp_exec.executor.template import substitute_parameters
from cbx_mcp_exec.executor.types import (
    CommandExecutionError,
    CommandNotAllowedError,
    CommandTimeoutError,
    ConfigurationMissingError,
    ExecutionResult,
    ExecutorError,
    OutputSizeExceededError,
    ParameterValidationError,
    RateLimitExceededError,
    SandboxViolationError,
    SanitizationError,
    ToolCallResult,
    ToolNotFoundError,
)
from cbx_mcp_exec.executor.validator import ParameterValidator
from cbx_mcp_exec.utils.logging import format_command_line, get_logger

logger = get_logger(__name__)

class CallMetrics(Protocol):
    """Outcome counters the engine reports to (see http.metrics.MetricsCollector)."""

    def inc_tool_call(self, tool_name: str, success: bool = True, blocked: bool = False) -> None: ...

    def inc_rate_limited(self) -> None: ...

    def inc_timeout(self) -> None: ...

    def inc_output_limit(self) -> None: ...


# Refused before anything was spawned
_BLOCKED_ERRORS = (
    ParameterValidationError,
    SandboxViolationError,
    SanitizationError,
    RateLimitExceededError,
    CommandNotAllowedError,
)


class CommandExecutionEngine:
    """
    Runs registry-defined tools as constrained subprocesses.

    The registry is read-only; a reload swaps it as a whole. The rate
    limiter is the only mutable state shared between calls.
    """

    def __init__(
        self,
        registry: Optional[ToolRegistryConfig],
        rate_limiter: Optional[RateLimiter] = None,
        metrics: Optional[CallMetrics] = None,
    ):
        """
        Args:
            registry: Loaded tool registry, or None if nothing could be loaded
            rate_limiter: Shared limiter; created from the registry policy if omitted
            metrics: Optional collector for call outcomes
        """
        self.rate_limiter = rate_limiter or RateLimiter()
        self.metrics = metrics
        self.validator = ParameterValidator()
        self._registry: Optional[ToolRegistryConfig] = None
        self._runner = CommandRunner()
        self.load_registry(registry, configure_limiter=rate_limiter is None)

    @property
    def registry(self) -> Optional[ToolRegistryConfig]:
        return self._registry

    def load_registry(
        self,
        registry: Optional[ToolRegistryConfig],
        configure_limiter: bool = True,
    ) -> None:
        """Install a (new) registry and the security policy that comes with it."""
        self._registry = registry
        if registry is None:
            self._runner = CommandRunner()
            return

        self._runner = CommandRunner(allowed_commands=registry.security.allowed_commands)
        if configure_limiter:
            self.rate_limiter.max_per_minute = registry.security.max_executions_per_minute
        if registry.security.blocked_patterns:
            logger.info(
                "%d blocked pattern(s) declared; they are not enforced",
                len(registry.security.blocked_patterns),
            )

    def get_tool(self, tool_name: str) -> ToolConfig:
        """
        Raises:
            ConfigurationMissingError: No registry is loaded
            ToolNotFoundError: tool_name is not in the registry
        """
        if self._registry is None:
            raise ConfigurationMissingError()
        tool = self._registry.get_tool(tool_name)
        if tool is None:
            raise ToolNotFoundError(tool_name)
        return tool

    def prepare(self, tool: ToolConfig, arguments: Optional[Mapping[str, Any]]) -> list[str]:
        """
        Validate arguments, check paths and build the argument vector.

        Raises:
            ParameterValidationError, SandboxViolationError, SanitizationError
        """
        params = self.validator.validate(tool.parameters, arguments)
        PathSandbox(tool.allowed_directories).check_arguments(params)
        return substitute_parameters(tool.args, params)

    async def execute(
        self,
        tool_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        caller_id: str = DEFAULT_CALLER,
    ) -> tuple[ToolConfig, list[str], ExecutionResult]:
        """
        Run one tool call end to end, raising on any failure.

        Returns:
            The tool, the final argument vector and the execution result
        """
        tool = self.get_tool(tool_name)
        args = self.prepare(tool, arguments)
        self.rate_limiter.check(caller_id)

        logger.info("Executing tool %s: %s", tool.name, format_command_line(tool.command, args))
        result = await self._runner.execute(
            tool.command,
            args,
            timeout_ms=tool.timeout,
            max_output_size=tool.max_output_size,
        )
        logger.info(
            "Tool %s finished with exit code %d in %dms",
            tool.name,
            result.exit_code,
            result.execution_time_ms,
        )
        return tool, args, result

    async def call_tool(
        self,
        tool_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        caller_id: str = DEFAULT_CALLER,
    ) -> ToolCallResult:
        """
        Run one tool call and report the outcome as a ToolCallResult.

        A command that runs and exits non-zero is not an error result: its
        transcript says so. Errors are refusals and limit breaches.
        """
        try:
            tool, args, result = await self.execute(tool_name, arguments, caller_id)
        except ExecutorError as e:
            return self._error_result(tool_name, e)

        if self.metrics:
            self.metrics.inc_tool_call(tool_name, success=result.success)

        return ToolCallResult(
            text=format_command_result(tool.command, args, result),
            result=result,
        )

    def _error_result(self, tool_name: str, error: ExecutorError) -> ToolCallResult:
        blocked = isinstance(error, _BLOCKED_ERRORS)
        logger.warning("Tool %s %s: %s", tool_name, "blocked" if blocked else "failed", error)

        if self.metrics:
            self.metrics.inc_tool_call(tool_name, success=False, blocked=blocked)
            if isinstance(error, RateLimitExceededError):
                self.metrics.inc_rate_limited()
            elif isinstance(error, CommandTimeoutError):
                self.metrics.inc_timeout()
            elif isinstance(error, OutputSizeExceededError):
                self.metrics.inc_output_limit()

        if isinstance(error, CommandExecutionError):
            text = f"Error executing command: {error}"
        else:
            text = str(error)
        return ToolCallResult(text=text, is_error=True, error_code=error.code)
