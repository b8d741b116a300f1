"""
MCP tool backed by a registry entry.

Each ToolConfig becomes one CommandTool. The advertised input schema is
generated from the tool's parameter specs; calls are delegated to the
shared CommandExecutionEngine.
"""

from typing import Any, Callable

from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_context
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import TextContent, ToolAnnotations
from pydantic import PrivateAttr

from cbx_mcp_exec.config.models import ToolConfig
from cbx_mcp_exec.executor.engine import CommandExecutionEngine
from cbx_mcp_exec.executor.rate_limiter import DEFAULT_CALLER

CallerResolver = Callable[[], str]


def shared_caller(default: str = DEFAULT_CALLER) -> CallerResolver:
    """Every call lands in one rate-limit bucket."""
    return lambda: default


def session_caller(default: str = DEFAULT_CALLER) -> CallerResolver:
    """Key the rate limiter by MCP session id, when a session is active."""

    def resolve() -> str:
        try:
            return get_context().session_id or default
        except RuntimeError:
            return default

    return resolve


class CommandTool(Tool):
    """An MCP tool that runs one configured command."""

    _engine: CommandExecutionEngine | None = PrivateAttr(default=None)
    _caller: CallerResolver = PrivateAttr(default_factory=shared_caller)

    @classmethod
    def from_config(
        cls,
        config: ToolConfig,
        engine: CommandExecutionEngine,
        caller: CallerResolver | None = None,
    ) -> "CommandTool":
        tool = cls(
            name=config.name,
            description=config.description,
            parameters=config.input_schema(),
            annotations=ToolAnnotations(
                title=config.name,
                readOnlyHint=False,
                destructiveHint=config.requires_approval,
                openWorldHint=True,
            ),
            meta={
                "command": config.command,
                "requiresApproval": config.requires_approval,
                "timeout": config.timeout,
            },
        )
        tool._engine = engine
        if caller is not None:
            tool._caller = caller
        return tool

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        """
        Execute the command.

        Raises:
            ToolError: For any refused or failed call, so MCP returns isError
        """
        if self._engine is None:
            raise ToolError(f"Tool {self.name} is not bound to an engine")

        result = await self._engine.call_tool(self.name, arguments, self._caller())
        if result.is_error:
            raise ToolError(result.text)

        return ToolResult(content=[TextContent(type="text", text=result.text)])
