"""
Tool Registry.

Builds MCP tools from the loaded tool registry and registers them with
FastMCP. On reload, stale tools are removed and the new set is added.
"""

from fastmcp import FastMCP

from cbx_mcp_exec.executor.engine import CommandExecutionEngine
from cbx_mcp_exec.tools.command_tool import CallerResolver, CommandTool
from cbx_mcp_exec.utils.logging import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """
    Manages the MCP tools exposed for the engine's registry.

    The tool set always mirrors engine.registry.
    """

    def __init__(self, engine: CommandExecutionEngine, caller: CallerResolver | None = None):
        """
        Initialize registry.

        Args:
            engine: Engine that executes the tools
            caller: Resolves the rate-limit key for the current call
        """
        self.engine = engine
        self.caller = caller
        self._tools: dict[str, CommandTool] = {}

    def build_tools(self) -> list[CommandTool]:
        """Create a CommandTool for every tool in the engine's registry."""
        registry = self.engine.registry
        if registry is None:
            return []
        return [
            CommandTool.from_config(config, self.engine, self.caller)
            for config in registry.tools
        ]

    def register_with_mcp(self, mcp: FastMCP) -> list[str]:
        """
        Register all configured tools with a FastMCP server.

        Returns:
            Names of the registered tools
        """
        for tool in self.build_tools():
            mcp.add_tool(tool)
            self._tools[tool.name] = tool
            logger.debug("Registered tool %s", tool.name)

        logger.info("Registered %d tool(s): %s", len(self._tools), ", ".join(self._tools))
        return self.tool_names

    def refresh(self, mcp: FastMCP) -> list[str]:
        """Replace the registered tools after the engine's registry changed."""
        for name in list(self._tools):
            mcp.remove_tool(name)
        self._tools.clear()
        return self.register_with_mcp(mcp)

    def get_tool(self, name: str) -> CommandTool | None:
        """Get a registered tool by name."""
        return self._tools.get(name)

    @property
    def tool_names(self) -> list[str]:
        """Get names of all registered tools."""
        return list(self._tools.keys())
