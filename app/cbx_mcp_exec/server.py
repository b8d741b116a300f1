"""
FastMCP Server Setup.

This module creates and configures the MCP server instance.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastmcp import FastMCP

from cbx_mcp_exec import __version__
from cbx_mcp_exec.config import (
    ExecServerConfig,
    ToolRegistryConfig,
    load_tool_registry_or_default,
    reload_tool_registry,
    resolve_tools_path,
)
from cbx_mcp_exec.executor import CommandExecutionEngine, RateLimiter
from cbx_mcp_exec.http import MetricsCollector, register_http_routes
from cbx_mcp_exec.tools import ToolRegistry, session_caller, shared_caller
from cbx_mcp_exec.utils.logging import get_logger

logger = get_logger(__name__)

SERVER_NAME = "cbx_mcp_exec"
SERVER_INSTRUCTIONS = (
    "Each tool runs one preconfigured command-line program. Arguments are "
    "validated against the tool's schema; values containing shell "
    "metacharacters are rejected, file paths are restricted to the tool's "
    "allowed directories, and calls are rate limited."
)


@dataclass
class ServerBundle:
    """Bundle containing server and related components."""

    server: FastMCP
    engine: CommandExecutionEngine
    tool_registry: ToolRegistry
    metrics: MetricsCollector
    tools_path: Optional[Path] = None

    def reload(self) -> list[str]:
        """
        Reload the tool registry from tools_path (SIGHUP).

        Keeps the current registry if the file cannot be loaded.
        """
        if self.tools_path is None:
            logger.warning("No tool registry path to reload from")
            return self.tool_registry.tool_names

        registry = reload_tool_registry(self.engine.registry, self.tools_path)
        if registry is self.engine.registry:
            return self.tool_registry.tool_names

        self.engine.load_registry(registry)
        return self.tool_registry.refresh(self.server)


def create_server(
    config: ExecServerConfig,
    tools_path: Optional[Path] = None,
    registry: Optional[ToolRegistryConfig] = None,
) -> ServerBundle:
    """
    Create and configure the MCP server.

    Args:
        config: Server configuration
        tools_path: Tool registry file; resolved from defaults if None
        registry: Already-loaded registry (skips loading tools_path)

    Returns:
        ServerBundle containing the FastMCP instance and the engine
    """
    if registry is None:
        tools_path = tools_path or resolve_tools_path()
        registry = load_tool_registry_or_default(tools_path)

    metrics = MetricsCollector()
    rate_limiter = RateLimiter(registry.security.max_executions_per_minute)
    engine = CommandExecutionEngine(registry, rate_limiter=rate_limiter, metrics=metrics)

    if config.rate_limit.per_session:
        caller = session_caller(config.rate_limit.default_caller)
    else:
        caller = shared_caller(config.rate_limit.default_caller)

    mcp = FastMCP(name=SERVER_NAME, instructions=SERVER_INSTRUCTIONS)

    tool_registry = ToolRegistry(engine, caller=caller)
    tool_registry.register_with_mcp(mcp)

    _register_builtin_tools(mcp)
    register_http_routes(mcp, metrics, lambda: tool_registry.tool_names)

    logger.info("%s v%s created with %d tool(s)", SERVER_NAME, __version__, len(registry.tools))

    return ServerBundle(
        server=mcp,
        engine=engine,
        tool_registry=tool_registry,
        metrics=metrics,
        tools_path=tools_path,
    )


def _register_builtin_tools(mcp: FastMCP) -> None:
    """
    Register built-in MCP tools.

    These are always available and do not run any external command.
    """

    @mcp.tool(
        name="exec_ping",
        annotations={
            "title": "Ping",
            "readOnlyHint": True,
            "destructiveHint": False,
        },
    )
    async def exec_ping() -> str:
        """
        Simple ping tool to verify server is responding.

        Returns:
            str: Pong response with server version
        """
        return f"pong from {SERVER_NAME} v{__version__}"
