"""
MCP tools for configured commands.

Each entry of the tool registry is exposed as one MCP tool whose input
schema comes from the entry's parameter specs.
"""

from cbx_mcp_exec.tools.command_tool import (
    CommandTool,
    session_caller,
    shared_caller,
)
from cbx_mcp_exec.tools.registry import ToolRegistry

__all__ = [
    "CommandTool",
    "ToolRegistry",
    "session_caller",
    "shared_caller",
]
