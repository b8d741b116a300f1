"""
Configuration system for the CBX MCP command executor.

Exports:
    ExecServerConfig: Server settings container
    ToolRegistryConfig: Tool definitions and security policy
    load_config: Load server settings from YAML/env
    load_tool_registry: Load a tool registry file
"""

from cbx_mcp_exec.config.models import (
    ExecServerConfig,
    ItemSpec,
    ParameterSpec,
    RateLimitSettings,
    SecurityPolicy,
    ServerSettings,
    ToolConfig,
    ToolRegistryConfig,
    default_tool_registry,
)
from cbx_mcp_exec.config.loader import (
    RegistryLoadError,
    load_config,
    load_tool_registry,
    load_tool_registry_or_default,
    reload_tool_registry,
    resolve_tools_path,
)

__all__ = [
    "ExecServerConfig",
    "ServerSettings",
    "RateLimitSettings",
    "ItemSpec",
    "ParameterSpec",
    "ToolConfig",
    "SecurityPolicy",
    "ToolRegistryConfig",
    "default_tool_registry",
    "RegistryLoadError",
    "load_config",
    "load_tool_registry",
    "load_tool_registry_or_default",
    "reload_tool_registry",
    "resolve_tools_path",
]
