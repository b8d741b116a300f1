"""
Configuration loader with YAML and environment variable support.

Server settings priority (highest to lowest):
1. Environment variables: CBX_MCP_EXEC_SERVER__PORT=9000
2. User config: --config-dir path / ~/.cbx-mcp-exec/config.yaml
3. Built-in defaults: cbx_mcp_exec/config/defaults/settings.yaml

Tool registry location (first match wins):
1. Explicit path (--tools-config)
2. CONFIG_PATH environment variable
3. tools.yaml / tools.yml / tools.json in the config directory
4. Built-in defaults: cbx_mcp_exec/config/defaults/tools.yaml
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from cbx_mcp_exec.config.models import (
    ExecServerConfig,
    ToolRegistryConfig,
    default_tool_registry,
)
from cbx_mcp_exec.utils.logging import get_logger

logger = get_logger(__name__)


# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".cbx-mcp-exec"
PACKAGE_DEFAULTS_DIR = Path(__file__).parent / "defaults"

# Environment variable prefix
ENV_PREFIX = "CBX_MCP_EXEC_"
ENV_DELIMITER = "__"
TOOLS_PATH_ENV = "CONFIG_PATH"

TOOLS_FILE_NAMES = ("tools.yaml", "tools.yml", "tools.json")


class RegistryLoadError(Exception):
    """Raised when a tool registry file cannot be read or is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to load tool registry from {path}: {reason}")
        self.path = path
        self.reason = reason


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if content else {}
    except yaml.YAMLError as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return {}


def _get_env_overrides() -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Environment variables are expected in the format:
    CBX_MCP_EXEC_SECTION__KEY=value

    CBX_MCP_EXEC_SERVER__PORT=9000 -> {"server": {"port": 9000}}
    CBX_MCP_EXEC_RATE_LIMIT__PER_SESSION=true -> {"rate_limit": {"per_session": True}}
    """
    overrides: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        key_path = key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER)
        if not all(key_path):
            continue

        current = overrides
        for part in key_path[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate Python type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def load_config(config_dir: Optional[str | Path] = None) -> ExecServerConfig:
    """
    Load server settings from multiple sources.

    Args:
        config_dir: Optional path to configuration directory.
                   If not provided, uses ~/.cbx-mcp-exec/

    Returns:
        ExecServerConfig: Validated configuration object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    config_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "settings.yaml")

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    user_config = _load_yaml_file(user_config_dir / "config.yaml")
    config_data = _deep_merge(config_data, user_config)

    env_overrides = _get_env_overrides()
    config_data = _deep_merge(config_data, env_overrides)

    return ExecServerConfig.model_validate(config_data)


def resolve_tools_path(
    explicit: Optional[str | Path] = None,
    config_dir: Optional[str | Path] = None,
) -> Path:
    """
    Work out which tool registry file to load.

    Args:
        explicit: Path given on the command line, if any
        config_dir: User configuration directory

    Returns:
        Path to the registry file (may not exist)
    """
    if explicit:
        return Path(explicit)

    env_path = os.environ.get(TOOLS_PATH_ENV)
    if env_path:
        return Path(env_path)

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    for file_name in TOOLS_FILE_NAMES:
        candidate = user_config_dir / file_name
        if candidate.exists():
            return candidate

    return PACKAGE_DEFAULTS_DIR / "tools.yaml"


def load_tool_registry(path: str | Path) -> ToolRegistryConfig:
    """
    Load and validate a tool registry file.

    YAML and JSON files are both accepted (JSON is parsed as YAML).

    Raises:
        RegistryLoadError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise RegistryLoadError(path, e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise RegistryLoadError(path, f"parse error: {e}") from e

    if not isinstance(raw, dict):
        raise RegistryLoadError(path, "top level must be a mapping with a 'tools' list")

    try:
        registry = ToolRegistryConfig.model_validate(raw)
    except ValidationError as e:
        raise RegistryLoadError(path, str(e)) from e

    logger.info("Loaded %d tool(s) from %s", len(registry.tools), path)
    return registry


def load_tool_registry_or_default(path: str | Path) -> ToolRegistryConfig:
    """
    Load the tool registry, falling back to the built-in echo-only registry.

    The server stays reachable for diagnosis even with a broken registry.
    """
    try:
        return load_tool_registry(path)
    except RegistryLoadError as e:
        logger.error("%s", e)
        logger.warning("Falling back to built-in default tool registry")
        return default_tool_registry()


def reload_tool_registry(
    current: Optional[ToolRegistryConfig], path: str | Path
) -> Optional[ToolRegistryConfig]:
    """
    Reload the tool registry (for SIGHUP handling).

    Returns:
        The new registry, or the current one if the reload fails
    """
    try:
        return load_tool_registry(path)
    except RegistryLoadError as e:
        logger.warning("Tool registry reload failed, keeping current registry: %s", e)
        return current
