"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


# Add app directory to path
APP_DIR = Path(__file__).parent.parent / "app"
sys.path.insert(0, str(APP_DIR))

from cbx_mcp_exec.config import ToolRegistryConfig  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )


ECHO_TOOL = {
    "name": "echo",
    "description": "Echo a message",
    "command": "echo",
    "args": ["{message}"],
    "parameters": {
        "message": {"type": "string", "description": "Message to echo"},
    },
    "timeout": 5000,
}


@pytest.fixture
def make_registry() -> Callable[..., ToolRegistryConfig]:
    """Build a validated registry from plain tool dicts."""

    def _make(*tools: dict[str, Any], security: dict[str, Any] | None = None) -> ToolRegistryConfig:
        data: dict[str, Any] = {"tools": list(tools)}
        if security is not None:
            data["security"] = security
        return ToolRegistryConfig.model_validate(data)

    return _make


@pytest.fixture
def echo_registry(make_registry) -> ToolRegistryConfig:
    """Registry with only the echo tool and no restrictions."""
    return make_registry(ECHO_TOOL)


@pytest.fixture
def python_exe() -> str:
    """Interpreter used to script child process behaviour in tests."""
    return sys.executable
