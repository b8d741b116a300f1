"""
Integration test fixtures.

Builds a complete server bundle around a temporary tool registry file.
"""

import json
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from cbx_mcp_exec.config import ExecServerConfig
from cbx_mcp_exec.server import ServerBundle, create_server


def registry_data(docs_dir: Path) -> dict[str, Any]:
    """Tool registry written to tools.json for the server under test."""
    return {
        "tools": [
            {
                "name": "echo",
                "description": "Echo a message",
                "command": "echo",
                "args": ["{message}"],
                "parameters": {
                    "message": {"type": "string", "description": "Message to echo"},
                },
                "timeout": 5000,
            },
            {
                "name": "read_docs",
                "description": "Read documents",
                "command": "cat",
                "args": ["{files}"],
                "parameters": {
                    "files": {"type": "array", "items": {"type": "string"}},
                },
                "allowedDirectories": [str(docs_dir)],
                "requiresApproval": True,
            },
        ],
        "security": {
            "allowedCommands": ["echo", "cat"],
            "maxExecutionsPerMinute": 10,
        },
    }


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "readme.txt").write_text("hello from docs\n")
    return docs


@pytest.fixture
def tools_path(tmp_path: Path, docs_dir: Path) -> Path:
    path = tmp_path / "tools.json"
    path.write_text(json.dumps(registry_data(docs_dir)))
    return path


@pytest.fixture
def bundle(tools_path: Path) -> ServerBundle:
    """Server bundle loaded from tools_path."""
    return create_server(ExecServerConfig(), tools_path=tools_path)


@pytest.fixture
def http_client(bundle: ServerBundle) -> TestClient:
    """HTTP client for the custom routes."""
    return TestClient(bundle.server.http_app(transport="streamable-http"))
