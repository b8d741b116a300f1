"""
Custom HTTP routes served next to the MCP endpoint.

Only used with the streamable-http transport.
"""

from typing import Callable

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse

from cbx_mcp_exec import __version__
from cbx_mcp_exec.http.metrics import MetricsCollector

SERVICE_NAME = "cbx_mcp_exec"


def register_http_routes(
    mcp: FastMCP,
    metrics: MetricsCollector,
    get_registered_tools: Callable[[], list[str]],
) -> None:
    """Register custom HTTP routes for health checks and metrics."""

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        """Liveness probe endpoint."""
        return JSONResponse({
            "status": "healthy",
            "version": __version__,
            "service": SERVICE_NAME,
        })

    @mcp.custom_route("/ready", methods=["GET"])
    async def ready_check(request: Request) -> JSONResponse:
        """Readiness probe endpoint: ready once tools are registered."""
        tools = get_registered_tools()
        checks = {
            "server": True,
            "tools_registered": len(tools) > 0,
        }
        is_ready = all(checks.values())
        return JSONResponse(
            {
                "status": "ready" if is_ready else "not_ready",
                "checks": checks,
                "registered_tools": tools,
            },
            status_code=200 if is_ready else 503,
        )

    @mcp.custom_route("/metrics", methods=["GET"])
    async def metrics_endpoint(request: Request) -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(
            metrics.format_prometheus(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )
