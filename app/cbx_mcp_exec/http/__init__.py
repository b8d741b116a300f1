"""
HTTP endpoints for health checks and metrics.

Provides:
- /health: liveness probe
- /ready: readiness probe (a tool registry is loaded)
- /metrics: Prometheus-format metrics
"""

from cbx_mcp_exec.http.metrics import MetricsCollector
from cbx_mcp_exec.http.routes import register_http_routes

__all__ = [
    "MetricsCollector",
    "register_http_routes",
]
