"""
Prometheus metrics endpoint.

Provides /metrics endpoint in Prometheus exposition format.
"""

import threading
import time
from dataclasses import dataclass, field

from cbx_mcp_exec import __version__


@dataclass
class MetricsCollector:
    """
    Simple metrics collector for Prometheus exposition.

    Counts tool calls by outcome. "blocked" calls were refused before a
    process was spawned (validation, sandbox, sanitization, rate limit,
    allowlist); "error" calls failed during or after execution.
    """

    # Counters
    tool_calls_total: int = 0
    tool_calls_success: int = 0
    tool_calls_error: int = 0
    tool_calls_blocked: int = 0
    rate_limited_total: int = 0
    timeouts_total: int = 0
    output_limit_total: int = 0

    # Startup time
    start_time: float = field(default_factory=time.time)

    # Per-tool counters
    tool_counts: dict[str, int] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc_tool_call(self, tool_name: str, success: bool = True, blocked: bool = False) -> None:
        """Increment tool call counters."""
        with self._lock:
            self.tool_calls_total += 1

            if blocked:
                self.tool_calls_blocked += 1
            elif success:
                self.tool_calls_success += 1
            else:
                self.tool_calls_error += 1

            self.tool_counts[tool_name] = self.tool_counts.get(tool_name, 0) + 1

    def inc_rate_limited(self) -> None:
        with self._lock:
            self.rate_limited_total += 1

    def inc_timeout(self) -> None:
        with self._lock:
            self.timeouts_total += 1

    def inc_output_limit(self) -> None:
        with self._lock:
            self.output_limit_total += 1

    def format_prometheus(self) -> str:
        """
        Format metrics in Prometheus exposition format.

        Returns:
            Metrics as text in Prometheus format
        """
        uptime = time.time() - self.start_time

        lines = [
            "# HELP cbx_mcp_exec_info Server information",
            "# TYPE cbx_mcp_exec_info gauge",
            f'cbx_mcp_exec_info{{version="{__version__}"}} 1',
            "",
            "# HELP cbx_mcp_exec_uptime_seconds Server uptime in seconds",
            "# TYPE cbx_mcp_exec_uptime_seconds gauge",
            f"cbx_mcp_exec_uptime_seconds {uptime:.2f}",
            "",
            "# HELP cbx_mcp_exec_tool_calls_total Total tool calls",
            "# TYPE cbx_mcp_exec_tool_calls_total counter",
            f"cbx_mcp_exec_tool_calls_total {self.tool_calls_total}",
            "",
            "# HELP cbx_mcp_exec_tool_calls_success_total Tool calls whose command exited 0",
            "# TYPE cbx_mcp_exec_tool_calls_success_total counter",
            f"cbx_mcp_exec_tool_calls_success_total {self.tool_calls_success}",
            "",
            "# HELP cbx_mcp_exec_tool_calls_error_total Failed tool calls",
            "# TYPE cbx_mcp_exec_tool_calls_error_total counter",
            f"cbx_mcp_exec_tool_calls_error_total {self.tool_calls_error}",
            "",
            "# HELP cbx_mcp_exec_tool_calls_blocked_total Tool calls refused before execution",
            "# TYPE cbx_mcp_exec_tool_calls_blocked_total counter",
            f"cbx_mcp_exec_tool_calls_blocked_total {self.tool_calls_blocked}",
            "",
            "# HELP cbx_mcp_exec_rate_limited_total Tool calls refused by the rate limiter",
            "# TYPE cbx_mcp_exec_rate_limited_total counter",
            f"cbx_mcp_exec_rate_limited_total {self.rate_limited_total}",
            "",
            "# HELP cbx_mcp_exec_timeouts_total Commands terminated on timeout",
            "# TYPE cbx_mcp_exec_timeouts_total counter",
            f"cbx_mcp_exec_timeouts_total {self.timeouts_total}",
            "",
            "# HELP cbx_mcp_exec_output_limit_total Commands terminated on output size",
            "# TYPE cbx_mcp_exec_output_limit_total counter",
            f"cbx_mcp_exec_output_limit_total {self.output_limit_total}",
        ]

        if self.tool_counts:
            lines.extend([
                "",
                "# HELP cbx_mcp_exec_tool_calls_by_name Tool calls by tool name",
                "# TYPE cbx_mcp_exec_tool_calls_by_name counter",
            ])
            for tool_name, count in sorted(self.tool_counts.items()):
                lines.append(f'cbx_mcp_exec_tool_calls_by_name{{tool="{tool_name}"}} {count}')

        return "\n".join(lines) + "\n"
