"""Plain-text transcript of a finished command."""

from collections.abc import Sequence

from cbx_mcp_exec.executor.types import ExecutionResult


def format_command_result(
    command: str,
    args: Sequence[str],
    result: ExecutionResult,
) -> str:
    """
    Render command, exit code, timing and captured output.

    Empty stdout/stderr blocks are left out; a failure line closes the
    transcript when the command did not succeed.
    """
    parts = [
        f"Command: {command} {' '.join(args)}",
        f"Exit Code: {result.exit_code}",
        f"Execution Time: {result.execution_time_ms}ms",
        "",
    ]

    if result.stdout:
        parts.extend(["Output:", result.stdout, ""])

    if result.stderr:
        parts.extend(["Errors:", result.stderr, ""])

    if not result.success:
        if result.signal is not None:
            parts.append(f"Command terminated by signal {result.signal_name}")
        else:
            parts.append(f"Command failed with exit code {result.exit_code}")

    return "\n".join(parts)
