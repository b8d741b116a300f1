"""
Async command execution engine.

This module runs a resolved command as a child process using asyncio
subprocess management. It includes:
- Command allowlist enforcement (checked BEFORE anything is spawned)
- Direct exec with an argument vector, never through a shell
- Wall-clock timeout with graceful termination, escalating to kill
- A combined stdout+stderr byte ceiling, enforced while reading
- Proper exit code and signal handling
"""

import asyncio
import time
from collections.abc import Iterable, Sequence
from typing import Optional

from cbx_mcp_exec.config.models import DEFAULT_MAX_OUTPUT_SIZE, DEFAULT_TIMEOUT_MS
from cbx_mcp_exec.executor.types import (
    CommandNotAllowedError,
    CommandTimeoutError,
    ExecutionResult,
    OutputSizeExceededError,
    SpawnFailureError,
)
from cbx_mcp_exec.utils.logging import format_command_line, get_logger

logger = get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class _OutputCapture:
    """Collects both output streams and enforces the shared byte ceiling."""

    def __init__(self, max_output_size: int):
        self.max_output_size = max_output_size
        self.total = 0
        self.stdout: list[bytes] = []
        self.stderr: list[bytes] = []

    def add(self, sink: list[bytes], chunk: bytes) -> None:
        self.total += len(chunk)
        if self.total > self.max_output_size:
            raise OutputSizeExceededError(self.max_output_size)
        sink.append(chunk)

    @staticmethod
    def decode(chunks: list[bytes]) -> str:
        return b"".join(chunks).decode("utf-8", errors="replace").strip()


class CommandRunner:
    """
    Executes commands with an allowlist and resource limits.

    One call to execute() owns exactly one child process. The child is
    reaped on normal exit, or terminated when the timeout or the output
    ceiling is hit, whichever comes first.
    """

    def __init__(
        self,
        allowed_commands: Optional[Iterable[str]] = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_output_size: int = DEFAULT_MAX_OUTPUT_SIZE,
        kill_grace_seconds: float = 2.0,
    ):
        """
        Initialize the command runner.

        Args:
            allowed_commands: Executable names that may be run. None means
                no allowlist; an empty collection allows nothing.
            default_timeout_ms: Timeout used when a call does not give one
            max_output_size: Output ceiling used when a call does not give one
            kill_grace_seconds: Time between SIGTERM and SIGKILL
        """
        self.allowed_commands = (
            frozenset(allowed_commands) if allowed_commands is not None else None
        )
        self.default_timeout_ms = default_timeout_ms
        self.max_output_size = max_output_size
        self.kill_grace_seconds = kill_grace_seconds

    def check_allowed(self, command: str) -> None:
        """
        Raises:
            CommandNotAllowedError: If an allowlist is set and command is not on it
        """
        if self.allowed_commands is not None and command not in self.allowed_commands:
            raise CommandNotAllowedError(command)

    async def execute(
        self,
        command: str,
        args: Sequence[str],
        timeout_ms: Optional[int] = None,
        max_output_size: Optional[int] = None,
    ) -> ExecutionResult:
        """
        Run command with args and collect its result.

        Args:
            command: Executable name or path
            args: Final argument vector
            timeout_ms: Wall-clock timeout in milliseconds
            max_output_size: Combined stdout+stderr ceiling in bytes

        Returns:
            ExecutionResult for a process that ran to completion

        Raises:
            CommandNotAllowedError: Command not on the allowlist
            SpawnFailureError: The process could not be started
            CommandTimeoutError: The process outlived the timeout
            OutputSizeExceededError: The process produced too much output
        """
        timeout_ms = timeout_ms or self.default_timeout_ms
        max_output_size = max_output_size or self.max_output_size

        self.check_allowed(command)

        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Failed to start %s: %s", command, e)
            raise SpawnFailureError(command, e.strerror or str(e)) from e
        except ValueError as e:
            # argv that cannot be encoded for exec (lone surrogates, NUL)
            logger.error("Failed to start %s: %s", command, e)
            raise SpawnFailureError(command, f"invalid argument: {e}") from e

        logger.debug("Started pid %s: %s", process.pid, format_command_line(command, args))

        capture = _OutputCapture(max_output_size)
        try:
            await asyncio.wait_for(
                self._communicate(process, capture),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %dms, terminating", command, timeout_ms)
            await self._terminate(process)
            raise CommandTimeoutError(command, timeout_ms) from None
        except OutputSizeExceededError:
            logger.warning(
                "%s exceeded output limit of %d bytes, terminating", command, max_output_size
            )
            await self._terminate(process)
            raise
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        elapsed_ms = int(round((time.monotonic() - start) * 1000))
        returncode = process.returncode

        # Negative return codes mean the child died from a signal
        killed_by = -returncode if returncode is not None and returncode < 0 else None
        exit_code = returncode if returncode is not None and returncode >= 0 else 0

        return ExecutionResult(
            exit_code=exit_code,
            stdout=capture.decode(capture.stdout),
            stderr=capture.decode(capture.stderr),
            success=returncode == 0,
            execution_time_ms=elapsed_ms,
            signal=killed_by,
        )

    async def _communicate(
        self,
        process: asyncio.subprocess.Process,
        capture: _OutputCapture,
    ) -> None:
        """Drain both pipes, then wait for exit. Raises on output breach."""
        readers = [
            asyncio.ensure_future(self._pump(process.stdout, capture, capture.stdout)),
            asyncio.ensure_future(self._pump(process.stderr, capture, capture.stderr)),
        ]
        try:
            done, _ = await asyncio.wait(readers, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                task.result()
            await process.wait()
        finally:
            for task in readers:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)

    @staticmethod
    async def _pump(
        stream: Optional[asyncio.StreamReader],
        capture: _OutputCapture,
        sink: list[bytes],
    ) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            capture.add(sink, chunk)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """SIGTERM the child, then SIGKILL it if it ignores the request."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning("pid %s ignored SIGTERM, killing", process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()
