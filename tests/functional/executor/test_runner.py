#!/usr/bin/env python3
"""
Functional tests for the command runner.

These tests run real child processes and verify:
1. Exit code and output capture
2. Allowlist enforcement before spawning
3. Timeout and output ceiling termination
4. Spawn failures and signal deaths
"""

import asyncio
import os

import pytest

from cbx_mcp_exec.executor import (
    CommandNotAllowedError,
    CommandRunner,
    CommandTimeoutError,
    OutputSizeExceededError,
    SpawnFailureError,
)


@pytest.fixture
def runner() -> CommandRunner:
    return CommandRunner(kill_grace_seconds=0.5)


class TestRunner:
    """Test command execution with real subprocesses."""

    @pytest.mark.asyncio
    async def test_successful_execution(self, runner: CommandRunner):
        result = await runner.execute("echo", ["Hello MCP!"])

        assert result.success
        assert result.exit_code == 0
        assert result.stdout == "Hello MCP!"
        assert result.stderr == ""
        assert result.signal is None
        assert result.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_interpreted(self, runner: CommandRunner):
        result = await runner.execute("echo", ["*", "~"])
        assert result.stdout == "* ~"

    @pytest.mark.asyncio
    async def test_exit_code_preserved(self, runner: CommandRunner):
        result = await runner.execute("sh", ["-c", "echo oops >&2; exit 42"])

        assert not result.success
        assert result.exit_code == 42
        assert result.stderr == "oops"

    @pytest.mark.asyncio
    async def test_stdin_is_closed(self, runner: CommandRunner):
        # cat reads stdin when given no files; it must see EOF at once
        result = await runner.execute("cat", [], timeout_ms=5000)
        assert result.success
        assert result.stdout == ""

    @pytest.mark.asyncio
    async def test_killed_by_signal(self, runner: CommandRunner):
        result = await runner.execute("sh", ["-c", "kill -9 $$"])

        assert not result.success
        assert result.exit_code == 0
        assert result.signal == 9
        assert result.signal_name == "SIGKILL"

    @pytest.mark.asyncio
    async def test_timeout(self, runner: CommandRunner, python_exe: str):
        with pytest.raises(CommandTimeoutError) as exc_info:
            await runner.execute(python_exe, ["-c", "import time; time.sleep(30)"], timeout_ms=300)

        assert "timed out after 300ms" in str(exc_info.value)
        assert exc_info.value.code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_timeout_escalates_to_kill(self, runner: CommandRunner, python_exe: str):
        script = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(30)\n"
        )
        loop = asyncio.get_running_loop()
        start = loop.time()

        with pytest.raises(CommandTimeoutError):
            await runner.execute(python_exe, ["-c", script], timeout_ms=500)

        assert loop.time() - start < 10

    @pytest.mark.asyncio
    async def test_output_limit(self, runner: CommandRunner, python_exe: str):
        with pytest.raises(OutputSizeExceededError) as exc_info:
            await runner.execute(
                python_exe,
                ["-c", "import sys; sys.stdout.write('x' * 5000)"],
                max_output_size=100,
            )

        assert str(exc_info.value) == "Output size limit exceeded"
        assert exc_info.value.code == "OUTPUT_SIZE_EXCEEDED"

    @pytest.mark.asyncio
    async def test_output_limit_counts_both_streams(self, runner: CommandRunner, python_exe: str):
        script = "import sys; sys.stdout.write('o' * 60); sys.stdout.flush(); sys.stderr.write('e' * 60)"
        with pytest.raises(OutputSizeExceededError):
            await runner.execute(python_exe, ["-c", script], max_output_size=100)

    @pytest.mark.asyncio
    async def test_output_at_limit_is_allowed(self, runner: CommandRunner, python_exe: str):
        result = await runner.execute(
            python_exe,
            ["-c", "import sys; sys.stdout.write('x' * 100)"],
            max_output_size=100,
        )
        assert result.stdout == "x" * 100


class TestAllowlist:
    """Test allowlist enforcement."""

    @pytest.mark.asyncio
    async def test_blocked_command(self, monkeypatch):
        runner = CommandRunner(allowed_commands=["echo"])

        async def fail_spawn(*args, **kwargs):
            raise AssertionError("process must not be spawned")

        monkeypatch.setattr(asyncio, "create_subprocess_exec", fail_spawn)

        with pytest.raises(CommandNotAllowedError) as exc_info:
            await runner.execute("rm", ["-rf", "/tmp/x"])

        assert str(exc_info.value) == "Command not allowed: rm"
        assert exc_info.value.code == "COMMAND_NOT_ALLOWED"

    @pytest.mark.asyncio
    async def test_allowed_command(self):
        runner = CommandRunner(allowed_commands=["echo"])
        result = await runner.execute("echo", ["ok"])
        assert result.stdout == "ok"

    def test_empty_allowlist_allows_nothing(self):
        with pytest.raises(CommandNotAllowedError):
            CommandRunner(allowed_commands=[]).check_allowed("echo")

    def test_no_allowlist_allows_everything(self):
        CommandRunner().check_allowed("anything")


class TestEdgeCases:
    """Test spawn failures."""

    @pytest.mark.asyncio
    async def test_nonexistent_command(self, runner: CommandRunner):
        with pytest.raises(SpawnFailureError) as exc_info:
            await runner.execute("nonexistent-command-xyz", [])

        assert str(exc_info.value).startswith("Failed to start command: ")
        assert exc_info.value.code == "SPAWN_FAILURE"

    @pytest.mark.asyncio
    async def test_not_executable(self, runner: CommandRunner, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\necho hi\n")
        os.chmod(script, 0o644)

        with pytest.raises(SpawnFailureError):
            await runner.execute(str(script), [])

    @pytest.mark.asyncio
    async def test_unencodable_argument(self, runner: CommandRunner):
        with pytest.raises(SpawnFailureError) as exc_info:
            await runner.execute("echo", ["x\ud800y"])

        assert "invalid argument" in str(exc_info.value)
