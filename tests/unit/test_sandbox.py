# tests/unit/test_sandbox.py
"""
Unit tests for the directory sandbox.
"""

import os

import pytest

from cbx_mcp_exec.executor import (
    NullByteError,
    PathSandbox,
    SandboxViolationError,
    StringArrayValue,
    StringValue,
)


@pytest.fixture
def docs_dir(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "guide.txt").write_text("guide")
    return docs


class TestPathSandbox:
    """Tests for path checks."""

    def test_unrestricted(self):
        sandbox = PathSandbox(None)
        assert not sandbox.restricted
        assert sandbox.is_path_allowed("/etc/passwd")

    def test_empty_list_is_unrestricted(self):
        assert PathSandbox([]).is_path_allowed("/etc/passwd")

    def test_path_inside(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        assert sandbox.restricted
        assert sandbox.is_path_allowed(str(docs_dir / "guide.txt"))

    def test_nonexistent_path_inside(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        assert sandbox.is_path_allowed(str(docs_dir / "new" / "file.txt"))

    def test_directory_itself(self, docs_dir):
        assert PathSandbox([str(docs_dir)]).is_path_allowed(str(docs_dir))

    def test_path_outside(self, docs_dir):
        assert not PathSandbox([str(docs_dir)]).is_path_allowed("/etc/passwd")

    def test_traversal_is_resolved(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        assert not sandbox.is_path_allowed(str(docs_dir / ".." / ".." / "etc" / "passwd"))

    def test_sibling_with_common_prefix(self, tmp_path, docs_dir):
        sibling = tmp_path / "docs-private"
        sibling.mkdir()
        assert not PathSandbox([str(docs_dir)]).is_path_allowed(str(sibling / "secret.txt"))

    def test_symlink_escape(self, tmp_path, docs_dir):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("secret")
        os.symlink(outside, docs_dir / "link")

        sandbox = PathSandbox([str(docs_dir)])

        assert not sandbox.is_path_allowed(str(docs_dir / "link" / "secret.txt"))

    def test_relative_path_resolved_against_cwd(self, docs_dir, monkeypatch):
        monkeypatch.chdir(docs_dir)
        assert PathSandbox([str(docs_dir)]).is_path_allowed("guide.txt")

    def test_multiple_directories(self, tmp_path, docs_dir):
        other = tmp_path / "other"
        other.mkdir()
        sandbox = PathSandbox([str(docs_dir), str(other)])
        assert sandbox.is_path_allowed(str(other / "x"))

    def test_check_raises(self, docs_dir):
        with pytest.raises(SandboxViolationError) as exc_info:
            PathSandbox([str(docs_dir)]).check("/etc/passwd")

        assert str(exc_info.value) == "File not in allowed directories: /etc/passwd"
        assert exc_info.value.code == "SANDBOX_VIOLATION"

    def test_null_byte_path(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        path = str(docs_dir / "a\0b")

        assert not sandbox.is_path_allowed(path)
        with pytest.raises(NullByteError) as exc_info:
            sandbox.check(path)
        assert exc_info.value.code == "NULL_BYTE"

    def test_symlink_loop_does_not_raise(self, docs_dir):
        os.symlink(docs_dir / "loop", docs_dir / "loop")
        sandbox = PathSandbox([str(docs_dir)])
        assert sandbox.is_path_allowed(str(docs_dir / "loop" / "x")) in (True, False)


class TestCheckArguments:
    """Tests for path parameter discovery."""

    def test_files_array(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        params = {"files": StringArrayValue((str(docs_dir / "guide.txt"), "/etc/passwd"))}

        with pytest.raises(SandboxViolationError, match="/etc/passwd"):
            sandbox.check_arguments(params)

    def test_single_file(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        with pytest.raises(SandboxViolationError):
            sandbox.check_arguments({"file": StringValue("/etc/passwd")})

    def test_all_inside(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        sandbox.check_arguments({
            "files": StringArrayValue((str(docs_dir / "guide.txt"),)),
            "file": StringValue(str(docs_dir / "guide.txt")),
        })

    def test_other_parameters_not_checked(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        sandbox.check_arguments({"path": StringValue("/etc/passwd")})

    def test_unrestricted_skips_checks(self):
        PathSandbox(None).check_arguments({"file": StringValue("/etc/passwd")})

    def test_null_byte_in_files(self, docs_dir):
        sandbox = PathSandbox([str(docs_dir)])
        with pytest.raises(NullByteError):
            sandbox.check_arguments({"files": StringArrayValue((str(docs_dir / "a\0b"),))})
