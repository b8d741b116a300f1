"""
Directory sandbox for path-valued parameters.

A tool may declare allowedDirectories. When it does, the 'file' and
'files' parameters must resolve (symlinks included) to a location under
one of those directories. Tools without allowedDirectories are not
restricted.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Optional

from cbx_mcp_exec.executor.types import (
    NullByteError,
    ParamValue,
    SandboxViolationError,
    StringArrayValue,
    StringValue,
)

PATH_PARAMETERS = ("files", "file")


def canonical_path(path: str) -> Path:
    """Absolute, symlink-resolved form of path (which need not exist)."""
    return Path(path).expanduser().resolve()


class PathSandbox:
    """
    Checks paths against a set of allowed directories.

    Containment is by whole path components: /docs-private is not under
    /docs, although the string starts with it.
    """

    def __init__(self, allowed_directories: Optional[Sequence[str]] = None):
        self.allowed_directories = tuple(allowed_directories or ())
        self._allowed = tuple(canonical_path(d) for d in self.allowed_directories)

    @property
    def restricted(self) -> bool:
        return bool(self._allowed)

    def is_path_allowed(self, path: str) -> bool:
        """True if path lies under an allowed directory, or nothing is configured."""
        if not self._allowed:
            return True
        if "\0" in path:
            return False
        try:
            resolved = canonical_path(path)
        except (OSError, RuntimeError):
            # Unresolvable (symlink loop, unknown ~user): treat as outside
            return False
        return any(resolved.is_relative_to(d) for d in self._allowed)

    def check(self, path: str) -> None:
        """
        Raises:
            NullByteError: If path contains a null byte
            SandboxViolationError: If path is outside the allowed directories
        """
        if "\0" in path:
            raise NullByteError(path)
        if not self.is_path_allowed(path):
            raise SandboxViolationError(path)

    def check_arguments(self, params: Mapping[str, ParamValue]) -> None:
        """Check every path carried by the 'files' and 'file' parameters."""
        if not self._allowed:
            return
        for name in PATH_PARAMETERS:
            value = params.get(name)
            if isinstance(value, StringArrayValue):
                for item in value.items:
                    self.check(item)
            elif isinstance(value, StringValue):
                self.check(value.value)
