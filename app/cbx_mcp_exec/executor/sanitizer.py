"""
Per-value sanitization for command-line arguments.

Values are passed to the child process as argv entries, never through a
shell, but a tool's command may itself be an interpreter. Rejecting shell
metacharacters in every substituted value keeps a single value from
changing command semantics downstream.
"""

import re

from cbx_mcp_exec.executor.types import DangerousCharacterError, NullByteError

# ; & | ` $ < > and backslash
DANGEROUS_CHARACTERS = re.compile(r"[;&|`$<>\\]")


def sanitize_parameter(value: str) -> str:
    """
    Return value unchanged if it is safe to use as an argument.

    Raises:
        DangerousCharacterError: value contains a shell metacharacter
        NullByteError: value contains a null byte
    """
    if DANGEROUS_CHARACTERS.search(value):
        raise DangerousCharacterError(value)
    if "\0" in value:
        raise NullByteError(value)
    return value
