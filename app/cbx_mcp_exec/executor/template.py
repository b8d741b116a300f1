"""
Argument template expansion.

A tool's argument template is an ordered list of tokens. Tokens may carry
a {name} placeholder; the first placeholder in a token decides how the
token expands:

- array value   -> one argument per element, in order
- scalar value  -> placeholders replaced in place ("-flag={name}")
- absent value  -> token kept verbatim, placeholder text included
- no placeholder -> token kept verbatim

Every substituted value goes through sanitize_parameter.
"""

from collections.abc import Mapping, Sequence

from cbx_mcp_exec.config.models import PLACEHOLDER_RE
from cbx_mcp_exec.executor.sanitizer import sanitize_parameter
from cbx_mcp_exec.executor.types import ParamValue, StringArrayValue


def substitute_parameters(
    template: Sequence[str],
    params: Mapping[str, ParamValue],
) -> list[str]:
    """
    Expand an argument template into the final argument vector.

    Args:
        template: Ordered template tokens
        params: Validated parameters

    Returns:
        Flat argument list for the subprocess

    Raises:
        SanitizationError: If any substituted value is unsafe
    """
    result: list[str] = []

    for token in template:
        match = PLACEHOLDER_RE.search(token)
        if match is None:
            result.append(token)
            continue

        value = params.get(match.group(1))

        if isinstance(value, StringArrayValue):
            result.extend(sanitize_parameter(item) for item in value.items)
        elif value is not None:
            result.append(PLACEHOLDER_RE.sub(lambda m: _render(m, params), token))
        else:
            result.append(token)

    return result


def _render(match, params: Mapping[str, ParamValue]) -> str:
    # Secondary placeholders: only scalars are substituted, anything
    # else stays literal.
    value = params.get(match.group(1))
    if value is None or isinstance(value, StringArrayValue):
        return match.group(0)
    return sanitize_parameter(value.render())
