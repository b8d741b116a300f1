"""
Pydantic models for server configuration and the tool registry.

Two families live here:
- Server settings (transport, logging, rate limit keying), loaded from
  settings.yaml/config.yaml and environment variables.
- The tool registry (tools.yaml / tools.json): tool definitions plus the
  process-wide security policy. Field names follow the registry file's
  camelCase keys; snake_case names are accepted too.

Registry models are frozen. They are loaded once and only ever replaced
wholesale on reload.
"""

import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

DEFAULT_TIMEOUT_MS = 30000
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 300000
DEFAULT_MAX_OUTPUT_SIZE = 10 * 1024 * 1024  # 10 MiB
DEFAULT_MAX_EXECUTIONS_PER_MINUTE = 10


# =============================================================================
# Server settings
# =============================================================================
class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the server to",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port to listen on",
    )
    transport: Literal["streamable-http", "stdio"] = Field(
        default="stdio",
        description="Transport protocol to use",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional file to mirror log output into",
    )


class RateLimitSettings(BaseModel):
    """How callers are told apart by the rate limiter."""

    per_session: bool = Field(
        default=False,
        description=(
            "Key the rate limiter by MCP session id instead of one shared bucket"
        ),
    )
    default_caller: str = Field(
        default="default",
        min_length=1,
        description="Caller key used when no per-caller identity is available",
    )


class ExecServerConfig(BaseModel):
    """
    Main configuration container for the command executor server.

    Loaded from YAML files and environment variables, then passed to
    server components explicitly.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    # Allow extra fields to be ignored (forward compatibility)
    model_config = ConfigDict(extra="ignore")


# =============================================================================
# Tool registry
# =============================================================================
class _RegistryModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ItemSpec(_RegistryModel):
    """Item type hint for array parameters."""

    type: Optional[Literal["string", "number", "boolean"]] = None


class ParameterSpec(_RegistryModel):
    """Schema of a single tool parameter."""

    type: Literal["string", "number", "boolean", "array"]
    description: Optional[str] = None
    required: bool = True
    default: Any = None
    pattern: Optional[str] = None
    items: Optional[ItemSpec] = None

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Reject patterns that do not compile."""
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regular expression {v!r}: {e}") from e
        return v

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set and self.default is not None

    def to_json_schema(self) -> dict[str, Any]:
        """JSON schema fragment advertised to MCP clients."""
        prop: dict[str, Any] = {"type": self.type}
        if self.description:
            prop["description"] = self.description
        if self.has_default:
            prop["default"] = self.default
        if self.pattern and self.type == "string":
            prop["pattern"] = self.pattern
        if self.type == "array":
            item_type = self.items.type if self.items and self.items.type else "string"
            prop["items"] = {"type": item_type}
        return prop


class ToolConfig(_RegistryModel):
    """Declarative description of one command-line tool."""

    name: str = Field(min_length=1)
    description: str
    command: str = Field(min_length=1)
    args: tuple[str, ...] = ()
    parameters: dict[str, ParameterSpec] = Field(default_factory=dict)
    allowed_directories: Optional[tuple[str, ...]] = Field(
        default=None, alias="allowedDirectories"
    )
    requires_approval: bool = Field(default=False, alias="requiresApproval")
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=MIN_TIMEOUT_MS,
        le=MAX_TIMEOUT_MS,
        description="Wall-clock timeout in milliseconds",
    )
    max_output_size: int = Field(
        default=DEFAULT_MAX_OUTPUT_SIZE,
        gt=0,
        alias="maxOutputSize",
        description="Combined stdout+stderr ceiling in bytes",
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def coerce_timeout(cls, v: Any) -> Any:
        """Unset (0/null) means the default; fractional milliseconds are rounded."""
        if v is None or v == 0:
            return DEFAULT_TIMEOUT_MS
        if isinstance(v, float):
            return round(v)
        return v

    @model_validator(mode="after")
    def validate_template_references(self) -> "ToolConfig":
        """Every {placeholder} in the argument template must be a declared parameter."""
        for token in self.args:
            for name in PLACEHOLDER_RE.findall(token):
                if name not in self.parameters:
                    raise ValueError(
                        f"tool '{self.name}': argument template references "
                        f"undeclared parameter '{name}'"
                    )
        return self

    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool's arguments."""
        return {
            "type": "object",
            "properties": {
                name: spec.to_json_schema() for name, spec in self.parameters.items()
            },
            "required": [name for name, spec in self.parameters.items() if spec.required],
        }


class SecurityPolicy(_RegistryModel):
    """Process-wide security settings from the registry file."""

    allowed_commands: Optional[tuple[str, ...]] = Field(
        default=None, alias="allowedCommands"
    )
    # Declared for forward compatibility; validated but not enforced.
    blocked_patterns: Optional[tuple[str, ...]] = Field(
        default=None, alias="blockedPatterns"
    )
    max_executions_per_minute: int = Field(
        default=DEFAULT_MAX_EXECUTIONS_PER_MINUTE,
        ge=1,
        alias="maxExecutionsPerMinute",
    )

    @field_validator("max_executions_per_minute", mode="before")
    @classmethod
    def coerce_max_executions(cls, v: Any) -> Any:
        """Unset (0/null) means the default ceiling."""
        if v is None or v == 0:
            return DEFAULT_MAX_EXECUTIONS_PER_MINUTE
        return v

    @field_validator("blocked_patterns")
    @classmethod
    def validate_blocked_patterns(
        cls, v: Optional[tuple[str, ...]]
    ) -> Optional[tuple[str, ...]]:
        for pattern in v or ():
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid blocked pattern {pattern!r}: {e}") from e
        return v


class ToolRegistryConfig(_RegistryModel):
    """The full tool registry: tool definitions and security policy."""

    tools: tuple[ToolConfig, ...]
    security: SecurityPolicy = Field(default_factory=SecurityPolicy)

    @field_validator("security", mode="before")
    @classmethod
    def default_security(cls, v: Any) -> Any:
        return {} if v is None else v

    @model_validator(mode="after")
    def validate_unique_names(self) -> "ToolRegistryConfig":
        """Tool names are the lookup key and must be unique."""
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name in seen:
                raise ValueError(f"duplicate tool name: '{tool.name}'")
            seen.add(tool.name)
        return self

    def get_tool(self, name: str) -> Optional[ToolConfig]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    @property
    def tool_names(self) -> list[str]:
        return [tool.name for tool in self.tools]


def default_tool_registry() -> ToolRegistryConfig:
    """
    Minimal built-in registry used when no registry file can be loaded.

    Keeps the server reachable for diagnosis with a single echo tool.
    """
    return ToolRegistryConfig.model_validate(
        {
            "tools": [
                {
                    "name": "echo",
                    "description": "Echo a message",
                    "command": "echo",
                    "args": ["{message}"],
                    "parameters": {
                        "message": {
                            "type": "string",
                            "description": "Message to echo",
                            "required": True,
                        },
                    },
                    "requiresApproval": False,
                    "timeout": 5000,
                    "maxOutputSize": 1024 * 1024,
                },
            ],
        }
    )
