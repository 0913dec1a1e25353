"""
Domain models for mcplock.

This module contains the core data structures shared by the hasher, the
capability inferencer, the rule engine and the drift differ. All models are
Pydantic v2 and frozen, so rules and the differ can never mutate what they
are handed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Transport(str, Enum):
    """How a client talks to an MCP server."""

    STDIO = "stdio"
    SSE = "sse"
    STREAMABLE_HTTP = "streamable-http"

    @property
    def is_remote(self) -> bool:
        return self is not Transport.STDIO


class Capability(str, Enum):
    """
    Heuristic classification of a tool's potential side effects.

    Always derived from the tool's text and schema, never trusted from input.
    Declaration order is the canonical output order of the inferencer.
    """

    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    EXECUTE = "execute"
    NETWORK = "network"
    DATABASE = "database"
    SECRETS = "secrets"


class FindingSeverity(str, Enum):
    """Severity of a scan finding, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def _get_order(self) -> int:
        order = [
            FindingSeverity.LOW,
            FindingSeverity.MEDIUM,
            FindingSeverity.HIGH,
            FindingSeverity.CRITICAL,
        ]
        return order.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self._get_order() < other._get_order()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self._get_order() <= other._get_order()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self._get_order() > other._get_order()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self._get_order() >= other._get_order()


class DiffSeverity(str, Enum):
    """Severity of a drift entry. A separate scale from FindingSeverity."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ServerConfig(BaseModel):
    """
    Configuration for a single MCP server, as normalized from a client config.

    Either `command` (stdio) or `url` (sse / streamable-http) is set.
    """

    model_config = ConfigDict(frozen=True)

    transport: Transport = Field(default=Transport.STDIO, description="Transport kind")
    command: str | None = Field(default=None, description="Command to start the server")
    args: list[str] = Field(default_factory=list, description="Command arguments")
    url: str | None = Field(default=None, description="Remote server URL")
    env: dict[str, str] = Field(default_factory=dict, description="Environment variables")

    @field_validator("env", mode="before")
    @classmethod
    def validate_env(cls, v: dict[str, Any] | None) -> dict[str, str]:
        if v is None:
            return {}
        return {str(k): "" if val is None else str(val) for k, val in v.items()}

    @field_validator("args", mode="before")
    @classmethod
    def validate_args(cls, v: list[Any] | None) -> list[str]:
        if v is None:
            return []
        return [a for a in v if isinstance(a, str)]


class McpConfig(BaseModel):
    """A client's MCP configuration, already merged and normalized."""

    model_config = ConfigDict(frozen=True)

    client: str = Field(..., description="Client identifier, e.g. claude-desktop")
    config_path: str = Field(..., description="Path of the config file")
    servers: dict[str, ServerConfig] = Field(
        default_factory=dict, description="Server name -> server config"
    )


class LiveTool(BaseModel):
    """A tool as returned by a server's tools/list call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Tool name, unique within its server")
    description: str | None = Field(default=None, description="Tool description")
    input_schema: dict[str, Any] | None = Field(
        default=None, alias="inputSchema", description="JSON Schema for tool input"
    )


class LiveServerInfo(BaseModel):
    """What a server reported during initialize + tools/list."""

    model_config = ConfigDict(frozen=True)

    protocol_version: str | None = None
    server_name: str | None = None
    server_version: str | None = None
    tools: list[LiveTool] = Field(default_factory=list)


class ScanFinding(BaseModel):
    """A static finding produced by a rule or by the cross-server pass."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Rule identifier, e.g. suspicious-description")
    severity: FindingSeverity = Field(..., description="Severity of the finding")
    server: str = Field(..., description="Server name (comma-joined for cross-server findings)")
    tool: str | None = Field(default=None, description="Tool name, if tool-scoped")
    title: str = Field(..., min_length=1, description="Human-readable title")
    detail: str = Field(..., description="Detailed explanation")
    remediation: str | None = Field(default=None, description="How to fix the issue")


class ServerError(BaseModel):
    """A per-server failure recorded alongside the successful results."""

    model_config = ConfigDict(frozen=True)

    server: str
    error: str
