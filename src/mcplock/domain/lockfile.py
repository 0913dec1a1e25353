"""
Lockfile (mcp-lock.json) models.

Design principles:
- Hash-only storage for descriptions and schemas; originals are never stored
- Environment variable names only, never values
- Paths sanitized (home directory -> ~)

Field aliases are camelCase so the persisted JSON stays compatible with
existing mcp-lock.json baselines.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mcplock.domain.models import Capability, Transport


class LockfileTool(BaseModel):
    """Pinned state of a single tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description_hash: str = Field(..., alias="descriptionHash")
    input_schema_hash: str = Field(..., alias="inputSchemaHash")
    capabilities: list[Capability] = Field(default_factory=list)


class LockfileServer(BaseModel):
    """Pinned state of a single server."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    transport: Transport = Transport.STDIO
    command: str | None = None
    args: list[str] | None = None
    url: str | None = None
    env_vars: list[str] | None = Field(default=None, alias="envVars")
    protocol_version: str | None = Field(default=None, alias="protocolVersion")
    server_name: str | None = Field(default=None, alias="serverName")
    server_version: str | None = Field(default=None, alias="serverVersion")
    tools: dict[str, LockfileTool] = Field(default_factory=dict)
    tool_count: int = Field(default=0, ge=0, alias="toolCount")


class Lockfile(BaseModel):
    """
    The persisted integrity baseline.

    `version` is the schema version; loading a newer version than this
    build supports is a hard error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = Field(..., description="Lockfile schema version")
    locked: str = Field(..., description="ISO 8601 generation timestamp")
    host: str = Field(default="", description="Host that generated the lockfile")
    client: str = Field(default="", description="MCP client that was pinned")
    config_path: str = Field(default="", alias="configPath")
    servers: dict[str, LockfileServer] = Field(default_factory=dict)

    @property
    def total_tools(self) -> int:
        return sum(server.tool_count for server in self.servers.values())

    def to_json(self) -> dict:
        """Convert to the on-disk JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
