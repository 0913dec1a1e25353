"""
MCP client config discovery.

Finds the first available MCP client config file and normalizes its server
definitions. Supports the `mcpServers` key (Claude Desktop, Claude Code,
Cursor, Windsurf, project .mcp.json), VS Code's `mcp.servers`, and a bare
`servers` key. Files may contain comments and trailing commas (JSONC).
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from mcplock.domain.exceptions import ConfigError
from mcplock.domain.models import McpConfig, ServerConfig, Transport

logger = logging.getLogger(__name__)

# Search order when no explicit path is given
CLIENT_PRIORITY = [
    "project-local",
    "claude-code",
    "claude-desktop",
    "cursor",
    "vscode",
    "windsurf",
]

# Strings, // comments, /* */ comments, and commas before a closing bracket
_JSONC_TOKENS = re.compile(
    r'("(?:\\.|[^"\\])*")|(//[^\n]*)|(/\*.*?\*/)|(,\s*(?=[}\]]))',
    re.DOTALL,
)


class ConfigLocation(BaseModel):
    """A known config file location for an MCP client."""

    model_config = ConfigDict(frozen=True)

    client: str
    path: Path
    exists: bool = False


def get_config_locations(
    home: Path | None = None,
    cwd: Path | None = None,
    platform: str | None = None,
    appdata: Path | None = None,
) -> list[ConfigLocation]:
    """
    Known MCP client config locations for a platform.

    Args:
        home: Home directory. Defaults to the current user's.
        cwd: Project directory for .mcp.json. Defaults to the working directory.
        platform: sys.platform value. Defaults to the running platform.
        appdata: Windows roaming app data directory.
    """
    home = home or Path.home()
    cwd = cwd or Path.cwd()
    platform = platform or sys.platform
    if appdata is None:
        appdata = Path(os.environ.get("APPDATA") or home / "AppData" / "Roaming")

    if platform == "darwin":
        support = home / "Library" / "Application Support"
        desktop = support / "Claude" / "claude_desktop_config.json"
        cursor = support / "Cursor" / "User" / "globalStorage" / "cursor.mcp" / "mcp.json"
        vscode = support / "Code" / "User" / "settings.json"
    elif platform == "win32":
        desktop = appdata / "Claude" / "claude_desktop_config.json"
        cursor = appdata / "Cursor" / "User" / "globalStorage" / "cursor.mcp" / "mcp.json"
        vscode = appdata / "Code" / "User" / "settings.json"
    else:
        config_home = home / ".config"
        desktop = config_home / "claude" / "claude_desktop_config.json"
        cursor = config_home / "Cursor" / "User" / "globalStorage" / "cursor.mcp" / "mcp.json"
        vscode = config_home / "Code" / "User" / "settings.json"

    candidates = [
        ("claude-desktop", desktop),
        ("claude-code", home / ".claude.json"),
        ("cursor", cursor),
        ("vscode", vscode),
        ("windsurf", home / ".codeium" / "windsurf" / "mcp_config.json"),
        ("project-local", cwd / ".mcp.json"),
    ]

    return [
        ConfigLocation(client=client, path=path, exists=path.is_file())
        for client, path in candidates
    ]


def discover_config(
    explicit_path: str | Path | None = None,
    *,
    home: Path | None = None,
    cwd: Path | None = None,
    platform: str | None = None,
) -> McpConfig | None:
    """
    Find and parse an MCP config.

    Priority: explicit path > project-local > claude-code > claude-desktop >
    cursor > vscode > windsurf.

    Returns:
        The first config that defines at least one server, or None.

    Raises:
        ConfigError: If an explicit path cannot be read or parsed.
    """
    if explicit_path is not None:
        return parse_config_file(Path(explicit_path), client="explicit")

    locations = {loc.client: loc for loc in get_config_locations(home, cwd, platform)}
    for client in CLIENT_PRIORITY:
        location = locations.get(client)
        if location is None or not location.exists:
            continue
        try:
            config = parse_config_file(location.path, client=client)
        except ConfigError as e:
            logger.debug("Skipping %s config: %s", client, e.message)
            continue
        if config is not None:
            return config

    return None


def parse_config_file(path: Path, client: str) -> McpConfig | None:
    """
    Parse a single config file.

    Returns:
        The normalized config, or None if it defines no servers.

    Raises:
        ConfigError: If the file cannot be read or is not valid JSON(C).
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}", config_path=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Error reading config: {e}", config_path=str(path))

    try:
        data = json.loads(strip_jsonc(content))
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Invalid JSON in config at line {e.lineno}: {e.msg}", config_path=str(path)
        )

    return parse_config_dict(data, client=client, config_path=str(path))


def parse_config_dict(data: Any, client: str, config_path: str) -> McpConfig | None:
    """Extract server definitions from parsed config data."""
    if not isinstance(data, dict):
        return None

    raw: Any = None
    if isinstance(data.get("mcpServers"), dict):
        raw = data["mcpServers"]
    elif isinstance(data.get("mcp"), dict) and isinstance(data["mcp"].get("servers"), dict):
        raw = data["mcp"]["servers"]
    elif isinstance(data.get("servers"), dict):
        raw = data["servers"]

    servers = normalize_servers(raw) if raw else {}
    if not servers:
        return None

    return McpConfig(client=client, config_path=config_path, servers=servers)


def normalize_servers(raw: dict[str, Any]) -> dict[str, ServerConfig]:
    """Normalize per-client server schemas into ServerConfig."""
    servers: dict[str, ServerConfig] = {}

    for name, value in raw.items():
        if not isinstance(value, dict):
            continue
        env = value.get("env")
        try:
            servers[name] = ServerConfig(
                transport=infer_transport(value),
                command=value["command"] if isinstance(value.get("command"), str) else None,
                args=value.get("args") if isinstance(value.get("args"), list) else None,
                url=value["url"] if isinstance(value.get("url"), str) else None,
                env=env if isinstance(env, dict) else None,
            )
        except ValidationError as e:
            logger.debug("Skipping malformed server %s: %s", name, e)

    return servers


def infer_transport(value: dict[str, Any]) -> Transport:
    """Explicit transport wins; a URL without one means legacy SSE."""
    declared = value.get("transport") or value.get("type")
    if declared == "sse":
        return Transport.SSE
    if declared in ("streamable-http", "http", "streamableHttp"):
        return Transport.STREAMABLE_HTTP
    if isinstance(value.get("url"), str):
        return Transport.SSE
    return Transport.STDIO


def strip_jsonc(text: str) -> str:
    """Remove comments and trailing commas, leaving string literals intact."""

    def replace(match: re.Match[str]) -> str:
        return match.group(1) or ""

    return _JSONC_TOKENS.sub(replace, text)
