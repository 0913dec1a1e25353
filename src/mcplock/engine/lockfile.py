"""
Lockfile construction and loading.

The builder pins every configured server: connection parameters with
secrets elided, plus a content hash and inferred capabilities per tool.
The loader treats the file as untrusted input.
"""

from __future__ import annotations

import json
import logging
import socket
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mcplock.constants import LOCKFILE_VERSION
from mcplock.domain.exceptions import (
    InvalidLockfileError,
    LockfileNotFoundError,
    UnsupportedLockfileVersionError,
)
from mcplock.domain.lockfile import Lockfile, LockfileServer, LockfileTool
from mcplock.domain.models import LiveServerInfo, LiveTool, McpConfig, ServerConfig, ServerError
from mcplock.engine.capabilities import infer_capabilities
from mcplock.engine.hashing import hash_value
from mcplock.engine.runner import Connector, fetch_all

logger = logging.getLogger(__name__)

# Keys dropped from untrusted JSON at every depth
FORBIDDEN_KEYS = frozenset({"__proto__", "constructor", "prototype"})


async def generate_lockfile(
    config: McpConfig,
    *,
    timeout_ms: int,
    connect: bool = True,
    connector: Connector | None = None,
    home: str | Path | None = None,
    host: str | None = None,
) -> tuple[Lockfile, list[ServerError]]:
    """
    Pin the current state of every server in the config.

    Args:
        config: Normalized MCP client config.
        timeout_ms: Per-server connection timeout.
        connect: If False, pin the config shape only (no tools).
        connector: Connector override, mainly for tests.
        home: Home directory to elide from paths. Defaults to the user's home.
        host: Host name to record. Defaults to this machine's host name.

    Returns:
        (lockfile, per-server errors). Servers that failed are absent from
        the lockfile.
    """
    home_dir = str(home) if home is not None else str(Path.home())
    servers: dict[str, LockfileServer] = {}
    errors: list[ServerError] = []

    if connect:
        live, errors = await fetch_all(config, timeout_ms=timeout_ms, connector=connector)
        for name, info in live.items():
            servers[name] = build_server_entry(config.servers[name], info, home=home_dir)
    else:
        for name, server_config in config.servers.items():
            servers[name] = build_config_only_entry(server_config, home=home_dir)

    lockfile = Lockfile(
        version=LOCKFILE_VERSION,
        locked=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        host=host if host is not None else socket.gethostname(),
        client=config.client,
        config_path=sanitize_path(config.config_path, home_dir),
        servers=servers,
    )
    logger.debug(
        "Pinned %d server(s), %d tool(s)", len(lockfile.servers), lockfile.total_tools
    )
    return lockfile, errors


def build_tool_entry(tool: LiveTool) -> LockfileTool:
    """Hash and classify a single live tool."""
    return LockfileTool(
        description_hash=hash_value(tool.description or ""),
        input_schema_hash=hash_value(tool.input_schema or {}),
        capabilities=infer_capabilities(tool.description, tool.name, tool.input_schema),
    )


def build_server_entry(
    config: ServerConfig, info: LiveServerInfo, home: str | None = None
) -> LockfileServer:
    """Build the pinned entry for a server that answered tools/list."""
    base = build_config_only_entry(config, home=home)
    return base.model_copy(
        update={
            "protocol_version": info.protocol_version,
            "server_name": info.server_name,
            "server_version": info.server_version,
            "tools": {tool.name: build_tool_entry(tool) for tool in info.tools},
            "tool_count": len(info.tools),
        }
    )


def build_config_only_entry(config: ServerConfig, home: str | None = None) -> LockfileServer:
    """Pin only the connection parameters. Env values are never recorded."""
    return LockfileServer(
        transport=config.transport,
        command=sanitize_path(config.command, home) if config.command else None,
        args=[sanitize_path(arg, home) for arg in config.args] if config.args else None,
        url=config.url,
        env_vars=list(config.env) if config.env else None,
    )


def sanitize_path(path: str, home: str | None = None) -> str:
    """Replace a leading home-directory prefix with ~."""
    home = home if home is not None else str(Path.home())
    home = home.rstrip("/\\")
    if home and (path == home or path.startswith(home + "/") or path.startswith(home + "\\")):
        return "~" + path[len(home):]
    return path


def parse_lockfile(text: str, path: str | None = None) -> Lockfile:
    """
    Parse and validate lockfile JSON.

    Raises:
        UnsupportedLockfileVersionError: If the version is newer than supported.
        InvalidLockfileError: If the content is malformed.
    """
    try:
        data = json.loads(text, object_pairs_hook=_strip_forbidden_keys)
    except json.JSONDecodeError as e:
        raise InvalidLockfileError(f"Invalid JSON in lockfile: {e.msg}", path=path)
    except RecursionError:
        raise InvalidLockfileError("Lockfile is nested too deeply", path=path)

    if not isinstance(data, dict):
        raise InvalidLockfileError("Lockfile must be a JSON object", path=path)

    # Version gate first; the layout of a newer format is unknown
    version = data.get("version")
    if (
        isinstance(version, (int, float))
        and not isinstance(version, bool)
        and version > LOCKFILE_VERSION
    ):
        raise UnsupportedLockfileVersionError(
            f"Lockfile version {version} is newer than supported ({LOCKFILE_VERSION}). "
            f"Please upgrade mcplock.",
            version=version,
            supported=LOCKFILE_VERSION,
            path=path,
        )

    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidLockfileError("Lockfile 'version' must be an integer", path=path)
    if not isinstance(data.get("servers"), dict):
        raise InvalidLockfileError("Lockfile 'servers' must be an object", path=path)

    try:
        return Lockfile.model_validate(data)
    except ValidationError as e:
        raise InvalidLockfileError(f"Invalid lockfile schema: {e}", path=path)


def read_lockfile(path: str | Path) -> Lockfile:
    """
    Read a lockfile from disk.

    Raises:
        LockfileNotFoundError: If the file does not exist.
        InvalidLockfileError: If the file is unreadable or malformed.
        UnsupportedLockfileVersionError: If the version is newer than supported.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise LockfileNotFoundError(f"Lockfile not found: {path}", path=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidLockfileError(f"Error reading lockfile: {e}", path=str(path))

    return parse_lockfile(content, path=str(path))


def write_lockfile(lockfile: Lockfile, path: str | Path) -> None:
    """Write a lockfile as indented JSON with a trailing newline."""
    Path(path).write_text(
        json.dumps(lockfile.to_json(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )


def _strip_forbidden_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    return {key: value for key, value in pairs if key not in FORBIDDEN_KEYS}
