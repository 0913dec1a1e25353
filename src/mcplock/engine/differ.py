"""
Drift differ: compares a pinned lockfile against live server state.

Severity policy:
- description changed: CRITICAL (a trusted natural-language directive changed)
- capability gained:   CRITICAL (silent privilege escalation)
- capability lost:     not reported
- schema / tool set / tool count / server set changed: WARNING
- server version changed: INFO
"""

from __future__ import annotations

import logging

from mcplock.domain.lockfile import Lockfile, LockfileServer
from mcplock.domain.models import DiffSeverity, LiveServerInfo, McpConfig, ServerError
from mcplock.domain.report import DiffEntry, DiffResult, DiffType
from mcplock.engine.capabilities import infer_capabilities
from mcplock.engine.hashing import hash_value, secure_compare
from mcplock.engine.runner import Connector, fetch_all

logger = logging.getLogger(__name__)


async def compute_diff(
    lockfile: Lockfile,
    config: McpConfig,
    *,
    timeout_ms: int,
    connect: bool = True,
    connector: Connector | None = None,
) -> tuple[DiffResult, list[ServerError]]:
    """
    Compare current MCP server state against a pinned lockfile.

    Args:
        lockfile: The trusted baseline.
        config: Current normalized MCP config.
        timeout_ms: Per-server connection timeout.
        connect: If False, only the server set is compared.
        connector: Connector override, mainly for tests.

    Returns:
        (diff result, per-server connection errors)
    """
    entries = diff_server_sets(lockfile, config)
    errors: list[ServerError] = []

    if connect:
        shared = [name for name in lockfile.servers if name in config.servers]
        live, errors = await fetch_all(
            config, timeout_ms=timeout_ms, connector=connector, server_names=shared
        )
        for name, info in live.items():
            entries.extend(diff_server_tools(name, lockfile.servers[name], info))

    result = DiffResult.from_entries(entries)
    logger.debug(
        "Diff complete: %d critical, %d warning, %d info",
        result.summary.critical,
        result.summary.warning,
        result.summary.info,
    )
    return result, errors


def diff_server_sets(lockfile: Lockfile, config: McpConfig) -> list[DiffEntry]:
    """Servers removed from or added to the config since pinning."""
    entries: list[DiffEntry] = []

    for name in lockfile.servers:
        if name not in config.servers:
            entries.append(
                DiffEntry(
                    server=name,
                    type=DiffType.SERVER_REMOVED,
                    severity=DiffSeverity.WARNING,
                    detail=f'Server "{name}" was removed from config',
                )
            )

    for name in config.servers:
        if name not in lockfile.servers:
            entries.append(
                DiffEntry(
                    server=name,
                    type=DiffType.SERVER_ADDED,
                    severity=DiffSeverity.WARNING,
                    detail=f'Server "{name}" was added to config (not pinned)',
                )
            )

    return entries


def diff_server_tools(
    server: str, locked: LockfileServer, live: LiveServerInfo
) -> list[DiffEntry]:
    """Compare one pinned server against what it reports now."""
    entries: list[DiffEntry] = []

    if (
        locked.server_version
        and live.server_version
        and locked.server_version != live.server_version
    ):
        entries.append(
            DiffEntry(
                server=server,
                type=DiffType.VERSION_CHANGED,
                severity=DiffSeverity.INFO,
                detail="Server version changed",
                old_value=locked.server_version,
                new_value=live.server_version,
            )
        )

    if locked.tool_count != len(live.tools):
        entries.append(
            DiffEntry(
                server=server,
                type=DiffType.TOOL_COUNT_CHANGED,
                severity=DiffSeverity.WARNING,
                detail=f"Tool count changed from {locked.tool_count} to {len(live.tools)}",
                old_value=str(locked.tool_count),
                new_value=str(len(live.tools)),
            )
        )

    live_tools = {tool.name: tool for tool in live.tools}

    for tool_name in locked.tools:
        if tool_name not in live_tools:
            entries.append(
                DiffEntry(
                    server=server,
                    tool=tool_name,
                    type=DiffType.TOOL_REMOVED,
                    severity=DiffSeverity.WARNING,
                    detail=f'Tool "{tool_name}" was removed',
                )
            )

    for tool_name in live_tools:
        if tool_name not in locked.tools:
            entries.append(
                DiffEntry(
                    server=server,
                    tool=tool_name,
                    type=DiffType.TOOL_ADDED,
                    severity=DiffSeverity.WARNING,
                    detail=f'New tool "{tool_name}" appeared',
                )
            )

    for tool_name, locked_tool in locked.tools.items():
        tool = live_tools.get(tool_name)
        if tool is None:
            continue

        description_hash = hash_value(tool.description or "")
        schema_hash = hash_value(tool.input_schema or {})
        capabilities = infer_capabilities(tool.description, tool.name, tool.input_schema)

        if not secure_compare(locked_tool.description_hash, description_hash):
            entries.append(
                DiffEntry(
                    server=server,
                    tool=tool_name,
                    type=DiffType.DESCRIPTION_CHANGED,
                    severity=DiffSeverity.CRITICAL,
                    detail="Tool description changed (possible tool poisoning)",
                    old_value=locked_tool.description_hash,
                    new_value=description_hash,
                )
            )

        if not secure_compare(locked_tool.input_schema_hash, schema_hash):
            entries.append(
                DiffEntry(
                    server=server,
                    tool=tool_name,
                    type=DiffType.SCHEMA_CHANGED,
                    severity=DiffSeverity.WARNING,
                    detail="Input schema changed",
                    old_value=locked_tool.input_schema_hash,
                    new_value=schema_hash,
                )
            )

        gained = [cap for cap in capabilities if cap not in locked_tool.capabilities]
        if gained:
            entries.append(
                DiffEntry(
                    server=server,
                    tool=tool_name,
                    type=DiffType.CAPABILITY_CHANGED,
                    severity=DiffSeverity.CRITICAL,
                    detail=f"New capabilities detected: {', '.join(c.value for c in gained)}",
                    old_value=", ".join(c.value for c in locked_tool.capabilities),
                    new_value=", ".join(c.value for c in capabilities),
                )
            )

    return entries
