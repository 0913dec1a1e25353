"""
Per-server connector fan-out.

Each server gets one connector call, bounded by the caller's timeout. A
failing or timed-out server is recorded as a ServerError and never aborts
the run. There are no retries at this layer.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

import anyio

from mcplock.domain.models import LiveServerInfo, McpConfig, ServerConfig, ServerError

logger = logging.getLogger(__name__)

Connector = Callable[[str, ServerConfig, int], Awaitable[LiveServerInfo]]


def default_connector() -> Connector:
    """The MCP protocol connector used when the caller does not supply one."""
    from mcplock.adapters.connector import connect_and_list_tools

    return connect_and_list_tools


async def fetch_all(
    config: McpConfig,
    *,
    timeout_ms: int,
    connector: Connector | None = None,
    server_names: Iterable[str] | None = None,
) -> tuple[dict[str, LiveServerInfo], list[ServerError]]:
    """
    Connect to servers concurrently and list their tools.

    Args:
        config: The MCP config holding the servers.
        timeout_ms: Per-server timeout in milliseconds.
        connector: Connector to use. Defaults to the MCP protocol connector.
        server_names: Subset of servers to contact. Defaults to all.

    Returns:
        (live info keyed by server name in config order, per-server errors
        in config order)
    """
    connect = connector or default_connector()
    names = list(server_names) if server_names is not None else list(config.servers)
    results: dict[str, LiveServerInfo] = {}
    failures: dict[str, str] = {}

    async def fetch_one(name: str) -> None:
        logger.debug("Connecting to %s", name)
        try:
            with anyio.fail_after(timeout_ms / 1000):
                results[name] = await connect(name, config.servers[name], timeout_ms)
        except TimeoutError:
            failures[name] = f"Connection timed out after {timeout_ms}ms"
        except Exception as e:  # per-server failure is reported, not raised
            failures[name] = str(e) or e.__class__.__name__
        if name in failures:
            logger.warning("Server %s failed: %s", name, failures[name])

    async with anyio.create_task_group() as tg:
        for name in names:
            tg.start_soon(fetch_one, name)

    ordered = {name: results[name] for name in names if name in results}
    errors = [ServerError(server=name, error=failures[name]) for name in names if name in failures]
    return ordered, errors
