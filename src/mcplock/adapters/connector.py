"""
MCP protocol connector.

Connects to one MCP server with the official MCP client SDK, performs the
initialize handshake and lists its tools. Three transports are supported:

- stdio: the server runs as a child process
- streamable-http: JSON-RPC POSTs answered with JSON or an event stream
- sse: the legacy transport, where a GET stream announces a POST endpoint

The caller bounds the whole exchange with a timeout; this module never
retries.
"""

from __future__ import annotations

import logging
import os
from contextlib import AbstractAsyncContextManager
from datetime import timedelta
from typing import Any, Protocol, TextIO

import httpx
from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.shared.exceptions import McpError
from mcp.types import Implementation, InitializeResult, ListToolsResult

from mcplock.constants import CLIENT_NAME, VERSION
from mcplock.domain.exceptions import ConnectionFailedError
from mcplock.domain.models import LiveServerInfo, LiveTool, ServerConfig, Transport

logger = logging.getLogger(__name__)

MAX_TOOL_PAGES = 100


class ToolSession(Protocol):
    """The part of mcp.ClientSession used to enumerate tools."""

    async def initialize(self) -> InitializeResult: ...

    async def list_tools(self, cursor: str | None = None) -> ListToolsResult: ...


async def connect_and_list_tools(
    server_name: str, config: ServerConfig, timeout_ms: int
) -> LiveServerInfo:
    """
    Connect to an MCP server and return its identity and tool list.

    Args:
        server_name: Name of the server in the client config.
        config: How to reach the server.
        timeout_ms: Timeout applied to individual requests. The caller
            bounds the overall exchange.

    Raises:
        ConnectionFailedError: If the server cannot be reached or answers
            with a protocol error.
    """
    timeout = timeout_ms / 1000

    if config.transport == Transport.STDIO:
        if not config.command:
            raise ConnectionFailedError(
                f"Server {server_name} has no command configured", server=server_name
            )
    elif not config.url:
        raise ConnectionFailedError(
            f"Server {server_name} has no url configured", server=server_name
        )

    try:
        # Server stderr goes to the null device
        with open(os.devnull, "w", encoding="utf-8") as errlog:
            async with _open_transport(config, timeout, errlog) as streams:
                read_stream, write_stream = streams[0], streams[1]
                async with ClientSession(
                    read_stream,
                    write_stream,
                    read_timeout_seconds=timedelta(seconds=timeout),
                    client_info=Implementation(name=CLIENT_NAME, version=VERSION),
                ) as session:
                    return await list_server_tools(session, server_name)
    except ConnectionFailedError:
        raise
    except Exception as e:
        raise connection_error(e, server_name) from e


def _open_transport(
    config: ServerConfig, timeout: float, errlog: TextIO
) -> AbstractAsyncContextManager[Any]:
    if config.transport == Transport.STDIO:
        params = StdioServerParameters(
            command=config.command or "",
            args=list(config.args),
            env={**os.environ, **config.env},
        )
        return stdio_client(params, errlog=errlog)
    if config.transport == Transport.STREAMABLE_HTTP:
        return streamablehttp_client(config.url or "", timeout=timeout)
    return sse_client(config.url or "", timeout=timeout)


async def list_server_tools(session: ToolSession, server_name: str) -> LiveServerInfo:
    """Run the handshake and page through tools/list."""
    init = await session.initialize()

    tools: list[LiveTool] = []
    cursor: str | None = None
    seen_cursors: set[str] = set()

    for _ in range(MAX_TOOL_PAGES):
        page = await session.list_tools(cursor=cursor)
        tools.extend(
            LiveTool(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputSchema if isinstance(tool.inputSchema, dict) else None,
            )
            for tool in page.tools
        )

        cursor = page.nextCursor or None
        if cursor is None or cursor in seen_cursors:
            break
        seen_cursors.add(cursor)

    logger.debug("%s: %d tool(s)", server_name, len(tools))

    server_info = init.serverInfo
    return LiveServerInfo(
        protocol_version=str(init.protocolVersion) if init.protocolVersion else None,
        server_name=server_info.name if server_info else None,
        server_version=server_info.version if server_info else None,
        tools=tools,
    )


def connection_error(error: BaseException, server_name: str) -> ConnectionFailedError:
    """Map a transport or protocol failure to a ConnectionFailedError."""
    # Transports run inside task groups, which wrap failures in exception groups
    while getattr(error, "exceptions", None):
        error = error.exceptions[0]  # type: ignore[attr-defined]

    if isinstance(error, ConnectionFailedError):
        return error
    if isinstance(error, McpError):
        message = f"Server error: {error.error.message}"
    elif isinstance(error, httpx.HTTPStatusError):
        message = f"HTTP {error.response.status_code} from {error.request.url}"
    elif isinstance(error, httpx.HTTPError):
        message = f"HTTP error: {str(error) or error.__class__.__name__}"
    elif isinstance(error, OSError):
        message = f"Connection failed: {error}"
    else:
        message = str(error) or error.__class__.__name__
    return ConnectionFailedError(message, server=server_name)
