"""
Connection lifecycle for a single bridge call.

    spawn ──> initialize ──> notifications/initialized ──> tools/list
                                                              │
                                      fn(connection) <────────┘
                                              │
                                        close (always)

A Connection is created for one call and closed before the call returns
or raises. It is never pooled or shared.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from mcp_bridge.config import LaunchSpec
from mcp_bridge.envelope import ResultEnvelope
from mcp_bridge.errors import ToolInvocationError, TransportError
from mcp_bridge.transport import JsonRpcRequest, StdioTransport, Transport

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {"name": "mcp-bridge", "version": "1.0.0"}

T = TypeVar("T")
TransportFactory = Callable[[list[str], "dict[str, str] | None"], Transport]


class Connection:
    """An initialized MCP session over one transport."""

    def __init__(self, transport: Transport, server_name: str = ""):
        self.transport = transport
        self.server_name = server_name
        self.tools: list[dict] = []
        self._closed = False

    @property
    def tool_names(self) -> list[str]:
        return [t.get("name", "?") for t in self.tools if isinstance(t, dict)]

    async def _request(self, method: str, params: dict[str, Any]) -> Any:
        request = JsonRpcRequest(method=method, params=params, id=self.transport.next_id())
        response = await self.transport.send(request)
        if response.is_error:
            raise TransportError(
                f"'{method}' rejected by {self.server_name or 'server'}: {response.error_message}"
            )
        return response.result

    async def handshake(self) -> list[dict]:
        """
        Initialize the session and list the server's tools.

        The tool list is for diagnostics only; capabilities are not
        validated against it before invocation.
        """
        await self._request("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": CLIENT_INFO,
        })
        await self.transport.notify("notifications/initialized", {})

        result = await self._request("tools/list", {})
        tools = result.get("tools", []) if isinstance(result, dict) else result
        self.tools = list(tools or [])
        logger.info(
            f"[MCP Bridge] Connected to {self.server_name}, available tools: "
            f"{', '.join(self.tool_names) or 'none'}"
        )
        return self.tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ResultEnvelope:
        request = JsonRpcRequest(
            method="tools/call",
            params={"name": name, "arguments": arguments},
            id=self.transport.next_id(),
        )
        response = await self.transport.send(request)

        if response.is_error:
            raise ToolInvocationError(name, response.error_message)

        envelope = ResultEnvelope.from_result(response.result)
        if envelope.is_error:
            raise ToolInvocationError(name, envelope.first_text() or "tool reported an error")
        return envelope

    async def close(self) -> None:
        """Stop the transport. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.transport.stop()


async def _discard(transport: Transport) -> None:
    """Reap a transport whose handshake never completed."""
    try:
        await transport.stop()
    except Exception as e:
        logger.warning(f"Failed to stop transport after aborted handshake: {e}")


@asynccontextmanager
async def open_connection(
    launch_spec: LaunchSpec,
    *,
    server_name: str = "",
    transport_factory: TransportFactory = StdioTransport,
) -> AsyncIterator[Connection]:
    """
    Spawn, handshake, yield the connection, close it on the way out.

    A failed spawn or handshake is raised as TransportError and no
    Connection is ever closed (the half-started process is still reaped).
    A failing close is logged and never replaces the body's outcome.
    """
    transport = transport_factory(launch_spec.argv, launch_spec.env or None)
    try:
        await transport.start()
        connection = Connection(transport, server_name)
        await connection.handshake()
    except TransportError:
        await _discard(transport)
        raise
    except Exception as e:
        await _discard(transport)
        raise TransportError(f"Handshake with {server_name or launch_spec.command} failed: {e}") from e
    except BaseException:
        await _discard(transport)
        raise

    try:
        yield connection
    finally:
        try:
            await connection.close()
        except Exception as e:
            logger.warning(f"[MCP Bridge] Error closing connection to {server_name}: {e}")


async def with_connection(
    launch_spec: LaunchSpec,
    fn: Callable[[Connection], Awaitable[T]],
    *,
    server_name: str = "",
    transport_factory: TransportFactory = StdioTransport,
) -> T:
    """Run ``fn`` against a freshly opened connection."""
    async with open_connection(
        launch_spec,
        server_name=server_name,
        transport_factory=transport_factory,
    ) as connection:
        return await fn(connection)
