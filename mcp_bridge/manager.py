"""
Tool Invocation Bridge — the single entry point for calling MCP tools.

Usage:
    bridge = ToolBridge()

    # Call a tool (resolve → spawn → handshake → call → close)
    envelope = await bridge.invoke("puppeteer", "puppeteer_navigate", {"url": "https://example.com"})

    # Or through the module-level default bridge
    envelope = await invoke("context7", "get-library-docs", {"libraryId": "puppeteer"})

Every failure comes back as a BridgeError naming the server, the tool
and the underlying cause.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from mcp_bridge.config import LaunchSpec, resolve
from mcp_bridge.connection import Connection, TransportFactory, with_connection
from mcp_bridge.envelope import ResultEnvelope
from mcp_bridge.errors import BridgeError, CallTimeout
from mcp_bridge.transport import StdioTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallRequest:
    """One capability invocation. Arguments are frozen on construction."""
    server: str
    capability: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))


@dataclass
class ToolOptions:
    """Options shared by every tool wrapper."""
    timeout: float | None = None  # seconds, enforced by the bridge
    verbose: bool = False


class ToolBridge:
    """
    Resolves, connects, invokes and error-wraps one tool call at a time.

    Each invoke() opens its own server process, so calls never observe
    session state left by a previous call unless the server itself
    persists it. Callers needing a single browser session must serialize
    at their own level.
    """

    def __init__(
        self,
        config_paths: Sequence[Path | str] | None = None,
        transport_factory: TransportFactory = StdioTransport,
        default_timeout: float | None = None,
    ):
        self.config_paths = list(config_paths) if config_paths is not None else None
        self.transport_factory = transport_factory
        self.default_timeout = default_timeout

    def resolve(self, server: str) -> LaunchSpec:
        return resolve(server, self.config_paths)

    async def invoke(
        self,
        server: str,
        capability: str,
        arguments: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ResultEnvelope:
        """
        Call a capability on a server.

        Args:
            server: Logical server name from the registry
            capability: Tool name on that server
            arguments: Tool parameters
            timeout: Seconds allowed for the whole call (spawn included)

        Returns:
            The raw result envelope.

        Raises:
            BridgeError: for any configuration, transport, tool or timeout failure.
        """
        timeout = timeout if timeout is not None else self.default_timeout

        try:
            request = CallRequest(server, capability, arguments or {})
            logger.info(f"[MCP Bridge] Calling {server}.{capability} with args: {list(request.arguments)}")
            if timeout is None:
                envelope = await self._run(request)
            else:
                try:
                    envelope = await asyncio.wait_for(self._run(request), timeout=timeout)
                except asyncio.TimeoutError as e:
                    raise CallTimeout(timeout) from e
        except Exception as e:
            logger.error(f"[MCP Bridge] Error calling {server}.{capability}: {e}")
            raise BridgeError(server, capability, e) from e

        logger.info(f"[MCP Bridge] Tool {server}.{capability} executed successfully")
        return envelope

    async def _run(self, request: CallRequest) -> ResultEnvelope:
        launch_spec = self.resolve(request.server)

        async def call(connection: Connection) -> ResultEnvelope:
            return await connection.call_tool(request.capability, dict(request.arguments))

        return await with_connection(
            launch_spec,
            call,
            server_name=request.server,
            transport_factory=self.transport_factory,
        )


_default_bridge: ToolBridge | None = None


def get_default_bridge() -> ToolBridge:
    global _default_bridge
    if _default_bridge is None:
        _default_bridge = ToolBridge()
    return _default_bridge


def set_default_bridge(bridge: ToolBridge | None) -> None:
    """Swap the bridge used by the module-level helpers and wrappers."""
    global _default_bridge
    _default_bridge = bridge


async def invoke(
    server: str,
    capability: str,
    arguments: Mapping[str, Any] | None = None,
    *,
    timeout: float | None = None,
) -> ResultEnvelope:
    """Call a tool through the default bridge."""
    return await get_default_bridge().invoke(server, capability, arguments, timeout=timeout)
