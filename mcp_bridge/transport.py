"""
Transport layer abstraction for MCP tool communication.

Currently implements:
  - StdioTransport: JSON-RPC over stdin/stdout pipes of a child process

A transport is owned by exactly one Connection and lives for one call.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from mcp_bridge.errors import TransportError

logger = logging.getLogger(__name__)

# Large tool results (base64 screenshots) arrive as a single line.
STREAM_LIMIT = 64 * 1024 * 1024
STOP_GRACE_SECONDS = 5


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request."""
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    id: int | str | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_json(self) -> str:
        message: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": self.method,
            "params": self.params,
        }
        if not self.is_notification:
            message["id"] = self.id
        return json.dumps(message)


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def from_json(cls, data: str) -> "JsonRpcResponse":
        parsed = json.loads(data)
        return cls.from_dict(parsed)

    @classmethod
    def from_dict(cls, parsed: dict) -> "JsonRpcResponse":
        return cls(
            id=parsed.get("id"),
            result=parsed.get("result"),
            error=parsed.get("error"),
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def error_message(self) -> str:
        if not self.error:
            return ""
        return str(self.error.get("message") or self.error)


class Transport(ABC):
    """Abstract transport layer for MCP communication."""

    _request_id: int = 0

    @abstractmethod
    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send a request and return the matching response."""
        ...

    @abstractmethod
    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification (no response expected)."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the transport (e.g., launch subprocess)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the transport (e.g., terminate subprocess)."""
        ...

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the transport is active."""
        ...

    def next_id(self) -> int:
        """Generate the next request ID."""
        self._request_id += 1
        return self._request_id


class StdioTransport(Transport):
    """
    JSON-RPC over stdin/stdout pipes to a subprocess.

    This is MCP's native local transport. The tool server runs as
    a child process. We write JSON-RPC requests to its stdin and
    read responses from its stdout. One line = one message.

    Lines that are not JSON, and messages whose id does not match the
    pending request (server notifications, log chatter), are skipped.
    """

    def __init__(self, command: list[str], env: dict[str, str] | None = None):
        """
        Args:
            command: Command to launch the tool server process.
                     e.g., ["npx", "-y", "@modelcontextprotocol/server-puppeteer"]
            env: Extra environment variables, overlaid on the caller's
                 environment.
        """
        self.command = command
        self.env = env
        self._process: asyncio.subprocess.Process | None = None
        self._request_id = 0

    async def start(self) -> None:
        """Launch the tool server subprocess."""
        if self.is_alive():
            logger.warning("Transport already running, stopping first")
            await self.stop()

        logger.info(f"Starting stdio transport: {' '.join(self.command)}")
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env={**os.environ, **(self.env or {})},
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise TransportError(f"Could not start '{self.command[0]}': {e}") from e

    async def stop(self) -> None:
        """Terminate the tool server subprocess."""
        process, self._process = self._process, None
        if process is None:
            return

        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=STOP_GRACE_SECONDS)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        logger.info("Stdio transport stopped")

    def is_alive(self) -> bool:
        """Check if the subprocess is running."""
        return self._process is not None and self._process.returncode is None

    async def _write(self, request: JsonRpcRequest) -> None:
        if not self.is_alive():
            raise TransportError("Transport not running. Call start() first.")

        try:
            self._process.stdin.write((request.to_json() + "\n").encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise TransportError(f"Tool server closed its input: {e}") from e

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        await self._write(JsonRpcRequest(method=method, params=params or {}))

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send JSON-RPC request via stdin, read the matching response from stdout."""
        await self._write(request)

        while True:
            line = await self._process.stdout.readline()
            if not line:
                raise TransportError(
                    f"Tool server process exited (code {self._process.returncode}) "
                    f"before answering '{request.method}'"
                )

            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"Ignoring non-JSON output: {text[:200]}")
                continue

            if not isinstance(message, dict) or message.get("id") != request.id:
                logger.debug(f"Ignoring unrelated message: {text[:200]}")
                continue

            return JsonRpcResponse.from_dict(message)
