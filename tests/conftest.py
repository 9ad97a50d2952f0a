"""Pytest fixtures: a scripted in-memory transport and a temporary registry."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import pytest

from mcp_bridge.connection import Connection
from mcp_bridge.manager import ToolBridge
from mcp_bridge.transport import JsonRpcRequest, JsonRpcResponse, Transport


class FakeTransport(Transport):
    """
    Transport that answers the MCP handshake and tools/call from a script.

    ``result`` is the tools/call result (a dict, or a callable taking
    (name, arguments)); ``call_error`` turns tools/call into a JSON-RPC
    error; ``handshake_error`` makes initialize fail.
    """

    def __init__(
        self,
        command: list[str],
        env: dict[str, str] | None = None,
        *,
        tools: list[str] | None = None,
        result: dict | Callable[[str, dict], dict] | None = None,
        call_error: dict | None = None,
        handshake_error: dict | None = None,
        start_error: Exception | None = None,
        stop_error: Exception | None = None,
        call_delay: float = 0,
    ):
        self.command = command
        self.env = env
        self.tools = tools if tools is not None else ["ping"]
        self.result = result if result is not None else {"content": []}
        self.call_error = call_error
        self.handshake_error = handshake_error
        self.start_error = start_error
        self.stop_error = stop_error
        self.call_delay = call_delay

        self.start_count = 0
        self.stop_count = 0
        self.sent: list[JsonRpcRequest] = []
        self.notifications: list[str] = []
        self._alive = False

    async def start(self) -> None:
        self.start_count += 1
        if self.start_error:
            raise self.start_error
        self._alive = True

    async def stop(self) -> None:
        self.stop_count += 1
        self._alive = False
        if self.stop_error:
            raise self.stop_error

    def is_alive(self) -> bool:
        return self._alive

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        self.notifications.append(method)

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        self.sent.append(request)

        if request.method == "initialize":
            if self.handshake_error:
                return JsonRpcResponse(id=request.id, error=self.handshake_error)
            return JsonRpcResponse(id=request.id, result={"protocolVersion": "2024-11-05"})

        if request.method == "tools/list":
            return JsonRpcResponse(id=request.id, result={"tools": [{"name": n} for n in self.tools]})

        if request.method == "tools/call":
            if self.call_delay:
                await asyncio.sleep(self.call_delay)
            if self.call_error:
                return JsonRpcResponse(id=request.id, error=self.call_error)
            result = self.result
            if callable(result):
                result = result(request.params["name"], request.params["arguments"])
            return JsonRpcResponse(id=request.id, result=result)

        return JsonRpcResponse(id=request.id, error={"code": -32601, "message": request.method})

    @property
    def calls(self) -> list[dict]:
        return [r.params for r in self.sent if r.method == "tools/call"]


class FakeTransportFactory:
    """Stands in for StdioTransport; records every transport it "spawns"."""

    def __init__(self, **behaviour: Any):
        self.behaviour = behaviour
        self.instances: list[FakeTransport] = []

    def __call__(self, command: list[str], env: dict[str, str] | None = None) -> FakeTransport:
        transport = FakeTransport(command, env, **self.behaviour)
        self.instances.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.instances[-1]


def write_registry(path: Path, servers: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(servers), encoding="utf-8")
    return path


def text_result(*texts: str, **extra: Any) -> dict:
    return {"content": [{"type": "text", "text": t} for t in texts], **extra}


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    return write_registry(tmp_path / ".claude" / "mcp.json", {
        "demo": {"command": "echo", "args": ["ok"]},
        "puppeteer": {"command": "npx", "args": ["-y", "puppeteer-mcp"], "env": {"HEADLESS": "1"}},
        "context7": {"command": "npx", "args": ["-y", "context7-mcp"]},
    })


@pytest.fixture
def make_bridge(registry_path: Path) -> Callable[..., tuple[ToolBridge, FakeTransportFactory]]:
    """Build a ToolBridge over the temp registry with a scripted transport."""

    def _make(**behaviour: Any) -> tuple[ToolBridge, FakeTransportFactory]:
        factory = FakeTransportFactory(**behaviour)
        return ToolBridge(config_paths=[registry_path], transport_factory=factory), factory

    return _make


@pytest.fixture
def close_counter(monkeypatch: pytest.MonkeyPatch) -> list[Connection]:
    """Record every Connection.close() call."""
    closed: list[Connection] = []
    original = Connection.close

    async def counting_close(self: Connection) -> None:
        closed.append(self)
        await original(self)

    monkeypatch.setattr(Connection, "close", counting_close)
    return closed
