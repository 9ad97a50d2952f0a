"""Tests for the tool invocation bridge."""

import pytest

from mcp_bridge import manager
from mcp_bridge.errors import (
    BridgeError,
    CallTimeout,
    ConfigNotFound,
    ServerNotRegistered,
    ToolInvocationError,
    TransportError,
)
from mcp_bridge.manager import CallRequest, ToolBridge

from conftest import FakeTransportFactory, text_result


@pytest.mark.asyncio
async def test_invoke_returns_envelope(make_bridge):
    bridge, factory = make_bridge(result=text_result("pong"))

    envelope = await bridge.invoke("demo", "ping", {})

    assert envelope.first_text() == "pong"
    assert factory.last.command == ["echo", "ok"]
    assert factory.last.calls == [{"name": "ping", "arguments": {}}]
    assert factory.last.stop_count == 1


@pytest.mark.asyncio
async def test_unregistered_server_fails_before_spawn(make_bridge):
    bridge, factory = make_bridge()

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("missing-server", "x", {})

    assert isinstance(exc_info.value.cause, ServerNotRegistered)
    assert isinstance(exc_info.value.__cause__, ServerNotRegistered)
    assert factory.instances == []


@pytest.mark.asyncio
async def test_missing_registry_is_wrapped(tmp_path):
    factory = FakeTransportFactory()
    bridge = ToolBridge(config_paths=[tmp_path / "none.json"], transport_factory=factory)

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("demo", "ping")

    assert isinstance(exc_info.value.cause, ConfigNotFound)
    assert factory.instances == []


@pytest.mark.asyncio
async def test_error_names_server_tool_and_cause(make_bridge):
    bridge, _ = make_bridge(call_error={"code": -32603, "message": "no such element"})

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("puppeteer", "puppeteer_click", {"selector": "#go"})

    err = exc_info.value
    assert isinstance(err.cause, ToolInvocationError)
    assert err.server == "puppeteer"
    assert err.capability == "puppeteer_click"
    assert "Server: puppeteer, Tool: puppeteer_click" in str(err)
    assert "no such element" in str(err)


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped(make_bridge):
    bridge, _ = make_bridge(start_error=OSError("command not found"))

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("demo", "ping")
    assert isinstance(exc_info.value.cause, TransportError)


@pytest.mark.asyncio
async def test_launch_env_is_passed_to_transport(make_bridge):
    bridge, factory = make_bridge()
    await bridge.invoke("puppeteer", "puppeteer_navigate", {"url": "https://example.com"})
    assert factory.last.env == {"HEADLESS": "1"}


@pytest.mark.asyncio
async def test_each_call_opens_its_own_connection(make_bridge):
    bridge, factory = make_bridge()

    await bridge.invoke("demo", "ping")
    await bridge.invoke("demo", "ping")

    assert len(factory.instances) == 2
    assert all(t.stop_count == 1 for t in factory.instances)


@pytest.mark.asyncio
async def test_timeout_is_enforced_and_connection_closed(make_bridge):
    bridge, factory = make_bridge(call_delay=5)

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("demo", "ping", timeout=0.05)

    assert isinstance(exc_info.value.cause, CallTimeout)
    assert factory.last.stop_count == 1


@pytest.mark.asyncio
async def test_default_timeout_applies(registry_path):
    factory = FakeTransportFactory(call_delay=5)
    bridge = ToolBridge(config_paths=[registry_path], transport_factory=factory, default_timeout=0.05)

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("demo", "ping")
    assert isinstance(exc_info.value.cause, CallTimeout)


@pytest.mark.asyncio
async def test_module_invoke_uses_default_bridge(make_bridge):
    bridge, factory = make_bridge(result=text_result("pong"))
    manager.set_default_bridge(bridge)
    try:
        envelope = await manager.invoke("demo", "ping")
    finally:
        manager.set_default_bridge(None)

    assert envelope.first_text() == "pong"
    assert len(factory.instances) == 1


def test_call_request_arguments_are_frozen():
    args = {"url": "https://example.com"}
    request = CallRequest("puppeteer", "puppeteer_navigate", args)
    args["url"] = "changed"

    assert request.arguments["url"] == "https://example.com"
    with pytest.raises(TypeError):
        request.arguments["url"] = "x"


@pytest.mark.asyncio
async def test_non_mapping_arguments_are_wrapped(make_bridge):
    bridge, factory = make_bridge()

    with pytest.raises(BridgeError) as exc_info:
        await bridge.invoke("demo", "ping", [1, 2])

    assert isinstance(exc_info.value.cause, TypeError)
    assert exc_info.value.server == "demo"
    assert factory.instances == []
