"""Tests for the LangChain StructuredTool adapters."""

import base64
import json

import pytest

from mcp_bridge.langchain_tools import bridge_tools, register_bridge_tools

from conftest import text_result

IMAGE = base64.b64encode(bytes(5000)).decode()


def tools_by_name(bridge):
    return {t.name: t for t in bridge_tools(bridge)}


def test_every_wrapper_is_exposed(make_bridge):
    bridge, _ = make_bridge()
    tools = tools_by_name(bridge)
    assert set(tools) == {
        "browser_navigate",
        "browser_click",
        "browser_type",
        "browser_screenshot",
        "search_docs",
    }
    assert "url" in tools["browser_navigate"].args
    assert "selector" in tools["browser_click"].args


@pytest.mark.asyncio
async def test_navigate_tool_returns_metadata_json(make_bridge):
    bridge, _ = make_bridge(result=text_result("Example Domain"))

    output = await tools_by_name(bridge)["browser_navigate"].ainvoke({"url": "https://example.com"})

    data = json.loads(output)
    assert data["title"] == "Example Domain"
    assert data["status"] == 200


@pytest.mark.asyncio
async def test_screenshot_tool_never_returns_image_data(make_bridge):
    bridge, _ = make_bridge(result={"content": [{"type": "image", "data": IMAGE}]})

    output = await tools_by_name(bridge)["browser_screenshot"].ainvoke({})

    assert IMAGE not in output
    data = json.loads(output)
    assert data["saved"] is False
    assert data["metadata"]["size_kb"] == round(len(IMAGE) * 0.75 / 1024)


@pytest.mark.asyncio
async def test_bridge_failure_becomes_error_string(make_bridge):
    bridge, _ = make_bridge(call_error={"code": -32603, "message": "no browser"})

    output = await tools_by_name(bridge)["browser_click"].ainvoke({"selector": "#a"})

    assert output.startswith("Error calling browser_click:")
    assert "no browser" in output


@pytest.mark.asyncio
async def test_invalid_options_become_error_string(make_bridge):
    bridge, factory = make_bridge()

    output = await tools_by_name(bridge)["browser_navigate"].ainvoke({"url": "https://x.test", "wait_until": "soon"})

    assert output.startswith("Error calling browser_navigate:")
    assert factory.instances == []


class RecordingRegistry:
    def __init__(self):
        self.entries = {}

    def register_langchain_tool(self, tool_id, tool, prompt_instructions, domain_tags):
        self.entries[tool_id] = (tool, prompt_instructions, domain_tags)


def test_register_bridge_tools(make_bridge):
    bridge, _ = make_bridge()
    registry = RecordingRegistry()

    registered = register_bridge_tools(
        registry,
        bridge,
        domain_tags={"browser_navigate": ["browser", "testing"]},
        prompt_instructions={"search_docs": "## Tool: search_docs\nCustom"},
    )

    assert sorted(registered) == sorted(registry.entries)
    _, instructions, tags = registry.entries["browser_navigate"]
    assert instructions.startswith("## Tool: browser_navigate")
    assert "url" in instructions
    assert tags == ["browser", "testing"]
    assert registry.entries["search_docs"][1].endswith("Custom")
    assert registry.entries["browser_click"][2] == []
