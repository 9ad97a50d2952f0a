"""
Bridge between the code-API wrappers and LangChain.

Each wrapper (navigate, click, type, screenshot, docs search) becomes a
LangChain StructuredTool. When an agent calls one, the MCP call runs
here and the agent only ever sees the small metadata result as JSON,
never page HTML or image data.

Usage:
    from mcp_bridge.langchain_tools import bridge_tools, register_bridge_tools

    # All wrapper tools
    tools = bridge_tools(ToolBridge())

    # Into a registry exposing register_langchain_tool(...)
    register_bridge_tools(tool_registry)
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Awaitable, Callable

from langchain_core.tools import StructuredTool

from mcp_bridge import browser, docs_search
from mcp_bridge.errors import MCPBridgeError
from mcp_bridge.manager import ToolBridge


def _to_json(result: Any) -> str:
    if dataclasses.is_dataclass(result):
        result = dataclasses.asdict(result)
    return json.dumps(result, indent=2, default=str)


async def _run(name: str, call: Callable[[], Awaitable[Any]]) -> str:
    """Await a wrapper call; failures become an error string for the agent."""
    try:
        return _to_json(await call())
    except (MCPBridgeError, ValueError) as e:
        return f"Error calling {name}: {e}"


def wrapper_to_langchain_tool(
    coroutine: Callable[..., Awaitable[str]],
    description: str | None = None,
) -> StructuredTool:
    """
    Create a LangChain StructuredTool from an async proxy function.

    The argument schema is inferred from the function signature; the
    name is the function name.
    """
    return StructuredTool.from_function(
        coroutine=coroutine,
        name=coroutine.__name__,
        description=description or (coroutine.__doc__ or coroutine.__name__).strip(),
    )


def bridge_tools(bridge: ToolBridge | None = None) -> list[StructuredTool]:
    """Build StructuredTools for every wrapper, all going through ``bridge``."""

    async def browser_navigate(url: str, wait_until: str = "load") -> str:
        """Open a URL in the browser. Returns url, title, status and load time."""
        return await _run("browser_navigate", lambda: browser.navigate(
            browser.NavigateOptions(url=url, wait_until=wait_until), bridge=bridge,
        ))

    async def browser_click(selector: str, wait_for_navigation: bool = False) -> str:
        """Click the element matching a CSS selector. Returns success flag."""
        return await _run("browser_click", lambda: browser.click(
            browser.ClickOptions(selector=selector, wait_for_navigation=wait_for_navigation),
            bridge=bridge,
        ))

    async def browser_type(selector: str, text: str) -> str:
        """Fill the input matching a CSS selector with text."""
        return await _run("browser_type", lambda: browser.type_text(
            browser.TypeOptions(selector=selector, text=text), bridge=bridge,
        ))

    async def browser_screenshot(path: str | None = None, full_page: bool = False) -> str:
        """Take a screenshot and save it to path. Returns size and dimensions only."""
        return await _run("browser_screenshot", lambda: browser.take_screenshot(
            browser.ScreenshotOptions(path=path, full_page=full_page), bridge=bridge,
        ))

    async def search_docs(query: str, framework: str | None = None, max_results: int = 5) -> str:
        """Search library documentation. Returns the top matching snippets."""
        return await _run("search_docs", lambda: docs_search.search_codebase(
            docs_search.SearchCodebaseOptions(
                query=query, framework=framework, max_results=max_results,
            ),
            bridge=bridge,
        ))

    return [
        wrapper_to_langchain_tool(fn)
        for fn in (browser_navigate, browser_click, browser_type, browser_screenshot, search_docs)
    ]


def register_bridge_tools(
    tool_registry: Any,
    bridge: ToolBridge | None = None,
    domain_tags: dict[str, list[str]] | None = None,
    prompt_instructions: dict[str, str] | None = None,
) -> list[str]:
    """
    Register every wrapper tool in an agent tool registry.

    Args:
        tool_registry: Anything exposing register_langchain_tool(tool_id=,
                       tool=, prompt_instructions=, domain_tags=)
        bridge: Bridge the tools call through (default bridge if None)
        domain_tags: Optional {tool_name: [tags]} for categorization
        prompt_instructions: Optional {tool_name: instructions} for
                             system prompt injection

    Returns:
        List of registered tool IDs.
    """
    domain_tags = domain_tags or {}
    prompt_instructions = prompt_instructions or {}
    registered = []

    for lc_tool in bridge_tools(bridge):
        tool_registry.register_langchain_tool(
            tool_id=lc_tool.name,
            tool=lc_tool,
            prompt_instructions=prompt_instructions.get(lc_tool.name) or _auto_prompt_instructions(lc_tool),
            domain_tags=domain_tags.get(lc_tool.name, []),
        )
        registered.append(lc_tool.name)

    return registered


def _auto_prompt_instructions(lc_tool: StructuredTool) -> str:
    """Generate prompt instructions from a tool's argument schema."""
    lines = [f"## Tool: {lc_tool.name}", lc_tool.description, ""]
    if lc_tool.args:
        lines.append("Parameters:")
        for pname, pinfo in lc_tool.args.items():
            ptype = pinfo.get("type", "any")
            pdesc = pinfo.get("description", "")
            lines.append(f"  - {pname} ({ptype}): {pdesc}".rstrip(": "))

    return "\n".join(lines)
