"""
Documentation search wrapper (Context7 MCP server).

Context7 works in two steps: resolve a framework name to a library id,
then fetch that library's docs. The full documentation text is split and
filtered here; only the first few truncated sections are returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mcp_bridge.errors import BridgeError
from mcp_bridge.extraction import SearchCodebaseResult, extract_docs, extract_library_id
from mcp_bridge.manager import ToolBridge, ToolOptions, get_default_bridge

logger = logging.getLogger(__name__)

SERVER = "context7"
RESOLVE_LIBRARY = "resolve-library-id"
GET_DOCS = "get-library-docs"
DEFAULT_LIBRARY = "puppeteer"


@dataclass
class SearchCodebaseOptions(ToolOptions):
    query: str = ""
    framework: str | None = None
    max_results: int = 5

    def __post_init__(self):
        if not self.query:
            raise ValueError("query is required")
        if self.max_results < 1:
            raise ValueError("max_results must be at least 1")


async def search_codebase(
    options: SearchCodebaseOptions,
    *,
    bridge: ToolBridge | None = None,
) -> SearchCodebaseResult:
    """
    Search up-to-date library documentation.

    A failed library-id lookup is not fatal: the framework name is used
    as the id directly. A failed docs fetch raises BridgeError.
    """
    bridge = bridge or get_default_bridge()
    library_id = options.framework

    if options.framework:
        try:
            envelope = await bridge.invoke(
                SERVER,
                RESOLVE_LIBRARY,
                {"name": options.framework},
                timeout=options.timeout,
            )
            library_id = extract_library_id(envelope, options.framework)
            logger.info(f"[Context7] Resolved '{options.framework}' to library ID: {library_id}")
        except BridgeError as e:
            logger.info(f"[Context7] Could not resolve library, using framework name directly ({e.cause})")

    envelope = await bridge.invoke(
        SERVER,
        GET_DOCS,
        {"libraryId": library_id or DEFAULT_LIBRARY, "query": options.query},
        timeout=options.timeout,
    )

    result = extract_docs(
        envelope,
        query=options.query,
        library_id=library_id,
        framework=options.framework,
        max_results=options.max_results,
    )
    logger.debug(
        f"[Context7] {result.total_results} sections, returning {len(result.snippets)}"
    )
    return result
