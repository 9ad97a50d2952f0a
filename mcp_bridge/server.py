"""
Minimal MCP tool server over stdio.

A tool server is a standalone process that:
1. Reads JSON-RPC requests from stdin (one per line)
2. Answers the MCP handshake and dispatches tools/call to ToolHandlers
3. Writes JSON-RPC responses to stdout

It is used by the demo server and the integration tests; real servers
(Puppeteer, Context7) are separate programs.

    from mcp_bridge.server import StdioToolServer, ToolHandler, text_block

    class Ping(ToolHandler):
        name = "ping"
        description = "Health check"

        def handle(self, params: dict) -> list[dict]:
            return [text_block("pong")]

    if __name__ == "__main__":
        server = StdioToolServer("demo")
        server.register(Ping())
        server.run()
"""

from __future__ import annotations

import json
import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, TextIO

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


def text_block(text: str) -> dict:
    return {"type": "text", "text": text}


def image_block(data: str, mime_type: str = "image/png") -> dict:
    return {"type": "image", "data": data, "mimeType": mime_type}


class ToolHandler(ABC):
    """
    Base class for a tool implementation.

    Subclasses define what a tool does. The server handles transport.
    """

    # Subclasses must set these
    name: str = ""
    description: str = ""
    parameters: dict[str, dict] = {}

    @abstractmethod
    def handle(self, params: dict[str, Any]) -> list[dict] | dict:
        """
        Execute the tool with the given parameters.

        Returns:
            Either a list of content blocks, or a full result object
            (``{"content": [...], ...extra fields}``).
        """
        ...

    def get_schema(self) -> dict:
        """Return the tool schema for tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": self.parameters,
            },
        }


class StdioToolServer:
    """
    JSON-RPC tool server that communicates via stdin/stdout.

    Protocol:
    - One JSON-RPC message per line
    - Supports methods:
        - "initialize"                → server info and capabilities
        - "notifications/initialized" → no response (notification)
        - "tools/list"                → {"tools": [schemas]}
        - "tools/call"                → {"content": [...]} ; handler errors
                                        come back as isError results
        - "ping"                      → {}
    """

    def __init__(self, name: str = "mcp-bridge-server", version: str = "1.0.0"):
        self.name = name
        self.version = version
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        self._handlers[handler.name] = handler
        logger.info(f"Registered tool: {handler.name}")

    def run(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """
        Main loop: read requests from stdin, dispatch, write responses to stdout.

        This blocks until stdin is closed (parent process terminates).
        """
        stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        logger.info(f"Tool server starting with {len(self._handlers)} tools: "
                    f"{list(self._handlers.keys())}")

        for line in stdin:
            line = line.strip()
            if not line:
                continue

            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                self._write_error(None, -32700, f"Parse error: {e}")
                continue

            request_id = request.get("id")
            method = request.get("method", "")
            params = request.get("params") or {}

            if request_id is None:
                logger.debug(f"Notification: {method}")
                continue

            try:
                result = self._dispatch(method, params)
                self._write_result(request_id, result)
            except LookupError as e:
                self._write_error(request_id, -32601, str(e))
            except Exception as e:
                self._write_error(request_id, -32603, str(e))

    def _dispatch(self, method: str, params: dict) -> Any:
        """Route a method call to the appropriate handler."""

        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self.name, "version": self.version},
            }

        if method == "ping":
            return {}

        if method == "tools/list":
            return {"tools": [h.get_schema() for h in self._handlers.values()]}

        if method == "tools/call":
            tool_name = params.get("name", "")
            handler = self._handlers.get(tool_name)
            if not handler:
                raise LookupError(
                    f"Unknown tool: '{tool_name}'. "
                    f"Available: {list(self._handlers.keys())}"
                )
            return self._call(handler, params.get("arguments") or {})

        raise LookupError(f"Unknown method: '{method}'")

    def _call(self, handler: ToolHandler, arguments: dict) -> dict:
        try:
            result = handler.handle(arguments)
        except Exception as e:
            logger.warning(f"Tool {handler.name} failed: {e}")
            return {"content": [text_block(str(e))], "isError": True}

        if isinstance(result, list):
            return {"content": result}
        return result

    def _write(self, message: dict) -> None:
        self._stdout.write(json.dumps(message) + "\n")
        self._stdout.flush()

    def _write_result(self, request_id: Any, result: Any) -> None:
        """Write a JSON-RPC success response to stdout."""
        self._write({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _write_error(self, request_id: Any, code: int, message: str) -> None:
        """Write a JSON-RPC error response to stdout."""
        self._write({
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {"code": code, "message": message},
        })
