"""
Demo MCP Tool Server — minimal reference implementation.

Exposes a handful of tools that mimic the shapes real servers return,
so the bridge can be exercised end to end without a browser:

    ping        → text "pong"
    echo        → text echo of "message"
    screenshot  → status text block, then a 1x1 PNG image block
    fail        → isError result

Launch:
    python -m mcp_bridge.servers.demo

Registry entry:
    {"demo": {"command": "python", "args": ["-m", "mcp_bridge.servers.demo"]}}
"""

from mcp_bridge.server import StdioToolServer, ToolHandler, image_block, text_block

# 1x1 transparent PNG
PIXEL_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class PingTool(ToolHandler):
    name = "ping"
    description = "Health check. Answers 'pong'."

    def handle(self, params: dict) -> list[dict]:
        return [text_block("pong")]


class EchoTool(ToolHandler):
    name = "echo"
    description = "Echoes back the input message. Useful for testing."
    parameters = {
        "message": {
            "type": "string",
            "description": "The message to echo back",
        },
    }

    def handle(self, params: dict) -> list[dict]:
        return [text_block(str(params.get("message", "")))]


class ScreenshotTool(ToolHandler):
    name = "screenshot"
    description = "Returns a status line and a tiny PNG, like a browser screenshot tool."
    parameters = {
        "fullPage": {"type": "boolean", "description": "Ignored"},
    }

    def handle(self, params: dict) -> dict:
        return {
            "content": [text_block("Screenshot taken"), image_block(PIXEL_PNG)],
            "width": 1,
            "height": 1,
        }


class FailTool(ToolHandler):
    name = "fail"
    description = "Always fails."

    def handle(self, params: dict) -> list[dict]:
        raise RuntimeError(params.get("reason") or "requested failure")


def main() -> None:
    server = StdioToolServer("demo")
    server.register(PingTool())
    server.register(EchoTool())
    server.register(ScreenshotTool())
    server.register(FailTool())
    server.run()


if __name__ == "__main__":
    main()
