"""
MCP Bridge — call MCP tool servers from code, keep big payloads local.

Architecture:
    ┌──────────────┐   invoke()   ┌──────────────┐     stdio      ┌──────────────┐
    │   Wrapper    │ ───────────> │  ToolBridge  │ ────────────── │  Tool Server  │
    │ (navigate,   │ <─────────── │ (resolve,    │   JSON-RPC     │  (subprocess) │
    │  screenshot) │   envelope   │  connect)    │     pipes      └──────────────┘
    └──────────────┘              └──────────────┘
           │
           └─> extraction rule ─> small typed result (metadata only)

Each call resolves the server in .claude/mcp.json, spawns it, performs the
MCP handshake, invokes one tool and closes the connection. Wrappers turn
the result envelope into metadata; images are written to disk here and
never returned.
"""

from mcp_bridge.config import LaunchSpec, ServerRegistry, load_registry, resolve
from mcp_bridge.connection import Connection, open_connection, with_connection
from mcp_bridge.envelope import ImageBlock, OtherBlock, ResultEnvelope, TextBlock
from mcp_bridge.errors import (
    BridgeError,
    CallTimeout,
    ConfigError,
    ConfigNotFound,
    MCPBridgeError,
    PersistenceError,
    ServerNotRegistered,
    ToolInvocationError,
    TransportError,
)
from mcp_bridge.extraction import DEFAULT_POLICY, ExtractionPolicy
from mcp_bridge.manager import CallRequest, ToolBridge, ToolOptions, invoke


# LangChain adapters — lazy import so the core bridge has no langchain import cost
def bridge_tools(*args, **kwargs):
    from mcp_bridge.langchain_tools import bridge_tools as _impl
    return _impl(*args, **kwargs)


def register_bridge_tools(*args, **kwargs):
    from mcp_bridge.langchain_tools import register_bridge_tools as _impl
    return _impl(*args, **kwargs)


__all__ = [
    "BridgeError",
    "CallRequest",
    "CallTimeout",
    "ConfigError",
    "ConfigNotFound",
    "Connection",
    "DEFAULT_POLICY",
    "ExtractionPolicy",
    "ImageBlock",
    "LaunchSpec",
    "MCPBridgeError",
    "OtherBlock",
    "PersistenceError",
    "ResultEnvelope",
    "ServerNotRegistered",
    "ServerRegistry",
    "TextBlock",
    "ToolBridge",
    "ToolInvocationError",
    "ToolOptions",
    "TransportError",
    "bridge_tools",
    "invoke",
    "load_registry",
    "open_connection",
    "register_bridge_tools",
    "resolve",
    "with_connection",
]
