"""
Exception types for the MCP bridge.

Hierarchy:
    MCPBridgeError
    ├── ConfigError
    │   ├── ConfigNotFound       no registry file at any candidate path
    │   └── ServerNotRegistered  registry lacks the requested server
    ├── TransportError           spawn / handshake / pipe failure
    │   └── CallTimeout
    ├── ToolInvocationError      server rejected the capability call
    ├── PersistenceError         artifact write failed (strict mode only)
    ├── BridgeError              uniform wrapper raised by ToolBridge.invoke
    └── RouterError
        ├── RouterConfigError
        └── RoutingParseError
"""

from __future__ import annotations

from typing import Iterable


class MCPBridgeError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(MCPBridgeError):
    """The server registry could not be used."""


class ConfigNotFound(ConfigError):
    def __init__(self, searched: Iterable[str]):
        self.searched = [str(p) for p in searched]
        super().__init__(
            "MCP configuration not found. Please create .claude/mcp.json "
            "with server configurations.\n"
            f"Searched paths: {', '.join(self.searched)}"
        )


class ServerNotRegistered(ConfigError):
    def __init__(self, server: str, available: Iterable[str]):
        self.server = server
        self.available = sorted(available)
        super().__init__(
            f"MCP server '{server}' not found in configuration. "
            f"Available servers: {', '.join(self.available) or '(none)'}"
        )


class TransportError(MCPBridgeError):
    """The server process could not be spawned or talked to."""


class CallTimeout(TransportError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Call did not complete within {timeout}s")


class ToolInvocationError(MCPBridgeError):
    """The server answered the capability call with an error."""

    def __init__(self, capability: str, detail: str):
        self.capability = capability
        self.detail = detail
        super().__init__(f"Tool '{capability}' failed: {detail}")


class PersistenceError(MCPBridgeError):
    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not persist artifact to {path}: {cause}")


class BridgeError(MCPBridgeError):
    """
    Uniform failure for a bridge call.

    Callers never need to tell configuration, transport and tool failures
    apart at the call site; the original exception is kept on ``cause``
    (and ``__cause__``) for the ones that do.
    """

    def __init__(self, server: str, capability: str, cause: BaseException):
        self.server = server
        self.capability = capability
        self.cause = cause
        super().__init__(
            f"MCP bridge call failed: {cause}\n"
            f"Server: {server}, Tool: {capability}\n"
            "Check that MCP servers are properly configured in .claude/mcp.json"
        )


class RouterError(MCPBridgeError):
    """Semantic routing failed."""


class RouterConfigError(RouterError):
    pass


class RoutingParseError(RouterError):
    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Failed to parse routing response: {reason}")
