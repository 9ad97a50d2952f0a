"""
Server registry resolution.

The registry is a JSON file mapping logical server names to launch specs:

    {
      "puppeteer": {"command": "npx", "args": ["-y", "@mcp/puppeteer"], "env": {}},
      "context7":  {"command": "npx", "args": ["-y", "@upstash/context7-mcp"]}
    }

The ``{"mcpServers": {...}}`` wrapper used by Claude-style config files is
accepted too. Candidate files are tried in order and the first one that
exists *and* parses wins; later candidates are never merged in.

The registry is re-read on every call (no cache).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from mcp_bridge.errors import ConfigError, ConfigNotFound, ServerNotRegistered

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path(".claude") / "mcp.json"
CONFIG_ENV_VAR = "MCP_BRIDGE_CONFIG"


@dataclass(frozen=True)
class LaunchSpec:
    """How to start one tool server process."""
    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "LaunchSpec":
        if not isinstance(data, dict) or not data.get("command"):
            raise ConfigError(f"MCP server '{name}' has no 'command' in its configuration")
        env = data.get("env") or {}
        return cls(
            command=str(data["command"]),
            args=tuple(str(a) for a in data.get("args") or []),
            env={str(k): str(v) for k, v in env.items()},
        )

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


@dataclass
class ServerRegistry:
    """Parsed registry file: server name → raw entry, plus where it came from."""
    entries: dict[str, Any]
    source: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path | None = None) -> "ServerRegistry":
        servers = data.get("mcpServers", data)
        if not isinstance(servers, dict):
            raise ConfigError(f"'mcpServers' in {source} is not an object")
        return cls(entries=dict(servers), source=source)

    def names(self) -> list[str]:
        return sorted(self.entries)

    def get(self, server_name: str) -> LaunchSpec:
        if server_name not in self.entries:
            raise ServerNotRegistered(server_name, self.entries.keys())
        return LaunchSpec.from_dict(server_name, self.entries[server_name])


def default_candidates(cwd: Path | None = None) -> list[Path]:
    """
    Candidate registry paths, in lookup order.

    <cwd>/.claude/mcp.json, <cwd>/../.claude/mcp.json, then an absolute
    fallback: $MCP_BRIDGE_CONFIG if set, else ~/.claude/mcp.json.
    """
    cwd = cwd or Path.cwd()
    fallback = os.environ.get(CONFIG_ENV_VAR) or str(Path.home() / CONFIG_RELATIVE_PATH)
    return [
        cwd / CONFIG_RELATIVE_PATH,
        cwd.parent / CONFIG_RELATIVE_PATH,
        Path(fallback).expanduser().resolve(),
    ]


def load_registry(candidates: Sequence[Path | str] | None = None) -> ServerRegistry:
    """Load the first candidate registry that exists and parses."""
    paths = [Path(p) for p in candidates] if candidates is not None else default_candidates()

    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"Skipping registry candidate {path}: {e}")
            continue
        if not isinstance(data, dict):
            logger.debug(f"Skipping registry candidate {path}: not a JSON object")
            continue

        logger.debug(f"Loaded MCP registry from {path}")
        return ServerRegistry.from_dict(data, source=path)

    raise ConfigNotFound(paths)


def resolve(
    server_name: str,
    candidates: Iterable[Path | str] | None = None,
) -> LaunchSpec:
    """Map a logical server name to its launch spec."""
    registry = load_registry(list(candidates) if candidates is not None else None)
    return registry.get(server_name)
