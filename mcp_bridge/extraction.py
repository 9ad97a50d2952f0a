"""
Per-capability extraction rules.

Each wrapper turns a ResultEnvelope into a small typed result. The rules
favor returning approximate-but-present metadata over failing:

  - success is optimistic unless the policy says otherwise
  - missing dimensions / status fall back to policy defaults

ExtractionPolicy makes those defaults explicit and injectable, so strict
verification can be switched on (tests, debugging) without touching the
wrappers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from mcp_bridge.envelope import ResultEnvelope, TextBlock

logger = logging.getLogger(__name__)

OPTIMISTIC_SUCCESS = True
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
DEFAULT_STATUS = 200
DEFAULT_TITLE = "Unknown"

SNIPPET_MAX_CHARS = 500


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}")
        return default


@dataclass(frozen=True)
class ExtractionPolicy:
    """Defaults applied when an envelope does not carry the expected fields."""
    optimistic_success: bool = OPTIMISTIC_SUCCESS
    default_width: int = DEFAULT_WIDTH
    default_height: int = DEFAULT_HEIGHT
    default_status: int = DEFAULT_STATUS
    strict_persistence: bool = False

    @classmethod
    def from_env(cls) -> "ExtractionPolicy":
        return cls(
            optimistic_success=_env_flag("MCP_BRIDGE_OPTIMISTIC", OPTIMISTIC_SUCCESS),
            default_width=_env_int("MCP_BRIDGE_DEFAULT_WIDTH", DEFAULT_WIDTH),
            default_height=_env_int("MCP_BRIDGE_DEFAULT_HEIGHT", DEFAULT_HEIGHT),
            strict_persistence=_env_flag("MCP_BRIDGE_STRICT_PERSISTENCE", False),
        )


DEFAULT_POLICY = ExtractionPolicy()
STRICT_POLICY = ExtractionPolicy(optimistic_success=False, strict_persistence=True)


# ── Result types ───────────────────────────────────────────


@dataclass(frozen=True)
class NavigateResult:
    url: str
    title: str
    status: int
    load_time_ms: int


@dataclass(frozen=True)
class ClickResult:
    success: bool
    selector: str
    element_found: bool
    navigation_occurred: bool


@dataclass(frozen=True)
class TypeResult:
    success: bool
    selector: str
    characters_typed: int


@dataclass(frozen=True)
class CodeSnippet:
    title: str
    snippet: str
    relevance_score: float
    source: str


@dataclass(frozen=True)
class SearchCodebaseResult:
    query: str
    total_results: int
    snippets: list[CodeSnippet] = field(default_factory=list)
    framework: str | None = None


# ── Rules ──────────────────────────────────────────────────


def action_succeeded(
    envelope: ResultEnvelope,
    keyword: str,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> bool:
    """
    Infer success of a fire-and-forget browser action.

    True when the first text block mentions ``keyword`` or the server
    sent an explicit ``success`` flag; otherwise the policy decides. With
    the default policy an envelope with no evidence at all still counts as
    a success.
    """
    if envelope.is_error:
        return False

    text = envelope.first_text()
    if text is not None and keyword.lower() in text.lower():
        return True
    if envelope.raw.get("success") is True:
        return True
    return policy.optimistic_success


def extract_navigation(
    envelope: ResultEnvelope,
    url: str,
    load_time_ms: int,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> NavigateResult:
    match envelope.first_block():
        case TextBlock(text=text) if text:
            title = text
        case _:
            title = DEFAULT_TITLE

    return NavigateResult(
        url=url,
        title=title,
        status=envelope.status_code if envelope.status_code is not None else policy.default_status,
        load_time_ms=load_time_ms,
    )


def extract_click(
    envelope: ResultEnvelope,
    selector: str,
    wait_for_navigation: bool = False,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> ClickResult:
    return ClickResult(
        success=action_succeeded(envelope, "clicked", policy),
        selector=selector,
        element_found=True,
        navigation_occurred=wait_for_navigation,
    )


def extract_fill(
    envelope: ResultEnvelope,
    selector: str,
    text: str,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> TypeResult:
    return TypeResult(
        success=action_succeeded(envelope, "filled", policy),
        selector=selector,
        characters_typed=len(text),
    )


def extract_image(envelope: ResultEnvelope) -> str | None:
    """Base64 payload of the first image block, else the raw data/base64 field."""
    image = envelope.first_image()
    if image is not None:
        return image.data

    for key in ("data", "base64"):
        value = envelope.raw.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value) if value > 0 else None


def extract_dimensions(
    envelope: ResultEnvelope,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> tuple[int, int]:
    width = _positive_int(envelope.raw.get("width")) or policy.default_width
    height = _positive_int(envelope.raw.get("height")) or policy.default_height
    return width, height


def extract_library_id(envelope: ResultEnvelope, fallback: str) -> str:
    match envelope.first_block():
        case TextBlock(text=text) if text.strip():
            return text.strip()
        case _:
            return fallback


def extract_docs(
    envelope: ResultEnvelope,
    query: str,
    library_id: str | None,
    framework: str | None = None,
    max_results: int = 5,
) -> SearchCodebaseResult:
    """
    Split documentation text into sections and keep only the first few.

    The full text never leaves this function; snippets are truncated and
    scored by position.
    """
    match envelope.first_block():
        case TextBlock(text=text) if text:
            content = text
        case _:
            raw_text = envelope.raw.get("text")
            content = raw_text if isinstance(raw_text, str) else ""

    sections = [s for s in content.split("\n\n") if s.strip()]
    snippets = [
        CodeSnippet(
            title=f"Section {i + 1}",
            snippet=section[:SNIPPET_MAX_CHARS],
            relevance_score=round(1.0 - i * 0.1, 2),
            source=library_id or "unknown",
        )
        for i, section in enumerate(sections[:max_results])
    ]

    return SearchCodebaseResult(
        query=query,
        total_results=len(sections),
        snippets=snippets,
        framework=framework,
    )
