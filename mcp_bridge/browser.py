"""
Browser automation wrappers (Puppeteer MCP server).

Code-API pattern: page HTML and screenshot bytes stay in this process.
Each wrapper returns only a few fields of metadata.

    nav = await navigate(NavigateOptions(url="https://example.com"))
    shot = await take_screenshot(ScreenshotOptions(path="./shots/home.png", full_page=True))
    print(f"{nav.title}: {shot.size_kb}KB saved to {shot.path}")

Each call opens its own server connection; run them sequentially when they
must share one browser session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from mcp_bridge.artifacts import IMAGE_FORMATS, ArtifactMetadata, ImageFormat, persist
from mcp_bridge.extraction import (
    DEFAULT_POLICY,
    ClickResult,
    ExtractionPolicy,
    NavigateResult,
    TypeResult,
    extract_click,
    extract_dimensions,
    extract_fill,
    extract_image,
    extract_navigation,
)
from mcp_bridge.manager import ToolBridge, ToolOptions, get_default_bridge

logger = logging.getLogger(__name__)

SERVER = "puppeteer"
NAVIGATE = "puppeteer_navigate"
CLICK = "puppeteer_click"
FILL = "puppeteer_fill"
SCREENSHOT = "puppeteer_screenshot"

WAIT_UNTIL = ("load", "domcontentloaded", "networkidle0", "networkidle2")


def _log(options: ToolOptions, message: str) -> None:
    logger.log(logging.INFO if options.verbose else logging.DEBUG, message)


@dataclass
class NavigateOptions(ToolOptions):
    url: str = ""
    wait_until: str = "load"

    def __post_init__(self):
        if not self.url:
            raise ValueError("url is required")
        if self.wait_until not in WAIT_UNTIL:
            raise ValueError(f"wait_until must be one of {WAIT_UNTIL}, got {self.wait_until!r}")


@dataclass
class ClickOptions(ToolOptions):
    selector: str = ""
    wait_for_navigation: bool = False
    delay: int | None = None

    def __post_init__(self):
        if not self.selector:
            raise ValueError("selector is required")


@dataclass
class TypeOptions(ToolOptions):
    selector: str = ""
    text: str = ""

    def __post_init__(self):
        if not self.selector:
            raise ValueError("selector is required")


@dataclass
class ScreenshotOptions(ToolOptions):
    path: str | None = None
    full_page: bool = False
    type: ImageFormat = "png"
    quality: int | None = None

    def __post_init__(self):
        if self.type not in IMAGE_FORMATS:
            raise ValueError(f"type must be one of {IMAGE_FORMATS}, got {self.type!r}")


@dataclass(frozen=True)
class ScreenshotResult:
    """Screenshot metadata. The image itself is on disk or discarded."""
    saved: bool
    metadata: ArtifactMetadata

    @property
    def path(self) -> str | None:
        return self.metadata.path

    @property
    def width(self) -> int:
        return self.metadata.width

    @property
    def height(self) -> int:
        return self.metadata.height

    @property
    def size_kb(self) -> int:
        return self.metadata.size_kb

    @property
    def type(self) -> ImageFormat:
        return self.metadata.format


def _without_none(args: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in args.items() if v is not None}


async def navigate(
    options: NavigateOptions,
    *,
    bridge: ToolBridge | None = None,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> NavigateResult:
    """
    Navigate to a URL and wait for page load.

    Returns URL, title, status and load time instead of the page HTML.
    """
    bridge = bridge or get_default_bridge()
    started = time.monotonic()

    envelope = await bridge.invoke(
        SERVER,
        NAVIGATE,
        {"url": options.url, "waitUntil": options.wait_until},
        timeout=options.timeout,
    )

    load_time_ms = int((time.monotonic() - started) * 1000)
    result = extract_navigation(envelope, options.url, load_time_ms, policy)
    _log(options, f"Loaded {result.url} ({result.status}) in {load_time_ms}ms")
    return result


async def click(
    options: ClickOptions,
    *,
    bridge: ToolBridge | None = None,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> ClickResult:
    """Click an element by CSS selector."""
    bridge = bridge or get_default_bridge()
    envelope = await bridge.invoke(
        SERVER,
        CLICK,
        _without_none({
            "selector": options.selector,
            "waitForNavigation": options.wait_for_navigation,
            "delay": options.delay,
        }),
        timeout=options.timeout,
    )

    result = extract_click(envelope, options.selector, options.wait_for_navigation, policy)
    _log(options, f"Clicked {options.selector}: success={result.success}")
    return result


async def type_text(
    options: TypeOptions,
    *,
    bridge: ToolBridge | None = None,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> TypeResult:
    """Fill an input field with text."""
    bridge = bridge or get_default_bridge()
    envelope = await bridge.invoke(
        SERVER,
        FILL,
        {"selector": options.selector, "value": options.text},
        timeout=options.timeout,
    )

    result = extract_fill(envelope, options.selector, options.text, policy)
    _log(options, f"Filled {options.selector} with {result.characters_typed} chars")
    return result


async def take_screenshot(
    options: ScreenshotOptions | None = None,
    *,
    bridge: ToolBridge | None = None,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> ScreenshotResult:
    """
    Take a screenshot and save it locally.

    The base64 image stays here: it is written to ``options.path`` (when
    given) and dropped. Only dimensions, size and path are returned.
    """
    options = options or ScreenshotOptions()
    bridge = bridge or get_default_bridge()

    envelope = await bridge.invoke(
        SERVER,
        SCREENSHOT,
        _without_none({
            "fullPage": options.full_page,
            "type": options.type,
            "quality": options.quality,
        }),
        timeout=options.timeout,
    )

    image_data = extract_image(envelope)
    width, height = extract_dimensions(envelope, policy)
    persisted = persist(image_data, options.path, strict=policy.strict_persistence)

    metadata = ArtifactMetadata(
        path=options.path,
        width=width,
        height=height,
        size_kb=persisted.size_kb,
        format=options.type,
    )
    _log(options, f"Screenshot {width}x{height}, {metadata.size_kb}KB, saved={persisted.saved}")
    return ScreenshotResult(saved=persisted.saved, metadata=metadata)
