"""
Run Bridge — exercise MCP tool servers through the code-API bridge.

This is the script that closes the loop. It can:
1. Call any registered MCP tool and print a summary of the envelope
2. Run the code-API demo (navigate → screenshot → docs search)
3. Route free-text requests with the semantic router

Usage:
    # Raw call (image data is never printed, only its size)
    python run_bridge.py call demo ping
    python run_bridge.py call puppeteer puppeteer_navigate --args '{"url": "https://example.com"}'

    # Code-API demo against the puppeteer and context7 servers
    python run_bridge.py demo --screenshot ./screenshots/demo.png

    # Semantic router (needs GEMINI_API_KEY)
    python run_bridge.py route "take a screenshot of the homepage"
    python run_bridge.py route --batch
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from mcp_bridge.artifacts import estimate_size_kb
from mcp_bridge.browser import NavigateOptions, ScreenshotOptions, navigate, take_screenshot
from mcp_bridge.docs_search import SearchCodebaseOptions, search_codebase
from mcp_bridge.envelope import ImageBlock, OtherBlock, TextBlock
from mcp_bridge.errors import MCPBridgeError
from mcp_bridge.manager import ToolBridge

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


ROUTER_TEST_CASES = [
    # Planning requests
    "what next",
    "hey, go the agenda, man?",
    "what's the scoop our next adventure?",
    "what are we working on next?",
    "what's on the roadmap?",
    # Coding requests
    "write a function to calculate fibonacci",
    "create a React component",
    "build me a calculator",
    # Testing requests
    "test the login flow",
    "take a screenshot of the homepage",
    "validate the form submission",
    # Question requests
    "what is async await?",
    "explain closures to me",
    "why use TypeScript?",
    # General purpose
    "what time is it?",
    "calculate 5 + 3",
]


def describe_envelope(envelope) -> list[str]:
    """One line per content block; images are reported by size only."""
    lines = []
    for i, block in enumerate(envelope.content_blocks):
        match block:
            case TextBlock(text=text):
                preview = text if len(text) <= 200 else text[:200] + "..."
                lines.append(f"  [{i}] text: {preview}")
            case ImageBlock(mime_type=mime_type, data=data):
                lines.append(f"  [{i}] image: {mime_type}, ~{estimate_size_kb(data)}KB (kept local)")
            case OtherBlock(kind=kind):
                lines.append(f"  [{i}] {kind}")
    if envelope.status_code is not None:
        lines.append(f"  status: {envelope.status_code}")
    return lines


async def cmd_call(args: argparse.Namespace, bridge: ToolBridge) -> int:
    try:
        arguments = json.loads(args.args) if args.args else {}
    except json.JSONDecodeError as e:
        print(f"Error: --args is not valid JSON: {e}")
        return 2

    if not isinstance(arguments, dict):
        print("Error: --args must be a JSON object")
        return 2

    envelope = await bridge.invoke(args.server, args.tool, arguments, timeout=args.timeout)
    print(f"\n{args.server}.{args.tool} → {len(envelope.content_blocks)} block(s)")
    for line in describe_envelope(envelope):
        print(line)
    return 0


async def cmd_demo(args: argparse.Namespace, bridge: ToolBridge) -> int:
    print("=== Code-API Pattern Demo ===\n")

    print(f"Step 1: Navigating to {args.url}...")
    nav = await navigate(NavigateOptions(url=args.url, wait_until="networkidle0", timeout=args.timeout), bridge=bridge)
    print(f"✓ Loaded: \"{nav.title}\"")
    print(f"  Status: {nav.status}")
    print(f"  Load time: {nav.load_time_ms}ms\n")

    print("Step 2: Taking screenshot...")
    shot = await take_screenshot(
        ScreenshotOptions(path=args.screenshot, full_page=True, timeout=args.timeout),
        bridge=bridge,
    )
    print(f"✓ Screenshot saved: {shot.saved} ({shot.path})")
    print(f"  Dimensions: {shot.width}x{shot.height}")
    print(f"  Size: {shot.size_kb}KB\n")

    print(f"Step 3: Searching {args.framework} documentation...")
    docs = await search_codebase(
        SearchCodebaseOptions(query=args.query, framework=args.framework, max_results=2, timeout=args.timeout),
        bridge=bridge,
    )
    print(f"✓ Found {docs.total_results} results")
    print(f"  Returned {len(docs.snippets)} snippets:")
    for i, snippet in enumerate(docs.snippets, 1):
        print(f"  {i}. {snippet.title} (score: {snippet.relevance_score})")
        print(f"     {snippet.snippet[:100]}...")
    return 0


async def cmd_route(args: argparse.Namespace) -> int:
    from mcp_bridge.router import SemanticRouter

    router = SemanticRouter()

    if args.batch:
        results = await router.batch_route(ROUTER_TEST_CASES)
        print(f"\n{'Request':<40}{'Agent':<25}Confidence")
        print("─" * 80)
        for request, result in zip(ROUTER_TEST_CASES, results):
            truncated = request if len(request) <= 37 else request[:37] + "..."
            print(f"{truncated:<40}{result.agent.value:<25}{result.confidence * 100:.1f}%")
        print("─" * 80)

        high = sum(1 for r in results if r.confidence >= 0.9)
        medium = sum(1 for r in results if 0.7 <= r.confidence < 0.9)
        low = sum(1 for r in results if r.confidence < 0.7)
        total = len(results)
        print("\nConfidence Distribution:")
        print(f"   High (≥90%): {high} ({high / total * 100:.1f}%)")
        print(f"   Medium (70-89%): {medium} ({medium / total * 100:.1f}%)")
        print(f"   Low (<70%): {low} ({low / total * 100:.1f}%)")
        print(f"\n   Average Confidence: {sum(r.confidence for r in results) / total * 100:.1f}%")
        return 0

    if not args.request:
        print("Error: give a request to route, or use --batch")
        return 2

    request = " ".join(args.request)
    result = await router.route(request)
    print(f"\nRequest: \"{request}\"")
    print(f"   Agent: {result.agent.value}")
    print(f"   Confidence: {result.confidence * 100:.1f}%")
    if result.reasoning:
        print(f"   Reasoning: {result.reasoning}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Call MCP tool servers through the code-API bridge.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_bridge.py call demo ping
  python run_bridge.py demo --screenshot ./screenshots/demo.png
  python run_bridge.py route "what next"
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    parser.add_argument("--config", type=str, default=None, help="Registry file to use instead of the default search")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds allowed per tool call")
    sub = parser.add_subparsers(dest="command", required=True)

    call = sub.add_parser("call", help="Invoke one tool and summarize the result")
    call.add_argument("server", help="Server name from .claude/mcp.json")
    call.add_argument("tool", help="Tool name on that server")
    call.add_argument("--args", type=str, default=None, help="Tool arguments as a JSON object")

    demo = sub.add_parser("demo", help="navigate → screenshot → docs search")
    demo.add_argument("--url", default="https://example.com")
    demo.add_argument("--screenshot", default=None, help="Where to save the screenshot")
    demo.add_argument("--framework", default="puppeteer")
    demo.add_argument("--query", default="Puppeteer screenshot API options")

    route = sub.add_parser("route", help="Route requests with the semantic router")
    route.add_argument("request", nargs="*", help="Request text")
    route.add_argument("--batch", "-b", action="store_true", help="Route the built-in test cases")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    bridge = ToolBridge(config_paths=[args.config] if args.config else None)

    try:
        if args.command == "call":
            return asyncio.run(cmd_call(args, bridge))
        if args.command == "demo":
            return asyncio.run(cmd_demo(args, bridge))
        return asyncio.run(cmd_route(args))
    except MCPBridgeError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
