"""
Semantic router — picks the specialist agent for a free-text request.

One prompt, one chat-model call, one JSON object parsed out of the reply.
Any LangChain chat model (or runnable returning a message/string) can be
injected; by default a Gemini Flash-Lite model is built from
GEMINI_API_KEY.

    router = SemanticRouter()
    result = await router.route("take a screenshot of the homepage")
    # RoutingResult(agent=<AgentType.TEST: 'test-agent'>, confidence=0.95, ...)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from langchain_core.messages import HumanMessage

from mcp_bridge.errors import RouterConfigError, RoutingParseError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-lite"
API_KEY_ENV = "GEMINI_API_KEY"

_FENCE = re.compile(r"```(?:json)?\s*")


class AgentType(str, Enum):
    PLANNER = "next_steps_planner"
    CODER = "coder-agent"
    HELPER = "helper-agent"
    TEST = "test-agent"
    GENERAL = "general-purpose-agent"


@dataclass(frozen=True)
class RoutingResult:
    agent: AgentType
    confidence: float
    reasoning: str | None = None


PROMPT_TEMPLATE = """You are a semantic router for a multi-agent system. Your job is to analyze user requests and determine which specialist agent should handle them.

Available agents:

1. **next_steps_planner** - Plans implementation, creates roadmaps, answers "what's next" questions
   - Triggers: plan, roadmap, next steps, what next, agenda, what's the scoop, upcoming work, working on next
   - Examples: "what next", "hey, go the agenda, man?", "what's the scoop our next adventure?"

2. **test-agent** - Browser automation, testing, screenshots, validation
   - Triggers: test, browser, e2e, screenshot, validate, check, selenium, puppeteer
   - Examples: "test the login flow", "take a screenshot", "validate the form"

3. **coder-agent** - Writes code, implements features, creates functions
   - Triggers: write, code, function, create, build, implement, develop, program
   - Examples: "write a function", "create a component", "build a calculator"

4. **helper-agent** - Answers questions, explains concepts, provides help
   - Triggers: what is, why, how does, explain, difference, help me understand
   - Examples: "what is async", "explain closures", "how does map work"

5. **general-purpose-agent** - General tasks, custom tools (time, calculator)
   - Triggers: calculate, what time, current time, math operations
   - Examples: "what time is it", "calculate 5 + 3"

User request: "{request}"

Analyze the user's intent and respond with ONLY a JSON object in this exact format:
{{
  "agent": "<agent_name>",
  "confidence": <0.0-1.0>,
  "reasoning": "<brief explanation>"
}}

Rules:
- Choose the MOST specific agent that matches the intent
- Confidence should reflect how certain you are (0.0 = unsure, 1.0 = certain)
- If request is about planning/roadmap/agenda/next steps, choose next_steps_planner
- Be flexible with informal language (e.g., "what next" = next_steps_planner)
- Respond with ONLY the JSON object, no other text"""


def _default_llm(api_key: str | None, model: str) -> Any:
    key = api_key or os.environ.get(API_KEY_ENV)
    if not key:
        raise RouterConfigError(
            f"Gemini API key not found. Please set {API_KEY_ENV} environment "
            "variable or pass api_key to SemanticRouter."
        )
    try:
        from langchain_google_genai import ChatGoogleGenerativeAI
    except ImportError as e:
        raise RouterConfigError(
            "langchain-google-genai is required for the default router model "
            "(pip install 'mcp-bridge[router]'), or pass llm= explicitly"
        ) from e
    return ChatGoogleGenerativeAI(model=model, google_api_key=key, temperature=0)


def _message_text(response: Any) -> str:
    """Plain text out of an AIMessage, a content-part list, or a str."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content)


class SemanticRouter:
    """Routes a user request to one of the AgentType specialists."""

    def __init__(self, llm: Any = None, api_key: str | None = None, model: str = DEFAULT_MODEL):
        self.llm = llm if llm is not None else _default_llm(api_key, model)

    @staticmethod
    def build_prompt(user_request: str) -> str:
        return PROMPT_TEMPLATE.format(request=user_request)

    @staticmethod
    def parse_response(text: str) -> RoutingResult:
        """Parse the model's reply, tolerating markdown code fences."""
        cleaned = _FENCE.sub("", text).strip()
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise RoutingParseError(text, str(e)) from e

        if not isinstance(parsed, dict):
            raise RoutingParseError(text, "reply is not a JSON object")

        confidence = parsed.get("confidence")
        if not parsed.get("agent") or isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise RoutingParseError(text, "Invalid response format from router model")

        try:
            agent = AgentType(parsed["agent"])
        except ValueError as e:
            raise RoutingParseError(text, f"unknown agent {parsed['agent']!r}") from e

        reasoning = parsed.get("reasoning")
        return RoutingResult(
            agent=agent,
            confidence=float(confidence),
            reasoning=str(reasoning) if reasoning else None,
        )

    async def route(self, user_request: str) -> RoutingResult:
        response = await self.llm.ainvoke([HumanMessage(content=self.build_prompt(user_request))])
        text = _message_text(response)
        try:
            return self.parse_response(text)
        except RoutingParseError:
            logger.error(f"Failed to parse router response: {text[:500]}")
            raise

    async def batch_route(self, requests: list[str]) -> list[RoutingResult]:
        """Route several requests concurrently; results keep request order."""
        return list(await asyncio.gather(*(self.route(r) for r in requests)))


async def route_request(user_request: str) -> RoutingResult:
    """Route one request with a default-configured router."""
    return await SemanticRouter().route(user_request)
