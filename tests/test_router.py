"""Tests for the semantic router, with a fake LangChain chat model."""

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from mcp_bridge.errors import RouterConfigError, RoutingParseError
from mcp_bridge.router import AgentType, SemanticRouter

REPLY = '{"agent": "test-agent", "confidence": 0.95, "reasoning": "mentions screenshot"}'


def test_parse_plain_json():
    result = SemanticRouter.parse_response(REPLY)
    assert result.agent is AgentType.TEST
    assert result.confidence == 0.95
    assert result.reasoning == "mentions screenshot"


def test_parse_strips_markdown_fences():
    result = SemanticRouter.parse_response(f"```json\n{REPLY}\n```")
    assert result.agent is AgentType.TEST


def test_parse_without_reasoning():
    result = SemanticRouter.parse_response('{"agent": "coder-agent", "confidence": 1}')
    assert result.agent is AgentType.CODER
    assert result.confidence == 1.0
    assert result.reasoning is None


@pytest.mark.parametrize("text", [
    "I think the test agent",
    '{"agent": "test-agent"}',
    '{"agent": "test-agent", "confidence": "high"}',
    '{"agent": "pirate-agent", "confidence": 0.5}',
    '["test-agent", 0.9]',
])
def test_parse_rejects_bad_replies(text):
    with pytest.raises(RoutingParseError):
        SemanticRouter.parse_response(text)


def test_prompt_contains_request_and_agents():
    prompt = SemanticRouter.build_prompt("what's on the roadmap?")
    assert 'User request: "what\'s on the roadmap?"' in prompt
    for agent in AgentType:
        assert agent.value in prompt


@pytest.mark.asyncio
async def test_route_with_injected_model():
    router = SemanticRouter(llm=FakeListChatModel(responses=[REPLY]))
    result = await router.route("take a screenshot of the homepage")
    assert result.agent is AgentType.TEST


@pytest.mark.asyncio
async def test_batch_route_routes_every_request():
    router = SemanticRouter(llm=FakeListChatModel(responses=[REPLY]))
    results = await router.batch_route(["test login", "validate form", "screenshot"])
    assert len(results) == 3
    assert all(r.agent is AgentType.TEST for r in results)


@pytest.mark.asyncio
async def test_route_raises_on_unparseable_reply():
    router = SemanticRouter(llm=FakeListChatModel(responses=["no idea"]))
    with pytest.raises(RoutingParseError):
        await router.route("hello")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RouterConfigError, match="GEMINI_API_KEY"):
        SemanticRouter()
