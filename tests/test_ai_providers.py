"""
Tests for AI Providers - Base classes and mocked backend calls.

This module tests:
- TokenUsage / AIResponse dataclasses
- Ollama provider against an httpx.MockTransport server
- OpenAI and Anthropic providers with mocked SDK clients
- The "providers never raise" contract

We mock LLM calls to ensure tests are:
- Fast (no network calls)
- Reliable (no API flakiness)
- Free (no token costs)
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from homebot.ai.providers.anthropic_provider import AnthropicProvider
from homebot.ai.providers.base import AIResponse, ProviderType, TokenUsage, ToolInvocation
from homebot.ai.providers.ollama_provider import OllamaProvider
from homebot.ai.providers.openai_provider import OpenAIProvider
from homebot.ai.schemas.function_call import FunctionDefinition

AREA_TOOL = FunctionDefinition(
    name="area_control",
    description="Turn area lights on or off",
    parameters={"type": "object", "properties": {"area": {"type": "string"}}, "required": ["area"]},
)


class TestTokenUsage:
    """Tests for TokenUsage dataclass."""

    def test_auto_calculate_total(self):
        usage = TokenUsage(prompt_tokens=100, completion_tokens=50)

        assert usage.total_tokens == 150

    def test_total_overrides_calculation(self):
        usage = TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=200)

        assert usage.total_tokens == 200

    def test_default_values(self):
        usage = TokenUsage()

        assert (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens) == (0, 0, 0)


class TestAIResponse:
    """Tests for AIResponse dataclass."""

    def test_defaults(self):
        response = AIResponse(content="Hello", provider=ProviderType.OLLAMA, model="mi-bot")

        assert response.success is True
        assert response.error is None
        assert response.tool_calls == []

    def test_to_dict_truncates_and_lists_tools(self):
        response = AIResponse(
            content="x" * 150,
            provider=ProviderType.OPENAI,
            model="gpt-4o-mini",
            tool_calls=[ToolInvocation(name="scene", arguments="{}")],
        )

        data = response.to_dict()

        assert data["content"].endswith("...")
        assert len(data["content"]) == 103
        assert data["provider"] == "openai"
        assert data["tool_calls"] == ["scene"]


# ---------------------------------------------------------------------------
# OLLAMA
# ---------------------------------------------------------------------------

def _ollama(handler) -> OllamaProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaProvider(model="mi-bot", base_url="http://ollama.test", client=client)


class TestOllamaProvider:
    """Freeform-text backend over /api/chat."""

    def test_is_freeform(self):
        assert OllamaProvider.supports_tools is False

    @pytest.mark.asyncio
    async def test_generate_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "message": {"role": "assistant", "content": "Hello there"},
                "prompt_eval_count": 12,
                "eval_count": 3,
            })

        provider = _ollama(handler)
        response = await provider.generate("hi", system_prompt="Be nice", temperature=0.2, tools=[AREA_TOOL])

        assert response.success
        assert response.content == "Hello there"
        assert response.usage.total_tokens == 15
        assert seen["url"] == "http://ollama.test/api/chat"
        assert seen["body"]["messages"][0] == {"role": "system", "content": "Be nice"}
        assert seen["body"]["options"]["temperature"] == 0.2
        assert "tools" not in seen["body"]
        assert "format" not in seen["body"]

    @pytest.mark.asyncio
    async def test_model_override(self):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json={"message": {"content": "ok"}})

        response = await _ollama(handler).generate("hi", model="qwen2.5:1.5b")

        assert seen["model"] == "qwen2.5:1.5b"
        assert response.model == "qwen2.5:1.5b"

    @pytest.mark.asyncio
    async def test_generate_json_uses_format(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"content": '{"bucket": "CHAT"}'}})

        response = await _ollama(handler).generate_json("classify", system_prompt="Classify")

        assert response.success
        assert seen["body"]["format"] == "json"
        assert "valid JSON" in seen["body"]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_generate_json_rejects_invalid_json(self):
        provider = _ollama(lambda request: httpx.Response(200, json={"message": {"content": "not json"}}))

        response = await provider.generate_json("classify")

        assert response.success is False
        assert "Invalid JSON" in response.error

    @pytest.mark.asyncio
    async def test_http_error_is_reported_not_raised(self):
        provider = _ollama(lambda request: httpx.Response(500, text="boom"))

        response = await provider.generate("hi")

        assert response.success is False
        assert "Ollama request failed" in response.error

    @pytest.mark.asyncio
    async def test_timeout_is_reported_not_raised(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        response = await _ollama(handler).generate("hi", timeout=1)

        assert response.success is False
        assert "timed out" in response.error


# ---------------------------------------------------------------------------
# OPENAI
# ---------------------------------------------------------------------------

def _openai_completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=SimpleNamespace(prompt_tokens=20, completion_tokens=5),
    )


def _openai_provider(create: AsyncMock) -> OpenAIProvider:
    provider = OpenAIProvider(model="gpt-4o-mini", api_key="sk-test")
    provider._client = MagicMock()
    provider._client.chat.completions.create = create
    return provider


class TestOpenAIProvider:
    """Structured-tool backend via the openai SDK."""

    def test_is_structured(self):
        assert OpenAIProvider.supports_tools is True

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        provider = OpenAIProvider(api_key="")
        provider.api_key = ""
        provider._client = None

        response = await provider.generate("hi")

        assert response.success is False
        assert "not configured" in response.error

    @pytest.mark.asyncio
    async def test_tools_are_sent_and_calls_returned(self):
        tool_call = SimpleNamespace(
            id="call_1",
            function=SimpleNamespace(name="area_control", arguments='{"area": "office"}'),
        )
        create = AsyncMock(return_value=_openai_completion(content=None, tool_calls=[tool_call]))
        provider = _openai_provider(create)

        response = await provider.generate("turn off the office", tools=[AREA_TOOL], timeout=5)

        assert response.success
        assert response.content == ""
        assert response.tool_calls == [
            ToolInvocation(name="area_control", arguments='{"area": "office"}', call_id="call_1")
        ]
        kwargs = create.call_args.kwargs
        assert kwargs["tools"][0]["function"]["name"] == "area_control"
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["timeout"] == 5
        assert response.usage.total_tokens == 25

    @pytest.mark.asyncio
    async def test_no_tools_no_tool_choice(self):
        create = AsyncMock(return_value=_openai_completion(content="Hi!"))
        provider = _openai_provider(create)

        response = await provider.generate("hello")

        assert response.content == "Hi!"
        assert "tools" not in create.call_args.kwargs
        assert "tool_choice" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_sdk_exception_is_reported(self):
        provider = _openai_provider(AsyncMock(side_effect=RuntimeError("rate limited")))

        response = await provider.generate("hello")

        assert response.success is False
        assert response.error == "rate limited"

    @pytest.mark.asyncio
    async def test_empty_choices_are_reported(self):
        completion = SimpleNamespace(choices=[], usage=None)
        provider = _openai_provider(AsyncMock(return_value=completion))

        response = await provider.generate("hello")

        assert response.success is False
        assert "no choices" in response.error

    @pytest.mark.asyncio
    async def test_generate_json_mode(self):
        create = AsyncMock(return_value=_openai_completion(content='{"bucket": "WEBHOOK"}'))
        provider = _openai_provider(create)

        response = await provider.generate_json("classify")

        assert response.success
        assert create.call_args.kwargs["response_format"] == {"type": "json_object"}


# ---------------------------------------------------------------------------
# ANTHROPIC
# ---------------------------------------------------------------------------

def _anthropic_message(*blocks):
    return SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=30, output_tokens=10),
    )


def _anthropic_provider(create: AsyncMock) -> AnthropicProvider:
    provider = AnthropicProvider(model="claude-3-5-haiku-latest", api_key="sk-ant-test")
    provider._client = MagicMock()
    provider._client.messages.create = create
    return provider


class TestAnthropicProvider:
    """Structured-tool backend via the anthropic SDK."""

    @pytest.mark.asyncio
    async def test_text_and_tool_use_blocks(self):
        create = AsyncMock(return_value=_anthropic_message(
            SimpleNamespace(type="text", text="Turning off the lights."),
            SimpleNamespace(type="tool_use", id="toolu_1", name="area_control", input={"area": "office"}),
        ))
        provider = _anthropic_provider(create)

        response = await provider.generate("lights off", system_prompt="Be brief", tools=[AREA_TOOL])

        assert response.success
        assert response.content == "Turning off the lights."
        assert response.tool_calls[0].name == "area_control"
        assert response.tool_calls[0].arguments == {"area": "office"}
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "Be brief"
        assert kwargs["tools"][0]["input_schema"]["required"] == ["area"]
        assert response.usage.total_tokens == 40

    @pytest.mark.asyncio
    async def test_generate_json_strips_code_fences(self):
        create = AsyncMock(return_value=_anthropic_message(
            SimpleNamespace(type="text", text='```json\n{"bucket": "CHAT"}\n```'),
        ))
        provider = _anthropic_provider(create)

        response = await provider.generate_json("classify")

        assert response.success
        assert json.loads(response.content) == {"bucket": "CHAT"}

    @pytest.mark.asyncio
    async def test_sdk_exception_is_reported(self):
        provider = _anthropic_provider(AsyncMock(side_effect=RuntimeError("overloaded")))

        response = await provider.generate("hello")

        assert response.success is False
        assert response.error == "overloaded"
