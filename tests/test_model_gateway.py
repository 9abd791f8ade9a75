"""
Tests for the Model Gateway.

Covers:
- Provider selection and unknown providers
- Plain chat (no function parsing)
- Tool-call normalization for structured-tool backends
- Marker parsing for freeform-text backends
- Backend-agnostic FunctionCall shape
- Failures and timeouts → ModelUnavailableError, recorded in metrics
"""

import pytest

from homebot.ai.gateway.model_gateway import ModelGateway
from homebot.ai.providers.base import ModelUnavailableError, ToolInvocation
from homebot.ai.schemas.function_call import CallTarget, FunctionCall, GenerationOptions


def _function_options(registry, **kwargs) -> GenerationOptions:
    return GenerationOptions(purpose="function", function_definitions=registry.function_definitions(), **kwargs)


class TestProviderSelection:
    """Tests for get_provider() / supports_tools()."""

    def test_lookup_is_case_insensitive(self, gateway, freeform_provider):
        assert gateway.get_provider(" Ollama ") is freeform_provider

    def test_unknown_provider_raises(self, gateway):
        with pytest.raises(ModelUnavailableError) as exc_info:
            gateway.get_provider("gemini")

        assert exc_info.value.provider == "gemini"

    def test_supports_tools(self, gateway):
        assert gateway.supports_tools("openai") is True
        assert gateway.supports_tools("ollama") is False
        assert gateway.supports_tools("nope") is False


class TestPlainGeneration:
    """Chat and JSON passes return text only."""

    @pytest.mark.asyncio
    async def test_chat_text_is_not_parsed(self, gateway, freeform_provider):
        """Without function definitions a marker-looking reply stays verbatim."""
        freeform_provider.replies.append('Try __execute_command("!help") yourself')

        result = await gateway.generate("ollama", "chat-model", "You are nice", "hi")

        assert result.function_call is None
        assert result.text == 'Try __execute_command("!help") yourself'
        assert result.provider == "ollama"
        assert freeform_provider.calls[0]["model"] == "chat-model"
        assert freeform_provider.calls[0]["tools"] is None

    @pytest.mark.asyncio
    async def test_json_mode_uses_generate_json(self, gateway, freeform_provider):
        freeform_provider.json_replies.append('{"bucket": "CHAT"}')

        result = await gateway.generate(
            "ollama", "", "Classify", "hi", GenerationOptions(purpose="intent", json_mode=True)
        )

        assert result.text == '{"bucket": "CHAT"}'
        assert freeform_provider.methods == ["generate_json"]
        assert freeform_provider.calls[0]["model"] is None

    @pytest.mark.asyncio
    async def test_metrics_recorded_by_purpose(self, gateway, freeform_provider, metrics):
        freeform_provider.replies.append("hello")

        await gateway.generate("ollama", "", "sys", "hi", GenerationOptions(purpose="chat"))

        stats = metrics.get_stats()
        assert stats.total_requests == 1
        assert stats.requests_by_purpose == {"chat": 1}


class TestStructuredToolBackend:
    """Native tool invocations become FunctionCalls."""

    @pytest.mark.asyncio
    async def test_tools_are_advertised(self, gateway, tool_provider, registry):
        tool_provider.replies.append("No action needed.")

        result = await gateway.generate("openai", "", "sys", "hi", _function_options(registry))

        assert result.function_call is None
        assert [t.name for t in tool_provider.calls[0]["tools"]][0] == "execute_command"

    @pytest.mark.asyncio
    async def test_webhook_tool_call(self, gateway, tool_provider, registry):
        tool_provider.replies.append(
            tool_provider.tool_reply("area_control", '{"area": "office", "turn": "off"}', text="Done soon.")
        )

        result = await gateway.generate("openai", "", "sys", "lights off", _function_options(registry))

        assert result.text == "Done soon."
        assert result.function_call == FunctionCall.remote("area_control", {"area": "office", "turn": "off"})

    @pytest.mark.asyncio
    async def test_execute_command_tool_call(self, gateway, tool_provider, registry):
        tool_provider.replies.append(
            tool_provider.tool_reply("execute_command", {"command": "!weather", "arguments": " Madrid "})
        )

        result = await gateway.generate("openai", "", "sys", "weather?", _function_options(registry))

        assert result.function_call == FunctionCall.local("!weather", "Madrid")

    @pytest.mark.asyncio
    async def test_only_first_tool_call_is_used(self, gateway, tool_provider, registry):
        response = tool_provider.tool_reply("scene", {"scene": "movie"})
        response.tool_calls.append(ToolInvocation(name="scene", arguments={"scene": "sleep"}))
        tool_provider.replies.append(response)

        result = await gateway.generate("openai", "", "sys", "movie", _function_options(registry))

        assert result.function_call.parameters == {"scene": "movie"}


class TestToolToFunctionCall:
    """Tests for ModelGateway.tool_to_function_call()."""

    def test_json_string_arguments(self):
        call = ModelGateway.tool_to_function_call(ToolInvocation("scene", '{"scene": "movie"}'))

        assert call.target == CallTarget.REMOTE_WEBHOOK
        assert call.parameters == {"scene": "movie"}

    def test_empty_arguments(self):
        call = ModelGateway.tool_to_function_call(ToolInvocation("scene", ""))

        assert call.parameters == {}

    def test_undecodable_arguments(self):
        assert ModelGateway.tool_to_function_call(ToolInvocation("scene", "{oops")) is None

    def test_execute_command_without_command(self):
        assert ModelGateway.tool_to_function_call(ToolInvocation("execute_command", {})) is None


class TestFreeformBackend:
    """Markers in the reply text become FunctionCalls."""

    @pytest.mark.asyncio
    async def test_marker_is_parsed_and_stripped(self, gateway, freeform_provider, registry):
        freeform_provider.replies.append(
            'Turning off the office lights. __execute_webhook("area_control", {"area": "office", "turn": "off"})'
        )

        result = await gateway.generate("ollama", "", "sys", "lights off", _function_options(registry))

        assert result.text == "Turning off the office lights."
        assert result.function_call == FunctionCall.remote("area_control", {"area": "office", "turn": "off"})
        assert freeform_provider.calls[0]["tools"] is None

    @pytest.mark.asyncio
    async def test_same_shape_from_both_families(self, gateway, freeform_provider, tool_provider, registry):
        """A call means the same thing regardless of which backend produced it."""
        freeform_provider.replies.append('__execute_command("!weather", "Madrid")')
        tool_provider.replies.append(
            tool_provider.tool_reply("execute_command", '{"command": "!weather", "arguments": "Madrid"}')
        )

        from_markers = await gateway.generate("ollama", "", "sys", "weather", _function_options(registry))
        from_tools = await gateway.generate("openai", "", "sys", "weather", _function_options(registry))

        assert from_markers.function_call == from_tools.function_call


class TestFailures:
    """Backend failures surface as ModelUnavailableError."""

    @pytest.mark.asyncio
    async def test_unsuccessful_response(self, gateway, freeform_provider, metrics):
        freeform_provider.replies.append(freeform_provider.failure("connection refused"))

        with pytest.raises(ModelUnavailableError) as exc_info:
            await gateway.generate("ollama", "", "sys", "hi")

        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.timed_out is False
        assert metrics.get_stats().failed_requests == 1

    @pytest.mark.asyncio
    async def test_timeout(self, gateway, freeform_provider, metrics):
        freeform_provider.replies.append(freeform_provider.SLOW)

        with pytest.raises(ModelUnavailableError) as exc_info:
            await gateway.generate("ollama", "", "sys", "hi", GenerationOptions(timeout=0.05))

        assert exc_info.value.timed_out is True
        assert exc_info.value.provider == "ollama"
        assert metrics.get_stats().timeouts == 1

    @pytest.mark.asyncio
    async def test_adapter_exception_is_wrapped(self, gateway, tool_provider, metrics):
        """An adapter that raises instead of answering is still just unavailable."""
        tool_provider.replies.append(IndexError("list index out of range"))

        with pytest.raises(ModelUnavailableError) as exc_info:
            await gateway.generate("openai", "", "sys", "hi")

        assert "IndexError" in str(exc_info.value)
        assert exc_info.value.provider == "openai"
        assert exc_info.value.timed_out is False
        assert isinstance(exc_info.value.__cause__, IndexError)
        assert metrics.get_stats().failed_requests == 1

    @pytest.mark.asyncio
    async def test_unknown_provider(self, gateway):
        with pytest.raises(ModelUnavailableError):
            await gateway.generate("gemini", "", "sys", "hi")
