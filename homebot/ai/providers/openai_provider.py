"""
OpenAI Provider - GPT client with native tool calling.

Role in Homebot:
===============
A structured-tool backend. When selected for the "function" purpose the
full action catalog is advertised as tools:
- execute_command(command, arguments) for local bot commands
- one tool per registered webhook, named after the action

Tool invocations come back on message.tool_calls with JSON-string
arguments; they are passed through untouched as ToolInvocation objects and
decoded by the Model Gateway.

API Documentation: https://platform.openai.com/docs/api-reference
"""

import logging
import time
from typing import Optional, Any, Dict, List

from openai import AsyncOpenAI

from homebot.core.config import settings
from homebot.ai.schemas.function_call import FunctionDefinition
from homebot.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage,
    ToolInvocation,
)

logger = logging.getLogger("homebot.ai.openai")


class OpenAIProvider(AIProvider):
    """
    Structured-tool adapter for the OpenAI chat completions API.

    Usage:
        provider = OpenAIProvider()
        response = await provider.generate(
            "Turn off the office lights",
            tools=registry.function_definitions(),
        )
        response.tool_calls   # [ToolInvocation(name="area_control", arguments='{"area": ...}')]
    """

    provider_type = ProviderType.OPENAI
    supports_tools = True

    def __init__(self, model: str = None, api_key: str = None):
        """
        Args:
            model: Default model (settings.OPENAI_MODEL)
            api_key: API key (settings.OPENAI_API_KEY); without one every call fails
        """
        self.model = model or settings.OPENAI_MODEL
        self.api_key = api_key or settings.OPENAI_API_KEY
        self._client = AsyncOpenAI(api_key=self.api_key) if self.api_key else None

        if self._client is None:
            logger.warning("OpenAI API key not configured - provider unavailable")

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        model: Optional[str] = None,
        tools: Optional[List[FunctionDefinition]] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> AIResponse:
        request: Dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}
        if tools:
            request["tools"] = [tool.to_openai_tool() for tool in tools]
            request["tool_choice"] = "auto"
        return await self._complete(prompt, system_prompt, model or self.model, request, timeout)

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> AIResponse:
        request: Dict[str, Any] = {
            "temperature": 0.2,
            "max_tokens": kwargs.get("max_tokens", 256),
            "response_format": {"type": "json_object"},
        }
        return await self._complete(
            prompt,
            self._json_system_prompt(system_prompt),
            model or self.model,
            request,
            timeout,
            json_mode=True,
        )

    async def _complete(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        request: Dict[str, Any],
        timeout: Optional[float],
        json_mode: bool = False,
    ) -> AIResponse:
        started = time.time()
        if self._client is None:
            return self._failed("OpenAI API key not configured", model, started)

        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})
        if timeout:
            request["timeout"] = timeout

        try:
            response = await self._client.chat.completions.create(model=model, messages=messages, **request)
            message = response.choices[0].message
        except (IndexError, AttributeError) as e:
            return self._failed(f"OpenAI returned no choices: {e}", model, started)
        except Exception as e:
            return self._failed(str(e), model, started)

        usage = TokenUsage(
            prompt_tokens=response.usage.prompt_tokens if response.usage else 0,
            completion_tokens=response.usage.completion_tokens if response.usage else 0,
        )

        if json_mode:
            return self._json_answer(message.content or "{}", model, started, usage=usage, raw=response)

        tool_calls = [
            ToolInvocation(name=call.function.name, arguments=call.function.arguments, call_id=call.id)
            for call in (message.tool_calls or [])
        ]
        return self._answered(
            message.content or "", model, started, usage=usage, tool_calls=tool_calls, raw=response
        )


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
openai_provider = OpenAIProvider()
