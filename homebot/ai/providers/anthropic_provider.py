"""
Anthropic Provider - Claude client with native tool use.

Role in Homebot:
===============
The second structured-tool backend. Claude answers with a list of content
blocks; text blocks are concatenated into the reply and tool_use blocks
become ToolInvocation objects whose arguments are already a dict.

Claude has no JSON mode, so generate_json() asks for JSON in the system
prompt and validates (and unfences) the reply itself.

API Documentation: https://docs.anthropic.com/en/api/messages
"""

import logging
import time
from typing import Optional, Any, Dict, List

from anthropic import AsyncAnthropic

from homebot.core.config import settings
from homebot.ai.schemas.function_call import FunctionDefinition
from homebot.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage,
    ToolInvocation,
)

logger = logging.getLogger("homebot.ai.anthropic")


class AnthropicProvider(AIProvider):
    """
    Structured-tool adapter for the Anthropic messages API.

    Usage:
        provider = AnthropicProvider()
        response = await provider.generate("Movie night!", tools=registry.function_definitions())
        response.tool_calls   # [ToolInvocation(name="scene", arguments={"scene": "movie"})]
    """

    provider_type = ProviderType.ANTHROPIC
    supports_tools = True

    def __init__(self, model: str = None, api_key: str = None):
        """
        Args:
            model: Default model (settings.ANTHROPIC_MODEL)
            api_key: API key (settings.ANTHROPIC_API_KEY); without one every call fails
        """
        self.model = model or settings.ANTHROPIC_MODEL
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self._client = AsyncAnthropic(api_key=self.api_key) if self.api_key else None

        if self._client is None:
            logger.warning("Anthropic API key not configured - provider unavailable")

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
        if system_prompt:
            request["system"] = system_prompt
        if tools:
            request["tools"] = [tool.to_anthropic_tool() for tool in tools]
        return await self._create(prompt, model or self.model, request, timeout)

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
            "system": self._json_system_prompt(system_prompt),
        }
        return await self._create(prompt, model or self.model, request, timeout, json_mode=True)

    async def _create(
        self,
        prompt: str,
        model: str,
        request: Dict[str, Any],
        timeout: Optional[float],
        json_mode: bool = False,
    ) -> AIResponse:
        started = time.time()
        if self._client is None:
            return self._failed("Anthropic API key not configured", model, started)

        if timeout:
            request["timeout"] = timeout

        try:
            response = await self._client.messages.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                **request,
            )
        except Exception as e:
            return self._failed(str(e), model, started)

        text_parts: List[str] = []
        tool_calls: List[ToolInvocation] = []
        for block in response.content or []:
            if getattr(block, "type", None) == "tool_use":
                tool_calls.append(ToolInvocation(name=block.name, arguments=block.input, call_id=block.id))
            elif hasattr(block, "text"):
                text_parts.append(block.text)

        usage = TokenUsage(
            prompt_tokens=response.usage.input_tokens if response.usage else 0,
            completion_tokens=response.usage.output_tokens if response.usage else 0,
        )

        if json_mode:
            return self._json_answer("".join(text_parts), model, started, usage=usage, raw=response)
        return self._answered(
            "".join(text_parts), model, started, usage=usage, tool_calls=tool_calls, raw=response
        )


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
anthropic_provider = AnthropicProvider()
