"""
Base AI Provider - The adapter contract every model backend implements.

The Model Gateway holds one adapter per provider name and only ever talks
to this interface:

    adapter.generate(prompt, system_prompt, model=..., tools=...)  → AIResponse
    adapter.generate_json(prompt, system_prompt, model=...)         → AIResponse

Backend families:
================
- Structured-tool (supports_tools = True): OpenAI, Anthropic. Tools are
  sent natively; invocations come back as ToolInvocation objects.
- Freeform-text (supports_tools = False): Ollama. Tools are never sent;
  a function call, if any, is a marker inside the reply text.

Adapters never raise. Every failure (missing key, HTTP error, SDK
exception, invalid JSON) is an AIResponse with success=False, and the
gateway decides what that means.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any, Dict, List

from homebot.ai.schemas.function_call import FunctionDefinition

logger = logging.getLogger("homebot.ai")

JSON_ONLY_INSTRUCTION = (
    "You must respond with valid JSON only: a single JSON object, "
    "no explanation and no markdown code blocks."
)


class ProviderType(str, Enum):
    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ModelUnavailableError(Exception):
    """
    A model call produced no usable reply.

    Raised by the Model Gateway (never by adapters) for unsuccessful
    responses, unknown providers and timeouts.
    """

    def __init__(self, message: str, provider: Optional[str] = None, timed_out: bool = False):
        super().__init__(message)
        self.provider = provider
        self.timed_out = timed_out


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if self.total_tokens == 0:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass
class ToolInvocation:
    """
    A native tool call from a structured-tool backend.

    `arguments` is whatever the SDK hands back: a JSON string (OpenAI) or an
    already decoded dict (Anthropic). The gateway decodes it.
    """
    name: str
    arguments: Any = None
    call_id: Optional[str] = None


@dataclass
class AIResponse:
    """
    What an adapter returns for one call.

    Attributes:
        content: Reply text ("" when the model only called a tool)
        provider / model: Who answered
        usage: Token counts
        latency_ms: Wall time of the backend call
        success: False when the call failed; see error
        tool_calls: Native tool invocations, in the order the backend sent them
        raw_response: SDK or HTTP payload, for debugging only
    """
    content: str
    provider: ProviderType
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    latency_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    raw_response: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Log-friendly summary (content truncated to 100 chars)."""
        content = self.content if len(self.content) <= 100 else self.content[:100] + "..."
        return {
            "content": content,
            "provider": self.provider.value,
            "model": self.model,
            "tokens": self.usage.total_tokens,
            "tool_calls": [call.name for call in self.tool_calls],
            "latency_ms": round(self.latency_ms, 1),
            "success": self.success,
            "error": self.error,
        }


class AIProvider(ABC):
    """
    Adapter base class.

    Subclasses set `provider_type`, `supports_tools` and a default `model`,
    and implement generate() / generate_json(). The helpers below build the
    success and failure responses so every adapter reports the same way.
    """

    provider_type: ProviderType
    supports_tools: bool = False
    model: str = ""

    @abstractmethod
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
        """
        One completion.

        Args:
            prompt: The user's message
            system_prompt: System instructions
            temperature: Sampling temperature
            max_tokens: Reply length limit
            model: Model override for this call (binding-specific models)
            tools: Tools to advertise; freeform backends ignore them
            timeout: Transport timeout in seconds

        Returns:
            AIResponse; never raises
        """

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> AIResponse:
        """
        One completion whose content must be a JSON object (classification).

        Returns:
            AIResponse; content is validated JSON, or success=False
        """

    # -----------------------------------------------------------------------
    # RESPONSE HELPERS
    # -----------------------------------------------------------------------

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.time() - started) * 1000

    def _failed(self, error: str, model: Optional[str], started: float) -> AIResponse:
        logger.error(f"[{self.provider_type.value}] {error}")
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=model or self.model,
            latency_ms=self._elapsed_ms(started),
            success=False,
            error=error,
        )

    def _answered(
        self,
        content: str,
        model: str,
        started: float,
        usage: Optional[TokenUsage] = None,
        tool_calls: Optional[List[ToolInvocation]] = None,
        raw: Any = None,
    ) -> AIResponse:
        response = AIResponse(
            content=content,
            provider=self.provider_type,
            model=model,
            usage=usage or TokenUsage(),
            latency_ms=self._elapsed_ms(started),
            tool_calls=tool_calls or [],
            raw_response=raw,
        )
        logger.info(
            f"[{self.provider_type.value}] {model} answered in {response.latency_ms:.0f}ms "
            f"({response.usage.total_tokens} tokens, {len(response.tool_calls)} tool calls)"
        )
        return response

    def _json_answer(
        self,
        content: str,
        model: str,
        started: float,
        usage: Optional[TokenUsage] = None,
        raw: Any = None,
    ) -> AIResponse:
        """Like _answered(), but only if content is a JSON object."""
        content = strip_code_fences(content)
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            return self._failed(f"Invalid JSON response: {e}", model, started)
        return self._answered(content, model, started, usage=usage, raw=raw)

    @staticmethod
    def _json_system_prompt(system_prompt: Optional[str]) -> str:
        if not system_prompt:
            return JSON_ONLY_INSTRUCTION
        return f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTION}"


def strip_code_fences(content: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one anyway."""
    content = (content or "").strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
        if content.rstrip().endswith("```"):
            content = content.rstrip()[:-3]
    return content.strip()
