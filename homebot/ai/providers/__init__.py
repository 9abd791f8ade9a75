"""
AI Providers Module - Unified clients for the supported LLM backends.

- Ollama (local inference server, freeform text with markers)
- OpenAI (hosted, native tool calling)
- Anthropic (hosted, native tool use)

Each provider has the same interface, making them interchangeable:
    response = await provider.generate(prompt, **kwargs)

Providers never raise; failures come back as AIResponse(success=False).
The Model Gateway turns those into ModelUnavailableError.
"""

from homebot.ai.providers.base import (
    AIProvider,
    AIResponse,
    ModelUnavailableError,
    ProviderType,
    TokenUsage,
    ToolInvocation,
)
from homebot.ai.providers.ollama_provider import OllamaProvider, ollama_provider
from homebot.ai.providers.openai_provider import OpenAIProvider, openai_provider
from homebot.ai.providers.anthropic_provider import AnthropicProvider, anthropic_provider

__all__ = [
    "AIProvider",
    "AIResponse",
    "ModelUnavailableError",
    "ProviderType",
    "TokenUsage",
    "ToolInvocation",
    "OllamaProvider",
    "ollama_provider",
    "OpenAIProvider",
    "openai_provider",
    "AnthropicProvider",
    "anthropic_provider",
]
