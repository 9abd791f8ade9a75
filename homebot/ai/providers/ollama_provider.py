"""
Ollama Provider - Local inference server client.

Ollama serves open-weight models on the local network. It is the default
backend for the bot: cheap, private, and always on.

Role in Homebot:
===============
Ollama has no native tool calling for the models we run, so it is a
freeform-text backend. When the function prompt is used, the model is told
to embed a marker such as:

    __execute_command("!weather", "Madrid")

in its reply, and the Model Gateway parses it out of the text.

Wire format (POST {OLLAMA_API_URL}/api/chat, stream disabled):

    {"model": "mi-bot", "messages": [...], "stream": false,
     "options": {"temperature": 0.7, "num_predict": 1024},
     "format": "json"}                       ← JSON passes only

API Documentation: https://github.com/ollama/ollama/blob/main/docs/api.md
"""

import logging
import time
from typing import Optional, Any, Dict, List

import httpx

from homebot.core.config import settings
from homebot.ai.schemas.function_call import FunctionDefinition
from homebot.ai.providers.base import AIProvider, AIResponse, ProviderType, TokenUsage

logger = logging.getLogger("homebot.ai.ollama")


class OllamaProvider(AIProvider):
    """
    Freeform-text adapter for a local Ollama server.

    Usage:
        provider = OllamaProvider()
        response = await provider.generate("Tell me a joke")
        response = await provider.generate_json("Classify...", system_prompt="Return JSON")
    """

    provider_type = ProviderType.OLLAMA
    supports_tools = False

    def __init__(
        self,
        model: str = None,
        base_url: str = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            model: Default model (settings.OLLAMA_MODEL)
            base_url: Server URL (settings.OLLAMA_API_URL)
            client: Shared httpx client; a short-lived one is opened per call otherwise
        """
        self.model = model or settings.OLLAMA_MODEL
        self.base_url = (base_url or settings.OLLAMA_API_URL).rstrip("/")
        self._client = client
        logger.info(f"Ollama provider at {self.base_url}, default model {self.model}")

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
        # tools are ignored: the function prompt teaches the marker syntax instead
        return await self._chat(
            prompt,
            system_prompt,
            model=model or self.model,
            options={"temperature": temperature, "num_predict": max_tokens},
            timeout=timeout,
        )

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> AIResponse:
        return await self._chat(
            prompt,
            self._json_system_prompt(system_prompt),
            model=model or self.model,
            options={"temperature": 0.1, "num_predict": kwargs.get("max_tokens", 256)},
            timeout=timeout,
            json_mode=True,
        )

    async def _chat(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        options: Dict[str, Any],
        timeout: Optional[float],
        json_mode: bool = False,
    ) -> AIResponse:
        started = time.time()

        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": options,
        }
        if json_mode:
            payload["format"] = "json"

        try:
            data = await self._post("/api/chat", payload, timeout)
        except httpx.TimeoutException:
            return self._failed(f"Ollama request timed out after {timeout}s", model, started)
        except (httpx.HTTPError, ValueError) as e:
            return self._failed(f"Ollama request failed: {e}", model, started)

        if not isinstance(data, dict):
            return self._failed("Ollama returned an unexpected response body", model, started)

        # /api/generate-style servers answer with "response" instead of "message"
        content = (data.get("message") or {}).get("content") or data.get("response") or ""
        usage = TokenUsage(
            prompt_tokens=data.get("prompt_eval_count") or 0,
            completion_tokens=data.get("eval_count") or 0,
        )

        if json_mode:
            return self._json_answer(content, model, started, usage=usage, raw=data)
        return self._answered(content, model, started, usage=usage, raw=data)

    async def _post(self, path: str, payload: Dict[str, Any], timeout: Optional[float]) -> Any:
        """POST JSON and decode the answer; raises httpx errors and ValueError."""
        url = f"{self.base_url}{path}"
        request_timeout = httpx.Timeout(timeout or settings.GENERATION_TIMEOUT)

        if self._client is not None:
            response = await self._client.post(url, json=payload, timeout=request_timeout)
        else:
            async with httpx.AsyncClient(timeout=request_timeout) as client:
                response = await client.post(url, json=payload)

        response.raise_for_status()
        return response.json()


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
ollama_provider = OllamaProvider()
