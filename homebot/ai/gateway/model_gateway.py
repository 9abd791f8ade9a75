"""
Model Gateway - One interface over every language-model backend.

The router asks for "a reply to this text, from this provider/model, for
this purpose" and always gets back the same shape:

    GatewayResult(text="Turning off the office lights.",
                  function_call=FunctionCall(target=remote_webhook,
                                             action_id="area_control",
                                             parameters={...}))

How the call is detected depends on the adapter, not on the caller:

    ┌──────────────────────┐   tools=[...]    ┌─────────────────────────┐
    │ OpenAI / Anthropic   │ ───────────────► │ native tool invocation  │──┐
    │ (supports_tools)     │                  └─────────────────────────┘  │
    └──────────────────────┘                                               ├─► FunctionCall
    ┌──────────────────────┐   marker prompt  ┌─────────────────────────┐  │
    │ Ollama (freeform)    │ ───────────────► │ MarkerParser over text  │──┘
    └──────────────────────┘                  └─────────────────────────┘

Failure semantics:
==================
Providers never raise; they report failures in AIResponse. The gateway
turns an unsuccessful response, an unknown provider, or a timeout into
ModelUnavailableError. Every call runs under asyncio.wait_for, so a hung
backend is cancelled instead of blocking the conversation.
"""

import asyncio
import json
import logging
import time
import uuid
from typing import Optional, Dict, Any

from pydantic import ValidationError

from homebot.core.config import settings
from homebot.ai.actions.registry import EXECUTE_COMMAND_TOOL
from homebot.ai.gateway.marker_parser import MarkerParser, marker_parser
from homebot.ai.monitoring.logger import AILogger, ai_logger
from homebot.ai.monitoring.metrics import AIMetrics, ai_metrics
from homebot.ai.providers.base import (
    AIProvider,
    AIResponse,
    ModelUnavailableError,
    TokenUsage,
    ToolInvocation,
)
from homebot.ai.schemas.function_call import FunctionCall, GatewayResult, GenerationOptions

logger = logging.getLogger("homebot.ai.gateway")


class ModelGateway:
    """
    Uniform generate() over the configured providers.

    Usage:
        gateway = ModelGateway({"ollama": ollama_provider, "openai": openai_provider})
        result = await gateway.generate(
            provider="ollama",
            model="mi-bot",
            system_prompt=FUNCTION_SYSTEM_PROMPT,
            user_text="turn off the office lights",
            options=GenerationOptions(purpose="function",
                                      function_definitions=registry.function_definitions()),
        )
    """

    def __init__(
        self,
        providers: Optional[Dict[str, AIProvider]] = None,
        parser: Optional[MarkerParser] = None,
        monitor_logger: Optional[AILogger] = None,
        metrics: Optional[AIMetrics] = None,
        default_timeout: Optional[float] = None,
    ):
        if providers is None:
            from homebot.ai.providers import anthropic_provider, ollama_provider, openai_provider
            providers = {
                "ollama": ollama_provider,
                "openai": openai_provider,
                "anthropic": anthropic_provider,
            }
        self.providers = {name.lower(): adapter for name, adapter in providers.items()}
        self.parser = parser or marker_parser
        self.ai_logger = monitor_logger or ai_logger
        self.metrics = metrics or ai_metrics
        self.default_timeout = default_timeout or settings.GENERATION_TIMEOUT

    def get_provider(self, name: str) -> AIProvider:
        """Resolve an adapter by name; unknown names raise ModelUnavailableError."""
        adapter = self.providers.get((name or "").lower().strip())
        if adapter is None:
            raise ModelUnavailableError(f"Unknown model provider: {name!r}", provider=name)
        return adapter

    def supports_tools(self, name: str) -> bool:
        adapter = self.providers.get((name or "").lower().strip())
        return bool(adapter and adapter.supports_tools)

    async def generate(
        self,
        provider: str,
        model: str,
        system_prompt: str,
        user_text: str,
        options: Optional[GenerationOptions] = None,
        request_id: Optional[str] = None,
    ) -> GatewayResult:
        """
        Generate a reply and normalize any function call in it.

        Raises:
            ModelUnavailableError: unknown provider, backend failure or timeout
        """
        options = options or GenerationOptions()
        request_id = request_id or uuid.uuid4().hex[:12]
        adapter = self.get_provider(provider)
        timeout = options.timeout or self.default_timeout
        model = model or None
        start_time = time.time()

        self.ai_logger.log_request(
            request_id=request_id,
            prompt=user_text,
            provider=adapter.provider_type.value,
            model=model or getattr(adapter, "model", ""),
            purpose=options.purpose,
        )

        if options.json_mode:
            call = adapter.generate_json(
                prompt=user_text,
                system_prompt=system_prompt,
                model=model,
                timeout=timeout,
                max_tokens=options.max_tokens,
            )
        else:
            call = adapter.generate(
                prompt=user_text,
                system_prompt=system_prompt,
                temperature=options.temperature,
                max_tokens=options.max_tokens,
                model=model,
                tools=options.function_definitions if adapter.supports_tools else None,
                timeout=timeout,
            )

        try:
            response: AIResponse = await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError:
            error = f"{adapter.provider_type.value} did not answer within {timeout:.0f}s"
            self._record_failure(request_id, adapter, model, start_time, error, options, timed_out=True)
            raise ModelUnavailableError(error, provider=adapter.provider_type.value, timed_out=True)
        except Exception as e:
            # Adapters report failures in AIResponse; anything raised is a bug in one
            error = f"{adapter.provider_type.value} call raised {type(e).__name__}: {e}"
            logger.exception(f"Provider {adapter.provider_type.value} raised instead of answering")
            self._record_failure(request_id, adapter, model, start_time, error, options)
            raise ModelUnavailableError(error, provider=adapter.provider_type.value) from e

        self.ai_logger.log_response(
            request_id=request_id,
            response=response,
            metadata={"purpose": options.purpose},
        )
        self.metrics.record_request(
            request_id=request_id,
            provider=response.provider,
            model=response.model,
            tokens=response.usage,
            latency_ms=response.latency_ms,
            success=response.success,
            purpose=options.purpose,
        )

        if not response.success:
            raise ModelUnavailableError(
                response.error or "Model call failed",
                provider=adapter.provider_type.value,
            )

        text, function_call = self._normalize(adapter, response, options)

        return GatewayResult(
            text=text,
            function_call=function_call,
            provider=adapter.provider_type.value,
            model=response.model,
            usage=response.usage,
            latency_ms=response.latency_ms,
        )

    def _record_failure(
        self,
        request_id: str,
        adapter: AIProvider,
        model: Optional[str],
        start_time: float,
        error: str,
        options: GenerationOptions,
        timed_out: bool = False,
    ) -> None:
        """Log and count a call that produced no AIResponse."""
        latency_ms = (time.time() - start_time) * 1000
        self.ai_logger.log_response(
            request_id=request_id,
            provider=adapter.provider_type.value,
            model=model,
            latency_ms=latency_ms,
            success=False,
            error=error,
            metadata={"purpose": options.purpose},
        )
        self.metrics.record_request(
            request_id=request_id,
            provider=adapter.provider_type,
            model=model or "",
            tokens=TokenUsage(),
            latency_ms=latency_ms,
            success=False,
            purpose=options.purpose,
            timed_out=timed_out,
        )

    def _normalize(self, adapter: AIProvider, response: AIResponse, options: GenerationOptions):
        """Return (visible text, function call or None) for either backend family."""
        content = response.content or ""

        # Plain chat: the text is the reply, nothing is parsed
        if not options.function_definitions or options.json_mode:
            return content.strip(), None

        if adapter.supports_tools:
            if len(response.tool_calls) > 1:
                logger.info(f"Model returned {len(response.tool_calls)} tool calls, only the first is used")
            function_call = self.tool_to_function_call(response.tool_calls[0]) if response.tool_calls else None
            return content.strip(), function_call

        parsed = self.parser.parse(content)
        return parsed.text, parsed.function_call

    @staticmethod
    def tool_to_function_call(invocation: ToolInvocation) -> Optional[FunctionCall]:
        """
        Translate a native tool invocation into a FunctionCall.

        execute_command(command, arguments) → local command; any other tool
        name is a webhook id with the arguments as parameters. Undecodable
        arguments mean no call.
        """
        arguments: Any = invocation.arguments
        if arguments is None or arguments == "":
            arguments = {}
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except json.JSONDecodeError as e:
                logger.warning(f"Tool call {invocation.name} has invalid JSON arguments: {e}")
                return None
        if not isinstance(arguments, dict):
            logger.warning(f"Tool call {invocation.name} arguments are not an object")
            return None

        try:
            if invocation.name == EXECUTE_COMMAND_TOOL:
                command = arguments.get("command")
                if not command:
                    logger.warning("execute_command tool call without a command")
                    return None
                args_text = arguments.get("arguments") or ""
                return FunctionCall.local(str(command), str(args_text).strip())
            return FunctionCall.remote(invocation.name, arguments)
        except ValidationError as e:
            logger.warning(f"Tool call {invocation.name} rejected: {e}")
            return None
