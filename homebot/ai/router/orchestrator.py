"""
Intent Router - From one chat message to at most one executed action.

Routing Logic:
=============

┌──────────────────────────────────────────────────────────────────┐
│                       Incoming Message                           │
│                 "turn off the office lights"                     │
└───────────────────────────┬──────────────────────────────────────┘
                            │  CLASSIFYING (intent binding, JSON)
                            ▼
            ┌───────────────┼────────────────┐
            │               │                │
          CHAT           COMMAND          WEBHOOK
            │               └───────┬────────┘
            │                       │  RESPONDING (function binding,
            │ RESPONDING            │  full catalog + tools/markers)
            │ (chat binding)        ▼
            │               FunctionCall?  ── no ──► reply with the text
            │                       │ yes
            │                       ▼  DISPATCHING
            │        local: registry lookup → handler(ctx, args)
            │        webhook: normalize → extract → validate → POST
            ▼                       ▼
          reply          preamble text, then outcome      DONE

Failure policy:
==============
- Classifier down, slow, or talking nonsense → CHAT, silently
- Low confidence (below INTENT_MIN_CONFIDENCE) → CHAT
- Chat/function model down → one apology message
- Unknown action → "couldn't find" message
- Invalid parameters → itemized message, nothing is called
- Anything unexpected → apology; nothing reaches the transport as an exception

Every stage runs strictly after the previous one; the router keeps no
per-conversation state, so different conversations can be routed
concurrently.
"""

import logging
import uuid
from typing import Optional

from homebot.ai.actions.extraction import ParameterExtractor
from homebot.ai.actions.registry import ActionKind, ActionRegistry
from homebot.ai.actions.validation import ParameterValidator, format_validation_error
from homebot.ai.gateway.model_gateway import ModelGateway
from homebot.ai.monitoring.logger import AILogger, ai_logger
from homebot.ai.prompts.assistant_prompts import build_chat_prompt
from homebot.ai.prompts.execution_prompts import build_function_prompt
from homebot.ai.prompts.router_prompts import build_intent_prompt, build_intent_request
from homebot.ai.providers.base import ModelUnavailableError
from homebot.ai.router.schemas import (
    IntentBucket,
    IntentClassification,
    RouteResult,
    RouterConfig,
    RouterState,
)
from homebot.ai.schemas.function_call import FunctionCall, GenerationOptions
from homebot.services.dispatch import DispatchExecutor
from homebot.services.messaging import ChatTransport, MessageContext

logger = logging.getLogger("homebot.ai.router")

APOLOGY_MESSAGE = "Sorry, I had a problem processing your message. Please try again."
EMPTY_REPLY_MESSAGE = "I didn't get a clear answer from the AI model."
DISABLED_NOTE = (
    "_Automatic execution of {kind}s is disabled. "
    "Set ENABLE_FUNCTION_CALLS=true to turn it on._"
)


class IntentRouter:
    """
    The message orchestrator.

    Usage:
        router = IntentRouter(gateway, registry, executor, transport,
                              config=RouterConfig.from_settings())
        result = await router.route_message("34600111222@c.us", "turn off the office lights")
        print(result.classification.bucket)   # WEBHOOK
        print(result.dispatch.outcome)        # success
    """

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ActionRegistry,
        executor: DispatchExecutor,
        transport: ChatTransport,
        config: Optional[RouterConfig] = None,
        extractor: Optional[ParameterExtractor] = None,
        validator: Optional[ParameterValidator] = None,
        monitor_logger: Optional[AILogger] = None,
    ):
        self.gateway = gateway
        self.registry = registry
        self.executor = executor
        self.transport = transport
        self.config = config or RouterConfig.from_settings()
        self.extractor = extractor or ParameterExtractor(registry)
        self.validator = validator or ParameterValidator(registry)
        self.ai_logger = monitor_logger or ai_logger
        logger.info(
            f"Intent router initialized (intent={self.config.intent.provider}, "
            f"chat={self.config.chat.provider}, function={self.config.function.provider}, "
            f"function calls {'enabled' if self.config.enable_function_calls else 'disabled'})"
        )

    # -----------------------------------------------------------------------
    # CLASSIFYING
    # -----------------------------------------------------------------------

    async def classify(self, text: str, request_id: Optional[str] = None) -> IntentClassification:
        """
        Bucket a message into CHAT / COMMAND / WEBHOOK.

        Never raises: every failure becomes a CHAT fallback.
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        binding = self.config.intent

        try:
            generation = await self.gateway.generate(
                provider=binding.provider,
                model=binding.model,
                system_prompt=build_intent_prompt(self.registry),
                user_text=build_intent_request(text),
                options=GenerationOptions(
                    purpose="intent",
                    temperature=0.1,
                    max_tokens=150,
                    json_mode=True,
                    timeout=binding.timeout,
                ),
                request_id=request_id,
            )
            classification = IntentClassification.from_model_output(generation.text)
        except ModelUnavailableError as e:
            logger.warning(f"Intent classifier unavailable, defaulting to CHAT: {e}")
            classification = IntentClassification.chat_fallback(f"classifier unavailable: {e}")
        except ValueError as e:
            logger.warning(f"Unparseable classification, defaulting to CHAT: {e}")
            classification = IntentClassification.chat_fallback(f"unparseable classification: {e}")
        except Exception as e:
            logger.exception(f"Intent classification failed, defaulting to CHAT: {e}")
            classification = IntentClassification.chat_fallback(f"classification failed: {e}")
        else:
            if (
                classification.bucket != IntentBucket.CHAT
                and classification.confidence < self.config.min_confidence
            ):
                logger.info(
                    f"Ambiguous {classification.bucket.value} "
                    f"(confidence {classification.confidence:.2f}), defaulting to CHAT"
                )
                classification = IntentClassification.chat_fallback(
                    f"ambiguous {classification.bucket.value} at {classification.confidence:.2f}"
                )

        self.ai_logger.log_classification(
            request_id=request_id,
            original_text=text,
            bucket=classification.bucket.value,
            confidence=classification.confidence,
            reason=classification.reason,
            fallback=classification.fallback,
        )
        return classification

    # -----------------------------------------------------------------------
    # MAIN ENTRY POINT
    # -----------------------------------------------------------------------

    async def route_message(self, conversation_id: str, text: str) -> RouteResult:
        """
        Route one inbound message; replies go out through the transport.

        Returns:
            RouteResult summary. Never raises.
        """
        result = RouteResult(conversation_id=conversation_id, request_id=uuid.uuid4().hex[:12])
        logger.info(f"[{result.request_id}] Routing message: {text[:50]}")

        try:
            await self._route(result, text)
        except Exception as e:
            logger.error(f"[{result.request_id}] Routing failed: {e}", exc_info=True)
            result.error = str(e)
            self.ai_logger.log_error(result.request_id, str(e), stage=self._stage(result))
            await self._send_safely(result, APOLOGY_MESSAGE)

        if not result.states or result.states[-1] != RouterState.DONE:
            result.states.append(RouterState.DONE)
        return result

    async def _route(self, result: RouteResult, text: str) -> None:
        result.states.append(RouterState.CLASSIFYING)
        classification = await self.classify(text, result.request_id)
        result.classification = classification

        result.states.append(RouterState.RESPONDING)
        if classification.bucket == IntentBucket.CHAT:
            await self._respond_chat(result, text)
            return

        call, preamble = await self._respond_function(result, text)
        if call is None:
            return

        result.function_call = call
        self.ai_logger.log_function_call(
            request_id=result.request_id,
            target=call.target.value,
            action_id=call.action_id,
            arguments=call.args_text if call.is_local else call.parameters,
            executed=self.config.enable_function_calls,
        )

        if not self.config.enable_function_calls:
            note = DISABLED_NOTE.format(kind="command" if call.is_local else "action")
            await self._send(result, f"{preamble}\n\n{note}" if preamble else note)
            return

        result.states.append(RouterState.DISPATCHING)
        await self._dispatch(result, call, preamble, text)

    # -----------------------------------------------------------------------
    # RESPONDING
    # -----------------------------------------------------------------------

    async def _respond_chat(self, result: RouteResult, text: str) -> None:
        binding = self.config.chat
        try:
            generation = await self.gateway.generate(
                provider=binding.provider,
                model=binding.model,
                system_prompt=build_chat_prompt(),
                user_text=text,
                options=GenerationOptions(purpose="chat", timeout=binding.timeout),
                request_id=result.request_id,
            )
        except ModelUnavailableError as e:
            self._record_generation_failure(result, e)
            await self._send(result, APOLOGY_MESSAGE)
            return

        await self._send(result, generation.text or EMPTY_REPLY_MESSAGE)

    async def _respond_function(self, result: RouteResult, text: str):
        """Returns (FunctionCall or None, preamble text)."""
        binding = self.config.function
        use_markers = not self.gateway.supports_tools(binding.provider)

        try:
            generation = await self.gateway.generate(
                provider=binding.provider,
                model=binding.model,
                system_prompt=build_function_prompt(self.registry, use_markers=use_markers),
                user_text=text,
                options=GenerationOptions(
                    purpose="function",
                    temperature=0.3,
                    function_definitions=self.registry.function_definitions(),
                    timeout=binding.timeout,
                ),
                request_id=result.request_id,
            )
        except ModelUnavailableError as e:
            self._record_generation_failure(result, e)
            await self._send(result, APOLOGY_MESSAGE)
            return None, ""

        if generation.function_call is None:
            # No call despite the classification: the text is the answer
            await self._send(result, generation.text or EMPTY_REPLY_MESSAGE)
            return None, ""

        return generation.function_call, generation.text

    # -----------------------------------------------------------------------
    # DISPATCHING
    # -----------------------------------------------------------------------

    async def _dispatch(self, result: RouteResult, call: FunctionCall, preamble: str, text: str) -> None:
        context = MessageContext(
            conversation_id=result.conversation_id,
            text=text,
            transport=self.transport,
            registry=self.registry,
        )
        # Explanatory text goes out first, whatever the outcome
        await self._send(result, preamble)

        if call.is_local:
            definition = self.registry.find(call.action_id)
            prefix = self.config.command_prefix
            if definition is None and prefix and not call.action_id.startswith(prefix):
                definition = self.registry.find(prefix + call.action_id)

            if definition is None or definition.kind != ActionKind.LOCAL_COMMAND:
                await self._send(result, f"❌ I couldn't find the command \"{call.action_id}\".")
                return

            call = FunctionCall.local(definition.id, call.args_text or "")
            result.function_call = call

            dispatch = await self.executor.execute(
                call, {}, context=context, origin_text=text, request_id=result.request_id
            )
            result.dispatch = dispatch
            result.replies.extend(dispatch.raw.get("replies", []) if isinstance(dispatch.raw, dict) else [])
            # A successful handler has already answered through the context
            if not dispatch.succeeded:
                await self._send(result, dispatch.user_message)
            return

        definition = self.registry.find(call.action_id)
        if definition is None or definition.kind != ActionKind.REMOTE_WEBHOOK:
            await self._send(
                result, f"❌ I couldn't find the webhook \"{call.action_id}\". Please check the name."
            )
            return

        params = self.extractor.normalize(definition.id, call.parameters)
        params = self.extractor.extract(text, definition.id, params)
        report = self.validator.validate(definition.id, params)

        call = FunctionCall.remote(definition.id, params)
        result.function_call = call

        if not report.is_valid:
            logger.info(f"[{result.request_id}] Invalid parameters for {definition.id}: {report.to_dict()}")
            await self._send(result, format_validation_error(definition.id, report))
            return

        dispatch = await self.executor.execute(
            call, params, context=context, origin_text=text, request_id=result.request_id
        )
        result.dispatch = dispatch
        await self._send(result, dispatch.user_message)

    # -----------------------------------------------------------------------
    # HELPERS
    # -----------------------------------------------------------------------

    async def _send(self, result: RouteResult, text: str) -> None:
        if not text:
            return
        result.replies.append(text)
        await self.transport.send(result.conversation_id, text)

    async def _send_safely(self, result: RouteResult, text: str) -> None:
        try:
            await self._send(result, text)
        except Exception as e:
            logger.error(f"[{result.request_id}] Could not deliver reply: {e}")

    def _record_generation_failure(self, result: RouteResult, error: ModelUnavailableError) -> None:
        result.error = str(error)
        self.ai_logger.log_error(
            request_id=result.request_id,
            error=str(error),
            stage="responding",
            metadata={"provider": error.provider, "timed_out": error.timed_out},
        )

    @staticmethod
    def _stage(result: RouteResult) -> str:
        return result.states[-1].value if result.states else "classifying"
