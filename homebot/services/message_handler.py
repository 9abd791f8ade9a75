"""
Message Handler - Entry point for every inbound chat message.

    "!status"                  → run the command directly (no model involved)
    "!frobnicate"              → "command not recognized"
    "turn off the office..."   → IntentRouter.route_message()

Explicit commands skip classification entirely: typing the prefix is as
unambiguous as intent gets. Both paths return a RouteResult so callers
(the HTTP API, logs) see one shape.
"""

import logging
import uuid
from typing import Optional

from homebot.ai.actions.registry import ActionKind, ActionRegistry
from homebot.ai.router.orchestrator import IntentRouter
from homebot.ai.router.schemas import IntentBucket, IntentClassification, RouteResult, RouterState
from homebot.ai.schemas.function_call import FunctionCall
from homebot.core.config import settings
from homebot.services.dispatch import DispatchExecutor
from homebot.services.messaging import ChatTransport, MessageContext

logger = logging.getLogger("homebot.services.message_handler")


class MessageHandler:
    """
    Decides whether a message is an explicit command or goes to the router.

    Usage:
        handler = MessageHandler(router, registry, executor, transport)
        await handler.handle("34600111222@c.us", "!help")
    """

    def __init__(
        self,
        router: IntentRouter,
        registry: ActionRegistry,
        executor: DispatchExecutor,
        transport: ChatTransport,
        command_prefix: Optional[str] = None,
    ):
        self.router = router
        self.registry = registry
        self.executor = executor
        self.transport = transport
        self.command_prefix = command_prefix if command_prefix is not None else settings.COMMAND_PREFIX

    async def handle(self, conversation_id: str, text: str) -> Optional[RouteResult]:
        """Process one inbound message. Never raises; None for empty messages."""
        text = (text or "").strip()
        if not text:
            return None

        if self.command_prefix and text.startswith(self.command_prefix):
            return await self._run_explicit_command(conversation_id, text)

        return await self.router.route_message(conversation_id, text)

    async def _run_explicit_command(self, conversation_id: str, text: str) -> RouteResult:
        name, _, args_text = text.partition(" ")
        result = RouteResult(
            conversation_id=conversation_id,
            request_id=uuid.uuid4().hex[:12],
            classification=IntentClassification(
                bucket=IntentBucket.COMMAND, confidence=1.0, reason="explicit command"
            ),
        )
        definition = self.registry.find(name)

        if definition is None or definition.kind != ActionKind.LOCAL_COMMAND:
            logger.info(f"Unknown command from {conversation_id}: {name}")
            await self._send(
                result,
                f"❓ Command not recognized: {name}. Type {self.command_prefix}help to see the available commands.",
            )
            result.states.append(RouterState.DONE)
            return result

        context = MessageContext(
            conversation_id=conversation_id,
            text=text,
            transport=self.transport,
            registry=self.registry,
        )
        result.function_call = FunctionCall.local(definition.id, args_text.strip())
        result.states.append(RouterState.DISPATCHING)
        result.dispatch = await self.executor.execute(
            result.function_call,
            context=context,
            origin_text=text,
            request_id=result.request_id,
        )
        result.replies.extend(context.replies)
        if not result.dispatch.succeeded:
            await self._send(result, result.dispatch.user_message)
        result.states.append(RouterState.DONE)
        return result

    async def _send(self, result: RouteResult, text: str) -> None:
        result.replies.append(text)
        try:
            await self.transport.send(result.conversation_id, text)
        except Exception as e:
            logger.error(f"Could not deliver reply to {result.conversation_id}: {e}")
