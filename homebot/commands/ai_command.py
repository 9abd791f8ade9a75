"""
!ai - Ask the chat model directly.

    !ai tell me a joke about robots

Skips classification and function calling: the prompt goes to the model
bound to the "chat" purpose with the conversational system prompt, and the
reply comes back as is.
"""

import logging
from typing import Optional

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry
from homebot.ai.gateway.model_gateway import ModelGateway
from homebot.ai.prompts.assistant_prompts import build_chat_prompt
from homebot.ai.providers.base import ModelUnavailableError
from homebot.ai.router.schemas import ModelBinding
from homebot.ai.schemas.function_call import GenerationOptions
from homebot.services.messaging import MessageContext

logger = logging.getLogger("homebot.commands.ai")

USAGE = "Please write a message after the command, e.g. !ai tell me a joke"
UNAVAILABLE_MESSAGE = "🤖 The AI model is not available right now. Please try again later."


class AskModelCommand:
    """Handler for !ai; gateway and binding default to the process-wide ones."""

    def __init__(self, gateway: Optional[ModelGateway] = None, binding: Optional[ModelBinding] = None):
        self._gateway = gateway
        self._binding = binding

    def _resolve(self):
        if self._gateway is None or self._binding is None:
            from homebot.deps import get_gateway, get_router_config

            self._gateway = self._gateway or get_gateway()
            self._binding = self._binding or get_router_config().chat
        return self._gateway, self._binding

    async def __call__(self, ctx: MessageContext, args_text: str) -> None:
        prompt = (args_text or "").strip()
        if not prompt:
            await ctx.reply(USAGE)
            return

        gateway, binding = self._resolve()
        try:
            generation = await gateway.generate(
                provider=binding.provider,
                model=binding.model,
                system_prompt=build_chat_prompt(),
                user_text=prompt,
                options=GenerationOptions(purpose="chat", timeout=binding.timeout),
            )
        except ModelUnavailableError as e:
            logger.warning(f"!ai failed for {ctx.conversation_id}: {e}")
            await ctx.reply(UNAVAILABLE_MESSAGE)
            return

        await ctx.reply(generation.text or "🤖 The model had nothing to say.")


def register(
    registry: ActionRegistry,
    gateway: Optional[ModelGateway] = None,
    binding: Optional[ModelBinding] = None,
) -> None:
    registry.register(ActionDefinition(
        id="!ai",
        kind=ActionKind.LOCAL_COMMAND,
        description="Ask the AI model directly: !ai <message>",
        examples=("!ai tell me a joke",),
        handler=AskModelCommand(gateway, binding),
    ))
