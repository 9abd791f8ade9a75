"""
!area - Switch an area's lights without going through a model.

    !area office off   → POST area_control {"area": "office", "turn": "off"}
    !area oficina on   → {"area": "office", "turn": "on"}
    !area garage on    → validation message, nothing is posted

Arguments are canonicalized and validated against the area_control schema,
then handed to the Dispatch Executor like any model-initiated call.
"""

import logging
from typing import Optional

from homebot.ai.actions.extraction import ParameterExtractor
from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry
from homebot.ai.actions.validation import ParameterValidator, format_validation_error
from homebot.ai.schemas.function_call import FunctionCall
from homebot.services.dispatch import DispatchExecutor
from homebot.services.messaging import MessageContext

logger = logging.getLogger("homebot.commands.area")

WEBHOOK_ID = "area_control"
USAGE = "Usage: !area <area> <on|off>"


class AreaCommand:
    """
    Handler for !area, bound to the registry it validates against.

    The executor is resolved on first use so the command can be registered
    before the HTTP wiring exists.
    """

    def __init__(self, registry: ActionRegistry, executor: Optional[DispatchExecutor] = None):
        self.registry = registry
        self.extractor = ParameterExtractor(registry)
        self.validator = ParameterValidator(registry)
        self._executor = executor

    @property
    def executor(self) -> DispatchExecutor:
        if self._executor is None:
            from homebot.deps import get_executor

            self._executor = get_executor()
        return self._executor

    async def __call__(self, ctx: MessageContext, args_text: str) -> None:
        parts = (args_text or "").split()
        if len(parts) != 2:
            await ctx.reply(USAGE)
            return

        if self.registry.find(WEBHOOK_ID) is None:
            await ctx.reply(f"❌ The {WEBHOOK_ID} webhook is not registered.")
            return

        params = self.extractor.normalize(WEBHOOK_ID, {"area": parts[0], "turn": parts[1]})
        report = self.validator.validate(WEBHOOK_ID, params)
        if not report.is_valid:
            await ctx.reply(format_validation_error(WEBHOOK_ID, report))
            return

        logger.info(f"!area from {ctx.conversation_id}: {params}")
        result = await self.executor.execute(
            FunctionCall.remote(WEBHOOK_ID, params),
            params,
            context=ctx,
            origin_text=ctx.text,
        )
        await ctx.reply(result.user_message)


def register(registry: ActionRegistry, executor: Optional[DispatchExecutor] = None) -> None:
    registry.register(ActionDefinition(
        id="!area",
        kind=ActionKind.LOCAL_COMMAND,
        description="Switch an area's lights directly: !area <office|room> <on|off>",
        examples=("!area office off", "!area room on"),
        handler=AreaCommand(registry, executor),
    ))
