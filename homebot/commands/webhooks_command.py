"""
!webhooks - Parameter documentation for the home automations.

    !webhooks               → every webhook with its parameters
    !webhooks area_control  → just that one
"""

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry, action_registry
from homebot.services.messaging import MessageContext


async def handle_webhooks(ctx: MessageContext, args_text: str) -> None:
    registry = ctx.registry or action_registry
    name = args_text.strip()

    if name:
        webhook = registry.find(name)
        if webhook is None or webhook.kind != ActionKind.REMOTE_WEBHOOK:
            await ctx.reply(f"❌ I couldn't find the webhook \"{name}\". Please check the name.")
            return
        await ctx.reply(webhook.describe())
        return

    webhooks = registry.list(ActionKind.REMOTE_WEBHOOK)
    if not webhooks:
        await ctx.reply("No webhooks are registered.")
        return

    await ctx.reply("🏠 *Available webhooks:*\n\n" + registry.describe(ActionKind.REMOTE_WEBHOOK))


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="!webhooks",
        kind=ActionKind.LOCAL_COMMAND,
        description="List the home automation webhooks and their parameters",
        examples=("!webhooks", "!webhooks area_control"),
        handler=handle_webhooks,
    ))
