"""
!help - List everything the bot can do.
"""

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry, action_registry
from homebot.services.messaging import MessageContext


def build_help_text(registry: ActionRegistry) -> str:
    lines = ["🤖 *Available commands:*"]
    for command in registry.list(ActionKind.LOCAL_COMMAND):
        lines.append(f"{command.id} - {command.description}")

    webhooks = registry.list(ActionKind.REMOTE_WEBHOOK)
    if webhooks:
        lines.append("")
        lines.append("🏠 *Home automations* (just ask in plain words):")
        for webhook in webhooks:
            lines.append(f"• {webhook.id} - {webhook.description}")

    return "\n".join(lines)


async def handle_help(ctx: MessageContext, args_text: str) -> None:
    await ctx.reply(build_help_text(ctx.registry or action_registry))


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="!help",
        kind=ActionKind.LOCAL_COMMAND,
        description="Show this help message with all available commands",
        examples=("!help",),
        handler=handle_help,
    ))
