"""
!status - Bot health at a glance.

Shows the model bound to each purpose, how many actions are registered,
whether function execution is enabled, uptime and AI usage so far.
"""

import time

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry, action_registry
from homebot.ai.monitoring.metrics import ai_metrics
from homebot.core.config import settings
from homebot.services.messaging import MessageContext

_STARTED_AT = time.time()


def format_uptime(seconds: float) -> str:
    """12345 → '3h 25m 45s'"""
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def build_status_text(registry: ActionRegistry) -> str:
    lines = ["📊 *Bot status*", f"⏱️ Uptime: {format_uptime(time.time() - _STARTED_AT)}", ""]

    lines.append("🧠 *Models:*")
    for purpose in ("intent", "chat", "function"):
        provider, model = settings.model_for(purpose)
        lines.append(f"- {purpose}: {provider}/{model or 'default'}")

    commands = registry.list(ActionKind.LOCAL_COMMAND)
    webhooks = registry.list(ActionKind.REMOTE_WEBHOOK)
    lines.append("")
    lines.append(f"🧩 Actions: {len(commands)} commands, {len(webhooks)} webhooks")
    lines.append(
        f"⚙️ Function execution: {'enabled' if settings.ENABLE_FUNCTION_CALLS else 'disabled'}"
    )

    stats = ai_metrics.get_stats()
    lines.append("")
    lines.append(
        f"📈 AI requests: {stats.total_requests} "
        f"({stats.success_rate:.1f}% ok, {stats.timeouts} timeouts, "
        f"avg {stats.avg_latency_ms:.0f} ms)"
    )
    return "\n".join(lines)


async def handle_status(ctx: MessageContext, args_text: str) -> None:
    await ctx.reply(build_status_text(ctx.registry or action_registry))


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="!status",
        kind=ActionKind.LOCAL_COMMAND,
        description="Show bot status: models, registered actions and AI usage",
        examples=("!status",),
        handler=handle_status,
    ))
