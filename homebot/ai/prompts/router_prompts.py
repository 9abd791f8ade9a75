"""
Router Prompts - Templates for the intent classification pass.

The classifier runs on a small, fast model. It only has to put the message
in one of three buckets and say how sure it is:

    CHAT     → conversational reply, nothing is executed
    COMMAND  → one of the bot's local commands ("!weather", "!help")
    WEBHOOK  → a smart-home action (lights, scenes, notifications, sensors)

The full catalog is included for context, but no parameters are extracted
here; that happens in the function pass.
"""

from homebot.ai.actions.registry import ActionKind, ActionRegistry


# ---------------------------------------------------------------------------
# CLASSIFICATION SYSTEM PROMPT
# ---------------------------------------------------------------------------

INTENT_SYSTEM_PROMPT = """You are the intent classifier of a home automation chat bot.

Put the user's message in exactly ONE bucket:

CHAT:
- Greetings, small talk, jokes, general questions
- Anything that does not clearly ask the bot to DO something listed below

COMMAND:
- The user wants information or an action provided by one of these commands:
{commands}

WEBHOOK:
- The user wants to change or query the home through one of these actions:
{webhooks}

RULES:
- Messages may be in English or Spanish
- If unsure, prefer CHAT and lower the confidence
- Never invent actions that are not listed

OUTPUT FORMAT (JSON only):
{{"bucket": "CHAT" | "COMMAND" | "WEBHOOK", "confidence": 0.0-1.0, "reason": "short explanation"}}

EXAMPLES:
Input: "turn off the office lights"
Output: {{"bucket": "WEBHOOK", "confidence": 0.95, "reason": "Controls lights in an area"}}

Input: "what's the weather in Madrid"
Output: {{"bucket": "COMMAND", "confidence": 0.9, "reason": "Weather lookup command"}}

Input: "tell me a joke"
Output: {{"bucket": "CHAT", "confidence": 0.95, "reason": "Entertainment, no action"}}
"""


# ---------------------------------------------------------------------------
# CLASSIFICATION REQUEST PROMPT
# ---------------------------------------------------------------------------

INTENT_ANALYSIS_PROMPT = """Classify this message:

MESSAGE: {message}

Respond with JSON only."""


def _summaries(registry: ActionRegistry, kind: ActionKind) -> str:
    actions = registry.list(kind)
    if not actions:
        return "  (none available)"
    return "\n".join(f"  - {action.id}: {action.description}" for action in actions)


def build_intent_prompt(registry: ActionRegistry) -> str:
    """System prompt for the classifier, listing every registered action."""
    return INTENT_SYSTEM_PROMPT.format(
        commands=_summaries(registry, ActionKind.LOCAL_COMMAND),
        webhooks=_summaries(registry, ActionKind.REMOTE_WEBHOOK),
    )


def build_intent_request(message: str) -> str:
    return INTENT_ANALYSIS_PROMPT.format(message=message)
