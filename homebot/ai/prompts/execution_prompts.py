"""
Execution Prompts - Function-call generation for COMMAND and WEBHOOK messages.

The prompt enumerates the whole catalog (descriptions, parameter docs and
examples, rendered by each ActionDefinition) and then explains how to call
an action. That explanation depends on the backend:

- Structured-tool backends get the catalog as tools and are told to use them
- Freeform-text backends are taught the marker syntax:

      __execute_command("!command", "arguments")
      __execute_webhook("webhook_name", {"param": "value"})
"""

from homebot.ai.actions.registry import ActionKind, ActionRegistry


# ---------------------------------------------------------------------------
# SYSTEM PROMPT
# ---------------------------------------------------------------------------

EXECUTION_SYSTEM_PROMPT = """You are a smart home assistant that can answer questions and execute actions.
Respond concisely, clearly, and in a friendly, natural tone, in the user's language.

AVAILABLE COMMANDS:
{commands}

AVAILABLE WEBHOOKS:
{webhooks}

{calling}

DO NOT call anything if the user isn't clearly requesting a related action.
Call at most ONE action per reply.
When calling an action, briefly say what you are going to do first.
"""


# ---------------------------------------------------------------------------
# HOW TO CALL: NATIVE TOOLS
# ---------------------------------------------------------------------------

TOOL_CALLING_INSTRUCTIONS = """FUNCTION EXECUTION:
Use the tools you were given.
- Commands go through execute_command with the full command including its
  prefix (for example "!weather") and the arguments as one string
- Each webhook is its own tool; pass only the parameters it declares and
  only values from its allowed list"""


# ---------------------------------------------------------------------------
# HOW TO CALL: TEXT MARKERS
# ---------------------------------------------------------------------------

MARKER_INSTRUCTIONS = """FUNCTION EXECUTION:
If the user requests something that matches a command or webhook above,
write the matching call inside your reply:

For commands:
  __execute_command("!command", "arguments")
  - The first parameter is the full command including the '!' symbol
  - The second parameter is the arguments as a single string

For webhooks:
  __execute_webhook("webhook_name", {"param": "value"})
  - The first parameter is the webhook name exactly as listed above
  - The second parameter is a JSON object with the webhook's parameters

USAGE EXAMPLES:
1. User: "What's the weather like in Buenos Aires?"
   You: I'll check the weather for you. __execute_command("!weather", "Buenos Aires")

2. User: "Turn off the office lights"
   You: Turning off the office lights. __execute_webhook("area_control", {"area": "office", "turn": "off"})

3. User: "Send a message to the admin saying I'll be late"
   You: Sending the notification. __execute_webhook("send_notification", {"to": "admin", "message": "I'll be late"})"""


def build_function_prompt(registry: ActionRegistry, use_markers: bool) -> str:
    """
    System prompt for the function pass.

    Args:
        registry: Catalog to describe
        use_markers: True for freeform-text backends (teach the marker syntax)
    """
    commands = registry.describe(ActionKind.LOCAL_COMMAND) or "(none)"
    webhooks = registry.describe(ActionKind.REMOTE_WEBHOOK) or "(none)"
    calling = MARKER_INSTRUCTIONS if use_markers else TOOL_CALLING_INSTRUCTIONS

    return EXECUTION_SYSTEM_PROMPT.format(
        commands=commands,
        webhooks=webhooks,
        calling=calling,
    )
