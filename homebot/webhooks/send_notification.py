"""
send_notification - Push a text notification through Home Assistant.

    'send a message "dinner is ready"' → {"message": "dinner is ready", "to": "admin"}
"""

from homebot.ai.actions.registry import (
    ActionDefinition,
    ActionKind,
    ActionRegistry,
    ExtractionHints,
    ParamSpec,
)

# The text after the trigger word, quotes optional
MESSAGE_PATTERN = r"(mensaje|message|send|enviar|diciendo|saying|text|texto) [\"']?([^\"']+)[\"']?"


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="send_notification",
        kind=ActionKind.REMOTE_WEBHOOK,
        description="Send a notification message to a recipient",
        parameter_schema={
            "message": ParamSpec(
                required=True,
                hints=ExtractionHints(pattern=MESSAGE_PATTERN, pattern_group=2),
                description="Text of the notification",
            ),
            "to": ParamSpec(
                required=True,
                default_value="admin",
                hints=ExtractionHints(keywords_by_value={
                    "admin": ("admin", "administrator", "administrador"),
                }),
                description="Recipient",
            ),
        },
        examples=({"message": "Dinner is ready", "to": "admin"},),
        confirmation="Notification sent to {to}.",
    ))
