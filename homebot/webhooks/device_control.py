"""
device_control - Switch a single device (lamp, TV, fan, AC, speaker).

The device name is free text taken from the message; the action is one of
on / off / toggle.
"""

from homebot.ai.actions.registry import (
    ActionDefinition,
    ActionKind,
    ActionRegistry,
    ExtractionHints,
    ParamSpec,
)

DEVICE_PATTERN = (
    r"\b(lámpara|lampara|luz|light|bombilla|foco|tv|televisión|television"
    r"|ventilador|fan|aire|ac|speaker|altavoz)\b"
)


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="device_control",
        kind=ActionKind.REMOTE_WEBHOOK,
        description="Turn a specific device on, off, or toggle it",
        parameter_schema={
            "device": ParamSpec(
                required=True,
                hints=ExtractionHints(pattern=DEVICE_PATTERN),
                description="Device name, e.g. lamp, tv, fan",
            ),
            "action": ParamSpec(
                required=True,
                allowed_values=("on", "off", "toggle"),
                hints=ExtractionHints(
                    keywords_by_value={
                        "on": ("encend", "enciend", "prend", "activ"),
                        "off": ("apag", "desactiv"),
                        "toggle": ("toggle", "altern", "cambiar"),
                    },
                    pattern=r"\b(on|off|toggle)\b",
                ),
            ),
        },
        examples=(
            {"device": "lamp", "action": "on"},
            {"device": "tv", "action": "toggle"},
        ),
        confirmation="Device {device}: {action}.",
    ))
