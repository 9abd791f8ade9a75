"""
area_control - Turn the lights of a whole area on or off.

    "apaga la luz de la oficina"  → {"area": "office", "turn": "off"}
    "turn on the room lights"     → {"area": "room", "turn": "on"}
"""

from homebot.ai.actions.registry import (
    ActionDefinition,
    ActionKind,
    ActionRegistry,
    ExtractionHints,
    ParamSpec,
)

AREA = ParamSpec(
    required=True,
    allowed_values=("office", "room"),
    hints=ExtractionHints(keywords_by_value={
        "office": ("office", "oficina", "despacho"),
        "room": ("room", "habitación", "habitacion", "cuarto", "dormitorio"),
    }),
    description="Area whose lights are switched",
)

# Spanish verb stems cover every conjugation ("apaga", "apagar", "apagues").
# "on" and "off" are only taken as whole words: "habitacion" and "office"
# contain them.
TURN = ParamSpec(
    required=True,
    allowed_values=("on", "off"),
    hints=ExtractionHints(
        keywords_by_value={
            "on": ("encend", "enciend", "prend", "activ", "prender", "encender", "activar"),
            "off": ("apag", "desactiv", "apagar", "desactivar"),
        },
        pattern=r"\b(on|off)\b",
    ),
    description="Target state",
)


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="area_control",
        kind=ActionKind.REMOTE_WEBHOOK,
        description="Turn the lights of an area (office or room) on or off",
        parameter_schema={"area": AREA, "turn": TURN},
        examples=(
            {"area": "office", "turn": "on"},
            {"area": "room", "turn": "off"},
        ),
        confirmation="The {area} lights are now {turn}.",
    ))
