"""
scene - Activate a Home Assistant scene.
"""

from homebot.ai.actions.registry import (
    ActionDefinition,
    ActionKind,
    ActionRegistry,
    ExtractionHints,
    ParamSpec,
)


def register(registry: ActionRegistry) -> None:
    registry.register(ActionDefinition(
        id="scene",
        kind=ActionKind.REMOTE_WEBHOOK,
        description="Activate a home scene (movie, reading, sleep, morning)",
        parameter_schema={
            "scene": ParamSpec(
                required=True,
                allowed_values=("movie", "reading", "sleep", "morning"),
                hints=ExtractionHints(keywords_by_value={
                    "movie": ("movie", "película", "pelicula", "cine", "netflix"),
                    "reading": ("reading", "lectura", "leer", "libro"),
                    "sleep": ("sleep", "dormir", "noche", "descanso"),
                    "morning": ("morning", "mañana", "despertar", "amanecer"),
                }),
            ),
        },
        examples=({"scene": "movie"}, {"scene": "sleep"}),
        confirmation="Scene activated: {scene}.",
    ))
