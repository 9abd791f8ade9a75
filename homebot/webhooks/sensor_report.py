"""
sensor_report - Ask Home Assistant for a sensor reading.

Home Assistant answers with a JSON body whose "message" field carries the
reading, which becomes the chat reply.
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
        id="sensor_report",
        kind=ActionKind.REMOTE_WEBHOOK,
        description="Report sensor readings (temperature, humidity, motion, light)",
        parameter_schema={
            "sensor": ParamSpec(
                required=True,
                allowed_values=("temperature", "humidity", "motion", "light", "all"),
                hints=ExtractionHints(keywords_by_value={
                    "temperature": (
                        "temperature", "temperatura", "termometro", "termómetro", "calor", "frío", "frio",
                    ),
                    "humidity": ("humedad", "humidity"),
                    "motion": ("movimiento", "motion", "presencia", "presence"),
                    "light": ("light", "luz", "iluminacion", "iluminación", "brillo"),
                }),
            ),
            "location": ParamSpec(
                default_value="all",
                hints=ExtractionHints(keywords_by_value={
                    "living": ("living", "sala", "salón", "salon"),
                    "bedroom": ("bedroom", "dormitorio", "habitación", "habitacion", "cuarto"),
                    "kitchen": ("kitchen", "cocina"),
                    "office": ("office", "oficina", "despacho"),
                }),
                description="Where to read (living, bedroom, kitchen, office, all)",
            ),
        },
        examples=(
            {"sensor": "temperature", "location": "living"},
            {"sensor": "all"},
        ),
    ))
