"""
Action Registry - Catalog of everything the bot can execute.

Two kinds of actions live here:
- Local commands: handlers inside the bot, invoked as "!weather Madrid"
- Remote webhooks: Home Assistant automations, invoked by POSTing the
  validated parameters to {HOMEASSISTANT_URL}/webhook/{external_alias}

Purpose:
========
1. Single source of truth for action definitions
2. Declarative parameter schemas used by extraction and validation
3. Self-documenting: each definition renders its own prompt text and
   tool definition, so prompts never depend on file layout

Usage:
======
```python
from homebot.ai.actions.registry import action_registry

action = action_registry.find("area_control")
webhooks = action_registry.list(ActionKind.REMOTE_WEBHOOK)
tools = action_registry.function_definitions()
```

The registry is filled once at start-up by the loader (see loader.py) and
only read afterwards.
"""

import json
import logging
import re
import warnings
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Optional, Dict, Any, List, Tuple, Callable, Mapping

from homebot.core.config import Settings, settings as default_settings
from homebot.ai.schemas.function_call import CallTarget, FunctionDefinition


logger = logging.getLogger("homebot.ai.actions.registry")

# Name of the single tool that wraps every local command
EXECUTE_COMMAND_TOOL = "execute_command"

# An action's kind is the call target that executes it
ActionKind = CallTarget


class DuplicateActionError(UserWarning):
    """
    Issued (as a warning, never raised) when an id or alias is registered twice.

    The later definition replaces the earlier one, which keeps hot-reload
    style re-registration working during development.
    """


# ---------------------------------------------------------------------------
# PARAMETER SCHEMA
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtractionHints:
    """
    How to find a parameter value in free text.

    Attributes:
        keywords_by_value: value -> keywords that select it (substring, case-insensitive)
        pattern: Regex searched when no keyword matched (case-insensitive)
        pattern_group: Capture group that holds the value
    """
    keywords_by_value: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    pattern: Optional[str] = None
    pattern_group: int = 1
    _regex: Optional["re.Pattern"] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        frozen_keywords = MappingProxyType(
            {value: tuple(keywords) for value, keywords in dict(self.keywords_by_value).items()}
        )
        object.__setattr__(self, "keywords_by_value", frozen_keywords)
        if self.pattern:
            object.__setattr__(self, "_regex", re.compile(self.pattern, re.IGNORECASE))

    @property
    def regex(self) -> Optional["re.Pattern"]:
        return self._regex


@dataclass(frozen=True)
class ParamSpec:
    """
    Declarative contract for one parameter.

    If allowed_values is non-empty, any supplied or extracted value must be
    one of them.
    """
    required: bool = False
    allowed_values: Tuple[str, ...] = ()
    default_value: Optional[str] = None
    hints: ExtractionHints = field(default_factory=ExtractionHints)
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "allowed_values", tuple(self.allowed_values))

    def to_json_schema(self) -> Dict[str, Any]:
        """Render as a JSON Schema property for tool definitions."""
        schema: Dict[str, Any] = {"type": "string"}
        if self.allowed_values:
            schema["enum"] = list(self.allowed_values)
        if self.description:
            schema["description"] = self.description
        if self.default_value is not None:
            schema["default"] = self.default_value
        return schema


# ---------------------------------------------------------------------------
# ACTION DEFINITION
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionDefinition:
    """
    Definition of an action the bot can execute.

    Attributes:
        id: Unique identifier ("area_control", "!weather")
        kind: LOCAL_COMMAND or REMOTE_WEBHOOK
        description: Human-readable description, shown to the model
        parameter_schema: Parameter name -> ParamSpec (webhooks)
        external_alias: Identifier used by external callers; resolved from
            configuration at registration time when not given
        examples: Example parameter dicts (webhooks) or command lines (commands)
        handler: Callable(context, args_text) for local commands, sync or async
        confirmation: Success message template, formatted with the parameters
    """
    id: str
    kind: ActionKind
    description: str
    parameter_schema: Mapping[str, ParamSpec] = field(default_factory=dict)
    external_alias: Optional[str] = None
    examples: Tuple[Any, ...] = ()
    handler: Optional[Callable[..., Any]] = field(default=None, compare=False)
    confirmation: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "parameter_schema", MappingProxyType(dict(self.parameter_schema)))
        object.__setattr__(self, "examples", tuple(self.examples))

    @property
    def alias(self) -> str:
        """External identifier (defaults to id)."""
        return self.external_alias or self.id

    @property
    def required_params(self) -> List[str]:
        return [name for name, param in self.parameter_schema.items() if param.required]

    def describe(self) -> str:
        """
        Render parameter docs and examples for prompts and !webhooks.

        Example output:
            area_control: Turn the lights of an area on or off
              Parameters:
              - area (required): one of [office, room]
              Example: {"area": "office", "turn": "on"}
        """
        lines = [f"{self.id}: {self.description}"]

        if self.parameter_schema:
            lines.append("  Parameters:")
            for name, param in self.parameter_schema.items():
                details = "required" if param.required else "optional"
                if param.default_value is not None:
                    details += f", default '{param.default_value}'"
                line = f"  - {name} ({details})"
                if param.allowed_values:
                    line += f": one of [{', '.join(param.allowed_values)}]"
                if param.description:
                    line += f". {param.description}"
                lines.append(line)

        for example in self.examples:
            if isinstance(example, str):
                lines.append(f"  Example: {example}")
            else:
                lines.append(f"  Example: {json.dumps(example, ensure_ascii=False)}")

        return "\n".join(lines)

    def to_function_definition(self) -> FunctionDefinition:
        """Render a webhook as an individually named tool."""
        return FunctionDefinition(
            name=self.id,
            description=self.description,
            parameters={
                "type": "object",
                "properties": {
                    name: param.to_json_schema() for name, param in self.parameter_schema.items()
                },
                "required": self.required_params,
            },
        )


# ---------------------------------------------------------------------------
# ACTION REGISTRY
# ---------------------------------------------------------------------------

class ActionRegistry:
    """
    Registry of all actions the bot can execute.

    Keyed by id and by external alias. Lookups try an exact match first
    and fall back to a case-insensitive one.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or default_settings
        self._actions: Dict[str, ActionDefinition] = {}
        self._alias_map: Dict[str, str] = {}  # alias -> id

    def __len__(self) -> int:
        return len(self._actions)

    def resolve_external_alias(self, action_id: str, explicit: Optional[str] = None) -> str:
        """
        Work out the external identifier for an action.

        Order: explicit alias, configured override (WEBHOOK_ID_OVERRIDES or
        <ACTION_ID>_WEBHOOK_ID), the id itself.
        """
        if explicit:
            return explicit
        return self._settings.external_id_override(action_id) or action_id

    def register(self, definition: ActionDefinition) -> ActionDefinition:
        """
        Register an action, replacing any previous one with the same id or alias.

        Returns:
            The stored definition (with its external alias resolved)
        """
        definition = replace(
            definition,
            external_alias=self.resolve_external_alias(definition.id, definition.external_alias),
        )

        previous = self._actions.get(definition.id)
        if previous is not None:
            self._warn_duplicate(f"Action '{definition.id}' registered twice, replacing previous definition")
            if self._alias_map.get(previous.alias) == previous.id:
                del self._alias_map[previous.alias]

        owner = self._alias_map.get(definition.alias)
        if owner is not None and owner != definition.id:
            self._warn_duplicate(
                f"Alias '{definition.alias}' of '{definition.id}' already used by '{owner}', reassigning"
            )

        self._actions[definition.id] = definition
        self._alias_map[definition.alias] = definition.id

        if definition.alias != definition.id:
            logger.info(f"Registered {definition.kind.value}: {definition.id} -> {definition.alias}")
        else:
            logger.debug(f"Registered {definition.kind.value}: {definition.id}")
        return definition

    def find(self, id_or_alias: str) -> Optional[ActionDefinition]:
        """
        Get an action by id or external alias.

        Returns:
            ActionDefinition if found, None otherwise
        """
        if not id_or_alias:
            return None
        key = id_or_alias.strip()

        if key in self._actions:
            return self._actions[key]
        if key in self._alias_map:
            return self._actions.get(self._alias_map[key])

        lowered = key.lower()
        for action_id, action in self._actions.items():
            if action_id.lower() == lowered:
                return action
        for alias, action_id in self._alias_map.items():
            if alias.lower() == lowered:
                return self._actions.get(action_id)

        return None

    def list(self, kind: Optional[ActionKind] = None) -> List[ActionDefinition]:
        """List registered actions in insertion order, optionally filtered by kind."""
        if kind:
            return [a for a in self._actions.values() if a.kind == kind]
        return list(self._actions.values())

    def function_definitions(self) -> List[FunctionDefinition]:
        """
        Tools for structured-tool backends.

        One execute_command tool covers every local command; each webhook
        is advertised as its own tool.
        """
        definitions: List[FunctionDefinition] = []

        commands = self.list(ActionKind.LOCAL_COMMAND)
        if commands:
            definitions.append(FunctionDefinition(
                name=EXECUTE_COMMAND_TOOL,
                description="Run one of the bot's commands. "
                            + "; ".join(f"{c.id}: {c.description}" for c in commands),
                parameters={
                    "type": "object",
                    "properties": {
                        "command": {
                            "type": "string",
                            "enum": [c.id for c in commands],
                            "description": "Command to run, including the prefix",
                        },
                        "arguments": {
                            "type": "string",
                            "description": "Free-text arguments for the command",
                        },
                    },
                    "required": ["command"],
                },
            ))

        definitions.extend(
            action.to_function_definition() for action in self.list(ActionKind.REMOTE_WEBHOOK)
        )
        return definitions

    def describe(self, kind: Optional[ActionKind] = None) -> str:
        """Catalog text (one block per action) for prompts and help output."""
        return "\n\n".join(action.describe() for action in self.list(kind))

    @staticmethod
    def _warn_duplicate(message: str) -> None:
        logger.warning(message)
        warnings.warn(message, DuplicateActionError, stacklevel=3)


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
# Filled at start-up by homebot.ai.actions.loader.load_actions()
action_registry = ActionRegistry()
