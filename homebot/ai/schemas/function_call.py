"""
Function Call Schemas - The normalized "the model wants to invoke X" shape.

Every backend ends up here, regardless of how it expresses a call:

- Structured-tool backends (OpenAI, Anthropic) return native tool invocations
- The freeform backend (Ollama) embeds a textual marker in its reply:
      __execute_webhook("area_control", {"area": "office", "turn": "off"})

Both are translated into the same FunctionCall so the router and the
dispatch executor never need to know which backend produced it.

Usage:
======
```python
call = FunctionCall.remote("area_control", {"area": "office", "turn": "off"})
call = FunctionCall.local("!weather", "Madrid")
```
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# CALL TARGET
# ---------------------------------------------------------------------------

class CallTarget(str, Enum):
    """Where a function call is executed."""
    LOCAL_COMMAND = "local_command"    # Registered bot command (e.g. "!weather")
    REMOTE_WEBHOOK = "remote_webhook"  # Home Assistant webhook (e.g. "area_control")


# ---------------------------------------------------------------------------
# FUNCTION CALL
# ---------------------------------------------------------------------------

class FunctionCall(BaseModel):
    """
    Normalized function call produced by the Model Gateway.

    Local commands carry free-text arguments (args_text); remote webhooks
    carry a parameter mapping. Exactly one of the two is set.

    Example:
    ```json
    {
      "target": "remote_webhook",
      "action_id": "area_control",
      "parameters": {"area": "office", "turn": "off"}
    }
    ```
    """
    target: CallTarget
    action_id: str = Field(description="Action identifier or external alias")
    args_text: Optional[str] = Field(
        default=None,
        description="Raw argument string for local commands",
    )
    parameters: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Parameter mapping for remote webhooks",
    )

    @field_validator("action_id")
    @classmethod
    def validate_action_id(cls, v: str) -> str:
        """Action IDs are trimmed and must not be empty."""
        if not v or not v.strip():
            raise ValueError("action_id cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def check_payload_matches_target(self) -> "FunctionCall":
        """Local commands carry args_text, webhooks carry parameters."""
        if self.target == CallTarget.LOCAL_COMMAND:
            if self.parameters is not None:
                raise ValueError("local command calls cannot carry parameters")
            if self.args_text is None:
                self.args_text = ""
        else:
            if self.args_text is not None:
                raise ValueError("webhook calls cannot carry args_text")
            if self.parameters is None:
                self.parameters = {}
        return self

    @classmethod
    def local(cls, action_id: str, args_text: str = "") -> "FunctionCall":
        """Build a local command call."""
        return cls(target=CallTarget.LOCAL_COMMAND, action_id=action_id, args_text=args_text)

    @classmethod
    def remote(cls, action_id: str, parameters: Optional[Dict[str, Any]] = None) -> "FunctionCall":
        """Build a remote webhook call."""
        return cls(
            target=CallTarget.REMOTE_WEBHOOK,
            action_id=action_id,
            parameters=dict(parameters or {}),
        )

    @property
    def is_local(self) -> bool:
        return self.target == CallTarget.LOCAL_COMMAND


# ---------------------------------------------------------------------------
# TOOL DEFINITIONS (sent to structured-tool backends)
# ---------------------------------------------------------------------------

@dataclass
class FunctionDefinition:
    """
    A callable capability advertised to the model.

    Attributes:
        name: Tool name (must match ^[a-zA-Z0-9_-]+$ for hosted APIs)
        description: What the tool does, shown to the model
        parameters: JSON Schema object describing the arguments
    """
    name: str
    description: str
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai_tool(self) -> Dict[str, Any]:
        """Render as an OpenAI chat-completions tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic_tool(self) -> Dict[str, Any]:
        """Render as an Anthropic messages tool."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


# ---------------------------------------------------------------------------
# GATEWAY OPTIONS AND RESULT
# ---------------------------------------------------------------------------

@dataclass
class GenerationOptions:
    """
    Per-call options for the Model Gateway.

    Attributes:
        purpose: "intent", "chat" or "function" (used for logging/metrics)
        temperature: Sampling temperature
        max_tokens: Maximum tokens in the reply
        function_definitions: Tools the model may call (None = plain text)
        json_mode: Ask the backend for a JSON-only reply
        timeout: Seconds before the call is aborted (None = gateway default)
    """
    purpose: str = "chat"
    temperature: float = 0.7
    max_tokens: int = 1024
    function_definitions: Optional[List[FunctionDefinition]] = None
    json_mode: bool = False
    timeout: Optional[float] = None


@dataclass
class GatewayResult:
    """
    What the Model Gateway returns for one generation.

    Attributes:
        text: User-visible text with any function-call markers removed
        function_call: Normalized call, if the model asked for one
        provider: Backend that produced the reply
        model: Model name used
        usage: TokenUsage reported by the backend, if any
        latency_ms: Round-trip time
    """
    text: str
    function_call: Optional[FunctionCall] = None
    provider: str = ""
    model: str = ""
    usage: Optional[Any] = None
    latency_ms: float = 0.0
