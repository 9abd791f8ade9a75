"""
Router Schemas - Classification, configuration and per-message results.

Message lifecycle:
=================

    CLASSIFYING ──► RESPONDING ──► DISPATCHING ──► DONE
         │               │                          ▲
         │               └── CHAT / no call ────────┤
         └── any failure → CHAT                     │
                                                    │
    Nothing is persisted: every message starts from CLASSIFYING.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from homebot.core.config import Settings, settings as default_settings
from homebot.ai.schemas.function_call import FunctionCall


# ---------------------------------------------------------------------------
# INTENT CLASSIFICATION
# ---------------------------------------------------------------------------

class IntentBucket(str, Enum):
    """Coarse intent of a message."""
    CHAT = "CHAT"          # Conversational reply only
    COMMAND = "COMMAND"    # A local bot command
    WEBHOOK = "WEBHOOK"    # A smart-home webhook


class IntentClassification(BaseModel):
    """
    Output of the classification pass.

    Example:
    ```json
    {"bucket": "WEBHOOK", "confidence": 0.92, "reason": "Controls office lights"}
    ```
    """
    bucket: IntentBucket
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""
    fallback: bool = Field(default=False, description="True when forced to CHAT")

    @field_validator("bucket", mode="before")
    @classmethod
    def normalize_bucket(cls, v: Any) -> Any:
        """Accept "webhook", " Webhook " etc."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        """Models sometimes answer 95 or "0.9"; clamp into [0, 1]."""
        if v is None:
            return 0.0
        value = float(v)
        if value > 1.0 and value <= 100.0:
            value = value / 100.0
        return max(0.0, min(1.0, value))

    @field_validator("reason", mode="before")
    @classmethod
    def coerce_reason(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @classmethod
    def chat_fallback(cls, reason: str) -> "IntentClassification":
        """The deterministic default when classification cannot be trusted."""
        return cls(bucket=IntentBucket.CHAT, confidence=0.0, reason=reason, fallback=True)

    @classmethod
    def from_model_output(cls, raw: str) -> "IntentClassification":
        """
        Parse the classifier's reply.

        Accepts bare JSON or JSON surrounded by text/code fences.

        Raises:
            ValueError: empty, not JSON, or not a valid classification
        """
        raw = (raw or "").strip()
        if not raw:
            raise ValueError("empty classification")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            match = re.search(r"\{.*\}", raw, re.DOTALL)
            if not match:
                raise ValueError(f"classification is not JSON: {raw[:80]}")
            try:
                data = json.loads(match.group(0))
            except json.JSONDecodeError as e:
                raise ValueError(f"classification is not JSON: {e}")

        if not isinstance(data, dict):
            raise ValueError("classification is not an object")

        # pydantic's ValidationError is a ValueError
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# STATE MACHINE
# ---------------------------------------------------------------------------

class RouterState(str, Enum):
    CLASSIFYING = "classifying"
    RESPONDING = "responding"
    DISPATCHING = "dispatching"
    DONE = "done"


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelBinding:
    """The (provider, model, timeout) chosen for one purpose."""
    provider: str
    model: str = ""
    timeout: Optional[float] = None


@dataclass(frozen=True)
class RouterConfig:
    """
    Everything the router needs to know, fixed at construction.

    Attributes:
        intent: Binding for the classification pass (small and fast)
        chat: Binding for conversational replies
        function: Binding for function-call generation
        enable_function_calls: When False, detected calls are reported, not run
        min_confidence: Classifications below this fall back to CHAT
        command_prefix: Prefix of local command ids ("!help")
    """
    intent: ModelBinding
    chat: ModelBinding
    function: ModelBinding
    enable_function_calls: bool = True
    min_confidence: float = 0.3
    command_prefix: str = "!"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RouterConfig":
        """Resolve every purpose binding once, at start-up."""
        settings = settings or default_settings

        def binding(purpose: str, timeout: float) -> ModelBinding:
            provider, model = settings.model_for(purpose)
            return ModelBinding(provider=provider, model=model, timeout=timeout)

        return cls(
            intent=binding("intent", settings.INTENT_TIMEOUT),
            chat=binding("chat", settings.GENERATION_TIMEOUT),
            function=binding("function", settings.GENERATION_TIMEOUT),
            enable_function_calls=settings.ENABLE_FUNCTION_CALLS,
            min_confidence=settings.INTENT_MIN_CONFIDENCE,
            command_prefix=settings.COMMAND_PREFIX,
        )


# ---------------------------------------------------------------------------
# RESULT
# ---------------------------------------------------------------------------

@dataclass
class RouteResult:
    """
    Summary of one routed message (for logs, HTTP responses and tests).

    The replies themselves have already been sent through the transport.
    """
    conversation_id: str
    request_id: str
    classification: Optional[IntentClassification] = None
    function_call: Optional[FunctionCall] = None
    dispatch: Optional[Any] = None  # DispatchResult
    replies: List[str] = field(default_factory=list)
    states: List[RouterState] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def dispatched(self) -> bool:
        return self.dispatch is not None

    def to_dict(self) -> dict:
        return {
            "conversation_id": self.conversation_id,
            "request_id": self.request_id,
            "bucket": self.classification.bucket.value if self.classification else None,
            "confidence": self.classification.confidence if self.classification else None,
            "function_call": self.function_call.model_dump(mode="json") if self.function_call else None,
            "dispatched": self.dispatched,
            "outcome": self.dispatch.outcome.value if self.dispatch else None,
            "replies": list(self.replies),
            "error": self.error,
        }
