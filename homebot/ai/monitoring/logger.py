"""
AI Logger - Structured logging for the routing pipeline.

Every stage of a message's trip through the bot leaves one JSON event:
- ai_request / ai_response: each Model Gateway call
- intent_classified: the CHAT / COMMAND / WEBHOOK decision
- function_call: what the model asked to run
- dispatch: what was actually executed and how it ended
- ai_error: failures, with the stage they happened in

Log Format:
==========
Each entry is a regular log line whose message is "<Label>: <json>", so
the lines stay readable in a terminal and are still easy to grep/parse:

    [2025-01-01 10:00:00] INFO [homebot.ai] Intent Classified: {"event": ...}

Every event carries "event", "request_id" and an ISO "timestamp"; the
other keys depend on the event.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from homebot.ai.providers.base import AIResponse

logger = logging.getLogger("homebot.ai")
logger.setLevel(logging.INFO)

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(
        logging.Formatter("[%(asctime)s] %(levelname)s [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(_handler)


def _preview(text: str, limit: int) -> str:
    text = text or ""
    return text[:limit] + "..." if len(text) > limit else text


class AILogger:
    """
    Structured logger for AI operations.

    Usage:
        ai_logger.log_request(
            request_id="abc123",
            prompt="turn off the office lights",
            provider="ollama",
            model="mi-bot",
            purpose="intent",
        )
        ai_logger.log_response(request_id="abc123", response=ai_response)
    """

    def __init__(self, target: Optional[logging.Logger] = None):
        self._logger = target or logger

    def _emit(
        self,
        label: str,
        event: str,
        request_id: str,
        fields: Dict[str, Any],
        level: int = logging.INFO,
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"event": event, "request_id": request_id}
        entry.update({key: value for key, value in fields.items() if value is not None})
        entry["timestamp"] = datetime.now(timezone.utc).isoformat()
        self._logger.log(level, f"{label}: {json.dumps(entry, default=str)}")
        return entry

    def log_request(
        self,
        request_id: str,
        prompt: str,
        provider: str,
        model: str,
        purpose: Optional[str] = None,
        conversation_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log an outgoing model request.

        The prompt itself is never logged in full, only its length and a
        100 character preview.
        """
        self._emit("AI Request", "ai_request", request_id, {
            "provider": provider,
            "model": model,
            "purpose": purpose,
            "prompt_length": len(prompt or ""),
            "prompt_preview": _preview(prompt, 100),
            "conversation_id": conversation_id,
            "metadata": metadata or None,
        })

    def log_response(
        self,
        request_id: str,
        response: Optional[AIResponse] = None,
        metadata: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        latency_ms: float = 0.0,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        """
        Log a model response.

        Pass the AIResponse when there is one. A call that timed out has no
        response, so the gateway describes it with the keyword arguments.
        """
        if response is not None:
            fields = {
                "provider": getattr(response.provider, "value", response.provider),
                "model": response.model,
                "success": response.success,
                "latency_ms": round(response.latency_ms, 2),
                "tokens": {
                    "prompt": response.usage.prompt_tokens,
                    "completion": response.usage.completion_tokens,
                    "total": response.usage.total_tokens,
                },
                "tool_calls": [call.name for call in response.tool_calls],
                "response_length": len(response.content),
                "error": response.error,
            }
            success = response.success
        else:
            fields = {
                "provider": provider or "unknown",
                "model": model or "unknown",
                "success": success,
                "latency_ms": round(latency_ms, 2),
                "error": error,
            }
        fields["metadata"] = metadata or None
        self._emit("AI Response", "ai_response", request_id, fields, logging.INFO if success else logging.WARNING)

    def log_classification(
        self,
        request_id: str,
        original_text: str,
        bucket: str,
        confidence: float = 0.0,
        reason: Optional[str] = None,
        fallback: bool = False,
    ) -> None:
        """Log the bucket chosen for a message; fallback marks a forced CHAT."""
        self._emit("Intent Classified", "intent_classified", request_id, {
            "bucket": bucket,
            "confidence": round(confidence, 3),
            "reason": reason,
            "fallback": fallback,
            "original_text": _preview(original_text, 50),
        })

    def log_function_call(
        self,
        request_id: str,
        target: str,
        action_id: str,
        arguments: Any = None,
        executed: bool = True,
    ) -> None:
        self._emit("Function Call", "function_call", request_id, {
            "target": target,
            "action_id": action_id,
            "arguments": arguments,
            "executed": executed,
        })

    def log_dispatch(
        self,
        request_id: str,
        action_id: str,
        kind: str,
        success: bool,
        latency_ms: float = 0.0,
        error: Optional[str] = None,
    ) -> None:
        """
        Log the outcome of a dispatch.

        Args:
            request_id: Request identifier
            action_id: Executed action
            kind: local_command or remote_webhook
            success: Whether execution succeeded
            latency_ms: Execution time
            error: User-facing failure message, if any
        """
        self._emit("Dispatch", "dispatch", request_id, {
            "action_id": action_id,
            "kind": kind,
            "success": success,
            "latency_ms": round(latency_ms, 2),
            "error": error,
        }, logging.INFO if success else logging.WARNING)

    def log_error(
        self,
        request_id: str,
        error: str,
        stage: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a pipeline failure; stage is classifying, responding or dispatching."""
        self._emit("AI Error", "ai_error", request_id, {
            "error": error,
            "stage": stage,
            "metadata": metadata or None,
        }, logging.ERROR)


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
ai_logger = AILogger()
