"""
Dispatch Executor - Runs a resolved, validated function call exactly once.

    FunctionCall(local_command, "!weather", "Madrid")
        → handler(ctx, "Madrid")                 (sync or async)

    FunctionCall(remote_webhook, "area_control") + {"area": "office", "turn": "off"}
        → POST {HOMEASSISTANT_URL}/webhook/<external alias>

Whatever happens, the caller gets a DispatchResult (never an exception)
and the audit log gets one line.

User message for a successful webhook, in order of preference:
1. the "message" field of the webhook's JSON answer
2. the action's confirmation template, formatted with the parameters
3. a generic confirmation
"""

import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry, action_registry
from homebot.ai.monitoring.audit import AuditLog, audit_log
from homebot.ai.monitoring.logger import AILogger, ai_logger
from homebot.ai.schemas.function_call import FunctionCall
from homebot.services.messaging import CollectingTransport, MessageContext
from homebot.services.webhook_client import WebhookCallError, WebhookClient, webhook_client

logger = logging.getLogger("homebot.services.dispatch")

GENERIC_SUCCESS = "✅ Action completed successfully"


class DispatchOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class DispatchResult:
    """
    Outcome of executing a FunctionCall.

    Attributes:
        outcome: SUCCESS or FAILURE
        user_message: Human-readable summary for the chat
        raw: Action-specific payload (webhook body, command replies)
    """
    outcome: DispatchOutcome
    user_message: str
    raw: Optional[Any] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == DispatchOutcome.SUCCESS

    @classmethod
    def success(cls, user_message: str, raw: Any = None) -> "DispatchResult":
        return cls(DispatchOutcome.SUCCESS, user_message, raw)

    @classmethod
    def failure(cls, user_message: str, raw: Any = None) -> "DispatchResult":
        return cls(DispatchOutcome.FAILURE, user_message, raw)


class _Defaults(dict):
    """format_map helper: unknown template fields render as-is."""

    def __missing__(self, key):
        return "{" + key + "}"


class DispatchExecutor:
    """
    Executes function calls against local handlers and remote webhooks.

    Usage:
        executor = DispatchExecutor(registry, webhook_client, audit_log)
        result = await executor.execute(call, params, context=ctx, origin_text=text)
    """

    def __init__(
        self,
        registry: Optional[ActionRegistry] = None,
        client: Optional[WebhookClient] = None,
        audit: Optional[AuditLog] = None,
        monitor_logger: Optional[AILogger] = None,
    ):
        self.registry = registry or action_registry
        self.client = client or webhook_client
        self.audit = audit or audit_log
        self.ai_logger = monitor_logger or ai_logger

    async def execute(
        self,
        call: FunctionCall,
        params: Optional[Dict[str, Any]] = None,
        context: Optional[MessageContext] = None,
        origin_text: str = "",
        request_id: Optional[str] = None,
    ) -> DispatchResult:
        """
        Run the call. Never raises.

        Args:
            call: Resolved function call
            params: Validated parameters (webhooks); defaults to call.parameters
            context: Reply channel for command handlers; replies are collected
                into DispatchResult.raw when omitted
            origin_text: The user message that led here (audit)
            request_id: Correlation id for logs
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        start_time = time.time()

        if call.is_local:
            result = await self._run_command(call, context, origin_text)
        else:
            result = await self._call_webhook(call, params if params is not None else call.parameters)

        latency_ms = (time.time() - start_time) * 1000
        self.ai_logger.log_dispatch(
            request_id=request_id,
            action_id=call.action_id,
            kind=call.target.value,
            success=result.succeeded,
            latency_ms=latency_ms,
            error=None if result.succeeded else result.user_message,
        )
        self._audit(call, params, origin_text, result)
        return result

    # -----------------------------------------------------------------------
    # LOCAL COMMANDS
    # -----------------------------------------------------------------------

    async def _run_command(
        self,
        call: FunctionCall,
        context: Optional[MessageContext],
        origin_text: str,
    ) -> DispatchResult:
        definition = self._resolve(call.action_id, ActionKind.LOCAL_COMMAND)
        if definition is None or definition.handler is None:
            return DispatchResult.failure(f"❌ I couldn't find the command \"{call.action_id}\".")

        if context is None:
            context = MessageContext(
                conversation_id="",
                text=origin_text,
                transport=CollectingTransport(),
                registry=self.registry,
            )
        replies_before = len(context.replies)

        try:
            outcome = definition.handler(context, call.args_text or "")
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Command {definition.id} failed: {e}", exc_info=True)
            return DispatchResult.failure(
                f"❌ The command {definition.id} failed: {e}",
                raw={"error": str(e)},
            )

        replies = context.replies[replies_before:]
        return DispatchResult.success(
            "\n".join(replies) or f"✅ {definition.id} done",
            raw={"replies": replies},
        )

    # -----------------------------------------------------------------------
    # REMOTE WEBHOOKS
    # -----------------------------------------------------------------------

    async def _call_webhook(self, call: FunctionCall, params: Dict[str, Any]) -> DispatchResult:
        definition = self._resolve(call.action_id, ActionKind.REMOTE_WEBHOOK)
        if definition is None:
            return DispatchResult.failure(
                f"❌ I couldn't find the webhook \"{call.action_id}\". Please check the name."
            )

        try:
            body = await self.client.trigger(definition.alias, params)
        except WebhookCallError as e:
            return DispatchResult.failure(
                f"❌ I couldn't complete the action: {e}",
                raw={"error": str(e), "status_code": e.status_code},
            )

        return DispatchResult.success(self._success_message(definition, params, body), raw=body)

    @staticmethod
    def _success_message(definition: ActionDefinition, params: Dict[str, Any], body: Dict[str, Any]) -> str:
        message = body.get("message") if isinstance(body, dict) else None
        if isinstance(message, str) and message.strip():
            return f"✅ {message.strip()}"
        if definition.confirmation:
            return "✅ " + definition.confirmation.format_map(_Defaults(params))
        return GENERIC_SUCCESS

    # -----------------------------------------------------------------------
    # HELPERS
    # -----------------------------------------------------------------------

    def _resolve(self, action_id: str, kind: ActionKind) -> Optional[ActionDefinition]:
        definition = self.registry.find(action_id)
        if definition is None or definition.kind != kind:
            return None
        return definition

    def _audit(
        self,
        call: FunctionCall,
        params: Optional[Dict[str, Any]],
        origin_text: str,
        result: DispatchResult,
    ) -> None:
        if call.is_local:
            entry_type = "command"
            data: Dict[str, Any] = {"command": call.action_id, "args": call.args_text}
        else:
            definition = self.registry.find(call.action_id)
            entry_type = "webhook"
            data = {
                "webhook": definition.id if definition else call.action_id,
                "external_id": definition.alias if definition else None,
                "data": params if params is not None else call.parameters,
            }
        data.update({
            "user_message": origin_text,
            "outcome": result.outcome.value,
            "message": result.user_message,
        })
        self.audit.record(entry_type, data)
