"""
Tests for the Dispatch Executor.

Covers:
- Webhook calls: URL, body, success message preference, failures
- Local commands: async and sync handlers, exceptions, reply collection
- Audit entries for both kinds
"""

import httpx
import pytest

from homebot.ai.actions.registry import ActionDefinition, ActionKind
from homebot.ai.monitoring.audit import AuditLog
from homebot.ai.monitoring.logger import AILogger
from homebot.ai.schemas.function_call import FunctionCall
from homebot.services.dispatch import GENERIC_SUCCESS, DispatchExecutor, DispatchOutcome, DispatchResult
from homebot.services.messaging import CollectingTransport, MessageContext


class TestDispatchResult:
    def test_factories(self):
        assert DispatchResult.success("ok").succeeded is True
        assert DispatchResult.failure("no").outcome == DispatchOutcome.FAILURE


class TestWebhookDispatch:
    """Remote webhook calls."""

    @pytest.mark.asyncio
    async def test_posts_parameters_to_alias_url(self, executor, home_assistant):
        call = FunctionCall.remote("area_control", {"area": "office", "turn": "off"})

        result = await executor.execute(call, {"area": "office", "turn": "off"})

        assert result.succeeded
        assert result.user_message == "✅ The office lights are now off."
        request = home_assistant.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://ha.test/api/webhook/area_control"
        assert home_assistant.bodies == [{"area": "office", "turn": "off"}]

    @pytest.mark.asyncio
    async def test_params_override_call_parameters(self, executor, home_assistant):
        call = FunctionCall.remote("scene", {"scene": "Movie"})

        await executor.execute(call, {"scene": "movie"})

        assert home_assistant.bodies == [{"scene": "movie"}]

    @pytest.mark.asyncio
    async def test_external_alias_is_used(self, executor, registry, home_assistant):
        registry.register(ActionDefinition(
            id="garage",
            kind=ActionKind.REMOTE_WEBHOOK,
            description="Open or close the garage",
            external_alias="-kXb2vQ9garage",
        ))

        result = await executor.execute(FunctionCall.remote("garage", {}))

        assert str(home_assistant.requests[0].url) == "http://ha.test/api/webhook/-kXb2vQ9garage"
        assert result.user_message == GENERIC_SUCCESS

    @pytest.mark.asyncio
    async def test_body_message_wins_over_confirmation(self, executor, home_assistant):
        home_assistant.respond = lambda request: httpx.Response(200, json={"message": "  Lights off in 3s  "})

        result = await executor.execute(FunctionCall.remote("area_control", {"area": "office", "turn": "off"}))

        assert result.user_message == "✅ Lights off in 3s"
        assert result.raw == {"message": "  Lights off in 3s  "}

    @pytest.mark.asyncio
    async def test_confirmation_with_missing_field(self, executor):
        """Optional parameters absent from the call render as placeholders."""
        result = await executor.execute(FunctionCall.remote("send_notification", {"message": "hi"}))

        assert result.user_message == "✅ Notification sent to {to}."

    @pytest.mark.asyncio
    async def test_non_2xx_is_a_failure(self, executor, home_assistant):
        home_assistant.respond = lambda request: httpx.Response(404, text="not found")

        result = await executor.execute(FunctionCall.remote("scene", {"scene": "sleep"}))

        assert result.outcome == DispatchOutcome.FAILURE
        assert result.user_message == "❌ I couldn't complete the action: Home Assistant answered HTTP 404"
        assert result.raw["status_code"] == 404

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self, executor, home_assistant):
        def slow(request):
            raise httpx.ReadTimeout("slow", request=request)

        home_assistant.respond = slow

        result = await executor.execute(FunctionCall.remote("scene", {"scene": "sleep"}))

        assert result.outcome == DispatchOutcome.FAILURE
        assert "timed out" in result.user_message

    @pytest.mark.asyncio
    async def test_connection_error_is_a_failure(self, executor, home_assistant):
        def refused(request):
            raise httpx.ConnectError("connection refused", request=request)

        home_assistant.respond = refused

        result = await executor.execute(FunctionCall.remote("scene", {"scene": "sleep"}))

        assert result.outcome == DispatchOutcome.FAILURE
        assert "Could not reach Home Assistant" in result.user_message

    @pytest.mark.asyncio
    async def test_unknown_webhook(self, executor, home_assistant):
        result = await executor.execute(FunctionCall.remote("garage_door", {}))

        assert result.outcome == DispatchOutcome.FAILURE
        assert home_assistant.requests == []

    @pytest.mark.asyncio
    async def test_command_id_is_not_a_webhook(self, executor, home_assistant):
        result = await executor.execute(FunctionCall.remote("!weather", {}))

        assert result.outcome == DispatchOutcome.FAILURE
        assert home_assistant.requests == []


class TestCommandDispatch:
    """Local command handlers."""

    @pytest.mark.asyncio
    async def test_async_handler_replies_through_context(self, executor, command_calls):
        transport = CollectingTransport()
        ctx = MessageContext(conversation_id="c1", text="weather Madrid", transport=transport)

        result = await executor.execute(FunctionCall.local("!weather", "Madrid"), context=ctx)

        assert result.succeeded
        assert command_calls == ["Madrid"]
        assert transport.messages("c1") == ["☀️ Madrid: 24°C"]
        assert result.raw == {"replies": ["☀️ Madrid: 24°C"]}
        assert result.user_message == "☀️ Madrid: 24°C"

    @pytest.mark.asyncio
    async def test_without_context_replies_are_collected(self, executor):
        result = await executor.execute(FunctionCall.local("!weather", "Lima"))

        assert result.succeeded
        assert result.raw == {"replies": ["☀️ Lima: 24°C"]}

    @pytest.mark.asyncio
    async def test_sync_handler(self, executor, registry):
        seen = []
        registry.register(ActionDefinition(
            id="!ping",
            kind=ActionKind.LOCAL_COMMAND,
            description="Ping",
            handler=lambda ctx, args: seen.append(args),
        ))

        result = await executor.execute(FunctionCall.local("!ping", "x"))

        assert result.succeeded
        assert seen == ["x"]
        assert result.user_message == "✅ !ping done"

    @pytest.mark.asyncio
    async def test_handler_exception_is_a_failure(self, executor):
        result = await executor.execute(FunctionCall.local("!broken"))

        assert result.outcome == DispatchOutcome.FAILURE
        assert result.user_message == "❌ The command !broken failed: sensor offline"
        assert result.raw == {"error": "sensor offline"}

    @pytest.mark.asyncio
    async def test_unknown_command(self, executor):
        result = await executor.execute(FunctionCall.local("!teleport", "Mars"))

        assert result.outcome == DispatchOutcome.FAILURE
        assert "!teleport" in result.user_message

    @pytest.mark.asyncio
    async def test_webhook_id_is_not_a_command(self, executor, home_assistant):
        result = await executor.execute(FunctionCall.local("scene", "movie"))

        assert result.outcome == DispatchOutcome.FAILURE
        assert home_assistant.requests == []


class TestAudit:
    """Every dispatch leaves one audit line."""

    @pytest.mark.asyncio
    async def test_webhook_entry(self, executor, audit_entries):
        await executor.execute(
            FunctionCall.remote("area_control", {"area": "office", "turn": "off"}),
            origin_text="turn off the office lights",
        )

        (entry,) = audit_entries()
        assert entry["type"] == "webhook"
        assert entry["timestamp"]
        assert entry["data"]["webhook"] == "area_control"
        assert entry["data"]["external_id"] == "area_control"
        assert entry["data"]["data"] == {"area": "office", "turn": "off"}
        assert entry["data"]["user_message"] == "turn off the office lights"
        assert entry["data"]["outcome"] == "success"

    @pytest.mark.asyncio
    async def test_command_entry(self, executor, audit_entries):
        await executor.execute(FunctionCall.local("!broken", "now"), origin_text="!broken now")

        (entry,) = audit_entries()
        assert entry["type"] == "command"
        assert entry["data"]["command"] == "!broken"
        assert entry["data"]["args"] == "now"
        assert entry["data"]["outcome"] == "failure"

    @pytest.mark.asyncio
    async def test_entries_accumulate(self, executor, audit_entries):
        await executor.execute(FunctionCall.remote("scene", {"scene": "movie"}))
        await executor.execute(FunctionCall.local("!weather", "Madrid"))

        assert [e["type"] for e in audit_entries()] == ["webhook", "command"]

    @pytest.mark.asyncio
    async def test_unwritable_audit_does_not_fail_dispatch(self, registry, webhook_client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        executor = DispatchExecutor(
            registry=registry,
            client=webhook_client,
            audit=AuditLog(path=str(blocker / "functions.log")),
            monitor_logger=AILogger(),
        )

        result = await executor.execute(FunctionCall.remote("scene", {"scene": "movie"}))

        assert result.succeeded
