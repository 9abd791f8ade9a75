"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- In-memory action registry with the built-in webhooks and test commands
- Scripted fake model providers (freeform-text and structured-tool)
- Recording chat transport
- Webhook client backed by httpx.MockTransport
- Audit log in a temporary directory

No test touches the network, a real model or the real audit file.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from homebot.ai.actions.registry import ActionDefinition, ActionKind, ActionRegistry
from homebot.ai.gateway.model_gateway import ModelGateway
from homebot.ai.monitoring.audit import AuditLog
from homebot.ai.monitoring.logger import AILogger
from homebot.ai.monitoring.metrics import AIMetrics
from homebot.ai.providers.base import AIProvider, AIResponse, ProviderType, ToolInvocation
from homebot.ai.router.orchestrator import IntentRouter
from homebot.ai.router.schemas import ModelBinding, RouterConfig
from homebot.core.config import Settings
from homebot.services.dispatch import DispatchExecutor
from homebot.services.messaging import CollectingTransport, MessageContext
from homebot.services.webhook_client import WebhookClient
from homebot.webhooks import area_control, device_control, scene, send_notification, sensor_report

HA_URL = "http://ha.test/api"


# ---------------------------------------------------------------------------
# FAKE MODEL PROVIDER
# ---------------------------------------------------------------------------

class ScriptedProvider(AIProvider):
    """
    Provider that answers from queues instead of a model.

    - replies: consumed by generate() (chat and function passes)
    - json_replies: consumed by generate_json() (classification)

    Items are strings (successful text), AIResponse objects (anything
    else), exceptions (raised from the call), or the SLOW sentinel (never
    answers within the timeout).
    """

    SLOW = object()

    def __init__(self, provider_type: ProviderType = ProviderType.OLLAMA, supports_tools: bool = False):
        self.provider_type = provider_type
        self.supports_tools = supports_tools
        self.model = "fake-model"
        self.replies: List[Any] = []
        self.json_replies: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        prompt,
        system_prompt=None,
        temperature=0.7,
        max_tokens=1024,
        model=None,
        tools=None,
        timeout=None,
        **kwargs
    ) -> AIResponse:
        self.calls.append({
            "method": "generate",
            "prompt": prompt,
            "system_prompt": system_prompt,
            "model": model,
            "tools": tools,
        })
        return await self._next(self.replies, model)

    async def generate_json(self, prompt, system_prompt=None, model=None, timeout=None, **kwargs) -> AIResponse:
        self.calls.append({
            "method": "generate_json",
            "prompt": prompt,
            "system_prompt": system_prompt,
            "model": model,
        })
        return await self._next(self.json_replies, model)

    async def _next(self, queue: List[Any], model: Optional[str]) -> AIResponse:
        item = queue.pop(0) if queue else ""
        if item is self.SLOW:
            await asyncio.sleep(5)
            item = ""
        if isinstance(item, Exception):
            raise item
        if isinstance(item, AIResponse):
            return item
        return AIResponse(content=item, provider=self.provider_type, model=model or self.model)

    # Helpers for building scripted answers

    def tool_reply(self, name: str, arguments: Any, text: str = "") -> AIResponse:
        return AIResponse(
            content=text,
            provider=self.provider_type,
            model=self.model,
            tool_calls=[ToolInvocation(name=name, arguments=arguments, call_id="call_1")],
        )

    def failure(self, error: str = "connection refused") -> AIResponse:
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=self.model,
            success=False,
            error=error,
        )

    @property
    def methods(self) -> List[str]:
        return [call["method"] for call in self.calls]


def classification(bucket: str, confidence: float = 0.9, reason: str = "test") -> str:
    return json.dumps({"bucket": bucket, "confidence": confidence, "reason": reason})


@pytest.fixture
def classify_as():
    """classify_as("WEBHOOK", 0.9) -> classifier JSON reply."""
    return classification


# ---------------------------------------------------------------------------
# REGISTRY
# ---------------------------------------------------------------------------

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        HOMEASSISTANT_URL=HA_URL,
        HOMEASSISTANT_TOKEN="",
        WEBHOOK_ID_OVERRIDES={},
    )


@pytest.fixture
def command_calls() -> List[str]:
    """Argument strings received by the !weather test command."""
    return []


@pytest.fixture
def registry(test_settings, command_calls) -> ActionRegistry:
    """Registry with the five built-in webhooks and two test commands."""
    registry = ActionRegistry(settings=test_settings)

    for module in (area_control, device_control, scene, send_notification, sensor_report):
        module.register(registry)

    async def weather(ctx: MessageContext, args_text: str) -> None:
        command_calls.append(args_text)
        await ctx.reply(f"☀️ {args_text}: 24°C")

    def broken(ctx: MessageContext, args_text: str) -> None:
        raise RuntimeError("sensor offline")

    registry.register(ActionDefinition(
        id="!weather",
        kind=ActionKind.LOCAL_COMMAND,
        description="Weather for a city",
        examples=("!weather Madrid",),
        handler=weather,
    ))
    registry.register(ActionDefinition(
        id="!broken",
        kind=ActionKind.LOCAL_COMMAND,
        description="Always fails",
        handler=broken,
    ))
    return registry


# ---------------------------------------------------------------------------
# TRANSPORT, AUDIT, WEBHOOKS
# ---------------------------------------------------------------------------

@pytest.fixture
def transport() -> CollectingTransport:
    return CollectingTransport()


@pytest.fixture
def audit(tmp_path) -> AuditLog:
    return AuditLog(path=str(tmp_path / "logs" / "functions.log"))


def read_audit(audit: AuditLog) -> List[Dict[str, Any]]:
    if not audit.path.exists():
        return []
    return [json.loads(line) for line in audit.path.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def audit_entries(audit):
    """Call to read the audit log written so far."""
    return lambda: read_audit(audit)


class HomeAssistantStub:
    """Records webhook requests and answers with a configurable response."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content or b"{}") for request in self.requests]


@pytest.fixture
def home_assistant() -> HomeAssistantStub:
    return HomeAssistantStub()


@pytest.fixture
def webhook_client(home_assistant) -> WebhookClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(home_assistant.handler))
    return WebhookClient(base_url=HA_URL, secret="", timeout=2, client=client)


@pytest.fixture
def executor(registry, webhook_client, audit) -> DispatchExecutor:
    return DispatchExecutor(registry=registry, client=webhook_client, audit=audit, monitor_logger=AILogger())


# ---------------------------------------------------------------------------
# MODELS AND ROUTER
# ---------------------------------------------------------------------------

@pytest.fixture
def freeform_provider() -> ScriptedProvider:
    return ScriptedProvider(ProviderType.OLLAMA, supports_tools=False)


@pytest.fixture
def tool_provider() -> ScriptedProvider:
    return ScriptedProvider(ProviderType.OPENAI, supports_tools=True)


@pytest.fixture
def metrics() -> AIMetrics:
    return AIMetrics()


@pytest.fixture
def gateway(freeform_provider, tool_provider, metrics) -> ModelGateway:
    return ModelGateway(
        providers={"ollama": freeform_provider, "openai": tool_provider},
        metrics=metrics,
        default_timeout=2,
    )


def router_config(provider: str = "ollama", enable_function_calls: bool = True, intent_timeout: float = 2) -> RouterConfig:
    return RouterConfig(
        intent=ModelBinding(provider=provider, model="intent-model", timeout=intent_timeout),
        chat=ModelBinding(provider=provider, model="chat-model", timeout=2),
        function=ModelBinding(provider=provider, model="function-model", timeout=2),
        enable_function_calls=enable_function_calls,
        min_confidence=0.3,
    )


@pytest.fixture
def make_router(gateway, registry, executor, transport):
    """Factory: make_router(provider="ollama", enable_function_calls=True, intent_timeout=2)."""

    def factory(**kwargs) -> IntentRouter:
        return IntentRouter(
            gateway=gateway,
            registry=registry,
            executor=executor,
            transport=transport,
            config=router_config(**kwargs),
        )

    return factory
