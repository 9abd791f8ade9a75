"""
Dependencies module - wiring shared by the HTTP routes.

The registry, gateway and executor are process-wide; an IntentRouter is
cheap, so each HTTP request gets its own one bound to a collecting
transport whose messages are returned in the response.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from homebot.ai.actions.loader import load_actions
from homebot.ai.actions.registry import ActionRegistry, action_registry
from homebot.ai.gateway.model_gateway import ModelGateway
from homebot.ai.router.orchestrator import IntentRouter
from homebot.ai.router.schemas import RouterConfig
from homebot.core.config import settings
from homebot.services.dispatch import DispatchExecutor
from homebot.services.message_handler import MessageHandler
from homebot.services.messaging import ChatTransport


def get_registry() -> ActionRegistry:
    return action_registry


@lru_cache()
def get_gateway() -> ModelGateway:
    return ModelGateway()


@lru_cache()
def get_executor() -> DispatchExecutor:
    return DispatchExecutor(registry=action_registry)


@lru_cache()
def get_router_config() -> RouterConfig:
    return RouterConfig.from_settings(settings)


def build_router(transport: ChatTransport) -> IntentRouter:
    """A router for one conversation surface (HTTP request, chat client)."""
    return IntentRouter(
        gateway=get_gateway(),
        registry=get_registry(),
        executor=get_executor(),
        transport=transport,
        config=get_router_config(),
    )


def build_message_handler(transport: ChatTransport) -> MessageHandler:
    """Explicit commands run directly; everything else goes through build_router()."""
    return MessageHandler(
        router=build_router(transport),
        registry=get_registry(),
        executor=get_executor(),
        transport=transport,
        command_prefix=get_router_config().command_prefix,
    )


def bootstrap_actions() -> int:
    """Fill the registry once; returns the number of registered actions."""
    if len(action_registry) == 0:
        load_actions(action_registry)
    return len(action_registry)


def verify_webhook_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """
    Guard for inbound webhook endpoints.

    Only enforced when REQUIRE_WEBHOOK_AUTH is set.

    Raises:
        401 Unauthorized: missing or wrong X-API-Key header
    """
    if not settings.REQUIRE_WEBHOOK_AUTH:
        return
    if not settings.WEBHOOK_API_KEY or x_api_key != settings.WEBHOOK_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
