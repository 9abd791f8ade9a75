"""
Configuration module - centralized settings for the entire bot.
Uses pydantic-settings to load values from environment variables and .env file.
"""

import os
from typing import Dict, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Bot settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    Model selection is split by purpose (intent, chat, function). Each
    purpose can name its own provider/model pair; anything left empty falls
    back to the DEFAULT_PROVIDER / DEFAULT_MODEL pair (a purpose with only
    its own provider uses that provider's default model):
        export INTENT_PROVIDER=ollama
        export INTENT_MODEL=qwen2.5:1.5b
        export FUNCTION_PROVIDER=openai
        export FUNCTION_MODEL=gpt-4o-mini
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    APP_NAME: str = "Homebot"
    DEBUG: bool = False

    # COMMAND_PREFIX: Messages starting with this character are treated as
    # explicit commands and never reach the language model
    COMMAND_PREFIX: str = "!"

    # ---------------------------------------------------------------------------
    # MODEL SELECTION (per purpose)
    # ---------------------------------------------------------------------------
    # Supported providers: "ollama" (local, freeform text), "openai" and
    # "anthropic" (hosted, native tool calling)
    DEFAULT_PROVIDER: str = "ollama"

    # DEFAULT_MODEL: empty means "use the provider's own default model"
    DEFAULT_MODEL: str = ""

    # INTENT_*: lightweight classification pass (CHAT / COMMAND / WEBHOOK)
    INTENT_PROVIDER: str = ""
    INTENT_MODEL: str = ""

    # CHAT_*: conversational replies
    CHAT_PROVIDER: str = ""
    CHAT_MODEL: str = ""

    # FUNCTION_*: function-call generation for commands and webhooks
    FUNCTION_PROVIDER: str = ""
    FUNCTION_MODEL: str = ""

    # Below this confidence the classification is treated as ambiguous → CHAT
    INTENT_MIN_CONFIDENCE: float = 0.3

    # ---------------------------------------------------------------------------
    # PROVIDER CREDENTIALS AND ENDPOINTS
    # ---------------------------------------------------------------------------
    OLLAMA_API_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "mi-bot"

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"

    # Request timeouts in seconds
    GENERATION_TIMEOUT: float = 120.0
    INTENT_TIMEOUT: float = 10.0

    # ---------------------------------------------------------------------------
    # FUNCTION EXECUTION
    # ---------------------------------------------------------------------------
    # ENABLE_FUNCTION_CALLS: when false the bot still answers, but never
    # executes the commands or webhooks the model asks for
    ENABLE_FUNCTION_CALLS: bool = True

    # AUDIT_LOG_PATH: append-only JSON lines log of every dispatch
    AUDIT_LOG_PATH: str = "logs/chatbot_functions.log"

    # ---------------------------------------------------------------------------
    # HOME ASSISTANT (outbound webhooks)
    # ---------------------------------------------------------------------------
    # Webhooks are posted to {HOMEASSISTANT_URL}/webhook/{external_id}
    HOMEASSISTANT_URL: str = "http://localhost:8123/api"

    # Optional shared secret sent as HOMEASSISTANT_SECRET_HEADER
    HOMEASSISTANT_TOKEN: str = ""
    HOMEASSISTANT_SECRET_HEADER: str = "X-Webhook-Secret"
    WEBHOOK_TIMEOUT: float = 10.0

    # Per-action external ID overrides, as JSON:
    #   WEBHOOK_ID_OVERRIDES='{"area_control": "-kXb2vQ9area"}'
    # <ACTION_ID>_WEBHOOK_ID environment variables are honored as well
    WEBHOOK_ID_OVERRIDES: Dict[str, str] = {}

    # ---------------------------------------------------------------------------
    # INBOUND WEBHOOK API
    # ---------------------------------------------------------------------------
    WEBHOOK_API_KEY: str = ""
    REQUIRE_WEBHOOK_AUTH: bool = False

    def model_for(self, purpose: str) -> Tuple[str, str]:
        """
        Resolve the (provider, model) pair configured for a purpose.

        DEFAULT_MODEL belongs to DEFAULT_PROVIDER: a purpose that overrides
        only the provider gets that provider's own default model (""), never
        the default provider's model.

        Args:
            purpose: "intent", "chat" or "function"

        Returns:
            (provider, model); model may be "" to use the provider default
        """
        prefix = purpose.upper()
        default_provider = self.DEFAULT_PROVIDER.lower().strip()
        provider = (getattr(self, f"{prefix}_PROVIDER", "") or default_provider).lower().strip()
        model = (getattr(self, f"{prefix}_MODEL", "") or "").strip()
        if not model and provider == default_provider:
            model = self.DEFAULT_MODEL.strip()
        return provider, model

    def external_id_override(self, action_id: str) -> Optional[str]:
        """Look up a configured external webhook ID for an action, if any."""
        if action_id in self.WEBHOOK_ID_OVERRIDES:
            return self.WEBHOOK_ID_OVERRIDES[action_id]
        return os.environ.get(f"{action_id.upper()}_WEBHOOK_ID") or None


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from homebot.core.config import settings
settings = Settings()
