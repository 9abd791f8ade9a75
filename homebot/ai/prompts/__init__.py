"""
Prompts Module - Centralized prompt templates for AI interactions.

- router_prompts: intent classification (CHAT / COMMAND / WEBHOOK)
- assistant_prompts: conversational replies
- execution_prompts: function-call generation, tools or markers
"""

from homebot.ai.prompts.router_prompts import (
    INTENT_SYSTEM_PROMPT,
    INTENT_ANALYSIS_PROMPT,
    build_intent_prompt,
    build_intent_request,
)
from homebot.ai.prompts.assistant_prompts import CHAT_SYSTEM_PROMPT, build_chat_prompt
from homebot.ai.prompts.execution_prompts import (
    EXECUTION_SYSTEM_PROMPT,
    MARKER_INSTRUCTIONS,
    TOOL_CALLING_INSTRUCTIONS,
    build_function_prompt,
)

__all__ = [
    "INTENT_SYSTEM_PROMPT",
    "INTENT_ANALYSIS_PROMPT",
    "build_intent_prompt",
    "build_intent_request",
    "CHAT_SYSTEM_PROMPT",
    "build_chat_prompt",
    "EXECUTION_SYSTEM_PROMPT",
    "MARKER_INSTRUCTIONS",
    "TOOL_CALLING_INSTRUCTIONS",
    "build_function_prompt",
]
