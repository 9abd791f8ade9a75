"""
AI Router Module - The Orchestrator.

This module contains the Intent Router: it classifies each chat message and
either replies conversationally or dispatches exactly one action.
"""

from homebot.ai.router.orchestrator import IntentRouter
from homebot.ai.router.schemas import (
    IntentBucket,
    IntentClassification,
    ModelBinding,
    RouteResult,
    RouterConfig,
    RouterState,
)

__all__ = [
    "IntentRouter",
    "IntentBucket",
    "IntentClassification",
    "ModelBinding",
    "RouteResult",
    "RouterConfig",
    "RouterState",
]
