"""
Gateway Module - Backend-agnostic generation and function-call parsing.

- ModelGateway: generate() over every provider, raises ModelUnavailableError
- MarkerParser: textual function calls for freeform-text backends
"""

from homebot.ai.gateway.marker_parser import (
    MarkerParseError,
    MarkerParser,
    ParseResult,
    marker_parser,
)
from homebot.ai.gateway.model_gateway import ModelGateway

__all__ = [
    "MarkerParseError",
    "MarkerParser",
    "ParseResult",
    "marker_parser",
    "ModelGateway",
]
