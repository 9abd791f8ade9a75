"""
AI Schemas Module - Shared structured types for the AI layer.

- FunctionCall: normalized function call from any backend
- FunctionDefinition: tool advertised to structured-tool backends
- GenerationOptions / GatewayResult: Model Gateway input and output
"""

from homebot.ai.schemas.function_call import (
    CallTarget,
    FunctionCall,
    FunctionDefinition,
    GenerationOptions,
    GatewayResult,
)

__all__ = [
    "CallTarget",
    "FunctionCall",
    "FunctionDefinition",
    "GenerationOptions",
    "GatewayResult",
]
