"""
AI Actions Module - Action catalog, parameter extraction and validation.

This module provides:
- ActionRegistry / ActionDefinition / ParamSpec: the catalog and its schemas
- ParameterExtractor: fills parameters from free text
- ParameterValidator: completeness and allowed-value checks
- load_actions: registry bootstrap from self-registering modules
"""

from homebot.ai.actions.registry import (
    action_registry,
    ActionRegistry,
    ActionDefinition,
    ActionKind,
    DuplicateActionError,
    EXECUTE_COMMAND_TOOL,
    ExtractionHints,
    ParamSpec,
)
from homebot.ai.actions.extraction import ParameterExtractor, parameter_extractor
from homebot.ai.actions.validation import (
    InvalidParameter,
    MissingParameter,
    ParameterValidator,
    ValidationReport,
    format_validation_error,
    parameter_validator,
)
from homebot.ai.actions.loader import load_actions

__all__ = [
    "action_registry",
    "ActionRegistry",
    "ActionDefinition",
    "ActionKind",
    "DuplicateActionError",
    "EXECUTE_COMMAND_TOOL",
    "ExtractionHints",
    "ParamSpec",
    "ParameterExtractor",
    "parameter_extractor",
    "InvalidParameter",
    "MissingParameter",
    "ParameterValidator",
    "ValidationReport",
    "format_validation_error",
    "parameter_validator",
    "load_actions",
]
