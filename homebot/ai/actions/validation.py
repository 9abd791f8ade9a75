"""
Parameter Validator - Completeness and allowed-value checks.

Pure and total: no I/O, never raises. An unknown action is trivially
valid because the router resolves actions through the registry first.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from homebot.ai.actions.registry import ActionRegistry, action_registry


@dataclass
class MissingParameter:
    name: str
    allowed_values: Tuple[str, ...] = ()


@dataclass
class InvalidParameter:
    name: str
    supplied_value: Any
    allowed_values: Tuple[str, ...] = ()


@dataclass
class ValidationReport:
    """Outcome of checking a parameter set against an action's schema."""
    missing: List[MissingParameter] = field(default_factory=list)
    invalid: List[InvalidParameter] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.missing and not self.invalid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "missing": [
                {"name": m.name, "allowed_values": list(m.allowed_values)} for m in self.missing
            ],
            "invalid": [
                {"name": i.name, "value": i.supplied_value, "allowed_values": list(i.allowed_values)}
                for i in self.invalid
            ],
        }


class ParameterValidator:
    """Validates parameter sets against registered schemas."""

    def __init__(self, registry: Optional[ActionRegistry] = None):
        self.registry = registry or action_registry

    def validate(self, action_id: str, params: Optional[Dict[str, Any]]) -> ValidationReport:
        """
        Check every declared parameter.

        - required and absent (or None) → missing
        - present and not in a non-empty allowed_values → invalid, required or not
        """
        report = ValidationReport()
        definition = self.registry.find(action_id)
        if definition is None:
            return report

        params = params or {}
        for name, param in definition.parameter_schema.items():
            value = params.get(name)
            if value is None:
                if param.required:
                    report.missing.append(MissingParameter(name, param.allowed_values))
                continue

            if param.allowed_values and not _is_allowed(value, param.allowed_values):
                report.invalid.append(InvalidParameter(name, value, param.allowed_values))

        return report


def _is_allowed(value: Any, allowed_values: Tuple[str, ...]) -> bool:
    try:
        return value in allowed_values
    except TypeError:
        return False


def format_validation_error(action_id: str, report: ValidationReport) -> str:
    """
    Itemized user message for a failed validation.

    Example:
        ❌ Could not validate the parameters for area_control:

        Missing parameters:
        - area: must be one of [office, room]

        Please try again with the correct parameters.
    """
    lines = [f"❌ Could not validate the parameters for {action_id}:", ""]

    if report.missing:
        lines.append("Missing parameters:")
        for param in report.missing:
            if param.allowed_values:
                lines.append(f"- {param.name}: must be one of [{', '.join(param.allowed_values)}]")
            else:
                lines.append(f"- {param.name}")
        lines.append("")

    if report.invalid:
        lines.append("Invalid parameters:")
        for param in report.invalid:
            lines.append(
                f"- {param.name}: '{param.supplied_value}' is not valid. "
                f"Allowed values: [{', '.join(param.allowed_values)}]"
            )
        lines.append("")

    lines.append("Please try again with the correct parameters.")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
parameter_validator = ParameterValidator()
