"""
Parameter Extractor - Fill webhook parameters from the user's own words.

Models are unreliable about arguments: they forget one, invent values, or
answer "Office" when the webhook wants "office". The extractor recovers
what it can from the original message using each parameter's
ExtractionHints, in this order:

    1. Keywords   "apaga la luz de la oficina" → turn=off, area=office
    2. Pattern    'send a message "dinner is ready"' → message=dinner is ready
    3. Default    to=admin

Extraction is additive: parameters already present (key exists, value not
None) are never touched, so the model's own arguments are layered with
text extraction by passing them in as `existing`.
"""

import logging
from typing import Optional, Dict, Any, List

from homebot.ai.actions.registry import ActionRegistry, ParamSpec, action_registry

logger = logging.getLogger("homebot.ai.actions.extraction")

_SCALARS = (str, int, float, bool)


class ParameterExtractor:
    """
    Text-based parameter extraction driven by the registry's schemas.

    Usage:
        extractor = ParameterExtractor(registry)
        params = extractor.extract("turn off the office lights", "area_control")
        # {"area": "office", "turn": "off"}
    """

    def __init__(self, registry: Optional[ActionRegistry] = None):
        self.registry = registry or action_registry

    def extract(
        self,
        text: str,
        action_id: str,
        existing: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Fill in declared parameters that are not already present.

        Never raises. Unknown actions return a copy of `existing`.
        """
        params = dict(existing or {})
        definition = self.registry.find(action_id)
        if definition is None:
            return params

        text = text or ""
        lowered = text.lower()

        for name, param in definition.parameter_schema.items():
            if params.get(name) is not None:
                continue

            value = self._match_keywords(lowered, param)
            if value is None:
                value = self._match_pattern(text, param)
                if value is not None and param.allowed_values:
                    value = self._canonical_value(value, param)
            if value is None:
                value = param.default_value

            if value is not None:
                params[name] = value

        return params

    def normalize(self, action_id: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Canonicalize model-supplied values before extraction.

        - None and blank strings are dropped (treated as absent)
        - scalars become trimmed strings
        - "Office" → "office" when "office" is an allowed value
        - an exact keyword maps to its value ("apagar" → "off")
        - objects and lists pass through unchanged
        """
        definition = self.registry.find(action_id)
        normalized: Dict[str, Any] = {}

        for name, value in (params or {}).items():
            if value is None:
                continue
            param = definition.parameter_schema.get(name) if definition else None
            if param is None or not isinstance(value, _SCALARS):
                normalized[name] = value
                continue

            text = str(value).strip()
            if isinstance(value, bool):
                text = text.lower()
            if not text:
                continue
            normalized[name] = self._canonical_value(text, param)

        return normalized

    @staticmethod
    def _candidates(param: ParamSpec) -> List[str]:
        """Values in declared order: allowed values first, then other keyword keys."""
        candidates = list(param.allowed_values)
        candidates.extend(v for v in param.hints.keywords_by_value if v not in candidates)
        return candidates

    def _match_keywords(self, lowered_text: str, param: ParamSpec) -> Optional[str]:
        keywords_by_value = param.hints.keywords_by_value
        if not keywords_by_value:
            return None
        for value in self._candidates(param):
            rivals = [
                keyword.lower()
                for other, keywords in keywords_by_value.items() if other != value
                for keyword in keywords
            ]
            for keyword in keywords_by_value.get(value, ()):
                if keyword and self._occurs_alone(lowered_text, keyword.lower(), rivals):
                    return value
        return None

    @staticmethod
    def _occurs_alone(lowered_text: str, keyword: str, rivals: List[str]) -> bool:
        """
        True when keyword appears somewhere outside every longer rival keyword.

        "activ" (on) inside "desactiva" is part of "desactiv" (off) and does
        not count.
        """
        enclosing = [rival for rival in rivals if len(rival) > len(keyword) and keyword in rival]
        start = lowered_text.find(keyword)
        while start != -1:
            covered = False
            for rival in enclosing:
                offset = rival.find(keyword)
                while offset != -1 and not covered:
                    begin = start - offset
                    covered = begin >= 0 and lowered_text[begin:begin + len(rival)] == rival
                    offset = rival.find(keyword, offset + 1)
                if covered:
                    break
            if not covered:
                return True
            start = lowered_text.find(keyword, start + 1)
        return False

    @staticmethod
    def _match_pattern(text: str, param: ParamSpec) -> Optional[str]:
        regex = param.hints.regex
        if regex is None:
            return None
        match = regex.search(text)
        if not match:
            return None
        try:
            raw = match.group(param.hints.pattern_group)
        except IndexError:
            logger.warning(f"Pattern {param.hints.pattern!r} has no group {param.hints.pattern_group}")
            return None
        if raw is None:
            return None
        raw = raw.strip()
        return raw or None

    def _canonical_value(self, text: str, param: ParamSpec) -> str:
        lowered = text.lower()
        for allowed in param.allowed_values:
            if allowed.lower() == lowered:
                return allowed
        for value in self._candidates(param):
            for keyword in param.hints.keywords_by_value.get(value, ()):
                if keyword.lower() == lowered:
                    return value
        return text


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
parameter_extractor = ParameterExtractor()
