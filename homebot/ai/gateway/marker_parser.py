"""
Marker Parser - Textual function calls from freeform-text backends.

Local models have no native tool calling, so the function prompt asks them
to write the call inline:

    I'll check the weather for you. __execute_command("!weather", "Madrid")
    Turning off the office lights. __execute_webhook("area_control", {"area": "office", "turn": "off"})

Grammar:
========
    marker   := "__execute_command" "(" string [ "," string ] ")"
              | "__execute_webhook" "(" string [ "," object ] ")"
    string   := '"' chars '"' | "'" chars "'"      (backslash escapes allowed)
    object   := "{" ... "}"                        (balanced, quotes respected)

Precedence:
===========
The text is scanned left to right. The first syntactically complete
marker decides the call; every later marker is removed from the visible
text and ignored. If that first marker's object payload cannot be decoded
(strict JSON, then a lenient pass that fixes single quotes and bare keys)
no call is produced at all. A marker that never closes is not a marker:
it stays in the text untouched.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from homebot.ai.schemas.function_call import FunctionCall

logger = logging.getLogger("homebot.ai.gateway.markers")

COMMAND_MARKER = "__execute_command"
WEBHOOK_MARKER = "__execute_webhook"

_MARKER_START = re.compile(r"__execute_(command|webhook)\s*\(")
_BARE_KEY = re.compile(r'([{,]\s*)([A-Za-z_][\w\-]*)\s*:')
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class MarkerParseError(ValueError):
    """A marker is syntactically incomplete or its payload cannot be decoded."""


@dataclass
class ParseResult:
    """
    Outcome of scanning one model reply.

    Attributes:
        text: Reply with every complete marker removed and whitespace tidied
        function_call: Call from the first complete marker, if it decoded
        markers_found: Number of complete markers in the reply
        error: Why the first marker produced no call, if it didn't
    """
    text: str
    function_call: Optional[FunctionCall] = None
    markers_found: int = 0
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# LOW-LEVEL SCANNING
# ---------------------------------------------------------------------------

def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _read_string(text: str, pos: int) -> Tuple[str, int]:
    """Read a quoted string starting at pos; returns (value, index after closing quote)."""
    if pos >= len(text) or text[pos] not in "\"'":
        raise MarkerParseError(f"expected a quoted string at offset {pos}")
    quote = text[pos]
    chars: List[str] = []
    pos += 1
    while pos < len(text):
        char = text[pos]
        if char == "\\" and pos + 1 < len(text):
            escaped = text[pos + 1]
            chars.append(_ESCAPES.get(escaped, escaped))
            pos += 2
            continue
        if char == quote:
            return "".join(chars), pos + 1
        chars.append(char)
        pos += 1
    raise MarkerParseError("unterminated string")


def _read_object(text: str, pos: int) -> Tuple[str, int]:
    """Read a balanced {...} block; returns (raw text, index after closing brace)."""
    if pos >= len(text) or text[pos] != "{":
        raise MarkerParseError(f"expected an object at offset {pos}")
    start = pos
    depth = 0
    quote: Optional[str] = None
    while pos < len(text):
        char = text[pos]
        if quote:
            if char == "\\":
                pos += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:pos + 1], pos + 1
        pos += 1
    raise MarkerParseError("unbalanced object")


def decode_payload(raw: str) -> Dict[str, Any]:
    """
    Decode a webhook payload object.

    Strict JSON first; then single quotes become double quotes and bare
    keys get quoted. Raises MarkerParseError if neither yields an object.
    """
    candidates = [raw]
    lenient = _BARE_KEY.sub(r'\1"\2":', raw.replace("'", '"'))
    if lenient != raw:
        candidates.append(lenient)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
        raise MarkerParseError("webhook payload is not an object")

    raise MarkerParseError(f"undecodable webhook payload: {raw[:80]}")


# ---------------------------------------------------------------------------
# MARKER PARSER
# ---------------------------------------------------------------------------

@dataclass
class _Marker:
    start: int
    end: int
    kind: str
    name: str
    argument: Optional[str]


class MarkerParser:
    """
    Finds, decodes and strips function-call markers.

    Usage:
        result = marker_parser.parse(reply_text)
        if result.function_call:
            ...
        send(result.text)
    """

    def parse(self, text: Optional[str]) -> ParseResult:
        """Scan a reply. Never raises."""
        text = text or ""
        markers = self._find_markers(text)
        if not markers:
            return ParseResult(text=text.strip())

        first = markers[0]
        function_call: Optional[FunctionCall] = None
        error: Optional[str] = None
        try:
            function_call = self._to_function_call(first)
        except (MarkerParseError, ValidationError) as e:
            error = str(e)
            logger.warning(f"Ignoring malformed {first.kind} marker: {e}")

        if len(markers) > 1:
            logger.info(f"Reply contained {len(markers)} markers, only the first is used")

        return ParseResult(
            text=self._strip(text, markers),
            function_call=function_call,
            markers_found=len(markers),
            error=error,
        )

    def contains_marker(self, text: Optional[str]) -> bool:
        return bool(text) and bool(self._find_markers(text))

    def _find_markers(self, text: str) -> List[_Marker]:
        markers: List[_Marker] = []
        pos = 0
        while True:
            match = _MARKER_START.search(text, pos)
            if not match:
                break
            try:
                marker = self._read_marker(text, match)
            except MarkerParseError as e:
                logger.debug(f"Incomplete marker at offset {match.start()}: {e}")
                pos = match.end()
                continue
            markers.append(marker)
            pos = marker.end
        return markers

    @staticmethod
    def _read_marker(text: str, match: "re.Match") -> _Marker:
        kind = match.group(1)
        pos = _skip_ws(text, match.end())
        name, pos = _read_string(text, pos)
        pos = _skip_ws(text, pos)

        argument: Optional[str] = None
        if pos < len(text) and text[pos] == ",":
            pos = _skip_ws(text, pos + 1)
            if kind == "command":
                argument, pos = _read_string(text, pos)
            else:
                argument, pos = _read_object(text, pos)
            pos = _skip_ws(text, pos)

        if pos >= len(text) or text[pos] != ")":
            raise MarkerParseError("missing closing parenthesis")

        return _Marker(start=match.start(), end=pos + 1, kind=kind, name=name, argument=argument)

    @staticmethod
    def _to_function_call(marker: _Marker) -> FunctionCall:
        if marker.kind == "command":
            return FunctionCall.local(marker.name, (marker.argument or "").strip())
        parameters = decode_payload(marker.argument) if marker.argument else {}
        return FunctionCall.remote(marker.name, parameters)

    @staticmethod
    def _strip(text: str, markers: List[_Marker]) -> str:
        pieces: List[str] = []
        pos = 0
        for marker in markers:
            start, end = marker.start, marker.end
            # Models often wrap the call in inline code
            while start > pos and end < len(text) and text[start - 1] == "`" and text[end] == "`":
                start -= 1
                end += 1
            pieces.append(text[pos:start])
            pos = end
        pieces.append(text[pos:])

        cleaned = "".join(pieces)
        cleaned = re.sub(r"[ \t]+", " ", cleaned)
        cleaned = "\n".join(line.strip() for line in cleaned.splitlines())
        cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
        return cleaned.strip()


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
marker_parser = MarkerParser()
