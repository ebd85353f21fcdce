"""Lenient JSON extraction from model output.

Models asked for JSON still occasionally wrap it in code fences, prefix it
with prose, or stop mid-object. ``parse_llm_json`` recovers from all three.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_decoder = json.JSONDecoder()

_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclass
class ParseResult:
    data: Any
    repaired: bool = False


def _escape_control_chars(text: str) -> str:
    """Escape raw newlines/tabs that appear inside JSON strings."""
    out: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif ch == '"':
            in_string = not in_string
        elif in_string and ch in _ESCAPES:
            out.append(_ESCAPES[ch])
            continue
        out.append(ch)
    return "".join(out)


def repair_truncated_json(text: str) -> str:
    """Close an unterminated string and any open arrays/objects."""
    text = _escape_control_chars(text)

    stack: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]" and stack:
            stack.pop()

    if in_string:
        text += '"'
    # Drop a dangling separator so the closers produce valid JSON.
    text = text.rstrip()
    if text.endswith((",", ":")):
        text = text[:-1]
    return text + "".join(reversed(stack))


def _decode_spans(text: str) -> tuple[list[tuple[int, Any]], int]:
    """Decode each ``{...}`` value that does not start inside a decoded one.

    Returns ``(offset, value)`` pairs and the offset of the first ``{``
    that failed to decode (-1 if none).
    """
    spans: list[tuple[int, Any]] = []
    broken_at = -1
    pos = text.find("{")
    while pos != -1:
        try:
            value, end = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            if broken_at == -1:
                broken_at = pos
            pos = text.find("{", pos + 1)
            continue
        spans.append((pos, value))
        pos = text.find("{", end)
    return spans, broken_at


def _has_key(value: Any, key: str | None) -> bool:
    return key is not None and isinstance(value, dict) and key in value


def parse_llm_json(text: str, prefer_key: str | None = None) -> ParseResult:
    """Parse JSON from model output.

    Candidates, in order: the whole text, fenced blocks, complete ``{...}``
    spans, the first broken span with its brackets closed, then spans
    nested inside that broken one. With ``prefer_key`` the first object
    carrying that key beats earlier candidates, since models sometimes
    echo an example object before the real answer.

    Raises ValueError when nothing parses.
    """
    text = text.strip()
    ordered: list[tuple[Any, bool]] = []
    try:
        ordered.append((json.loads(text), False))
    except json.JSONDecodeError:
        pass
    for m in _FENCE.finditer(text):
        try:
            ordered.append((json.loads(m.group(1).strip()), False))
        except json.JSONDecodeError:
            pass

    spans, broken_at = _decode_spans(text)
    ordered.extend((v, False) for pos, v in spans if broken_at == -1 or pos < broken_at)
    if broken_at != -1:
        try:
            ordered.append((json.loads(repair_truncated_json(text[broken_at:])), True))
        except json.JSONDecodeError:
            pass
        ordered.extend((v, False) for pos, v in spans if pos > broken_at)

    if not ordered:
        raise ValueError(f"No JSON value found in model reply: {text[:200]}")

    data, repaired = next((c for c in ordered if _has_key(c[0], prefer_key)), ordered[0])
    if repaired:
        log.info("Recovered truncated JSON (%d chars)", len(text))
    return ParseResult(data, repaired=repaired)
