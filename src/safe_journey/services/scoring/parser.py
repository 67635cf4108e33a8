"""Best-effort extraction of structured scores from free-form model output.

Models are asked to answer with JSON but routinely wrap it in prose or
markdown fences, or ignore the format altogether. ``parse`` tries, in order:

1. each balanced ``{...}`` / ``[...]`` block in the text, first to last
   (arrays must contain at least one object),
2. the whole trimmed text,
3. (objects only) regex extraction of ``score`` and ``reason`` labels.

It never raises. Callers branch on :class:`Structured` vs :class:`Malformed`.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_EXTRACTED_SCORE = 5.0
DEFAULT_EXTRACTED_REASON = "AI analysis completed"
EXTRACTED_CONFIDENCE = 0.7

_SCORE_PATTERN = re.compile(r"score\b[^0-9\n]{0,20}?(\d+(?:\.\d+)?)", re.IGNORECASE)
_REASON_PATTERN = re.compile(
    r"""reason\b["']?\s*[:=]?\s*(?:"([^"\n]*)"?|'([^'\n]*)'?|([^\n]+))""",
    re.IGNORECASE,
)


class Shape(str, Enum):
    OBJECT = "object"
    ARRAY = "array"


_BRACKETS = {Shape.OBJECT: ("{", "}"), Shape.ARRAY: ("[", "]")}
_PY_TYPES = {Shape.OBJECT: dict, Shape.ARRAY: list}


@dataclass(frozen=True, slots=True)
class Structured:
    value: Any


@dataclass(frozen=True, slots=True)
class Malformed:
    partial: Optional[dict[str, Any]] = None


ParsedResult = Union[Structured, Malformed]


def _bounded_blocks(text: str, shape: Shape) -> Iterator[str]:
    """Yield every bracketed block of ``shape`` with its matching close, in order."""
    opening, closing = _BRACKETS[shape]
    start = text.find(opening)
    while start != -1:
        block = _match_close(text, start, opening, closing)
        if block is not None:
            yield block
        start = text.find(opening, start + 1)


def _match_close(text: str, start: int, opening: str, closing: str) -> Optional[str]:
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(text)):
        char = text[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return text[start : position + 1]
    return None


def _strict_load(candidate: str, shape: Shape) -> Optional[Any]:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    if not isinstance(value, _PY_TYPES[shape]):
        return None
    # An array only counts when it holds at least one entry object.
    if shape is Shape.ARRAY and not any(isinstance(item, dict) for item in value):
        return None
    return value


def _extract_reason(text: str) -> str:
    match = _REASON_PATTERN.search(text)
    if match is None:
        return ""
    double_quoted, single_quoted, bare = match.groups()
    if double_quoted is not None:
        return double_quoted.strip()
    if single_quoted is not None:
        return single_quoted.strip()
    return (bare or "").strip().rstrip(",.;}")


def _extract_fields(text: str) -> dict[str, Any]:
    score_match = _SCORE_PATTERN.search(text)
    reason = _extract_reason(text)
    return {
        "score": float(score_match.group(1)) if score_match else DEFAULT_EXTRACTED_SCORE,
        "reason": reason or DEFAULT_EXTRACTED_REASON,
        "confidence": EXTRACTED_CONFIDENCE,
        "risks": [],
        "recommendations": [],
    }


def parse(raw_text: Optional[str], shape: Shape) -> ParsedResult:
    text = (raw_text or "").strip()

    for block in _bounded_blocks(text, shape):
        value = _strict_load(block, shape)
        if value is not None:
            return Structured(value)

    value = _strict_load(text, shape)
    if value is not None:
        return Structured(value)

    if shape is Shape.OBJECT:
        logger.warning("Model reply is not valid JSON, extracting score and reason from text")
        return Malformed(partial=_extract_fields(text))

    logger.warning(f"Model reply does not contain a JSON {shape.value}")
    return Malformed()
