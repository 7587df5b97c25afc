"""
Best-effort structured decoding of reasoning-service output.

The service is asked for bare JSON but routinely wraps it in code fences
or surrounds it with prose. Decoding is therefore: strip fences, locate
the first balanced ``{...}`` span, ``json.loads`` it. Each way this can
go wrong maps to its own MalformedResponseError subclass.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from ..core.errors import FieldTypeError, MissingFieldError, NoJSONObjectError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_INLINE_FENCE_RE = re.compile(r"```(?:json)?\s*\n?")

DEFAULT_REASON = "Match evaluation completed"


def strip_code_fence(text: str) -> str:
    """Strip markdown code fences (```json ... ```), including ones embedded mid-text."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return _INLINE_FENCE_RE.sub("", stripped).strip()


def find_json_object(text: str) -> str:
    """
    Return the first balanced ``{...}`` span in ``text``.

    Braces inside string literals (including escaped quotes) are ignored.
    Raises NoJSONObjectError when no complete object is present.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    raise NoJSONObjectError("No JSON object found in response", raw=text[:500])


def decode_object(raw: str) -> dict[str, Any]:
    """Strip fences, extract and parse the first JSON object."""
    cleaned = strip_code_fence(raw)
    span = find_json_object(cleaned)
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise NoJSONObjectError(f"Response JSON is not parseable: {e}", raw=raw[:500]) from e
    if not isinstance(parsed, dict):
        raise NoJSONObjectError("Response JSON is not an object", raw=raw[:500])
    return parsed


def coerce_score(value: Any) -> int:
    """Number or numeric string to int. Raises FieldTypeError otherwise."""
    if isinstance(value, bool):
        raise FieldTypeError(f"score must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError as e:
            raise FieldTypeError(f"score is not numeric: {value!r}") from e
    else:
        raise FieldTypeError(f"score must be a number, got {type(value).__name__}")
    if math.isnan(number) or math.isinf(number):
        raise FieldTypeError(f"score is not finite: {value!r}")
    return int(number)


def clamp_score(score: int) -> int:
    return max(0, min(100, score))


def parse_match_payload(raw: str) -> dict[str, Any]:
    """
    Decode a scoring response into ``{score, reason, category, needed_roles}``.

    ``score`` is required and clamped to [0, 100]. ``category`` is returned
    as the upstream sent it; callers recompute their own. ``needed_roles``
    defaults to an empty list.
    """
    data = decode_object(raw)

    if "score" not in data or data["score"] is None:
        raise MissingFieldError("Response is missing 'score'", raw=raw[:500])
    score = clamp_score(coerce_score(data["score"]))

    reason = data.get("reason", "")
    if not isinstance(reason, str):
        raise FieldTypeError("reason must be a string", raw=raw[:500])

    needed_roles = data.get("needed_roles")
    if needed_roles is None:
        needed_roles = []
    elif not isinstance(needed_roles, list):
        raise FieldTypeError("needed_roles must be a list", raw=raw[:500])
    else:
        needed_roles = [str(r).strip() for r in needed_roles if str(r).strip()]

    category = data.get("category", "")
    if not isinstance(category, str):
        category = str(category)

    return {
        "score": score,
        "reason": reason.strip() or DEFAULT_REASON,
        "category": category,
        "needed_roles": needed_roles,
    }
