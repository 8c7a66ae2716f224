"""Lenient JSON parsing for model output.

Transformations, applied in order until one parses:

1. Strip surrounding whitespace.
2. Remove trailing commas before ``}`` / ``]`` and commas between two
   closing brackets.
3. Extract the outermost ``{ ... }`` span (drops prose or code fences
   around the object) and repeat step 2 on it.

Anything still unparsable raises :class:`MalformedModelResponse`.
"""

from __future__ import annotations

import json
import re
from typing import Any

from cardscout.errors import MalformedModelResponse

_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_DOUBLE_CLOSE_RE = re.compile(r"([}\]])\s*,\s*([}\]])")
_OBJECT_SPAN_RE = re.compile(r"\{[\s\S]*\}")


def _repair(text: str) -> str:
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    return _DOUBLE_CLOSE_RE.sub(r"\1\2", text)


def parse_lenient(raw: str) -> Any:
    """Parse *raw* as JSON after the repairs listed in the module docstring."""
    cleaned = _repair((raw or "").strip())
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        first_error = exc

    match = _OBJECT_SPAN_RE.search(raw or "")
    if match:
        try:
            return json.loads(_repair(match.group(0)))
        except json.JSONDecodeError as exc:
            print(f"[AI] Could not parse extracted object span either: {exc}")

    preview = (raw or "")[:200]
    raise MalformedModelResponse(
        f"Invalid JSON response from model: {first_error} (first 200 chars: {preview!r})"
    ) from first_error
