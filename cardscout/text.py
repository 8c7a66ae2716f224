"""Text normalisation shared by every formatter and prompt builder."""

from __future__ import annotations

import re
from typing import Any

_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
    "apos": "'",
    "rsquo": "'",
    "lsquo": "'",
    "ldquo": '"',
    "rdquo": '"',
    "hellip": "...",
    "mdash": "-",
    "ndash": "-",
    "prime": "'",
    "Prime": '"',
}

_ENTITY_RE = re.compile(r"&(" + "|".join(re.escape(k) for k in _ENTITIES) + r");")
_TAG_RE = re.compile(r"<[^>]*>")
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\u2060\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")

_CHAR_MAP = str.maketrans(
    {
        "\u2010": "-", "\u2011": "-", "\u2012": "-", "\u2013": "-",
        "\u2014": "-", "\u2015": "-", "\u2212": "-",
        "\u2018": "'", "\u2019": "'", "\u201a": "'", "\u201b": "'",
        "\u201c": '"', "\u201d": '"', "\u201e": '"', "\u201f": '"',
        "\u00a0": " ",
        "\u2192": "->",
    }
)


def _normalize_once(text: str) -> str:
    text = _TAG_RE.sub("", text)
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(1)], text)
    text = text.translate(_CHAR_MAP)
    text = _ZERO_WIDTH_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    # Bullet dashes left over from list markup.
    text = re.sub(r"^-\s+", "", text)
    text = re.sub(r"\s+-$", "", text)
    return text


def normalize(raw: Any) -> str:
    """Return *raw* as clean, single-spaced ASCII-punctuated text.

    Decodes a fixed table of HTML entities, strips tags, folds Unicode dashes
    and curly quotes to ASCII, removes zero-width characters and collapses
    whitespace.  Non-string input yields ``""``.

    Decoding an entity can expose a new tag (``&lt;b&gt;``), so the single
    pass is repeated until the text stops changing.  No pass ever makes the
    string longer except the one-character arrow mapping, which cannot be
    undone, so the loop terminates and the result is idempotent.
    """
    if not isinstance(raw, str):
        return ""

    previous = None
    text = raw
    while text != previous:
        previous = text
        text = _normalize_once(text)
    return text


def truncate(text: str, max_length: int) -> str:
    """Cut *text* to *max_length* characters, appending ``...`` when cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
