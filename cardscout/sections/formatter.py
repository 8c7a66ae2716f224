"""Shape raw section items into display-ready lists.

Three shapers, chosen by section title:

* rewards: list items, with sub-bullets grouped under a ``title:``
* steps: ``Step N:`` items collected as ``{"step", "description",
  "sub_items"}`` and appended after the other entries
* standard: everything else, flattened

All three drop "click here" boilerplate, remove exact duplicates and pass
linked content through as ``pdf_document``, ``webpage_document``,
``reference_link`` or ``link_error`` entries.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, List

from cardscout.text import normalize

Entry = Any  # str, a group dict or a linked-content dict

_STEP_TITLES = {
    "how to apply?",
    "how to activate your pixel card?",
    "servicing via help center",
}
_STEP_RE = re.compile(r"^(Step \d+):\s*(.*)", re.IGNORECASE)
_NUMBERED_RE = re.compile(r"^\d+\.\s")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")

PDF_PARAGRAPH_LIMIT = 500
PDF_MAX_ENTRIES = 100


def _is_boilerplate(text: str) -> bool:
    return "click here" in text.lower()


def _text_of(item: Any) -> str:
    if isinstance(item, str):
        return normalize(item)
    return normalize(item.get("text") or item.get("main") or "")


def _group(main: str, sub_items: List[str]) -> Entry:
    if not sub_items:
        return main
    return {"title": main if main.endswith(":") else f"{main}:", "items": sub_items}


def _dedupe(entries: List[Entry]) -> List[Entry]:
    seen: set[str] = set()
    unique: List[Entry] = []
    for entry in entries:
        key = entry if isinstance(entry, str) else json.dumps(entry, sort_keys=True, ensure_ascii=False)
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique


# ---------------------------------------------------------------------------
# Linked content
# ---------------------------------------------------------------------------

def format_pdf_content(item: Dict[str, Any]) -> Dict[str, Any]:
    """Clean PDF paragraphs; split any over 500 chars on sentence ends."""
    if item.get("status") == "error":
        return {
            "type": "pdf_document",
            "source_url": item.get("source_url"),
            "status": "error",
            "error": item.get("error"),
        }

    paragraphs = [normalize(p) for p in item.get("content") or []]
    content: List[str] = []
    for paragraph in (p for p in paragraphs if len(p) > 10):
        if len(paragraph) > PDF_PARAGRAPH_LIMIT:
            sentences = [s for s in _SENTENCE_RE.split(paragraph) if s.strip()]
            content.extend(sentences if len(sentences) > 1 else [paragraph])
        else:
            content.append(paragraph)

    return {
        "type": "pdf_document",
        "source_url": item.get("source_url"),
        "status": "success",
        "content": content[:PDF_MAX_ENTRIES],
    }


def format_webpage_content(item: Dict[str, Any]) -> Dict[str, Any]:
    if item.get("status") == "error":
        return {
            "type": "webpage_document",
            "source_url": item.get("source_url"),
            "status": "error",
            "error": item.get("error"),
        }

    content: List[Dict[str, Any]] = []
    for block in item.get("content") or []:
        text = normalize(block.get("text"))
        if len(text) <= 5:
            continue
        entry: Dict[str, Any] = {"type": block.get("type"), "content": text}
        if block.get("level"):
            entry["level"] = block["level"]
        content.append(entry)

    return {
        "type": "webpage_document",
        "source_url": item.get("source_url"),
        "status": "success",
        "content": content,
    }


def _linked(item: Any) -> Dict[str, Any] | None:
    """Formatted linked-content entry, or ``None`` for ordinary items."""
    if not isinstance(item, dict):
        return None
    kind = item.get("type")
    if kind == "pdf_content":
        return format_pdf_content(item)
    if kind == "webpage_content":
        return format_webpage_content(item)
    if kind == "link":
        return {"type": "reference_link", "text": normalize(item.get("text")), "url": item.get("url")}
    if kind == "link_error":
        return {"type": "link_error", "source_url": item.get("source_url"), "error": item.get("error")}
    return None


# ---------------------------------------------------------------------------
# Shapers
# ---------------------------------------------------------------------------

def _sub_items(item: Dict[str, Any], strip_dash: bool = False) -> List[str]:
    subs = [normalize(sub) for sub in item.get("sub_items") or []]
    subs = [sub for sub in subs if sub and not _is_boilerplate(sub)]
    if strip_dash:
        subs = [re.sub(r"^-\s*", "", sub).strip() for sub in subs]
    return subs


def format_rewards_section(items: List[Any]) -> List[Entry]:
    """Keep list items and grouped sub-bullets; paragraphs are dropped."""
    formatted: List[Entry] = []
    for item in items:
        linked = _linked(item)
        if linked is not None:
            formatted.append(linked)
            continue

        text = _text_of(item)
        if not text or _is_boilerplate(text):
            continue

        if isinstance(item, str):
            formatted.append(text)
        elif item.get("type") == "list_item_with_sub":
            formatted.append(_group(normalize(item.get("main")), _sub_items(item, strip_dash=True)))
        elif item.get("type") == "list_item":
            formatted.append(text)
    return _dedupe(formatted)


def format_standard_section(items: List[Any]) -> List[Entry]:
    formatted: List[Entry] = []
    for item in items:
        linked = _linked(item)
        if linked is not None:
            formatted.append(linked)
            continue

        if isinstance(item, dict) and item.get("type") == "list_item_with_sub":
            main = normalize(item.get("main"))
            if main:
                formatted.append(_group(main, _sub_items(item)))
            continue

        text = _text_of(item)
        if text and not _is_boilerplate(text):
            formatted.append(text)
    return _dedupe(formatted)


def format_steps_section(items: List[Any]) -> List[Entry]:
    formatted: List[Entry] = []
    steps: List[Dict[str, Any]] = []
    current: Dict[str, Any] | None = None

    for item in items:
        linked = _linked(item)
        if linked is not None:
            formatted.append(linked)
            continue

        text = _text_of(item)
        if not text:
            continue
        has_subs = isinstance(item, dict) and item.get("type") == "list_item_with_sub"

        match = _STEP_RE.match(text)
        if match:
            current = {"step": match.group(1), "description": match.group(2)}
            steps.append(current)
            if has_subs and _sub_items(item):
                current["sub_items"] = _sub_items(item)
        elif _NUMBERED_RE.match(text):
            formatted.append(text)
        elif current is not None and has_subs:
            current.setdefault("sub_items", []).extend([text, *_sub_items(item)])
        elif not _is_boilerplate(text):
            formatted.append(text)

    return _dedupe(formatted + steps)


def _shaper_for(title: str) -> Callable[[List[Any]], List[Entry]]:
    key = title.strip().lower()
    if key == "rewards":
        return format_rewards_section
    if key in _STEP_TITLES or key.startswith("how to"):
        return format_steps_section
    return format_standard_section


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_sections(raw: Dict[str, List[Any]]) -> Dict[str, List[Entry]]:
    """Shape every section; sections left with no entries are dropped."""
    formatted: Dict[str, List[Entry]] = {}
    for title, items in raw.items():
        entries = _shaper_for(title)(items)
        if entries:
            formatted[title] = entries
    return formatted
