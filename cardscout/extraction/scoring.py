"""Completeness checks and the heuristic confidence score.

All functions take the ``standard`` record as a plain dict so they work the
same on fresh model output and on records re-loaded from disk.
"""

from __future__ import annotations

import re
from typing import Any

from cardscout.scraper.models import PageContent

_PLACEHOLDER_RE = re.compile(r"unknown|not found|error", re.IGNORECASE)
_FAILED_TITLES = {"PDF Extraction Failed", "Extraction Error", ""}

# Weights in hundredths so the sum is exact.
_WEIGHTS: list[tuple[str, int]] = [
    ("card_name", 15),
    ("bank_name", 15),
    ("reward_program", 10),
    ("reward_type", 5),
    ("reward_categories", 15),
    ("redemption", 10),
    ("benefits", 10),
    ("current_offers", 10),
    ("perks", 5),
    ("partnerships", 5),
]


def _get(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _count(value: Any) -> int:
    return len(value) if isinstance(value, list) else 0


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _signals(data: dict[str, Any]) -> dict[str, bool]:
    return {
        "card_name": _non_empty_str(_get(data, "card", "name")),
        "bank_name": _non_empty_str(_get(data, "card", "bank")),
        "reward_program": _non_empty_str(_get(data, "rewards", "program")),
        "reward_type": _non_empty_str(_get(data, "rewards", "type")),
        "reward_categories": _non_empty_list(_get(data, "rewards", "earning", "categories")),
        "redemption": _non_empty_list(_get(data, "rewards", "redemption")),
        "benefits": _non_empty_list(_get(data, "benefits")),
        "current_offers": _non_empty_list(_get(data, "current_offers")),
        "perks": _non_empty_list(_get(data, "perks")),
        "partnerships": _non_empty_list(_get(data, "partnerships")),
    }


def confidence_score(data: dict[str, Any]) -> float:
    """Weighted presence of the main sections, in ``[0, 1]`` rounded to 2 dp."""
    if not isinstance(data, dict):
        return 0.0
    present = _signals(data)
    hundredths = sum(weight for name, weight in _WEIGHTS if present[name])
    return round(min(max(hundredths / 100, 0.0), 1.0), 2)


def find_missing_data(data: dict[str, Any]) -> list[str]:
    if not isinstance(data, dict):
        return [name for name, _ in _WEIGHTS]
    present = _signals(data)
    return [name for name, _ in _WEIGHTS if not present[name]]


def _mark(ok: bool) -> str:
    return "✓" if ok else "✗"


def _is_real_value(value: Any) -> bool:
    return _non_empty_str(value) and not _PLACEHOLDER_RE.search(value)


def is_data_complete(data: dict[str, Any]) -> bool:
    """Web bar: real card name and bank, plus at least one content section."""
    name = _get(data, "card", "name")
    bank = _get(data, "card", "bank")
    name_ok = _is_real_value(name)
    bank_ok = _is_real_value(bank)

    counts = {
        "Benefits": _count(_get(data, "benefits")),
        "Offers": _count(_get(data, "current_offers")),
        "Perks": _count(_get(data, "perks")),
        "Earning categories": _count(_get(data, "rewards", "earning", "categories")),
    }
    has_content = any(count > 0 for count in counts.values())

    print("[VALIDATE] Data completeness check:")
    print(f"[VALIDATE]   {_mark(name_ok)} Card name ({name})")
    print(f"[VALIDATE]   {_mark(bank_ok)} Bank ({bank})")
    for label, count in counts.items():
        print(f"[VALIDATE]   {_mark(count > 0)} {label} ({count})")

    return name_ok and bank_ok and has_content


def is_pdf_data_complete(content: PageContent) -> bool:
    """PDF bar: more than 100 characters of text and a usable title."""
    has_text = len(content.text or "") > 100
    has_title = (content.title or "").strip() not in _FAILED_TITLES
    print(
        f"[VALIDATE] PDF completeness: text={len(content.text or '')} chars "
        f"({_mark(has_text)}), title={content.title!r} ({_mark(has_title)})"
    )
    return has_text and has_title
