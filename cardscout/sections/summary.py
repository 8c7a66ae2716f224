"""Per-section counts over formatted section output."""

from __future__ import annotations

from typing import Any, Dict, List

_COUNT_KEYS = ("total_items", "linked_content", "pdfs", "webpages", "errors")


def _section_stats(entries: List[Any]) -> Dict[str, int]:
    stats = dict.fromkeys(_COUNT_KEYS, 0)
    for entry in entries:
        if not isinstance(entry, dict):
            stats["total_items"] += 1
            continue
        if "title" in entry:
            stats["total_items"] += 1 + len(entry.get("items") or [])
            continue

        kind = entry.get("type")
        if kind == "pdf_document":
            stats["pdfs"] += 1
        elif kind == "webpage_document":
            stats["webpages"] += 1
        if kind in ("pdf_document", "webpage_document", "reference_link", "link_error"):
            stats["linked_content"] += 1
        if kind == "link_error" or entry.get("status") == "error":
            stats["errors"] += 1
        stats["total_items"] += 1
    return stats


def summarize_sections(formatted: Dict[str, List[Any]]) -> Dict[str, Dict[str, int]]:
    """Return ``{section: {total_items, linked_content, pdfs, webpages, errors}}``."""
    return {title: _section_stats(entries) for title, entries in formatted.items()}


def summary_totals(summary: Dict[str, Dict[str, int]]) -> Dict[str, int]:
    totals = dict.fromkeys(_COUNT_KEYS, 0)
    for stats in summary.values():
        for key in _COUNT_KEYS:
            totals[key] += stats.get(key, 0)
    totals["sections"] = len(summary)
    return totals
