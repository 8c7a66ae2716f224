"""Section extraction and shaping for row-structured card pages (no model)."""

from cardscout.sections.extract import attach_linked_content, extract_sections, fetch_html
from cardscout.sections.formatter import format_sections
from cardscout.sections.summary import summarize_sections, summary_totals

__all__ = [
    "attach_linked_content",
    "extract_sections",
    "fetch_html",
    "format_sections",
    "summarize_sections",
    "summary_totals",
]
