"""Console summaries for the CLI.

Every function returns a string; the commands echo it.
"""

from __future__ import annotations

from typing import Any, Dict, List

from cardscout.listing.models import ListingReport
from cardscout.pipeline.state import CardResult

RULE = "=" * 70


def _pct(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def render_card_result(result: CardResult) -> str:
    """Summary of a single-card run, valid or not."""
    if not result.valid:
        lines = [RULE, f"✗ Extraction did not produce a record ({result.reason})"]
        if result.error:
            lines.append(f"  Error : {result.error}")
        if result.reason == "incomplete_data":
            missing = (result.standard.get("metadata") or {}).get("missing_data") or []
            if missing:
                lines.append(f"  Missing: {', '.join(missing)}")
        if result.files:
            lines.append(f"  Error record: {result.files.get('standard')}")
        lines.append(RULE)
        return "\n".join(lines)

    card = result.standard.get("card") or {}
    metadata = result.standard.get("metadata") or {}
    lines = [
        RULE,
        "✓ Card extracted",
        RULE,
        f"  Card        : {card.get('name') or '(unknown)'}",
        f"  Bank        : {card.get('bank') or '(unknown)'}",
        f"  Confidence  : {_pct(result.confidence)}",
        f"  Benefits    : {len(result.standard.get('benefits') or [])}",
        f"  Offers      : {len(result.standard.get('current_offers') or [])}",
        f"  Links used  : {metadata.get('processed_links', 0)}",
        f"  Tokens      : {result.usage.total_tokens}",
        f"  Time        : {result.processing_time_seconds}s",
    ]
    for kind, path in result.files.items():
        lines.append(f"  {kind.capitalize():<12}: {path}")
    lines.append(RULE)
    return "\n".join(lines)


def render_listing_report(report: ListingReport) -> str:
    if report.error:
        return "\n".join([RULE, f"✗ Listing crawl failed: {report.error}", RULE])

    summary = report.listing_summary
    tokens = report.token_summary
    lines = [
        RULE,
        f"Listing: {report.listing_url}",
        RULE,
        f"  URLs found            : {summary.get('total_urls_found', 0)}",
        f"  Valid after checks    : {summary.get('valid_urls_after_validation', 0)}",
        f"  Invalid filtered      : {summary.get('invalid_urls_filtered', 0)}",
        f"  URL validation rate   : {_pct(summary.get('url_validation_success_rate', 0))}",
        f"  Cards processed       : {summary.get('cards_processed', 0)}",
        f"  Cards failed          : {summary.get('cards_failed', 0)}",
        f"  Processing rate       : {_pct(summary.get('processing_success_rate', 0))}",
        f"  Average confidence    : {_pct(summary.get('average_confidence', 0))}",
        f"  Tokens                : {tokens.get('total_tokens', 0)}",
    ]

    if report.cards:
        lines.append("\nCards:")
        for i, card in enumerate(report.cards, 1):
            name = (card.get("card") or {}).get("name") or "(unknown)"
            confidence = (card.get("metadata") or {}).get("confidence_score") or 0
            lines.append(f"  {i:02d}. {name} ({_pct(confidence)})")
    if report.failed_cards:
        lines.append("\nFailed:")
        for card in report.failed_cards:
            lines.append(f"  ✗ {card.get('name')}: {card.get('error') or card.get('reason')}")
    if report.invalid_urls:
        lines.append("\nInvalid URLs:")
        for entry in report.invalid_urls:
            lines.append(f"  ✗ {entry.get('url')} [{entry.get('error_type')}]")
    if report.path:
        lines.append(f"\nSaved → {report.path}")
    lines.append(RULE)
    return "\n".join(lines)


def render_sections(formatted: Dict[str, List[Any]], summary: Dict[str, Dict[str, int]]) -> str:
    lines = [RULE, f"Found {len(formatted)} section(s)", RULE]
    for i, (title, stats) in enumerate(summary.items(), 1):
        line = f"{i:02d}. {title} ({stats['total_items']} items"
        if stats["linked_content"]:
            line += f", {stats['linked_content']} linked content"
        lines.append(line + ")")
        if stats["pdfs"]:
            lines.append(f"    ├── PDFs: {stats['pdfs']}")
        if stats["webpages"]:
            lines.append(f"    ├── Web pages: {stats['webpages']}")
        if stats["errors"]:
            lines.append(f"    └── Errors: {stats['errors']}")
    return "\n".join(lines)


def render_stats(stats: Dict[str, Any]) -> str:
    return "\n".join([
        f"Output directory : {stats['output_dir']}",
        f"Total files      : {stats['total_files']}",
        f"PDF extractions  : {stats['pdf_extractions']}",
        f"Web extractions  : {stats['web_extractions']}",
        f"Listing reports  : {stats['listing_reports']}",
        f"Errors           : {stats['errors']}",
        f"Success rate     : {stats['success_rate']}%",
    ])
