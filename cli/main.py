"""CardScout CLI — entry-point for card extraction runs.

Usage:
    python cli/main.py --help

Commands:
    run        → extract one card page, or every card on a listing page
    sections   → non-AI section extraction for row-structured card pages
    check-url  → HEAD-check a URL and print its classification
    stats      → count the files in the output directory
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from cardscout.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import dataclasses
import os
from typing import Any, Optional

import typer

from cardscout.config import settings
from cli.reporting import render_card_result, render_listing_report, render_sections, render_stats

app = typer.Typer(
    name="cardscout",
    help="Extract structured credit-card data from bank websites and PDFs.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
@app.command("run")
def run(
    url: Optional[str] = typer.Argument(None, help="Card page, PDF or listing page URL."),
    api_key: Optional[str] = typer.Argument(None, help="OpenAI API key (default: $OPENAI_API_KEY)."),
    listing: bool = typer.Option(False, "--listing", help="Treat the URL as a listing page."),
    single: bool = typer.Option(False, "--single", help="Treat the URL as a single card page."),
    max_links: Optional[int] = typer.Option(None, "--max-links", help="Cap on linked pages (0 = no cap)."),
    delay_requests: Optional[float] = typer.Option(None, "--delay-requests", help="Seconds between linked-page fetches."),
    delay_cards: Optional[float] = typer.Option(None, "--delay-cards", help="Seconds between cards in a listing run."),
    delay_validation: Optional[float] = typer.Option(None, "--delay-validation", help="Seconds between URL checks."),
) -> None:
    """Extract a card (or every card on a listing page) to JSON."""
    from cardscout.extraction.llm import StructuringModel
    from cardscout.listing import crawl_listing, detect_mode
    from cardscout.pipeline import crawl_card

    if not url:
        typer.echo("[run] A URL is required.  Usage: cardscout run URL [API_KEY] [--listing|--single]")
        raise typer.Exit(1)
    if listing and single:
        typer.echo("[run] --listing and --single cannot be used together.")
        raise typer.Exit(1)

    key = api_key or os.environ.get("OPENAI_API_KEY")
    if settings.llm_provider == "openai" and not key:
        typer.echo("[run] An OpenAI API key is required (argument or OPENAI_API_KEY).")
        raise typer.Exit(1)

    overrides: dict[str, Any] = {"force_listing_mode": listing, "force_single_mode": single}
    if max_links is not None:
        overrides["max_links_to_process"] = max_links
    if delay_requests is not None:
        overrides["delay_between_requests"] = delay_requests
    if delay_cards is not None:
        overrides["delay_between_cards"] = delay_cards
    if delay_validation is not None:
        overrides["delay_between_validation"] = delay_validation
    config = dataclasses.replace(settings, **overrides)

    mode = detect_mode(url, config)
    model = StructuringModel(api_key=key)
    typer.echo(f"[run] {url!r}  (mode={mode})")

    if mode == "listing":
        report = crawl_listing(url, model=model, config=config)
        typer.echo(render_listing_report(report))
        if report.error:
            raise typer.Exit(1)
        return

    result = crawl_card(url, model=model, config=config)
    typer.echo(render_card_result(result))
    if not result.valid:
        raise typer.Exit(1)


@app.command("sections")
def sections(
    url: str = typer.Argument(..., help="Card page URL."),
    follow_links: bool = typer.Option(False, "--follow-links", help="Fetch linked PDFs and pages."),
) -> None:
    """Extract labelled page sections without a model and save them."""
    from cardscout.errors import FetchError
    from cardscout.extraction.records import utc_now_iso
    from cardscout.scraper.fetcher import fetch_content
    from cardscout.sections import (
        attach_linked_content,
        extract_sections,
        fetch_html,
        format_sections,
        summarize_sections,
        summary_totals,
    )
    from cardscout.storage import save_sections

    typer.echo(f"[sections] Fetching {url!r} …")
    try:
        html = fetch_html(url)
    except FetchError as exc:
        typer.echo(f"[sections] {exc}")
        raise typer.Exit(1)

    raw = extract_sections(html, url)
    if not raw:
        typer.echo("[sections] No sections found.  The page structure might have changed.")
        raise typer.Exit(1)
    if follow_links:
        typer.echo("[sections] Following links …")
        raw = attach_linked_content(raw, fetch_content)

    formatted = format_sections(raw)
    summary = summarize_sections(formatted)
    path = save_sections(
        {
            "url": url,
            "extracted_at": utc_now_iso(),
            "sections": formatted,
            "summary": summary,
            "totals": summary_totals(summary),
        },
        url,
    )
    typer.echo(render_sections(formatted, summary))
    typer.echo(f"[sections] Saved → {path}")


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------
@app.command("check-url")
def check_url_cmd(
    url: str = typer.Argument(..., help="URL to HEAD-check."),
) -> None:
    """HEAD-check a URL and print the outcome."""
    from cardscout.listing.url_check import check_url

    result = check_url(url)
    if result.valid:
        typer.echo(f"[check-url] ✓ {url}  ({result.status_code})")
        return
    status = f"  ({result.status_code})" if result.status_code else ""
    typer.echo(f"[check-url] ✗ {url}  {result.error_type}: {result.error}{status}")
    raise typer.Exit(1)


@app.command("stats")
def stats() -> None:
    """Count extractions and errors in the output directory."""
    from cardscout.storage import output_stats

    typer.echo(render_stats(output_stats()))


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
