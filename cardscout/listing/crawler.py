"""Listing runs: listing page → candidate cards → validated URLs → one
``crawl_card`` per URL → aggregate report.

``crawl_listing`` never raises.  A failure before any card is crawled
(listing fetch, unexpected error) yields a report whose ``metadata.error``
is set; per-card failures land in ``failed_cards``.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any, Callable, Iterable

from cardscout.config import Settings, settings
from cardscout.extraction.llm import StructuringModel, TokenUsage
from cardscout.extraction.records import generate_id, utc_now_iso
from cardscout.listing.extractor import ListingExtractor
from cardscout.listing.filters import is_valid_credit_card, normalize_candidate
from cardscout.listing.models import CardCandidate, ListingReport, UrlCheck, ValidationOutcome
from cardscout.listing.url_check import CONTENT_FILTER, check_url
from cardscout.pacing import RateLimiter
from cardscout.pipeline import CardResult, crawl_card
from cardscout.scraper.fetcher import fetch_content
from cardscout.scraper.models import PageContent
from cardscout.storage import save_listing_report


def _rate(numerator: int, denominator: int) -> float:
    return round(numerator / denominator, 2) if denominator else 0


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------

def validate_candidates(
    candidates: Iterable[CardCandidate],
    base_url: str,
    *,
    config: Settings | None = None,
    check: Callable[[str], UrlCheck] = check_url,
    limiter: RateLimiter | None = None,
) -> ValidationOutcome:
    """Content-filter, normalise and HEAD-check each candidate.

    Valid entries gain ``validation_status`` and ``response_code``; invalid
    ones gain ``validation_error``, ``error_type`` and (when a response was
    received) ``response_code``.
    """
    cfg = config or settings
    pacer = limiter or RateLimiter(cfg.delay_between_validation)
    candidates = list(candidates)
    valid: list[dict[str, Any]] = []
    invalid: list[dict[str, Any]] = []

    print(f"[VALIDATE] Checking {len(candidates)} candidate URL(s) …")
    for i, candidate in enumerate(candidates, 1):
        if not is_valid_credit_card(candidate):
            invalid.append({
                **candidate.to_dict(),
                "validation_error": "Content filtering - not a valid credit card",
                "error_type": CONTENT_FILTER,
            })
            continue

        normalized = normalize_candidate(candidate, base_url)
        pacer.wait()
        result = check(normalized.url)
        if result.valid:
            valid.append({
                **normalized.to_dict(),
                "validation_status": "VALID",
                "response_code": result.status_code,
            })
            print(f"[VALIDATE] ✓ {i}/{len(candidates)} {normalized.name} ({result.status_code})")
        else:
            invalid.append({
                **normalized.to_dict(),
                "validation_error": result.error,
                "error_type": result.error_type,
                "response_code": result.status_code,
            })
            print(f"[VALIDATE] ✗ {i}/{len(candidates)} {normalized.name}: {result.error}")

    summary = {
        "total_checked": len(candidates),
        "valid_urls": len(valid),
        "invalid_urls": len(invalid),
        "success_rate": _rate(len(valid), len(candidates)),
    }
    return ValidationOutcome(valid=valid, invalid=invalid, summary=summary)


# ---------------------------------------------------------------------------
# Report builders
# ---------------------------------------------------------------------------

def _token_summary(usage: TokenUsage) -> dict[str, int]:
    return {
        "total_input_tokens": usage.prompt_tokens,
        "total_output_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }


def _error_report(url: str, message: str) -> ListingReport:
    return ListingReport(
        id=generate_id(url),
        listing_url=url,
        scraped_at=utc_now_iso(),
        metadata={"last_updated": utc_now_iso(), "error": message},
    )


def _listing_summary(
    found: int,
    validation: ValidationOutcome,
    cards: list[dict[str, Any]],
    failed: list[dict[str, Any]],
) -> dict[str, Any]:
    attempted = len(cards) + len(failed)
    confidences = [
        float((card.get("metadata") or {}).get("confidence_score") or 0) for card in cards
    ]
    return {
        "total_urls_found": found,
        "valid_urls_after_validation": len(validation.valid),
        "invalid_urls_filtered": len(validation.invalid),
        "cards_processed": len(cards),
        "cards_failed": len(failed),
        "processing_success_rate": _rate(len(cards), attempted),
        "url_validation_success_rate": validation.summary.get("success_rate", 0),
        "average_confidence": round(sum(confidences) / len(confidences), 2) if confidences else 0,
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def crawl_listing(
    url: str,
    *,
    model: StructuringModel | None = None,
    config: Settings | None = None,
    fetch: Callable[[str], PageContent] | None = None,
    check: Callable[[str], UrlCheck] | None = None,
    card_crawler: Callable[[str], CardResult] | None = None,
    output_dir: Path | None = None,
) -> ListingReport:
    """Crawl every card a listing page links to.

    Args:
        url: Listing page URL.
        model: Structuring model shared by the listing extractor and every
            card run.
        config: Per-run settings.  Defaults to the module singleton.
        fetch: Content fetcher override.
        check: URL liveness check override.
        card_crawler: Single-card runner override; receives the card URL.
        output_dir: Where the report (and card files) are written.

    Returns:
        The :class:`ListingReport`.  Normal and empty reports are saved and
        carry the written ``path``; error reports are returned unsaved.
    """
    cfg = config or settings
    fetch = fetch or fetch_content
    check = check or check_url

    print(f"[LISTING] {url}")
    print("=" * 80)
    try:
        llm = model or StructuringModel()
        if card_crawler is None:
            card_crawler = functools.partial(
                crawl_card, model=llm, config=cfg, fetch=fetch, output_dir=output_dir
            )

        page = fetch(url)
        if not page.success:
            raise RuntimeError(f"Listing extraction failed: {page.error}")

        candidates, usage = ListingExtractor(llm, cfg).extract(page, url)
        validation = validate_candidates(candidates, url, config=cfg, check=check)

        cards: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        pacer = RateLimiter(cfg.delay_between_cards)
        for i, meta in enumerate(validation.valid, 1):
            pacer.wait()
            print(f"\n[LISTING] [{i}/{len(validation.valid)}] → {meta['name']}")
            try:
                result = card_crawler(meta["url"])
            except Exception as exc:  # noqa: BLE001
                print(f"[LISTING] ✗ Card processing failed: {exc}")
                failed.append({**meta, "error": str(exc)})
                continue

            usage = usage + result.usage
            if result.valid:
                cards.append({
                    **result.standard,
                    "listing_info": {
                        "extracted_from": url,
                        "url_validation": {
                            "status": meta.get("validation_status"),
                            "response_code": meta.get("response_code"),
                        },
                    },
                })
            elif result.reason == "incomplete_data":
                print(f"[LISTING] Skipping incomplete data for {meta['url']}")
                failed.append({**meta, "reason": "incomplete_data"})
            else:
                failed.append({
                    **meta,
                    "reason": result.reason or "extraction_error",
                    "error": result.error,
                })

        metadata: dict[str, Any] = {"last_updated": utc_now_iso()}
        if not validation.valid:
            metadata["message"] = "no valid card urls"

        report = ListingReport(
            id=generate_id(url),
            listing_url=url,
            scraped_at=utc_now_iso(),
            url_validation_summary=validation.summary,
            listing_summary=_listing_summary(len(candidates), validation, cards, failed),
            cards=cards,
            failed_cards=failed,
            invalid_urls=validation.invalid,
            token_summary=_token_summary(usage),
            metadata=metadata,
        )
        report.path = save_listing_report(report.to_dict(), url, output_dir)
        return report
    except Exception as exc:  # noqa: BLE001
        print(f"[LISTING] ✗ Listing crawl failed: {exc}")
        return _error_report(url, str(exc))
