"""LangGraph node functions for the single-card extraction graph.

Each public symbol is a *factory* that accepts the run's
:class:`PipelineDeps` and returns a callable ``(CrawlState) -> dict``
suitable for use as a LangGraph node.  Factories keep the model, fetcher
and pacing objects out of the state bag.

Public factories
----------------
``make_fetch_main``         — fetch the target URL (page or PDF).
``make_process_pdf``        — PDF targets skip link following.
``make_process_links``      — classify and fetch linked pages sequentially.
``make_ai_process``         — one structuring-model call for both shapes.
``make_validate``           — apply the web or PDF completeness bar.
``make_persist``            — write the standard and structured files.
``make_report_incomplete``  — return an unsaved ``incomplete_data`` result.
``make_persist_error``      — write an error record.

Every node except ``persist_error`` is wrapped so that an exception turns
into ``status="error"``, which the graph routes to ``persist_error``.
"""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from cardscout.config import Settings, settings
from cardscout.extraction.llm import TokenUsage
from cardscout.extraction.processor import CardProcessor
from cardscout.extraction.records import error_record
from cardscout.extraction.scoring import is_data_complete, is_pdf_data_complete
from cardscout.pacing import RateLimiter
from cardscout.pipeline.state import CardResult, CrawlState
from cardscout.scraper.fetcher import fetch_content
from cardscout.scraper.links import extract_candidates
from cardscout.scraper.models import FailedLink, PageContent, ProcessedLink
from cardscout.storage import save_card_results, save_error_record
from cardscout.text import truncate

NodeFn = Callable[[CrawlState], dict]


@dataclass
class PipelineDeps:
    """Collaborators shared by every node of one run."""

    processor: CardProcessor
    config: Settings = field(default_factory=lambda: settings)
    fetch: Callable[[str], PageContent] = fetch_content
    output_dir: Path | None = None
    limiter: RateLimiter | None = None

    def __post_init__(self) -> None:
        if self.limiter is None:
            self.limiter = RateLimiter(self.config.delay_between_requests)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _elapsed(state: CrawlState) -> int:
    return round(time.monotonic() - state.get("started_at", time.monotonic()))


def _guarded(name: str, node: NodeFn) -> NodeFn:
    """Convert any exception raised by *node* into the error branch."""

    @functools.wraps(node)
    def wrapper(state: CrawlState) -> dict:
        try:
            return node(state)
        except Exception as exc:  # noqa: BLE001
            print(f"[{name.upper()}] ✗ {type(exc).__name__}: {exc}")
            return {"status": "error", "error": str(exc)}

    return wrapper


def _summary(content: PageContent) -> str:
    if content.content_type == "pdf":
        return f"PDF: {content.text[:200]}..."
    if content.text:
        return f"Content: {truncate(content.text, 200)}"
    return "No content summary available"


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------

def make_fetch_main(deps: PipelineDeps) -> NodeFn:
    def fetch_main(state: CrawlState) -> dict:
        url = state["url"]
        print(f"[FETCH] Extracting main content from {url}")
        content = deps.fetch(url)
        if not content.success:
            return {
                "status": "error",
                "content_type": content.content_type,
                "error": f"Failed to extract main content: {content.error}",
            }
        print(f"[FETCH] ✓ Main content extracted ({content.content_type})")
        return {"main": content, "content_type": content.content_type, "status": "fetched"}

    return _guarded("fetch", fetch_main)


def make_process_pdf(deps: PipelineDeps) -> NodeFn:
    """PDF targets have no anchors to follow; the document alone is sent to
    the model."""

    def process_pdf(state: CrawlState) -> dict:
        print("[PDF] Root URL is a PDF; processing the document on its own")
        return {"candidates": [], "processed_links": [], "failed_links": [], "status": "processing"}

    return _guarded("pdf", process_pdf)


def make_process_links(deps: PipelineDeps) -> NodeFn:
    """Follow the classified links of the main page, one at a time.

    Link targets are fetched in priority order, capped at
    ``max_links_to_process`` (0 means no cap), with consecutive requests
    spaced by the run's rate limiter.  A URL already in ``processed_urls``
    is never fetched twice.
    """

    def process_links(state: CrawlState) -> dict:
        main = state["main"]
        candidates = extract_candidates(main, state["url"])
        cap = deps.config.max_links_to_process
        if cap > 0:
            candidates = candidates[:cap]

        processed_urls = list(state.get("processed_urls", []))
        processed: list[ProcessedLink] = []
        failed: list[FailedLink] = []

        for i, candidate in enumerate(candidates, start=1):
            if candidate.url in processed_urls:
                continue
            processed_urls.append(candidate.url)

            deps.limiter.wait()
            print(f"[LINKS] [{i}/{len(candidates)}] {candidate.category}: {candidate.url}")
            content = deps.fetch(candidate.url)
            if content.success:
                processed.append(ProcessedLink(candidate=candidate, content=content, summary=_summary(content)))
            else:
                failed.append(
                    FailedLink(
                        url=candidate.url,
                        category=candidate.category,
                        error=content.error or "unknown error",
                        anchor_text=candidate.anchor_text,
                    )
                )
                print(f"[LINKS] ✗ {candidate.url}: {content.error}")

            if i % 5 == 0:
                print(f"[LINKS] Progress: {i}/{len(candidates)} ({len(processed)} ok, {len(failed)} failed)")

        print(f"[LINKS] Completed: {len(processed)} successful, {len(failed)} failed")
        return {
            "candidates": candidates,
            "processed_links": processed,
            "failed_links": failed,
            "processed_urls": processed_urls,
            "status": "processing",
        }

    return _guarded("links", process_links)


def make_ai_process(deps: PipelineDeps) -> NodeFn:
    def ai_process(state: CrawlState) -> dict:
        extraction = deps.processor.process(
            state["main"], state.get("processed_links", []), state["url"]
        )
        usage = state.get("usage", TokenUsage()) + extraction.usage
        return {"extraction": extraction, "usage": usage, "status": "validating"}

    return _guarded("ai", ai_process)


def make_validate(deps: PipelineDeps) -> NodeFn:
    """Attach crawl metadata to the standard record and apply the
    completeness bar for its content type."""

    def validate(state: CrawlState) -> dict:
        main = state["main"]
        extraction = state["extraction"]
        metadata = dict(extraction.standard.get("metadata") or {})

        if state.get("content_type") == "pdf":
            complete = is_pdf_data_complete(main)
            metadata.update(
                content_type="pdf",
                processed_links=0,
                failed_links=0,
                total_links_found=0,
                pdf_info={
                    "title": main.title,
                    "text_length": len(main.text),
                    "pages": main.metadata.get("pages", 0),
                    "actual_url": main.metadata.get("actual_url", main.url),
                },
                data_quality="complete" if complete else "minimal",
            )
        else:
            failed = state.get("failed_links", [])
            metadata.update(
                content_type="web",
                failed_links=len(failed),
                failed_link_details=[f.to_dict() for f in failed],
                total_links_found=len(state.get("candidates", [])),
                links_processed=len(state.get("processed_links", [])),
            )
            complete = is_data_complete(extraction.standard)

        standard = {
            **extraction.standard,
            "processing_time_seconds": _elapsed(state),
            "metadata": metadata,
        }
        if not complete:
            print("[VALIDATE] ✗ Incomplete data detected")
        return {"standard": standard, "complete": complete, "status": "validated"}

    return _guarded("validate", validate)


def make_persist(deps: PipelineDeps) -> NodeFn:
    def persist(state: CrawlState) -> dict:
        is_pdf = state.get("content_type") == "pdf"
        saved = save_card_results(
            state["standard"],
            state["extraction"].structured,
            is_pdf=is_pdf,
            output_dir=deps.output_dir,
        )
        elapsed = _elapsed(state)
        print(f"[SAVE] Total processing time: {elapsed}s")
        result = CardResult(
            valid=True,
            standard=saved.standard,
            structured=state["extraction"].structured,
            files={"standard": str(saved.standard_path), "structured": str(saved.structured_path)},
            processing_time_seconds=elapsed,
            usage=state.get("usage", TokenUsage()),
        )
        return {"result": result, "status": "done"}

    return _guarded("save", persist)


def make_report_incomplete(deps: PipelineDeps) -> NodeFn:
    def report_incomplete(state: CrawlState) -> dict:
        result = CardResult(
            valid=False,
            reason="incomplete_data",
            standard=state["standard"],
            structured=state["extraction"].structured,
            processing_time_seconds=_elapsed(state),
            usage=state.get("usage", TokenUsage()),
        )
        return {"result": result, "status": "done"}

    return report_incomplete


def make_persist_error(deps: PipelineDeps) -> NodeFn:
    def persist_error(state: CrawlState) -> dict:
        error = state.get("error") or "unknown error"
        content_type = state.get("content_type", "web")
        record = error_record(state["url"], error, content_type)
        record["processing_time_seconds"] = _elapsed(state)
        path = save_error_record(record, is_pdf=content_type == "pdf", output_dir=deps.output_dir)
        result = CardResult(
            valid=False,
            reason="extraction_error",
            standard=record,
            files={"standard": str(path)},
            processing_time_seconds=_elapsed(state),
            error=error,
            usage=state.get("usage", TokenUsage()),
        )
        return {"result": result, "status": "done"}

    return persist_error
