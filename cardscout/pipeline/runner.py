"""High-level runner for single-card extraction.

``crawl_card`` is the single public function in this module.  It wires the
structuring model, the fetcher and the pacing objects into the compiled
graph and returns the terminal :class:`CardResult`.  Node ``print()`` calls
act as the live log.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from cardscout.config import Settings, settings
from cardscout.extraction.llm import StructuringModel, TokenUsage
from cardscout.extraction.processor import CardProcessor
from cardscout.pipeline.graph import build_graph
from cardscout.pipeline.nodes import PipelineDeps
from cardscout.pipeline.state import CardResult, CrawlState
from cardscout.scraper.fetcher import fetch_content
from cardscout.scraper.models import PageContent


def crawl_card(
    url: str,
    *,
    model: StructuringModel | None = None,
    config: Settings | None = None,
    fetch: Callable[[str], PageContent] | None = None,
    output_dir: Path | None = None,
) -> CardResult:
    """Extract one card page (or PDF) end to end.

    Args:
        url: Card page or document URL.
        model: Structuring model; a default :class:`StructuringModel` is built
            from ``settings`` when omitted.
        config: Per-run settings (pacing, link cap).  Defaults to the module
            singleton.
        fetch: Content fetcher override, mainly for tests.
        output_dir: Where files are written.  Defaults to
            ``settings.output_dir``.

    Returns:
        The terminal :class:`CardResult`.  Errors never propagate: the error
        path persists an error record and returns ``reason="extraction_error"``.
    """
    cfg = config or settings
    deps = PipelineDeps(
        processor=CardProcessor(model or StructuringModel()),
        config=cfg,
        fetch=fetch or fetch_content,
        output_dir=output_dir,
    )

    print(f"[CRAWL] {url}")
    print("=" * 80)
    started = time.monotonic()
    initial_state: CrawlState = {
        "url": url,
        "started_at": started,
        "status": "fetching",
        "processed_urls": [],
        "usage": TokenUsage(),
    }

    try:
        final: CrawlState = build_graph(deps).invoke(initial_state)  # type: ignore[assignment]
    except Exception as exc:  # noqa: BLE001
        print(f"[CRAWL] ✗ Could not complete the error path for {url}: {exc}")
        return CardResult(
            valid=False,
            reason="extraction_error",
            processing_time_seconds=round(time.monotonic() - started),
            error=str(exc),
        )

    result = final.get("result")
    if result is None:
        return CardResult(
            valid=False,
            reason="extraction_error",
            processing_time_seconds=round(time.monotonic() - started),
            error=final.get("error") or "graph finished without a result",
        )
    return result
