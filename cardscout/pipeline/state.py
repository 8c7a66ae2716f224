"""State bag and result type for the single-card extraction graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict

from cardscout.extraction.llm import TokenUsage
from cardscout.extraction.processor import CardExtraction
from cardscout.scraper.models import FailedLink, LinkCandidate, PageContent, ProcessedLink

FailureReason = Literal["incomplete_data", "extraction_error"]


@dataclass(frozen=True)
class CardResult:
    """Outcome of one ``crawl_card`` run.

    ``reason`` is ``None`` for a persisted, complete record,
    ``"incomplete_data"`` when the completeness bar was not met (nothing is
    written) and ``"extraction_error"`` when the run ended on the error path
    (an error record is written).
    """

    valid: bool
    reason: FailureReason | None = None
    standard: dict[str, Any] = field(default_factory=dict)
    structured: dict[str, Any] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)
    processing_time_seconds: int = 0
    error: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def confidence(self) -> float:
        return float((self.standard.get("metadata") or {}).get("confidence_score") or 0)


class CrawlState(TypedDict, total=False):
    """Keys written by the graph nodes for one target URL.

    ``status`` drives routing: ``"error"`` sends the run to ``persist_error``
    from any node.
    """

    url: str
    started_at: float
    status: str
    content_type: str
    main: PageContent
    candidates: list[LinkCandidate]
    processed_links: list[ProcessedLink]
    failed_links: list[FailedLink]
    processed_urls: list[str]
    extraction: CardExtraction
    standard: dict[str, Any]
    complete: bool
    usage: TokenUsage
    error: str
    result: CardResult
