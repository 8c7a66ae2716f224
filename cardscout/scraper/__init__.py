"""Scraper package — rendering, PDF download, content extraction and link
classification."""

from cardscout.scraper.fetcher import fetch_content, fetch_pdf, fetch_webpage, is_pdf_url
from cardscout.scraper.links import classify, extract_candidates, is_relevant, prioritize
from cardscout.scraper.models import (
    FailedLink,
    LinkCandidate,
    PageContent,
    ProcessedLink,
    RawLink,
    RenderedPage,
)

__all__ = [
    "fetch_content",
    "fetch_pdf",
    "fetch_webpage",
    "is_pdf_url",
    "classify",
    "extract_candidates",
    "is_relevant",
    "prioritize",
    "FailedLink",
    "LinkCandidate",
    "PageContent",
    "ProcessedLink",
    "RawLink",
    "RenderedPage",
]
