"""Tests for the single-card extraction graph.

Mocking strategy:
- The fetcher is a plain function over a ``{url: PageContent}`` map.
- The structuring model wraps a ``MagicMock`` chat model returning
  ``SimpleNamespace`` AI messages.
- Pacing is disabled with ``delay_between_requests=0``; every file is
  written under ``tmp_path``.
"""

from __future__ import annotations

import dataclasses
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from cardscout.config import settings
from cardscout.extraction.llm import StructuringModel
from cardscout.extraction.processor import CardProcessor
from cardscout.pipeline import CardResult, crawl_card
from cardscout.pipeline.nodes import PipelineDeps, make_process_links
from cardscout.scraper.models import PageContent, RawLink
from cardscout.storage import load_record

_CARD_URL = "https://www.examplebank.com/credit-cards/millennia-credit-card"
_TERMS_URL = "https://www.examplebank.com/content/docs/millennia-terms.pdf"
_OFFERS_URL = "https://www.examplebank.com/credit-cards/offers"
_PDF_URL = "https://www.examplebank.com/content/docs/millennia-mitc.pdf"


def _ai_message(payload) -> SimpleNamespace:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(
        content=content,
        usage_metadata={"input_tokens": 1000, "output_tokens": 250},
        response_metadata={"finish_reason": "stop"},
    )


def _model(payload) -> StructuringModel:
    llm = MagicMock()
    llm.invoke.return_value = _ai_message(payload)
    return StructuringModel(llm=llm)


def _fetcher(pages: dict[str, PageContent]):
    calls: list[str] = []

    def fetch(url: str) -> PageContent:
        calls.append(url)
        return pages.get(url) or PageContent.failure(url, "HTTP 404")

    fetch.calls = calls  # type: ignore[attr-defined]
    return fetch


def _card_page() -> PageContent:
    return PageContent(
        url=_CARD_URL,
        title="Millennia Credit Card",
        text="Millennia Credit Card. Earn 5% cashback on online spends. " * 5,
        links=(
            RawLink(href=_OFFERS_URL, text="Card offers", full_url=_OFFERS_URL),
            RawLink(href=_TERMS_URL, text="Terms and Conditions", full_url=_TERMS_URL),
            RawLink(href="https://www.examplebank.com/", text="Home", full_url="https://www.examplebank.com/"),
        ),
    )


_COMPLETE = {
    "standard_format": {
        "card": {"name": "Millennia Credit Card", "bank": "Example Bank"},
        "rewards": {"program": "CashBack", "earning": {"categories": [{"name": "Online", "rate": "5%"}]}},
        "benefits": [{"title": "Lounge access"}],
    },
    "structured_format": {"Metadata": {"PK": "CARD#EXAMPLE_BANK_MILLENNIA_CREDIT_CARD", "SK": "METADATA"}},
}

_NO_CONTENT = {
    "standard_format": {
        "card": {"name": "Millennia Credit Card", "bank": "Example Bank"},
        "benefits": [],
        "current_offers": [],
        "perks": [],
        "rewards": {"earning": {"categories": []}},
    },
}


@pytest.fixture
def config():
    return dataclasses.replace(settings, delay_between_requests=0, max_links_to_process=0)


# ---------------------------------------------------------------------------
# Web pages
# ---------------------------------------------------------------------------

class TestWebPipeline:
    def test_complete_record_is_persisted(self, tmp_path, config) -> None:
        fetch = _fetcher({
            _CARD_URL: _card_page(),
            _TERMS_URL: PageContent(url=_TERMS_URL, title="Terms", text="Terms text " * 20, content_type="pdf"),
        })
        result = crawl_card(_CARD_URL, model=_model(_COMPLETE), config=config, fetch=fetch, output_dir=tmp_path)

        assert isinstance(result, CardResult)
        assert result.valid
        assert result.reason is None
        assert result.usage.total_tokens == 1250

        saved = load_record(result.files["standard"])
        assert saved == result.standard
        metadata = saved["metadata"]
        assert metadata["content_type"] == "web"
        assert metadata["links_processed"] == 1
        assert metadata["failed_links"] == 1
        assert metadata["failed_link_details"][0]["url"] == _OFFERS_URL
        assert metadata["total_links_found"] == 2
        assert load_record(result.files["structured"]) == _COMPLETE["structured_format"]

    def test_links_fetched_in_priority_order(self, tmp_path, config) -> None:
        fetch = _fetcher({_CARD_URL: _card_page()})
        crawl_card(_CARD_URL, model=_model(_COMPLETE), config=config, fetch=fetch, output_dir=tmp_path)
        assert fetch.calls == [_CARD_URL, _TERMS_URL, _OFFERS_URL]

    def test_link_cap(self, tmp_path, config) -> None:
        fetch = _fetcher({_CARD_URL: _card_page()})
        capped = dataclasses.replace(config, max_links_to_process=1)
        crawl_card(_CARD_URL, model=_model(_COMPLETE), config=capped, fetch=fetch, output_dir=tmp_path)
        assert fetch.calls == [_CARD_URL, _TERMS_URL]

    def test_incomplete_data_is_not_persisted(self, tmp_path, config) -> None:
        fetch = _fetcher({_CARD_URL: _card_page()})
        result = crawl_card(_CARD_URL, model=_model(_NO_CONTENT), config=config, fetch=fetch, output_dir=tmp_path)

        assert result.valid is False
        assert result.reason == "incomplete_data"
        assert result.files == {}
        assert list(tmp_path.glob("*.json")) == []

    def test_main_fetch_failure_writes_error_record(self, tmp_path, config) -> None:
        result = crawl_card(_CARD_URL, model=_model(_COMPLETE), config=config, fetch=_fetcher({}), output_dir=tmp_path)

        assert result.valid is False
        assert result.reason == "extraction_error"
        assert "Failed to extract main content" in result.error
        [error_file] = tmp_path.glob("error_*.json")
        assert load_record(error_file)["metadata"]["data_quality"] == "error"

    def test_malformed_model_output_writes_error_record(self, tmp_path, config) -> None:
        fetch = _fetcher({_CARD_URL: _card_page()})
        result = crawl_card(_CARD_URL, model=_model("Sorry, no JSON today."), config=config, fetch=fetch, output_dir=tmp_path)

        assert result.reason == "extraction_error"
        assert "Invalid JSON" in result.error
        assert len(list(tmp_path.glob("error_*.json"))) == 1


# ---------------------------------------------------------------------------
# PDFs
# ---------------------------------------------------------------------------

class TestPdfPipeline:
    def test_pdf_skips_link_following(self, tmp_path, config) -> None:
        pdf = PageContent(url=_PDF_URL, title="Millennia MITC", text="Fees and charges " * 20, content_type="pdf")
        fetch = _fetcher({_PDF_URL: pdf})
        result = crawl_card(_PDF_URL, model=_model(_COMPLETE), config=config, fetch=fetch, output_dir=tmp_path)

        assert result.valid
        assert fetch.calls == [_PDF_URL]
        assert result.standard["metadata"]["data_quality"] == "complete"
        assert result.standard["metadata"]["pdf_info"]["title"] == "Millennia MITC"
        assert result.files["standard"].split("/")[-1].startswith("pdf_")

    def test_pdf_bar_ignores_card_identity(self, tmp_path, config) -> None:
        pdf = PageContent(url=_PDF_URL, title="Schedule of charges", text="Charges " * 30, content_type="pdf")
        payload = {"standard_format": {"card": {"name": None, "bank": None}}}
        result = crawl_card(_PDF_URL, model=_model(payload), config=config, fetch=_fetcher({_PDF_URL: pdf}), output_dir=tmp_path)
        assert result.valid

    def test_short_pdf_is_incomplete(self, tmp_path, config) -> None:
        pdf = PageContent(url=_PDF_URL, title="Scan", text="tiny", content_type="pdf")
        result = crawl_card(_PDF_URL, model=_model(_COMPLETE), config=config, fetch=_fetcher({_PDF_URL: pdf}), output_dir=tmp_path)

        assert result.reason == "incomplete_data"
        assert result.standard["metadata"]["data_quality"] == "minimal"

    def test_failed_pdf_error_file_has_prefix(self, tmp_path, config) -> None:
        fetch = lambda url: PageContent.failure(url, "download failed", "pdf")  # noqa: E731
        result = crawl_card(_PDF_URL, model=_model(_COMPLETE), config=config, fetch=fetch, output_dir=tmp_path)

        assert result.reason == "extraction_error"
        assert len(list(tmp_path.glob("pdf_error_*.json"))) == 1


# ---------------------------------------------------------------------------
# Node-level checks
# ---------------------------------------------------------------------------

class TestProcessLinksNode:
    def test_already_processed_urls_are_skipped(self, config) -> None:
        fetch = _fetcher({})
        deps = PipelineDeps(processor=CardProcessor(_model(_COMPLETE)), config=config, fetch=fetch)
        node = make_process_links(deps)

        update = node({"url": _CARD_URL, "main": _card_page(), "processed_urls": [_TERMS_URL]})

        assert fetch.calls == [_OFFERS_URL]
        assert _TERMS_URL in update["processed_urls"]
        assert _OFFERS_URL in update["processed_urls"]

    def test_rate_limiter_paces_every_fetch(self, config) -> None:
        limiter = MagicMock()
        deps = PipelineDeps(
            processor=CardProcessor(_model(_COMPLETE)), config=config, fetch=_fetcher({}), limiter=limiter
        )
        make_process_links(deps)({"url": _CARD_URL, "main": _card_page(), "processed_urls": []})
        assert limiter.wait.call_count == 2
