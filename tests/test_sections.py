"""Tests for non-AI section extraction, linked-content attachment, the
section formatters and the summary counts."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
import respx

from cardscout.errors import FetchError
from cardscout.scraper.models import PageContent
from cardscout.sections import (
    attach_linked_content,
    extract_sections,
    fetch_html,
    format_sections,
    summarize_sections,
    summary_totals,
)
from cardscout.sections.formatter import (
    PDF_PARAGRAPH_LIMIT,
    format_pdf_content,
    format_rewards_section,
    format_standard_section,
    format_steps_section,
    format_webpage_content,
)

_PAGE_URL = "https://www.examplebank.com/credit-cards/pixel-play"
_FEES_PDF = "https://www.examplebank.com/docs/fees.pdf"

_ROWS_HTML = """\
<html><body>
<div class="row content-body">
  <div class="left-section"><div class="row-name">Rewards&#8203;</div></div>
  <div class="right-section">
    <p>Earn cashback on every spend.</p>
    <ul>
      <li>5% cashback on Amazon</li>
      <li>Milestone benefits<br/>- Rs 1,000 voucher<br/>- Click here for details</li>
    </ul>
  </div>
</div>
<div class="row content-body">
  <div class="left-section"><h4>Fees and Charges</h4></div>
  <div class="right-section">
    <p>Joining fee Rs 1,000</p>
    <a href="/docs/fees.pdf">Schedule of charges</a>
    <a href="javascript:void(0)">Apply</a>
  </div>
</div>
<div class="row content-body">
  <div class="left-section"><div class="row-name">How to Apply?</div></div>
  <div class="right-section">
    <ul><li>Step 1: Visit the website</li><li>Step 2: Fill the form</li></ul>
  </div>
</div>
<div class="row content-body">
  <div class="left-section"></div>
  <div class="right-section"><p>Row without a title</p></div>
</div>
<div class="row content-body">
  <div class="left-section"><div class="row-name">Empty</div></div>
  <div class="right-section"></div>
</div>
</body></html>
"""


@pytest.fixture
def raw():
    return extract_sections(_ROWS_HTML, _PAGE_URL)


def _pdf_fetch(url: str) -> PageContent:
    return PageContent(url=url, title="Fees", text="Annual fee Rs 500. Waived on Rs 1 lakh spends.", content_type="pdf")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class TestExtractSections:
    def test_titles_in_page_order(self, raw) -> None:
        assert list(raw) == ["Rewards", "Fees and Charges", "How to Apply?"]

    def test_item_types(self, raw) -> None:
        assert raw["Rewards"] == [
            {"type": "paragraph", "text": "Earn cashback on every spend."},
            {"type": "list_item", "text": "5% cashback on Amazon"},
            {
                "type": "list_item_with_sub",
                "main": "Milestone benefits",
                "sub_items": ["- Rs 1,000 voucher", "- Click here for details"],
            },
        ]

    def test_links_resolved_and_script_links_skipped(self, raw) -> None:
        links = [item for item in raw["Fees and Charges"] if item["type"] == "link"]
        assert links == [{"type": "link", "text": "Schedule of charges", "url": _FEES_PDF}]

    def test_custom_row_selector(self) -> None:
        html = '<section class="feature"><h4>Perks</h4><p>Lounge access</p></section>'
        assert extract_sections(html, _PAGE_URL, "section.feature") == {
            "Perks": [{"type": "paragraph", "text": "Lounge access"}]
        }

    def test_row_without_structure_falls_back_to_text(self) -> None:
        html = '<div class="row content-body"><h4>Note</h4><span>Plain text only</span></div>'
        sections = extract_sections(html, _PAGE_URL)
        assert sections["Note"] == [{"type": "text", "text": "NotePlain text only"}]


class TestFetchHtml:
    @respx.mock
    def test_returns_body(self) -> None:
        respx.get(_PAGE_URL).mock(return_value=httpx.Response(200, text=_ROWS_HTML))
        assert fetch_html(_PAGE_URL) == _ROWS_HTML

    @respx.mock
    def test_http_error_raises(self) -> None:
        respx.get(_PAGE_URL).mock(return_value=httpx.Response(500))
        with pytest.raises(FetchError):
            fetch_html(_PAGE_URL)


class TestAttachLinkedContent:
    def test_pdf_content_follows_link(self, raw) -> None:
        enriched = attach_linked_content(raw, _pdf_fetch, limiter=MagicMock())
        items = enriched["Fees and Charges"]
        assert [item["type"] for item in items] == ["paragraph", "link", "pdf_content"]
        assert items[2]["source_url"] == _FEES_PDF
        assert items[2]["content"] == ["Annual fee Rs 500. Waived on Rs 1 lakh spends."]

    def test_input_not_mutated(self, raw) -> None:
        before = len(raw["Fees and Charges"])
        attach_linked_content(raw, _pdf_fetch, limiter=MagicMock())
        assert len(raw["Fees and Charges"]) == before

    def test_each_url_fetched_once(self) -> None:
        link = {"type": "link", "text": "Terms", "url": _FEES_PDF}
        fetch = MagicMock(side_effect=_pdf_fetch)
        enriched = attach_linked_content({"A": [link], "B": [link]}, fetch, limiter=MagicMock())
        assert fetch.call_count == 1
        assert enriched["B"][1]["type"] == "pdf_content"

    def test_failed_fetch_becomes_link_error(self) -> None:
        link = {"type": "link", "text": "Offers", "url": "https://www.examplebank.com/offers"}
        fetch = lambda url: PageContent.failure(url, "HTTP 404")  # noqa: E731
        enriched = attach_linked_content({"A": [link]}, fetch, limiter=MagicMock())
        assert enriched["A"][1] == {
            "type": "link_error",
            "source_url": "https://www.examplebank.com/offers",
            "error": "HTTP 404",
        }

    def test_webpage_content_is_typed_blocks(self) -> None:
        link = {"type": "link", "text": "Offers", "url": "https://www.examplebank.com/offers"}
        page = PageContent(url=link["url"], title="Offers", text="", html="<h2>Dining</h2><p>15% off</p>")
        enriched = attach_linked_content({"A": [link]}, lambda url: page, limiter=MagicMock())
        assert enriched["A"][1]["content"] == [
            {"type": "heading", "text": "Dining", "level": 2},
            {"type": "paragraph", "text": "15% off"},
        ]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

class TestRewardsShaper:
    def test_groups_sub_bullets_and_drops_paragraphs(self, raw) -> None:
        assert format_rewards_section(raw["Rewards"]) == [
            "5% cashback on Amazon",
            {"title": "Milestone benefits:", "items": ["Rs 1,000 voucher"]},
        ]

    def test_duplicates_removed(self) -> None:
        items = [{"type": "list_item", "text": "5% cashback"}, {"type": "list_item", "text": "5%  cashback"}]
        assert format_rewards_section(items) == ["5% cashback"]


class TestStandardShaper:
    def test_boilerplate_dropped(self) -> None:
        items = [
            {"type": "paragraph", "text": "Joining fee Rs 1,000"},
            {"type": "paragraph", "text": "Click here to know more"},
        ]
        assert format_standard_section(items) == ["Joining fee Rs 1,000"]

    def test_group_without_sub_items_is_plain_text(self) -> None:
        items = [{"type": "list_item_with_sub", "main": "Fuel waiver", "sub_items": ["Click here"]}]
        assert format_standard_section(items) == ["Fuel waiver"]

    def test_linked_content_passed_through(self, raw) -> None:
        enriched = attach_linked_content(raw, _pdf_fetch, limiter=MagicMock())
        entries = format_standard_section(enriched["Fees and Charges"])
        assert entries[0] == "Joining fee Rs 1,000"
        assert entries[1] == {"type": "reference_link", "text": "Schedule of charges", "url": _FEES_PDF}
        assert entries[2]["type"] == "pdf_document"


class TestStepsShaper:
    def test_steps_collected(self, raw) -> None:
        assert format_steps_section(raw["How to Apply?"]) == [
            {"step": "Step 1", "description": "Visit the website"},
            {"step": "Step 2", "description": "Fill the form"},
        ]

    def test_steps_follow_other_entries(self) -> None:
        items = [
            {"type": "list_item", "text": "Step 1: Log in"},
            {"type": "paragraph", "text": "Keep your card handy."},
            {"type": "list_item", "text": "1. Eligibility applies"},
        ]
        assert format_steps_section(items) == [
            "Keep your card handy.",
            "1. Eligibility applies",
            {"step": "Step 1", "description": "Log in"},
        ]

    def test_sub_items_attach_to_current_step(self) -> None:
        items = [
            {"type": "list_item_with_sub", "main": "Step 1: Open the app", "sub_items": ["Go to Cards"]},
            {"type": "list_item_with_sub", "main": "Then choose", "sub_items": ["Activate"]},
        ]
        assert format_steps_section(items) == [
            {"step": "Step 1", "description": "Open the app", "sub_items": ["Go to Cards", "Then choose", "Activate"]},
        ]


class TestLinkedContentFormatters:
    def test_pdf_paragraphs_cleaned_and_split(self) -> None:
        long_paragraph = "This is a sentence about fees. " * 20
        assert len(long_paragraph) > PDF_PARAGRAPH_LIMIT
        formatted = format_pdf_content({
            "type": "pdf_content",
            "source_url": _FEES_PDF,
            "status": "success",
            "content": ["tiny", "Annual&nbsp;fee   Rs 500", long_paragraph],
        })
        assert formatted["type"] == "pdf_document"
        assert formatted["content"][0] == "Annual fee Rs 500"
        assert formatted["content"][1] == "This is a sentence about fees."
        assert len(formatted["content"]) == 21

    def test_pdf_error(self) -> None:
        formatted = format_pdf_content({"source_url": _FEES_PDF, "status": "error", "error": "timeout"})
        assert formatted == {"type": "pdf_document", "source_url": _FEES_PDF, "status": "error", "error": "timeout"}

    def test_webpage_short_blocks_dropped(self) -> None:
        formatted = format_webpage_content({
            "source_url": "https://www.examplebank.com/offers",
            "content": [
                {"type": "heading", "text": "Dining offers", "level": 2},
                {"type": "paragraph", "text": "Hi"},
                {"type": "list_item", "text": "15% off at partner restaurants"},
            ],
        })
        assert formatted["content"] == [
            {"type": "heading", "content": "Dining offers", "level": 2},
            {"type": "list_item", "content": "15% off at partner restaurants"},
        ]


class TestFormatSections:
    def test_shaper_chosen_by_title(self, raw) -> None:
        formatted = format_sections(raw)
        assert formatted["How to Apply?"][0] == {"step": "Step 1", "description": "Visit the website"}
        assert "Earn cashback on every spend." not in formatted["Rewards"]

    def test_empty_sections_dropped(self) -> None:
        assert format_sections({"Notes": [{"type": "paragraph", "text": "Click here to know more"}]}) == {}


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

class TestSummary:
    def test_counts(self, raw) -> None:
        formatted = format_sections(attach_linked_content(raw, _pdf_fetch, limiter=MagicMock()))
        summary = summarize_sections(formatted)

        assert summary["Rewards"] == {"total_items": 3, "linked_content": 0, "pdfs": 0, "webpages": 0, "errors": 0}
        assert summary["Fees and Charges"] == {
            "total_items": 3, "linked_content": 2, "pdfs": 1, "webpages": 0, "errors": 0,
        }

    def test_errors_counted(self) -> None:
        summary = summarize_sections({"A": [{"type": "link_error", "source_url": "x", "error": "404"}]})
        assert summary["A"]["errors"] == 1
        assert summary["A"]["linked_content"] == 1

    def test_totals(self, raw) -> None:
        totals = summary_totals(summarize_sections(format_sections(raw)))
        assert totals["sections"] == 3
        assert totals["total_items"] == 3 + 2 + 2
