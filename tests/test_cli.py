"""Tests for the cardscout CLI commands."""

from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from cardscout.extraction.llm import TokenUsage
from cardscout.listing.models import ListingReport, UrlCheck
from cardscout.pipeline import CardResult
from cli.main import app

runner = CliRunner()

_CARD_URL = "https://www.examplebank.com/credit-cards/millennia-credit-card"
_LISTING_URL = "https://www.examplebank.com/credit-cards"

_ROWS_HTML = """\
<div class="row content-body">
  <div class="left-section"><div class="row-name">Fees</div></div>
  <div class="right-section"><ul><li>Joining fee Rs 500</li></ul></div>
</div>
"""


@pytest.fixture
def env(tmp_path, monkeypatch):
    """OpenAI provider with a key, output under tmp_path."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr("cardscout.config.settings.llm_provider", "openai")
    monkeypatch.setattr("cardscout.config.settings.output_dir", tmp_path)
    return tmp_path


def _valid_result():
    return CardResult(
        valid=True,
        standard={"card": {"name": "Millennia Credit Card", "bank": "Example Bank"}, "metadata": {"confidence_score": 0.8}},
        files={"standard": "out/std.json", "structured": "out/str.json"},
        usage=TokenUsage(100, 50),
    )


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

def test_run_single_card(env, monkeypatch):
    crawl = MagicMock(return_value=_valid_result())
    monkeypatch.setattr("cardscout.pipeline.crawl_card", crawl)

    result = runner.invoke(app, ["run", _CARD_URL])

    assert result.exit_code == 0
    assert "mode=single" in result.stdout
    assert "Millennia Credit Card" in result.stdout
    assert crawl.call_args.args[0] == _CARD_URL


def test_run_passes_overrides(env, monkeypatch):
    crawl = MagicMock(return_value=_valid_result())
    monkeypatch.setattr("cardscout.pipeline.crawl_card", crawl)

    runner.invoke(app, ["run", _CARD_URL, "--max-links", "3", "--delay-requests", "0.5"])

    config = crawl.call_args.kwargs["config"]
    assert config.max_links_to_process == 3
    assert config.delay_between_requests == 0.5


def test_run_invalid_result_exits_1(env, monkeypatch):
    monkeypatch.setattr(
        "cardscout.pipeline.crawl_card",
        MagicMock(return_value=CardResult(valid=False, reason="incomplete_data")),
    )
    result = runner.invoke(app, ["run", _CARD_URL])
    assert result.exit_code == 1
    assert "incomplete_data" in result.stdout


def test_run_listing_mode(env, monkeypatch):
    report = ListingReport(
        id="abc",
        listing_url=_LISTING_URL,
        scraped_at="2024-01-01T00:00:00Z",
        listing_summary={"cards_processed": 2, "total_urls_found": 3},
    )
    crawl = MagicMock(return_value=report)
    monkeypatch.setattr("cardscout.listing.crawl_listing", crawl)

    result = runner.invoke(app, ["run", _LISTING_URL])

    assert result.exit_code == 0
    assert "mode=listing" in result.stdout
    crawl.assert_called_once()


def test_run_listing_error_exits_1(env, monkeypatch):
    report = ListingReport(
        id="abc", listing_url=_LISTING_URL, scraped_at="", metadata={"error": "Listing extraction failed: boom"}
    )
    monkeypatch.setattr("cardscout.listing.crawl_listing", MagicMock(return_value=report))
    result = runner.invoke(app, ["run", _LISTING_URL])
    assert result.exit_code == 1
    assert "boom" in result.stdout


def test_run_force_single_on_listing_url(env, monkeypatch):
    crawl = MagicMock(return_value=_valid_result())
    monkeypatch.setattr("cardscout.pipeline.crawl_card", crawl)
    result = runner.invoke(app, ["run", _LISTING_URL, "--single"])
    assert result.exit_code == 0
    assert crawl.call_args.kwargs["config"].force_single_mode is True


def test_run_requires_url(env):
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 1
    assert "URL is required" in result.stdout


def test_run_rejects_both_mode_flags(env):
    result = runner.invoke(app, ["run", _CARD_URL, "--listing", "--single"])
    assert result.exit_code == 1


def test_run_requires_api_key(env, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY")
    result = runner.invoke(app, ["run", _CARD_URL])
    assert result.exit_code == 1
    assert "API key" in result.stdout


def test_run_key_not_needed_for_ollama(env, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY")
    monkeypatch.setattr("cardscout.config.settings.llm_provider", "ollama")
    monkeypatch.setattr("cardscout.pipeline.crawl_card", MagicMock(return_value=_valid_result()))
    result = runner.invoke(app, ["run", _CARD_URL])
    assert result.exit_code == 0


# ---------------------------------------------------------------------------
# sections
# ---------------------------------------------------------------------------

def test_sections_saves_output(env, monkeypatch):
    monkeypatch.setattr("cardscout.sections.fetch_html", lambda url: _ROWS_HTML)

    result = runner.invoke(app, ["sections", _CARD_URL])

    assert result.exit_code == 0
    assert "01. Fees (1 items)" in result.stdout
    assert len(list(env.glob("www_examplebank_com_sections_*.json"))) == 1


def test_sections_no_rows_exits_1(env, monkeypatch):
    monkeypatch.setattr("cardscout.sections.fetch_html", lambda url: "<html><body></body></html>")
    result = runner.invoke(app, ["sections", _CARD_URL])
    assert result.exit_code == 1
    assert "No sections found" in result.stdout


def test_sections_fetch_error_exits_1(env, monkeypatch):
    from cardscout.errors import FetchError

    def boom(url):
        raise FetchError("Could not fetch")

    monkeypatch.setattr("cardscout.sections.fetch_html", boom)
    result = runner.invoke(app, ["sections", _CARD_URL])
    assert result.exit_code == 1


# ---------------------------------------------------------------------------
# check-url / stats
# ---------------------------------------------------------------------------

def test_check_url_valid(monkeypatch):
    monkeypatch.setattr("cardscout.listing.url_check.check_url", lambda url: UrlCheck(valid=True, status_code=200))
    result = runner.invoke(app, ["check-url", _CARD_URL])
    assert result.exit_code == 0
    assert "200" in result.stdout


def test_check_url_invalid_exits_1(monkeypatch):
    monkeypatch.setattr(
        "cardscout.listing.url_check.check_url",
        lambda url: UrlCheck(valid=False, status_code=404, error="404 Not Found", error_type="NOT_FOUND_404"),
    )
    result = runner.invoke(app, ["check-url", _CARD_URL])
    assert result.exit_code == 1
    assert "NOT_FOUND_404" in result.stdout


def test_stats(env):
    (env / "pdf_examplebank_mitc_standard_2024.json").write_text("{}")
    (env / "error_2024.json").write_text("{}")
    result = runner.invoke(app, ["stats"])
    assert result.exit_code == 0
    assert "PDF extractions  : 1" in result.stdout
    assert "Errors           : 1" in result.stdout
