"""Tests for JSON persistence."""

from __future__ import annotations

from datetime import datetime, timezone

from cardscout.extraction.records import StandardRecord, error_record
from cardscout.storage import (
    load_record,
    output_stats,
    save_card_results,
    save_error_record,
    save_listing_report,
    save_sections,
    slugify,
    timestamp_slug,
)

_URL = "https://www.examplebank.com/credit-cards/millennia-credit-card"


def _standard() -> dict:
    payload = {
        "card": {"name": "Millennia Credit Card", "bank": "Example Bank", "variant": None},
        "rewards": {
            "program": "CashBack",
            "type": "cashback",
            "earning": {"base_rate": 1.5, "categories": [{"name": "Online", "rate": 0.05}]},
            "redemption": [],
        },
        "benefits": [{"title": "Lounge access", "visits": 8}],
        "fees_and_charges": [{"fee": "Annual", "amount": 1000.0}],
        "highlights": ["₹1,000 welcome voucher"],
    }
    record = StandardRecord.from_model_output(payload, url=_URL, scraped_at="2024-05-01T10:00:00.000Z")
    record.metadata = {"confidence_score": 0.75, "missing_data": ["perks"]}
    return record.to_dict()


class TestSlugs:
    def test_slugify(self) -> None:
        assert slugify("Example Bank", "unknown") == "examplebank"
        assert slugify(None, "unknown") == "unknown"
        assert slugify("!!!", "document") == "document"

    def test_timestamp_slug(self) -> None:
        moment = datetime(2024, 5, 1, 10, 30, 15, 123000, tzinfo=timezone.utc)
        assert timestamp_slug(moment) == "2024-05-01T10-30-15-123Z"


class TestSaveCardResults:
    def test_file_names(self, tmp_path) -> None:
        saved = save_card_results(_standard(), {"Metadata": {}}, output_dir=tmp_path)
        assert saved.standard_path.name.startswith("examplebank_millenniacreditcard_standard_")
        assert saved.structured_path.name.startswith("examplebank_millenniacreditcard_structured_")

    def test_pdf_prefix(self, tmp_path) -> None:
        saved = save_card_results(_standard(), {}, is_pdf=True, output_dir=tmp_path)
        assert saved.standard_path.name.startswith("pdf_")

    def test_round_trip_is_exact(self, tmp_path) -> None:
        saved = save_card_results(_standard(), {"Metadata": {"PK": "CARD#X"}}, output_dir=tmp_path)
        assert load_record(saved.standard_path) == saved.standard
        assert load_record(saved.structured_path) == {"Metadata": {"PK": "CARD#X"}}

    def test_floats_and_unicode_survive(self, tmp_path) -> None:
        saved = save_card_results(_standard(), {}, output_dir=tmp_path)
        loaded = load_record(saved.standard_path)
        assert loaded["rewards"]["earning"]["base_rate"] == 1.5
        assert isinstance(loaded["fees_and_charges"][0]["amount"], float)
        assert loaded["highlights"] == ["₹1,000 welcome voucher"]
        assert "₹" in saved.standard_path.read_text(encoding="utf-8")

    def test_input_not_mutated(self, tmp_path) -> None:
        standard = _standard()
        save_card_results(standard, {}, output_dir=tmp_path)
        assert "files_generated" not in standard["metadata"]

    def test_files_generated_recorded(self, tmp_path) -> None:
        saved = save_card_results(_standard(), {}, output_dir=tmp_path)
        files = saved.standard["metadata"]["files_generated"]
        assert files["standard"] == saved.standard_path.name
        assert files["structured"] == saved.structured_path.name


class TestOtherWriters:
    def test_error_record(self, tmp_path) -> None:
        path = save_error_record(error_record(_URL, "boom", "web"), output_dir=tmp_path)
        assert path.name.startswith("error_")
        assert load_record(path)["metadata"]["error"] == "boom"

    def test_listing_report_name(self, tmp_path) -> None:
        path = save_listing_report({"cards": []}, "https://www.examplebank.com/credit-cards", tmp_path)
        assert path.name.startswith("www_examplebank_com_listing_standard_")

    def test_sections_name(self, tmp_path) -> None:
        path = save_sections({"sections": {}}, _URL, tmp_path)
        assert path.name.startswith("www_examplebank_com_sections_")

    def test_default_directory_from_settings(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("cardscout.config.settings.output_dir", tmp_path / "out")
        path = save_error_record(error_record(_URL, "boom", "pdf"), is_pdf=True)
        assert path.parent == tmp_path / "out"
        assert path.name.startswith("pdf_error_")


class TestOutputStats:
    def test_counts(self, tmp_path) -> None:
        save_card_results(_standard(), {}, output_dir=tmp_path)
        save_card_results(_standard(), {}, is_pdf=True, output_dir=tmp_path)
        save_error_record(error_record(_URL, "boom", "web"), output_dir=tmp_path)
        save_listing_report({}, "https://www.examplebank.com/credit-cards", tmp_path)

        stats = output_stats(tmp_path)
        assert stats["web_extractions"] == 1
        assert stats["pdf_extractions"] == 1
        assert stats["errors"] == 1
        assert stats["listing_reports"] == 1
        assert stats["success_rate"] == 67

    def test_missing_directory(self, tmp_path) -> None:
        stats = output_stats(tmp_path / "nope")
        assert stats["total_files"] == 0
        assert stats["success_rate"] == 0
