"""Tests for the text normaliser."""

from __future__ import annotations

import pytest

from cardscout.text import normalize, truncate

_SAMPLES = [
    "",
    "   ",
    "Plain text",
    "Earn 5% cashback&nbsp;on   dining",
    "<b>Bold</b> and <i>italic</i>",
    "&lt;b&gt;escaped tag&lt;/b&gt;",
    "Quotes: “smart” and ‘single’",
    "Dash — en – minus −",
    "zero\u200bwidth\ufeff",
    "Arrow → next",
    "- leading bullet",
    "trailing dash -",
    "&amp;amp; double encoded",
    "Tom &amp; Jerry&hellip;",
]


class TestNormalize:
    def test_decodes_entities_and_collapses_whitespace(self) -> None:
        assert normalize("Earn 5% cashback&nbsp;on   dining") == "Earn 5% cashback on dining"

    def test_strips_tags(self) -> None:
        assert normalize("<p>Hello <b>world</b></p>") == "Hello world"

    def test_folds_unicode_punctuation(self) -> None:
        assert normalize("“PIXEL” — card") == '"PIXEL" - card'

    def test_removes_zero_width_characters(self) -> None:
        assert normalize("Mille\u200bnnia\ufeff") == "Millennia"

    def test_non_string_input_returns_empty(self) -> None:
        assert normalize(None) == ""
        assert normalize(42) == ""
        assert normalize(["a"]) == ""

    @pytest.mark.parametrize("sample", _SAMPLES)
    def test_idempotent(self, sample: str) -> None:
        once = normalize(sample)
        assert normalize(once) == once

    def test_escaped_tag_is_removed_after_decoding(self) -> None:
        assert normalize("&lt;b&gt;bold&lt;/b&gt;") == "bold"


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate("abc", 5) == "abc"

    def test_long_text_gets_ellipsis(self):
        assert truncate("abcdefgh", 3) == "abc..."
