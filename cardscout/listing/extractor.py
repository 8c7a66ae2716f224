"""Find candidate card URLs on a listing page.

One model call over the page text, a filtered link list and an HTML
sample.  When the prompt is over the token budget, or the model truncates
or returns malformed JSON, the chunked strategy takes over: candidates are
first read straight off the anchor list, then the model is asked about a
bounded number of fixed-size text windows, and the union is deduplicated
by ``(url, name)``.
"""

from __future__ import annotations

from typing import Any, List

from cardscout.config import Settings, settings
from cardscout.errors import MalformedModelResponse
from cardscout.extraction.lenient_json import parse_lenient
from cardscout.extraction.llm import StructuringModel, TokenUsage
from cardscout.extraction.prompts import (
    LISTING_SYSTEM_PROMPT,
    build_listing_prompt,
    listing_link_filter,
)
from cardscout.listing.filters import card_links_from_array, dedupe_candidates
from cardscout.listing.models import CardCandidate
from cardscout.pacing import RateLimiter
from cardscout.scraper.models import PageContent, RawLink

_FIRST_CHUNK_LINKS = 100


def _cards_from(data: Any) -> List[CardCandidate]:
    if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
        return []
    return [CardCandidate.from_dict(card) for card in data["cards"] if isinstance(card, dict)]


class ListingExtractor:
    def __init__(
        self,
        model: StructuringModel,
        config: Settings | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.model = model
        self.config = config or settings
        self._limiter = limiter or RateLimiter(self.config.delay_between_chunks)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _prompt_links(self, links: List[RawLink]) -> List[RawLink]:
        return [link for link in links if listing_link_filter(link, self.config.card_name_tokens)]

    def _ask(self, prompt: str, label: str) -> tuple[List[CardCandidate], TokenUsage, bool]:
        """Return ``(cards, usage, truncated)`` for one listing prompt.

        Raises:
            MalformedModelResponse: The response could not be parsed.
        """
        completion = self.model.complete(
            LISTING_SYSTEM_PROMPT,
            prompt,
            temperature=self.config.llm_temperature,
            max_tokens=self.config.listing_max_tokens,
            json_mode=True,
            label=label,
        )
        if completion.truncated:
            return [], completion.usage, True
        return _cards_from(parse_lenient(completion.text)), completion.usage, False

    def _extract_chunked(
        self, page: PageContent, base_url: str, usage: TokenUsage
    ) -> tuple[List[CardCandidate], TokenUsage]:
        print("[LISTING] Processing listing in chunks …")
        cards = card_links_from_array(page.links, base_url)
        if cards:
            print(f"[LISTING] {len(cards)} card link(s) found directly in the link list")

        size = max(1, self.config.listing_chunk_size)
        chunks = [page.text[i:i + size] for i in range(0, len(page.text), size)]
        limit = min(len(chunks), self.config.listing_max_chunks)
        print(f"[LISTING] {len(chunks)} text chunk(s); processing {limit}")

        for i in range(limit):
            self._limiter.wait()
            links = self._prompt_links(list(page.links[:_FIRST_CHUNK_LINKS])) if i == 0 else []
            prompt = build_listing_prompt(
                f"{page.title} (Part {i + 1})", chunks[i], links, "", base_url
            )
            try:
                found, chunk_usage, truncated = self._ask(prompt, f"LISTING {i + 1}")
            except Exception as exc:  # noqa: BLE001
                print(f"[LISTING] ✗ Chunk {i + 1} failed: {exc}")
                continue
            usage = usage + chunk_usage
            if truncated:
                print(f"[LISTING] ✗ Chunk {i + 1} truncated; skipping")
                continue
            print(f"[LISTING] Chunk {i + 1} found {len(found)} card(s)")
            cards.extend(found)

        unique = dedupe_candidates(cards)
        print(f"[LISTING] Total extracted: {len(cards)}, unique: {len(unique)}")
        return unique, usage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, page: PageContent, base_url: str) -> tuple[List[CardCandidate], TokenUsage]:
        """Return candidate cards and the token usage spent finding them.

        Never raises: a failure other than truncation or malformed output
        yields an empty list.
        """
        usage = TokenUsage()
        prompt = build_listing_prompt(
            page.title, page.text, self._prompt_links(list(page.links)), page.html, base_url
        )
        estimated = len(prompt) / 4
        if estimated > self.config.listing_token_budget:
            print(f"[LISTING] Content too long (~{round(estimated)} tokens); chunking")
            return self._extract_chunked(page, base_url, usage)

        try:
            cards, call_usage, truncated = self._ask(prompt, "LISTING")
        except MalformedModelResponse as exc:
            print(f"[LISTING] ✗ {exc}; retrying with chunks")
            return self._extract_chunked(page, base_url, usage)
        except Exception as exc:  # noqa: BLE001
            print(f"[LISTING] ✗ Listing extraction error: {exc}")
            return [], usage

        usage = usage + call_usage
        if truncated:
            print("[LISTING] Response was truncated; retrying with chunks")
            return self._extract_chunked(page, base_url, usage)

        print(f"[LISTING] Model found {len(cards)} card(s)")
        return cards, usage
