"""Decide whether a URL is a single card page or a listing of cards."""

from __future__ import annotations

from typing import Literal, Protocol

from cardscout.config import Settings, settings

Mode = Literal["single", "listing"]


class ModePolicy(Protocol):
    def mode_for(self, url: str) -> Mode: ...


class UrlPatternModePolicy:
    """Substring heuristics over the URL.

    A card-name token wins over a listing pattern, so
    ``/credit-cards/millennia`` is a single card even though it contains
    ``/credit-cards``.  Anything unmatched is treated as a single card.
    """

    def __init__(self, card_name_tokens: list[str], listing_patterns: list[str]) -> None:
        self.card_name_tokens = [t.lower() for t in card_name_tokens]
        self.listing_patterns = [p.lower() for p in listing_patterns]

    @classmethod
    def from_settings(cls, config: Settings) -> UrlPatternModePolicy:
        return cls(config.card_name_tokens, config.listing_url_patterns)

    def mode_for(self, url: str) -> Mode:
        lowered = url.lower()
        if any(token in lowered for token in self.card_name_tokens):
            return "single"
        if any(pattern in lowered for pattern in self.listing_patterns):
            return "listing"
        return "single"


def detect_mode(
    url: str,
    config: Settings | None = None,
    policy: ModePolicy | None = None,
) -> Mode:
    """Return ``"listing"`` or ``"single"`` for *url*.

    ``force_listing_mode`` and ``force_single_mode`` bypass the policy.
    """
    cfg = config or settings
    if cfg.force_listing_mode:
        return "listing"
    if cfg.force_single_mode:
        return "single"
    return (policy or UrlPatternModePolicy.from_settings(cfg)).mode_for(url)
