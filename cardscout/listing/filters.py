"""Pure heuristics over listing candidates: the content filter, the
no-model link-array extractor and candidate normalisation."""

from __future__ import annotations

import re
from typing import Iterable, List
from urllib.parse import urljoin, urlparse

from cardscout.listing.models import CardCandidate
from cardscout.scraper.models import RawLink

EXCLUDE_TOKENS = (
    "business", "corporate", "commercial", "enterprise", "debit", "prepaid",
    "gift-card", "forex", "travel-card", "salary-account", "savings-account",
    "loan", "insurance", "mutual-fund", "investment",
)

INCLUDE_TOKENS = (
    "credit-card", "credit card", "creditcard", "rewards", "cashback",
    "points", "platinum", "gold", "premium", "prime", "elite",
)

# URL token → display name for well-known card pages.
_KNOWN_CARD_NAMES = [
    ("pixel-play", "PIXEL Play Credit Card"),
    ("freedom", "Freedom Credit Card"),
    ("millennia", "Millennia Credit Card"),
    ("regalia", "Regalia Credit Card"),
    ("diners", "Diners Club Credit Card"),
    ("moneyback", "MoneyBack Credit Card"),
    ("indianoil", "IndianOil Credit Card"),
    ("infinia", "INFINIA Credit Card"),
    ("marriott", "Marriott Bonvoy Credit Card"),
    ("irctc", "IRCTC Credit Card"),
]

_LINK_PHRASES = ("know more", "learn more", "view details")


def is_valid_credit_card(candidate: CardCandidate) -> bool:
    """Content filter: reject on any exclusion token, then require an
    inclusion token in the URL, name or description."""
    if not candidate.url or not candidate.name:
        print("[LISTING] Filtering out candidate with missing URL or name")
        return False

    url = candidate.url.lower()
    name = candidate.name.lower()
    description = candidate.description.lower()

    if any(token in url or token in name or token in description for token in EXCLUDE_TOKENS):
        print(f"[LISTING] Filtering out {candidate.name!r}: excluded product type")
        return False

    if not any(
        token.replace(" ", "-") in url or token in name or token in description
        for token in INCLUDE_TOKENS
    ):
        print(f"[LISTING] Filtering out {candidate.name!r}: no credit card indicators")
        return False
    return True


def card_name_from_url(url: str) -> str | None:
    lowered = url.lower()
    for token, name in _KNOWN_CARD_NAMES:
        if token in lowered:
            return name
    parts = [p for p in urlparse(url).path.split("/") if len(p) > 3]
    if parts and "-" in parts[-1]:
        words = [w for w in parts[-1].split("-") if w]
        title = " ".join(w[:1].upper() + w[1:] for w in words)
        return title if title.lower().endswith("credit card") else f"{title} Credit Card"
    return None


def card_name_from_text(text: str) -> str | None:
    lowered = text.lower()
    for token, name in _KNOWN_CARD_NAMES:
        if token.split("-")[0] in lowered:
            return name
    return None


def card_links_from_array(links: Iterable[RawLink], base_url: str) -> List[CardCandidate]:
    """Heuristic candidates straight from the anchor list, no model call."""
    found: List[CardCandidate] = []
    for link in links:
        href = link.full_url or link.href
        href_l = href.lower()
        text = (link.text or link.title or "").lower()

        looks_like_card = (
            "credit-card" in href_l
            or "/cards/" in href_l
            or any(phrase in text for phrase in _LINK_PHRASES)
        )
        personal = not any(word in href_l for word in ("business", "corporate", "debit"))
        if not (looks_like_card and personal) or href == base_url:
            continue

        found.append(
            CardCandidate(
                name=card_name_from_url(href) or card_name_from_text(text) or "Unknown Card",
                url=urljoin(base_url, href),
                description=f"Credit card extracted from {text}",
                link_context=text,
                extraction_source="links_array",
            )
        )
    return found


def normalize_candidate(candidate: CardCandidate, base_url: str) -> CardCandidate:
    """Absolute URL, single-spaced name, default category."""
    return CardCandidate(
        name=re.sub(r"\s+", " ", candidate.name).strip(),
        url=urljoin(base_url, candidate.url),
        description=candidate.description,
        category=candidate.category or "Personal Credit Card",
        key_features=candidate.key_features,
        annual_fee=candidate.annual_fee,
        link_context=candidate.link_context,
        extraction_source=candidate.extraction_source,
        extras=candidate.extras,
    )


def dedupe_candidates(candidates: Iterable[CardCandidate]) -> List[CardCandidate]:
    """Keep the first candidate for each ``(url, name)`` pair."""
    seen: set[tuple[str, str]] = set()
    unique: List[CardCandidate] = []
    for candidate in candidates:
        key = (candidate.url, candidate.name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique
