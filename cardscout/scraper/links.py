"""Link classification and prioritisation.

Decides which anchors on a card page are worth following and in which
order.  The classifier is default-deny: an anchor must look like a PDF, or
match the card vocabulary *and* stay on the bank's domain, to be followed.

Public API
----------
``has_pdf_indicator``   — does this anchor point at a document?
``is_relevant``         — should this anchor be followed at all?
``classify``            — assign a :data:`LinkCategory`.
``prioritize``          — stable sort by category weight.
``extract_candidates``  — all of the above over a fetched page.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, List
from urllib.parse import urljoin, urlparse

from cardscout.config import settings
from cardscout.scraper.models import LinkCandidate, LinkCategory, PageContent

PRIORITY: dict[str, int] = {
    "pdf": 10,
    "terms": 9,
    "offers": 8,
    "rewards": 7,
    "card_features": 6,
    "partnerships": 5,
    "general": 3,
}

MAX_ANCHOR_TEXT = 150

# Second-level labels under which a registrable domain spans three labels
# (``hdfcbank.co.in``, ``bank.co.uk``).
_COMPOUND_SUFFIXES = {"co", "com", "net", "org", "gov", "ac", "edu"}

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------

_IRRELEVANT = [re.compile(p, re.IGNORECASE) for p in (
    # navigation
    r"^home$", r"^contact$", r"^about$", r"^privacy", r"^sitemap$",
    r"^help$", r"^support$", r"^customer", r"^faq$",
    # generic banking
    r"netbanking", r"net.?banking", r"online.?banking", r"digital.?banking",
    r"business.?banking", r"\bsme\b", r"corporate", r"wealth",
    r"loan(?!.*card)", r"deposit", r"investment", r"mutual.?fund",
    r"insurance(?!.*card)", r"life.?insurance", r"health.?insurance",
    r"vehicle.?insurance", r"travel.?insurance", r"cyber.?insurance",
    r"personal.?accident", r"mediclaim", r"critical.?illness",
    # bill payments
    r"bill.?payment", r"premium.?payment", r"utility", r"electricity",
    r"gas.?bill", r"water.?bill", r"mobile.?recharge", r"\bdth\b",
    r"broadband", r"landline", r"donation", r"religious",
    # login and account management
    r"login", r"sign.?in", r"sign.?up", r"register", r"forgot.?password",
    r"reset.?password", r"\botp\b", r"verify", r"activate", r"enroll",
    # security
    r"netsafe", r"verified.?by.?visa", r"mastercard.?securecode",
    r"3d.?secure", r"fraud", r"security(?!.*card)", r"alert",
    r"statement(?!.*card)", r"passbook", r"cheque", r"\bdd\b",
    # learning
    r"learning.?centre", r"education", r"tutorial", r"guide(?!.*card)",
    r"calculator", r"blog(?!.*card)", r"news", r"press", r"media",
    # social
    r"facebook\.com", r"twitter\.com", r"instagram\.com",
    r"linkedin\.com", r"youtube\.com", r"whatsapp", r"telegram",
    # careers
    r"career", r"\bjobs?\b", r"investor", r"\bcsr\b", r"sustainability",
    # prepaid, gift and forex
    r"prepaid(?!.*credit)", r"gift.?card", r"forex.?card",
    # financial planning
    r"financial.?planning", r"retirement", r"pension", r"\btax\b",
    r"goal.?planning", r"save.?money", r"emergency.?fund",
    # app stores
    r"mobile.?app(?!.*card)", r"download.?app", r"app.?store", r"play.?store",
)]

_RELEVANT = [re.compile(p, re.IGNORECASE) for p in (
    # card vocabulary
    r"credit.?card", r"pixel", r"card.?benefit", r"card.?offer", r"card.?reward",
    r"card.?perk", r"card.?feature", r"card.?advantage", r"cardholder",
    # rewards
    r"cashback", r"cash.?back", r"reward.?point", r"redeem", r"earn.?point",
    r"loyalty", r"milestone", r"accelerated", r"bonus.?point",
    # offers
    r"offer", r"deal", r"discount", r"saving", r"promo", r"campaign",
    r"flat.*%", r"\d+%.*off", r"\d+%.*cashback", r"\d+x.*point",
    # partners and merchants
    r"partner", r"merchant", r"smart.?buy",
    r"dining", r"restaurant", r"food", r"travel", r"hotel", r"flight",
    r"shopping", r"fashion", r"grocery", r"fuel", r"petrol", r"gas.?station",
    r"entertainment", r"movie", r"bookmyshow", r"zomato", r"swiggy",
    r"makemytrip", r"uber", r"\bola\b", r"amazon", r"flipkart",
    r"myntra", r"nykaa", r"croma", r"reliance",
    # card management
    r"payzapp", r"pay.?zapp", r"my.?card", r"card.?control",
    r"\bemi\b", r"installment", r"pay.?in.?part", r"convert.?to.?emi",
    r"contactless", r"tap.?pay", r"scan.?pay", r"upi.*card",
    # card documentation
    r"terms.*card", r"condition.*card", r"fee.*card", r"charge.*card",
    r"eligibility.*card", r"apply.*card",
    r"\.pdf", r"document.*card", r"brochure.*card", r"guide.*card",
    r"click.*here.*card", r"know.*more.*card", r"learn.*more.*card",
    r"detail.*card", r"feature.*card", r"benefit.*card",
)]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _any_match(patterns: list[re.Pattern], *values: str) -> bool:
    return any(p.search(v) for p in patterns for v in values)


def registrable_domain(url: str) -> str:
    """Return the registrable part of *url*'s host (``www.hdfcbank.com`` →
    ``hdfcbank.com``).  Empty string for URLs without a host."""
    host = (urlparse(url).hostname or "").lower()
    labels = [label for label in host.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    if len(labels[-1]) == 2 and labels[-2] in _COMPOUND_SUFFIXES:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def same_registrable_domain(a: str, b: str) -> bool:
    da, db = registrable_domain(a), registrable_domain(b)
    return bool(da) and da == db


def _on_affiliated_domain(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return any(
        host == domain or host.endswith("." + domain)
        for domain in (d.lower() for d in settings.affiliated_domains)
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def has_pdf_indicator(href: str, text: str) -> bool:
    """Return ``True`` when the href or anchor text suggests a document."""
    h = href.lower()
    t = text.lower()
    return (
        ".pdf" in h
        or "/repositories/" in h
        or "?path=" in h
        or "pdf" in t
        or ("terms" in t and "condition" in t)
        or ("click here" in t and ("terms" in t or "condition" in t or "faq" in t))
        or "detailed terms" in t
        or "t&c" in t
        or "tnc" in t
    )


def is_relevant(anchor_text: str, href: str, base_url: str) -> bool:
    """Decide whether an anchor should be followed.

    1. Anything that looks like a PDF is accepted immediately.
    2. Anchors matching a navigation, account, generic banking or social
       pattern are rejected.
    3. What remains must match the card vocabulary **and** either live on
       the same registrable domain as *base_url*, look like a document, or
       belong to one of ``settings.affiliated_domains``.
    """
    text_l = anchor_text.lower()
    href_l = href.lower()

    if has_pdf_indicator(href, anchor_text):
        return True

    if _any_match(_IRRELEVANT, text_l, href_l):
        return False

    if not _any_match(_RELEVANT, text_l, href_l):
        return False

    resolved = urljoin(base_url, href)
    if same_registrable_domain(resolved, base_url):
        return True
    if ".pdf" in href_l or "repositories" in href_l:
        return True
    return _on_affiliated_domain(resolved)


def classify(href: str, text: str) -> LinkCategory:
    """Assign a category, checked in priority order; the fallback is ``general``."""
    h = href.lower()
    t = text.lower()
    mentions_card = "card" in t or "card" in h

    if has_pdf_indicator(href, text) or (
        "click" in t and ("terms" in t or "condition" in t or "faq" in t)
    ):
        return "pdf"
    if ("term" in t or "condition" in t or "faq" in t) and mentions_card:
        return "terms"
    if ("offer" in t or "deal" in t or "promo" in t) and (mentions_card or "smartbuy" in h):
        return "offers"
    if any(w in t for w in ("reward", "point", "cashback", "benefit", "perk")) and mentions_card:
        return "rewards"
    if (
        "partner" in t or "merchant" in t or "smartbuy" in h
        or "dining" in t or "travel" in t or "shopping" in t
    ):
        return "partnerships"
    if "card" in t and any(w in t for w in ("feature", "control", "manage", "payzapp", "emi")):
        return "card_features"
    return "general"


def prioritize(links: Iterable[LinkCandidate]) -> List[LinkCandidate]:
    """Stable sort, highest category weight first."""
    return sorted(links, key=lambda link: -PRIORITY.get(link.category, 0))


def extract_candidates(page: PageContent, base_url: str) -> List[LinkCandidate]:
    """Turn the anchors of *page* into a prioritised list of follow targets.

    Anchor text is cut to 150 characters and duplicates (by resolved URL)
    keep their first occurrence.
    """
    print(f"[LINKS] Inspecting {len(page.links)} anchor(s) on {base_url}")
    seen: set[str] = set()
    candidates: List[LinkCandidate] = []

    for link in page.links:
        if not is_relevant(link.text, link.href, base_url):
            continue
        url = link.full_url or urljoin(base_url, link.href)
        if url in seen:
            continue
        seen.add(url)
        category = classify(link.href, link.text)
        candidates.append(
            LinkCandidate(
                url=url,
                anchor_text=link.text[:MAX_ANCHOR_TEXT],
                title=link.title,
                original_href=link.href,
                category=category,
                priority_rank=PRIORITY[category],
            )
        )

    ranked = prioritize(candidates)
    print(f"[LINKS] {len(ranked)} relevant link(s) to follow")
    for category, count in Counter(c.category for c in ranked).most_common():
        print(f"[LINKS]   {category}: {count}")
    return ranked
