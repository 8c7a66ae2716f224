"""Tests for link relevance, classification and prioritisation."""

from __future__ import annotations

from cardscout.scraper.links import (
    PRIORITY,
    classify,
    extract_candidates,
    has_pdf_indicator,
    is_relevant,
    prioritize,
    registrable_domain,
    same_registrable_domain,
)
from cardscout.scraper.models import LinkCandidate, PageContent, RawLink

BASE = "https://www.examplebank.com/personal/pay/cards/credit-cards/millennia-credit-card"


def _link(href: str, text: str) -> RawLink:
    return RawLink(href=href, text=text, full_url=href if href.startswith("http") else "")


def _candidate(category: str, url: str = "https://x.example/") -> LinkCandidate:
    return LinkCandidate(
        url=url,
        anchor_text="",
        title="",
        original_href=url,
        category=category,  # type: ignore[arg-type]
        priority_rank=PRIORITY[category],
    )


# ---------------------------------------------------------------------------
# Domain helpers
# ---------------------------------------------------------------------------

class TestRegistrableDomain:
    def test_strips_subdomains(self) -> None:
        assert registrable_domain("https://offers.examplebank.com/x") == "examplebank.com"

    def test_compound_suffix(self) -> None:
        assert registrable_domain("https://www.examplebank.co.in/") == "examplebank.co.in"

    def test_same_domain_across_subdomains(self) -> None:
        assert same_registrable_domain("https://a.examplebank.com", "https://b.examplebank.com")

    def test_no_host_never_matches(self) -> None:
        assert not same_registrable_domain("/relative", "/relative")


# ---------------------------------------------------------------------------
# Relevance
# ---------------------------------------------------------------------------

class TestIsRelevant:
    def test_generic_pdf_link_is_relevant(self) -> None:
        assert is_relevant("click here", "/content/docs/mitc.pdf", BASE)

    def test_pdf_beats_irrelevant_pattern(self) -> None:
        assert is_relevant("Login guide", "https://elsewhere.example/login.pdf", BASE)

    def test_navigation_rejected(self) -> None:
        assert not is_relevant("Home", "https://www.examplebank.com/", BASE)

    def test_login_rejected_even_with_card_vocabulary(self) -> None:
        assert not is_relevant("Credit card login", "https://www.examplebank.com/login", BASE)

    def test_default_deny_without_relevant_pattern(self) -> None:
        assert not is_relevant("Our history", "https://www.examplebank.com/story", BASE)

    def test_relevant_same_domain_accepted(self) -> None:
        assert is_relevant("Dining offers", "https://www.examplebank.com/dining", BASE)

    def test_relative_href_resolved_against_base(self) -> None:
        assert is_relevant("Cashback programme", "/cashback", BASE)

    def test_relevant_but_foreign_domain_rejected(self) -> None:
        assert not is_relevant("Dining offers", "https://other-site.example/dining", BASE)

    def test_affiliated_domain_accepted(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "cardscout.scraper.links.settings.affiliated_domains", ["partnerportal.example"]
        )
        assert is_relevant("Shopping deals", "https://partnerportal.example/deals", BASE)

    def test_affiliated_subdomain_accepted(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "cardscout.scraper.links.settings.affiliated_domains", ["partnerportal.example"]
        )
        assert is_relevant("Shopping deals", "https://offers.partnerportal.example/deals", BASE)

    def test_affiliated_domain_in_query_string_rejected(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "cardscout.scraper.links.settings.affiliated_domains", ["partnerportal.example"]
        )
        assert not is_relevant("Shopping deals", "https://evil.example/deals?r=partnerportal.example", BASE)

    def test_deterministic(self) -> None:
        first = is_relevant("Reward points", "/rewards", BASE)
        assert all(is_relevant("Reward points", "/rewards", BASE) == first for _ in range(5))


class TestHasPdfIndicator:
    def test_terms_and_conditions_text(self) -> None:
        assert has_pdf_indicator("/tnc", "Terms and Conditions")

    def test_repository_path(self) -> None:
        assert has_pdf_indicator("/content/bbp/repositories/abc?path=/x.pdf", "Read")

    def test_plain_link(self) -> None:
        assert not has_pdf_indicator("/offers", "Offers")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassify:
    def test_click_here_pdf_is_pdf(self) -> None:
        assert classify("/docs/mitc.pdf", "click here") == "pdf"

    def test_terms(self) -> None:
        assert classify("/card-terms", "Card terms") == "terms"

    def test_offers(self) -> None:
        assert classify("/credit-card/offers", "Latest offers") == "offers"

    def test_rewards(self) -> None:
        assert classify("/credit-card/rewards", "Reward points") == "rewards"

    def test_partnerships(self) -> None:
        assert classify("/dining", "Dining partners") == "partnerships"

    def test_card_features(self) -> None:
        assert classify("/manage", "Manage your card") == "card_features"

    def test_general_fallback(self) -> None:
        assert classify("/credit-cards/millennia", "Know More") == "general"


class TestPrioritize:
    def test_orders_by_weight(self) -> None:
        ranked = prioritize([_candidate("general"), _candidate("offers"), _candidate("pdf")])
        assert [c.category for c in ranked] == ["pdf", "offers", "general"]

    def test_stable_within_category(self) -> None:
        a = _candidate("rewards", "https://x.example/a")
        b = _candidate("rewards", "https://x.example/b")
        assert prioritize([a, b]) == [a, b]


class TestExtractCandidates:
    def test_pdf_ranks_before_know_more(self) -> None:
        page = PageContent(
            url=BASE,
            title="Millennia",
            text="",
            links=(
                _link("https://www.examplebank.com/credit-cards/regalia-credit-card", "Know More"),
                _link("https://www.examplebank.com/content/terms.pdf", "Terms and Conditions"),
            ),
        )
        candidates = extract_candidates(page, BASE)
        assert [c.category for c in candidates] == ["pdf", "general"]
        assert candidates[0].url.endswith("terms.pdf")
        assert candidates[0].priority_rank == PRIORITY["pdf"]

    def test_duplicates_and_irrelevant_dropped(self) -> None:
        offer = _link("https://www.examplebank.com/offers", "Card offers")
        page = PageContent(
            url=BASE,
            title="",
            text="",
            links=(offer, offer, _link("https://www.examplebank.com/", "Home")),
        )
        candidates = extract_candidates(page, BASE)
        assert len(candidates) == 1
        assert candidates[0].category == "offers"

    def test_anchor_text_is_capped(self) -> None:
        long_text = "Credit card benefits " * 20
        page = PageContent(
            url=BASE,
            title="",
            text="",
            links=(_link("https://www.examplebank.com/benefits", long_text),),
        )
        [candidate] = extract_candidates(page, BASE)
        assert len(candidate.anchor_text) == 150
