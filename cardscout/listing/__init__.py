"""Listing resolver: find, validate and crawl every card on a listing page.

Public API::

    from cardscout.listing import crawl_listing, detect_mode
    if detect_mode(url) == "listing":
        report = crawl_listing(url)
"""

from cardscout.listing.crawler import crawl_listing, validate_candidates
from cardscout.listing.extractor import ListingExtractor
from cardscout.listing.filters import is_valid_credit_card
from cardscout.listing.mode import ModePolicy, UrlPatternModePolicy, detect_mode
from cardscout.listing.models import CardCandidate, ListingReport, UrlCheck, ValidationOutcome
from cardscout.listing.url_check import check_url

__all__ = [
    "CardCandidate",
    "ListingExtractor",
    "ListingReport",
    "ModePolicy",
    "UrlCheck",
    "UrlPatternModePolicy",
    "ValidationOutcome",
    "check_url",
    "crawl_listing",
    "detect_mode",
    "is_valid_credit_card",
    "validate_candidates",
]
