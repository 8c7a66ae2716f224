"""Prompt builders for the card and listing extraction calls."""

from __future__ import annotations

import json
from typing import Iterable, Sequence

from cardscout.scraper.models import PageContent, ProcessedLink, RawLink

# ---------------------------------------------------------------------------
# Card extraction
# ---------------------------------------------------------------------------

CARD_SYSTEM_PROMPT = (
    "You are a JSON data processor with flexible output structure. "
    "You MUST respond with ONLY valid JSON.\n\n"
    "CRITICAL RESPONSE RULES:\n"
    "- Start with {\n"
    "- End with }\n"
    "- NO explanations\n"
    "- NO markdown blocks\n"
    "- NO comments\n"
    "- Only valid JSON syntax\n\n"
    "Extract credit card information and return both standard and structured "
    "formats. You may add additional fields, but only in standard_format."
)

STANDARD_TEMPLATE = {
    "card": {"name": "", "bank": "", "variant": "", "description": "", "target_audience": ""},
    "rewards": {
        "program": "",
        "type": "",
        "earning": {
            "base_rate": 0,
            "categories": [{
                "name": "", "rate": 0, "cap": None, "description": "",
                "terms_and_conditions": "", "how_to_earn": "", "validity": "", "exclusions": "",
            }],
            "bonus_rates": [{"condition": "", "rate": 0, "validity": "", "terms_and_conditions": ""}],
        },
        "redemption": [{
            "option": "", "minimum": None, "value": None, "process": "",
            "terms_and_conditions": "", "validity": "", "processing_time": "",
        }],
    },
    "benefits": [{
        "category": "", "name": "", "description": "", "how_to_avail": "", "value": "",
        "terms_and_conditions": "", "validity": "", "eligibility": "", "usage_limit": "",
    }],
    "current_offers": [{
        "title": "", "description": "", "validity": "", "terms_and_conditions": "",
        "activation_required": False, "how_to_activate": "", "eligibility": "",
        "maximum_benefit": "", "offer_code": "", "exclusions": "",
    }],
    "perks": [{
        "name": "", "description": "", "category": "", "usage_limit": "", "how_to_use": "",
        "terms_and_conditions": "", "value": "", "validity": "",
    }],
    "partnerships": [{
        "partner": "", "benefit": "", "category": "", "validity": "", "how_to_avail": "",
        "terms_and_conditions": "", "discount_percentage": "", "maximum_discount": "",
    }],
    "fees_and_charges": [{
        "type": "", "amount": "", "waiver_conditions": "", "frequency": "", "terms_and_conditions": "",
    }],
}

STRUCTURED_TEMPLATE = {
    "Metadata": {"PK": "CARD#BANK_NAME", "SK": "METADATA", "card_name": "", "issuer": "", "network": [], "type": "Credit Card", "category": []},
    "features": {"PK": "CARD#BANK_NAME", "SK": "FEATURES", "digital_onboarding": False, "contactless_payments": False, "customization_options": {}, "app_management": [], "security_features": []},
    "rewards": {"PK": "CARD#BANK_NAME", "SK": "REWARDS", "reward_currency": "", "cashback_program": [], "earning_structure": [], "redemption": {}},
    "fees": {"PK": "CARD#BANK_NAME", "SK": "FEES", "joining_fee": None, "renewal_fee": None, "tax_applicable": True, "renewal_waiver_condition": "", "joining_fee_waiver_condition": "", "other_charges": {}},
    "eligibility": {"PK": "CARD#BANK_NAME", "SK": "ELIGIBILITY", "salaried": {}, "self_employed": {}},
    "related_docs": {"PK": "CARD#BANK_NAME", "SK": "PDFS", "pdfs": []},
}

_FLEXIBILITY_RULES = """\
FLEXIBILITY RULES:
- You CAN add additional fields to any section in standard_format
- You CAN add new top-level sections in standard_format if needed
- Make sure all relevant information is captured in standard_format
- You CANNOT modify anything in structured_format; it must be exactly the format given
- Extract information ONLY from the provided content
- If information is not found, use null or appropriate empty values
- Be comprehensive but stay within the provided content scope

Return ONLY the JSON object with BOTH formats."""


def build_card_prompt(main: PageContent, linked: Sequence[ProcessedLink], url: str) -> str:
    """Main page and every linked page, untruncated, followed by the schema."""
    sections = [f"MAIN PAGE:\nURL: {url}\nTITLE: {main.title}\nCONTENT: {main.text}"]
    index = 0
    for link in linked:
        if not link.content.text:
            continue
        index += 1
        sections.append(f"LINKED PAGE {index}:\nURL: {link.url}\nCONTENT: {link.content.text}")

    schema = json.dumps(
        {"standard_format": STANDARD_TEMPLATE, "structured_format": STRUCTURED_TEMPLATE},
        indent=2,
    )
    return (
        "Extract credit card information from the provided content and return BOTH formats.\n\n"
        + "\n\n".join(sections)
        + "\n\nReturn JSON with BOTH formats - you can ADD additional fields as needed:\n"
        + schema
        + "\n\n"
        + _FLEXIBILITY_RULES
    )


# ---------------------------------------------------------------------------
# Listing extraction
# ---------------------------------------------------------------------------

LISTING_SYSTEM_PROMPT = """\
You are a specialized credit card URL extractor. You MUST respond with ONLY valid JSON.

CRITICAL RESPONSE RULES:
- Start response immediately with {
- End response with }
- NO explanations before or after JSON
- NO markdown code blocks
- Only valid JSON syntax

EXTRACTION MISSION:
Find ALL individual credit card page URLs from a listing page. Focus specifically on:

1. "Know More" buttons/links next to each card
2. "Learn More" / "View Details" / "Apply Now" links
3. Card names that are clickable links
4. Any clickable element that leads to individual card pages

Look for links containing card names, URLs ending with specific card
identifiers, and buttons or links inside card sections/containers."""

LISTING_TEXT_LIMIT = 12_000
LISTING_LINK_LIMIT = 50
LISTING_HTML_LIMIT = 5_000

_LISTING_FORMAT = {
    "cards": [{
        "name": "Specific Card Name (e.g. Millennia Credit Card)",
        "description": "Brief card description from page",
        "url": "Complete absolute URL to individual card page",
        "category": "Personal Credit Card",
        "key_features": ["feature1", "feature2"],
        "annual_fee": None,
        "link_context": "Know More / Learn More / View Details",
        "extraction_source": "Where you found this link",
    }],
    "total_cards_found": 0,
}


def listing_link_filter(link: RawLink, card_tokens: Iterable[str]) -> bool:
    """Pre-filter for links worth showing the model on a listing page."""
    href = (link.full_url or link.href).lower()
    text = (link.text or link.title).lower()
    return (
        "credit-card" in href
        or "/cards/" in href
        or any(phrase in text for phrase in ("know more", "learn more", "view details", "apply"))
        or any(token in href for token in card_tokens if token != "-credit-card")
    )


def build_listing_prompt(
    title: str,
    text: str,
    links: Sequence[RawLink],
    html: str,
    base_url: str,
) -> str:
    link_lines = "\n".join(
        f'- URL: {link.full_url or link.href or "N/A"}\n  TEXT: "{link.text or link.title or "N/A"}"'
        for link in links[:LISTING_LINK_LIMIT]
    )
    return f"""\
EXTRACT CREDIT CARD URLs FROM THIS LISTING PAGE:

BASE URL: {base_url}
PAGE TITLE: {title}

CONTENT TEXT (first {LISTING_TEXT_LIMIT} chars):
{text[:LISTING_TEXT_LIMIT]}

RELEVANT LINKS FOUND ON PAGE:
{link_lines}

HTML SAMPLE (first {LISTING_HTML_LIMIT} chars):
{html[:LISTING_HTML_LIMIT]}

EXTRACTION INSTRUCTIONS:
1. Look for individual credit card pages (NOT the main listing page)
2. Each card should have a "Know More" / "Learn More" / "View Details" button or link
3. Extract the URL that each button or link points to
4. URLs should contain specific card names or identifiers
5. Convert relative URLs to absolute using base URL: {base_url}

REQUIRED JSON FORMAT:
{json.dumps(_LISTING_FORMAT, indent=2)}

CRITICAL SUCCESS CRITERIA:
- Find the "Know More" / "Learn More" button URL for each card
- Each URL should lead to a SPECIFIC card's detail page
- Do NOT include the main listing page URL
- Look in BOTH the content text AND the links list

Return ONLY the JSON object with ALL credit card URLs you can find."""
