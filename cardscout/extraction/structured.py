"""The key-indexed ``structured`` record and its best-effort derivation.

When the model returns only the standard shape, :func:`derive_structured`
rebuilds the structured one from it by keyword search over the serialised
record.  The derivation is approximate; it only reports what it can find
and leaves unknown values empty rather than guessing.
"""

from __future__ import annotations

import json
import re
from typing import Any

SECTION_KEYS: dict[str, str] = {
    "Metadata": "METADATA",
    "features": "FEATURES",
    "rewards": "REWARDS",
    "fees": "FEES",
    "eligibility": "ELIGIBILITY",
    "related_docs": "PDFS",
}

_NETWORKS = [("visa", "Visa"), ("mastercard", "Mastercard"), ("rupay", "RuPay"), ("amex", "American Express"), ("diners", "Diners Club")]
_CATEGORIES = [
    ("cashback", "Cashback"),
    ("travel", "Travel"),
    ("lifestyle", "Lifestyle"),
    ("premium", "Premium"),
    ("reward", "Rewards"),
    ("digital", "Digital"),
    ("fuel", "Fuel"),
]

_JOINING_FEE_RES = [re.compile(r"joining.*?fee.*?(?:₹|rs\.?|inr)?\s*(\d[\d,]*)"), re.compile(r"(?:₹|rs\.?)\s*(\d[\d,]*).*?joining")]
_RENEWAL_FEE_RES = [re.compile(r"renewal.*?fee.*?(?:₹|rs\.?|inr)?\s*(\d[\d,]*)"), re.compile(r"annual.*?fee.*?(?:₹|rs\.?|inr)?\s*(\d[\d,]*)")]
_RENEWAL_WAIVER_RE = re.compile(r"waiver.*?(?:₹|rs\.?|inr)\s*(\d[\d,]*)")
_JOINING_WAIVER_RE = re.compile(r"joining.*?waiver.*?(?:₹|rs\.?|inr)\s*(\d[\d,]*)")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _blob(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, default=str).lower()


def _first_int(patterns: list[re.Pattern], text: str) -> int | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1).replace(",", ""))
    return None


def _sections(pk: str, **bodies: dict[str, Any]) -> dict[str, Any]:
    return {
        name: {"PK": pk, "SK": sk, **bodies.get(name, {})}
        for name, sk in SECTION_KEYS.items()
    }


def _categories(data: dict[str, Any]) -> list[dict[str, Any]]:
    rewards = data.get("rewards") if isinstance(data.get("rewards"), dict) else {}
    earning = rewards.get("earning") if isinstance(rewards.get("earning"), dict) else {}
    categories = earning.get("categories")
    return [c for c in categories if isinstance(c, dict)] if isinstance(categories, list) else []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def partition_key(bank: str | None, card_name: str | None) -> str:
    """``CARD#<BANK>_<CARD>`` with spaces (bank) and non-alphanumerics (card)
    replaced by underscores."""
    bank_part = re.sub(r"\s+", "_", str(bank or "Unknown Bank").upper())
    card_part = re.sub(r"[^A-Z0-9]", "_", str(card_name or "Unknown Card").upper())
    return f"CARD#{bank_part}_{card_part}"


def derive_structured(standard: dict[str, Any]) -> dict[str, Any]:
    """Build the structured shape from a standard-shaped dict."""
    card = standard.get("card") if isinstance(standard.get("card"), dict) else {}
    card_name = card.get("name") or "Unknown Card"
    issuer = card.get("bank") or "Unknown Bank"
    pk = partition_key(issuer, card_name)
    text = _blob(standard)
    categories = _categories(standard)
    rewards = standard.get("rewards") if isinstance(standard.get("rewards"), dict) else {}
    redemption = rewards.get("redemption") if isinstance(rewards.get("redemption"), list) else []

    app_features = [
        label
        for token, label in (("emi", "EMI Dashboard"), ("transaction", "Recent Transactions"), ("dispute", "Disputes"))
        if token in text
    ]

    pdfs: list[dict[str, Any]] = []
    pk_path = pk.lower()
    if "terms" in text or "condition" in text:
        pdfs.append({
            "type": "terms_and_conditions",
            "storage": {"s3_key": f"creditcards/{pk_path}/terms.pdf", "extracted_text_key": f"creditcards/{pk_path}/terms.txt"},
        })
    if "fees" in text or "charges" in text:
        pdfs.append({
            "type": "fees_and_charges",
            "storage": {"s3_key": f"creditcards/{pk_path}/fees.pdf", "extracted_text_key": f"creditcards/{pk_path}/fees.txt"},
        })

    renewal_waiver = _RENEWAL_WAIVER_RE.search(text)
    joining_waiver = _JOINING_WAIVER_RE.search(text)

    first_redemption = redemption[0] if redemption and isinstance(redemption[0], dict) else {}

    return _sections(
        pk,
        Metadata={
            "card_name": card_name,
            "issuer": issuer,
            "network": [label for token, label in _NETWORKS if token in text],
            "type": "Credit Card",
            "category": [label for token, label in _CATEGORIES if token in text] or ["Credit Card"],
        },
        features={
            "digital_onboarding": "digital" in text or "online application" in text,
            "contactless_payments": "contactless" in text or "tap" in text,
            "customization_options": {},
            "app_management": app_features,
            "security_features": [],
        },
        rewards={
            "reward_currency": rewards.get("program") or ("CashPoints" if "cashpoint" in text else "Reward Points"),
            "cashback_program": [
                {
                    "rate": c.get("rate"),
                    "categories": [{"pack": c.get("name") or "General", "merchants": []}],
                    "max_points_per_month": c.get("cap"),
                }
                for c in categories
            ],
            "earning_structure": [
                {"rate": c.get("rate"), "category": c.get("name") or "General", "cap_per_month": c.get("cap")}
                for c in categories
            ],
            "redemption": (
                {"rate": first_redemption.get("value"), "minimum_points": first_redemption.get("minimum")}
                if first_redemption
                else {}
            ),
        },
        fees={
            "joining_fee": _first_int(_JOINING_FEE_RES, text),
            "renewal_fee": _first_int(_RENEWAL_FEE_RES, text),
            "tax_applicable": True,
            "renewal_waiver_condition": (
                f"Spend ₹{renewal_waiver.group(1)} or more in a year" if renewal_waiver else None
            ),
            "joining_fee_waiver_condition": (
                f"Spend ₹{joining_waiver.group(1)} within 90 days" if joining_waiver else None
            ),
            "other_charges": {},
        },
        eligibility={"salaried": {}, "self_employed": {}},
        related_docs={"pdfs": pdfs},
    )
