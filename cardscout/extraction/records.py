"""The ``standard`` card record: fixed required fields plus an open side-map.

The structuring model is invited to add fields of its own.  Those land in
``extras`` (top level) or ``CardIdentity.extras`` (inside ``card``) so the
required contract stays checkable while nothing the model returned is lost.
``to_dict`` / ``from_dict`` round-trip exactly.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_CARD_KEYS = ("name", "bank", "variant")
_RECORD_KEYS = (
    "id",
    "url",
    "scraped_at",
    "card",
    "rewards",
    "benefits",
    "current_offers",
    "perks",
    "partnerships",
    "fees_and_charges",
    "metadata",
)


def generate_id(url: str) -> str:
    """First 16 hex characters of the MD5 of *url*."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:16]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def empty_rewards() -> dict[str, Any]:
    return {
        "program": None,
        "type": None,
        "earning": {"base_rate": None, "categories": []},
        "redemption": [],
    }


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


@dataclass
class CardIdentity:
    name: str | None = None
    bank: str | None = None
    variant: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> CardIdentity:
        if not isinstance(data, dict):
            return cls()
        return cls(
            name=data.get("name"),
            bank=data.get("bank"),
            variant=data.get("variant"),
            extras={k: v for k, v in data.items() if k not in _CARD_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "bank": self.bank, "variant": self.variant, **self.extras}


@dataclass
class StandardRecord:
    id: str
    url: str
    scraped_at: str
    card: CardIdentity = field(default_factory=CardIdentity)
    rewards: dict[str, Any] = field(default_factory=empty_rewards)
    benefits: list[Any] = field(default_factory=list)
    current_offers: list[Any] = field(default_factory=list)
    perks: list[Any] = field(default_factory=list)
    partnerships: list[Any] = field(default_factory=list)
    fees_and_charges: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StandardRecord:
        rewards = data.get("rewards")
        metadata = data.get("metadata")
        extras = {k: v for k, v in data.items() if k not in _RECORD_KEYS}
        if metadata is not None and not isinstance(metadata, dict):
            # Keep a non-object metadata value the model produced.
            extras["model_metadata"] = metadata
        return cls(
            id=data.get("id", ""),
            url=data.get("url", ""),
            scraped_at=data.get("scraped_at", ""),
            card=CardIdentity.from_dict(data.get("card")),
            rewards=rewards if isinstance(rewards, dict) else empty_rewards(),
            benefits=_as_list(data.get("benefits")),
            current_offers=_as_list(data.get("current_offers")),
            perks=_as_list(data.get("perks")),
            partnerships=_as_list(data.get("partnerships")),
            fees_and_charges=_as_list(data.get("fees_and_charges")),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
            extras=extras,
        )

    @classmethod
    def from_model_output(
        cls,
        payload: dict[str, Any],
        *,
        url: str,
        scraped_at: str | None = None,
    ) -> StandardRecord:
        """Wrap the model's ``standard_format`` object with id, url and time.

        Identity keys the model may have echoed back are overwritten.
        """
        body = {k: v for k, v in payload.items() if k not in ("id", "url", "scraped_at")}
        return cls.from_dict(
            {
                "id": generate_id(url),
                "url": url,
                "scraped_at": scraped_at or utc_now_iso(),
                **body,
            }
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "scraped_at": self.scraped_at,
            "card": self.card.to_dict(),
            "rewards": self.rewards,
            "benefits": self.benefits,
            "current_offers": self.current_offers,
            "perks": self.perks,
            "partnerships": self.partnerships,
            "fees_and_charges": self.fees_and_charges,
            **self.extras,
            "metadata": self.metadata,
        }


def error_record(url: str, error: str, content_type: str) -> dict[str, Any]:
    """The record persisted when a URL ends on the error path."""
    now = utc_now_iso()
    record = StandardRecord(
        id=generate_id(url),
        url=url,
        scraped_at=now,
        metadata={
            "last_updated": now,
            "confidence_score": 0,
            "missing_data": ["error_occurred"],
            "processed_links": 0,
            "failed_links": 0,
            "total_links_found": 0,
            "content_type": content_type,
            "data_quality": "error",
            "error": error,
            "extraction_completed_at": now,
        },
    )
    return record.to_dict()
