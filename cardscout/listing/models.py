"""Data models for the listing resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CANDIDATE_KEYS = (
    "name",
    "url",
    "description",
    "category",
    "key_features",
    "annual_fee",
    "link_context",
    "extraction_source",
)


@dataclass(frozen=True)
class CardCandidate:
    """A card the listing page appears to link to, before validation."""

    name: str
    url: str
    description: str = ""
    category: str = "Personal Credit Card"
    key_features: tuple[str, ...] = ()
    annual_fee: Any = None
    link_context: str = ""
    extraction_source: str = "model"
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardCandidate:
        features = data.get("key_features") or ()
        return cls(
            name=str(data.get("name") or ""),
            url=str(data.get("url") or ""),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or "Personal Credit Card"),
            key_features=tuple(str(f) for f in features) if isinstance(features, (list, tuple)) else (),
            annual_fee=data.get("annual_fee"),
            link_context=str(data.get("link_context") or ""),
            extraction_source=str(data.get("extraction_source") or "model"),
            extras={k: v for k, v in data.items() if k not in _CANDIDATE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "category": self.category,
            "key_features": list(self.key_features),
            "annual_fee": self.annual_fee,
            "link_context": self.link_context,
            "extraction_source": self.extraction_source,
            **self.extras,
        }


@dataclass(frozen=True)
class UrlCheck:
    """Result of a HEAD liveness check."""

    valid: bool
    status_code: int | None = None
    error: str | None = None
    error_type: str | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    valid: list[dict[str, Any]]
    invalid: list[dict[str, Any]]
    summary: dict[str, Any]


@dataclass
class ListingReport:
    """Aggregate result of one listing run.  ``to_dict`` is what gets saved."""

    id: str
    listing_url: str
    scraped_at: str
    url_validation_summary: dict[str, Any] = field(default_factory=dict)
    listing_summary: dict[str, Any] = field(default_factory=dict)
    cards: list[dict[str, Any]] = field(default_factory=list)
    failed_cards: list[dict[str, Any]] = field(default_factory=list)
    invalid_urls: list[dict[str, Any]] = field(default_factory=list)
    token_summary: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    path: Path | None = None

    @property
    def error(self) -> str | None:
        return self.metadata.get("error")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "listing_url": self.listing_url,
            "scraped_at": self.scraped_at,
            "url_validation_summary": self.url_validation_summary,
            "listing_summary": self.listing_summary,
            "cards": self.cards,
            "failed_cards": self.failed_cards,
            "invalid_urls": self.invalid_urls,
            "token_summary": self.token_summary,
            "metadata": self.metadata,
        }
