"""Data models for the scraper layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ContentType = Literal["web", "pdf"]

LinkCategory = Literal[
    "pdf", "terms", "offers", "rewards", "partnerships", "card_features", "general"
]


@dataclass(frozen=True)
class RawLink:
    """One ``<a href>`` found on a rendered page."""

    href: str
    text: str
    title: str = ""
    full_url: str = ""


@dataclass(frozen=True)
class RenderedPage:
    """What the browser hands back for one navigation."""

    url: str
    title: str
    html: str
    status_code: int | None = None


@dataclass(frozen=True)
class PageContent:
    """Normalised content for a single URL: a web page or a decoded PDF.

    Failure-shaped instances (``success=False``) carry ``error`` and empty
    text so that callers always receive a value for a fetch.
    """

    url: str
    title: str
    text: str
    html: str = ""
    links: tuple[RawLink, ...] = ()
    content_type: ContentType = "web"
    success: bool = True
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, url: str, error: str, content_type: ContentType = "web") -> PageContent:
        title = "PDF Extraction Failed" if content_type == "pdf" else ""
        return cls(
            url=url,
            title=title,
            text="",
            content_type=content_type,
            success=False,
            error=error,
        )


@dataclass(frozen=True)
class LinkCandidate:
    """A link judged worth following, tagged with a category and priority."""

    url: str
    anchor_text: str
    title: str
    original_href: str
    category: LinkCategory
    priority_rank: int


@dataclass(frozen=True)
class ProcessedLink:
    candidate: LinkCandidate
    content: PageContent
    summary: str

    @property
    def url(self) -> str:
        return self.candidate.url


@dataclass(frozen=True)
class FailedLink:
    url: str
    category: str
    error: str
    anchor_text: str

    def to_dict(self) -> dict[str, str]:
        return {
            "url": self.url,
            "type": self.category,
            "error": self.error,
            "text": self.anchor_text,
        }
