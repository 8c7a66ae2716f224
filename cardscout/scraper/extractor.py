"""Content extraction: turns rendered HTML into title, visible text and links."""

from __future__ import annotations

import re
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from cardscout.scraper.models import RawLink

_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _strip_boilerplate(soup: BeautifulSoup, selectors: List[str]) -> None:
    """Remove every element matching one of *selectors* from *soup* in place."""
    for selector in selectors:
        try:
            matches = soup.select(selector)
        except SelectorSyntaxError as exc:
            print(f"[EXTRACT] skipping invalid selector {selector!r}: {exc}")
            continue
        for el in matches:
            el.decompose()


def _extract_title(soup: BeautifulSoup) -> str:
    """Document title → first ``<h1>`` → ``.title`` → fallback literal."""
    if soup.title and soup.title.get_text(strip=True):
        return _collapse(soup.title.get_text())
    for selector in ("h1", ".title", "[data-title]"):
        el = soup.select_one(selector)
        if el is not None and el.get_text(strip=True):
            return _collapse(el.get_text())
    return "No title found"


def _extract_links(soup: BeautifulSoup, base_url: str) -> List[RawLink]:
    """Return anchors with absolute URLs, deduplicated by resolved URL.

    Script, mail and phone links are dropped, as are anchors whose text is
    shorter than 3 or longer than 499 characters.
    """
    seen: set[str] = set()
    links: List[RawLink] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        text = _collapse(anchor.get_text(" "))
        if not href or href.lower().startswith(_SKIPPED_SCHEMES):
            continue
        if not (2 < len(text) < 500):
            continue
        full_url = urljoin(base_url, href)
        if full_url in seen:
            continue
        seen.add(full_url)
        links.append(
            RawLink(
                href=href,
                text=text,
                title=anchor.get("title", "") or anchor.get("aria-label", ""),
                full_url=full_url,
            )
        )
    return links


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page(
    html: str,
    base_url: str,
    unwanted_selectors: List[str],
    page_title: str = "",
) -> tuple[str, str, str, List[RawLink]]:
    """Extract ``(title, text, body_html, links)`` from rendered *html*.

    Links are collected before boilerplate removal so that terms-and-conditions
    anchors living in footers are still seen by the link classifier; text and
    HTML are taken after it.
    """
    soup = BeautifulSoup(html, "html.parser")
    links = _extract_links(soup, base_url)

    title = _collapse(page_title) if page_title and page_title.strip() else _extract_title(soup)

    _strip_boilerplate(soup, unwanted_selectors)
    container = soup.body or soup
    text = _collapse(container.get_text(" "))
    body_html = container.decode_contents() if hasattr(container, "decode_contents") else str(container)

    return title, text, body_html, links


def html_to_blocks(html: str) -> list[dict]:
    """Return typed content blocks (heading / paragraph / list_item) in
    document order, used to embed linked web pages in section output."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "nav", "footer", "header", "noscript"]):
        tag.decompose()

    blocks: list[dict] = []
    for el in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6", "p", "li"]):
        text = _collapse(el.get_text(" "))
        if not text:
            continue
        if el.name.startswith("h"):
            blocks.append({"type": "heading", "text": text, "level": int(el.name[1])})
        elif el.name == "li":
            blocks.append({"type": "list_item", "text": text})
        else:
            blocks.append({"type": "paragraph", "text": text})
    return blocks
