"""Non-AI section extraction for card pages laid out as labelled rows.

Each row matching ``settings.section_row_selector`` carries a title in its
left column (``.row-name`` or ``h4``) and content in its right column.
Content is returned as typed items::

    {"type": "paragraph", "text": ...}
    {"type": "list_item", "text": ...}
    {"type": "list_item_with_sub", "main": ..., "sub_items": [...]}
    {"type": "link", "text": ..., "url": ...}
    {"type": "text", "text": ...}          # row had no structured content

:func:`attach_linked_content` optionally follows every ``link`` item and
embeds what it finds next to it.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, NavigableString, Tag

from cardscout.config import settings
from cardscout.errors import FetchError
from cardscout.pacing import RateLimiter
from cardscout.scraper.extractor import html_to_blocks
from cardscout.scraper.models import PageContent

Sections = Dict[str, List[Dict[str, Any]]]

_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[^>]+(>|$)")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _own_text(li: Tag) -> str:
    """Text of *li* without the text of its child elements."""
    return "".join(
        str(node) for node in li.children if isinstance(node, NavigableString)
    ).strip()


def _list_item(li: Tag) -> Dict[str, Any] | None:
    main = _own_text(li) or li.get_text().strip()
    if not main:
        return None

    if li.find() is not None:
        parts = [
            _TAG_RE.sub("", part).strip()
            for part in _BR_RE.split(li.decode_contents())
        ]
        parts = [part for part in parts if part]
        if len(parts) > 1:
            return {"type": "list_item_with_sub", "main": parts[0], "sub_items": parts[1:]}
    return {"type": "list_item", "text": main}


def _items_from(element: Tag, base_url: str) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []

    for p in element.find_all("p"):
        text = p.get_text().strip()
        if text:
            items.append({"type": "paragraph", "text": text})

    for li in element.select("ul li"):
        item = _list_item(li)
        if item is not None:
            items.append(item)

    for anchor in element.find_all("a", href=True):
        text = anchor.get_text().strip()
        href = anchor["href"].strip()
        if text and href and not href.lower().startswith("javascript:"):
            items.append({"type": "link", "text": text, "url": urljoin(base_url, href)})

    if not items:
        text = element.get_text().strip()
        if text:
            items.append({"type": "text", "text": text})
    return items


def _linked_item(url: str, page: PageContent) -> Dict[str, Any]:
    if not page.success:
        return {"type": "link_error", "source_url": url, "error": page.error}
    if page.content_type == "pdf":
        return {
            "type": "pdf_content",
            "source_url": url,
            "status": "success",
            "content": [page.text] if page.text else [],
        }
    return {
        "type": "webpage_content",
        "source_url": url,
        "status": "success",
        "content": html_to_blocks(page.html),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_html(url: str) -> str:
    """Plain HTTP GET of *url*; raises :class:`FetchError` on failure."""
    try:
        with httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout,
            follow_redirects=True,
            max_redirects=settings.max_redirects,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise FetchError(f"Could not fetch {url}: {exc}") from exc
    return response.text


def extract_sections(html: str, base_url: str, row_selector: str | None = None) -> Sections:
    """Return ``{section title: [items]}`` in page order.

    Rows without a title or without any content are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    sections: Sections = {}

    for row in soup.select(row_selector or settings.section_row_selector):
        left = row.select_one(".left-section") or row
        right = row.select_one(".right-section") or row

        title_el = left.select_one(".row-name, h4")
        title = _ZERO_WIDTH_RE.sub("", title_el.get_text()).strip() if title_el else ""
        if not title:
            continue

        items = _items_from(right, base_url)
        if items:
            sections[title] = items
            print(f"[SECTIONS] ✓ {title}")

    print(f"[SECTIONS] {len(sections)} section(s) extracted")
    return sections


def attach_linked_content(
    sections: Sections,
    fetch: Callable[[str], PageContent],
    limiter: RateLimiter | None = None,
) -> Sections:
    """Return a copy of *sections* with fetched content after each link.

    PDFs become ``pdf_content`` items, web pages ``webpage_content`` items
    with typed blocks, and failed fetches ``link_error`` items.  Each URL is
    fetched at most once.
    """
    pacer = limiter or RateLimiter(settings.delay_between_requests)
    cache: Dict[str, Dict[str, Any]] = {}
    result: Sections = {}

    for title, items in sections.items():
        enriched: List[Dict[str, Any]] = []
        for item in items:
            enriched.append(item)
            if item.get("type") != "link":
                continue
            url = item["url"]
            if url not in cache:
                pacer.wait()
                print(f"[SECTIONS] Following {url}")
                cache[url] = _linked_item(url, fetch(url))
            enriched.append(cache[url])
        result[title] = enriched
    return result

