"""Content fetcher: PDFs over httpx, web pages through a headless browser.

``fetch_content`` is the entry point used by the pipeline.  It never
raises; after the retry policy gives up it returns a failure-shaped
:class:`~cardscout.scraper.models.PageContent`.
"""

from __future__ import annotations

import re
from typing import Callable
from urllib.parse import parse_qs, unquote, urlparse

import httpx

from cardscout.config import settings
from cardscout.errors import FetchError, RenderError
from cardscout.pacing import RetryPolicy, fixed_backoff
from cardscout.scraper.browser import open_browser
from cardscout.scraper.extractor import extract_page
from cardscout.scraper.models import ContentType, PageContent
from cardscout.scraper.pdf import decode_pdf

# (wait_until, timeout in ms), tried in order until one yields usable content.
NAV_STRATEGIES: list[tuple[str, int]] = [
    ("networkidle", 60_000),
    ("load", 45_000),
    ("domcontentloaded", 30_000),
]

_PDF_MARKERS = (".pdf", "/repositories/", "?path=", "content-type=application/pdf", "/documents/")
_REPOSITORY_MARKER = "/content/bbp/repositories/"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _pdf_headers(url: str) -> dict[str, str]:
    parsed = urlparse(url)
    return {
        "User-Agent": settings.user_agent,
        "Accept": "application/pdf,application/octet-stream,*/*",
        "Cache-Control": "no-cache",
        "Referer": f"{parsed.scheme}://{parsed.netloc}/",
    }


def _clean_pdf_text(text: str) -> str:
    text = text.replace("\x00", "")
    text = re.sub(r"\n\s*\n", "\n", text)
    return re.sub(r"\s+", " ", text).strip()


def _pdf_title(info: dict, raw_text: str, url: str) -> str:
    """Metadata title → first short line of text → ``PDF Document from <host>``."""
    title = str(info.get("Title", "") or "").strip()
    if title:
        return title
    first_line = next((line.strip() for line in raw_text.splitlines() if line.strip()), "")
    if 0 < len(first_line) < 200:
        return first_line
    return f"PDF Document from {urlparse(url).hostname}"


def _download_pdf(url: str) -> PageContent:
    print(f"[FETCH] Trying PDF URL: {url}")
    try:
        with httpx.Client(
            headers=_pdf_headers(url),
            timeout=settings.pdf_timeout,
            follow_redirects=True,
            max_redirects=settings.max_redirects,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise FetchError(f"PDF download failed for {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if content_type and "pdf" not in content_type.lower():
        raise FetchError(f"Response is not a PDF ({content_type}) for {url}")

    try:
        document = decode_pdf(response.content)
    except Exception as exc:
        raise FetchError(f"PDF decode failed for {url}: {exc}") from exc

    text = _clean_pdf_text(document.text)
    print(
        f"[FETCH] ✓ PDF {len(response.content)} bytes, "
        f"{document.page_count} page(s), {len(text)} chars"
    )
    return PageContent(
        url=url,
        title=_pdf_title(document.info, document.text, url),
        text=text,
        content_type="pdf",
        metadata={"pages": document.page_count, "info": document.info, "actual_url": url},
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def is_pdf_url(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in _PDF_MARKERS)


def repository_alternate(url: str) -> str | None:
    """Return the direct document URL behind a repository viewer link.

    ``https://host/content/bbp/repositories/x?path=%2Fcontent%2Fa.pdf`` maps to
    ``https://host/content/a.pdf``.  ``None`` for any other URL.
    """
    if _REPOSITORY_MARKER not in url or "path=" not in url:
        return None
    parsed = urlparse(url)
    path = parse_qs(parsed.query).get("path", [""])[0]
    if not path:
        return None
    return f"{parsed.scheme}://{parsed.netloc}{unquote(path)}"


def fetch_pdf(url: str) -> PageContent:
    """Download and decode a PDF, trying the repository alternate if needed.

    The returned content keeps *url* as its ``url``; the address that
    actually served the document is recorded in ``metadata["actual_url"]``.

    Raises:
        FetchError: Every candidate URL failed.
    """
    candidates = [url]
    alternate = repository_alternate(url)
    if alternate and alternate != url:
        candidates.append(alternate)

    errors: list[str] = []
    for candidate in candidates:
        try:
            content = _download_pdf(candidate)
        except FetchError as exc:
            print(f"[FETCH] ✗ {exc}")
            errors.append(str(exc))
            continue
        return PageContent(
            url=url,
            title=content.title,
            text=content.text,
            content_type="pdf",
            metadata=content.metadata,
        )
    raise FetchError("All PDF extraction attempts failed: " + "; ".join(errors))


def fetch_webpage(url: str) -> PageContent:
    """Render *url* in a fresh browser session and extract its content.

    Navigation strategies are tried in :data:`NAV_STRATEGIES` order.  A
    strategy fails on navigation error, on an HTTP status >= 400, or when the
    page has neither more than 100 characters of text nor a single link.

    Raises:
        RenderError: Every strategy failed.
    """
    failures: list[str] = []
    with open_browser() as session:
        for wait_until, timeout_ms in NAV_STRATEGIES:
            print(f"[FETCH] Navigating {url} (wait_until={wait_until})")
            try:
                rendered = session.goto(url, wait_until=wait_until, timeout_ms=timeout_ms)
            except RenderError as exc:
                print(f"[FETCH] ✗ {exc}")
                failures.append(str(exc))
                continue

            if rendered.status_code is not None and rendered.status_code >= 400:
                failures.append(f"{wait_until}: HTTP {rendered.status_code}")
                print(f"[FETCH] ✗ HTTP {rendered.status_code} for {url}")
                continue

            title, text, html, links = extract_page(
                rendered.html,
                rendered.url or url,
                settings.unwanted_selectors,
                page_title=rendered.title,
            )
            if len(text) > 100 or links:
                print(f"[FETCH] ✓ {title!r}: {len(text)} chars, {len(links)} link(s)")
                return PageContent(
                    url=url,
                    title=title,
                    text=text,
                    html=html,
                    links=tuple(links),
                    content_type="web",
                    metadata={
                        "status_code": rendered.status_code,
                        "final_url": rendered.url,
                        "strategy": wait_until,
                    },
                )
            failures.append(f"{wait_until}: insufficient content")

    raise RenderError(f"All navigation strategies failed for {url}: " + "; ".join(failures))


def retry_policy_for(content_type: ContentType) -> RetryPolicy:
    """3 attempts by default; fixed 3 s backoff for PDFs, 5 s for pages."""
    delay = settings.pdf_retry_delay if content_type == "pdf" else settings.web_retry_delay
    return RetryPolicy(
        max_attempts=settings.fetch_max_attempts,
        backoff=fixed_backoff(delay),
        retry_on=(FetchError, RenderError),
        label="FETCH",
    )


def fetch_content(
    url: str,
    retry: RetryPolicy | None = None,
) -> PageContent:
    """Fetch *url* as a PDF or a web page with retries.  Never raises."""
    content_type: ContentType = "pdf" if is_pdf_url(url) else "web"
    fetcher: Callable[[str], PageContent] = fetch_pdf if content_type == "pdf" else fetch_webpage
    policy = retry or retry_policy_for(content_type)

    try:
        return policy.run(fetcher, url)
    except Exception as exc:  # noqa: BLE001
        print(f"[FETCH] ✗ Giving up on {url}: {exc}")
        return PageContent.failure(url, str(exc), content_type)
