"""Headless Chromium session used to render card and listing pages.

Playwright is imported lazily inside :func:`open_browser` so that tests and
PDF-only runs never need a browser install.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from cardscout.config import settings
from cardscout.errors import RenderError
from cardscout.scraper.models import RenderedPage

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-infobars",
]

# Masks the most common automation fingerprints before any page script runs.
_STEALTH_JS = """
() => {
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
    Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
    window.chrome = { runtime: {} };
}
"""

_CONTENT_READY_JS = """
() => {
    const body = document.body;
    if (!body) return false;
    return body.textContent.trim().length > 500
        || document.querySelectorAll('a[href]').length > 10
        || document.querySelectorAll('img').length > 5;
}
"""

_CONTENT_WAIT_MS = 15_000


class BrowserSession:
    """One browser context and page; navigate with :meth:`goto`."""

    def __init__(self, page: Any) -> None:
        self._page = page
        page.on("dialog", self._dismiss_dialog)

    @staticmethod
    def _dismiss_dialog(dialog: Any) -> None:
        print(f"[BROWSER] Dismissing dialog: {dialog.message}")
        dialog.dismiss()

    def _wait_for_content(self) -> None:
        from playwright.sync_api import TimeoutError as PlaywrightTimeout  # noqa: PLC0415

        try:
            self._page.wait_for_function(_CONTENT_READY_JS, timeout=_CONTENT_WAIT_MS)
        except PlaywrightTimeout:
            print("[BROWSER] Content indicators did not appear; proceeding anyway")

    def goto(self, url: str, wait_until: str, timeout_ms: int) -> RenderedPage:
        """Navigate to *url* and return the rendered document.

        Raises:
            RenderError: The navigation failed or timed out.
        """
        from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415

        try:
            response = self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            self._wait_for_content()
            html = self._page.content()
            title = self._page.title()
        except PlaywrightError as exc:
            raise RenderError(f"{wait_until} navigation to {url} failed: {exc}") from exc

        return RenderedPage(
            url=self._page.url or url,
            title=title,
            html=html,
            status_code=response.status if response is not None else None,
        )


@contextmanager
def open_browser() -> Iterator[BrowserSession]:
    """Launch Chromium, yield a :class:`BrowserSession`, always close it."""
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=settings.headless, args=_LAUNCH_ARGS)
        try:
            context = browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=settings.user_agent,
                locale="en-US",
                extra_http_headers={
                    "Accept-Language": "en-US,en;q=0.9",
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                },
            )
            context.add_init_script(_STEALTH_JS)
            context.set_default_navigation_timeout(120_000)
            yield BrowserSession(context.new_page())
        finally:
            browser.close()
