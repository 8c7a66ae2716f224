"""HEAD liveness check for candidate card URLs.

Failures are classified into ``NOT_FOUND_404``, ``HTTP_ERROR``,
``CONNECTION_REFUSED``, ``DNS_ERROR``, ``TIMEOUT`` and ``UNKNOWN``.
"""

from __future__ import annotations

import socket
from typing import Iterator

import httpx

from cardscout.config import settings
from cardscout.errors import UrlCheckError
from cardscout.listing.models import UrlCheck

NOT_FOUND_404 = "NOT_FOUND_404"
HTTP_ERROR = "HTTP_ERROR"
CONNECTION_REFUSED = "CONNECTION_REFUSED"
DNS_ERROR = "DNS_ERROR"
TIMEOUT = "TIMEOUT"
UNKNOWN = "UNKNOWN"
CONTENT_FILTER = "CONTENT_FILTER"

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "errno -2",
    "errno -3",
    "errno 11001",
)
_REFUSED_MARKERS = ("connection refused", "errno 111", "errno 61", "actively refused")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _chain(exc: BaseException) -> Iterator[BaseException]:
    """*exc* followed by its ``__cause__`` / ``__context__`` ancestors."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_transport_error(exc: BaseException) -> tuple[str, str]:
    """Map a transport exception to ``(error_type, message)``."""
    for err in _chain(exc):
        if isinstance(err, httpx.TimeoutException):
            return TIMEOUT, "Request timeout"
        if isinstance(err, socket.gaierror):
            return DNS_ERROR, "Domain not found"
        if isinstance(err, ConnectionRefusedError):
            return CONNECTION_REFUSED, "Connection refused"

    text = " ".join(str(err) for err in _chain(exc)).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return DNS_ERROR, "Domain not found"
    if any(marker in text for marker in _REFUSED_MARKERS):
        return CONNECTION_REFUSED, "Connection refused"
    return UNKNOWN, str(exc) or type(exc).__name__


def _head(url: str) -> int:
    """Issue the HEAD request; return the status or raise :class:`UrlCheckError`."""
    try:
        with httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.head_timeout,
            follow_redirects=True,
            max_redirects=settings.head_max_redirects,
        ) as client:
            response = client.head(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        error_type, message = classify_transport_error(exc)
        raise UrlCheckError(message, error_type) from exc

    status = response.status_code
    if 200 <= status < 400:
        return status
    if status == 404:
        raise UrlCheckError("404 Not Found", NOT_FOUND_404, status)
    raise UrlCheckError(f"HTTP {status} - {response.reason_phrase}", HTTP_ERROR, status)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check_url(url: str) -> UrlCheck:
    """HEAD *url* (10 s timeout, up to 5 redirects); accept 200–399."""
    try:
        status = _head(url)
    except UrlCheckError as exc:
        return UrlCheck(valid=False, status_code=exc.status_code, error=str(exc), error_type=exc.error_type)
    return UrlCheck(valid=True, status_code=status)
