"""Exception types raised across the extraction pipeline.

There is no incomplete-data exception: an extraction that does not meet
the completeness bar is a normal :class:`~cardscout.pipeline.state.CardResult`
with ``reason="incomplete_data"``, not an error.
"""

from __future__ import annotations


class CardScoutError(Exception):
    """Base class for all CardScout errors."""


class FetchError(CardScoutError):
    """Network, timeout, DNS or HTTP-status failure while downloading a URL."""


class RenderError(CardScoutError):
    """Every browser navigation strategy failed for a URL."""


class MalformedModelResponse(CardScoutError):
    """The structuring model returned output that could not be parsed as JSON,
    even after lenient repair, or was truncated by the token limit."""


class UrlCheckError(CardScoutError):
    """A candidate card URL failed its liveness (HEAD) check."""

    def __init__(self, message: str, error_type: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.status_code = status_code
