"""Retry and politeness pacing shared by the fetcher, the pipeline and the
listing resolver.

Two abstractions:

``RetryPolicy``
    Bounded attempts with a backoff function and an explicit set of
    retryable exception types.  The last exception is re-raised once the
    attempts are exhausted so callers decide how to surface the failure.

``RateLimiter``
    Enforces a minimum interval between consecutive acquisitions.  The first
    acquisition never waits.  Clock and sleep are injectable for tests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

T = TypeVar("T")


def fixed_backoff(seconds: float) -> Callable[[int], float]:
    """Return a backoff function that always waits *seconds*."""
    return lambda attempt: seconds


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=lambda: fixed_backoff(3.0))
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    label: str = "retry"
    sleep: Callable[[float], None] = field(default_factory=lambda: time.sleep)

    def run(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Call ``func(*args, **kwargs)`` until it succeeds or attempts run out.

        Raises:
            The last retryable exception after ``max_attempts`` failures.
            Non-retryable exceptions propagate immediately.
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except self.retry_on as exc:
                if attempt == attempts:
                    print(f"[{self.label}] ✗ giving up after {attempts} attempt(s): {exc}")
                    raise
                delay = self.backoff(attempt)
                print(
                    f"[{self.label}] attempt {attempt}/{attempts} failed: {exc}; "
                    f"retrying in {delay:.1f}s …"
                )
                if delay > 0:
                    self.sleep(delay)
        raise RuntimeError("unreachable")  # pragma: no cover


class RateLimiter:
    """Space consecutive calls at least ``interval`` seconds apart."""

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.interval = max(0.0, interval)
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._last: float | None = None

    def wait(self) -> float:
        """Block until the next call is allowed; return the seconds slept."""
        waited = 0.0
        now = self._clock()
        if self._last is not None and self.interval > 0:
            remaining = self._last + self.interval - now
            if remaining > 0:
                self._sleep(remaining)
                waited = remaining
                now = self._clock()
        self._last = now
        return waited
