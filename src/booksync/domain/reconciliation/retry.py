"""Bounded exponential backoff for record store calls."""

from __future__ import annotations

import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from booksync.domain.errors import StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

type Sleep = Callable[[float], None]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("Retry policy needs at least one attempt")

    def delay_for(self, attempt: int) -> float:
        """Delay after the ``attempt``-th failure (1-based)."""

        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


def call_with_retry[T](
    operation: Callable[[], T],
    *,
    policy: RetryPolicy,
    description: str,
    sleep: Sleep = time.sleep,
) -> T:
    """Run ``operation``, retrying only ``StoreUnavailableError``.

    Anything else, validation errors included, propagates on the first failure.
    The last ``StoreUnavailableError`` is re-raised once attempts are exhausted.
    """

    for attempt in range(1, policy.attempts + 1):
        try:
            return operation()
        except StoreUnavailableError as exc:
            if attempt == policy.attempts:
                log.error("%s failed after %s attempt(s): %s", description, attempt, exc)
                raise
            delay = policy.delay_for(attempt)
            log.warning("%s failed (%s), retrying in %.2fs", description, exc, delay)
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["RetryPolicy", "Sleep", "call_with_retry"]
