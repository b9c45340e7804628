"""Reconciler settings loaded from the environment."""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booksync.domain.reconciliation import ReconcilerSettings, RetryPolicy
from booksync.domain.reconciliation.cleanup import DEFAULT_CLEANUP_BATCH_SIZE
from booksync.domain.timing import DEFAULT_TIMEZONE

from .env import optional_env, positive_int_env
from .errors import InvalidConfigurationError


def get_reconciler_settings(*, retry: RetryPolicy | None = None) -> ReconcilerSettings:
    timezone = optional_env("BOOKSYNC_TIMEZONE", DEFAULT_TIMEZONE)
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidConfigurationError(
            "BOOKSYNC_TIMEZONE", timezone, "unknown IANA timezone"
        ) from None
    return ReconcilerSettings(
        timezone=timezone,
        cleanup_batch_size=positive_int_env(
            "BOOKSYNC_CLEANUP_BATCH_SIZE", DEFAULT_CLEANUP_BATCH_SIZE
        ),
        retry=retry or RetryPolicy(),
    )
