"""Airtable configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

AIRTABLE_BASE_URL = "https://api.airtable.com/v0/"
AIRTABLE_TIMEOUT_SECONDS = 15.0
# Airtable allows five requests per second per base.
AIRTABLE_RATE_LIMIT = RateLimit(max_calls=5, per_seconds=1.0)


@dataclass(frozen=True, slots=True)
class AirtableConfig:
    api_key: str
    base_id: str
    bookings_table: str
    resilience: ResilienceConfig


def airtable_resilience(api_key: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="airtable",
        base_url=AIRTABLE_BASE_URL,
        timeout_seconds=AIRTABLE_TIMEOUT_SECONDS,
        ratelimit=AIRTABLE_RATE_LIMIT,
        default_headers={"Authorization": f"Bearer {api_key}"},
    )


def get_airtable_config(*, resilience: ResilienceConfig | None = None) -> AirtableConfig:
    values = require_env_vars(("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID", "AIRTABLE_BOOKINGS_TABLE"))
    api_key = values["AIRTABLE_API_KEY"]
    return AirtableConfig(
        api_key=api_key,
        base_id=values["AIRTABLE_BASE_ID"],
        bookings_table=values["AIRTABLE_BOOKINGS_TABLE"],
        resilience=resilience or airtable_resilience(api_key),
    )
