"""Ports for outbound notifications and their deduplication state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import timedelta


@runtime_checkable
class Notifier(Protocol):
    """Delivery channel (SMS, email, chat). Returns whether the message was sent."""

    def send(self, recipient: str, message: str) -> bool: ...


@runtime_checkable
class ExpiringKeyValueStore(Protocol):
    """Key-value state whose entries expire after a time-to-live."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, *, ttl: timedelta) -> None: ...
