"""In-process transient cache used for tests and single-instance deployments."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from account_service.application.ports.cache_port import TransientCachePort


@dataclass
class _Entry:
    value: str
    expires_at: datetime


class InMemoryTransientCache(TransientCachePort):
    """Dictionary-backed cache against an injectable clock.

    Reads drop the expired entry they touch; writes sweep every expired entry.
    """

    def __init__(self, *, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._entries: dict[str, _Entry] = {}

    def expires_at(self, key: str) -> datetime | None:
        """Return the absolute expiry of a live key."""

        entry = self._live_entry(key)
        return None if entry is None else entry.expires_at

    async def get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    async def set(self, key: str, value: str, *, ttl: timedelta) -> None:
        self._sweep()
        self._entries[key] = _Entry(value=value, expires_at=self._now() + ttl)

    async def update(
        self,
        key: str,
        value: str,
        *,
        preserve_ttl: bool,
        ttl: timedelta | None = None,
    ) -> bool:
        self._sweep()
        entry = self._live_entry(key)
        if entry is None:
            return False
        if preserve_ttl:
            entry.value = value
            return True
        if ttl is None:
            raise ValueError("ttl is required when the expiry is not preserved")
        self._entries[key] = _Entry(value=value, expires_at=self._now() + ttl)
        return True

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._now() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _sweep(self) -> None:
        now = self._now()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
