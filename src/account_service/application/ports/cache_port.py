"""Port for the transient key/value cache backing lockout and saga state."""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol


class CacheUnavailableError(RuntimeError):
    """Raised when the cache backend cannot be reached."""


class TransientCachePort(Protocol):
    """Expiring string cache contract."""

    async def get(self, key: str) -> str | None:
        """Return the stored value or None when missing or expired."""

    async def set(self, key: str, value: str, *, ttl: timedelta) -> None:
        """Store a value with a fresh time-to-live, replacing any previous value."""

    async def update(
        self,
        key: str,
        value: str,
        *,
        preserve_ttl: bool,
        ttl: timedelta | None = None,
    ) -> bool:
        """Replace an existing value; return False when the key is absent.

        With `preserve_ttl` the key keeps its remaining time-to-live, otherwise
        the expiry restarts from `ttl`.
        """

    async def remove(self, key: str) -> None:
        """Delete a key when present."""
