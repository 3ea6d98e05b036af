"""Cache-backed counter of consecutive failed password attempts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID

from account_service.application.dto.cache_models import LockoutCounterEntry
from account_service.application.ports.cache_port import (
    CacheUnavailableError,
    TransientCachePort,
)
from account_service.application.services.typed_cache import TypedCacheNamespace

logger = logging.getLogger(__name__)

LOCKOUT_KEY_PREFIX = "password-failure"
DEFAULT_LOCKOUT_WINDOW = timedelta(minutes=5)


class LockoutTracker:
    """Track failed attempts in a fixed window that starts at the first failure.

    Increments keep the remaining time-to-live, so a window never slides.
    Reads and writes are not atomic: concurrent failures for one user may
    lose an increment (last writer wins).
    """

    def __init__(
        self,
        *,
        cache: TransientCachePort,
        window: timedelta = DEFAULT_LOCKOUT_WINDOW,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._counters = TypedCacheNamespace(
            cache=cache,
            prefix=LOCKOUT_KEY_PREFIX,
            model=LockoutCounterEntry,
            ttl=window,
        )
        self._now = now or (lambda: datetime.now(tz=UTC))

    def key(self, user_id: UUID) -> str:
        return self._counters.key(user_id)

    async def record_failed_attempt(self, *, user_id: UUID) -> int:
        """Count one failed attempt and return the post-increment total.

        When the cache is unreachable the attempt counts as the first one, so
        an outage never locks accounts by itself.
        """

        try:
            entry = await self._counters.get(user_id)
            if entry is not None:
                attempts = entry.attempts + 1
                updated = await self._counters.update(
                    user_id,
                    entry.model_copy(update={"attempts": attempts}),
                    preserve_ttl=True,
                )
                if updated:
                    return attempts

            # First failure, or the window expired between read and write.
            await self._counters.set(
                user_id,
                LockoutCounterEntry(user_id=user_id, attempts=1, created_at=self._now()),
            )
            return 1
        except CacheUnavailableError:
            logger.warning("lockout_counter_unavailable user_id=%s policy=fail_open", user_id)
            return 1

    async def reset(self, *, user_id: UUID) -> None:
        """Delete the counter; cache failures are logged and ignored."""

        try:
            await self._counters.remove(user_id)
        except CacheUnavailableError:
            logger.warning("lockout_counter_reset_failed user_id=%s", user_id)

    @staticmethod
    def is_locked_out(attempt_count: int, threshold: int) -> bool:
        return attempt_count > threshold
