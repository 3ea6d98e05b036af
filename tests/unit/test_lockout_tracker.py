from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from account_service.application.ports.cache_port import CacheUnavailableError
from account_service.application.services.lockout_tracker import LockoutTracker
from account_service.infrastructure.cache.memory_cache import InMemoryTransientCache


class MutableClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


class UnavailableCache:
    async def get(self, key: str) -> str | None:
        raise CacheUnavailableError(key)

    async def set(self, key: str, value: str, *, ttl: timedelta) -> None:
        raise CacheUnavailableError(key)

    async def update(
        self,
        key: str,
        value: str,
        *,
        preserve_ttl: bool,
        ttl: timedelta | None = None,
    ) -> bool:
        raise CacheUnavailableError(key)

    async def remove(self, key: str) -> None:
        raise CacheUnavailableError(key)


def _tracker() -> tuple[LockoutTracker, InMemoryTransientCache, MutableClock]:
    clock = MutableClock(datetime(2026, 3, 1, 8, 0, tzinfo=UTC))
    cache = InMemoryTransientCache(now=clock)
    tracker = LockoutTracker(cache=cache, window=timedelta(minutes=5), now=clock)
    return tracker, cache, clock


@pytest.mark.asyncio
async def test_increments_keep_the_window_from_the_first_failure() -> None:
    tracker, cache, clock = _tracker()
    user_id = uuid4()

    assert await tracker.record_failed_attempt(user_id=user_id) == 1
    first_expiry = cache.expires_at(tracker.key(user_id))

    clock.advance(timedelta(minutes=4))
    assert await tracker.record_failed_attempt(user_id=user_id) == 2

    assert cache.expires_at(tracker.key(user_id)) == first_expiry


@pytest.mark.asyncio
async def test_counter_restarts_after_window_expires() -> None:
    tracker, _, clock = _tracker()
    user_id = uuid4()

    for _ in range(3):
        await tracker.record_failed_attempt(user_id=user_id)
    clock.advance(timedelta(minutes=5))

    assert await tracker.record_failed_attempt(user_id=user_id) == 1


@pytest.mark.asyncio
async def test_reset_removes_counter() -> None:
    tracker, cache, _ = _tracker()
    user_id = uuid4()
    await tracker.record_failed_attempt(user_id=user_id)

    await tracker.reset(user_id=user_id)

    assert await cache.get(tracker.key(user_id)) is None


@pytest.mark.asyncio
async def test_unavailable_cache_fails_open() -> None:
    tracker = LockoutTracker(cache=UnavailableCache())
    user_id = uuid4()

    assert await tracker.record_failed_attempt(user_id=user_id) == 1
    await tracker.reset(user_id=user_id)


def test_lockout_triggers_only_above_threshold() -> None:
    assert not LockoutTracker.is_locked_out(5, 5)
    assert LockoutTracker.is_locked_out(6, 5)


@pytest.mark.asyncio
async def test_undecodable_counter_is_treated_as_missing() -> None:
    tracker, cache, _ = _tracker()
    user_id = uuid4()
    await cache.set(tracker.key(user_id), "not-json", ttl=timedelta(minutes=5))

    assert await tracker.record_failed_attempt(user_id=user_id) == 1
