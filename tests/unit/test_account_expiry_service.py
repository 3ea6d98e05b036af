from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from account_service.application.services.account_expiry_service import AccountExpiryService

NOW = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)


class FakeExpiryStore:
    def __init__(self, results: list[int | Exception]) -> None:
        self.results = results
        self.calls: list[datetime] = []

    async def expire_overdue(self, *, now: datetime) -> int:
        self.calls.append(now)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.mark.asyncio
async def test_sweep_passes_current_time_and_returns_expired_count() -> None:
    store = FakeExpiryStore([3])
    service = AccountExpiryService(accounts=store, now=lambda: NOW)

    expired = await service.expire_overdue_accounts()

    assert expired == 3
    assert store.calls == [NOW]


@pytest.mark.asyncio
async def test_loop_keeps_sweeping_after_a_failed_run_until_stopped() -> None:
    store = FakeExpiryStore([RuntimeError("database unavailable"), 2])
    stop_event = asyncio.Event()
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 2:
            stop_event.set()

    service = AccountExpiryService(
        accounts=store,
        interval_seconds=900.0,
        sleep=fake_sleep,
        now=lambda: NOW,
    )

    await service.run_until_stopped(stop_event)

    assert len(store.calls) == 2
    assert sleeps == [900.0, 900.0]


@pytest.mark.asyncio
async def test_loop_does_not_sweep_when_already_stopped() -> None:
    store = FakeExpiryStore([])
    stop_event = asyncio.Event()
    stop_event.set()

    await AccountExpiryService(accounts=store).run_until_stopped(stop_event)

    assert store.calls == []
