"""Periodic sweep moving users with an overdue password expiry date to Expired."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from account_service.application.ports.credential_store_port import AccountExpiryPort

SleepCallable = Callable[[float], Awaitable[None]]
NowCallable = Callable[[], datetime]
logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class AccountExpiryService:
    """Expire Active users whose password expiry date has passed.

    Only Active users move; Locked and Inactive users keep their status until
    a password reset reactivates them.
    """

    def __init__(
        self,
        *,
        accounts: AccountExpiryPort,
        interval_seconds: float = 3600.0,
        sleep: SleepCallable = asyncio.sleep,
        now: NowCallable = _utc_now,
    ) -> None:
        self._accounts = accounts
        self._interval_seconds = interval_seconds
        self._sleep = sleep
        self._now = now

    async def expire_overdue_accounts(self) -> int:
        """Run one sweep and return the number of users expired."""

        started_at = self._now()
        expired = await self._accounts.expire_overdue(now=started_at)
        logger.info(
            "auto_expire_completed expired_users=%s started_at=%s",
            expired,
            started_at.isoformat(),
        )
        return expired

    async def run_until_stopped(self, stop_event: asyncio.Event) -> None:
        """Sweep, then wait one interval, until stop_event is set."""

        while not stop_event.is_set():
            try:
                await self.expire_overdue_accounts()
            except Exception:  # noqa: BLE001
                logger.exception("auto_expire_failed")
            await self._sleep(self._interval_seconds)
