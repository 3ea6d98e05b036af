"""account-worker entrypoint."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.services.account_expiry_service import AccountExpiryService
from account_service.config.settings import Settings, load_settings
from account_service.infrastructure.db.credential_repository import (
    SqlAlchemyCredentialRepository,
)
from account_service.infrastructure.db.session import create_session_factory
from account_service.infrastructure.logging import configure_logging

logger = logging.getLogger(__name__)


def build_expiry_service(
    *,
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> AccountExpiryService:
    """Compose the password-expiry sweep over the SQLAlchemy credential store."""

    return AccountExpiryService(
        accounts=SqlAlchemyCredentialRepository(session_factory),
        interval_seconds=settings.account_expiry_interval_seconds,
    )


async def _run_worker() -> None:
    settings = load_settings()
    configure_logging(level=settings.log_level)
    logger.info(
        "account_worker_starting expiry_interval_seconds=%s",
        settings.account_expiry_interval_seconds,
    )

    service = build_expiry_service(
        settings=settings,
        session_factory=create_session_factory(settings.database_url),
    )
    stop_event = asyncio.Event()

    await service.run_until_stopped(stop_event)


def main() -> None:
    """Run the periodic account expiry sweep."""

    asyncio.run(_run_worker())


if __name__ == "__main__":
    main()
