from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
import sqlalchemy as sa
from alembic.config import Config

from alembic import command
from account_service.config.settings import Settings
from account_service.infrastructure.db.metadata import users
from account_service.infrastructure.db.session import create_session_factory
from apps.account_worker.main import build_expiry_service


@pytest.mark.asyncio
async def test_worker_expiry_service_expires_overdue_users(tmp_path: Path) -> None:
    db_path = tmp_path / "worker.db"
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        connection.execute(
            sa.insert(users).values(
                id=uuid4(),
                username="jdoe",
                password_hash="hash",
                status="active",
                first_name="Jane",
                last_name="Doe",
                email="jane@example.com",
                phone="0712345678",
                password_expires_at=datetime.now(tz=UTC) - timedelta(days=1),
            )
        )

    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        DATABASE_URL=async_url,
        JWT_SECRET_KEY="integration-secret-key-with-32-bytes",
        SAP_BASE_URL="https://sap.example.org",
        ACCOUNT_EXPIRY_INTERVAL_SECONDS=60,
    )
    service = build_expiry_service(
        settings=settings,
        session_factory=create_session_factory(async_url),
    )

    assert settings.account_expiry_interval_seconds == 60
    assert await service.expire_overdue_accounts() == 1
    with engine.connect() as connection:
        assert connection.execute(sa.select(users.c.status)).scalar_one() == "expired"
