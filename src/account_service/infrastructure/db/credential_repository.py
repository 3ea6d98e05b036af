"""SQLAlchemy adapter for credential records and login/password history."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.credential_store_port import (
    AccountExpiryPort,
    CredentialRecord,
    CredentialStorePort,
    LoginHistoryEntry,
)
from account_service.domain.auth.account_status import AccountStatus
from account_service.domain.auth.roles import Role
from account_service.infrastructure.db.metadata import (
    admin_users,
    user_logins,
    user_password_histories,
    user_roles,
    users,
)
from account_service.infrastructure.db.row_mapping import as_optional_utc, as_utc, as_uuid


class SqlAlchemyCredentialRepository(CredentialStorePort, AccountExpiryPort):
    """Credential store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_username(self, *, username: str) -> CredentialRecord | None:
        """Return user by exact, case-sensitive username."""

        return await self._find_one(users.c.username == username)

    async def find_by_username_insensitive(self, *, username: str) -> CredentialRecord | None:
        """Return user by username ignoring case."""

        return await self._find_one(sa.func.lower(users.c.username) == username.lower())

    async def get_by_id(self, *, user_id: UUID) -> CredentialRecord | None:
        """Return user with roles, admin company and login history."""

        return await self._find_one(users.c.id == user_id)

    async def find_by_reset_token(self, *, reset_token: str) -> CredentialRecord | None:
        """Return user holding one password reset token."""

        return await self._find_one(users.c.reset_token == reset_token)

    async def username_exists(self, *, username: str) -> bool:
        """Return whether any user already uses the username, ignoring case."""

        statement = (
            sa.select(users.c.id)
            .where(sa.func.lower(users.c.username) == username.lower())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return result.first() is not None

    async def update(self, record: CredentialRecord) -> None:
        """Persist status, policy flag, password and reset token fields."""

        statement = (
            sa.update(users)
            .where(users.c.id == record.user_id)
            .values(
                status=record.status.value,
                privacy_policy_accepted=record.privacy_policy_accepted,
                password_hash=record.password_hash,
                password_expires_at=record.password_expires_at,
                reset_token=record.reset_token,
                reset_token_expires_at=record.reset_token_expires_at,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def add_login_history(self, entry: LoginHistoryEntry) -> None:
        """Append one successful login entry."""

        statement = sa.insert(user_logins).values(
            user_id=entry.user_id,
            device_id=entry.device_id,
            ip_address=entry.ip_address,
            channel_code=entry.channel_code,
            login_date=entry.login_date,
        )
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def latest_login(self, *, user_id: UUID) -> LoginHistoryEntry | None:
        """Return the most recent login entry for a user."""

        statement = (
            sa.select(*user_logins.c)
            .where(user_logins.c.user_id == user_id)
            .order_by(user_logins.c.login_date.desc(), user_logins.c.id.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_login_entry(row)

    async def recent_password_hashes(self, *, user_id: UUID, limit: int) -> list[str]:
        """Return the most recent password hashes, newest first."""

        statement = (
            sa.select(user_password_histories.c.password_hash)
            .where(user_password_histories.c.user_id == user_id)
            .order_by(
                user_password_histories.c.created_at.desc(),
                user_password_histories.c.id.desc(),
            )
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return [cast(str, value) for value in result.scalars().all()]

    async def add_password_history(self, *, user_id: UUID, password_hash: str) -> None:
        statement = sa.insert(user_password_histories).values(
            user_id=user_id,
            password_hash=password_hash,
        )
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def expire_overdue(self, *, now: datetime) -> int:
        statement = (
            sa.update(users)
            .where(
                users.c.status == AccountStatus.ACTIVE.value,
                users.c.password_expires_at.is_not(None),
                users.c.password_expires_at < now,
            )
            .values(
                status=AccountStatus.EXPIRED.value,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()
        return int(result.rowcount or 0)

    async def _find_one(self, condition: sa.ColumnElement[bool]) -> CredentialRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(sa.select(*users.c).where(condition).limit(1))
            row = result.mappings().first()
            if row is None:
                return None
            return await load_credential_record(session, row)


async def load_credential_record(session: AsyncSession, row: sa.RowMapping) -> CredentialRecord:
    """Build a credential record from a users row plus its child rows."""

    user_id = as_uuid(row["id"])
    role_rows = await session.execute(
        sa.select(user_roles.c.role)
        .where(user_roles.c.user_id == user_id)
        .order_by(user_roles.c.position, user_roles.c.role)
    )
    company_rows = await session.execute(
        sa.select(admin_users.c.company_code).where(admin_users.c.user_id == user_id).limit(1)
    )
    login_rows = await session.execute(
        sa.select(*user_logins.c)
        .where(user_logins.c.user_id == user_id)
        .order_by(user_logins.c.login_date.desc(), user_logins.c.id.desc())
    )

    return CredentialRecord(
        user_id=user_id,
        username=cast(str, row["username"]),
        password_hash=cast(str, row["password_hash"]),
        status=AccountStatus(cast(str, row["status"])),
        password_expires_at=as_optional_utc(row["password_expires_at"]),
        roles=tuple(Role(cast(str, value)) for value in role_rows.scalars().all()),
        first_name=cast(str, row["first_name"]),
        last_name=cast(str, row["last_name"]),
        email=cast(str, row["email"]),
        phone=cast(str | None, row["phone"]),
        privacy_policy_accepted=cast(bool | None, row["privacy_policy_accepted"]),
        created_at=as_utc(row["created_at"]),
        company_code=cast(str | None, company_rows.scalar_one_or_none()),
        login_history=tuple(_to_login_entry(item) for item in login_rows.mappings().all()),
        reset_token=cast(str | None, row["reset_token"]),
        reset_token_expires_at=as_optional_utc(row["reset_token_expires_at"]),
    )


def _to_login_entry(row: sa.RowMapping) -> LoginHistoryEntry:
    return LoginHistoryEntry(
        user_id=as_uuid(row["user_id"]),
        device_id=cast(str | None, row["device_id"]),
        ip_address=cast(str | None, row["ip_address"]),
        channel_code=cast(str, row["channel_code"]),
        login_date=as_utc(row["login_date"]),
    )
