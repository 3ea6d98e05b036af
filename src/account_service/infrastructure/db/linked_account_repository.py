"""SQLAlchemy adapter for permanent distributor account links."""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountCreateInput,
    LinkedAccountExistsError,
    LinkedAccountPage,
    LinkedAccountRecord,
    LinkedAccountRepositoryPort,
    LinkedAccountSearch,
    LinkedAccountSort,
    UnlinkOutcome,
)
from account_service.domain.accounts.account_types import AccountType
from account_service.infrastructure.db.integrity import violates_unique
from account_service.infrastructure.db.metadata import distributor_accounts, users
from account_service.infrastructure.db.row_mapping import as_optional_utc, as_utc, as_uuid

_UNIQUE_ACCOUNT = "uq_distributor_accounts_company_country_number"


class SqlAlchemyLinkedAccountRepository(LinkedAccountRepositoryPort):
    """Linked account repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def exists(
        self,
        *,
        company_code: str,
        country_code: str,
        distributor_number: str,
    ) -> bool:
        statement = (
            sa.select(distributor_accounts.c.id)
            .where(
                distributor_accounts.c.company_code == company_code,
                distributor_accounts.c.country_code == country_code,
                distributor_accounts.c.distributor_number == distributor_number,
            )
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return result.first() is not None

    async def create(self, payload: LinkedAccountCreateInput) -> LinkedAccountRecord:
        """Persist one linked account row and return it."""

        async with self._session_factory() as session:
            record = await insert_linked_account(session, payload)
            await session.commit()
        return record

    async def list_for_user(self, *, user_id: UUID) -> list[LinkedAccountRecord]:
        statement = (
            sa.select(*distributor_accounts.c)
            .where(distributor_accounts.c.user_id == user_id)
            .order_by(distributor_accounts.c.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return [_to_linked_account_record(row) for row in result.mappings().all()]

    async def search(self, criteria: LinkedAccountSearch) -> LinkedAccountPage:
        """Filter by company, country and a keyword over number and names."""

        conditions = [distributor_accounts.c.user_id == criteria.user_id]
        if criteria.company_code:
            conditions.append(
                sa.func.upper(distributor_accounts.c.company_code)
                == criteria.company_code.strip().upper()
            )
        if criteria.country_code:
            conditions.append(
                sa.func.upper(distributor_accounts.c.country_code)
                == criteria.country_code.strip().upper()
            )
        if criteria.keyword and criteria.keyword.strip():
            pattern = f"%{criteria.keyword.strip().lower()}%"
            conditions.append(
                sa.or_(
                    sa.func.lower(distributor_accounts.c.distributor_number).like(pattern),
                    sa.func.lower(distributor_accounts.c.distributor_name).like(pattern),
                    sa.func.lower(distributor_accounts.c.friendly_name).like(pattern),
                )
            )

        if criteria.sort is LinkedAccountSort.DATE_ASCENDING:
            ordering = (distributor_accounts.c.created_at.asc(), distributor_accounts.c.id.asc())
        else:
            ordering = (distributor_accounts.c.created_at.desc(), distributor_accounts.c.id.desc())

        count_statement = (
            sa.select(sa.func.count()).select_from(distributor_accounts).where(*conditions)
        )
        page_statement = (
            sa.select(*distributor_accounts.c)
            .where(*conditions)
            .order_by(*ordering)
            .offset((criteria.page_index - 1) * criteria.page_size)
            .limit(criteria.page_size)
        )
        async with self._session_factory() as session:
            total_count = int((await session.execute(count_statement)).scalar_one())
            rows = (await session.execute(page_statement)).mappings().all()

        return LinkedAccountPage(
            items=[_to_linked_account_record(row) for row in rows],
            total_count=total_count,
        )

    async def get_for_user(self, *, account_id: int, user_id: UUID) -> LinkedAccountRecord | None:
        statement = sa.select(*distributor_accounts.c).where(
            distributor_accounts.c.id == account_id,
            distributor_accounts.c.user_id == user_id,
        )
        async with self._session_factory() as session:
            row = (await session.execute(statement)).mappings().first()
        return None if row is None else _to_linked_account_record(row)

    async def rename(
        self,
        *,
        account_id: int,
        user_id: UUID,
        friendly_name: str,
        updated_at: datetime,
    ) -> LinkedAccountRecord | None:
        statement = (
            sa.update(distributor_accounts)
            .where(
                distributor_accounts.c.id == account_id,
                distributor_accounts.c.user_id == user_id,
            )
            .values(friendly_name=friendly_name, updated_at=updated_at)
            .returning(*distributor_accounts.c)
        )
        async with self._session_factory() as session:
            row = (await session.execute(statement)).mappings().first()
            await session.commit()
        return None if row is None else _to_linked_account_record(row)

    async def unlink(self, *, account_id: int, user_id: UUID) -> UnlinkOutcome:
        """Lock the owner row, then delete unless it would leave the user with none."""

        async with self._session_factory() as session:
            await session.execute(
                sa.select(users.c.id).where(users.c.id == user_id).with_for_update()
            )
            owned_ids = set(
                (
                    await session.execute(
                        sa.select(distributor_accounts.c.id).where(
                            distributor_accounts.c.user_id == user_id
                        )
                    )
                ).scalars()
            )
            if account_id not in owned_ids:
                return UnlinkOutcome.NOT_FOUND
            if len(owned_ids) == 1:
                return UnlinkOutcome.LAST_ACCOUNT
            await session.execute(
                sa.delete(distributor_accounts).where(distributor_accounts.c.id == account_id)
            )
            await session.commit()
        return UnlinkOutcome.DELETED


async def insert_linked_account(
    session: AsyncSession,
    payload: LinkedAccountCreateInput,
) -> LinkedAccountRecord:
    """Insert one linked account inside the caller's transaction.

    A duplicate company, country and distributor number raises
    `LinkedAccountExistsError`; the caller's transaction must then be discarded.
    """

    statement = sa.insert(distributor_accounts).values(
        user_id=payload.user_id,
        company_code=payload.company_code,
        country_code=payload.country_code,
        distributor_number=payload.distributor_number,
        distributor_name=payload.distributor_name,
        friendly_name=payload.friendly_name,
        account_type=payload.account_type.value,
    ).returning(*distributor_accounts.c)
    try:
        result = await session.execute(statement)
    except IntegrityError as error:
        if violates_unique(error, _UNIQUE_ACCOUNT, "distributor_accounts.company_code"):
            raise LinkedAccountExistsError(payload.distributor_number) from error
        raise
    return _to_linked_account_record(result.mappings().one())


def _to_linked_account_record(row: sa.RowMapping) -> LinkedAccountRecord:
    return LinkedAccountRecord(
        id=int(row["id"]),
        user_id=as_uuid(row["user_id"]),
        company_code=cast(str, row["company_code"]),
        country_code=cast(str, row["country_code"]),
        distributor_number=cast(str, row["distributor_number"]),
        distributor_name=cast(str, row["distributor_name"]),
        friendly_name=cast(str | None, row["friendly_name"]),
        account_type=AccountType(cast(str, row["account_type"])),
        created_at=as_utc(row["created_at"]),
        updated_at=as_optional_utc(row["updated_at"]),
    )
