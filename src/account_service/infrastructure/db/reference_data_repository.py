"""SQLAlchemy adapter for company and country reference data."""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.reference_data_port import ReferenceDataPort
from account_service.infrastructure.db.metadata import companies, countries


class SqlAlchemyReferenceDataRepository(ReferenceDataPort):
    """Reference data lookups; codes compare case-insensitively."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def company_exists(self, *, code: str) -> bool:
        return await self._exists(companies, code=code)

    async def country_exists(self, *, code: str) -> bool:
        return await self._exists(countries, code=code)

    async def _exists(self, table: sa.Table, *, code: str) -> bool:
        statement = (
            sa.select(table.c.code)
            .where(sa.func.lower(table.c.code) == code.strip().lower())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
        return result.first() is not None
