"""SQLAlchemy adapter for distributor deletion requests."""

from __future__ import annotations

from typing import cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.deletion_request_repository_port import (
    DeletionRequestRecord,
    DeletionRequestRepositoryPort,
    DeletionRequestView,
)
from account_service.infrastructure.db.metadata import deletion_requests, users
from account_service.infrastructure.db.row_mapping import as_utc, as_uuid


class SqlAlchemyDeletionRequestRepository(DeletionRequestRepositoryPort):
    """Deletion request repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, *, user_id: UUID, reason: str) -> DeletionRequestRecord:
        statement = (
            sa.insert(deletion_requests)
            .values(user_id=user_id, reason=reason)
            .returning(*deletion_requests.c)
        )
        async with self._session_factory() as session:
            row = (await session.execute(statement)).mappings().one()
            await session.commit()

        return DeletionRequestRecord(
            id=int(row["id"]),
            user_id=as_uuid(row["user_id"]),
            reason=cast(str, row["reason"]),
            created_at=as_utc(row["created_at"]),
        )

    async def list_all(self) -> list[DeletionRequestView]:
        statement = (
            sa.select(
                deletion_requests.c.id,
                deletion_requests.c.user_id,
                deletion_requests.c.reason,
                deletion_requests.c.created_at,
                users.c.username,
                users.c.first_name,
                users.c.last_name,
            )
            .join(users, users.c.id == deletion_requests.c.user_id)
            .order_by(deletion_requests.c.created_at.desc(), deletion_requests.c.id.desc())
        )
        async with self._session_factory() as session:
            rows = (await session.execute(statement)).mappings().all()

        return [
            DeletionRequestView(
                id=int(row["id"]),
                user_id=as_uuid(row["user_id"]),
                username=cast(str, row["username"]),
                first_name=cast(str, row["first_name"]),
                last_name=cast(str, row["last_name"]),
                reason=cast(str, row["reason"]),
                created_at=as_utc(row["created_at"]),
            )
            for row in rows
        ]
