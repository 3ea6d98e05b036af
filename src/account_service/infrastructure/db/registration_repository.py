"""SQLAlchemy adapter for distributor self-registration."""

from __future__ import annotations

from typing import Any, cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountCreateInput,
)
from account_service.application.ports.registration_repository_port import (
    CompletedRegistration,
    NewDistributorUser,
    RegistrationAlreadyCompletedError,
    RegistrationCreateInput,
    RegistrationRecord,
    RegistrationRepositoryPort,
    RegistrationStatus,
    UsernameTakenError,
)
from account_service.infrastructure.db.credential_repository import load_credential_record
from account_service.infrastructure.db.integrity import violates_unique
from account_service.infrastructure.db.linked_account_repository import insert_linked_account
from account_service.infrastructure.db.metadata import (
    registrations,
    user_password_histories,
    user_roles,
    users,
)
from account_service.infrastructure.db.row_mapping import as_utc, as_uuid


class SqlAlchemyRegistrationRepository(RegistrationRepositoryPort):
    """Registration repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, payload: RegistrationCreateInput) -> RegistrationRecord:
        statement = sa.insert(registrations).values(
            registration_id=uuid4(),
            company_code=payload.company_code,
            country_code=payload.country_code,
            distributor_number=payload.distributor_number,
            channel_code=payload.channel_code,
            device_id=payload.device_id,
            status=RegistrationStatus.NEW.value,
        ).returning(*registrations.c)

        async with self._session_factory() as session:
            result = await session.execute(statement)
            row = result.mappings().one()
            await session.commit()

        return _to_registration_record(row)

    async def get(self, *, registration_id: UUID) -> RegistrationRecord | None:
        statement = (
            sa.select(*registrations.c)
            .where(registrations.c.registration_id == registration_id)
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_registration_record(row)

    async def complete(
        self,
        *,
        registration_id: UUID,
        user: NewDistributorUser,
    ) -> CompletedRegistration:
        """Write every row of a completed registration in one transaction."""

        user_id = uuid4()
        async with self._session_factory() as session:
            marked = cast(
                CursorResult[Any],
                await session.execute(
                    sa.update(registrations)
                    .where(
                        registrations.c.registration_id == registration_id,
                        registrations.c.status == RegistrationStatus.NEW.value,
                    )
                    .values(status=RegistrationStatus.COMPLETED.value)
                ),
            )
            if int(marked.rowcount or 0) != 1:
                await session.rollback()
                raise RegistrationAlreadyCompletedError(str(registration_id))

            registration_row = (
                await session.execute(
                    sa.select(*registrations.c).where(
                        registrations.c.registration_id == registration_id
                    )
                )
            ).mappings().one()

            try:
                await session.execute(
                    sa.insert(users).values(
                        id=user_id,
                        username=user.username,
                        password_hash=user.password_hash,
                        status=user.status.value,
                        password_expires_at=user.password_expires_at,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        email=user.email,
                        phone=user.phone,
                        privacy_policy_accepted=user.privacy_policy_accepted,
                    )
                )
            except IntegrityError as error:
                if violates_unique(error, "uq_users_username", "users.username"):
                    raise UsernameTakenError(user.username) from error
                raise
            await session.execute(
                sa.insert(user_roles).values(user_id=user_id, role=user.role.value, position=0)
            )
            await session.execute(
                sa.insert(user_password_histories).values(
                    user_id=user_id,
                    password_hash=user.password_hash,
                )
            )
            linked_account = await insert_linked_account(
                session,
                LinkedAccountCreateInput(
                    user_id=user_id,
                    company_code=cast(str, registration_row["company_code"]),
                    country_code=cast(str, registration_row["country_code"]),
                    distributor_number=cast(str, registration_row["distributor_number"]),
                    distributor_name=user.distributor_name,
                    friendly_name=None,
                    account_type=user.account_type,
                ),
            )
            user_row = (
                await session.execute(sa.select(*users.c).where(users.c.id == user_id))
            ).mappings().one()
            record = await load_credential_record(session, user_row)
            await session.commit()

        return CompletedRegistration(user=record, linked_account=linked_account)


def _to_registration_record(row: sa.RowMapping) -> RegistrationRecord:
    return RegistrationRecord(
        registration_id=as_uuid(row["registration_id"]),
        company_code=cast(str, row["company_code"]),
        country_code=cast(str, row["country_code"]),
        distributor_number=cast(str, row["distributor_number"]),
        channel_code=cast(str, row["channel_code"]),
        device_id=cast(str | None, row["device_id"]),
        status=RegistrationStatus(cast(str, row["status"])),
        created_at=as_utc(row["created_at"]),
    )
