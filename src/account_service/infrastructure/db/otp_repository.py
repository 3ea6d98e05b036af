"""SQLAlchemy adapter for one-time code persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.otp_repository_port import (
    OtpCreateInput,
    OtpPurpose,
    OtpRecord,
    OtpRepositoryPort,
)
from account_service.infrastructure.db.metadata import otp_codes
from account_service.infrastructure.db.row_mapping import (
    as_optional_utc,
    as_optional_uuid,
    as_utc,
)


class SqlAlchemyOtpRepository(OtpRepositoryPort):
    """OTP repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_superseding(self, payload: OtpCreateInput) -> OtpRecord:
        """Supersede the owner's open codes and insert the new one in one transaction."""

        if payload.user_id is not None:
            owner_condition = otp_codes.c.user_id == payload.user_id
        else:
            owner_condition = otp_codes.c.registration_id == payload.registration_id

        supersede = (
            sa.update(otp_codes)
            .where(
                owner_condition,
                otp_codes.c.consumed_at.is_(None),
                otp_codes.c.superseded_at.is_(None),
            )
            .values(superseded_at=payload.created_at)
        )
        insert = sa.insert(otp_codes).values(
            code_hash=payload.code_hash,
            purpose=payload.purpose.value,
            user_id=payload.user_id,
            registration_id=payload.registration_id,
            email=payload.email,
            phone=payload.phone,
            reference=payload.reference,
            display_id=payload.display_id,
            created_at=payload.created_at,
            expires_at=payload.expires_at,
        ).returning(*otp_codes.c)

        async with self._session_factory() as session:
            await session.execute(supersede)
            result = await session.execute(insert)
            row = result.mappings().one()
            await session.commit()

        return _to_otp_record(row)

    async def get_by_display_id(self, *, display_id: str) -> OtpRecord | None:
        """Return the OTP carrying the display id."""

        statement = sa.select(*otp_codes.c).where(otp_codes.c.display_id == display_id).limit(1)
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_otp_record(row)

    async def mark_consumed(self, *, otp_id: int, consumed_at: datetime) -> bool:
        """Consume an open OTP; concurrent callers race on the conditional update."""

        statement = (
            sa.update(otp_codes)
            .where(
                otp_codes.c.id == otp_id,
                otp_codes.c.consumed_at.is_(None),
                otp_codes.c.superseded_at.is_(None),
            )
            .values(consumed_at=consumed_at)
        )
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        return int(result.rowcount or 0) == 1


def _to_otp_record(row: sa.RowMapping) -> OtpRecord:
    return OtpRecord(
        id=int(row["id"]),
        code_hash=cast(str, row["code_hash"]),
        purpose=OtpPurpose(cast(str, row["purpose"])),
        user_id=as_optional_uuid(row["user_id"]),
        registration_id=as_optional_uuid(row["registration_id"]),
        email=cast(str, row["email"]),
        phone=cast(str | None, row["phone"]),
        reference=cast(str, row["reference"]),
        display_id=cast(str, row["display_id"]),
        created_at=as_utc(row["created_at"]),
        expires_at=as_utc(row["expires_at"]),
        consumed_at=as_optional_utc(row["consumed_at"]),
        superseded_at=as_optional_utc(row["superseded_at"]),
    )
