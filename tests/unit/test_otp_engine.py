from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from account_service.application.ports.otp_repository_port import (
    OtpCreateInput,
    OtpPurpose,
    OtpRecord,
)
from account_service.application.results import ErrorCode, ErrorKind
from account_service.application.services.otp_engine import OtpEngine, hash_otp_code


class FakeOtpRepository:
    def __init__(self) -> None:
        self.records: dict[int, OtpRecord] = {}

    async def create_superseding(self, payload: OtpCreateInput) -> OtpRecord:
        for otp_id, record in list(self.records.items()):
            same_owner = (
                record.user_id == payload.user_id
                and record.registration_id == payload.registration_id
            )
            if same_owner and record.consumed_at is None and record.superseded_at is None:
                self.records[otp_id] = replace(record, superseded_at=payload.created_at)
        record = OtpRecord(
            id=len(self.records) + 1,
            code_hash=payload.code_hash,
            purpose=payload.purpose,
            user_id=payload.user_id,
            registration_id=payload.registration_id,
            email=payload.email,
            phone=payload.phone,
            reference=payload.reference,
            display_id=payload.display_id,
            created_at=payload.created_at,
            expires_at=payload.expires_at,
            consumed_at=None,
            superseded_at=None,
        )
        self.records[record.id] = record
        return record

    async def get_by_display_id(self, *, display_id: str) -> OtpRecord | None:
        return next(
            (item for item in self.records.values() if item.display_id == display_id),
            None,
        )

    async def mark_consumed(self, *, otp_id: int, consumed_at: datetime) -> bool:
        record = self.records[otp_id]
        if record.consumed_at is not None:
            return False
        self.records[otp_id] = replace(record, consumed_at=consumed_at)
        return True


class MutableClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current


def _engine() -> tuple[OtpEngine, FakeOtpRepository, MutableClock]:
    clock = MutableClock(datetime(2026, 3, 1, 9, 0, tzinfo=UTC))
    repository = FakeOtpRepository()
    engine = OtpEngine(
        otps=repository,
        expiry=timedelta(minutes=5),
        now=clock,
        code_factory=lambda size: "4" * size,
    )
    return engine, repository, clock


@pytest.mark.asyncio
async def test_generate_stores_hash_and_masks_contacts() -> None:
    engine, repository, _ = _engine()

    challenge = await engine.generate(
        email="jane@example.com",
        phone="0712345678",
        user_id=uuid4(),
        purpose=OtpPurpose.LOGIN,
    )

    stored = repository.records[challenge.otp_id]
    assert challenge.code == "444444"
    assert stored.code_hash == hash_otp_code("444444")
    assert len(challenge.display_id) == 8
    view = challenge.view()
    assert view.countdown_seconds == 300
    assert view.masked_phone == "******5678"
    assert view.masked_email.endswith("e.com")
    assert "otp_code" in challenge.to_event_message()


@pytest.mark.asyncio
async def test_generate_requires_exactly_one_owner() -> None:
    engine, _, _ = _engine()

    with pytest.raises(ValueError):
        await engine.generate(email="jane@example.com", purpose=OtpPurpose.LOGIN)
    with pytest.raises(ValueError):
        await engine.generate(
            email="jane@example.com",
            purpose=OtpPurpose.LOGIN,
            user_id=uuid4(),
            registration_id=uuid4(),
        )


@pytest.mark.asyncio
async def test_code_is_single_use() -> None:
    engine, _, _ = _engine()
    user_id = uuid4()
    challenge = await engine.generate(
        email="jane@example.com",
        user_id=user_id,
        purpose=OtpPurpose.LOGIN,
    )

    first = await engine.validate(code="444444", display_id=challenge.display_id)
    second = await engine.validate(code="444444", display_id=challenge.display_id)

    assert first.ok
    assert first.unwrap().user_id == user_id
    assert second.error is not None
    assert second.error.code is ErrorCode.OTP_ALREADY_USED
    assert second.error.kind is ErrorKind.CONFLICT


@pytest.mark.asyncio
async def test_expired_code_is_rejected() -> None:
    engine, _, clock = _engine()
    challenge = await engine.generate(
        email="jane@example.com",
        user_id=uuid4(),
        purpose=OtpPurpose.LOGIN,
    )
    clock.current += timedelta(minutes=5)

    result = await engine.validate(code="444444", display_id=challenge.display_id)

    assert result.error is not None
    assert result.error.code is ErrorCode.OTP_EXPIRED


@pytest.mark.asyncio
async def test_new_code_supersedes_previous_open_code() -> None:
    engine, _, _ = _engine()
    user_id = uuid4()
    older = await engine.generate(
        email="jane@example.com",
        user_id=user_id,
        purpose=OtpPurpose.LOGIN,
    )
    newer = await engine.generate(
        email="jane@example.com",
        user_id=user_id,
        purpose=OtpPurpose.LOGIN,
    )

    stale = await engine.validate(code="444444", display_id=older.display_id)
    fresh = await engine.validate(code="444444", display_id=newer.display_id)

    assert stale.error is not None
    assert stale.error.code is ErrorCode.OTP_SUPERSEDED
    assert fresh.ok


@pytest.mark.asyncio
async def test_wrong_code_purpose_or_owner_is_invalid_and_keeps_code_usable() -> None:
    engine, _, _ = _engine()
    user_id = uuid4()
    challenge = await engine.generate(
        email="jane@example.com",
        user_id=user_id,
        purpose=OtpPurpose.ACCOUNT_LINK,
    )

    wrong_code = await engine.validate(code="000000", display_id=challenge.display_id)
    wrong_purpose = await engine.validate(
        code="444444",
        display_id=challenge.display_id,
        purpose=OtpPurpose.LOGIN,
    )
    wrong_owner = await engine.validate(
        code="444444",
        display_id=challenge.display_id,
        user_id=uuid4(),
    )
    unknown = await engine.validate(code="444444", display_id="ZZZZZZZZ")
    accepted = await engine.validate(
        code="444444",
        display_id=challenge.display_id,
        purpose=OtpPurpose.ACCOUNT_LINK,
        user_id=user_id,
    )

    for result in (wrong_code, wrong_purpose, wrong_owner, unknown):
        assert result.error is not None
        assert result.error.code is ErrorCode.OTP_INVALID
        assert result.error.kind is ErrorKind.NOT_AUTHORIZED
    assert accepted.ok
