from __future__ import annotations

from dataclasses import asdict, replace
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from account_service.application.events import EventTopics
from account_service.application.ports.credential_store_port import CredentialRecord
from account_service.application.ports.otp_repository_port import OtpCreateInput, OtpRecord
from account_service.application.results import ErrorCode, ErrorKind
from account_service.application.services.otp_engine import OtpEngine
from account_service.application.services.password_reset_service import (
    PasswordPolicy,
    PasswordResetService,
    generate_reset_token,
)
from account_service.config.settings import DEFAULT_PASSWORD_PATTERN
from account_service.domain.auth.account_status import AccountStatus
from account_service.domain.auth.roles import Role

NOW = datetime(2026, 3, 3, 9, 0, tzinfo=UTC)


class FakeCredentialStore:
    def __init__(self, user: CredentialRecord, *, history: list[str] | None = None) -> None:
        self.user = user
        self.history = list(history or [])

    async def find_by_username_insensitive(self, *, username: str) -> CredentialRecord | None:
        return self.user if self.user.username.lower() == username.lower() else None

    async def get_by_id(self, *, user_id: UUID) -> CredentialRecord | None:
        return self.user if self.user.user_id == user_id else None

    async def find_by_reset_token(self, *, reset_token: str) -> CredentialRecord | None:
        return self.user if self.user.reset_token == reset_token else None

    async def update(self, record: CredentialRecord) -> None:
        self.user = record

    async def recent_password_hashes(self, *, user_id: UUID, limit: int) -> list[str]:
        return list(reversed(self.history))[:limit]

    async def add_password_history(self, *, user_id: UUID, password_hash: str) -> None:
        self.history.append(password_hash)


class FakeOtpRepository:
    def __init__(self) -> None:
        self.records: dict[int, OtpRecord] = {}

    async def create_superseding(self, payload: OtpCreateInput) -> OtpRecord:
        record = OtpRecord(
            id=len(self.records) + 1,
            consumed_at=None,
            superseded_at=None,
            **asdict(payload),
        )
        self.records[record.id] = record
        return record

    async def get_by_display_id(self, *, display_id: str) -> OtpRecord | None:
        return next((r for r in self.records.values() if r.display_id == display_id), None)

    async def mark_consumed(self, *, otp_id: int, consumed_at: datetime) -> bool:
        record = self.records[otp_id]
        if record.consumed_at is not None:
            return False
        self.records[otp_id] = replace(record, consumed_at=consumed_at)
        return True


class FakePasswordHasher:
    def hash_password(self, password: str) -> str:
        return f"hashed::{password}"

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{password}"


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, *, topic: str, message: dict[str, Any]) -> None:
        self.events.append((topic, message))


class MutableClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current


def _user(
    *,
    role: Role = Role.DISTRIBUTOR,
    status: AccountStatus = AccountStatus.LOCKED,
) -> CredentialRecord:
    return CredentialRecord(
        user_id=uuid4(),
        username="jdoe",
        password_hash="hashed::Sunrise#2024",
        status=status,
        password_expires_at=NOW + timedelta(days=10),
        roles=(role,),
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="0712345678",
        privacy_policy_accepted=True,
        created_at=NOW - timedelta(days=200),
    )


class Harness:
    def __init__(self, user: CredentialRecord, *, history: list[str] | None = None) -> None:
        self.clock = MutableClock(NOW)
        self.credentials = FakeCredentialStore(user, history=history)
        self.publisher = RecordingPublisher()
        self.service = PasswordResetService(
            credentials=self.credentials,  # type: ignore[arg-type]
            otp_engine=OtpEngine(
                otps=FakeOtpRepository(),
                now=self.clock,
                code_factory=lambda size: "9" * size,
            ),
            password_hasher=FakePasswordHasher(),
            publisher=self.publisher,
            policy=PasswordPolicy(
                pattern=DEFAULT_PASSWORD_PATTERN,
                expiry=timedelta(days=90),
                recycle_limit=3,
                reset_token_length=24,
                reset_token_expiry=timedelta(minutes=30),
            ),
            now=self.clock,
        )

    async def reset_token(self) -> str:
        challenge = await self.service.initiate_password_reset(username="JDOE")
        validated = await self.service.validate_password_reset_otp(
            otp_code="999999",
            display_id=challenge.unwrap().display_id,
        )
        return validated.unwrap()


def test_generate_reset_token_is_alphanumeric() -> None:
    token = generate_reset_token(40)

    assert len(token) == 40
    assert token.isalnum()


@pytest.mark.asyncio
async def test_reset_reactivates_locked_account() -> None:
    harness = Harness(_user(), history=["hashed::Sunrise#2024"])
    token = await harness.reset_token()

    result = await harness.service.complete_password_reset(
        reset_token=token,
        password="Moonlight#2025",
    )

    assert result.ok
    user = harness.credentials.user
    assert user.status is AccountStatus.ACTIVE
    assert user.password_hash == "hashed::Moonlight#2025"
    assert user.password_expires_at == NOW + timedelta(days=90)
    assert user.reset_token is None
    assert harness.credentials.history[-1] == "hashed::Moonlight#2025"
    topic, message = harness.publisher.events[-1]
    assert topic == EventTopics.PASSWORD_UPDATED
    assert message["old_account_status"] == "locked"
    assert message["new_account_status"] == "active"


@pytest.mark.asyncio
async def test_reset_token_is_single_use() -> None:
    harness = Harness(_user())
    token = await harness.reset_token()
    await harness.service.complete_password_reset(reset_token=token, password="Moonlight#2025")

    again = await harness.service.complete_password_reset(
        reset_token=token,
        password="Starlight#2026",
    )

    assert again.error is not None
    assert again.error.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_recent_password_reuse_is_rejected() -> None:
    history = ["hashed::Old#Pass2021", "hashed::Moonlight#2025", "hashed::Sunrise#2024"]
    harness = Harness(_user(), history=history)
    token = await harness.reset_token()

    result = await harness.service.complete_password_reset(
        reset_token=token,
        password="Moonlight#2025",
    )

    assert result.error is not None
    assert result.error.code is ErrorCode.PASSWORD_POLICY_VIOLATION
    assert "3" in result.error.message


@pytest.mark.asyncio
async def test_password_older_than_recycle_limit_is_allowed() -> None:
    history = [
        "hashed::Moonlight#2025",
        "hashed::First#Pass2022",
        "hashed::Second#Pass2023",
        "hashed::Sunrise#2024",
    ]
    harness = Harness(_user(), history=history)
    token = await harness.reset_token()

    result = await harness.service.complete_password_reset(
        reset_token=token,
        password="Moonlight#2025",
    )

    assert result.ok


@pytest.mark.asyncio
async def test_expired_reset_token_is_conflict() -> None:
    harness = Harness(_user())
    token = await harness.reset_token()
    harness.clock.current += timedelta(minutes=31)

    result = await harness.service.complete_password_reset(
        reset_token=token,
        password="Moonlight#2025",
    )

    assert result.error is not None
    assert result.error.kind is ErrorKind.CONFLICT
    assert result.error.code is ErrorCode.RESET_TOKEN_EXPIRED


@pytest.mark.asyncio
async def test_password_containing_username_is_rejected() -> None:
    harness = Harness(_user())
    token = await harness.reset_token()

    result = await harness.service.complete_password_reset(
        reset_token=token,
        password="Jdoe#Pass2025",
    )

    assert result.error is not None
    assert result.error.code is ErrorCode.PASSWORD_COMBINATION_INVALID


@pytest.mark.asyncio
async def test_initiate_respects_distributor_and_admin_channels() -> None:
    admin = Harness(_user(role=Role.ADMINISTRATOR))

    distributor_channel = await admin.service.initiate_password_reset(username="jdoe")
    admin_channel = await admin.service.initiate_admin_password_reset(username="jdoe")
    unknown = await admin.service.initiate_admin_password_reset(username="ghost")

    assert distributor_channel.error is not None
    assert distributor_channel.error.code is ErrorCode.USER_NOT_FOUND
    assert admin_channel.ok
    assert unknown.error is not None
    assert unknown.error.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_initiate_trims_username_and_treats_blank_as_unknown() -> None:
    harness = Harness(_user())

    padded = await harness.service.initiate_password_reset(username="  jdoe ")
    blank = await harness.service.initiate_password_reset(username="   ")

    assert padded.ok
    assert blank.error is not None
    assert blank.error.code is ErrorCode.USER_NOT_FOUND
