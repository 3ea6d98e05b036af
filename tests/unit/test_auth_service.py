from __future__ import annotations

import asyncio
from dataclasses import asdict, replace
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from account_service.application.events import EventTopics
from account_service.application.ports.credential_store_port import (
    CredentialRecord,
    LoginHistoryEntry,
)
from account_service.application.ports.otp_repository_port import (
    OtpCreateInput,
    OtpPurpose,
    OtpRecord,
)
from account_service.application.results import ErrorCode
from account_service.application.services.auth_service import (
    AuthService,
    LoginRequest,
    TwoFactorCompletionRequest,
    TwoFactorLoginRequest,
)
from account_service.application.services.lockout_tracker import LockoutTracker
from account_service.application.services.otp_engine import OtpEngine
from account_service.application.services.session_issuer import SessionIssuer
from account_service.domain.auth.account_status import AccountStatus
from account_service.domain.auth.roles import Role
from account_service.infrastructure.cache.memory_cache import InMemoryTransientCache
from account_service.infrastructure.security.jwt_signer import JwtTokenSigner

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


class FakeCredentialStore:
    def __init__(self, *users: CredentialRecord) -> None:
        self.users = {user.user_id: user for user in users}
        self.logins: list[LoginHistoryEntry] = []
        self.updates: list[CredentialRecord] = []

    async def find_by_username(self, *, username: str) -> CredentialRecord | None:
        return next((u for u in self.users.values() if u.username == username), None)

    async def find_by_username_insensitive(self, *, username: str) -> CredentialRecord | None:
        return next(
            (u for u in self.users.values() if u.username.lower() == username.lower()),
            None,
        )

    async def get_by_id(self, *, user_id: UUID) -> CredentialRecord | None:
        return self.users.get(user_id)

    async def find_by_reset_token(self, *, reset_token: str) -> CredentialRecord | None:
        return None

    async def username_exists(self, *, username: str) -> bool:
        return await self.find_by_username_insensitive(username=username) is not None

    async def update(self, record: CredentialRecord) -> None:
        self.updates.append(record)
        self.users[record.user_id] = record

    async def add_login_history(self, entry: LoginHistoryEntry) -> None:
        self.logins.append(entry)

    async def latest_login(self, *, user_id: UUID) -> LoginHistoryEntry | None:
        entries = [entry for entry in self.logins if entry.user_id == user_id]
        return entries[-1] if entries else None

    async def recent_password_hashes(self, *, user_id: UUID, limit: int) -> list[str]:
        return []

    async def add_password_history(self, *, user_id: UUID, password_hash: str) -> None:
        return None


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


def _user(
    *,
    username: str = "jdoe",
    role: Role = Role.DISTRIBUTOR,
    status: AccountStatus = AccountStatus.ACTIVE,
    privacy_policy_accepted: bool | None = True,
    password_expires_at: datetime | None = None,
) -> CredentialRecord:
    return CredentialRecord(
        user_id=uuid4(),
        username=username,
        password_hash="hashed::Sunrise#2024",
        status=status,
        password_expires_at=password_expires_at,
        roles=(role,),
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="0712345678",
        privacy_policy_accepted=privacy_policy_accepted,
        created_at=NOW - timedelta(days=30),
    )


class Harness:
    def __init__(self, *users: CredentialRecord) -> None:
        self.credentials = FakeCredentialStore(*users)
        self.cache = InMemoryTransientCache(now=lambda: NOW)
        self.lockout = LockoutTracker(cache=self.cache, now=lambda: NOW)
        self.otps = FakeOtpRepository()
        self.publisher = RecordingPublisher()
        self.signer = JwtTokenSigner(
            secret_key="unit-test-secret-key-with-32-bytes!!",
            issuer="account-service",
            audience="account-service-clients",
        )
        self.service = AuthService(
            credentials=self.credentials,
            password_hasher=FakePasswordHasher(),
            lockout=self.lockout,
            otp_engine=OtpEngine(
                otps=self.otps,
                now=lambda: NOW,
                code_factory=lambda size: "1" * size,
            ),
            session_issuer=SessionIssuer(signer=self.signer),
            publisher=self.publisher,
            lockout_threshold=5,
            now=lambda: NOW,
        )


def _login(username: str = "jdoe", password: str = "Sunrise#2024") -> LoginRequest:
    return LoginRequest(
        username=username,
        password=password,
        channel_code="WEB",
        device_id="device-1",
        ip_address="10.0.0.1",
    )


@pytest.mark.asyncio
async def test_distributor_login_issues_session_with_profile_claims() -> None:
    user = _user()
    harness = Harness(user)

    result = await harness.service.login(_login())

    assert result.ok
    login = result.unwrap()
    claims = harness.signer.verify(login.session.token)
    assert claims is not None
    assert claims["user_name"] == "jdoe"
    assert claims["role"] == "Distributor"
    assert claims["user_id"] == str(user.user_id)
    assert claims["email_address"] == "jane@example.com"
    assert login.session.expires_in == 3600
    assert login.profile.role == "Distributor"

    assert len(harness.credentials.logins) == 1
    assert harness.credentials.logins[0].channel_code == "WEB"
    topics = [topic for topic, _ in harness.publisher.events]
    assert topics == [EventTopics.USER_LOGIN]


@pytest.mark.asyncio
async def test_sixth_consecutive_failure_locks_account() -> None:
    user = _user()
    harness = Harness(user)

    codes = []
    for _ in range(6):
        result = await harness.service.login(_login(password="wrong"))
        assert result.error is not None
        codes.append(result.error.code)

    assert codes[:5] == [ErrorCode.INVALID_CREDENTIALS] * 5
    assert codes[5] is ErrorCode.ACCOUNT_LOCKED
    assert harness.credentials.users[user.user_id].status is AccountStatus.LOCKED
    assert await harness.cache.get(harness.lockout.key(user.user_id)) is None

    locked = await harness.service.login(_login())
    assert locked.error is not None
    assert locked.error.code is ErrorCode.ACCOUNT_LOCKED


@pytest.mark.asyncio
async def test_successful_login_resets_failure_counter() -> None:
    user = _user()
    harness = Harness(user)
    for _ in range(3):
        await harness.service.login(_login(password="wrong"))

    assert (await harness.service.login(_login())).ok

    assert await harness.cache.get(harness.lockout.key(user.user_id)) is None


@pytest.mark.asyncio
async def test_unknown_user_is_rejected_without_counter() -> None:
    harness = Harness()

    result = await harness.service.login(_login(username="ghost"))

    assert result.error is not None
    assert result.error.code is ErrorCode.INVALID_CREDENTIALS
    assert harness.cache._entries == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expires_at", "expected"),
    [
        (AccountStatus.EXPIRED, None, ErrorCode.ACCOUNT_EXPIRED),
        (AccountStatus.ACTIVE, NOW - timedelta(days=1), ErrorCode.ACCOUNT_EXPIRED),
        (AccountStatus.INACTIVE, None, ErrorCode.ACCOUNT_DISABLED),
        (AccountStatus.LOCKED, None, ErrorCode.ACCOUNT_LOCKED),
    ],
)
async def test_status_blocks_login_before_password_check(
    status: AccountStatus,
    expires_at: datetime | None,
    expected: ErrorCode,
) -> None:
    harness = Harness(_user(status=status, password_expires_at=expires_at))

    result = await harness.service.login(_login())

    assert result.error is not None
    assert result.error.code is expected


@pytest.mark.asyncio
async def test_channel_role_gates() -> None:
    distributor = _user()
    admin = _user(username="root", role=Role.SUPER_ADMINISTRATOR)
    harness = Harness(distributor, admin)

    admin_as_distributor = await harness.service.login(_login(username="root"))
    distributor_as_admin = await harness.service.admin_login(_login())
    admin_login = await harness.service.admin_login(_login(username="root"))

    assert admin_as_distributor.error is not None
    assert admin_as_distributor.error.code is ErrorCode.UNAUTHORIZED_ACCESS
    assert distributor_as_admin.error is not None
    assert distributor_as_admin.error.code is ErrorCode.UNAUTHORIZED_ACCESS
    assert admin_login.ok
    assert admin_login.unwrap().profile.role == "SuperAdministrator"


@pytest.mark.asyncio
async def test_admin_privacy_gate_rejects_unaccepted_policy() -> None:
    admin = _user(username="root", role=Role.ADMINISTRATOR, privacy_policy_accepted=None)
    harness = Harness(admin)

    result = await harness.service.admin_two_factor_login(
        TwoFactorLoginRequest(username="root", password="Sunrise#2024")
    )

    assert result.error is not None
    assert result.error.code is ErrorCode.PRIVACY_POLICY_NOT_ACCEPTED
    assert harness.otps.records == {}


@pytest.mark.asyncio
async def test_admin_two_factor_round_trip_records_policy_acceptance() -> None:
    admin = _user(username="root", role=Role.ADMINISTRATOR, privacy_policy_accepted=None)
    harness = Harness(admin)

    challenge = await harness.service.admin_two_factor_login(
        TwoFactorLoginRequest(
            username="root",
            password="Sunrise#2024",
            privacy_policy_accepted=True,
        )
    )
    assert challenge.ok
    view = challenge.unwrap()
    assert view.masked_phone == "******5678"

    completed = await harness.service.complete_two_factor(
        TwoFactorCompletionRequest(
            otp_code="111111",
            display_id=view.display_id,
            channel_code="ADMIN-WEB",
        )
    )

    assert completed.ok
    assert completed.unwrap().profile.username == "root"
    assert harness.credentials.users[admin.user_id].privacy_policy_accepted is True
    topics = [topic for topic, _ in harness.publisher.events]
    assert topics == [EventTopics.OTP_GENERATED, EventTopics.USER_LOGIN]

    replay = await harness.service.complete_two_factor(
        TwoFactorCompletionRequest(
            otp_code="111111",
            display_id=view.display_id,
            channel_code="ADMIN-WEB",
        )
    )
    assert replay.error is not None
    assert replay.error.code is ErrorCode.OTP_ALREADY_USED


@pytest.mark.asyncio
async def test_completion_rejects_codes_issued_for_other_workflows() -> None:
    user = _user()
    harness = Harness(user)
    challenge = await OtpEngine(
        otps=harness.otps,
        now=lambda: NOW,
        code_factory=lambda size: "2" * size,
    ).generate(email=user.email, user_id=user.user_id, purpose=OtpPurpose.PASSWORD_RESET)

    result = await harness.service.complete_two_factor(
        TwoFactorCompletionRequest(
            otp_code="222222",
            display_id=challenge.display_id,
            channel_code="WEB",
        )
    )

    assert result.error is not None
    assert result.error.code is ErrorCode.OTP_INVALID


@pytest.mark.asyncio
async def test_publisher_failure_does_not_fail_login() -> None:
    user = _user()
    harness = Harness(user)

    async def _failing_publish(*, topic: str, message: dict[str, Any]) -> None:
        raise RuntimeError("bus down")

    harness.publisher.publish = _failing_publish  # type: ignore[method-assign]

    result = await harness.service.login(_login())

    assert result.ok


async def _two_factor_challenge(harness: Harness, user: CredentialRecord) -> str:
    request = TwoFactorLoginRequest(
        username=user.username,
        password="Sunrise#2024",
        privacy_policy_accepted=True,
    )
    if user.primary_role is Role.DISTRIBUTOR:
        challenge = await harness.service.distributor_two_factor_login(request)
    else:
        challenge = await harness.service.admin_two_factor_login(request)
    return challenge.unwrap().display_id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("role", "expected_role"),
    [
        (Role.ADMINISTRATOR, "Administrator"),
        (Role.DISTRIBUTOR, "Distributor"),
    ],
)
async def test_two_factor_session_token_carries_primary_role(
    role: Role,
    expected_role: str,
) -> None:
    user = _user(username="jdoe", role=role)
    harness = Harness(user)
    display_id = await _two_factor_challenge(harness, user)

    completed = await harness.service.complete_two_factor(
        TwoFactorCompletionRequest(otp_code="111111", display_id=display_id, channel_code="WEB")
    )

    assert completed.ok
    claims = harness.signer.verify(completed.unwrap().session.token)
    assert claims is not None
    assert claims["role"] == expected_role
    assert claims["user_id"] == str(user.user_id)
    assert completed.unwrap().profile.role == expected_role


@pytest.mark.asyncio
async def test_completion_with_declined_privacy_policy_is_rejected() -> None:
    user = _user(privacy_policy_accepted=None)
    harness = Harness(user)
    challenge = await harness.service.distributor_two_factor_login(
        TwoFactorLoginRequest(username="jdoe", password="Sunrise#2024")
    )

    result = await harness.service.complete_two_factor(
        TwoFactorCompletionRequest(
            otp_code="111111",
            display_id=challenge.unwrap().display_id,
            channel_code="WEB",
            privacy_policy_accepted=False,
        )
    )

    assert result.error is not None
    assert result.error.code is ErrorCode.PRIVACY_POLICY_NOT_ACCEPTED
    assert harness.credentials.logins == []
    assert harness.credentials.users[user.user_id].privacy_policy_accepted is None


@pytest.mark.asyncio
async def test_cancelled_login_before_signing_issues_no_session() -> None:
    user = _user()
    harness = Harness(user)
    recording = asyncio.Event()
    signed: list[dict[str, Any]] = []
    original_sign = harness.signer.sign

    async def _stalled_history(entry: LoginHistoryEntry) -> None:
        recording.set()
        await asyncio.Event().wait()

    def _recording_sign(claims: dict[str, Any], **kwargs: Any) -> str:
        signed.append(claims)
        return original_sign(claims, **kwargs)

    harness.credentials.add_login_history = _stalled_history  # type: ignore[method-assign]
    harness.signer.sign = _recording_sign  # type: ignore[method-assign]

    task = asyncio.create_task(harness.service.login(_login()))
    await recording.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert signed == []
    assert harness.publisher.events == []
