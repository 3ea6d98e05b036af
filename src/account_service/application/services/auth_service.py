"""Authentication orchestration: credentials, lockout, OTP challenge and session issuance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID

from account_service.application.events import EventTopics, publish_safely
from account_service.application.ports.credential_store_port import (
    CredentialRecord,
    CredentialStorePort,
    LoginHistoryEntry,
)
from account_service.application.ports.event_publisher_port import EventPublisherPort
from account_service.application.ports.otp_repository_port import OtpPurpose
from account_service.application.ports.password_hasher_port import PasswordHasherPort
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    propagate,
    success,
)
from account_service.application.services.lockout_tracker import LockoutTracker
from account_service.application.services.otp_engine import OtpChallengeView, OtpEngine
from account_service.application.services.session_issuer import IssuedSession, SessionIssuer
from account_service.domain.auth.account_status import AccountStatus, assert_transition
from account_service.domain.auth.login_flow import LoginState, advance
from account_service.domain.auth.roles import ADMIN_ROLES, Role, role_display_name

logger = logging.getLogger(__name__)

DEFAULT_LOCKOUT_THRESHOLD = 5


class LoginChannel(StrEnum):
    """Entry point a login arrives through; decides the role gate."""

    DISTRIBUTOR = "distributor"
    ADMIN = "admin"


@dataclass(frozen=True)
class LoginRequest:
    """Username/password login with client context."""

    username: str
    password: str
    channel_code: str
    device_id: str | None = None
    ip_address: str | None = None


@dataclass(frozen=True)
class TwoFactorLoginRequest:
    """First step of a two-factor login."""

    username: str
    password: str
    privacy_policy_accepted: bool | None = None


@dataclass(frozen=True)
class TwoFactorCompletionRequest:
    """Second step of a two-factor login."""

    otp_code: str
    display_id: str
    channel_code: str
    device_id: str | None = None
    ip_address: str | None = None
    privacy_policy_accepted: bool | None = None


@dataclass(frozen=True)
class UserProfile:
    """Profile returned alongside an issued session."""

    user_id: UUID
    username: str
    first_name: str
    last_name: str
    email: str
    role: str
    company_code: str | None
    last_login_at: datetime | None


@dataclass(frozen=True)
class LoginResult:
    """Issued session plus the caller's profile."""

    session: IssuedSession
    profile: UserProfile


def _channel_allows(channel: LoginChannel, role: Role | None) -> bool:
    if channel is LoginChannel.ADMIN:
        return role in ADMIN_ROLES
    return role is Role.DISTRIBUTOR


def _status_failure(
    user: CredentialRecord,
    *,
    now: datetime,
) -> ServiceResult[CredentialRecord] | None:
    """Return the status-specific failure for a user who may not log in."""

    if user.status is AccountStatus.EXPIRED or (
        user.password_expires_at is not None and user.password_expires_at < now
    ):
        return failure(
            ErrorKind.NOT_AUTHORIZED,
            ErrorCode.ACCOUNT_EXPIRED,
            Messages.ACCOUNT_EXPIRED,
        )
    if user.status is AccountStatus.INACTIVE:
        return failure(
            ErrorKind.NOT_AUTHORIZED,
            ErrorCode.ACCOUNT_DISABLED,
            Messages.ACCOUNT_DISABLED,
        )
    if user.status is AccountStatus.LOCKED:
        return failure(ErrorKind.NOT_AUTHORIZED, ErrorCode.ACCOUNT_LOCKED, Messages.ACCOUNT_LOCKED)
    return None


class AuthService:
    """Drive one login request through the login state machine."""

    def __init__(
        self,
        *,
        credentials: CredentialStorePort,
        password_hasher: PasswordHasherPort,
        lockout: LockoutTracker,
        otp_engine: OtpEngine,
        session_issuer: SessionIssuer,
        publisher: EventPublisherPort,
        lockout_threshold: int = DEFAULT_LOCKOUT_THRESHOLD,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._credentials = credentials
        self._password_hasher = password_hasher
        self._lockout = lockout
        self._otp_engine = otp_engine
        self._session_issuer = session_issuer
        self._publisher = publisher
        self._lockout_threshold = lockout_threshold
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def login(self, request: LoginRequest) -> ServiceResult[LoginResult]:
        """Distributor login without a second factor."""

        return await self._login(request, channel=LoginChannel.DISTRIBUTOR)

    async def admin_login(self, request: LoginRequest) -> ServiceResult[LoginResult]:
        """Administrator login without a second factor."""

        return await self._login(request, channel=LoginChannel.ADMIN)

    async def distributor_two_factor_login(
        self,
        request: TwoFactorLoginRequest,
    ) -> ServiceResult[OtpChallengeView]:
        """Verify distributor credentials and send a login OTP."""

        return await self._two_factor_login(request, channel=LoginChannel.DISTRIBUTOR)

    async def admin_two_factor_login(
        self,
        request: TwoFactorLoginRequest,
    ) -> ServiceResult[OtpChallengeView]:
        """Verify administrator credentials, apply the privacy policy gate and send an OTP."""

        return await self._two_factor_login(request, channel=LoginChannel.ADMIN)

    async def complete_two_factor(
        self,
        request: TwoFactorCompletionRequest,
    ) -> ServiceResult[LoginResult]:
        """Exchange a valid login OTP for a session."""

        state = LoginState.OTP_CHALLENGE
        validated = await self._otp_engine.validate(
            code=request.otp_code,
            display_id=request.display_id,
            purpose=OtpPurpose.LOGIN,
        )
        if validated.error is not None:
            return propagate(validated)
        outcome = validated.unwrap()
        if outcome.user_id is None:
            return failure(ErrorKind.NOT_AUTHORIZED, ErrorCode.OTP_INVALID, Messages.OTP_INVALID)

        user = await self._credentials.get_by_id(user_id=outcome.user_id)
        if user is None:
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.INVALID_CREDENTIALS,
                Messages.INVALID_CREDENTIALS,
            )
        status_error = _status_failure(user, now=self._now())
        if status_error is not None:
            return propagate(status_error)
        if user.privacy_policy_accepted is not True and request.privacy_policy_accepted is False:
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.PRIVACY_POLICY_NOT_ACCEPTED,
                Messages.PRIVACY_POLICY_NOT_ACCEPTED,
            )

        state = advance(state, LoginState.SESSION_ISSUED)
        result = await self._finalize_login(
            user,
            channel_code=request.channel_code,
            device_id=request.device_id,
            ip_address=request.ip_address,
            accept_privacy_policy=True,
        )
        logger.info("two_factor_login_completed user_id=%s state=%s", user.user_id, state.value)
        return success(result)

    async def _login(
        self,
        request: LoginRequest,
        *,
        channel: LoginChannel,
    ) -> ServiceResult[LoginResult]:
        authenticated = await self._authenticate(
            username=request.username,
            password=request.password,
            channel=channel,
        )
        if authenticated.error is not None:
            return propagate(authenticated)
        user = authenticated.unwrap()

        state = advance(LoginState.CREDENTIALS_VERIFIED, LoginState.SESSION_ISSUED)
        result = await self._finalize_login(
            user,
            channel_code=request.channel_code,
            device_id=request.device_id,
            ip_address=request.ip_address,
            accept_privacy_policy=False,
        )
        logger.info(
            "login_succeeded user_id=%s channel=%s state=%s",
            user.user_id,
            channel.value,
            state.value,
        )
        return success(result)

    async def _two_factor_login(
        self,
        request: TwoFactorLoginRequest,
        *,
        channel: LoginChannel,
    ) -> ServiceResult[OtpChallengeView]:
        authenticated = await self._authenticate(
            username=request.username,
            password=request.password,
            channel=channel,
        )
        if authenticated.error is not None:
            return propagate(authenticated)
        user = authenticated.unwrap()

        state = LoginState.CREDENTIALS_VERIFIED
        if channel is LoginChannel.ADMIN:
            state = advance(state, LoginState.PRIVACY_POLICY_GATE)
            accepted = (
                user.privacy_policy_accepted is True or request.privacy_policy_accepted is True
            )
            if not accepted:
                logger.info("privacy_policy_gate_rejected user_id=%s", user.user_id)
                return failure(
                    ErrorKind.NOT_AUTHORIZED,
                    ErrorCode.PRIVACY_POLICY_NOT_ACCEPTED,
                    Messages.PRIVACY_POLICY_NOT_ACCEPTED,
                )

        state = advance(state, LoginState.OTP_CHALLENGE)
        challenge = await self._otp_engine.generate(
            email=user.email,
            phone=user.phone,
            user_id=user.user_id,
            purpose=OtpPurpose.LOGIN,
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.OTP_GENERATED,
            message=challenge.to_event_message(),
        )
        logger.info(
            "two_factor_challenge_issued user_id=%s channel=%s state=%s",
            user.user_id,
            channel.value,
            state.value,
        )
        return success(challenge.view())

    async def _authenticate(
        self,
        *,
        username: str,
        password: str,
        channel: LoginChannel,
    ) -> ServiceResult[CredentialRecord]:
        """Move AwaitingCredentials to CredentialsVerified or return the failure."""

        user = await self._credentials.find_by_username(username=username)
        if user is None:
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.INVALID_CREDENTIALS,
                Messages.INVALID_CREDENTIALS,
            )
        status_error = _status_failure(user, now=self._now())
        if status_error is not None:
            return status_error

        if not self._password_hasher.verify_password(
            password=password,
            password_hash=user.password_hash,
        ):
            return await self._register_failed_attempt(user)

        if not _channel_allows(channel, user.primary_role):
            logger.info(
                "login_role_rejected user_id=%s channel=%s",
                user.user_id,
                channel.value,
            )
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.UNAUTHORIZED_ACCESS,
                Messages.UNAUTHORIZED_ACCESS,
            )
        advance(LoginState.AWAITING_CREDENTIALS, LoginState.CREDENTIALS_VERIFIED)
        return success(user)

    async def _register_failed_attempt(
        self,
        user: CredentialRecord,
    ) -> ServiceResult[CredentialRecord]:
        attempts = await self._lockout.record_failed_attempt(user_id=user.user_id)
        if not self._lockout.is_locked_out(attempts, self._lockout_threshold):
            logger.info("login_password_mismatch user_id=%s attempts=%s", user.user_id, attempts)
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.INVALID_CREDENTIALS,
                Messages.INVALID_CREDENTIALS,
            )

        assert_transition(user.status, AccountStatus.LOCKED)
        await self._credentials.update(replace(user, status=AccountStatus.LOCKED))
        await self._lockout.reset(user_id=user.user_id)
        logger.warning("account_locked user_id=%s attempts=%s", user.user_id, attempts)
        return failure(ErrorKind.NOT_AUTHORIZED, ErrorCode.ACCOUNT_LOCKED, Messages.ACCOUNT_LOCKED)

    async def _finalize_login(
        self,
        user: CredentialRecord,
        *,
        channel_code: str,
        device_id: str | None,
        ip_address: str | None,
        accept_privacy_policy: bool,
    ) -> LoginResult:
        """Record the login, sign the session, then publish and clear the counter."""

        if accept_privacy_policy and user.privacy_policy_accepted is not True:
            await self._credentials.update(replace(user, privacy_policy_accepted=True))

        await self._credentials.add_login_history(
            LoginHistoryEntry(
                user_id=user.user_id,
                device_id=device_id,
                ip_address=ip_address,
                channel_code=channel_code,
                login_date=self._now(),
            )
        )
        session = self._session_issuer.issue(user)

        latest = await self._credentials.latest_login(user_id=user.user_id)
        await publish_safely(
            self._publisher,
            topic=EventTopics.USER_LOGIN,
            message={
                "user_id": str(user.user_id),
                "login_date": (latest.login_date if latest else self._now()).isoformat(),
                "channel_code": channel_code,
                "device_id": device_id,
                "ip_address": ip_address,
                "date_created": user.created_at.isoformat(),
            },
        )
        await self._lockout.reset(user_id=user.user_id)

        role = user.primary_role
        return LoginResult(
            session=session,
            profile=UserProfile(
                user_id=user.user_id,
                username=user.username,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                role=role_display_name(role) if role is not None else "",
                company_code=user.company_code,
                last_login_at=user.last_login_at,
            ),
        )
