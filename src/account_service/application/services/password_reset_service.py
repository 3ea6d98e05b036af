"""Password reset: OTP-confirmed reset token, password policy and history checks."""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

from account_service.application.events import EventTopics, publish_safely
from account_service.application.ports.credential_store_port import (
    CredentialRecord,
    CredentialStorePort,
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
from account_service.application.services.otp_engine import OtpChallengeView, OtpEngine
from account_service.domain.auth.account_status import AccountStatus, assert_transition
from account_service.domain.auth.credentials import (
    normalize_username,
    password_contains_username,
    password_matches_policy,
)
from account_service.domain.auth.roles import Role

logger = logging.getLogger(__name__)

_RESET_TOKEN_ALPHABET = string.ascii_letters + string.digits
_REACTIVATED_STATUSES = frozenset({AccountStatus.LOCKED, AccountStatus.EXPIRED})


@dataclass(frozen=True)
class PasswordPolicy:
    """Password and reset token rules."""

    pattern: str
    expiry: timedelta
    recycle_limit: int
    reset_token_length: int
    reset_token_expiry: timedelta


def generate_reset_token(length: int) -> str:
    return "".join(secrets.choice(_RESET_TOKEN_ALPHABET) for _ in range(length))


class PasswordResetService:
    """Reset a forgotten password in three steps: initiate, confirm OTP, complete."""

    def __init__(
        self,
        *,
        credentials: CredentialStorePort,
        otp_engine: OtpEngine,
        password_hasher: PasswordHasherPort,
        publisher: EventPublisherPort,
        policy: PasswordPolicy,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._credentials = credentials
        self._otp_engine = otp_engine
        self._password_hasher = password_hasher
        self._publisher = publisher
        self._policy = policy
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def initiate_password_reset(self, *, username: str) -> ServiceResult[OtpChallengeView]:
        """Start a reset for a distributor user."""

        return await self._initiate(username=username, distributor=True)

    async def initiate_admin_password_reset(
        self,
        *,
        username: str,
    ) -> ServiceResult[OtpChallengeView]:
        """Start a reset for an administrative user."""

        return await self._initiate(username=username, distributor=False)

    async def validate_password_reset_otp(
        self,
        *,
        otp_code: str,
        display_id: str,
    ) -> ServiceResult[str]:
        """Exchange a reset OTP for the reset token stored on the user."""

        validated = await self._otp_engine.validate(
            code=otp_code,
            display_id=display_id,
            purpose=OtpPurpose.PASSWORD_RESET,
        )
        if validated.error is not None:
            return propagate(validated)
        outcome = validated.unwrap()

        user = None
        if outcome.user_id is not None:
            user = await self._credentials.get_by_id(user_id=outcome.user_id)
        if user is None or user.reset_token is None:
            return failure(
                ErrorKind.NOT_FOUND,
                ErrorCode.RESET_TOKEN_NOT_FOUND,
                Messages.RESET_TOKEN_NOT_FOUND,
            )
        return success(user.reset_token)

    async def complete_password_reset(
        self,
        *,
        reset_token: str,
        password: str,
    ) -> ServiceResult[None]:
        """Set a new password, reactivating locked or expired accounts."""

        user = await self._credentials.find_by_reset_token(reset_token=reset_token)
        if user is None:
            return failure(
                ErrorKind.NOT_FOUND,
                ErrorCode.RESET_TOKEN_NOT_FOUND,
                Messages.RESET_TOKEN_NOT_FOUND,
            )
        if password_contains_username(username=user.username, password=password):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.PASSWORD_COMBINATION_INVALID,
                Messages.PASSWORD_COMBINATION_INVALID,
            )
        now = self._now()
        if user.reset_token_expires_at is None or user.reset_token_expires_at < now:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.RESET_TOKEN_EXPIRED,
                Messages.RESET_TOKEN_EXPIRED,
            )
        if not password_matches_policy(password=password, pattern=self._policy.pattern):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.PASSWORD_INVALID,
                Messages.PASSWORD_INVALID,
            )
        if await self._was_recently_used(user, password=password):
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.PASSWORD_POLICY_VIOLATION,
                Messages.PASSWORD_POLICY_VIOLATION.format(number=self._policy.recycle_limit),
            )

        status = user.status
        if status in _REACTIVATED_STATUSES:
            assert_transition(status, AccountStatus.ACTIVE)
            status = AccountStatus.ACTIVE

        password_hash = self._password_hasher.hash_password(password)
        await self._credentials.update(
            replace(
                user,
                password_hash=password_hash,
                password_expires_at=now + self._policy.expiry,
                status=status,
                reset_token=None,
                reset_token_expires_at=None,
            )
        )
        await self._credentials.add_password_history(
            user_id=user.user_id,
            password_hash=password_hash,
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.PASSWORD_UPDATED,
            message={
                "user_id": str(user.user_id),
                "username": user.username,
                "old_account_status": user.status.value,
                "new_account_status": status.value,
                "date_modified": now.isoformat(),
            },
        )
        logger.info(
            "password_reset_completed user_id=%s status=%s",
            user.user_id,
            status.value,
        )
        return ServiceResult()

    async def _initiate(
        self,
        *,
        username: str,
        distributor: bool,
    ) -> ServiceResult[OtpChallengeView]:
        try:
            normalized = normalize_username(username=username)
        except ValueError:
            return failure(ErrorKind.NOT_FOUND, ErrorCode.USER_NOT_FOUND, Messages.USER_NOT_FOUND)
        user = await self._credentials.find_by_username_insensitive(username=normalized)
        if user is None or (user.primary_role is Role.DISTRIBUTOR) != distributor:
            return failure(ErrorKind.NOT_FOUND, ErrorCode.USER_NOT_FOUND, Messages.USER_NOT_FOUND)

        await self._credentials.update(
            replace(
                user,
                reset_token=generate_reset_token(self._policy.reset_token_length),
                reset_token_expires_at=self._now() + self._policy.reset_token_expiry,
            )
        )
        challenge = await self._otp_engine.generate(
            email=user.email,
            phone=user.phone,
            user_id=user.user_id,
            purpose=OtpPurpose.PASSWORD_RESET,
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.OTP_GENERATED,
            message=challenge.to_event_message(),
        )
        logger.info("password_reset_initiated user_id=%s", user.user_id)
        return success(challenge.view())

    async def _was_recently_used(self, user: CredentialRecord, *, password: str) -> bool:
        """Return whether the password matches any of the last N stored hashes."""

        recent = await self._credentials.recent_password_hashes(
            user_id=user.user_id,
            limit=self._policy.recycle_limit,
        )
        return any(
            self._password_hasher.verify_password(password=password, password_hash=item)
            for item in recent
        )
