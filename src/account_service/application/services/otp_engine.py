"""One-time code issuance and validation bound to a user or a registration."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from account_service.application.ports.otp_repository_port import (
    OtpCreateInput,
    OtpPurpose,
    OtpRecord,
    OtpRepositoryPort,
)
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    success,
)
from account_service.domain.masking import mask_string

logger = logging.getLogger(__name__)

DEFAULT_OTP_EXPIRY = timedelta(minutes=5)
_DISPLAY_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_DISPLAY_ID_LENGTH = 8
_CONTACT_MASK_PERCENT = 60


@dataclass(frozen=True)
class OtpChallengeView:
    """Client-facing challenge: no code, masked contact details."""

    reference: str
    display_id: str
    countdown_seconds: int
    masked_email: str
    masked_phone: str


@dataclass(frozen=True)
class OtpChallenge:
    """Freshly generated OTP including the plaintext code for delivery."""

    otp_id: int
    purpose: OtpPurpose
    reference: str
    display_id: str
    code: str
    email: str
    phone: str | None
    created_at: datetime
    expires_at: datetime

    @property
    def countdown_seconds(self) -> int:
        return int((self.expires_at - self.created_at).total_seconds())

    def view(self) -> OtpChallengeView:
        return OtpChallengeView(
            reference=self.reference,
            display_id=self.display_id,
            countdown_seconds=self.countdown_seconds,
            masked_email=mask_string(self.email, percent=_CONTACT_MASK_PERCENT),
            masked_phone=mask_string(self.phone, percent=_CONTACT_MASK_PERCENT),
        )

    def to_event_message(self) -> dict[str, object]:
        """Return the payload consumed by the notification service."""

        return {
            "otp_id": self.otp_id,
            "otp_code": self.code,
            "display_id": self.display_id,
            "email_address": self.email,
            "phone_number": self.phone,
            "date_created": self.created_at.isoformat(),
            "date_expiry": self.expires_at.isoformat(),
        }


@dataclass(frozen=True)
class OtpOutcome:
    """Owner reference returned by a successful validation."""

    otp_id: int
    purpose: OtpPurpose
    user_id: UUID | None
    registration_id: UUID | None
    created_at: datetime


def hash_otp_code(code: str) -> str:
    """Return the stored digest for one plaintext OTP code."""

    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def _random_numeric_code(size: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(size))


def _random_display_id() -> str:
    return "".join(secrets.choice(_DISPLAY_ID_ALPHABET) for _ in range(_DISPLAY_ID_LENGTH))


class OtpEngine:
    """Generate and validate single-use codes; workflow-agnostic."""

    def __init__(
        self,
        *,
        otps: OtpRepositoryPort,
        code_size: int = 6,
        expiry: timedelta = DEFAULT_OTP_EXPIRY,
        now: Callable[[], datetime] | None = None,
        code_factory: Callable[[int], str] | None = None,
    ) -> None:
        self._otps = otps
        self._code_size = code_size
        self._expiry = expiry
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._code_factory = code_factory or _random_numeric_code

    async def generate(
        self,
        *,
        email: str,
        purpose: OtpPurpose,
        phone: str | None = None,
        user_id: UUID | None = None,
        registration_id: UUID | None = None,
    ) -> OtpChallenge:
        """Issue a new code for exactly one owner, superseding its open codes."""

        if (user_id is None) == (registration_id is None):
            raise ValueError("exactly one of user_id or registration_id is required")

        code = self._code_factory(self._code_size)
        created_at = self._now()
        record = await self._otps.create_superseding(
            OtpCreateInput(
                code_hash=hash_otp_code(code),
                purpose=purpose,
                user_id=user_id,
                registration_id=registration_id,
                email=email,
                phone=phone,
                reference=secrets.token_urlsafe(24),
                display_id=_random_display_id(),
                created_at=created_at,
                expires_at=created_at + self._expiry,
            )
        )
        logger.info(
            "otp_generated otp_id=%s purpose=%s display_id=%s",
            record.id,
            purpose.value,
            record.display_id,
        )
        return OtpChallenge(
            otp_id=record.id,
            purpose=record.purpose,
            reference=record.reference,
            display_id=record.display_id,
            code=code,
            email=record.email,
            phone=record.phone,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )

    async def validate(
        self,
        *,
        code: str,
        display_id: str,
        purpose: OtpPurpose | None = None,
        user_id: UUID | None = None,
        registration_id: UUID | None = None,
    ) -> ServiceResult[OtpOutcome]:
        """Consume a code once; optional purpose/owner filters apply before consumption."""

        record = await self._otps.get_by_display_id(display_id=display_id.strip())
        if record is None or not self._matches(
            record,
            code=code,
            purpose=purpose,
            user_id=user_id,
            registration_id=registration_id,
        ):
            return failure(ErrorKind.NOT_AUTHORIZED, ErrorCode.OTP_INVALID, Messages.OTP_INVALID)
        if record.consumed_at is not None:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.OTP_ALREADY_USED,
                Messages.OTP_ALREADY_USED,
            )
        if record.superseded_at is not None:
            return failure(ErrorKind.CONFLICT, ErrorCode.OTP_SUPERSEDED, Messages.OTP_SUPERSEDED)

        now = self._now()
        if now >= record.expires_at:
            return failure(ErrorKind.NOT_AUTHORIZED, ErrorCode.OTP_EXPIRED, Messages.OTP_EXPIRED)

        if not await self._otps.mark_consumed(otp_id=record.id, consumed_at=now):
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.OTP_ALREADY_USED,
                Messages.OTP_ALREADY_USED,
            )

        return success(
            OtpOutcome(
                otp_id=record.id,
                purpose=record.purpose,
                user_id=record.user_id,
                registration_id=record.registration_id,
                created_at=record.created_at,
            )
        )

    @staticmethod
    def _matches(
        record: OtpRecord,
        *,
        code: str,
        purpose: OtpPurpose | None,
        user_id: UUID | None,
        registration_id: UUID | None,
    ) -> bool:
        if not hmac.compare_digest(record.code_hash, hash_otp_code(code.strip())):
            return False
        if purpose is not None and record.purpose is not purpose:
            return False
        if user_id is not None and record.user_id != user_id:
            return False
        return registration_id is None or record.registration_id == registration_id
