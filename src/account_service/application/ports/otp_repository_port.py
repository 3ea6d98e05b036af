"""Port for one-time code persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Protocol
from uuid import UUID


class OtpPurpose(StrEnum):
    """Workflow an OTP was issued for."""

    LOGIN = "login"
    ACCOUNT_LINK = "account_link"
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class OtpCreateInput:
    """Input payload for inserting one OTP record."""

    code_hash: str
    purpose: OtpPurpose
    user_id: UUID | None
    registration_id: UUID | None
    email: str
    phone: str | None
    reference: str
    display_id: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class OtpRecord:
    """Persisted OTP model; owner is exactly one of user or registration."""

    id: int
    code_hash: str
    purpose: OtpPurpose
    user_id: UUID | None
    registration_id: UUID | None
    email: str
    phone: str | None
    reference: str
    display_id: str
    created_at: datetime
    expires_at: datetime
    consumed_at: datetime | None
    superseded_at: datetime | None


class OtpRepositoryPort(Protocol):
    """OTP persistence contract."""

    async def create_superseding(self, payload: OtpCreateInput) -> OtpRecord:
        """Supersede open OTPs of the same owner and insert the new one atomically."""

    async def get_by_display_id(self, *, display_id: str) -> OtpRecord | None:
        """Return the OTP carrying the display id."""

    async def mark_consumed(self, *, otp_id: int, consumed_at: datetime) -> bool:
        """Consume an open OTP; return False when it was already consumed."""
