"""Build session claims for an authenticated user and sign them."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from account_service.application.ports.credential_store_port import CredentialRecord
from account_service.application.ports.token_signer_port import TokenSignerPort
from account_service.domain.auth.roles import role_display_name

DEFAULT_SESSION_DURATION = timedelta(minutes=60)


class SessionClaimKeys:
    """Claim names embedded in issued tokens."""

    USER_ID = "user_id"
    USERNAME = "user_name"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    ROLE = "role"
    EMAIL = "email_address"
    PHONE = "phone_number"


@dataclass(frozen=True)
class SessionClaims:
    """Identity facts embedded in one issued token."""

    user_id: UUID
    username: str
    first_name: str
    last_name: str
    role: str
    email: str
    phone: str
    issued_at: datetime
    expires_at: datetime

    def to_token_claims(self) -> dict[str, Any]:
        return {
            SessionClaimKeys.USER_ID: str(self.user_id),
            SessionClaimKeys.USERNAME: self.username,
            SessionClaimKeys.FIRST_NAME: self.first_name,
            SessionClaimKeys.LAST_NAME: self.last_name,
            SessionClaimKeys.ROLE: self.role,
            SessionClaimKeys.EMAIL: self.email,
            SessionClaimKeys.PHONE: self.phone,
        }


@dataclass(frozen=True)
class IssuedSession:
    """Signed token plus the claims it carries."""

    token: str
    expires_in: int
    claims: SessionClaims


class SessionIssuer:
    """Issue signed session tokens that expire `duration` after issuance."""

    def __init__(
        self,
        *,
        signer: TokenSignerPort,
        duration: timedelta = DEFAULT_SESSION_DURATION,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._signer = signer
        self._duration = duration
        self._now = now or (lambda: datetime.now(tz=UTC))

    def build_claims(self, user: CredentialRecord) -> SessionClaims:
        role = user.primary_role
        if role is None:
            raise ValueError(f"user {user.user_id} has no role assigned")
        issued_at = self._now()
        return SessionClaims(
            user_id=user.user_id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            role=role_display_name(role),
            email=user.email,
            phone=user.phone or "",
            issued_at=issued_at,
            expires_at=issued_at + self._duration,
        )

    def issue(self, user: CredentialRecord) -> IssuedSession:
        claims = self.build_claims(user)
        token = self._signer.sign(
            claims.to_token_claims(),
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )
        return IssuedSession(
            token=token,
            expires_in=int(self._duration.total_seconds()),
            claims=claims,
        )
