"""Port for credential record lookups and updates used by authentication flows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from account_service.domain.auth.account_status import AccountStatus
from account_service.domain.auth.roles import Role


@dataclass(frozen=True)
class LoginHistoryEntry:
    """One recorded successful login."""

    user_id: UUID
    device_id: str | None
    ip_address: str | None
    channel_code: str
    login_date: datetime


@dataclass(frozen=True)
class CredentialRecord:
    """User credential and profile snapshot; roles are ordered, first is primary."""

    user_id: UUID
    username: str
    password_hash: str
    status: AccountStatus
    password_expires_at: datetime | None
    roles: tuple[Role, ...]
    first_name: str
    last_name: str
    email: str
    phone: str | None
    privacy_policy_accepted: bool | None
    created_at: datetime
    company_code: str | None = None
    login_history: tuple[LoginHistoryEntry, ...] = ()
    reset_token: str | None = None
    reset_token_expires_at: datetime | None = None

    @property
    def primary_role(self) -> Role | None:
        return self.roles[0] if self.roles else None

    @property
    def last_login_at(self) -> datetime | None:
        return self.login_history[0].login_date if self.login_history else None


class CredentialStorePort(Protocol):
    """Credential store contract; each write commits its own transaction."""

    async def find_by_username(self, *, username: str) -> CredentialRecord | None:
        """Return user by exact, case-sensitive username."""

    async def find_by_username_insensitive(self, *, username: str) -> CredentialRecord | None:
        """Return user by username ignoring case."""

    async def get_by_id(self, *, user_id: UUID) -> CredentialRecord | None:
        """Return full user detail (roles, company, login history) by id."""

    async def find_by_reset_token(self, *, reset_token: str) -> CredentialRecord | None:
        """Return user holding one password reset token."""

    async def username_exists(self, *, username: str) -> bool:
        """Return whether any user already uses the username."""

    async def update(self, record: CredentialRecord) -> None:
        """Persist mutable credential fields (status, policy flag, password, reset token)."""

    async def add_login_history(self, entry: LoginHistoryEntry) -> None:
        """Append one successful login entry."""

    async def latest_login(self, *, user_id: UUID) -> LoginHistoryEntry | None:
        """Return the most recent login entry for a user."""

    async def recent_password_hashes(self, *, user_id: UUID, limit: int) -> list[str]:
        """Return the most recent password hashes, newest first."""

    async def add_password_history(self, *, user_id: UUID, password_hash: str) -> None:
        """Append one password hash to the user's password history."""


class AccountExpiryPort(Protocol):
    """Bulk password-expiry sweep contract."""

    async def expire_overdue(self, *, now: datetime) -> int:
        """Move active users whose password expired before `now` to expired.

        Returns the number of users changed.
        """
