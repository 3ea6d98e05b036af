"""Port for distributor self-registration persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Protocol
from uuid import UUID

from account_service.application.ports.credential_store_port import CredentialRecord
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountRecord,
)
from account_service.domain.accounts.account_types import AccountType
from account_service.domain.auth.account_status import AccountStatus
from account_service.domain.auth.roles import Role


class RegistrationAlreadyCompletedError(RuntimeError):
    """Raised when a registration was completed by a concurrent request."""


class UsernameTakenError(RuntimeError):
    """Raised when another user already holds the requested username."""


class RegistrationStatus(StrEnum):
    """Registration lifecycle."""

    NEW = "new"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RegistrationCreateInput:
    """Input payload for a new registration attempt."""

    company_code: str
    country_code: str
    distributor_number: str
    channel_code: str
    device_id: str | None


@dataclass(frozen=True)
class RegistrationRecord:
    """Persisted registration attempt."""

    registration_id: UUID
    company_code: str
    country_code: str
    distributor_number: str
    channel_code: str
    device_id: str | None
    status: RegistrationStatus
    created_at: datetime


@dataclass(frozen=True)
class NewDistributorUser:
    """User and first linked account created when a registration completes."""

    username: str
    password_hash: str
    first_name: str
    last_name: str
    email: str
    phone: str | None
    status: AccountStatus
    role: Role
    privacy_policy_accepted: bool
    password_expires_at: datetime
    distributor_name: str
    account_type: AccountType


@dataclass(frozen=True)
class CompletedRegistration:
    """Records materialized by one completed registration."""

    user: CredentialRecord
    linked_account: LinkedAccountRecord


class RegistrationRepositoryPort(Protocol):
    """Registration persistence contract."""

    async def create(self, payload: RegistrationCreateInput) -> RegistrationRecord:
        """Persist a new registration attempt."""

    async def get(self, *, registration_id: UUID) -> RegistrationRecord | None:
        """Return a registration attempt by id."""

    async def complete(
        self,
        *,
        registration_id: UUID,
        user: NewDistributorUser,
    ) -> CompletedRegistration:
        """Create user, role, password history and linked account, mark completed.

        Raises `RegistrationAlreadyCompletedError` when the registration is no
        longer new, `UsernameTakenError` when the username is already in use and
        `LinkedAccountExistsError` when the distributor account was linked
        concurrently. Nothing is written in any of those cases.
        """
