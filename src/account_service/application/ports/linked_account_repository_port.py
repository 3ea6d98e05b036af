"""Port for permanent distributor account links."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Protocol
from uuid import UUID

from account_service.domain.accounts.account_types import AccountType


class LinkedAccountExistsError(RuntimeError):
    """Raised when the distributor account is already linked to some user."""


@dataclass(frozen=True)
class LinkedAccountCreateInput:
    """Input payload for materializing one linked account."""

    user_id: UUID
    company_code: str
    country_code: str
    distributor_number: str
    distributor_name: str
    friendly_name: str | None
    account_type: AccountType


@dataclass(frozen=True)
class LinkedAccountRecord:
    """Persisted linked distributor account."""

    id: int
    user_id: UUID
    company_code: str
    country_code: str
    distributor_number: str
    distributor_name: str
    friendly_name: str | None
    account_type: AccountType
    created_at: datetime
    updated_at: datetime | None = None


class LinkedAccountSort(StrEnum):
    """Creation-date ordering for linked account listings."""

    DATE_DESCENDING = "date_desc"
    DATE_ASCENDING = "date_asc"


@dataclass(frozen=True)
class LinkedAccountSearch:
    """Filters and page window for one user's linked accounts."""

    user_id: UUID
    company_code: str | None = None
    country_code: str | None = None
    keyword: str | None = None
    sort: LinkedAccountSort = LinkedAccountSort.DATE_DESCENDING
    page_index: int = 1
    page_size: int = 10


@dataclass(frozen=True)
class LinkedAccountPage:
    """One page of linked accounts plus the unpaged match count."""

    items: list[LinkedAccountRecord]
    total_count: int


class UnlinkOutcome(StrEnum):
    """Result of removing one linked account."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    LAST_ACCOUNT = "last_account"


class LinkedAccountRepositoryPort(Protocol):
    """Linked account persistence contract."""

    async def exists(
        self,
        *,
        company_code: str,
        country_code: str,
        distributor_number: str,
    ) -> bool:
        """Return whether any user already linked the distributor account."""

    async def create(self, payload: LinkedAccountCreateInput) -> LinkedAccountRecord:
        """Persist one linked account and return it.

        Raises `LinkedAccountExistsError` when a concurrent writer linked the same
        company, country and distributor number first.
        """

    async def list_for_user(self, *, user_id: UUID) -> list[LinkedAccountRecord]:
        """Return a user's linked accounts, oldest first."""

    async def search(self, criteria: LinkedAccountSearch) -> LinkedAccountPage:
        """Return one filtered page of a user's linked accounts."""

    async def get_for_user(self, *, account_id: int, user_id: UUID) -> LinkedAccountRecord | None:
        """Return one linked account when it belongs to the user."""

    async def rename(
        self,
        *,
        account_id: int,
        user_id: UUID,
        friendly_name: str,
        updated_at: datetime,
    ) -> LinkedAccountRecord | None:
        """Set the friendly name of an owned account and return the updated row."""

    async def unlink(self, *, account_id: int, user_id: UUID) -> UnlinkOutcome:
        """Delete an owned account unless it is the user's only one."""
