"""Browse, rename and unlink linked distributor accounts; file and review deletion requests."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID

from account_service.application.events import EventTopics, publish_safely
from account_service.application.identity import AuthenticatedIdentity
from account_service.application.ports.deletion_request_repository_port import (
    DeletionRequestRecord,
    DeletionRequestRepositoryPort,
    DeletionRequestView,
)
from account_service.application.ports.event_publisher_port import EventPublisherPort
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountRecord,
    LinkedAccountRepositoryPort,
    LinkedAccountSearch,
    UnlinkOutcome,
)
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    success,
)
from account_service.domain.auth.roles import ADMIN_ROLES, resolve_role_by_name

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkedAccountListing:
    """One page of linked accounts with its paging metadata."""

    items: list[LinkedAccountRecord]
    page_index: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


def is_admin(identity: AuthenticatedIdentity) -> bool:
    """Return whether the session role is one of the administrator roles."""

    return resolve_role_by_name(identity.role) in ADMIN_ROLES


class LinkedAccountManagementService:
    """Use-cases over already linked accounts; every call acts for one authenticated caller."""

    def __init__(
        self,
        *,
        linked_accounts: LinkedAccountRepositoryPort,
        deletion_requests: DeletionRequestRepositoryPort,
        publisher: EventPublisherPort,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._linked_accounts = linked_accounts
        self._deletion_requests = deletion_requests
        self._publisher = publisher
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def list_accounts(self, criteria: LinkedAccountSearch) -> LinkedAccountListing:
        """Return the caller's filtered, sorted and paged linked accounts."""

        page = await self._linked_accounts.search(criteria)
        return LinkedAccountListing(
            items=page.items,
            page_index=criteria.page_index,
            page_size=criteria.page_size,
            total_count=page.total_count,
        )

    async def list_user_accounts(
        self,
        identity: AuthenticatedIdentity,
        *,
        user_id: UUID,
    ) -> ServiceResult[list[LinkedAccountRecord]]:
        """Administrator view of every account linked by one user."""

        if not is_admin(identity):
            return _unauthorized()
        return success(await self._linked_accounts.list_for_user(user_id=user_id))

    async def rename_friendly_name(
        self,
        identity: AuthenticatedIdentity,
        *,
        account_id: int,
        friendly_name: str,
    ) -> ServiceResult[LinkedAccountRecord]:
        """Rename one of the caller's accounts and announce old and new names."""

        if not friendly_name.strip():
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.FRIENDLY_NAME_REQUIRED,
                Messages.FRIENDLY_NAME_REQUIRED,
            )

        current = await self._linked_accounts.get_for_user(
            account_id=account_id,
            user_id=identity.user_id,
        )
        if current is None:
            return _account_not_found()

        renamed = await self._linked_accounts.rename(
            account_id=account_id,
            user_id=identity.user_id,
            friendly_name=friendly_name.strip(),
            updated_at=self._now(),
        )
        if renamed is None:
            return _account_not_found()

        await publish_safely(
            self._publisher,
            topic=EventTopics.SAP_ACCOUNT_UPDATED,
            message={
                "distributor_account_id": renamed.id,
                "user_id": str(renamed.user_id),
                "distributor_number": renamed.distributor_number,
                "distributor_name": renamed.distributor_name,
                "old_friendly_name": current.friendly_name,
                "new_friendly_name": renamed.friendly_name,
                "date_created": renamed.created_at.isoformat(),
                "date_modified": (renamed.updated_at or self._now()).isoformat(),
            },
        )
        logger.info(
            "linked_account_renamed user_id=%s distributor_account_id=%s",
            identity.user_id,
            renamed.id,
        )
        return success(renamed)

    async def unlink_account(
        self,
        identity: AuthenticatedIdentity,
        *,
        account_id: int,
    ) -> ServiceResult[None]:
        """Remove one of the caller's accounts; the last one must stay linked."""

        current = await self._linked_accounts.get_for_user(
            account_id=account_id,
            user_id=identity.user_id,
        )
        if current is None:
            return _account_not_found()

        outcome = await self._linked_accounts.unlink(
            account_id=account_id,
            user_id=identity.user_id,
        )
        if outcome is UnlinkOutcome.NOT_FOUND:
            return _account_not_found()
        if outcome is UnlinkOutcome.LAST_ACCOUNT:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.LAST_ACCOUNT_UNLINK_FORBIDDEN,
                Messages.LAST_ACCOUNT_UNLINK_FORBIDDEN,
            )

        await publish_safely(
            self._publisher,
            topic=EventTopics.SAP_ACCOUNT_DELETED,
            message={
                "distributor_account_id": current.id,
                "user_id": str(identity.user_id),
                "distributor_number": current.distributor_number,
                "date_deleted": self._now().isoformat(),
            },
        )
        logger.info(
            "linked_account_unlinked user_id=%s distributor_account_id=%s",
            identity.user_id,
            current.id,
        )
        return ServiceResult()

    async def request_account_deletion(
        self,
        identity: AuthenticatedIdentity,
        *,
        reason: str,
    ) -> ServiceResult[DeletionRequestRecord]:
        """File a request for an administrator to delete the caller's account."""

        if not reason.strip():
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.DELETION_REASON_REQUIRED,
                Messages.DELETION_REASON_REQUIRED,
            )

        record = await self._deletion_requests.create(
            user_id=identity.user_id,
            reason=reason.strip(),
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.SAP_ACCOUNT_DELETION_REQUESTED,
            message={
                "deletion_request_id": record.id,
                "user_id": str(record.user_id),
                "reason": record.reason,
                "date_created": record.created_at.isoformat(),
            },
        )
        logger.info("deletion_requested user_id=%s request_id=%s", identity.user_id, record.id)
        return success(record)

    async def list_deletion_requests(
        self,
        identity: AuthenticatedIdentity,
    ) -> ServiceResult[list[DeletionRequestView]]:
        """Administrator view of every pending deletion request."""

        if not is_admin(identity):
            return _unauthorized()
        return success(await self._deletion_requests.list_all())


def _account_not_found() -> ServiceResult[T]:
    return failure(
        ErrorKind.NOT_FOUND,
        ErrorCode.LINKED_ACCOUNT_NOT_FOUND,
        Messages.LINKED_ACCOUNT_NOT_FOUND,
    )


def _unauthorized() -> ServiceResult[T]:
    return failure(
        ErrorKind.NOT_AUTHORIZED,
        ErrorCode.UNAUTHORIZED_ACCESS,
        Messages.UNAUTHORIZED_ACCESS,
    )
