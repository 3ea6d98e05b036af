"""Time-boxed cache record pairing a candidate account with the requesting user."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from account_service.application.dto.cache_models import AccountLinkEntry, LinkCandidate
from account_service.application.ports.cache_port import (
    CacheUnavailableError,
    TransientCachePort,
)
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    success,
)
from account_service.application.services.typed_cache import TypedCacheNamespace

logger = logging.getLogger(__name__)

ACCOUNT_LINK_KEY_PREFIX = "account-link"
DEFAULT_ACCOUNT_LINK_TTL = timedelta(minutes=30)


class AccountLinkSaga:
    """Stage, resolve and clear one pending account link per user."""

    def __init__(
        self,
        *,
        cache: TransientCachePort,
        ttl: timedelta = DEFAULT_ACCOUNT_LINK_TTL,
    ) -> None:
        self._entries = TypedCacheNamespace(
            cache=cache,
            prefix=ACCOUNT_LINK_KEY_PREFIX,
            model=AccountLinkEntry,
            ttl=ttl,
        )

    async def stage(self, *, user_id: UUID, candidate: LinkCandidate) -> ServiceResult[None]:
        """Store the candidate, replacing any link the user had pending."""

        try:
            await self._entries.set(user_id, AccountLinkEntry(user_id=user_id, candidate=candidate))
        except CacheUnavailableError:
            logger.error("account_link_stage_failed user_id=%s", user_id)
            return failure(
                ErrorKind.INTEGRATION_FAILURE,
                ErrorCode.CACHE_UNAVAILABLE,
                Messages.CACHE_UNAVAILABLE,
            )
        return ServiceResult()

    async def resolve(self, *, user_id: UUID) -> ServiceResult[LinkCandidate]:
        """Return the staged candidate; a miss means the flow must restart."""

        try:
            entry = await self._entries.get(user_id)
        except CacheUnavailableError:
            logger.error("account_link_resolve_failed user_id=%s", user_id)
            return failure(
                ErrorKind.INTEGRATION_FAILURE,
                ErrorCode.CACHE_UNAVAILABLE,
                Messages.CACHE_UNAVAILABLE,
            )
        if entry is None or entry.user_id != user_id:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.STAGED_RECORD_MISSING,
                Messages.STAGED_RECORD_MISSING,
            )
        return success(entry.candidate)

    async def clear(self, *, user_id: UUID) -> None:
        """Best-effort removal; a leftover entry simply expires."""

        try:
            await self._entries.remove(user_id)
        except CacheUnavailableError:
            logger.warning("account_link_clear_failed user_id=%s", user_id)
