"""Shared external account lookup rules for linking and registration."""

from __future__ import annotations

import asyncio
import logging

from account_service.application.dto.cache_models import LinkCandidate
from account_service.application.ports.account_directory_port import (
    AccountDirectoryPort,
    AccountDirectoryUnavailableError,
)
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountRepositoryPort,
)
from account_service.application.ports.reference_data_port import ReferenceDataPort
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    success,
)

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_TIMEOUT_SECONDS = 15.0


class DirectoryLookup:
    """Validate codes, reject duplicates, and fetch a linkable directory account."""

    def __init__(
        self,
        *,
        directory: AccountDirectoryPort,
        reference_data: ReferenceDataPort,
        linked_accounts: LinkedAccountRepositoryPort,
        timeout_seconds: float = DEFAULT_DIRECTORY_TIMEOUT_SECONDS,
    ) -> None:
        self._directory = directory
        self._reference_data = reference_data
        self._linked_accounts = linked_accounts
        self._timeout_seconds = timeout_seconds

    async def find_linkable_account(
        self,
        *,
        company_code: str,
        country_code: str,
        account_number: str,
        friendly_name: str | None = None,
    ) -> ServiceResult[LinkCandidate]:
        """Return a candidate that passed every pre-link rule, or the first failure."""

        if not await self._reference_data.company_exists(code=company_code):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.INCORRECT_COMPANY_CODE,
                Messages.INCORRECT_COMPANY_CODE,
            )
        if not await self._reference_data.country_exists(code=country_code):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.INCORRECT_COUNTRY_CODE,
                Messages.INCORRECT_COUNTRY_CODE,
            )
        if await self._linked_accounts.exists(
            company_code=company_code,
            country_code=country_code,
            distributor_number=account_number,
        ):
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.DISTRIBUTOR_ACCOUNT_EXISTS,
                Messages.DISTRIBUTOR_ACCOUNT_EXISTS,
            )

        try:
            descriptor = await asyncio.wait_for(
                self._directory.find_account(
                    company_code=company_code,
                    country_code=country_code,
                    account_number=account_number,
                ),
                timeout=self._timeout_seconds,
            )
        except (AccountDirectoryUnavailableError, TimeoutError) as error:
            logger.warning(
                "directory_lookup_failed company_code=%s country_code=%s error=%s",
                company_code,
                country_code,
                str(error) or type(error).__name__,
            )
            return failure(
                ErrorKind.INTEGRATION_FAILURE,
                ErrorCode.SAP_UNAVAILABLE,
                Messages.SAP_UNAVAILABLE,
            )

        if descriptor is None:
            return failure(
                ErrorKind.NOT_FOUND,
                ErrorCode.SAP_ACCOUNT_NOT_FOUND,
                Messages.SAP_ACCOUNT_NOT_FOUND,
            )
        if not descriptor.is_active:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.SAP_ACCOUNT_INACTIVE,
                Messages.SAP_ACCOUNT_INACTIVE,
            )
        if not descriptor.is_complete:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.SAP_ACCOUNT_INCOMPLETE,
                Messages.SAP_ACCOUNT_INCOMPLETE,
            )
        return success(
            LinkCandidate.from_descriptor(
                descriptor,
                company_code=company_code,
                country_code=country_code,
                friendly_name=friendly_name,
            )
        )
