"""Link an external distributor account to the authenticated user after OTP confirmation."""

from __future__ import annotations

import logging

from account_service.application.events import EventTopics, publish_safely
from account_service.application.identity import AuthenticatedIdentity
from account_service.application.ports.event_publisher_port import EventPublisherPort
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountCreateInput,
    LinkedAccountExistsError,
    LinkedAccountRecord,
    LinkedAccountRepositoryPort,
)
from account_service.application.ports.otp_repository_port import OtpPurpose
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    propagate,
    success,
)
from account_service.application.services.account_link_saga import AccountLinkSaga
from account_service.application.services.directory_lookup import DirectoryLookup
from account_service.application.services.otp_engine import OtpChallengeView, OtpEngine
from account_service.domain.accounts.account_types import resolve_account_type

logger = logging.getLogger(__name__)


def linked_account_event_message(record: LinkedAccountRecord) -> dict[str, object]:
    """Return the payload announcing a newly linked distributor account."""

    return {
        "distributor_account_id": record.id,
        "user_id": str(record.user_id),
        "company_code": record.company_code,
        "country_code": record.country_code,
        "distributor_number": record.distributor_number,
        "distributor_name": record.distributor_name,
        "friendly_name": record.friendly_name,
        "account_type": record.account_type.value,
        "date_created": record.created_at.isoformat(),
    }


class AccountLinkService:
    """Stage a directory account, challenge its contact details, then persist the link."""

    def __init__(
        self,
        *,
        lookup: DirectoryLookup,
        saga: AccountLinkSaga,
        otp_engine: OtpEngine,
        linked_accounts: LinkedAccountRepositoryPort,
        publisher: EventPublisherPort,
    ) -> None:
        self._lookup = lookup
        self._saga = saga
        self._otp_engine = otp_engine
        self._linked_accounts = linked_accounts
        self._publisher = publisher

    async def link_account(
        self,
        identity: AuthenticatedIdentity,
        *,
        company_code: str,
        country_code: str,
        account_number: str,
        friendly_name: str | None = None,
    ) -> ServiceResult[OtpChallengeView]:
        """Validate and stage a candidate account, then send an OTP to its contacts."""

        found = await self._lookup.find_linkable_account(
            company_code=company_code,
            country_code=country_code,
            account_number=account_number,
            friendly_name=friendly_name,
        )
        if found.error is not None:
            return propagate(found)
        candidate = found.unwrap()

        staged = await self._saga.stage(user_id=identity.user_id, candidate=candidate)
        if staged.error is not None:
            return propagate(staged)

        challenge = await self._otp_engine.generate(
            email=candidate.email,
            phone=candidate.phone,
            user_id=identity.user_id,
            purpose=OtpPurpose.ACCOUNT_LINK,
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.OTP_GENERATED,
            message=challenge.to_event_message(),
        )
        logger.info(
            "account_link_staged user_id=%s distributor_number=%s",
            identity.user_id,
            candidate.distributor_number,
        )
        return success(challenge.view())

    async def validate_link_account_otp(
        self,
        identity: AuthenticatedIdentity,
        *,
        otp_code: str,
        display_id: str,
    ) -> ServiceResult[LinkedAccountRecord]:
        """Confirm the OTP and materialize the staged link exactly once."""

        validated = await self._otp_engine.validate(
            code=otp_code,
            display_id=display_id,
            purpose=OtpPurpose.ACCOUNT_LINK,
            user_id=identity.user_id,
        )
        if validated.error is not None:
            return propagate(validated)

        resolved = await self._saga.resolve(user_id=identity.user_id)
        if resolved.error is not None:
            return propagate(resolved)
        candidate = resolved.unwrap()

        account_type = resolve_account_type(candidate.account_type)
        if account_type is None:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.INVALID_ACCOUNT_TYPE,
                Messages.INVALID_ACCOUNT_TYPE,
            )

        try:
            if await self._linked_accounts.exists(
                company_code=candidate.company_code,
                country_code=candidate.country_code,
                distributor_number=candidate.distributor_number,
            ):
                return failure(
                    ErrorKind.CONFLICT,
                    ErrorCode.DISTRIBUTOR_ACCOUNT_EXISTS,
                    Messages.DISTRIBUTOR_ACCOUNT_EXISTS,
                )
            record = await self._linked_accounts.create(
                LinkedAccountCreateInput(
                    user_id=identity.user_id,
                    company_code=candidate.company_code,
                    country_code=candidate.country_code,
                    distributor_number=candidate.distributor_number,
                    distributor_name=candidate.distributor_name,
                    friendly_name=candidate.friendly_name,
                    account_type=account_type,
                )
            )
        except LinkedAccountExistsError:
            logger.info(
                "account_link_lost_race user_id=%s distributor_number=%s",
                identity.user_id,
                candidate.distributor_number,
            )
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.DISTRIBUTOR_ACCOUNT_EXISTS,
                Messages.DISTRIBUTOR_ACCOUNT_EXISTS,
            )
        finally:
            await self._saga.clear(user_id=identity.user_id)

        await publish_safely(
            self._publisher,
            topic=EventTopics.SAP_ACCOUNT_CREATED,
            message=linked_account_event_message(record),
        )
        logger.info(
            "account_linked user_id=%s distributor_account_id=%s",
            identity.user_id,
            record.id,
        )
        return success(record)
