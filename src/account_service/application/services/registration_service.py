"""Distributor self-registration: directory account check, OTP, then user creation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from account_service.application.dto.cache_models import RegistrationEntry
from account_service.application.events import EventTopics, publish_safely
from account_service.application.ports.cache_port import (
    CacheUnavailableError,
    TransientCachePort,
)
from account_service.application.ports.credential_store_port import CredentialStorePort
from account_service.application.ports.event_publisher_port import EventPublisherPort
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountExistsError,
)
from account_service.application.ports.otp_repository_port import OtpPurpose
from account_service.application.ports.password_hasher_port import PasswordHasherPort
from account_service.application.ports.registration_repository_port import (
    CompletedRegistration,
    NewDistributorUser,
    RegistrationAlreadyCompletedError,
    RegistrationCreateInput,
    RegistrationRepositoryPort,
    RegistrationStatus,
    UsernameTakenError,
)
from account_service.application.results import (
    ErrorCode,
    ErrorKind,
    Messages,
    ServiceResult,
    failure,
    propagate,
    success,
)
from account_service.application.services.account_link_service import (
    linked_account_event_message,
)
from account_service.application.services.directory_lookup import DirectoryLookup
from account_service.application.services.otp_engine import OtpChallengeView, OtpEngine
from account_service.application.services.typed_cache import TypedCacheNamespace
from account_service.domain.accounts.account_types import resolve_account_type
from account_service.domain.auth.account_status import status_from_sap_code
from account_service.domain.auth.credentials import (
    normalize_username,
    password_contains_username,
    password_matches_policy,
)
from account_service.domain.auth.roles import resolve_role_by_name, role_display_name

logger = logging.getLogger(__name__)

REGISTRATION_KEY_PREFIX = "registration"
DEFAULT_REGISTRATION_TTL = timedelta(minutes=30)


@dataclass(frozen=True)
class InitiateRegistrationRequest:
    """Directory account a prospective distributor wants to register with."""

    company_code: str
    country_code: str
    distributor_number: str
    channel_code: str
    privacy_policy_accepted: bool
    device_id: str | None = None


@dataclass(frozen=True)
class CompleteRegistrationRequest:
    """Credentials and OTP that finish one registration."""

    registration_id: UUID
    otp_code: str
    display_id: str
    username: str
    password: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class RegistrationChallenge:
    """Registration id plus the OTP challenge sent to the account contacts."""

    registration_id: UUID
    challenge: OtpChallengeView


@dataclass(frozen=True)
class RegistrationPolicy:
    """Password and role rules applied when a registration completes."""

    password_pattern: str
    password_expiry: timedelta
    default_role_name: str


class RegistrationService:
    """Register a distributor user together with their first linked account."""

    def __init__(
        self,
        *,
        lookup: DirectoryLookup,
        registrations: RegistrationRepositoryPort,
        credentials: CredentialStorePort,
        otp_engine: OtpEngine,
        password_hasher: PasswordHasherPort,
        cache: TransientCachePort,
        publisher: EventPublisherPort,
        policy: RegistrationPolicy,
        ttl: timedelta = DEFAULT_REGISTRATION_TTL,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._lookup = lookup
        self._registrations = registrations
        self._credentials = credentials
        self._otp_engine = otp_engine
        self._password_hasher = password_hasher
        self._entries = TypedCacheNamespace(
            cache=cache,
            prefix=REGISTRATION_KEY_PREFIX,
            model=RegistrationEntry,
            ttl=ttl,
        )
        self._publisher = publisher
        self._policy = policy
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def initiate_registration(
        self,
        request: InitiateRegistrationRequest,
    ) -> ServiceResult[RegistrationChallenge]:
        """Check the directory account, stage it and send an OTP to its contacts."""

        if not request.privacy_policy_accepted:
            return failure(
                ErrorKind.NOT_AUTHORIZED,
                ErrorCode.PRIVACY_POLICY_NOT_ACCEPTED,
                Messages.PRIVACY_POLICY_NOT_ACCEPTED,
            )

        found = await self._lookup.find_linkable_account(
            company_code=request.company_code,
            country_code=request.country_code,
            account_number=request.distributor_number,
        )
        if found.error is not None:
            return propagate(found)
        candidate = found.unwrap()

        registration = await self._registrations.create(
            RegistrationCreateInput(
                company_code=request.company_code,
                country_code=request.country_code,
                distributor_number=request.distributor_number,
                channel_code=request.channel_code,
                device_id=request.device_id,
            )
        )
        try:
            await self._entries.set(
                registration.registration_id,
                RegistrationEntry(
                    registration_id=registration.registration_id,
                    candidate=candidate,
                    privacy_policy_accepted=request.privacy_policy_accepted,
                ),
            )
        except CacheUnavailableError:
            logger.error(
                "registration_stage_failed registration_id=%s",
                registration.registration_id,
            )
            return failure(
                ErrorKind.INTEGRATION_FAILURE,
                ErrorCode.CACHE_UNAVAILABLE,
                Messages.CACHE_UNAVAILABLE,
            )

        challenge = await self._otp_engine.generate(
            email=candidate.email,
            phone=candidate.phone,
            registration_id=registration.registration_id,
            purpose=OtpPurpose.REGISTRATION,
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.OTP_GENERATED,
            message=challenge.to_event_message(),
        )
        logger.info(
            "registration_initiated registration_id=%s distributor_number=%s",
            registration.registration_id,
            request.distributor_number,
        )
        return success(
            RegistrationChallenge(
                registration_id=registration.registration_id,
                challenge=challenge.view(),
            )
        )

    async def complete_registration(
        self,
        request: CompleteRegistrationRequest,
    ) -> ServiceResult[CompletedRegistration]:
        """Validate credentials and OTP, then create the user and linked account.

        Every check that does not need the OTP runs first so a rejected
        request leaves the code usable for a corrected retry.
        """

        try:
            username = normalize_username(username=request.username)
        except ValueError:
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.USERNAME_REQUIRED,
                Messages.USERNAME_REQUIRED,
            )
        if password_contains_username(username=username, password=request.password):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.PASSWORD_COMBINATION_INVALID,
                Messages.PASSWORD_COMBINATION_INVALID,
            )
        if not password_matches_policy(
            password=request.password,
            pattern=self._policy.password_pattern,
        ):
            return failure(
                ErrorKind.VALIDATION,
                ErrorCode.PASSWORD_INVALID,
                Messages.PASSWORD_INVALID,
            )

        registration = await self._registrations.get(registration_id=request.registration_id)
        if registration is None:
            return failure(
                ErrorKind.NOT_FOUND,
                ErrorCode.REGISTRATION_NOT_FOUND,
                Messages.REGISTRATION_NOT_FOUND,
            )
        if registration.status is RegistrationStatus.COMPLETED:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.REGISTRATION_COMPLETED,
                Messages.REGISTRATION_COMPLETED,
            )
        if await self._credentials.username_exists(username=username):
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.USERNAME_EXISTS,
                Messages.USERNAME_EXISTS,
            )

        role = resolve_role_by_name(self._policy.default_role_name)
        if role is None:
            logger.error("default_role_not_found role_name=%s", self._policy.default_role_name)
            return failure(
                ErrorKind.SERVER_CONFIGURATION,
                ErrorCode.DEFAULT_ROLE_NOT_FOUND,
                Messages.SERVER_CONFIGURATION,
            )

        validated = await self._otp_engine.validate(
            code=request.otp_code,
            display_id=request.display_id,
            purpose=OtpPurpose.REGISTRATION,
            registration_id=registration.registration_id,
        )
        if validated.error is not None:
            return propagate(validated)

        try:
            entry = await self._entries.get(registration.registration_id)
        except CacheUnavailableError:
            logger.error(
                "registration_resolve_failed registration_id=%s",
                registration.registration_id,
            )
            return failure(
                ErrorKind.INTEGRATION_FAILURE,
                ErrorCode.CACHE_UNAVAILABLE,
                Messages.CACHE_UNAVAILABLE,
            )
        if entry is None:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.STAGED_RECORD_MISSING,
                Messages.STAGED_RECORD_MISSING,
            )
        candidate = entry.candidate

        account_type = resolve_account_type(candidate.account_type)
        if account_type is None:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.INVALID_ACCOUNT_TYPE,
                Messages.INVALID_ACCOUNT_TYPE,
            )

        try:
            completed = await self._registrations.complete(
                registration_id=registration.registration_id,
                user=NewDistributorUser(
                    username=username,
                    password_hash=self._password_hasher.hash_password(request.password),
                    first_name=request.first_name.strip(),
                    last_name=request.last_name.strip(),
                    email=candidate.email,
                    phone=candidate.phone,
                    status=status_from_sap_code(candidate.status_code),
                    role=role,
                    privacy_policy_accepted=entry.privacy_policy_accepted,
                    password_expires_at=self._now() + self._policy.password_expiry,
                    distributor_name=candidate.distributor_name,
                    account_type=account_type,
                ),
            )
        except RegistrationAlreadyCompletedError:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.REGISTRATION_COMPLETED,
                Messages.REGISTRATION_COMPLETED,
            )
        except UsernameTakenError:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.USERNAME_EXISTS,
                Messages.USERNAME_EXISTS,
            )
        except LinkedAccountExistsError:
            return failure(
                ErrorKind.CONFLICT,
                ErrorCode.DISTRIBUTOR_ACCOUNT_EXISTS,
                Messages.DISTRIBUTOR_ACCOUNT_EXISTS,
            )

        await publish_safely(
            self._publisher,
            topic=EventTopics.SAP_ACCOUNT_CREATED,
            message=linked_account_event_message(completed.linked_account),
        )
        await publish_safely(
            self._publisher,
            topic=EventTopics.USER_CREATED,
            message={
                "user_id": str(completed.user.user_id),
                "username": completed.user.username,
                "first_name": completed.user.first_name,
                "last_name": completed.user.last_name,
                "email_address": completed.user.email,
                "phone_number": completed.user.phone,
                "account_status": completed.user.status.value,
                "roles": [role_display_name(item) for item in completed.user.roles],
                "date_created": completed.user.created_at.isoformat(),
            },
        )
        try:
            await self._entries.remove(registration.registration_id)
        except CacheUnavailableError:
            logger.warning(
                "registration_clear_failed registration_id=%s",
                registration.registration_id,
            )

        logger.info(
            "registration_completed registration_id=%s user_id=%s",
            registration.registration_id,
            completed.user.user_id,
        )
        return success(completed)
