"""account-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import uvicorn
from fastapi import FastAPI

from account_service.application.ports.account_directory_port import AccountDirectoryPort
from account_service.application.ports.cache_port import TransientCachePort
from account_service.application.ports.password_hasher_port import PasswordHasherPort
from account_service.application.services.account_link_saga import AccountLinkSaga
from account_service.application.services.account_link_service import AccountLinkService
from account_service.application.services.auth_service import AuthService
from account_service.application.services.directory_lookup import DirectoryLookup
from account_service.application.services.linked_account_management_service import (
    LinkedAccountManagementService,
)
from account_service.application.services.lockout_tracker import LockoutTracker
from account_service.application.services.otp_engine import OtpEngine
from account_service.application.services.password_reset_service import (
    PasswordPolicy,
    PasswordResetService,
)
from account_service.application.services.registration_service import (
    RegistrationPolicy,
    RegistrationService,
)
from account_service.application.services.session_issuer import SessionIssuer
from account_service.config.settings import Settings, load_settings
from account_service.infrastructure.cache.memory_cache import InMemoryTransientCache
from account_service.infrastructure.cache.redis_cache import RedisTransientCache
from account_service.infrastructure.db.credential_repository import (
    SqlAlchemyCredentialRepository,
)
from account_service.infrastructure.db.deletion_request_repository import (
    SqlAlchemyDeletionRequestRepository,
)
from account_service.infrastructure.db.linked_account_repository import (
    SqlAlchemyLinkedAccountRepository,
)
from account_service.infrastructure.db.otp_repository import SqlAlchemyOtpRepository
from account_service.infrastructure.db.reference_data_repository import (
    SqlAlchemyReferenceDataRepository,
)
from account_service.infrastructure.db.registration_repository import (
    SqlAlchemyRegistrationRepository,
)
from account_service.infrastructure.db.session import create_session_factory
from account_service.infrastructure.events.outbox_publisher import OutboxEventPublisher
from account_service.infrastructure.http.account_link_router import build_account_link_router
from account_service.infrastructure.http.auth_guard import SessionAuthGuard
from account_service.infrastructure.http.auth_router import build_auth_router
from account_service.infrastructure.http.linked_accounts_router import (
    build_linked_accounts_router,
)
from account_service.infrastructure.http.password_reset_router import (
    build_password_reset_router,
)
from account_service.infrastructure.http.registration_router import build_registration_router
from account_service.infrastructure.logging import configure_logging
from account_service.infrastructure.sap.sap_client import SapAccountDirectory
from account_service.infrastructure.security.jwt_signer import JwtTokenSigner
from account_service.infrastructure.security.password_hasher import BcryptPasswordHasher

ACCOUNT_API_HOST = "0.0.0.0"
ACCOUNT_API_PORT = 8000
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountServices:
    """Wired application services exposed through HTTP routers."""

    auth_service: AuthService
    account_link_service: AccountLinkService
    linked_account_management_service: LinkedAccountManagementService
    registration_service: RegistrationService
    password_reset_service: PasswordResetService
    auth_guard: SessionAuthGuard


def build_cache(settings: Settings) -> TransientCachePort:
    """Build the Redis cache, or the in-process cache when no Redis URL is set."""

    if settings.redis_url is None:
        logger.warning("redis_url_not_configured cache=in_memory")
        return InMemoryTransientCache()
    return RedisTransientCache.from_url(settings.redis_url)


def build_account_directory(settings: Settings) -> AccountDirectoryPort:
    """Build SAP customer directory adapter from settings."""

    return SapAccountDirectory(
        base_url=str(settings.sap_base_url),
        find_customer_endpoint=settings.sap_find_customer_endpoint,
        username=settings.sap_username,
        password=settings.sap_password,
        timeout_seconds=settings.sap_timeout_seconds,
    )


def build_services(
    settings: Settings,
    *,
    cache: TransientCachePort | None = None,
    account_directory: AccountDirectoryPort | None = None,
    password_hasher: PasswordHasherPort | None = None,
) -> AccountServices:
    """Build application services with SQLAlchemy-backed dependencies."""

    session_factory = create_session_factory(settings.database_url)
    cache = cache or build_cache(settings)
    account_directory = account_directory or build_account_directory(settings)
    password_hasher = password_hasher or BcryptPasswordHasher()

    credentials = SqlAlchemyCredentialRepository(session_factory)
    linked_accounts = SqlAlchemyLinkedAccountRepository(session_factory)
    publisher = OutboxEventPublisher(session_factory)
    signer = JwtTokenSigner(
        secret_key=settings.jwt_secret_key,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )
    otp_engine = OtpEngine(
        otps=SqlAlchemyOtpRepository(session_factory),
        code_size=settings.otp_size,
        expiry=timedelta(seconds=settings.otp_expiry_seconds),
    )
    lookup = DirectoryLookup(
        directory=account_directory,
        reference_data=SqlAlchemyReferenceDataRepository(session_factory),
        linked_accounts=linked_accounts,
        timeout_seconds=settings.sap_timeout_seconds,
    )

    return AccountServices(
        auth_service=AuthService(
            credentials=credentials,
            password_hasher=password_hasher,
            lockout=LockoutTracker(
                cache=cache,
                window=timedelta(seconds=settings.password_lockout_window_seconds),
            ),
            otp_engine=otp_engine,
            session_issuer=SessionIssuer(
                signer=signer,
                duration=timedelta(minutes=settings.jwt_duration_minutes),
            ),
            publisher=publisher,
            lockout_threshold=settings.password_attempted_tries,
        ),
        account_link_service=AccountLinkService(
            lookup=lookup,
            saga=AccountLinkSaga(
                cache=cache,
                ttl=timedelta(seconds=settings.account_link_ttl_seconds),
            ),
            otp_engine=otp_engine,
            linked_accounts=linked_accounts,
            publisher=publisher,
        ),
        linked_account_management_service=LinkedAccountManagementService(
            linked_accounts=linked_accounts,
            deletion_requests=SqlAlchemyDeletionRequestRepository(session_factory),
            publisher=publisher,
        ),
        registration_service=RegistrationService(
            lookup=lookup,
            registrations=SqlAlchemyRegistrationRepository(session_factory),
            credentials=credentials,
            otp_engine=otp_engine,
            password_hasher=password_hasher,
            cache=cache,
            publisher=publisher,
            policy=RegistrationPolicy(
                password_pattern=settings.password_regex_pattern,
                password_expiry=timedelta(days=settings.password_expiry_days),
                default_role_name=settings.default_role_name,
            ),
            ttl=timedelta(seconds=settings.registration_ttl_seconds),
        ),
        password_reset_service=PasswordResetService(
            credentials=credentials,
            otp_engine=otp_engine,
            password_hasher=password_hasher,
            publisher=publisher,
            policy=PasswordPolicy(
                pattern=settings.password_regex_pattern,
                expiry=timedelta(days=settings.password_expiry_days),
                recycle_limit=settings.password_recycle_limit,
                reset_token_length=settings.reset_token_length,
                reset_token_expiry=timedelta(minutes=settings.reset_token_expiry_minutes),
            ),
        ),
        auth_guard=SessionAuthGuard(signer=signer),
    )


def create_app(
    *,
    settings: Settings | None = None,
    services: AccountServices | None = None,
) -> FastAPI:
    """Create FastAPI app exposing authentication, account, registration and reset routes."""

    if services is None:
        if settings is None:
            settings = load_settings()
        configure_logging(level=settings.log_level)
        services = build_services(settings)

    app = FastAPI(title="account-service")
    app.include_router(build_auth_router(auth_service=services.auth_service))
    app.include_router(
        build_account_link_router(
            account_link_service=services.account_link_service,
            auth_guard=services.auth_guard,
        )
    )
    app.include_router(
        build_linked_accounts_router(
            management_service=services.linked_account_management_service,
            auth_guard=services.auth_guard,
        )
    )
    app.include_router(
        build_registration_router(registration_service=services.registration_service)
    )
    app.include_router(
        build_password_reset_router(password_reset_service=services.password_reset_service)
    )
    return app


def run_asgi_server(*, host: str = ACCOUNT_API_HOST, port: int = ACCOUNT_API_PORT) -> None:
    """Run account-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.account_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run account-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
