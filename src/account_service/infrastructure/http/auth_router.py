"""FastAPI router for login and two-factor authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from account_service.application.dto.http_models import (
    AuthenticationResponse,
    LoginRequestModel,
    OtpChallengeResponse,
    TwoFactorCompletionRequestModel,
    TwoFactorLoginRequestModel,
)
from account_service.application.services.auth_service import (
    AuthService,
    LoginRequest,
    TwoFactorCompletionRequest,
    TwoFactorLoginRequest,
)
from account_service.infrastructure.http.errors import raise_for_error
from account_service.infrastructure.http.responses import (
    to_authentication_response,
    to_otp_challenge_response,
)


def build_auth_router(*, auth_service: AuthService) -> APIRouter:
    """Build router exposing distributor and admin login endpoints."""

    router = APIRouter(tags=["auth"])

    @router.post("/auth/login", response_model=AuthenticationResponse)
    async def login(payload: LoginRequestModel) -> AuthenticationResponse:
        result = await auth_service.login(_to_login_request(payload))
        if result.error is not None:
            raise_for_error(result.error)
        return to_authentication_response(result.unwrap())

    @router.post("/auth/admin/login", response_model=AuthenticationResponse)
    async def admin_login(payload: LoginRequestModel) -> AuthenticationResponse:
        result = await auth_service.admin_login(_to_login_request(payload))
        if result.error is not None:
            raise_for_error(result.error)
        return to_authentication_response(result.unwrap())

    @router.post("/auth/two-factor", response_model=OtpChallengeResponse)
    async def distributor_two_factor(payload: TwoFactorLoginRequestModel) -> OtpChallengeResponse:
        result = await auth_service.distributor_two_factor_login(
            _to_two_factor_request(payload)
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_otp_challenge_response(result.unwrap())

    @router.post("/auth/admin/two-factor", response_model=OtpChallengeResponse)
    async def admin_two_factor(payload: TwoFactorLoginRequestModel) -> OtpChallengeResponse:
        result = await auth_service.admin_two_factor_login(_to_two_factor_request(payload))
        if result.error is not None:
            raise_for_error(result.error)
        return to_otp_challenge_response(result.unwrap())

    @router.post("/auth/two-factor/complete", response_model=AuthenticationResponse)
    async def complete_two_factor(
        payload: TwoFactorCompletionRequestModel,
    ) -> AuthenticationResponse:
        result = await auth_service.complete_two_factor(
            TwoFactorCompletionRequest(
                otp_code=payload.otp_code,
                display_id=payload.display_id,
                channel_code=payload.channel_code,
                device_id=payload.device_id,
                ip_address=payload.ip_address,
                privacy_policy_accepted=payload.privacy_policy_accepted,
            )
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_authentication_response(result.unwrap())

    return router


def _to_login_request(payload: LoginRequestModel) -> LoginRequest:
    return LoginRequest(
        username=payload.username,
        password=payload.password,
        channel_code=payload.channel_code,
        device_id=payload.device_id,
        ip_address=payload.ip_address,
    )


def _to_two_factor_request(payload: TwoFactorLoginRequestModel) -> TwoFactorLoginRequest:
    return TwoFactorLoginRequest(
        username=payload.username,
        password=payload.password,
        privacy_policy_accepted=payload.privacy_policy_accepted,
    )
