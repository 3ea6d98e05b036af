"""FastAPI router for password reset endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from account_service.application.dto.http_models import (
    CompletePasswordResetRequestModel,
    InitiatePasswordResetRequestModel,
    OkResponse,
    OtpChallengeResponse,
    OtpValidationRequestModel,
    PasswordResetTokenResponse,
)
from account_service.application.services.password_reset_service import PasswordResetService
from account_service.infrastructure.http.errors import raise_for_error
from account_service.infrastructure.http.responses import to_otp_challenge_response


def build_password_reset_router(*, password_reset_service: PasswordResetService) -> APIRouter:
    """Build router exposing distributor and admin password reset endpoints."""

    router = APIRouter(tags=["password-reset"])

    @router.post("/password-reset/initiate", response_model=OtpChallengeResponse)
    async def initiate_password_reset(
        payload: InitiatePasswordResetRequestModel,
    ) -> OtpChallengeResponse:
        result = await password_reset_service.initiate_password_reset(username=payload.username)
        if result.error is not None:
            raise_for_error(result.error)
        return to_otp_challenge_response(result.unwrap())

    @router.post("/password-reset/admin/initiate", response_model=OtpChallengeResponse)
    async def initiate_admin_password_reset(
        payload: InitiatePasswordResetRequestModel,
    ) -> OtpChallengeResponse:
        result = await password_reset_service.initiate_admin_password_reset(
            username=payload.username
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_otp_challenge_response(result.unwrap())

    @router.post("/password-reset/validate-otp", response_model=PasswordResetTokenResponse)
    async def validate_password_reset_otp(
        payload: OtpValidationRequestModel,
    ) -> PasswordResetTokenResponse:
        result = await password_reset_service.validate_password_reset_otp(
            otp_code=payload.otp_code,
            display_id=payload.display_id,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return PasswordResetTokenResponse(reset_token=result.unwrap())

    @router.post("/password-reset/complete", response_model=OkResponse)
    async def complete_password_reset(
        payload: CompletePasswordResetRequestModel,
    ) -> OkResponse:
        result = await password_reset_service.complete_password_reset(
            reset_token=payload.reset_token,
            password=payload.password,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return OkResponse()

    return router
