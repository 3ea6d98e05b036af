"""FastAPI router for distributor self-registration."""

from __future__ import annotations

from fastapi import APIRouter

from account_service.application.dto.http_models import (
    CompleteRegistrationRequestModel,
    InitiateRegistrationRequestModel,
    RegistrationChallengeResponse,
    RegistrationCompletedResponse,
)
from account_service.application.services.registration_service import (
    CompleteRegistrationRequest,
    InitiateRegistrationRequest,
    RegistrationService,
)
from account_service.infrastructure.http.errors import raise_for_error
from account_service.infrastructure.http.responses import (
    to_linked_account_response,
    to_otp_challenge_response,
)


def build_registration_router(*, registration_service: RegistrationService) -> APIRouter:
    """Build router exposing registration initiate/complete endpoints."""

    router = APIRouter(tags=["registration"])

    @router.post("/registration/initiate", response_model=RegistrationChallengeResponse)
    async def initiate_registration(
        payload: InitiateRegistrationRequestModel,
    ) -> RegistrationChallengeResponse:
        result = await registration_service.initiate_registration(
            InitiateRegistrationRequest(
                company_code=payload.company_code,
                country_code=payload.country_code,
                distributor_number=payload.distributor_number,
                channel_code=payload.channel_code,
                privacy_policy_accepted=payload.privacy_policy_accepted,
                device_id=payload.device_id,
            )
        )
        if result.error is not None:
            raise_for_error(result.error)
        challenge = result.unwrap()
        return RegistrationChallengeResponse(
            registration_id=challenge.registration_id,
            otp=to_otp_challenge_response(challenge.challenge),
        )

    @router.post("/registration/complete", response_model=RegistrationCompletedResponse)
    async def complete_registration(
        payload: CompleteRegistrationRequestModel,
    ) -> RegistrationCompletedResponse:
        result = await registration_service.complete_registration(
            CompleteRegistrationRequest(
                registration_id=payload.registration_id,
                otp_code=payload.otp_code,
                display_id=payload.display_id,
                username=payload.username,
                password=payload.password,
                first_name=payload.first_name,
                last_name=payload.last_name,
            )
        )
        if result.error is not None:
            raise_for_error(result.error)
        completed = result.unwrap()
        return RegistrationCompletedResponse(
            user_id=completed.user.user_id,
            username=completed.user.username,
            linked_account=to_linked_account_response(completed.linked_account),
        )

    return router
