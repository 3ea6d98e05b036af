"""FastAPI router for authenticated distributor account linking."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header

from account_service.application.dto.http_models import (
    LinkAccountRequestModel,
    LinkedAccountResponse,
    OtpChallengeResponse,
    OtpValidationRequestModel,
)
from account_service.application.services.account_link_service import AccountLinkService
from account_service.infrastructure.http.auth_guard import SessionAuthGuard, require_identity
from account_service.infrastructure.http.errors import raise_for_error
from account_service.infrastructure.http.responses import (
    to_linked_account_response,
    to_otp_challenge_response,
)


def build_account_link_router(
    *,
    account_link_service: AccountLinkService,
    auth_guard: SessionAuthGuard,
) -> APIRouter:
    """Build router exposing the two-step account link endpoints."""

    router = APIRouter(tags=["accounts"])

    @router.post("/accounts/link", response_model=OtpChallengeResponse)
    async def link_account(
        payload: LinkAccountRequestModel,
        authorization: Annotated[str | None, Header()] = None,
    ) -> OtpChallengeResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await account_link_service.link_account(
            identity,
            company_code=payload.company_code,
            country_code=payload.country_code,
            account_number=payload.account_number,
            friendly_name=payload.friendly_name,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_otp_challenge_response(result.unwrap())

    @router.post("/accounts/link/validate-otp", response_model=LinkedAccountResponse)
    async def validate_link_account_otp(
        payload: OtpValidationRequestModel,
        authorization: Annotated[str | None, Header()] = None,
    ) -> LinkedAccountResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await account_link_service.validate_link_account_otp(
            identity,
            otp_code=payload.otp_code,
            display_id=payload.display_id,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_linked_account_response(result.unwrap())

    return router
