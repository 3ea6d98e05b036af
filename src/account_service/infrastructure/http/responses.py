"""Map service results onto HTTP response models."""

from __future__ import annotations

from account_service.application.dto.http_models import (
    AuthenticationResponse,
    DeletionRequestResponse,
    DeletionRequestViewResponse,
    LinkedAccountListResponse,
    LinkedAccountResponse,
    OtpChallengeResponse,
    PageMetaModel,
    UserProfileModel,
)
from account_service.application.ports.deletion_request_repository_port import (
    DeletionRequestRecord,
    DeletionRequestView,
)
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountRecord,
)
from account_service.application.services.auth_service import LoginResult
from account_service.application.services.linked_account_management_service import (
    LinkedAccountListing,
)
from account_service.application.services.otp_engine import OtpChallengeView


def to_authentication_response(result: LoginResult) -> AuthenticationResponse:
    profile = result.profile
    return AuthenticationResponse(
        token=result.session.token,
        expires_in=result.session.expires_in,
        user=UserProfileModel(
            user_id=profile.user_id,
            username=profile.username,
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=profile.email,
            role=profile.role,
            company_code=profile.company_code,
            last_login_at=profile.last_login_at,
        ),
    )


def to_otp_challenge_response(view: OtpChallengeView) -> OtpChallengeResponse:
    return OtpChallengeResponse(
        reference=view.reference,
        display_id=view.display_id,
        countdown_seconds=view.countdown_seconds,
        masked_email=view.masked_email,
        masked_phone=view.masked_phone,
    )


def to_linked_account_response(record: LinkedAccountRecord) -> LinkedAccountResponse:
    return LinkedAccountResponse(
        id=record.id,
        company_code=record.company_code,
        country_code=record.country_code,
        distributor_number=record.distributor_number,
        distributor_name=record.distributor_name,
        friendly_name=record.friendly_name,
        account_type=record.account_type.value,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_linked_account_list_response(listing: LinkedAccountListing) -> LinkedAccountListResponse:
    return LinkedAccountListResponse(
        items=[to_linked_account_response(record) for record in listing.items],
        meta=PageMetaModel(
            page_index=listing.page_index,
            page_size=listing.page_size,
            total_count=listing.total_count,
            total_pages=listing.total_pages,
        ),
    )


def to_deletion_request_response(record: DeletionRequestRecord) -> DeletionRequestResponse:
    return DeletionRequestResponse(
        id=record.id,
        user_id=record.user_id,
        reason=record.reason,
        created_at=record.created_at,
    )


def to_deletion_request_view_response(view: DeletionRequestView) -> DeletionRequestViewResponse:
    return DeletionRequestViewResponse(
        id=view.id,
        user_id=view.user_id,
        username=view.username,
        first_name=view.first_name,
        last_name=view.last_name,
        reason=view.reason,
        created_at=view.created_at,
    )
