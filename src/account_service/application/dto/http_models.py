"""Pydantic request/response contracts for the account HTTP API."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class LoginRequestModel(StrictModel):
    """Username/password login request."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    channel_code: str = Field(min_length=1)
    device_id: str | None = None
    ip_address: str | None = None


class TwoFactorLoginRequestModel(StrictModel):
    """First step of a two-factor login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    privacy_policy_accepted: bool | None = None


class TwoFactorCompletionRequestModel(StrictModel):
    """OTP submission finishing a two-factor login."""

    otp_code: str = Field(min_length=1)
    display_id: str = Field(min_length=1)
    channel_code: str = Field(min_length=1)
    device_id: str | None = None
    ip_address: str | None = None
    privacy_policy_accepted: bool | None = None


class UserProfileModel(StrictModel):
    """Profile returned with an issued session."""

    user_id: UUID
    username: str
    first_name: str
    last_name: str
    email: str
    role: str
    company_code: str | None = None
    last_login_at: datetime | None = None


class AuthenticationResponse(StrictModel):
    """Issued bearer token and caller profile."""

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfileModel


class OtpChallengeResponse(StrictModel):
    """OTP challenge reference; the code itself travels out of band."""

    reference: str
    display_id: str
    countdown_seconds: int
    masked_email: str
    masked_phone: str


class LinkAccountRequestModel(StrictModel):
    """Directory account the caller wants to link."""

    company_code: str = Field(min_length=1)
    country_code: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    friendly_name: str | None = None


class OtpValidationRequestModel(StrictModel):
    """OTP code plus the display id it was issued with."""

    otp_code: str = Field(min_length=1)
    display_id: str = Field(min_length=1)


class LinkedAccountResponse(StrictModel):
    """Linked distributor account created by OTP confirmation."""

    id: int
    company_code: str
    country_code: str
    distributor_number: str
    distributor_name: str
    friendly_name: str | None = None
    account_type: str
    created_at: datetime
    updated_at: datetime | None = None


class InitiateRegistrationRequestModel(StrictModel):
    """Registration request for one directory account."""

    company_code: str = Field(min_length=1)
    country_code: str = Field(min_length=1)
    distributor_number: str = Field(min_length=1)
    channel_code: str = Field(min_length=1)
    privacy_policy_accepted: bool
    device_id: str | None = None


class RegistrationChallengeResponse(StrictModel):
    """Registration id and OTP challenge."""

    registration_id: UUID
    otp: OtpChallengeResponse


class CompleteRegistrationRequestModel(StrictModel):
    """Credentials and OTP finishing a registration."""

    registration_id: UUID
    otp_code: str = Field(min_length=1)
    display_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class RegistrationCompletedResponse(StrictModel):
    """User and linked account created by a completed registration."""

    user_id: UUID
    username: str
    linked_account: LinkedAccountResponse


class InitiatePasswordResetRequestModel(StrictModel):
    """Username whose password should be reset."""

    username: str = Field(min_length=1)


class PasswordResetTokenResponse(StrictModel):
    """Reset token returned after OTP confirmation."""

    reset_token: str


class CompletePasswordResetRequestModel(StrictModel):
    """New password plus the reset token authorizing it."""

    reset_token: str = Field(min_length=1)
    password: str = Field(min_length=1)


class OkResponse(StrictModel):
    """Acknowledgement without payload."""

    ok: bool = True


class PageMetaModel(StrictModel):
    """Paging metadata for list responses."""

    page_index: int
    page_size: int
    total_count: int
    total_pages: int


class LinkedAccountListResponse(StrictModel):
    """One page of the caller's linked accounts."""

    items: list[LinkedAccountResponse]
    meta: PageMetaModel


class RenameLinkedAccountRequestModel(StrictModel):
    """New friendly name for a linked account."""

    friendly_name: str = Field(min_length=1)


class DeletionRequestModel(StrictModel):
    """Reason a distributor gives for asking to delete their account."""

    reason: str = Field(min_length=1)


class DeletionRequestResponse(StrictModel):
    """Filed deletion request."""

    id: int
    user_id: UUID
    reason: str
    created_at: datetime


class DeletionRequestViewResponse(StrictModel):
    """Deletion request with the requesting user's names, for administrators."""

    id: int
    user_id: UUID
    username: str
    first_name: str
    last_name: str
    reason: str
    created_at: datetime
