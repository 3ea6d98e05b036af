"""Typed payloads stored in the transient cache, one model per key namespace."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from account_service.application.ports.account_directory_port import AccountDescriptor


class CacheModel(BaseModel):
    """Base model with strict unknown-field rejection for cached payloads."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class LockoutCounterEntry(CacheModel):
    """Consecutive failed password attempts for one user."""

    user_id: UUID
    attempts: int
    created_at: datetime


class LinkCandidate(CacheModel):
    """Validated external account waiting for OTP confirmation."""

    company_code: str
    country_code: str
    distributor_number: str
    distributor_name: str
    email: str
    phone: str
    account_type: str
    status_name: str
    status_code: str | None = None
    friendly_name: str | None = None

    @classmethod
    def from_descriptor(
        cls,
        descriptor: AccountDescriptor,
        *,
        company_code: str,
        country_code: str,
        friendly_name: str | None = None,
    ) -> LinkCandidate:
        return cls(
            company_code=company_code,
            country_code=country_code,
            distributor_number=descriptor.account_number,
            distributor_name=descriptor.distributor_name,
            email=descriptor.email or "",
            phone=descriptor.phone or "",
            account_type=descriptor.account_type or "",
            status_name=descriptor.status_name,
            status_code=descriptor.status_code,
            friendly_name=friendly_name,
        )


class AccountLinkEntry(CacheModel):
    """Pending account link keyed by the requesting user."""

    user_id: UUID
    candidate: LinkCandidate


class RegistrationEntry(CacheModel):
    """Pending registration keyed by registration id."""

    registration_id: UUID
    candidate: LinkCandidate
    privacy_policy_accepted: bool
