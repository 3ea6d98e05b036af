"""Explicit success/error results returned by application services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar, cast

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Error taxonomy surfaced to callers."""

    NOT_AUTHORIZED = "not_authorized"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INTEGRATION_FAILURE = "integration_failure"
    SERVER_CONFIGURATION = "server_configuration"


class ErrorCode(StrEnum):
    """Stable machine-readable error codes."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_EXPIRED = "account_expired"
    ACCOUNT_DISABLED = "account_disabled"
    ACCOUNT_LOCKED = "account_locked"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    PRIVACY_POLICY_NOT_ACCEPTED = "privacy_policy_not_accepted"
    OTP_INVALID = "otp_invalid"
    OTP_EXPIRED = "otp_expired"
    OTP_ALREADY_USED = "otp_already_used"
    OTP_SUPERSEDED = "otp_superseded"
    STAGED_RECORD_MISSING = "staged_record_missing"
    DISTRIBUTOR_ACCOUNT_EXISTS = "distributor_account_exists"
    SAP_ACCOUNT_NOT_FOUND = "sap_account_not_found"
    SAP_ACCOUNT_INACTIVE = "sap_account_inactive"
    SAP_ACCOUNT_INCOMPLETE = "sap_account_incomplete"
    SAP_UNAVAILABLE = "sap_unavailable"
    INVALID_ACCOUNT_TYPE = "invalid_account_type"
    INCORRECT_COMPANY_CODE = "incorrect_company_code"
    INCORRECT_COUNTRY_CODE = "incorrect_country_code"
    USER_NOT_FOUND = "user_not_found"
    USERNAME_EXISTS = "username_exists"
    USERNAME_REQUIRED = "username_required"
    PASSWORD_COMBINATION_INVALID = "password_combination_invalid"
    PASSWORD_INVALID = "password_invalid"
    PASSWORD_POLICY_VIOLATION = "password_policy_violation"
    REGISTRATION_NOT_FOUND = "registration_not_found"
    REGISTRATION_COMPLETED = "registration_completed"
    RESET_TOKEN_NOT_FOUND = "reset_token_not_found"
    RESET_TOKEN_EXPIRED = "reset_token_expired"
    DEFAULT_ROLE_NOT_FOUND = "default_role_not_found"
    CACHE_UNAVAILABLE = "cache_unavailable"
    LINKED_ACCOUNT_NOT_FOUND = "linked_account_not_found"
    LAST_ACCOUNT_UNLINK_FORBIDDEN = "last_account_unlink_forbidden"
    DELETION_REASON_REQUIRED = "deletion_reason_required"
    FRIENDLY_NAME_REQUIRED = "friendly_name_required"


@dataclass(frozen=True)
class ServiceError:
    """Structured failure with a stable code and human-readable message."""

    kind: ErrorKind
    code: ErrorCode
    message: str

    @property
    def retryable(self) -> bool:
        """Return whether the caller may retry the same request later."""

        return self.kind is ErrorKind.INTEGRATION_FAILURE


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Success value or service error; exactly one is set."""

    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the success value, raising when the result is an error."""

        if self.error is not None:
            raise ValueError(f"result is an error: {self.error.code.value}")
        return cast(T, self.value)


def success(value: T) -> ServiceResult[T]:
    return ServiceResult(value=value)


def failure(kind: ErrorKind, code: ErrorCode, message: str) -> ServiceResult[T]:
    return ServiceResult(error=ServiceError(kind=kind, code=code, message=message))


def propagate(result: ServiceResult[object]) -> ServiceResult[T]:
    """Re-type a failed result so it can be returned from another step."""

    assert result.error is not None
    return ServiceResult(error=result.error)


class Messages:
    """User-facing messages keyed by outcome."""

    INVALID_CREDENTIALS = "The username or password provided is incorrect."
    ACCOUNT_EXPIRED = "Your account has expired. Kindly reset your password."
    ACCOUNT_DISABLED = "Your account has been disabled. Kindly reset your password."
    ACCOUNT_LOCKED = "Your account has been locked. Kindly reset your password."
    UNAUTHORIZED_ACCESS = "You are not authorized to access this resource."
    PRIVACY_POLICY_NOT_ACCEPTED = "privacy policy not accepted"
    OTP_INVALID = "The One Time Pin provided is invalid."
    OTP_EXPIRED = "The One Time Pin provided has expired."
    OTP_ALREADY_USED = "The One Time Pin provided has already been used."
    OTP_SUPERSEDED = "The One Time Pin provided has been replaced by a newer one."
    STAGED_RECORD_MISSING = "The pending request has expired or was replaced. Kindly start again."
    DISTRIBUTOR_ACCOUNT_EXISTS = "The distributor account has already been linked."
    SAP_ACCOUNT_NOT_FOUND = "The distributor account could not be found."
    SAP_ACCOUNT_INACTIVE = "The distributor account is inactive."
    SAP_ACCOUNT_INCOMPLETE = (
        "The distributor account information is incomplete. "
        "Kindly contact the Customer Support agent."
    )
    SAP_UNAVAILABLE = (
        "We are unable to reach the account directory at the moment. Please try again later."
    )
    INVALID_ACCOUNT_TYPE = (
        "Sorry, the account type is invalid. Kindly contact the Customer Support agent."
    )
    INCORRECT_COMPANY_CODE = "The company code provided is incorrect."
    INCORRECT_COUNTRY_CODE = "The country code provided is incorrect."
    USER_NOT_FOUND = "No user exists with the username provided."
    USERNAME_EXISTS = "The username provided already exists."
    USERNAME_REQUIRED = "A username is required."
    PASSWORD_COMBINATION_INVALID = "The password must not contain the username."
    PASSWORD_INVALID = "The password does not meet the password policy."
    PASSWORD_POLICY_VIOLATION = "The password must not match any of your last {number} passwords."
    REGISTRATION_NOT_FOUND = "The registration could not be found."
    REGISTRATION_COMPLETED = "The registration has previously been completed."
    RESET_TOKEN_NOT_FOUND = "The password reset request could not be found."
    RESET_TOKEN_EXPIRED = "The password reset request has expired."
    LINKED_ACCOUNT_NOT_FOUND = "The linked distributor account could not be found."
    LAST_ACCOUNT_UNLINK_FORBIDDEN = (
        "You cannot unlink your only distributor account. Kindly request account deletion."
    )
    DELETION_REASON_REQUIRED = "A reason is required to request account deletion."
    FRIENDLY_NAME_REQUIRED = "A friendly name is required."
    SERVER_CONFIGURATION = "The service is not configured correctly."
    CACHE_UNAVAILABLE = (
        "We are unable to process your request at the moment. Please try again later."
    )
