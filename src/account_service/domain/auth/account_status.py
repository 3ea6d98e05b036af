"""Account status lifecycle for credential records."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class AccountStatus(StrEnum):
    """Persisted account lifecycle states."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LOCKED = "locked"
    EXPIRED = "expired"


class InvalidStatusTransitionError(ValueError):
    """Raised when an account status change is not part of the lifecycle."""


_ALLOWED_TRANSITIONS: Final[dict[AccountStatus, frozenset[AccountStatus]]] = {
    AccountStatus.ACTIVE: frozenset(
        {AccountStatus.INACTIVE, AccountStatus.LOCKED, AccountStatus.EXPIRED}
    ),
    AccountStatus.LOCKED: frozenset({AccountStatus.ACTIVE}),
    AccountStatus.EXPIRED: frozenset({AccountStatus.ACTIVE}),
    AccountStatus.INACTIVE: frozenset({AccountStatus.ACTIVE}),
}


def can_transition(from_status: AccountStatus, to_status: AccountStatus) -> bool:
    """Return whether one status change is allowed."""

    return to_status in _ALLOWED_TRANSITIONS[from_status]


def assert_transition(from_status: AccountStatus, to_status: AccountStatus) -> None:
    """Assert a status change is allowed, else raise deterministic domain error."""

    if not can_transition(from_status, to_status):
        raise InvalidStatusTransitionError(
            f"Invalid account status transition: {from_status.value} -> {to_status.value}"
        )


def status_from_sap_code(code: str | None) -> AccountStatus:
    """Map an SAP account status code onto the local lifecycle, defaulting to active."""

    if code is None:
        return AccountStatus.ACTIVE
    normalized = code.strip().lower()
    for status in AccountStatus:
        if status.value == normalized:
            return status
    return AccountStatus.ACTIVE
