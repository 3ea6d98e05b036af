"""Deterministic transition table for the login/OTP state machine."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class LoginState(StrEnum):
    """States one login request moves through."""

    AWAITING_CREDENTIALS = "awaiting_credentials"
    CREDENTIALS_VERIFIED = "credentials_verified"
    PRIVACY_POLICY_GATE = "privacy_policy_gate"
    OTP_CHALLENGE = "otp_challenge"
    SESSION_ISSUED = "session_issued"


class InvalidLoginTransitionError(ValueError):
    """Raised when a login step is attempted out of order."""


_ALLOWED_TRANSITIONS: Final[dict[LoginState, frozenset[LoginState]]] = {
    LoginState.AWAITING_CREDENTIALS: frozenset({LoginState.CREDENTIALS_VERIFIED}),
    LoginState.CREDENTIALS_VERIFIED: frozenset(
        {
            LoginState.PRIVACY_POLICY_GATE,
            LoginState.OTP_CHALLENGE,
            LoginState.SESSION_ISSUED,
        }
    ),
    LoginState.PRIVACY_POLICY_GATE: frozenset({LoginState.OTP_CHALLENGE}),
    LoginState.OTP_CHALLENGE: frozenset({LoginState.SESSION_ISSUED}),
    LoginState.SESSION_ISSUED: frozenset(),
}


def can_transition(from_state: LoginState, to_state: LoginState) -> bool:
    """Return whether the transition is valid for the login state machine."""

    return to_state in _ALLOWED_TRANSITIONS[from_state]


def advance(from_state: LoginState, to_state: LoginState) -> LoginState:
    """Return the target state when allowed, else raise deterministic error."""

    if not can_transition(from_state, to_state):
        raise InvalidLoginTransitionError(
            f"Invalid login transition: {from_state.value} -> {to_state.value}"
        )
    return to_state
