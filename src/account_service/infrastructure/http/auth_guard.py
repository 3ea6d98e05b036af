"""Bearer token parsing and identity resolution for protected endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException

from account_service.application.identity import AuthenticatedIdentity
from account_service.application.ports.token_signer_port import TokenSignerPort
from account_service.application.services.session_issuer import SessionClaimKeys


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when the bearer header or the token itself is invalid."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]


class SessionAuthGuard:
    """Resolve the caller identity once per request from a signed session token."""

    def __init__(self, *, signer: TokenSignerPort) -> None:
        self._signer = signer

    def resolve_identity(self, *, authorization_header: str | None) -> AuthenticatedIdentity:
        token = extract_bearer_token(authorization_header)
        claims = self._signer.verify(token)
        if claims is None:
            raise InvalidAuthTokenError("invalid or expired session token")

        try:
            user_id = UUID(str(claims[SessionClaimKeys.USER_ID]))
            username = str(claims[SessionClaimKeys.USERNAME])
            role = str(claims[SessionClaimKeys.ROLE])
        except (KeyError, ValueError) as error:
            raise InvalidAuthTokenError("session token is missing identity claims") from error

        return AuthenticatedIdentity(user_id=user_id, username=username, role=role)


def require_identity(
    *,
    auth_guard: SessionAuthGuard,
    authorization_header: str | None,
) -> AuthenticatedIdentity:
    """Resolve caller identity and map auth failures into HTTP 401."""

    try:
        return auth_guard.resolve_identity(authorization_header=authorization_header)
    except MissingAuthTokenError as error:
        raise HTTPException(status_code=401, detail="missing bearer token") from error
    except InvalidAuthTokenError as error:
        raise HTTPException(status_code=401, detail="invalid auth token") from error
