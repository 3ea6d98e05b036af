"""HS256 session token signer built on PyJWT."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

import jwt

from account_service.application.ports.token_signer_port import TokenSignerPort
from account_service.application.services.session_issuer import SessionClaimKeys

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class JwtTokenSigner(TokenSignerPort):
    """Sign session claims with registered `sub`, `jti`, `iat`, `nbf`, `exp`, `iss`, `aud`."""

    def __init__(self, *, secret_key: str, issuer: str, audience: str) -> None:
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience

    def sign(self, claims: dict[str, Any], *, issued_at: datetime, expires_at: datetime) -> str:
        payload = {
            **claims,
            "sub": str(claims.get(SessionClaimKeys.USERNAME, "")),
            "jti": str(uuid.uuid4()),
            "iat": issued_at,
            "nbf": issued_at,
            "exp": expires_at,
            "iss": self._issuer,
            "aud": self._audience,
        }
        return jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return claims of a valid token, or None when invalid or expired."""

        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[JWT_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
            )
        except jwt.ExpiredSignatureError:
            logger.info("session_token_expired")
            return None
        except jwt.PyJWTError as error:
            logger.info("session_token_invalid error=%s", type(error).__name__)
            return None
