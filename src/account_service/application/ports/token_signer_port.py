"""Port for signing and verifying session tokens."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class TokenSignerPort(Protocol):
    """Signed identity assertion contract."""

    def sign(self, claims: dict[str, Any], *, issued_at: datetime, expires_at: datetime) -> str:
        """Return an opaque signed token embedding the claims."""

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return verified claims, or None for invalid/expired tokens."""
