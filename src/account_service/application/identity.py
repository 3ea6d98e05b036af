"""Authenticated caller identity passed explicitly to protected use-cases."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity resolved once per request from a verified session token."""

    user_id: UUID
    username: str
    role: str
