"""Port for distributor requests to delete their account."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class DeletionRequestRecord:
    """Persisted deletion request."""

    id: int
    user_id: UUID
    reason: str
    created_at: datetime


@dataclass(frozen=True)
class DeletionRequestView:
    """Deletion request joined with the requesting user's names."""

    id: int
    user_id: UUID
    username: str
    first_name: str
    last_name: str
    reason: str
    created_at: datetime


class DeletionRequestRepositoryPort(Protocol):
    """Deletion request persistence contract."""

    async def create(self, *, user_id: UUID, reason: str) -> DeletionRequestRecord:
        """Persist one deletion request."""

    async def list_all(self) -> list[DeletionRequestView]:
        """Return every deletion request, newest first."""
