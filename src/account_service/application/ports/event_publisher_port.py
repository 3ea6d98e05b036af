"""Port for publishing integration events to the message bus."""

from __future__ import annotations

from typing import Any, Protocol


class EventPublisherPort(Protocol):
    """Fire-and-forget topic publisher contract."""

    async def publish(self, *, topic: str, message: dict[str, Any]) -> None:
        """Publish one JSON-serializable message to a topic."""
