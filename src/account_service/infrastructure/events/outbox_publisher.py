"""Transactional outbox adapter for integration events."""

from __future__ import annotations

import logging
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_service.application.ports.event_publisher_port import EventPublisherPort
from account_service.infrastructure.db.metadata import integration_events

logger = logging.getLogger(__name__)


class OutboxEventPublisher(EventPublisherPort):
    """Append events to `integration_events`; a relay ships them to the bus."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def publish(self, *, topic: str, message: dict[str, Any]) -> None:
        statement = sa.insert(integration_events).values(topic=topic, payload=message)
        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()
        logger.debug("integration_event_queued topic=%s", topic)
