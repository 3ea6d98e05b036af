"""Integration event topics and best-effort publishing helpers."""

from __future__ import annotations

import logging
from typing import Any

from account_service.application.ports.event_publisher_port import EventPublisherPort

logger = logging.getLogger(__name__)


class EventTopics:
    """Message bus topics emitted by this service."""

    USER_LOGIN = "Accounts.User.Login"
    OTP_GENERATED = "Accounts.Otp.Generated"
    SAP_ACCOUNT_CREATED = "Accounts.SapAccount.Created"
    SAP_ACCOUNT_UPDATED = "Accounts.SapAccount.Updated"
    SAP_ACCOUNT_DELETED = "Accounts.SapAccount.Deleted"
    SAP_ACCOUNT_DELETION_REQUESTED = "Accounts.SapAccount.DeletionRequest.Created"
    USER_CREATED = "Accounts.User.Created"
    PASSWORD_UPDATED = "Accounts.Password.Updated"


async def publish_safely(
    publisher: EventPublisherPort,
    *,
    topic: str,
    message: dict[str, Any],
) -> bool:
    """Publish one event, logging and absorbing publisher failures.

    The caller's state change has already been committed when events go out,
    so a failed publish must not turn a completed request into an error.
    """

    try:
        await publisher.publish(topic=topic, message=message)
    except Exception:
        logger.exception("event_publish_failed topic=%s", topic)
        return False
    return True
