"""Shared conversions for values read back from SQL rows."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID


def as_uuid(value: object) -> UUID:
    """Return a UUID for drivers that hand back strings."""

    return value if isinstance(value, UUID) else UUID(str(value))


def as_optional_uuid(value: object) -> UUID | None:
    return None if value is None else as_uuid(value)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_optional_utc(value: datetime | None) -> datetime | None:
    return None if value is None else as_utc(value)
