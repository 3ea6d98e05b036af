"""Recognize unique constraint violations across database drivers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates_unique(error: IntegrityError, constraint: str, column: str) -> bool:
    """Return whether `error` was raised by the named unique constraint.

    PostgreSQL reports the constraint name; SQLite reports `table.column` pairs.
    """

    detail = str(error.orig)
    return constraint in detail or column in detail
