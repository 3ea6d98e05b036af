"""Async SQLAlchemy engine and session factory for account repositories."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Create the session factory shared by every repository of one process.

    Sessions keep loaded rows usable after commit; repositories commit per call.
    """

    engine = create_async_engine(database_url, pool_pre_ping=True)
    return async_sessionmaker(engine, expire_on_commit=False)
