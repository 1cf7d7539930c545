"""
Database Connection and Session Management.

This module sets up the asynchronous SQLAlchemy engine and session factory.
It provides utilities for dependency injection of database sessions.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database import create_all, create_engine, create_sessionmaker
from fitcoach.server.core.config import settings

"""
engine:
    The global SQLAlchemy AsyncEngine instance, bound to ``DATABASE_URL``.
"""
engine = create_engine(settings.database_url)

"""
async_session_maker:
    A global factory for new AsyncSession instances, configured to NOT expire
    on commit (typical for async).
"""
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db():
    """
    Initialize the database.

    Creates every table registered on the SQLModel metadata if it does not exist.
    """
    await create_all(engine)
