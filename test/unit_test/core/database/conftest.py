"""Test configuration for database unit tests.

This module provides an in-memory SQLite engine and session with every
fitcoach table created.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel.pool import StaticPool

from fitcoach.core.database import create_all, create_engine, create_sessionmaker


@pytest_asyncio.fixture
async def in_memory_engine() -> AsyncGenerator:
    """Create in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite+aiosqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(in_memory_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create in-memory SQLite session for testing."""
    async with create_sessionmaker(in_memory_engine)() as session:
        yield session
