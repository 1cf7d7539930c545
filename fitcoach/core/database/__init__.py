"""
Database layer for fitcoach.

Structure:
- entities/: SQLModel table models plus their read/create/update schemas
- repositories/: Data access per aggregate
- utils.py: Engine, session factory and table creation helpers

The process-wide engine and the ``get_session`` dependency live in
``fitcoach.server.core.database``.
"""

from .base import Base, UTCDateTime, utc_now
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Base",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "UTCDateTime",
    "utc_now",
]
