"""Database package."""

from raitha.db.base import Base
from raitha.db.session import (
    async_session_maker,
    create_engine,
    create_session_factory,
    dispose_db,
    init_db,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_engine",
    "create_session_factory",
    "dispose_db",
    "init_db",
]
