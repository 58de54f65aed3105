"""Database helpers and base objects."""

from .base import Base, metadata
from .session import create_db_engine, create_session_factory, init_db

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "metadata",
]
