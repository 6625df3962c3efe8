"""Database infrastructure: async engine and session management."""

from .session import (
    close_database,
    get_engine,
    get_session_factory,
    init_database,
)

__all__ = [
    "close_database",
    "get_engine",
    "get_session_factory",
    "init_database",
]
