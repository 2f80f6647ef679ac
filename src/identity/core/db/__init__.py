"""Database package - engine and session management."""

from src.identity.core.db.engine import dispose_engine, get_engine
from src.identity.core.db.session import get_session

__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
]
