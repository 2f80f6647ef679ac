"""Repository layer - data access abstraction."""

from src.identity.repositories.account import AccountRepository
from src.identity.repositories.auth_session import AuthSessionRepository
from src.identity.repositories.base import BaseRepository

__all__ = [
    "AccountRepository",
    "AuthSessionRepository",
    "BaseRepository",
]
