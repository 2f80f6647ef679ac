"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.identity.api.dependencies.db import DBSession
from src.identity.repositories import AccountRepository, AuthSessionRepository


def get_account_repository(session: DBSession) -> AccountRepository:
    return AccountRepository(session)


def get_auth_session_repository(session: DBSession) -> AuthSessionRepository:
    return AuthSessionRepository(session)


AccountRepo = Annotated[AccountRepository, Depends(get_account_repository)]
AuthSessionRepo = Annotated[AuthSessionRepository, Depends(get_auth_session_repository)]
