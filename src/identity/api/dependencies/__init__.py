"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

from src.identity.api.dependencies.auth import (
    CurrentAccount,
    RefreshToken,
    get_current_account,
    get_refresh_token,
)
from src.identity.api.dependencies.db import DBSession, get_db_session
from src.identity.api.dependencies.repositories import (
    AccountRepo,
    AuthSessionRepo,
    get_account_repository,
    get_auth_session_repository,
)
from src.identity.api.dependencies.services import (
    AuthServiceDep,
    EmailSenderDep,
    EmailVerificationServiceDep,
    LoginStoreDep,
    OAuthServiceDep,
    PasswordServiceDep,
    RegistrationServiceDep,
    SessionServiceDep,
    UserServiceDep,
    get_auth_service,
    get_email_verification_service,
    get_login_store,
    get_oauth_service,
    get_password_service,
    get_registration_service,
    get_session_service,
    get_user_service,
)

__all__ = [
    # Auth
    "CurrentAccount",
    "RefreshToken",
    "get_current_account",
    "get_refresh_token",
    # Database
    "DBSession",
    "get_db_session",
    # Repositories
    "AccountRepo",
    "AuthSessionRepo",
    "get_account_repository",
    "get_auth_session_repository",
    # Services
    "AuthServiceDep",
    "EmailSenderDep",
    "EmailVerificationServiceDep",
    "LoginStoreDep",
    "OAuthServiceDep",
    "PasswordServiceDep",
    "RegistrationServiceDep",
    "SessionServiceDep",
    "UserServiceDep",
    "get_auth_service",
    "get_email_verification_service",
    "get_login_store",
    "get_oauth_service",
    "get_password_service",
    "get_registration_service",
    "get_session_service",
    "get_user_service",
]
