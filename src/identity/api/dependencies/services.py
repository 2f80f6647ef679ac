"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from src.identity.api.dependencies.db import DBSession
from src.identity.api.dependencies.repositories import AccountRepo, AuthSessionRepo
from src.identity.core.login_exchange import LoginExchangeStore
from src.identity.core.notifications import EmailSender, get_email_sender
from src.identity.services import (
    AuthService,
    EmailVerificationService,
    OAuthService,
    PasswordService,
    RegistrationService,
    SessionService,
    UserService,
)

EmailSenderDep = Annotated[EmailSender, Depends(get_email_sender)]


def get_login_store(request: Request) -> LoginExchangeStore:
    """The app-owned login-exchange store (created in create_app)."""
    return request.app.state.login_store  # type: ignore[no-any-return]


LoginStoreDep = Annotated[LoginExchangeStore, Depends(get_login_store)]


def get_session_service(session_repo: AuthSessionRepo, session: DBSession) -> SessionService:
    return SessionService(session_repo, session)


SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


def get_email_verification_service(
    account_repo: AccountRepo, session: DBSession, email_sender: EmailSenderDep
) -> EmailVerificationService:
    return EmailVerificationService(account_repo, session, email_sender)


EmailVerificationServiceDep = Annotated[
    EmailVerificationService, Depends(get_email_verification_service)
]


def get_user_service(
    account_repo: AccountRepo,
    session: DBSession,
    email_verification_service: EmailVerificationServiceDep,
) -> UserService:
    return UserService(account_repo, session, email_verification_service)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


def get_registration_service(
    account_repo: AccountRepo,
    session: DBSession,
    user_service: UserServiceDep,
    email_verification_service: EmailVerificationServiceDep,
) -> RegistrationService:
    return RegistrationService(account_repo, session, user_service, email_verification_service)


RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]


def get_auth_service(
    account_repo: AccountRepo, session_service: SessionServiceDep, session: DBSession
) -> AuthService:
    return AuthService(account_repo, session_service, session)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_password_service(
    account_repo: AccountRepo,
    session_service: SessionServiceDep,
    session: DBSession,
    email_sender: EmailSenderDep,
) -> PasswordService:
    return PasswordService(account_repo, session_service, session, email_sender)


PasswordServiceDep = Annotated[PasswordService, Depends(get_password_service)]


def get_oauth_service(
    account_repo: AccountRepo,
    session_service: SessionServiceDep,
    login_store: LoginStoreDep,
    session: DBSession,
) -> OAuthService:
    return OAuthService(account_repo, session_service, login_store, session)


OAuthServiceDep = Annotated[OAuthService, Depends(get_oauth_service)]
