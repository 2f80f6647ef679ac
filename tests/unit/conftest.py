"""Service fixtures wired to in-memory repositories."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.identity.core.login_exchange import LoginExchangeStore
from src.identity.models import Account
from src.identity.services import (
    AuthService,
    EmailVerificationService,
    OAuthService,
    PasswordService,
    RegistrationService,
    SessionService,
    UserService,
)
from tests.fakes import (
    FakeAccountRepository,
    FakeAuthSessionRepository,
    FakeDatabase,
    RecordingEmailSender,
)


@pytest.fixture
def account_repo(fake_db: FakeDatabase) -> FakeAccountRepository:
    return FakeAccountRepository(fake_db)


@pytest.fixture
def session_repo(fake_db: FakeDatabase) -> FakeAuthSessionRepository:
    return FakeAuthSessionRepository(fake_db)


@pytest.fixture
def store_account(account_repo: FakeAccountRepository):
    def _store(account: Account) -> Account:
        account_repo.add(account)
        return account

    return _store


@pytest.fixture
def session_service(session_repo, mock_session: AsyncMock) -> SessionService:
    return SessionService(session_repo, mock_session)


@pytest.fixture
def auth_service(account_repo, session_service, mock_session) -> AuthService:
    return AuthService(account_repo, session_service, mock_session)


@pytest.fixture
def email_verification_service(
    account_repo, mock_session, email_sender: RecordingEmailSender
) -> EmailVerificationService:
    return EmailVerificationService(account_repo, mock_session, email_sender)


@pytest.fixture
def user_service(account_repo, mock_session, email_verification_service) -> UserService:
    return UserService(account_repo, mock_session, email_verification_service)


@pytest.fixture
def registration_service(
    account_repo, mock_session, user_service, email_verification_service
) -> RegistrationService:
    return RegistrationService(account_repo, mock_session, user_service, email_verification_service)


@pytest.fixture
def password_service(account_repo, session_service, mock_session, email_sender) -> PasswordService:
    return PasswordService(account_repo, session_service, mock_session, email_sender)


@pytest.fixture
def login_store() -> LoginExchangeStore:
    return LoginExchangeStore(ttl=timedelta(minutes=5))


@pytest.fixture
def oauth_service(account_repo, session_service, login_store, mock_session) -> OAuthService:
    return OAuthService(account_repo, session_service, login_store, mock_session)
