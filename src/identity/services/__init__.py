from src.identity.services.auth_service import AuthService, LoginResult
from src.identity.services.email_verification_service import EmailVerificationService
from src.identity.services.oauth_service import OAuthIdentity, OAuthService
from src.identity.services.password_service import PasswordService
from src.identity.services.registration_service import RegistrationService
from src.identity.services.session_service import SessionService
from src.identity.services.user_service import UserService

__all__ = [
    "AuthService",
    "EmailVerificationService",
    "LoginResult",
    "OAuthIdentity",
    "OAuthService",
    "PasswordService",
    "RegistrationService",
    "SessionService",
    "UserService",
]
