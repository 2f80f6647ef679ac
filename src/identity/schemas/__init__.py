from src.identity.schemas.account import AccountRead
from src.identity.schemas.auth import (
    AuthResult,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenPair,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from src.identity.schemas.response import ApiResponse

__all__ = [
    # Account
    "AccountRead",
    # Auth
    "AuthResult",
    "ForgotPasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "TokenPair",
    "UpdateProfileRequest",
    "VerifyEmailRequest",
    # Envelope
    "ApiResponse",
]
