from enum import StrEnum


class AuthProvider(StrEnum):
    """Federated identity providers."""

    GOOGLE = "google"
    GITHUB = "github"


class TokenField(StrEnum):
    """Hashed single-use token slots stored on an account."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
