"""Model exports.

Import from here: `from src.identity.models import Account, AuthSession`
"""

from src.identity.models.account import Account, EmailVerificationInfo, PasswordCredential
from src.identity.models.enums import AuthProvider, TokenField
from src.identity.models.session import AuthSession

__all__ = [
    # Enums
    "AuthProvider",
    "TokenField",
    # Models
    "Account",
    "AuthSession",
    # Value objects
    "EmailVerificationInfo",
    "PasswordCredential",
]
