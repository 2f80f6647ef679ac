from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.identity.schemas.account import AccountRead
from src.identity.schemas.validators import (
    FullName,
    NormalizedEmail,
    Password,
    Phone,
    RedirectUrl,
)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int  # access token lifetime in seconds
    token_type: str = "bearer"


class AuthResult(BaseModel):
    """Account plus the token pair minted for it (login, verification, OAuth)."""

    user: AccountRead
    tokens: TokenPair | None = None


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: FullName = Field(alias="fullName")
    email: NormalizedEmail
    phone: Phone | None = None
    password: Password
    redirect_url: RedirectUrl = Field(alias="redirectUrl")


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: str = Field(min_length=1, max_length=128)


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1, max_length=200)


class ResendVerificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: NormalizedEmail
    redirect_url: RedirectUrl = Field(alias="redirectUrl")


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: NormalizedEmail
    redirect_url: RedirectUrl = Field(alias="redirectUrl")


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1, max_length=200)
    password: Password


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: FullName | None = Field(default=None, alias="fullName")
    email: NormalizedEmail | None = None
    phone: Phone | None = None
    password: Password | None = None
    redirect_url: RedirectUrl | None = Field(default=None, alias="redirectUrl")

    @model_validator(mode="after")
    def require_redirect_for_email(self) -> Self:
        if self.email is not None and self.redirect_url is None:
            raise ValueError("redirectUrl is required when updating email")
        return self
