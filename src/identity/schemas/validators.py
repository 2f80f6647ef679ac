"""Reusable field rules for request schemas."""

import re
from typing import Annotated

from pydantic import AfterValidator, EmailStr

FULL_NAME_PATTERN = re.compile(r"^[A-Za-z\s\-'.]+$")
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{6,15}$")
PASSWORD_SPECIAL_CHARS = "@$!%*?&#"
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])[A-Za-z\d@$!%*?&#]+$"
)


def normalize_email(v: str) -> str:
    return v.strip().lower()


def validate_full_name(v: str) -> str:
    v = v.strip()
    if not 2 <= len(v) <= 100:
        raise ValueError("Full name must be between 2 and 100 characters")
    if not FULL_NAME_PATTERN.match(v):
        raise ValueError(
            "Full name can only contain letters, spaces, hyphens, apostrophes, and periods"
        )
    return v


def validate_phone(v: str) -> str:
    if not PHONE_PATTERN.match(v):
        raise ValueError("Phone number must be in international format, e.g. +14155552671")
    return v


def validate_password(v: str) -> str:
    if not 6 <= len(v) <= 128:
        raise ValueError("Password must be between 6 and 128 characters")
    if not PASSWORD_PATTERN.match(v):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, "
            f"one number, and one special character ({PASSWORD_SPECIAL_CHARS})"
        )
    return v


def validate_redirect_url(v: str) -> str:
    if not re.match(r"^https?://[^\s/$.?#][^\s]*$", v, re.IGNORECASE):
        raise ValueError("Redirect URL must be a valid http(s) URL")
    return v


NormalizedEmail = Annotated[EmailStr, AfterValidator(normalize_email)]
FullName = Annotated[str, AfterValidator(validate_full_name)]
Phone = Annotated[str, AfterValidator(validate_phone)]
Password = Annotated[str, AfterValidator(validate_password)]
RedirectUrl = Annotated[str, AfterValidator(validate_redirect_url)]
