from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.identity.models import Account


class AccountRead(BaseModel):
    """Public view of an account. Hashes and tokens are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    email: str
    email_verified: bool
    phone: str | None = None
    phone_verified: bool = False
    avatar_url: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountRead":
        return cls.model_validate(account)

