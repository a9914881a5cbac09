# ticketing_auth/models/account.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

ACCOUNT_ACTIVE = "active"
ACCOUNT_SUSPENDED = "suspended"

# Provider name used for e-mail/password accounts; never stored as a link
CREDENTIALS_PROVIDER = "credentials"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def split_name(name: str) -> tuple[str, str]:
    """
    Derive (first_name, last_name) from a display name.

    Splits on the first space only:
      "Jane Doe"        -> ("Jane", "Doe")
      "Mary Jane Smith" -> ("Mary", "Jane Smith")
      "Cher"            -> ("Cher", "")
    """
    parts = name.strip().split(" ", 1)
    first_name = parts[0]
    last_name = parts[1].strip() if len(parts) > 1 else ""
    return first_name, last_name


class Account(SQLModel, table=True):
    """
    A person able to authenticate.

    Credentials:
      - password_hash is NULL for social-only accounts.
      - remember_token is rotated on every password reset.

    Status:
      - "active" | "suspended"; suspended accounts cannot log in.

    Accounts are never hard-deleted by the identity flow.
    """

    __tablename__ = "accounts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        description="Full display name as entered or given by a provider",
    )
    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)

    email: str = Field(
        unique=True,
        index=True,
        max_length=255,
    )

    phone_no: str | None = Field(
        default=None,
        unique=True,
        index=True,
        description="10-digit mobile number; optional for social accounts",
    )

    password_hash: str | None = Field(
        default=None,
        description="bcrypt hash; absent for social-only accounts",
    )

    status: str = Field(
        default=ACCOUNT_ACTIVE,
        index=True,
        description="Account status: active | suspended",
    )

    # sms | email, chosen at registration
    verification_method: str | None = None

    email_verified_at: datetime | None = None
    mobile_verified_at: datetime | None = None

    profile_photo_path: str | None = Field(
        default=None,
        description="Avatar URL, refreshed from the provider on social login",
    )

    remember_token: str | None = Field(default=None, max_length=100)

    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_suspended(self) -> bool:
        return self.status == ACCOUNT_SUSPENDED

    @property
    def verified(self) -> bool:
        """Mobile number confirmed, or e-mail vouched for by a provider."""
        return self.mobile_verified_at is not None or self.email_verified_at is not None

    def set_name(self, name: str) -> None:
        """Set the display name and re-derive first/last name."""
        self.name = name
        self.first_name, self.last_name = split_name(name)


class LinkedProvider(SQLModel, table=True):
    """
    Third-party identity linked to an account.
    One account cannot have 2 rows for the same provider.
    """

    __tablename__ = "linked_providers"
    __table_args__ = (
        UniqueConstraint("account_id", "provider", name="uq_linked_provider_account"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    account_id: uuid.UUID = Field(
        foreign_key="accounts.id",
        index=True,
    )

    # google | apple | facebook
    provider: str = Field(max_length=50)

    provider_id: str = Field(
        description="User id inside the provider",
    )

    avatar: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
