# ticketing_auth/models/token.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class SessionToken(SQLModel, table=True):
    """
    Opaque bearer token issued on login/registration.

    Only the SHA-256 digest is stored; the plain token is returned to the
    client once. All rows of an account are deleted on logout.
    """

    __tablename__ = "session_tokens"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    account_id: uuid.UUID = Field(
        foreign_key="accounts.id",
        index=True,
    )

    # The account e-mail at issue time
    name: str = Field(max_length=255)

    token_hash: str = Field(
        unique=True,
        index=True,
        max_length=64,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    expires_at: datetime | None = Field(
        default=None,
        description="NULL means the token lives until logout",
    )


class PasswordResetToken(SQLModel, table=True):
    """
    Pending password reset, one per e-mail.
    """

    __tablename__ = "password_reset_tokens"

    email: str = Field(primary_key=True, max_length=255)

    token_hash: str = Field(max_length=64)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
