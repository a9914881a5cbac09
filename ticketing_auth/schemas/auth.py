# ticketing_auth/schemas/auth.py
import re
import uuid
from datetime import datetime

from pydantic import ConfigDict, EmailStr, ValidationInfo, field_validator
from sqlmodel import SQLModel, Field

from ticketing_auth.core.security import BCRYPT_MAX_BYTES
from ticketing_auth.models.account import Account

PHONE_PATTERN = re.compile(r"^\d{10}$")


def _check_password_bytes(v: str) -> str:
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password must not exceed {BCRYPT_MAX_BYTES} bytes")
    return v


def _normalize_email(v: str) -> str:
    # Addresses are stored and compared in lowercase
    return v.strip().lower()


def _check_confirmation(v: str, info: ValidationInfo) -> str:
    # password is missing from info.data when it failed its own checks
    password = info.data.get("password")
    if password is not None and v != password:
        raise ValueError("The password field confirmation does not match.")
    return v


# -------- Requests --------


class LoginRequest(SQLModel):
    """E-mail/password login, used by both consumer and manager endpoints."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class RegisterRequest(SQLModel):
    """
    Credential registration payload.

    Validation rules:
      - name: required, <= 255 chars
      - email: valid address (uniqueness checked by the service)
      - password: >= 8 chars, must equal password_confirmation
      - phone_no: exactly 10 digits (uniqueness checked by the service)
      - role: only honoured when client-supplied roles are enabled
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str
    phone_no: str
    verification_method: str
    role: str | None = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("name", "verification_method")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return _check_password_bytes(v)

    @field_validator("password_confirmation")
    @classmethod
    def password_confirmed(cls, v: str, info: ValidationInfo) -> str:
        return _check_confirmation(v, info)

    @field_validator("phone_no", mode="before")
    @classmethod
    def normalize_phone(cls, v):
        # Clients send the number either as a string or as a JSON number
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError("phone_no must be numeric")
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError("phone_no must be exactly 10 digits")
        return v

    @field_validator("role")
    @classmethod
    def normalize_role(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class SocialLoginRequest(SQLModel):
    """
    Provider token exchange.

    `provider` is kept as free text so that unknown providers are reported
    as UnsupportedProvider rather than as a validation error.
    """

    model_config = ConfigDict(extra="forbid")

    provider: str = Field(min_length=1)
    token: str = Field(min_length=1)

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()


class ForgotPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class ResetPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return _check_password_bytes(v)

    @field_validator("password_confirmation")
    @classmethod
    def password_confirmed(cls, v: str, info: ValidationInfo) -> str:
        return _check_confirmation(v, info)


# -------- Responses --------


class AccountRead(SQLModel):
    """Account fields safe to return to clients."""

    id: uuid.UUID
    name: str
    first_name: str
    last_name: str
    email: str
    phone_no: str | None = None
    status: str
    verification_method: str | None = None
    profile_photo_url: str | None = None
    created_at: datetime

    @classmethod
    def fields_from(cls, account: Account) -> dict:
        return {
            "id": account.id,
            "name": account.name,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "email": account.email,
            "phone_no": account.phone_no,
            "status": account.status,
            "verification_method": account.verification_method,
            "profile_photo_url": account.profile_photo_path,
            "created_at": account.created_at,
        }


class AccountProfile(AccountRead):
    """Account plus resolved primary role."""

    role: str
    verified: bool


class AuthenticatedAccount(AccountProfile):
    """Returned by credential login and registration."""

    token: str


class SocialAuthData(SQLModel):
    """Returned by consumer social login."""

    first_name: str
    last_name: str
    email: str
    phone_no: str | None = None
    role: str
    token: str
    profile_photo_url: str | None = None
    verified: bool


class ManagerAuthData(SQLModel):
    """Returned by the manager login endpoints."""

    username: str
    email: str
    role: str
    token: str
