# ticketing_auth/core/errors.py
"""
Failure taxonomy for the identity flow.

Every failure a service can report is one subclass of IdentityError.
Each subclass fixes its kind, HTTP status and default message, and the
exception handlers in `core.responses` turn it into the standard
response envelope.
"""
from enum import Enum
from typing import Any

# Shared by wrong-credential and wrong-role failures so that a manager
# login never reveals which of the two happened.
CREDENTIALS_MISMATCH = "These credentials do not match our records."


class FailureKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    INVALID_CREDENTIALS = "invalid_credentials"
    SOCIAL_LOGIN_REQUIRED = "social_login_required"
    ACCOUNT_SUSPENDED = "account_suspended"
    INSUFFICIENT_ROLE = "insufficient_role"
    USER_NOT_FOUND = "user_not_found"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    PROVIDER_ERROR = "provider_error"
    NO_ACTIVE_SESSION = "no_active_session"
    PASSWORD_RESET_FAILED = "password_reset_failed"


class IdentityError(Exception):
    """
    Base class for all expected identity failures.

    Attributes:
        kind: FailureKind tag
        status_code: HTTP status used in the envelope
        message: client-facing message
        errors: per-field messages (dict) or a list, possibly empty
    """

    kind: FailureKind
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(
        self,
        message: str | None = None,
        errors: dict[str, list[str]] | list[Any] | None = None,
    ):
        self.message = message or self.default_message
        self.errors = errors if errors is not None else []
        super().__init__(self.message)


class ValidationFailed(IdentityError):
    kind = FailureKind.VALIDATION_FAILED
    status_code = 422
    default_message = "validation failed"

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        super().__init__(message, errors)


class InvalidCredentials(IdentityError):
    kind = FailureKind.INVALID_CREDENTIALS
    status_code = 401
    default_message = CREDENTIALS_MISMATCH


class SocialLoginRequired(IdentityError):
    kind = FailureKind.SOCIAL_LOGIN_REQUIRED
    status_code = 401
    default_message = (
        "This account is associated with a social login. "
        "Please use the social login method."
    )


class AccountSuspended(IdentityError):
    kind = FailureKind.ACCOUNT_SUSPENDED
    status_code = 401
    default_message = "Your account is suspended."


class InsufficientRole(IdentityError):
    kind = FailureKind.INSUFFICIENT_ROLE
    status_code = 403
    default_message = CREDENTIALS_MISMATCH


class UserNotFound(IdentityError):
    kind = FailureKind.USER_NOT_FOUND
    status_code = 400
    default_message = "User not found"


class UnsupportedProvider(IdentityError):
    kind = FailureKind.UNSUPPORTED_PROVIDER
    status_code = 400
    default_message = "Unsupported provider"


class ProviderError(IdentityError):
    kind = FailureKind.PROVIDER_ERROR
    status_code = 401
    default_message = "Unable to authenticate with the selected provider."


class NoActiveSession(IdentityError):
    kind = FailureKind.NO_ACTIVE_SESSION
    status_code = 401
    default_message = "user not found"


class PasswordResetFailed(IdentityError):
    kind = FailureKind.PASSWORD_RESET_FAILED
    status_code = 400
    default_message = "password reset failed"
