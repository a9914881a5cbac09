# ticketing_auth/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ticketing_auth.core.auth import get_current_account
from ticketing_auth.core.config import Settings, get_settings
from ticketing_auth.core.identity_providers import (
    IdentityProviderGateway,
    get_identity_gateway,
)
from ticketing_auth.core.responses import success
from ticketing_auth.database import get_session
from ticketing_auth.models.account import Account
from ticketing_auth.repositories.account_repo import (
    AccountRepository,
    LinkedProviderRepository,
)
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.repositories.token_repo import (
    PasswordResetRepository,
    SessionTokenRepository,
)
from ticketing_auth.schemas.auth import (
    AuthenticatedAccount,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SocialAuthData,
    SocialLoginRequest,
)
from ticketing_auth.schemas.response import ApiResponse
from ticketing_auth.services.auth_service import AuthService
from ticketing_auth.services.notification_service import Notifier, get_notifier
from ticketing_auth.services.password_reset_service import PasswordResetService
from ticketing_auth.services.social_auth_service import SocialAuthService

router = APIRouter(tags=["Auth"])

accounts = AccountRepository()
providers = LinkedProviderRepository()
roles = RoleRepository()
tokens = SessionTokenRepository()
resets = PasswordResetRepository()


def get_auth_service(
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(accounts, providers, roles, tokens, settings, notifier)


def get_social_auth_service(
    auth: AuthService = Depends(get_auth_service),
) -> SocialAuthService:
    return SocialAuthService(auth)


def get_password_reset_service(
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
) -> PasswordResetService:
    return PasswordResetService(accounts, resets, settings, notifier)


# -------- Credentials --------


@router.post("/login", response_model=ApiResponse[AuthenticatedAccount])
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    E-mail/password login.

    - 401 if the account must use social login, the credentials do not
      match, or the account is suspended.
    - On success returns the account, its primary role and a new token.
    """
    return success("Login successful", service.login(session, payload))


@router.post(
    "/auth/register",
    response_model=ApiResponse[AuthenticatedAccount],
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a credential account.

    - 422 with per-field errors if validation or uniqueness fails.
    - `role` is ignored unless ALLOW_ROLE_ON_REGISTER is enabled.
    """
    account = service.register(
        session,
        payload,
        allow_client_supplied_role=settings.ALLOW_ROLE_ON_REGISTER,
    )
    return success(
        "Registration successful! A verification code has been sent to your mobile number.",
        account,
        code=status.HTTP_201_CREATED,
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    session: Session = Depends(get_session),
    account: Account | None = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """
    Revoke every token of the caller.

    Auth:
      - Bearer token; 401 if it cannot be resolved.
    """
    service.logout(session, account)
    return success("logged out successfully")


# -------- Social --------


@router.post("/auth/social-login", response_model=ApiResponse[SocialAuthData])
def social_login(
    payload: SocialLoginRequest,
    session: Session = Depends(get_session),
    gateway: IdentityProviderGateway = Depends(get_identity_gateway),
    service: SocialAuthService = Depends(get_social_auth_service),
):
    """
    Login or sign up with google, apple or facebook.

    Unknown e-mails become new 'User' accounts; known ones get their
    name and avatar refreshed.
    """
    return success(
        "Authenticated successfully",
        service.social_login(session, payload, gateway),
    )


# -------- Password reset --------


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(
    payload: ForgotPasswordRequest,
    session: Session = Depends(get_session),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Request a password reset link.

    The answer is the same whether or not the e-mail is registered.
    """
    service.request_reset(session, payload)
    return success("If the email is registered, a reset link has been sent.")


@router.post("/reset-password", response_model=ApiResponse[None])
def reset_password(
    payload: ResetPasswordRequest,
    session: Session = Depends(get_session),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Set a new password with a reset token.

    - 400 "password reset failed" for any bad e-mail/token combination.
    """
    service.reset_password(session, payload)
    return success("password reset successful")
