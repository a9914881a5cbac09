# ticketing_auth/routers/manager_auth.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from ticketing_auth.core.auth import get_current_account
from ticketing_auth.core.identity_providers import (
    IdentityProviderGateway,
    get_identity_gateway,
)
from ticketing_auth.core.responses import success
from ticketing_auth.database import get_session
from ticketing_auth.models.account import Account
from ticketing_auth.routers.auth import get_auth_service, get_social_auth_service
from ticketing_auth.schemas.auth import (
    LoginRequest,
    ManagerAuthData,
    SocialLoginRequest,
)
from ticketing_auth.schemas.response import ApiResponse
from ticketing_auth.services.auth_service import AuthService
from ticketing_auth.services.social_auth_service import SocialAuthService

router = APIRouter(prefix="/manager", tags=["Manager Auth"])


@router.post("/login", response_model=ApiResponse[ManagerAuthData])
def manager_login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    Management console login.

    Only Admin, Manager and Coordinator accounts are admitted; other
    roles get the same message as wrong credentials (403).
    """
    return success("authenticated successfully", service.manager_login(session, payload))


@router.post("/social-login", response_model=ApiResponse[ManagerAuthData])
def manager_social_login(
    payload: SocialLoginRequest,
    session: Session = Depends(get_session),
    gateway: IdentityProviderGateway = Depends(get_identity_gateway),
    service: SocialAuthService = Depends(get_social_auth_service),
):
    """
    Management console login with google or apple.

    Never creates accounts.
    """
    return success(
        "Authenticated successfully",
        service.manager_social_login(session, payload, gateway),
    )


@router.post("/logout", response_model=ApiResponse[None])
def manager_logout(
    session: Session = Depends(get_session),
    account: Account | None = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke every token of the caller."""
    service.logout(session, account)
    return success("logged out successfully")
