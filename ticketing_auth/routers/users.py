# ticketing_auth/routers/users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ticketing_auth.core.auth import require_admin, require_auth
from ticketing_auth.core.responses import success
from ticketing_auth.database import get_session
from ticketing_auth.models.account import Account
from ticketing_auth.repositories.account_repo import AccountRepository
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.repositories.token_repo import SessionTokenRepository
from ticketing_auth.schemas.auth import AccountProfile
from ticketing_auth.schemas.response import ApiResponse
from ticketing_auth.schemas.user import VerifyAdminRequest
from ticketing_auth.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = AccountRepository()
service = UserService(repo, RoleRepository(), SessionTokenRepository())


# -------- Self profile --------


@router.get("/me", response_model=ApiResponse[AccountProfile])
def read_me(
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Return the authenticated account with its primary role.

    Auth:
      - Requires a valid session token.
    """
    return success("Account retrieved", service.get_me(session, current_account))


@router.post("/verify-admin", response_model=ApiResponse[None])
def verify_admin(
    payload: VerifyAdminRequest,
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Re-check the admin's password before a sensitive action.

    - 403 if the password is wrong or the caller is not an Admin.
    """
    service.verify_admin(session, current_account, payload.password)
    return success("password verified")


# -------- Admin endpoints --------


@router.patch(
    "/{account_id}/suspend",
    response_model=ApiResponse[AccountProfile],
    dependencies=[Depends(require_admin)],
)
def suspend_account(
    account_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Suspend an account (admin only).

    The account's tokens are revoked and further logins are refused.
    """
    return success("User suspended", service.suspend(session, account_id))


@router.patch(
    "/{account_id}/activate",
    response_model=ApiResponse[AccountProfile],
    dependencies=[Depends(require_admin)],
)
def activate_account(
    account_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Reactivate a suspended account (admin only).
    """
    return success("User activated", service.activate(session, account_id))
