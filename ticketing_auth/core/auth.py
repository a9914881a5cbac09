# ticketing_auth/core/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ticketing_auth.database import get_session
from ticketing_auth.models.account import Account
from ticketing_auth.models.role import RoleName
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.repositories.token_repo import SessionTokenRepository

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so logout can report "no active session" itself.
bearer_scheme = HTTPBearer(auto_error=False)

tokens = SessionTokenRepository()
roles = RoleRepository()


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Account | None:
    """
    Resolve the caller from an opaque session token.

    Flow:
      1. No Authorization header => None.
      2. Hash the token and look it up in session_tokens.
      3. Unknown or expired token => None.

    Returns:
        Account instance if the token is valid, else None.
    """
    if credentials is None:
        return None
    return tokens.get_account(session, credentials.credentials)


def require_auth(account: Account | None = Depends(get_current_account)) -> Account:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if the token is missing/invalid or the
        account is suspended.
    """
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    if account.is_suspended:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your account is suspended",
        )
    return account


def require_roles(*allowed: str):
    """
    Build a dependency that admits only accounts holding one of `allowed`.

        @router.get("/x", dependencies=[Depends(require_roles("Admin"))])
    """

    def dependency(
        account: Account = Depends(require_auth),
        session: Session = Depends(get_session),
    ) -> Account:
        held = set(roles.role_names_for(session, account.id))
        if not held.intersection(allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not authorized to perform this action",
            )
        return account

    return dependency


require_admin = require_roles(RoleName.ADMIN.value)
