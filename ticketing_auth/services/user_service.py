# ticketing_auth/services/user_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from ticketing_auth.core.security import verify_password
from ticketing_auth.database import atomic
from ticketing_auth.models.account import ACCOUNT_ACTIVE, ACCOUNT_SUSPENDED, Account
from ticketing_auth.models.role import RoleName, primary_role
from ticketing_auth.repositories.account_repo import AccountRepository
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.repositories.token_repo import SessionTokenRepository
from ticketing_auth.schemas.auth import AccountProfile, AccountRead

logger = logging.getLogger(__name__)


class UserService:
    """
    Account reads and administration.

    Responsibilities:
      - expose the caller's own profile with its primary role
      - let admins suspend/reactivate accounts
      - re-verify an admin's password before sensitive actions
      - map domain errors to HTTP errors
    """

    def __init__(
        self,
        accounts: AccountRepository,
        roles: RoleRepository,
        tokens: SessionTokenRepository,
    ):
        self.accounts = accounts
        self.roles = roles
        self.tokens = tokens

    def _profile(self, session: Session, account: Account) -> AccountProfile:
        return AccountProfile(
            **AccountRead.fields_from(account),
            role=primary_role(self.roles.role_names_for(session, account.id)),
            verified=account.verified,
        )

    # ----- Self profile -----

    def get_me(self, session: Session, current: Account) -> AccountProfile:
        """Return the current authenticated account."""
        return self._profile(session, current)

    def verify_admin(self, session: Session, current: Account, password: str) -> None:
        """
        Confirm that the caller is an Admin who knows their password.

        Raises:
            HTTPException(403): wrong password or not an Admin.
        """
        is_admin = RoleName.ADMIN.value in self.roles.role_names_for(session, current.id)
        if not (verify_password(password, current.password_hash) and is_admin):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not authorized to perform this action",
            )

    # ----- Admin operations -----

    def get_account(self, session: Session, account_id: uuid.UUID) -> Account:
        """
        Get an account by id.

        Raises:
            HTTPException(404): if not found.
        """
        account = self.accounts.get_by_id(session, account_id)
        if not account:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return account

    def suspend(self, session: Session, account_id: uuid.UUID) -> AccountProfile:
        """Suspend an account and revoke all of its tokens."""
        account = self.get_account(session, account_id)
        with atomic(session):
            account.status = ACCOUNT_SUSPENDED
            self.accounts.update(session, account)
            revoked = self.tokens.revoke_all(session, account.id)
        logger.info("Suspended account %s (%d tokens revoked)", account.id, revoked)
        return self._profile(session, account)

    def activate(self, session: Session, account_id: uuid.UUID) -> AccountProfile:
        """Reactivate a suspended account."""
        account = self.get_account(session, account_id)
        with atomic(session):
            account.status = ACCOUNT_ACTIVE
            self.accounts.update(session, account)
        logger.info("Activated account %s", account.id)
        return self._profile(session, account)
