# ticketing_auth/services/account_service.py
import logging
from datetime import datetime

from sqlmodel import Session

from ticketing_auth.models.account import Account
from ticketing_auth.models.role import RoleName
from ticketing_auth.repositories.account_repo import AccountRepository
from ticketing_auth.repositories.role_repo import RoleRepository

logger = logging.getLogger(__name__)


class RoleCatalogError(RuntimeError):
    """The role catalog has no 'User' row; nothing can be assigned."""


def default_name_from_email(email: str) -> str:
    """
    Derive a default display name from email when no name is known.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


class AccountProvisioner:
    """
    Creates accounts and assigns their role.

    Shared by credential registration and consumer social login. Runs
    inside the caller's transaction: nothing here commits.
    """

    def __init__(self, accounts: AccountRepository, roles: RoleRepository):
        self.accounts = accounts
        self.roles = roles

    def create(
        self,
        session: Session,
        *,
        name: str,
        email: str,
        role_name: str = RoleName.USER.value,
        password_hash: str | None = None,
        phone_no: str | None = None,
        verification_method: str | None = None,
        profile_photo_path: str | None = None,
        email_verified_at: datetime | None = None,
    ) -> tuple[Account, str]:
        """
        Insert the account and assign its role.

        Returns:
            (account, name of the role actually assigned)
        """
        account = Account(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            phone_no=phone_no,
            verification_method=verification_method,
            profile_photo_path=profile_photo_path,
            email_verified_at=email_verified_at,
        )
        account.set_name(name or default_name_from_email(email))
        account = self.accounts.create(session, account)

        assigned = self.assign_role(session, account, role_name)
        return account, assigned

    def assign_role(self, session: Session, account: Account, role_name: str) -> str:
        """
        Give the account exactly one role.

        A name missing from the catalog falls back to 'User'. Only a
        missing 'User' row is an error.
        """
        role = self.roles.get_by_name(session, role_name)
        logger.info("Looking for role %s, found: %s", role_name, role is not None)

        if role is None:
            role = self.roles.get_by_name(session, RoleName.USER.value)
            logger.info(
                "Falling back to %s role, found: %s",
                RoleName.USER.value,
                role is not None,
            )

        if role is None:
            raise RoleCatalogError(f"Role catalog has no '{RoleName.USER.value}' role")

        self.roles.sync_roles(session, account.id, [role.id])
        return role.name
