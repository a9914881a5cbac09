# ticketing_auth/services/auth_service.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ticketing_auth.core.config import Settings
from ticketing_auth.core.errors import (
    CREDENTIALS_MISMATCH,
    AccountSuspended,
    InsufficientRole,
    InvalidCredentials,
    NoActiveSession,
    SocialLoginRequired,
    ValidationFailed,
)
from ticketing_auth.core.security import hash_password, verify_password
from ticketing_auth.database import atomic
from ticketing_auth.models.account import Account
from ticketing_auth.models.role import MANAGER_ROLES, RoleName, primary_role
from ticketing_auth.repositories.account_repo import (
    AccountRepository,
    LinkedProviderRepository,
)
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.repositories.token_repo import SessionTokenRepository
from ticketing_auth.schemas.auth import (
    AccountRead,
    AuthenticatedAccount,
    LoginRequest,
    ManagerAuthData,
    RegisterRequest,
)
from ticketing_auth.services.account_service import AccountProvisioner
from ticketing_auth.services.notification_service import REGISTERED, Notifier

logger = logging.getLogger(__name__)


class AuthService:
    """
    Credential login, registration and logout.

    Responsibilities:
      - block credential login for social-origin accounts
      - refuse suspended accounts (and drop their tokens)
      - resolve the primary role and issue session tokens
      - validate uniqueness before creating anything
    """

    def __init__(
        self,
        accounts: AccountRepository,
        providers: LinkedProviderRepository,
        roles: RoleRepository,
        tokens: SessionTokenRepository,
        settings: Settings,
        notifier: Notifier,
    ):
        self.accounts = accounts
        self.providers = providers
        self.roles = roles
        self.tokens = tokens
        self.settings = settings
        self.notifier = notifier
        self.provisioner = AccountProvisioner(accounts, roles)

    # ---- shared helpers (also used by social login) ----

    def suspended_message(self) -> str:
        return (
            "Your account is suspended, please contact "
            f"{self.settings.SUPPORT_CONTACT}."
        )

    def refuse_suspended(
        self, session: Session, account: Account, field: str | None = None
    ) -> AccountSuspended:
        """
        Revoke every token of a suspended account and build the failure.

        The revocation is committed even though the login fails.
        """
        with atomic(session):
            revoked = self.tokens.revoke_all(session, account.id)
        logger.info(
            "Refused suspended account %s (%d tokens revoked)", account.id, revoked
        )
        message = self.suspended_message()
        errors = {field: [message]} if field else None
        return AccountSuspended(message, errors)

    def issue_token(self, session: Session, account: Account) -> str:
        return self.tokens.issue(
            session, account, ttl_minutes=self.settings.SESSION_TOKEN_TTL_MINUTES
        )

    # ---- consumer login ----

    def login(self, session: Session, payload: LoginRequest) -> AuthenticatedAccount:
        """
        E-mail/password login.

        Steps:
          1. Accounts with a linked provider must use social login.
          2. Unknown e-mail or wrong password -> InvalidCredentials.
          3. Suspended -> tokens revoked, AccountSuspended.
          4. Issue a token and return the account with its primary role.
        """
        account = self.accounts.get_by_email(session, payload.email)

        if account is not None and self.providers.has_any(session, account.id):
            raise SocialLoginRequired()

        if account is None or not verify_password(payload.password, account.password_hash):
            raise InvalidCredentials(errors={"email": [CREDENTIALS_MISMATCH]})

        if account.is_suspended:
            raise self.refuse_suspended(session, account, field="email")

        with atomic(session):
            token = self.issue_token(session, account)

        role = primary_role(self.roles.role_names_for(session, account.id))
        return AuthenticatedAccount(
            **AccountRead.fields_from(account),
            role=role,
            token=token,
            verified=account.verified,
        )

    # ---- manager login ----

    def manager_login(self, session: Session, payload: LoginRequest) -> ManagerAuthData:
        """
        E-mail/password login for the management console.

        Only Admin, Manager and Coordinator accounts get through. A wrong
        role reports the same message as wrong credentials.
        """
        account = self.accounts.get_by_email(session, payload.email)

        if account is None or not verify_password(payload.password, account.password_hash):
            raise InvalidCredentials()

        if account.is_suspended:
            raise self.refuse_suspended(session, account)

        role_names = self.roles.role_names_for(session, account.id)
        if not MANAGER_ROLES.intersection(role_names):
            logger.info("Manager login refused for account %s: roles %s", account.id, role_names)
            raise InsufficientRole()

        with atomic(session):
            token = self.issue_token(session, account)

        return ManagerAuthData(
            username=account.name,
            email=account.email,
            role=primary_role(role_names),
            token=token,
        )

    # ---- registration ----

    def register(
        self,
        session: Session,
        payload: RegisterRequest,
        *,
        allow_client_supplied_role: bool = False,
    ) -> AuthenticatedAccount:
        """
        Create a credential account.

        Rules:
          - email and phone_no must be unused (checked before any write)
          - role is forced to 'User' unless client-supplied roles are
            allowed; unknown roles fall back to 'User'
          - account, role and token are written in one transaction
          - "registered" is emitted after commit
        """
        errors: dict[str, list[str]] = {}
        if self.accounts.get_by_email(session, payload.email) is not None:
            errors["email"] = ["The email has already been taken."]
        if self.accounts.get_by_phone(session, payload.phone_no) is not None:
            errors["phone_no"] = ["The phone no has already been taken."]
        if errors:
            raise ValidationFailed(errors)

        requested_role = RoleName.USER.value
        if allow_client_supplied_role and payload.role:
            requested_role = payload.role
            logger.info("Role assignment enabled. Requested role: %s", requested_role)
        else:
            logger.info(
                "Role assignment: allow_client_supplied_role=%s, has_role=%s",
                allow_client_supplied_role,
                payload.role is not None,
            )

        try:
            with atomic(session):
                account, role = self.provisioner.create(
                    session,
                    name=payload.name,
                    email=payload.email,
                    role_name=requested_role,
                    password_hash=hash_password(payload.password),
                    phone_no=payload.phone_no,
                    verification_method=payload.verification_method,
                )
                token = self.issue_token(session, account)
        except IntegrityError:
            # Lost a race with a concurrent registration
            raise ValidationFailed(
                {"email": ["The email or phone number has already been taken."]}
            )

        self.notifier.emit(REGISTERED, account)

        return AuthenticatedAccount(
            **AccountRead.fields_from(account),
            role=role,
            token=token,
            verified=account.verified,
        )

    # ---- logout ----

    def logout(self, session: Session, account: Account | None) -> int:
        """
        Revoke every session token of the caller.

        Returns:
            Number of revoked tokens.

        Raises:
            NoActiveSession: caller could not be resolved.
        """
        if account is None:
            raise NoActiveSession()

        with atomic(session):
            revoked = self.tokens.revoke_all(session, account.id)
        logger.info("Logged out account %s (%d tokens revoked)", account.id, revoked)
        return revoked
