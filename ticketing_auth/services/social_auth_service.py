# ticketing_auth/services/social_auth_service.py
import logging

from sqlmodel import Session

from ticketing_auth.core.errors import (
    InsufficientRole,
    UnsupportedProvider,
    UserNotFound,
)
from ticketing_auth.core.identity_providers import (
    APPLE,
    FACEBOOK,
    GOOGLE,
    ExternalIdentity,
    IdentityProviderGateway,
)
from ticketing_auth.database import atomic
from ticketing_auth.models.account import Account, utc_now
from ticketing_auth.models.role import MANAGER_ROLES, RoleName, primary_role
from ticketing_auth.schemas.auth import (
    ManagerAuthData,
    SocialAuthData,
    SocialLoginRequest,
)
from ticketing_auth.services.auth_service import AuthService

logger = logging.getLogger(__name__)

CONSUMER_PROVIDERS = frozenset({GOOGLE, APPLE, FACEBOOK})
MANAGER_PROVIDERS = frozenset({GOOGLE, APPLE})


class SocialAuthService:
    """
    Login through Google, Apple or Facebook.

    Consumer flow provisions unseen e-mails as 'User' accounts; the
    manager flow never creates accounts and enforces status and role.
    Both refresh the stored profile, upsert the provider link and issue
    a token in one transaction.
    """

    def __init__(self, auth: AuthService):
        self.auth = auth
        self.accounts = auth.accounts
        self.providers = auth.providers
        self.roles = auth.roles

    def _refresh_profile(
        self, session: Session, account: Account, identity: ExternalIdentity
    ) -> None:
        """Copy the provider's current name and avatar onto the account."""
        if identity.name:
            account.set_name(identity.name)
        if identity.avatar:
            account.profile_photo_path = identity.avatar
        self.accounts.update(session, account)

    def _link(self, session: Session, account: Account, identity: ExternalIdentity) -> None:
        self.providers.upsert(
            session,
            account_id=account.id,
            provider=identity.provider,
            provider_id=identity.external_id,
            avatar=identity.avatar,
        )

    def social_login(
        self,
        session: Session,
        payload: SocialLoginRequest,
        gateway: IdentityProviderGateway,
    ) -> SocialAuthData:
        """
        Consumer social login.

        Steps:
          1. Reject providers other than google/apple/facebook.
          2. Resolve the external identity (ProviderError on failure).
          3. In one transaction:
             - unknown e-mail: create a verified, password-less 'User'
             - known e-mail: refresh name/avatar
             - upsert the provider link, issue a token
        """
        if payload.provider not in CONSUMER_PROVIDERS:
            raise UnsupportedProvider()

        identity = gateway.resolve_identity(payload.provider, payload.token)

        with atomic(session):
            account = self.accounts.get_by_email(session, identity.email)
            if account is None:
                account, _ = self.auth.provisioner.create(
                    session,
                    name=identity.name,
                    email=identity.email,
                    role_name=RoleName.USER.value,
                    profile_photo_path=identity.avatar,
                    email_verified_at=utc_now(),
                )
                logger.info(
                    "Provisioned account %s from %s login", account.id, identity.provider
                )
            else:
                self._refresh_profile(session, account, identity)

            self._link(session, account, identity)
            token = self.auth.issue_token(session, account)

            data = SocialAuthData(
                first_name=account.first_name,
                last_name=account.last_name,
                email=account.email,
                phone_no=account.phone_no,
                role=primary_role(self.roles.role_names_for(session, account.id)),
                token=token,
                profile_photo_url=account.profile_photo_path,
                verified=account.verified,
            )

        return data

    def manager_social_login(
        self,
        session: Session,
        payload: SocialLoginRequest,
        gateway: IdentityProviderGateway,
    ) -> ManagerAuthData:
        """
        Management console social login (google/apple only).

        Failures:
          - UserNotFound: no account for the e-mail
          - AccountSuspended: status is suspended (tokens revoked)
          - InsufficientRole: no Admin/Manager/Coordinator role, reported
            with the wrong-credentials message
        """
        if payload.provider not in MANAGER_PROVIDERS:
            raise UnsupportedProvider()

        identity = gateway.resolve_identity(payload.provider, payload.token)

        account = self.accounts.get_by_email(session, identity.email)
        if account is None:
            raise UserNotFound()

        if account.is_suspended:
            raise self.auth.refuse_suspended(session, account)

        role_names = self.roles.role_names_for(session, account.id)
        if not MANAGER_ROLES.intersection(role_names):
            logger.info(
                "Manager social login refused for account %s: roles %s",
                account.id,
                role_names,
            )
            raise InsufficientRole()

        with atomic(session):
            self._refresh_profile(session, account, identity)
            self._link(session, account, identity)
            token = self.auth.issue_token(session, account)

            data = ManagerAuthData(
                username=account.name,
                email=account.email,
                role=primary_role(role_names, default=RoleName.COORDINATOR.value),
                token=token,
            )

        return data
