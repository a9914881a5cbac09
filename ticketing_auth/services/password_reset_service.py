# ticketing_auth/services/password_reset_service.py
import logging
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from ticketing_auth.core.config import Settings
from ticketing_auth.core.errors import PasswordResetFailed
from ticketing_auth.core.security import (
    generate_remember_token,
    generate_token,
    hash_password,
    token_matches,
)
from ticketing_auth.database import atomic
from ticketing_auth.repositories.account_repo import AccountRepository
from ticketing_auth.repositories.token_repo import PasswordResetRepository, as_utc
from ticketing_auth.schemas.auth import ForgotPasswordRequest, ResetPasswordRequest
from ticketing_auth.services.notification_service import PASSWORD_RESET, Notifier

logger = logging.getLogger(__name__)


class PasswordResetService:
    """
    Two-phase password reset.

    Neither phase tells the client whether the e-mail exists: unknown
    addresses get the same answer as known ones.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        resets: PasswordResetRepository,
        settings: Settings,
        notifier: Notifier,
    ):
        self.accounts = accounts
        self.resets = resets
        self.settings = settings
        self.notifier = notifier

    def request_reset(self, session: Session, payload: ForgotPasswordRequest) -> None:
        """
        Send a reset link if the e-mail belongs to an account.

        A repeat request inside the throttle window is dropped silently.
        When delivery fails the pending token is removed so the caller can
        retry at once; the response stays the same.
        """
        account = self.accounts.get_by_email(session, payload.email)
        if account is None:
            logger.info("Password reset requested for an unknown e-mail")
            return

        pending = self.resets.get(session, account.email)
        if pending is not None:
            throttle = timedelta(seconds=self.settings.PASSWORD_RESET_THROTTLE_SECONDS)
            if as_utc(pending.created_at) + throttle > datetime.now(timezone.utc):
                logger.info("Password reset throttled for account %s", account.id)
                return

        token = generate_token(32)
        with atomic(session):
            self.resets.put(session, account.email, token)

        if not self.notifier.send_reset_link(account, token):
            with atomic(session):
                self.resets.delete(session, account.email)
            logger.warning("Password reset link could not be sent for account %s", account.id)
            return
        logger.info("Password reset link sent for account %s", account.id)

    def reset_password(self, session: Session, payload: ResetPasswordRequest) -> None:
        """
        Replace the password using a reset token.

        On success the remember token is rotated, the reset token is
        consumed and "password_reset" is emitted.

        Raises:
            PasswordResetFailed: unknown e-mail, wrong or expired token.
        """
        account = self.accounts.get_by_email(session, payload.email)
        if account is None:
            raise PasswordResetFailed()

        pending = self.resets.get(session, account.email)
        if pending is None:
            raise PasswordResetFailed()

        if not token_matches(payload.token, pending.token_hash):
            logger.info("Password reset with a wrong token for account %s", account.id)
            raise PasswordResetFailed()

        expiry = timedelta(minutes=self.settings.PASSWORD_RESET_EXPIRE_MINUTES)
        if as_utc(pending.created_at) + expiry <= datetime.now(timezone.utc):
            with atomic(session):
                self.resets.delete(session, account.email)
            logger.info("Expired password reset token for account %s", account.id)
            raise PasswordResetFailed()

        with atomic(session):
            account.password_hash = hash_password(payload.password)
            account.remember_token = generate_remember_token()
            self.accounts.update(session, account)
            self.resets.delete(session, account.email)

        self.notifier.emit(PASSWORD_RESET, account)
