# ticketing_auth/services/notification_service.py
import html
import logging
from collections import defaultdict
from typing import Callable
from urllib.parse import quote

from ticketing_auth.core.config import Settings, get_settings
from ticketing_auth.core.email_client import send_email
from ticketing_auth.models.account import Account

logger = logging.getLogger(__name__)

REGISTERED = "registered"
PASSWORD_RESET = "password_reset"

Listener = Callable[[Account], None]
Mailer = Callable[..., None]


class Notifier:
    """
    Fire-and-forget notification sink.

    Responsibilities:
      - dispatch "registered" / "password_reset" events to listeners
      - deliver password reset links by e-mail

    A failing listener is logged and never fails the request that
    emitted the event.
    """

    def __init__(self, settings: Settings, mailer: Mailer = send_email):
        self.settings = settings
        self.mailer = mailer
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def emit(self, event: str, account: Account) -> None:
        logger.info("Event %s for account %s", event, account.id)
        for listener in self._listeners[event]:
            try:
                listener(account)
            except Exception:
                logger.exception(
                    "Listener %r failed for event %s", listener, event
                )

    def send_reset_link(self, account: Account, token: str) -> bool:
        """
        E-mail a password reset link.

        Returns:
            True if the e-mail was handed to SMTP, False otherwise.
        """
        url = self.settings.PASSWORD_RESET_URL.format(
            token=quote(token), email=quote(account.email)
        )
        minutes = self.settings.PASSWORD_RESET_EXPIRE_MINUTES
        try:
            self.mailer(
                to_email=account.email,
                subject="Reset your password",
                text_body=(
                    f"Hello {account.first_name or account.name},\n\n"
                    "You are receiving this email because we received a password "
                    "reset request for your account.\n\n"
                    f"Reset your password: {url}\n\n"
                    f"This link will expire in {minutes} minutes.\n"
                    "If you did not request a password reset, no further action "
                    "is required."
                ),
                html_body=(
                    f"<p>Hello {html.escape(account.first_name or account.name)},</p>"
                    "<p>We received a password reset request for your account.</p>"
                    f'<p><a href="{html.escape(url, quote=True)}">Reset password</a></p>'
                    f"<p>This link will expire in {minutes} minutes.</p>"
                ),
            )
        except Exception:
            logger.exception("Reset link delivery failed for account %s", account.id)
            return False
        return True


def _send_password_changed(notifier: Notifier) -> Listener:
    def listener(account: Account) -> None:
        notifier.mailer(
            to_email=account.email,
            subject="Your password was reset",
            text_body=(
                f"Hello {account.first_name or account.name},\n\n"
                "The password for your account was just changed. If this was "
                f"not you, please contact {notifier.settings.SUPPORT_CONTACT}."
            ),
        )

    return listener


def _log_registration(account: Account) -> None:
    # Verification codes are delivered by the messaging service, which
    # consumes this event.
    logger.info(
        "Registration completed for %s (verification via %s)",
        account.id,
        account.verification_method,
    )


def build_notifier(settings: Settings | None = None) -> Notifier:
    """Notifier with the default listeners wired in."""
    notifier = Notifier(settings or get_settings())
    notifier.subscribe(REGISTERED, _log_registration)
    notifier.subscribe(PASSWORD_RESET, _send_password_changed(notifier))
    return notifier


def get_notifier() -> Notifier:
    """FastAPI dependency; override in tests."""
    return build_notifier()
