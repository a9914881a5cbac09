# ticketing_auth/repositories/token_repo.py
import uuid
from datetime import datetime, timedelta, timezone

from sqlmodel import Session, select

from ticketing_auth.core.security import generate_token, hash_token
from ticketing_auth.models.account import Account
from ticketing_auth.models.token import PasswordResetToken, SessionToken


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionTokenRepository:
    """
    Bearer session tokens.

    The plain token only exists in the return value of `issue`.
    """

    def issue(
        self,
        session: Session,
        account: Account,
        ttl_minutes: int | None = None,
    ) -> str:
        """
        Create a token row for the account and return the plain token.

        Expired tokens of the same account are purged first.
        """
        self.purge_expired(session, account.id)
        plain = generate_token()
        expires_at = None
        if ttl_minutes:
            expires_at = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)

        session.add(
            SessionToken(
                account_id=account.id,
                name=account.email,
                token_hash=hash_token(plain),
                expires_at=expires_at,
            )
        )
        session.flush()
        return plain

    def get_account(self, session: Session, token: str) -> Account | None:
        """
        Resolve a plain token to its account.

        Returns None for unknown or expired tokens.
        """
        stmt = select(SessionToken).where(SessionToken.token_hash == hash_token(token))
        row = session.exec(stmt).first()
        if row is None:
            return None
        if row.expires_at is not None and as_utc(row.expires_at) <= datetime.now(timezone.utc):
            return None
        return session.get(Account, row.account_id)

    def list_for_account(
        self, session: Session, account_id: uuid.UUID
    ) -> list[SessionToken]:
        stmt = select(SessionToken).where(SessionToken.account_id == account_id)
        return list(session.exec(stmt).all())

    def purge_expired(self, session: Session, account_id: uuid.UUID) -> int:
        """Delete the account's expired tokens; returns how many were removed."""
        now = datetime.now(timezone.utc)
        expired = [
            row
            for row in self.list_for_account(session, account_id)
            if row.expires_at is not None and as_utc(row.expires_at) <= now
        ]
        for row in expired:
            session.delete(row)
        session.flush()
        return len(expired)

    def revoke_all(self, session: Session, account_id: uuid.UUID) -> int:
        """Delete every token of the account; returns how many were removed."""
        rows = self.list_for_account(session, account_id)
        for row in rows:
            session.delete(row)
        session.flush()
        return len(rows)


class PasswordResetRepository:
    """
    Pending password reset tokens, keyed by e-mail.
    """

    def get(self, session: Session, email: str) -> PasswordResetToken | None:
        return session.get(PasswordResetToken, email)

    def put(self, session: Session, email: str, token: str) -> PasswordResetToken:
        """Store the digest of a fresh token, replacing any previous one."""
        row = self.get(session, email)
        if row is None:
            row = PasswordResetToken(email=email, token_hash=hash_token(token))
        else:
            row.token_hash = hash_token(token)
            row.created_at = datetime.now(timezone.utc)
        session.add(row)
        session.flush()
        return row

    def delete(self, session: Session, email: str) -> None:
        row = self.get(session, email)
        if row is not None:
            session.delete(row)
            session.flush()
