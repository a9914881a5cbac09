# ticketing_auth/repositories/account_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from ticketing_auth.models.account import Account, LinkedProvider, utc_now


class AccountRepository:
    """
    Data access layer for Account.

    Responsibilities:
      - Pure DB operations (lookups + writes)
      - No FastAPI, no HTTP, no business logic

    Writes only add + flush; the calling service owns the transaction
    (see `database.atomic`).
    """

    def get_by_id(self, session: Session, account_id: uuid.UUID) -> Account | None:
        """Return an Account by primary key, or None if not found."""
        return session.get(Account, account_id)

    def get_by_email(self, session: Session, email: str) -> Account | None:
        """
        Return an Account by unique email, or None if not found.

        Case-insensitive, so rows stored before normalization still match.
        """
        stmt = select(Account).where(func.lower(Account.email) == email.strip().lower())
        return session.exec(stmt).first()

    def get_by_phone(self, session: Session, phone_no: str) -> Account | None:
        stmt = select(Account).where(Account.phone_no == phone_no)
        return session.exec(stmt).first()

    def create(self, session: Session, account: Account) -> Account:
        """Insert a new Account; the id is available after flush."""
        session.add(account)
        session.flush()
        return account

    def update(self, session: Session, account: Account) -> Account:
        """Persist changes to an existing Account."""
        account.updated_at = utc_now()
        session.add(account)
        session.flush()
        return account


class LinkedProviderRepository:
    """
    Data access for social identities linked to an account.
    """

    def list_for_account(
        self, session: Session, account_id: uuid.UUID
    ) -> list[LinkedProvider]:
        stmt = select(LinkedProvider).where(LinkedProvider.account_id == account_id)
        return list(session.exec(stmt).all())

    def has_any(self, session: Session, account_id: uuid.UUID) -> bool:
        stmt = select(LinkedProvider.id).where(LinkedProvider.account_id == account_id)
        return session.exec(stmt).first() is not None

    def get(
        self, session: Session, account_id: uuid.UUID, provider: str
    ) -> LinkedProvider | None:
        stmt = select(LinkedProvider).where(
            LinkedProvider.account_id == account_id,
            LinkedProvider.provider == provider,
        )
        return session.exec(stmt).first()

    def upsert(
        self,
        session: Session,
        *,
        account_id: uuid.UUID,
        provider: str,
        provider_id: str,
        avatar: str | None,
    ) -> LinkedProvider:
        """
        Create or replace the (account, provider) link.

        At most one row exists per pair; an existing row gets the new
        external id and avatar.
        """
        link = self.get(session, account_id, provider)
        if link is None:
            link = LinkedProvider(
                account_id=account_id,
                provider=provider,
                provider_id=provider_id,
                avatar=avatar,
            )
        else:
            link.provider_id = provider_id
            link.avatar = avatar
            link.updated_at = utc_now()

        session.add(link)
        session.flush()
        return link
