"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- In-memory SQLite database with the role catalog seeded
- FastAPI TestClient with database, settings, gateway and notifier overrides
- Account factories and token helpers
"""

import os

# Must be set before the app builds its cached settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from ticketing_auth.core.config import Settings, get_settings
from ticketing_auth.core.errors import ProviderError
from ticketing_auth.core.identity_providers import ExternalIdentity, get_identity_gateway
from ticketing_auth.core.security import hash_password
from ticketing_auth.database import create_db_and_tables, get_session
from ticketing_auth.main import app
from ticketing_auth.models.account import ACCOUNT_ACTIVE, Account, LinkedProvider
from ticketing_auth.models.token import SessionToken
from ticketing_auth.repositories.role_repo import RoleRepository
from ticketing_auth.services.notification_service import (
    PASSWORD_RESET,
    REGISTERED,
    Notifier,
    get_notifier,
)

DEFAULT_PASSWORD = "secret123"


class FakeGateway:
    """Stand-in for IdentityProviderGateway keyed by (provider, token)."""

    def __init__(self):
        self.identities: dict[tuple[str, str], ExternalIdentity] = {}
        self.calls: list[tuple[str, str]] = []

    def add(self, provider: str, token: str, **fields) -> ExternalIdentity:
        identity = ExternalIdentity(provider=provider, **fields)
        self.identities[(provider, token)] = identity
        return identity

    def resolve_identity(self, provider: str, token: str) -> ExternalIdentity:
        self.calls.append((provider, token))
        try:
            return self.identities[(provider, token)]
        except KeyError:
            raise ProviderError()


class Outbox:
    """Mailer that records messages instead of talking to SMTP."""

    def __init__(self):
        self.messages: list[dict] = []
        self.fail = False

    def __call__(self, **message) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP unavailable")
        self.messages.append(message)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database per test, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    with Session(engine) as session:
        RoleRepository().ensure_catalog(session)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ALLOW_ROLE_ON_REGISTER=False,
        PASSWORD_RESET_URL="https://tickets.test/reset?token={token}&email={email}",
        GOOGLE_CLIENT_IDS="web-client.apps.googleusercontent.com",
        APPLE_CLIENT_IDS="lk.spotseeker.app",
    )


@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def events() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def notifier(settings, outbox, events) -> Notifier:
    notifier = Notifier(settings, mailer=outbox)
    notifier.subscribe(REGISTERED, lambda account: events.append((REGISTERED, account.email)))
    notifier.subscribe(
        PASSWORD_RESET, lambda account: events.append((PASSWORD_RESET, account.email))
    )
    return notifier


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def client(engine, settings, notifier, gateway):
    """TestClient wired to the test database and fake collaborators."""

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_identity_gateway] = lambda: gateway

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Authentication headers for a bearer token."""

    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def make_account(engine):
    """Factory creating an account with roles (and optionally a provider link)."""

    def _make(
        email: str = "jane@example.com",
        password: str | None = DEFAULT_PASSWORD,
        name: str = "Jane Doe",
        roles: tuple[str, ...] = ("User",),
        status: str = ACCOUNT_ACTIVE,
        phone_no: str | None = None,
        provider: str | None = None,
    ):
        role_repo = RoleRepository()
        with Session(engine) as session:
            account = Account(
                name=name,
                email=email,
                password_hash=hash_password(password) if password else None,
                phone_no=phone_no,
                status=status,
            )
            account.set_name(name)
            session.add(account)
            session.flush()

            role_ids = [role_repo.get_by_name(session, role).id for role in roles]
            role_repo.sync_roles(session, account.id, role_ids)

            if provider:
                session.add(
                    LinkedProvider(
                        account_id=account.id,
                        provider=provider,
                        provider_id=f"{provider}-{email}",
                    )
                )
            session.commit()
            return account.id

    return _make


@pytest.fixture
def fetch(engine):
    """Read rows in a fresh session so request-side commits are visible."""

    def _fetch(model, *where):
        stmt = select(model)
        if where:
            stmt = stmt.where(*where)
        with Session(engine) as session:
            return list(session.exec(stmt).all())

    return _fetch


@pytest.fixture
def token_count(fetch):
    def _count(account_id) -> int:
        return len(fetch(SessionToken, SessionToken.account_id == account_id))

    return _count
