# ticketing_auth/database.py
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from ticketing_auth.core.config import get_settings


def _database_url() -> str:
    """
    Resolve the connection string from settings.

    For PostgreSQL, DATABASE_SSLMODE (e.g. "require" in the cloud) is
    appended unless the URL already carries an sslmode.
    """
    settings = get_settings()
    db_url = settings.DATABASE_URL

    if (
        db_url.startswith("postgresql")
        and settings.DATABASE_SSLMODE
        and "sslmode=" not in db_url
    ):
        separator = "&" if "?" in db_url else "?"
        db_url = f"{db_url}{separator}sslmode={settings.DATABASE_SSLMODE}"

    return db_url


@lru_cache
def get_engine() -> Engine:
    """
    Build the process-wide engine on first use.

    - pool_pre_ping=True: validate connections before using them
    - SQLite needs check_same_thread=False because FastAPI runs sync
      endpoints in a threadpool.
    """
    db_url = _database_url()
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_db_and_tables(engine: Engine | None = None) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    # Import models so SQLModel metadata is populated before create_all()
    from ticketing_auth.models import account as _account_models  # noqa: F401
    from ticketing_auth.models import role as _role_models  # noqa: F401
    from ticketing_auth.models import token as _token_models  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(get_engine()) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Run a block of writes as one unit of work.

    Repositories only add/flush; the block commits once on success and
    rolls back everything on any exception.

        with atomic(session):
            repo.create(session, account)
            roles.sync_roles(session, account, [role.id])
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
