# ticketing_auth/models/role.py
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class RoleName(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"
    COORDINATOR = "Coordinator"


# Highest privilege first; decides the primary role of multi-role accounts
ROLE_PRIORITY: tuple[str, ...] = (
    RoleName.ADMIN.value,
    RoleName.MANAGER.value,
    RoleName.COORDINATOR.value,
    RoleName.USER.value,
)

# Roles allowed through the manager login endpoints
MANAGER_ROLES: frozenset[str] = frozenset(
    {RoleName.ADMIN.value, RoleName.MANAGER.value, RoleName.COORDINATOR.value}
)


def primary_role(role_names: list[str], default: str = "user") -> str:
    """
    Pick the role used for display and defaults.

    Known roles win by privilege (Admin > Manager > Coordinator > User);
    unknown names sort after them alphabetically. No roles -> `default`.
    """
    if not role_names:
        return default

    def rank(name: str) -> tuple[int, str]:
        if name in ROLE_PRIORITY:
            return ROLE_PRIORITY.index(name), name
        return len(ROLE_PRIORITY), name

    return min(role_names, key=rank)


class Role(SQLModel, table=True):
    """
    Role catalog entry.

    Seeded on startup with every RoleName value.
    """

    __tablename__ = "roles"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        unique=True,
        index=True,
        max_length=50,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class AccountRole(SQLModel, table=True):
    """
    Role assigned to an account.
    One account cannot hold the same role twice.
    """

    __tablename__ = "account_roles"
    __table_args__ = (
        UniqueConstraint("account_id", "role_id", name="uq_account_role"),
    )

    id: int | None = Field(default=None, primary_key=True)

    account_id: uuid.UUID = Field(
        foreign_key="accounts.id",
        index=True,
    )

    role_id: int = Field(
        foreign_key="roles.id",
        index=True,
    )
