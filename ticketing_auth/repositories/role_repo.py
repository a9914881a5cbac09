# ticketing_auth/repositories/role_repo.py
import uuid

from sqlmodel import Session, select

from ticketing_auth.models.role import AccountRole, Role, RoleName


class RoleRepository:
    """
    Role catalog and role assignments.
    """

    def get_by_name(self, session: Session, name: str) -> Role | None:
        stmt = select(Role).where(Role.name == name)
        return session.exec(stmt).first()

    def ensure_catalog(
        self, session: Session, names: list[str] | None = None
    ) -> list[Role]:
        """
        Insert any missing catalog rows (idempotent) and commit.

        Called once on startup with every RoleName value.
        """
        names = names or [r.value for r in RoleName]
        roles: list[Role] = []
        for name in names:
            role = self.get_by_name(session, name)
            if role is None:
                role = Role(name=name)
                session.add(role)
            roles.append(role)
        session.commit()
        for role in roles:
            session.refresh(role)
        return roles

    def role_names_for(self, session: Session, account_id: uuid.UUID) -> list[str]:
        stmt = (
            select(Role.name)
            .join(AccountRole, AccountRole.role_id == Role.id)
            .where(AccountRole.account_id == account_id)
            .order_by(AccountRole.id)
        )
        return list(session.exec(stmt).all())

    def sync_roles(
        self, session: Session, account_id: uuid.UUID, role_ids: list[int]
    ) -> None:
        """
        Make `role_ids` the exact set of roles held by the account.
        """
        stmt = select(AccountRole).where(AccountRole.account_id == account_id)
        current = {row.role_id: row for row in session.exec(stmt).all()}

        for role_id, row in current.items():
            if role_id not in role_ids:
                session.delete(row)

        for role_id in dict.fromkeys(role_ids):
            if role_id not in current:
                session.add(AccountRole(account_id=account_id, role_id=role_id))

        session.flush()
