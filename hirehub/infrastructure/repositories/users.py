from __future__ import annotations

from typing import Any

from sqlalchemy import Select, or_, select

from hirehub.infrastructure.db.models import UserModel

from .base import SoftDeleteRepository


class UserRepository(SoftDeleteRepository[UserModel]):
    model = UserModel
    label = "User"
    sortable = frozenset({"created_at", "updated_at", "last_name", "first_name", "email", "role"})

    async def get_by_email(self, email: str) -> UserModel | None:
        stmt = self.select().where(UserModel.email == email.strip().lower())
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def email_taken(self, email: str, *, exclude_id: str | None = None) -> bool:
        """True if any row, deleted or not, holds the email (the column is unique)."""
        stmt = select(UserModel.id).where(UserModel.email == email.strip().lower())
        if exclude_id:
            stmt = stmt.where(UserModel.id != exclude_id)
        return (await self.session.scalar(stmt.limit(1))) is not None

    def filtered(
        self,
        *,
        q: str | None = None,
        role: str | None = None,
        department: str | None = None,
    ) -> Select[Any]:
        stmt = self.select()
        if q:
            pattern = f"%{q}%"
            stmt = stmt.where(
                or_(
                    UserModel.first_name.ilike(pattern),
                    UserModel.last_name.ilike(pattern),
                    UserModel.email.ilike(pattern),
                )
            )
        if role:
            stmt = stmt.where(UserModel.role == role)
        if department:
            stmt = stmt.where(UserModel.department == department)
        return stmt
