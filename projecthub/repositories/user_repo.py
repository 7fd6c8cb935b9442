"""
User repository.
"""
import uuid
from typing import Optional, List, Dict
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update

from projecthub.models.user import User
from projecthub.repositories.base import BaseRepository


def user_summary(user: User) -> dict:
    """Compact view used wherever a user is referenced from another entity."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive, emails are stored lowercased)."""
        query = select(User).where(User.email == email.strip().lower())
        result = await self.session.exec(query)
        return result.first()

    async def get_by_username(self, username: str) -> Optional[User]:
        query = select(User).where(User.username == username.strip().lower())
        result = await self.session.exec(query)
        return result.first()

    async def get_by_verification_token(self, hashed_token: str) -> Optional[User]:
        """Get the user holding an unexpired email verification token."""
        query = select(User).where(
            User.email_verification_token == hashed_token,
            User.email_verification_expiry > datetime.utcnow()
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_by_reset_token(self, hashed_token: str) -> Optional[User]:
        """Get the user holding an unexpired password reset token."""
        query = select(User).where(
            User.forgot_password_token == hashed_token,
            User.forgot_password_expiry > datetime.utcnow()
        )
        result = await self.session.exec(query)
        return result.first()

    async def missing_ids(self, ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """Return the ids from the list that do not belong to any user."""
        found = {user.id for user in await self.get_many(ids)}
        return [user_id for user_id in ids if user_id not in found]

    async def summaries(self, ids: List[uuid.UUID]) -> List[dict]:
        """User summaries in the order of ids; unknown ids are skipped."""
        by_id: Dict[uuid.UUID, User] = {user.id: user for user in await self.get_many(ids)}
        return [user_summary(by_id[user_id]) for user_id in ids if user_id in by_id]

    async def detach_company(self, company_id: uuid.UUID) -> None:
        """Clear company_id on every user of the company (no commit)."""
        statement = (
            update(User)
            .where(User.company_id == company_id)
            .values(company_id=None, updated_at=datetime.utcnow())
        )
        await self.session.exec(statement)
        await self.session.flush()
