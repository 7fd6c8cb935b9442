"""
Company and CompanyUser (membership) repositories.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.models.company import Company, CompanyUser
from projecthub.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Company, session)

    async def get_by_email(self, email: str) -> Optional[Company]:
        query = select(Company).where(Company.email == email.strip().lower())
        result = await self.session.exec(query)
        return result.first()

    async def get_status(self, company_id: uuid.UUID) -> Optional[str]:
        """Read the status straight from the table, bypassing the identity map."""
        query = select(Company.status).where(Company.id == company_id)
        result = await self.session.exec(query)
        return result.first()


class CompanyUserRepository(BaseRepository[CompanyUser]):
    """Repository for the company users list."""

    def __init__(self, session: AsyncSession):
        super().__init__(CompanyUser, session)

    async def get_membership(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> Optional[CompanyUser]:
        return await self.find_one(company_id=company_id, user_id=user_id)

    async def user_ids(self, company_id: uuid.UUID) -> List[uuid.UUID]:
        """Ids of the company's users, in the order they were added."""
        query = (
            select(CompanyUser.user_id)
            .where(CompanyUser.company_id == company_id)
            .order_by(CompanyUser.added_at)
        )
        result = await self.session.exec(query)
        return list(result.all())

    async def add(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        commit: bool = True
    ) -> CompanyUser:
        """Add a user to the company unless already listed."""
        membership = await self.get_membership(company_id, user_id)
        if membership:
            return membership
        return await self.create({"company_id": company_id, "user_id": user_id}, commit=commit)
