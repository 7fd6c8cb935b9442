"""
Company service - tenant CRUD.
"""
import uuid
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.core.exceptions import raise_not_found, raise_already_exists
from projecthub.core.identity import Identity
from projecthub.core.policy import Action, enforce
from projecthub.models.company import Company
from projecthub.repositories.company_repo import CompanyRepository, CompanyUserRepository
from projecthub.repositories.user_repo import UserRepository, user_summary
from projecthub.schemas.company import CompanyCreate, CompanyUpdate, CompanyResponse
from projecthub.services.integrity_service import IntegrityService

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for company operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)
        self.company_user_repo = CompanyUserRepository(session)
        self.user_repo = UserRepository(session)
        self.integrity = IntegrityService(session)

    async def expand(self, company: Company) -> CompanyResponse:
        """Resolve owner and users to summaries."""
        owner = await self.user_repo.get(company.owner_id)
        user_ids = await self.company_user_repo.user_ids(company.id)
        return CompanyResponse(
            **company.model_dump(exclude={"owner_id"}),
            owner=user_summary(owner) if owner else None,
            users=await self.user_repo.summaries(user_ids)
        )

    async def get_company_or_404(self, company_id: uuid.UUID) -> Company:
        company = await self.company_repo.get(company_id)
        if not company:
            raise_not_found("Company", str(company_id))
        return company

    async def create_company(self, identity: Identity, data: CompanyCreate) -> CompanyResponse:
        """Create a company owned by the caller, who becomes its first user."""
        enforce(identity, Action.CREATE_COMPANY)

        email = data.email.lower()
        if await self.company_repo.get_by_email(email):
            raise_already_exists("Company", "email", email)

        company = Company(
            name=data.name,
            email=email,
            domain=data.domain or None,
            owner_id=identity.id
        )
        try:
            await self.company_repo.save(company, commit=False)
            await self.company_user_repo.add(company.id, identity.id, commit=False)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise_already_exists("Company", "email", email)

        await self.session.refresh(company)
        logger.info("Company %s created by %s", company.id, identity.id)
        return await self.expand(company)

    async def get_company(self, identity: Identity, company_id: uuid.UUID) -> CompanyResponse:
        company = await self.get_company_or_404(company_id)
        enforce(identity, Action.READ_COMPANY, company)
        return await self.expand(company)

    async def list_companies(self, identity: Identity) -> List[CompanyResponse]:
        enforce(identity, Action.LIST_COMPANIES)
        companies = await self.company_repo.list()
        return [await self.expand(company) for company in companies]

    async def update_company(
        self,
        identity: Identity,
        company_id: uuid.UUID,
        data: CompanyUpdate
    ) -> CompanyResponse:
        company = await self.get_company_or_404(company_id)
        enforce(identity, Action.UPDATE_COMPANY, company)

        for field, value in data.changes().items():
            setattr(company, field, value)
        company = await self.company_repo.save(company)

        # The owner stays listed whatever the update touched
        await self.company_user_repo.add(company.id, company.owner_id)
        return await self.expand(company)

    async def delete_company(self, identity: Identity, company_id: uuid.UUID) -> None:
        company = await self.get_company_or_404(company_id)
        enforce(identity, Action.DELETE_COMPANY, company)
        await self.integrity.delete_company(company)
        logger.info("Company %s deleted by %s", company_id, identity.id)
