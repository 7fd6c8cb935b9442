"""
User service - company scoped user management.
"""
import uuid
import logging
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.core.exceptions import raise_not_found
from projecthub.core.identity import Identity
from projecthub.core.policy import Action, enforce
from projecthub.core.security import get_password_hash
from projecthub.core.tenancy import resolve_company_scope
from projecthub.models.user import User, LoginType
from projecthub.repositories.company_repo import CompanyRepository, CompanyUserRepository
from projecthub.repositories.user_repo import UserRepository
from projecthub.schemas.user import CompanyUserCreate, UserResponse
from projecthub.services.integrity_service import IntegrityService

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing the users of a company."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.company_repo = CompanyRepository(session)
        self.company_user_repo = CompanyUserRepository(session)
        self.integrity = IntegrityService(session)

    async def get_user_or_404(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get(user_id)
        if not user:
            raise_not_found("User", str(user_id))
        return user

    async def create_company_user(self, identity: Identity, data: CompanyUserCreate) -> UserResponse:
        """
        Create a user inside a company.

        An ADMIN always creates into their own company; a company_id in the
        body is only honoured for SUPERADMIN.
        """
        enforce(identity, Action.MANAGE_COMPANY_USERS)
        requested = data.company_id if identity.is_superadmin else None
        company_id = resolve_company_scope(identity, requested)

        company = await self.company_repo.get(company_id)
        if not company:
            raise_not_found("Company", str(company_id))
        enforce(identity, Action.CREATE_COMPANY_USER, company)

        # Re-read at creation time, the loaded row may be stale
        await self.integrity.ensure_company_accepts_users(company_id)

        user = await self.integrity.create_user(
            {
                "name": data.name,
                "email": data.email,
                "phone_number": data.phone_number,
                "password_hash": get_password_hash(data.password),
                "role": data.role,
                "company_id": company_id,
                "login_type": LoginType.EMAIL_PASSWORD,
            },
            commit=False
        )
        await self.company_user_repo.add(company_id, user.id, commit=False)
        await self.session.commit()
        await self.session.refresh(user)

        logger.info("User %s created in company %s by %s", user.id, company_id, identity.id)
        return UserResponse.model_validate(user)

    async def change_role(self, identity: Identity, user_id: uuid.UUID, role: str) -> UserResponse:
        target = await self.get_user_or_404(user_id)
        enforce(identity, Action.CHANGE_USER_ROLE, target, new_role=role)

        target.role = role
        target = await self.user_repo.save(target)
        logger.info("Role of user %s changed to %s by %s", target.id, role, identity.id)
        return UserResponse.model_validate(target)

    async def list_company_users(
        self,
        identity: Identity,
        company_id: Optional[uuid.UUID] = None
    ) -> List[UserResponse]:
        enforce(identity, Action.MANAGE_COMPANY_USERS)
        effective_id = resolve_company_scope(identity, company_id)

        company = await self.company_repo.get(effective_id)
        if not company:
            raise_not_found("Company", str(effective_id))

        member_ids = await self.company_user_repo.user_ids(company.id)
        enforce(identity, Action.LIST_COMPANY_USERS, company, member_ids=member_ids)

        users = {user.id: user for user in await self.user_repo.get_many(member_ids)}
        return [UserResponse.model_validate(users[user_id]) for user_id in member_ids if user_id in users]
