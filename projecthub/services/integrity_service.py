"""
Referential integrity service.

Cascades and uniqueness rules between companies, users, projects and
features. Every cascade runs as a single unit of work on the request session:
either all of its writes are committed or none are.
"""
import logging
import uuid
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.core.exceptions import (
    AlreadyExistsError,
    CompanySuspendedError,
    InternalFailureError,
    raise_already_exists,
    raise_not_found,
)
from projecthub.core.security import generate_numeric_suffix
from projecthub.models.company import Company, CompanyStatus
from projecthub.models.feature import Feature
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.repositories.base import BaseRepository
from projecthub.repositories.company_repo import CompanyRepository, CompanyUserRepository
from projecthub.repositories.feature_repo import (
    FeatureRepository,
    FeatureAssigneeRepository,
    FeatureCommentRepository,
)
from projecthub.repositories.project_repo import (
    ProjectRepository,
    ProjectMemberRepository,
    ProjectFeatureRepository,
)
from projecthub.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class IntegrityService:
    """Service for cascade deletes and uniqueness guarantees."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.company_repo = CompanyRepository(session)
        self.company_user_repo = CompanyUserRepository(session)
        self.project_repo = ProjectRepository(session)
        self.project_member_repo = ProjectMemberRepository(session)
        self.project_feature_repo = ProjectFeatureRepository(session)
        self.feature_repo = FeatureRepository(session)
        self.assignee_repo = FeatureAssigneeRepository(session)
        self.comment_repo = FeatureCommentRepository(session)

    # =========================================================================
    # CASCADES
    # =========================================================================

    async def _delete_feature_rows(self, feature_ids: List[uuid.UUID]) -> None:
        if not feature_ids:
            return
        await self.project_feature_repo.delete_many(feature_id=feature_ids)
        await self.assignee_repo.delete_many(feature_id=feature_ids)
        await self.comment_repo.delete_many(feature_id=feature_ids)
        await self.feature_repo.delete_many(id=feature_ids)

    async def delete_project(self, project: Project) -> int:
        """
        Delete a project together with every feature it owns.

        Returns:
            Number of features deleted

        Raises:
            InternalFailureError: the cascade failed; nothing was deleted
        """
        project_id = project.id
        try:
            feature_ids = await self.feature_repo.ids_for_projects([project_id])
            await self._delete_feature_rows(feature_ids)
            await self.project_member_repo.delete_many(project_id=project_id)
            await self.project_feature_repo.delete_many(project_id=project_id)
            await self.project_repo.delete_obj(project, commit=False)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.exception("Cascade delete of project %s failed", project_id)
            raise InternalFailureError("Failed to delete the project and its features") from exc

        logger.info("Deleted project %s and %d features", project_id, len(feature_ids))
        return len(feature_ids)

    async def delete_feature(self, feature: Feature) -> None:
        """
        Detach a feature from its project's features list, then delete it.
        If the detach step fails the feature is left untouched.
        """
        feature_id = feature.id
        try:
            await self.project_feature_repo.delete_many(feature_id=feature_id)
            await self.assignee_repo.delete_many(feature_id=feature_id)
            await self.comment_repo.delete_many(feature_id=feature_id)
            await self.feature_repo.delete_obj(feature, commit=False)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.exception("Delete of feature %s failed", feature_id)
            raise InternalFailureError("Failed to delete the feature") from exc

    async def delete_company(self, company: Company) -> None:
        """
        Delete a company. Users and projects are kept and lose their
        company reference.
        """
        company_id = company.id
        try:
            await self.company_user_repo.delete_many(company_id=company_id)
            await self.user_repo.detach_company(company_id)
            for project_id in await self.project_repo.ids_for_company(company_id):
                project = await self.project_repo.get(project_id)
                project.company_id = None
                await self.project_repo.save(project, commit=False)
            await self.company_repo.delete_obj(company, commit=False)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.exception("Delete of company %s failed", company_id)
            raise InternalFailureError("Failed to delete the company") from exc

    # =========================================================================
    # CONSTRAINTS
    # =========================================================================

    async def ensure_company_accepts_users(self, company_id: uuid.UUID) -> None:
        """Check the company status as stored right now."""
        status = await self.company_repo.get_status(company_id)
        if status is None:
            raise_not_found("Company", str(company_id))
        if status == CompanyStatus.SUSPENDED:
            raise CompanySuspendedError("Cannot create users in a suspended company")

    async def add_unique(self, repo: BaseRepository, data: dict, resource: str):
        """
        Insert a link row guarded by a unique constraint (no commit).
        A concurrent insert of the same pair surfaces as AlreadyExistsError.
        """
        try:
            return await repo.create(data, commit=False)
        except IntegrityError as exc:
            await self.session.rollback()
            raise AlreadyExistsError(resource) from exc

    @staticmethod
    def username_base(email: str) -> str:
        return email.split("@")[0].strip().lower()

    async def create_user(self, data: dict, commit: bool = True) -> User:
        """
        Create a user, deriving a unique username from the email local part.

        Must be the first write of its unit of work: a username collision
        rolls the session back before the single retry.

        Raises:
            AlreadyExistsError: the email is taken
            InternalFailureError: the username still collided after one retry
        """
        email = data["email"].strip().lower()
        if await self.user_repo.get_by_email(email):
            raise_already_exists("User", "email", email)

        base = self.username_base(email)
        username = base
        if await self.user_repo.get_by_username(username):
            username = f"{base}{generate_numeric_suffix()}"

        for attempt in range(2):
            user = User(**{**data, "email": email, "username": username})
            try:
                return await self.user_repo.save(user, commit=commit)
            except IntegrityError:
                await self.session.rollback()
                if await self.user_repo.get_by_email(email):
                    raise_already_exists("User", "email", email)
                logger.warning("Username %s collided (attempt %d)", username, attempt + 1)
                username = f"{base}{generate_numeric_suffix()}"

        raise InternalFailureError("Could not generate a unique username")
