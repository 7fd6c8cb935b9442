"""
Project service - projects, their members and their feature links.
"""
import uuid
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.core.exceptions import (
    raise_not_found,
    raise_already_exists,
    raise_validation_error,
)
from projecthub.core.identity import Identity
from projecthub.core.policy import Action, enforce
from projecthub.core.tenancy import resolve_company_scope
from projecthub.models.project import Project
from projecthub.repositories.feature_repo import FeatureRepository, feature_summary
from projecthub.repositories.project_repo import (
    ProjectRepository,
    ProjectMemberRepository,
    ProjectFeatureRepository,
)
from projecthub.repositories.user_repo import UserRepository, user_summary
from projecthub.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectListQuery,
    ProjectResponse,
)
from projecthub.services.integrity_service import IntegrityService

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.project_repo = ProjectRepository(session)
        self.member_repo = ProjectMemberRepository(session)
        self.link_repo = ProjectFeatureRepository(session)
        self.feature_repo = FeatureRepository(session)
        self.user_repo = UserRepository(session)
        self.integrity = IntegrityService(session)

    async def expand(self, project: Project) -> ProjectResponse:
        """Resolve creator, members and features to summaries."""
        creator = await self.user_repo.get(project.created_by) if project.created_by else None
        member_ids = await self.member_repo.user_ids(project.id)
        feature_ids = await self.link_repo.feature_ids(project.id)
        features = {f.id: f for f in await self.feature_repo.get_many(feature_ids)}

        return ProjectResponse(
            **project.model_dump(exclude={"created_by"}),
            created_by=user_summary(creator) if creator else None,
            members=await self.user_repo.summaries(member_ids),
            features=[feature_summary(features[f_id]) for f_id in feature_ids if f_id in features]
        )

    async def get_project_or_404(self, project_id: uuid.UUID) -> Project:
        project = await self.project_repo.get(project_id)
        if not project:
            raise_not_found("Project", str(project_id))
        return project

    async def _get_managed_project(self, identity: Identity, project_id: uuid.UUID) -> Project:
        project = await self.get_project_or_404(project_id)
        enforce(identity, Action.MANAGE_PROJECT, project)
        return project

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_project(self, identity: Identity, data: ProjectCreate) -> ProjectResponse:
        """Create a project in the caller's company. The creator is an implicit member."""
        enforce(identity, Action.CREATE_PROJECT)
        company_id = resolve_company_scope(identity, required=False)

        if await self.project_repo.get_by_name(data.name, company_id):
            raise_already_exists("Project", "name", data.name)

        # De-duplicate, keeping the requested order
        member_ids = [m for m in dict.fromkeys(data.members) if m != identity.id]
        if await self.user_repo.missing_ids(member_ids):
            raise_validation_error("One or more member IDs are invalid", "members")

        project = Project(
            name=data.name,
            description=data.description or "",
            company_id=company_id,
            created_by=identity.id,
            deadline=data.deadline
        )
        try:
            await self.project_repo.save(project, commit=False)
            for user_id in member_ids:
                await self.member_repo.create(
                    {"project_id": project.id, "user_id": user_id, "added_by": identity.id},
                    commit=False
                )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise_already_exists("Project", "name", data.name)

        await self.session.refresh(project)
        logger.info("Project %s created by %s", project.id, identity.id)
        return await self.expand(project)

    async def list_projects(self, identity: Identity, query: ProjectListQuery) -> dict:
        """
        Without company_id: projects the caller created or is a member of.
        With company_id: every project of that company, after tenancy checks.
        """
        search = query.search.strip() if query.search else None

        if query.company_id is not None:
            company_id = resolve_company_scope(identity, query.company_id)
            result = await self.project_repo.list_for_company(
                company_id, status=query.status, search=search, page=query.page, limit=query.limit
            )
        else:
            result = await self.project_repo.list_for_user(
                identity.id, status=query.status, search=search, page=query.page, limit=query.limit
            )

        projects = [await self.expand(project) for project in result.pop("items")]
        return {
            "projects": projects,
            "pagination": result,
            "filters": {"status": query.status or "all", "search": search or ""}
        }

    async def get_project(self, identity: Identity, project_id: uuid.UUID) -> ProjectResponse:
        project = await self.get_project_or_404(project_id)
        enforce(identity, Action.READ_PROJECT, project)
        return await self.expand(project)

    async def update_project(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        data: ProjectUpdate
    ) -> ProjectResponse:
        project = await self.get_project_or_404(project_id)
        enforce(identity, Action.UPDATE_PROJECT, project)

        changes = data.changes()
        new_name = changes.get("name")
        if new_name and new_name != project.name:
            if await self.project_repo.get_by_name(new_name, project.company_id):
                raise_already_exists("Project", "name", new_name)

        for field, value in changes.items():
            setattr(project, field, value)
        try:
            project = await self.project_repo.save(project)
        except IntegrityError:
            await self.session.rollback()
            raise_already_exists("Project", "name", new_name)
        return await self.expand(project)

    async def delete_project(self, identity: Identity, project_id: uuid.UUID) -> int:
        """Delete the project and every feature it owns."""
        project = await self.get_project_or_404(project_id)
        enforce(identity, Action.DELETE_PROJECT, project)
        return await self.integrity.delete_project(project)

    async def toggle_visibility(self, identity: Identity, project_id: uuid.UUID) -> ProjectResponse:
        project = await self._get_managed_project(identity, project_id)
        project.is_shown = not project.is_shown
        project = await self.project_repo.save(project)
        return await self.expand(project)

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def add_member(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> ProjectResponse:
        project = await self._get_managed_project(identity, project_id)

        if not await self.user_repo.exists(user_id):
            raise_not_found("User", str(user_id))
        if user_id == project.created_by or await self.member_repo.get_membership(project.id, user_id):
            raise_already_exists("Project member", "id", str(user_id))

        await self.integrity.add_unique(
            self.member_repo,
            {"project_id": project.id, "user_id": user_id, "added_by": identity.id},
            "Project member"
        )
        project = await self.project_repo.save(project)
        return await self.expand(project)

    async def remove_member(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> ProjectResponse:
        """Removing a user that is not a member changes nothing."""
        project = await self._get_managed_project(identity, project_id)
        await self.member_repo.delete_many(project_id=project.id, user_id=user_id)
        project = await self.project_repo.save(project)
        return await self.expand(project)

    # =========================================================================
    # FEATURE LINKS
    # =========================================================================

    async def link_feature(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        feature_id: uuid.UUID
    ) -> ProjectResponse:
        project = await self._get_managed_project(identity, project_id)

        if not await self.feature_repo.exists(feature_id):
            raise_not_found("Feature", str(feature_id))
        if await self.link_repo.get_link(project.id, feature_id):
            raise_already_exists("Project feature", "id", str(feature_id))

        await self.integrity.add_unique(
            self.link_repo,
            {"project_id": project.id, "feature_id": feature_id},
            "Project feature"
        )
        project = await self.project_repo.save(project)
        return await self.expand(project)

    async def unlink_feature(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        feature_id: uuid.UUID
    ) -> ProjectResponse:
        project = await self._get_managed_project(identity, project_id)
        await self.link_repo.delete_many(project_id=project.id, feature_id=feature_id)
        project = await self.project_repo.save(project)
        return await self.expand(project)

