"""
Project repositories: projects, their members and their feature links.
"""
import uuid
from typing import Optional, List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.models.project import Project, ProjectMember, ProjectFeature
from projecthub.repositories.base import BaseRepository


def project_summary(project: Project) -> dict:
    return {"id": project.id, "name": project.name}


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Project, session)

    async def get_by_name(self, name: str, company_id: Optional[uuid.UUID]) -> Optional[Project]:
        """Get a project by name within a company."""
        query = select(Project).where(Project.name == name)
        if company_id is None:
            query = query.where(Project.company_id.is_(None))
        else:
            query = query.where(Project.company_id == company_id)
        result = await self.session.exec(query)
        return result.first()

    def _search(self, query, search: Optional[str]):
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Project.name.ilike(pattern), Project.description.ilike(pattern))
            )
        return query

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> dict:
        """Projects the user created or is a member of."""
        member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        query = select(Project).where(
            or_(Project.created_by == user_id, Project.id.in_(member_of))
        )
        query = self._search(query, search)
        return await self.list_paginated(
            query=query, filters={"status": status}, page=page, limit=limit
        )

    async def list_for_company(
        self,
        company_id: uuid.UUID,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> dict:
        query = self._search(select(Project).where(Project.company_id == company_id), search)
        return await self.list_paginated(
            query=query, filters={"status": status}, page=page, limit=limit
        )

    async def ids_for_company(self, company_id: uuid.UUID) -> List[uuid.UUID]:
        result = await self.session.exec(select(Project.id).where(Project.company_id == company_id))
        return list(result.all())


class ProjectMemberRepository(BaseRepository[ProjectMember]):
    """Repository for the project members list."""

    def __init__(self, session: AsyncSession):
        super().__init__(ProjectMember, session)

    async def get_membership(
        self,
        project_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> Optional[ProjectMember]:
        return await self.find_one(project_id=project_id, user_id=user_id)

    async def user_ids(self, project_id: uuid.UUID) -> List[uuid.UUID]:
        query = (
            select(ProjectMember.user_id)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.added_at)
        )
        result = await self.session.exec(query)
        return list(result.all())


class ProjectFeatureRepository(BaseRepository[ProjectFeature]):
    """Repository for the project features list."""

    def __init__(self, session: AsyncSession):
        super().__init__(ProjectFeature, session)

    async def get_link(
        self,
        project_id: uuid.UUID,
        feature_id: uuid.UUID
    ) -> Optional[ProjectFeature]:
        return await self.find_one(project_id=project_id, feature_id=feature_id)

    async def feature_ids(self, project_id: uuid.UUID) -> List[uuid.UUID]:
        query = (
            select(ProjectFeature.feature_id)
            .where(ProjectFeature.project_id == project_id)
            .order_by(ProjectFeature.added_at)
        )
        result = await self.session.exec(query)
        return list(result.all())
