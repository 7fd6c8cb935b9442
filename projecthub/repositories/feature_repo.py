"""
Feature repositories: features, assignees and comments.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.models.feature import Feature, FeatureAssignee, FeatureComment
from projecthub.repositories.base import BaseRepository


def feature_summary(feature: Feature) -> dict:
    return {
        "id": feature.id,
        "title": feature.title,
        "status": feature.status,
        "priority": feature.priority,
    }


class FeatureRepository(BaseRepository[Feature]):
    """Repository for Feature operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Feature, session)

    async def list_by_project(
        self,
        project_id: uuid.UUID,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        is_completed: Optional[bool] = None,
        sort_by: str = "created_at",
        order: str = "desc"
    ) -> List[Feature]:
        return await self.list(
            filters={
                "project_id": project_id,
                "status": status,
                "priority": priority,
                "is_completed": is_completed,
            },
            order_by=sort_by,
            order_desc=order == "desc"
        )

    async def ids_for_projects(self, project_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        if not project_ids:
            return []
        result = await self.session.exec(
            select(Feature.id).where(Feature.project_id.in_(project_ids))
        )
        return list(result.all())


class FeatureAssigneeRepository(BaseRepository[FeatureAssignee]):
    """Repository for the feature assigned_to list."""

    def __init__(self, session: AsyncSession):
        super().__init__(FeatureAssignee, session)

    async def user_ids(self, feature_id: uuid.UUID) -> List[uuid.UUID]:
        """Assignees in assignment order."""
        query = (
            select(FeatureAssignee.user_id)
            .where(FeatureAssignee.feature_id == feature_id)
            .order_by(FeatureAssignee.assigned_at)
        )
        result = await self.session.exec(query)
        return list(result.all())


class FeatureCommentRepository(BaseRepository[FeatureComment]):
    """Repository for feature comments."""

    def __init__(self, session: AsyncSession):
        super().__init__(FeatureComment, session)

    async def list_for_feature(self, feature_id: uuid.UUID) -> List[FeatureComment]:
        return await self.list(
            filters={"feature_id": feature_id}, order_by="created_at", order_desc=False
        )
