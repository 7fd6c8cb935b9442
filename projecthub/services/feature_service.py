"""
Feature service - work items, assignment, comments and completion.
"""
import uuid
import logging
from typing import List

from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.core.exceptions import (
    raise_not_found,
    raise_already_exists,
    raise_validation_error,
)
from projecthub.core.identity import Identity
from projecthub.core.policy import Action, enforce
from projecthub.models.feature import Feature, FeatureComment, FeatureStatus
from projecthub.repositories.feature_repo import (
    FeatureRepository,
    FeatureAssigneeRepository,
    FeatureCommentRepository,
)
from projecthub.repositories.project_repo import (
    ProjectRepository,
    ProjectFeatureRepository,
    project_summary,
)
from projecthub.repositories.user_repo import UserRepository, user_summary
from projecthub.schemas.feature import (
    FeatureCreate,
    FeatureUpdate,
    FeatureListQuery,
    FeatureResponse,
    CommentResponse,
)
from projecthub.services.integrity_service import IntegrityService

logger = logging.getLogger(__name__)


class FeatureService:
    """Service for feature operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.feature_repo = FeatureRepository(session)
        self.assignee_repo = FeatureAssigneeRepository(session)
        self.comment_repo = FeatureCommentRepository(session)
        self.project_repo = ProjectRepository(session)
        self.link_repo = ProjectFeatureRepository(session)
        self.user_repo = UserRepository(session)
        self.integrity = IntegrityService(session)

    async def _comments(self, feature_id: uuid.UUID) -> List[CommentResponse]:
        comments = await self.comment_repo.list_for_feature(feature_id)
        authors = {user["id"]: user for user in await self.user_repo.summaries(
            list({comment.created_by for comment in comments})
        )}
        return [
            CommentResponse(
                id=comment.id,
                text=comment.text,
                created_by=authors.get(comment.created_by),
                created_at=comment.created_at
            )
            for comment in comments
        ]

    async def expand(self, feature: Feature) -> FeatureResponse:
        """Resolve project, creator, assignees and comments."""
        project = await self.project_repo.get(feature.project_id)
        creator = await self.user_repo.get(feature.created_by) if feature.created_by else None
        assignee_ids = await self.assignee_repo.user_ids(feature.id)

        return FeatureResponse(
            **feature.model_dump(exclude={"created_by"}),
            project=project_summary(project) if project else None,
            created_by=user_summary(creator) if creator else None,
            assigned_to=await self.user_repo.summaries(assignee_ids),
            comments=await self._comments(feature.id)
        )

    async def get_feature_or_404(self, feature_id: uuid.UUID) -> Feature:
        feature = await self.feature_repo.get(feature_id)
        if not feature:
            raise_not_found("Feature", str(feature_id))
        return feature

    async def create_feature(self, identity: Identity, data: FeatureCreate) -> FeatureResponse:
        """Create a feature and append it to its project's features list."""
        project = await self.project_repo.get(data.project_id)
        if not project:
            raise_not_found("Project", str(data.project_id))
        enforce(identity, Action.CREATE_FEATURE, project)

        feature = Feature(**data.model_dump(), created_by=identity.id)
        feature.sync_completion()

        await self.feature_repo.save(feature, commit=False)
        await self.link_repo.create({"project_id": project.id, "feature_id": feature.id}, commit=False)
        await self.session.commit()
        await self.session.refresh(feature)

        logger.info("Feature %s created in project %s", feature.id, project.id)
        return await self.expand(feature)

    async def get_feature(self, identity: Identity, feature_id: uuid.UUID) -> FeatureResponse:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.READ_FEATURE, feature)
        return await self.expand(feature)

    async def list_by_project(
        self,
        identity: Identity,
        project_id: uuid.UUID,
        query: FeatureListQuery
    ) -> List[FeatureResponse]:
        project = await self.project_repo.get(project_id)
        if not project:
            raise_not_found("Project", str(project_id))
        enforce(identity, Action.READ_FEATURE, project)

        features = await self.feature_repo.list_by_project(
            project.id,
            status=query.status,
            priority=query.priority,
            is_completed=query.is_completed,
            sort_by=query.sort_by,
            order=query.order
        )
        return [await self.expand(feature) for feature in features]

    async def update_feature(
        self,
        identity: Identity,
        feature_id: uuid.UUID,
        data: FeatureUpdate
    ) -> FeatureResponse:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.UPDATE_FEATURE, feature)

        for field, value in data.changes().items():
            setattr(feature, field, value)
        feature.sync_completion()

        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)

    async def delete_feature(self, identity: Identity, feature_id: uuid.UUID) -> None:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.DELETE_FEATURE, feature)
        await self.integrity.delete_feature(feature)

    async def toggle_completion(self, identity: Identity, feature_id: uuid.UUID) -> FeatureResponse:
        """Flip completion: completed <-> pending, whatever the current status."""
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.TOGGLE_FEATURE, feature)

        feature.status = FeatureStatus.PENDING if feature.is_completed else FeatureStatus.COMPLETED
        feature.sync_completion()

        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)

    # =========================================================================
    # ASSIGNMENT
    # =========================================================================

    async def assign_users(
        self,
        identity: Identity,
        feature_id: uuid.UUID,
        user_ids: List[uuid.UUID]
    ) -> FeatureResponse:
        """
        Add users to assigned_to, which stays a set.

        Unknown ids fail with 400. When every requested user is already
        assigned the call fails with 409; when only some are, those are
        skipped and the rest are added.
        """
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.ASSIGN_FEATURE, feature)

        requested = list(dict.fromkeys(user_ids))
        missing = await self.user_repo.missing_ids(requested)
        if missing:
            raise_validation_error(
                f"Unknown user ids: {', '.join(str(user_id) for user_id in missing)}", "user_ids"
            )

        assigned = set(await self.assignee_repo.user_ids(feature.id))
        new_ids = [user_id for user_id in requested if user_id not in assigned]
        if not new_ids:
            raise_already_exists("Feature assignee")

        for user_id in new_ids:
            await self.integrity.add_unique(
                self.assignee_repo,
                {"feature_id": feature.id, "user_id": user_id},
                "Feature assignee"
            )
        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)

    async def remove_user(
        self,
        identity: Identity,
        feature_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> FeatureResponse:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.ASSIGN_FEATURE, feature)

        await self.assignee_repo.delete_many(feature_id=feature.id, user_id=user_id)
        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)

    # =========================================================================
    # COMMENTS
    # =========================================================================

    async def add_comment(self, identity: Identity, feature_id: uuid.UUID, text: str) -> FeatureResponse:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.COMMENT_FEATURE, feature)

        comment = FeatureComment(feature_id=feature.id, text=text, created_by=identity.id)
        await self.comment_repo.save(comment, commit=False)
        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)

    async def remove_comment(
        self,
        identity: Identity,
        feature_id: uuid.UUID,
        comment_id: uuid.UUID
    ) -> FeatureResponse:
        feature = await self.get_feature_or_404(feature_id)
        enforce(identity, Action.COMMENT_FEATURE, feature)

        comment = await self.comment_repo.find_one(id=comment_id, feature_id=feature.id)
        if not comment:
            raise_not_found("Comment", str(comment_id))

        await self.comment_repo.delete_obj(comment, commit=False)
        feature = await self.feature_repo.save(feature)
        return await self.expand(feature)
