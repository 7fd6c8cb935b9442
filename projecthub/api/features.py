"""
Features API routes.
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.database import get_session
from projecthub.core.identity import Identity
from projecthub.services.feature_service import FeatureService
from projecthub.schemas.common import ApiResponse, api_response
from projecthub.schemas.feature import (
    FeatureCreate, FeatureUpdate, FeatureListQuery,
    AssignUsersRequest, RemoveUserRequest, CommentCreate
)
from projecthub.api.deps import get_identity

router = APIRouter(prefix="/features", tags=["features"])


@router.post("/", response_model=ApiResponse, status_code=201)
async def create_feature(
    request: FeatureCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).create_feature(identity, request)
    return api_response({"feature": feature}, "Feature created successfully", 201)


@router.get("/project/{project_id}", response_model=ApiResponse)
async def list_project_features(
    project_id: uuid.UUID,
    query: Annotated[FeatureListQuery, Query()],
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    features = await FeatureService(session).list_by_project(identity, project_id, query)
    return api_response({"features": features}, "Features fetched successfully")


@router.get("/{feature_id}", response_model=ApiResponse)
async def get_feature(
    feature_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).get_feature(identity, feature_id)
    return api_response({"feature": feature}, "Feature fetched successfully")


@router.patch("/{feature_id}", response_model=ApiResponse)
async def update_feature(
    feature_id: uuid.UUID,
    request: FeatureUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).update_feature(identity, feature_id, request)
    return api_response({"feature": feature}, "Feature updated successfully")


@router.delete("/{feature_id}", response_model=ApiResponse)
async def delete_feature(
    feature_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    await FeatureService(session).delete_feature(identity, feature_id)
    return api_response({}, "Feature deleted successfully")


@router.post("/{feature_id}/assign-users", response_model=ApiResponse)
async def assign_users(
    feature_id: uuid.UUID,
    request: AssignUsersRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).assign_users(identity, feature_id, request.user_ids)
    return api_response({"feature": feature}, "Users assigned successfully")


@router.post("/{feature_id}/remove-user", response_model=ApiResponse)
async def remove_user(
    feature_id: uuid.UUID,
    request: RemoveUserRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).remove_user(identity, feature_id, request.user_id)
    return api_response({"feature": feature}, "User removed successfully")


@router.post("/{feature_id}/comments", response_model=ApiResponse, status_code=201)
async def add_comment(
    feature_id: uuid.UUID,
    request: CommentCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).add_comment(identity, feature_id, request.text)
    return api_response({"feature": feature}, "Comment added successfully", 201)


@router.delete("/{feature_id}/comments/{comment_id}", response_model=ApiResponse)
async def remove_comment(
    feature_id: uuid.UUID,
    comment_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).remove_comment(identity, feature_id, comment_id)
    return api_response({"feature": feature}, "Comment removed successfully")


@router.patch("/{feature_id}/toggle-completion", response_model=ApiResponse)
async def toggle_completion(
    feature_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    feature = await FeatureService(session).toggle_completion(identity, feature_id)
    return api_response({"feature": feature}, "Feature completion toggled")
