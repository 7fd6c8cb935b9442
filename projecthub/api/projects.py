"""
Projects API routes.
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.database import get_session
from projecthub.core.identity import Identity
from projecthub.services.project_service import ProjectService
from projecthub.schemas.common import ApiResponse, api_response
from projecthub.schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectListQuery, MemberRequest, FeatureLinkRequest
)
from projecthub.api.deps import get_identity

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=ApiResponse, status_code=201)
async def create_project(
    request: ProjectCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).create_project(identity, request)
    return api_response({"project": project}, "Project created successfully", 201)


@router.get("/", response_model=ApiResponse)
async def list_projects(
    query: Annotated[ProjectListQuery, Query()],
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    """List projects with status filter, search and pagination."""
    data = await ProjectService(session).list_projects(identity, query)
    total = data["pagination"]["total"]
    return api_response(data, f"Found {total} project{'' if total == 1 else 's'}")


@router.get("/{project_id}", response_model=ApiResponse)
async def get_project(
    project_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).get_project(identity, project_id)
    return api_response({"project": project}, "Project fetched successfully")


@router.patch("/{project_id}", response_model=ApiResponse)
async def update_project(
    project_id: uuid.UUID,
    request: ProjectUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).update_project(identity, project_id, request)
    return api_response({"project": project}, "Project updated successfully")


@router.delete("/{project_id}", response_model=ApiResponse)
async def delete_project(
    project_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    """Delete a project and every feature it owns."""
    deleted_features = await ProjectService(session).delete_project(identity, project_id)
    return api_response(
        {"deleted_project": project_id, "deleted_features": deleted_features},
        "Project and all associated features deleted successfully"
    )


@router.patch("/{project_id}/toggle-visibility", response_model=ApiResponse)
async def toggle_visibility(
    project_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).toggle_visibility(identity, project_id)
    return api_response({"project": project}, "Project visibility toggled")


@router.post("/{project_id}/members", response_model=ApiResponse)
async def add_member(
    project_id: uuid.UUID,
    request: MemberRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).add_member(identity, project_id, request.user_id)
    return api_response({"project": project}, "Member added successfully")


@router.delete("/{project_id}/members", response_model=ApiResponse)
async def remove_member(
    project_id: uuid.UUID,
    request: MemberRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).remove_member(identity, project_id, request.user_id)
    return api_response({"project": project}, "Member removed successfully")


@router.post("/{project_id}/features", response_model=ApiResponse)
async def link_feature(
    project_id: uuid.UUID,
    request: FeatureLinkRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).link_feature(identity, project_id, request.feature_id)
    return api_response({"project": project}, "Feature assigned successfully")


@router.delete("/{project_id}/features", response_model=ApiResponse)
async def unlink_feature(
    project_id: uuid.UUID,
    request: FeatureLinkRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    project = await ProjectService(session).unlink_feature(identity, project_id, request.feature_id)
    return api_response({"project": project}, "Feature unassigned successfully")
