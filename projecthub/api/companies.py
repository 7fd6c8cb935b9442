"""
Companies API routes.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.database import get_session
from projecthub.core.identity import Identity
from projecthub.services.company_service import CompanyService
from projecthub.services.user_service import UserService
from projecthub.schemas.common import ApiResponse, api_response
from projecthub.schemas.company import CompanyCreate, CompanyUpdate
from projecthub.schemas.user import CompanyUserCreate, ChangeRoleRequest
from projecthub.api.deps import get_identity

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("/", response_model=ApiResponse, status_code=201)
async def create_company(
    request: CompanyCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    """Create a company (SUPERADMIN). The caller becomes owner and first user."""
    company = await CompanyService(session).create_company(identity, request)
    return api_response({"company": company}, "Company created successfully", 201)


@router.get("/", response_model=ApiResponse)
async def list_companies(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    companies = await CompanyService(session).list_companies(identity)
    return api_response({"companies": companies}, "Companies fetched successfully")


# Static paths go before /{company_id}

@router.get("/get-users", response_model=ApiResponse)
async def get_company_users(
    company_id: Optional[uuid.UUID] = Query(None),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    """List the users of the caller's company (any company for SUPERADMIN)."""
    users = await UserService(session).list_company_users(identity, company_id)
    return api_response({"users": users}, "Users fetched successfully")


@router.post("/create-user", response_model=ApiResponse, status_code=201)
async def create_company_user(
    request: CompanyUserCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    user = await UserService(session).create_company_user(identity, request)
    return api_response({"user": user}, "User created successfully", 201)


@router.patch("/{user_id}/change-role", response_model=ApiResponse)
async def change_user_role(
    user_id: uuid.UUID,
    request: ChangeRoleRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    user = await UserService(session).change_role(identity, user_id, request.role)
    return api_response({"user": user}, "Role changed for the user")


@router.get("/{company_id}", response_model=ApiResponse)
async def get_company(
    company_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    company = await CompanyService(session).get_company(identity, company_id)
    return api_response({"company": company}, "Company fetched successfully")


@router.patch("/{company_id}", response_model=ApiResponse)
async def update_company(
    company_id: uuid.UUID,
    request: CompanyUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    company = await CompanyService(session).update_company(identity, company_id, request)
    return api_response({"company": company}, "Company updated successfully")


@router.delete("/{company_id}", response_model=ApiResponse)
async def delete_company(
    company_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session)
):
    await CompanyService(session).delete_company(identity, company_id)
    return api_response({}, "Company deleted successfully")
