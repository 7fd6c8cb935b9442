"""
User authentication API routes.
"""
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.config import settings
from projecthub.database import get_session
from projecthub.core.exceptions import raise_validation_error
from projecthub.services.auth_service import AuthService
from projecthub.services.integrations.oauth import OAuthRegistry
from projecthub.schemas.common import ApiResponse, api_response
from projecthub.schemas.user import (
    RegisterRequest, LoginRequest, RefreshRequest, ForgotPasswordRequest,
    ResetPasswordRequest, ChangePasswordRequest, UserResponse
)
from projecthub.api.deps import (
    REFRESH_COOKIE, get_current_user, get_oauth_registry, set_auth_cookies, clear_auth_cookies
)
from projecthub.models.user import User

router = APIRouter(prefix="/users", tags=["users"])

OAUTH_STATE_COOKIE = "oauthState"


@router.post("/register", response_model=ApiResponse, status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session)
):
    """Register a new user and send the verification email."""
    auth_service = AuthService(session)
    # In DEV_MODE, the data also includes _dev_verification_token for testing
    data = await auth_service.register(request)
    return api_response(
        data,
        "Users registered successfully and verification email has been sent on your email.",
        201
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session)
):
    """Login and get access + refresh tokens (also set as cookies)."""
    auth_service = AuthService(session)
    data = await auth_service.login(request.email, request.password)
    set_auth_cookies(response, data.access_token, data.refresh_token)
    return api_response(data, "User logged in successfully")


@router.post("/logout", response_model=ApiResponse)
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await AuthService(session).logout(current_user)
    clear_auth_cookies(response)
    return api_response({}, "User logged out")


@router.post("/refresh-token", response_model=ApiResponse)
async def refresh_token(
    http_request: Request,
    response: Response,
    request: Optional[RefreshRequest] = None,
    session: AsyncSession = Depends(get_session)
):
    """Rotate tokens using the refreshToken cookie or the body."""
    token = http_request.cookies.get(REFRESH_COOKIE) or (request.refresh_token if request else None)
    data = await AuthService(session).refresh_access_token(token)
    set_auth_cookies(response, data["access_token"], data["refresh_token"])
    return api_response(data, "Access token refreshed")


@router.get("/verify-email/{verification_token}", response_model=ApiResponse)
async def verify_email(
    verification_token: str,
    session: AsyncSession = Depends(get_session)
):
    await AuthService(session).verify_email(verification_token)
    return api_response({"is_email_verified": True}, "Email is verified")


@router.post("/resend-email-verification", response_model=ApiResponse)
async def resend_email_verification(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    data = await AuthService(session).resend_verification(current_user)
    return api_response(data, "Mail has been sent to your mail ID")


@router.post("/forgot-password", response_model=ApiResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session)
):
    """Request password reset. Same answer whether or not the account exists."""
    data = await AuthService(session).forgot_password(request.email)
    return api_response(data, "If the email exists, a reset link has been sent")


@router.post("/reset-password/{reset_token}", response_model=ApiResponse)
async def reset_password(
    reset_token: str,
    request: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session)
):
    await AuthService(session).reset_password(reset_token, request.new_password)
    return api_response({}, "Password reset successfully")


@router.get("/current-user", response_model=ApiResponse)
async def current_user(current_user: User = Depends(get_current_user)):
    return api_response(UserResponse.model_validate(current_user), "Current user fetched successfully")


@router.post("/change-password", response_model=ApiResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await AuthService(session).change_password(current_user, request.old_password, request.new_password)
    return api_response({}, "Password changed successfully")


# =============================================================================
# SOCIAL LOGIN
# =============================================================================

@router.get("/{provider}")
async def social_login(
    provider: str,
    registry: OAuthRegistry = Depends(get_oauth_registry)
):
    """Redirect to the provider's consent page."""
    strategy = registry.get(provider)
    state = secrets.token_urlsafe(16)

    redirect = RedirectResponse(strategy.get_auth_url(state))
    redirect.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return redirect


@router.get("/{provider}/callback")
async def social_login_callback(
    provider: str,
    request: Request,
    code: str = "",
    state: str = "",
    registry: OAuthRegistry = Depends(get_oauth_registry),
    session: AsyncSession = Depends(get_session)
):
    """Finish the social login and hand the tokens to the client app."""
    strategy = registry.get(provider)
    if not code or not state or state != request.cookies.get(OAUTH_STATE_COOKIE):
        raise_validation_error("Invalid OAuth callback")

    profile = await strategy.authenticate(code)
    _, access_token, refresh_token = await AuthService(session).social_login(profile, strategy.login_type)

    query = urlencode({"accessToken": access_token, "refreshToken": refresh_token})
    redirect = RedirectResponse(f"{settings.CLIENT_SSO_REDIRECT_URL}?{query}")
    set_auth_cookies(redirect, access_token, refresh_token)
    redirect.delete_cookie(OAUTH_STATE_COOKIE)
    return redirect
