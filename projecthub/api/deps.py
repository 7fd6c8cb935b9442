"""
API dependencies - shared across all routes.
"""
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.database import get_session
from projecthub.config import settings
from projecthub.core.identity import Identity, identity_from_user
from projecthub.models.user import User
from projecthub.services.auth_service import AuthService
from projecthub.services.integrations.oauth import OAuthRegistry

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# The header is optional, browsers send the accessToken cookie instead
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/users/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from the accessToken cookie or Bearer header."""
    token = request.cookies.get(ACCESS_COOKIE) or token
    return await AuthService(session).get_user_from_access_token(token)


async def get_identity(current_user: User = Depends(get_current_user)) -> Identity:
    return identity_from_user(current_user)


def get_oauth_registry(request: Request) -> OAuthRegistry:
    """Registry built at start-up, see main.lifespan."""
    return request.app.state.oauth_registry


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax"}
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400, **options)


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
