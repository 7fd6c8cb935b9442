"""
Authentication service - handles all auth operations.
"""
import uuid
import logging
from typing import Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub.config import settings
from projecthub.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
    hash_token,
    generate_temporary_token,
    generate_random_password,
)
from projecthub.core.exceptions import (
    ConflictError,
    raise_unauthorized,
    raise_validation_error,
)
from projecthub.models.user import User, UserRole, LoginType
from projecthub.repositories.user_repo import UserRepository
from projecthub.schemas.user import RegisterRequest, LoginResponse, UserResponse
from projecthub.services.email_service import get_email_service
from projecthub.services.integrations.oauth import OAuthProfile
from projecthub.services.integrity_service import IntegrityService

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.integrity = IntegrityService(session)
        self.email_service = get_email_service()

    # =========================================================================
    # TOKENS
    # =========================================================================

    async def issue_tokens(self, user: User) -> Tuple[str, str]:
        """Create an access/refresh pair and remember the refresh token."""
        token_data = {
            "sub": user.email,
            "user_id": str(user.id),
            "role": user.role,
            "company_id": str(user.company_id) if user.company_id else None
        }
        access_token = create_access_token(token_data)
        refresh_token = create_refresh_token({"user_id": str(user.id)})

        user.refresh_token = refresh_token
        await self.user_repo.save(user)
        return access_token, refresh_token

    async def get_user_from_access_token(self, token: Optional[str]) -> User:
        """Resolve the user behind an access token; 401 if anything is off."""
        if not token:
            raise_unauthorized()
        payload = verify_token(token, "access")
        if not payload:
            raise_unauthorized("Invalid access token")
        try:
            user_id = uuid.UUID(str(payload.get("user_id")))
        except ValueError:
            raise_unauthorized("Invalid access token")

        user = await self.user_repo.get(user_id)
        if not user:
            raise_unauthorized("Invalid access token")
        return user

    # =========================================================================
    # REGISTRATION & LOGIN
    # =========================================================================

    def _verification_link(self, token: str) -> str:
        return f"{settings.BACKEND_URL}{settings.API_PREFIX}/users/verify-email/{token}"

    def _reset_link(self, token: str) -> str:
        return f"{settings.FRONTEND_URL}/reset-password/{token}"

    async def _send_verification(self, user: User) -> str:
        unhashed, hashed, expiry = generate_temporary_token()
        user.email_verification_token = hashed
        user.email_verification_expiry = expiry
        await self.user_repo.save(user)

        await self.email_service.send_verification_email(
            to=user.email,
            name=user.name,
            verify_link=self._verification_link(unhashed)
        )
        return unhashed

    async def register(self, data: RegisterRequest) -> dict:
        """Register a new user. Self registration always yields role USER."""
        user = await self.integrity.create_user({
            "name": data.name,
            "email": data.email,
            "phone_number": data.phone_number,
            "password_hash": get_password_hash(data.password),
            "role": UserRole.USER,
            "login_type": LoginType.EMAIL_PASSWORD,
        })
        verification_token = await self._send_verification(user)
        logger.info("User %s registered", user.id)

        response = {"user": UserResponse.model_validate(user)}

        # In DEV_MODE, include the token for easy testing
        if settings.DEV_MODE:
            response["_dev_verification_token"] = verification_token
        return response

    async def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate user and return tokens."""
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise_unauthorized("Incorrect email or password")

        if user.login_type != LoginType.EMAIL_PASSWORD:
            raise_validation_error(
                f"You have previously registered using {user.login_type.lower()}. "
                f"Please use the {user.login_type.lower()} login option to access your account."
            )

        if not verify_password(password, user.password_hash):
            raise_unauthorized("Incorrect email or password")

        access_token, refresh_token = await self.issue_tokens(user)
        return LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token
        )

    async def logout(self, user: User) -> None:
        user.refresh_token = None
        await self.user_repo.save(user)

    async def refresh_access_token(self, refresh_token: Optional[str]) -> dict:
        """Rotate both tokens. The presented token must be the one on record."""
        if not refresh_token:
            raise_unauthorized()

        payload = verify_token(refresh_token, "refresh")
        if not payload:
            raise_unauthorized("Invalid refresh token")

        try:
            user = await self.user_repo.get(uuid.UUID(str(payload.get("user_id"))))
        except ValueError:
            user = None
        if not user:
            raise_unauthorized("Invalid refresh token")
        if user.refresh_token != refresh_token:
            raise_unauthorized("Refresh token is expired or used")

        access_token, new_refresh_token = await self.issue_tokens(user)
        return {"access_token": access_token, "refresh_token": new_refresh_token}

    # =========================================================================
    # EMAIL VERIFICATION
    # =========================================================================

    async def verify_email(self, token: str) -> bool:
        """Verify email using the mailed token."""
        user = await self.user_repo.get_by_verification_token(hash_token(token))
        if not user:
            raise_validation_error("Token is invalid or expired")

        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expiry = None
        await self.user_repo.save(user)
        return True

    async def resend_verification(self, user: User) -> dict:
        if user.is_email_verified:
            raise ConflictError("Email is already verified!")

        verification_token = await self._send_verification(user)
        response = {}
        if settings.DEV_MODE:
            response["_dev_verification_token"] = verification_token
        return response

    # =========================================================================
    # PASSWORDS
    # =========================================================================

    async def forgot_password(self, email: str) -> dict:
        """Initiate password reset flow. The response never reveals whether the email exists."""
        response = {}

        user = await self.user_repo.get_by_email(email)
        if not user or user.login_type != LoginType.EMAIL_PASSWORD:
            return response

        unhashed, hashed, expiry = generate_temporary_token()
        user.forgot_password_token = hashed
        user.forgot_password_expiry = expiry
        await self.user_repo.save(user)

        await self.email_service.send_password_reset_email(
            to=user.email,
            name=user.name,
            reset_link=self._reset_link(unhashed)
        )

        if settings.DEV_MODE:
            response["_dev_reset_token"] = unhashed
        return response

    async def reset_password(self, token: str, new_password: str) -> bool:
        """Reset password using the mailed token."""
        user = await self.user_repo.get_by_reset_token(hash_token(token))
        if not user:
            raise_validation_error("Token is invalid or expired")

        user.password_hash = get_password_hash(new_password)
        user.forgot_password_token = None
        user.forgot_password_expiry = None
        # Sessions opened with the old password end here
        user.refresh_token = None
        await self.user_repo.save(user)
        return True

    async def change_password(self, user: User, old_password: str, new_password: str) -> bool:
        """Change password for logged-in user."""
        if not verify_password(old_password, user.password_hash):
            raise_validation_error("Invalid old password")

        user.password_hash = get_password_hash(new_password)
        await self.user_repo.save(user)
        return True

    # =========================================================================
    # SOCIAL LOGIN
    # =========================================================================

    async def social_login(self, profile: OAuthProfile, login_type: str) -> Tuple[User, str, str]:
        """Find or create the user behind a social account and log them in."""
        user = await self.user_repo.get_by_email(profile.email)

        if user and user.login_type != login_type:
            raise_validation_error(
                f"You have previously registered using {user.login_type.lower()}. "
                f"Please use the {user.login_type.lower()} login option to access your account."
            )

        if not user:
            user = await self.integrity.create_user({
                "name": profile.name,
                "email": profile.email,
                "avatar_url": profile.avatar_url,
                "password_hash": get_password_hash(generate_random_password()),
                "role": UserRole.USER,
                "login_type": login_type,
                "is_email_verified": True,
            })
            logger.info("User %s created through %s login", user.id, login_type.lower())

        access_token, refresh_token = await self.issue_tokens(user)
        return user, access_token, refresh_token

