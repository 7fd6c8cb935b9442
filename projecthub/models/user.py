"""
User model.
A user belongs to at most one company; the role decides what the user may do
inside it.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class UserRole:
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    USER = "USER"

    ALL = [SUPERADMIN, ADMIN, USER]
    # Roles that can be handed out through the change-role and create-user paths
    ASSIGNABLE = [ADMIN, USER]


class LoginType:
    EMAIL_PASSWORD = "EMAIL_PASSWORD"
    GOOGLE = "GOOGLE"
    GITHUB = "GITHUB"

    ALL = [EMAIL_PASSWORD, GOOGLE, GITHUB]


class User(SQLModel, table=True):
    """
    User model with authentication and profile info.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Profile
    name: str = Field(default="")
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True)
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None

    # Tenancy
    company_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="company.id", index=True, ondelete="SET NULL"
    )
    role: str = Field(default=UserRole.USER, index=True)

    # Auth
    password_hash: str
    login_type: str = Field(default=LoginType.EMAIL_PASSWORD)
    is_email_verified: bool = Field(default=False)
    refresh_token: Optional[str] = None

    # Temporary tokens (stored hashed)
    email_verification_token: Optional[str] = Field(default=None, index=True)
    email_verification_expiry: Optional[datetime] = None
    forgot_password_token: Optional[str] = Field(default=None, index=True)
    forgot_password_expiry: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
