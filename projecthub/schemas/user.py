"""
User and authentication schemas.
"""
import uuid
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from projecthub.models.user import UserRole


class UserResponse(BaseModel):
    """User response. Never carries password or token fields."""
    id: uuid.UUID
    name: str
    email: str
    username: str
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    company_id: Optional[uuid.UUID] = None
    role: str
    login_type: str
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RegisterRequest(BaseModel):
    """Self registration. The role is always USER."""
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    phone_number: Optional[str] = None

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "name": "Jane Doe",
                "email": "jane@acme.com",
                "password": "securepassword123"
            }
        }


class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str = Field(min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane@acme.com",
                "password": "securepassword123"
            }
        }


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str


class RefreshRequest(BaseModel):
    """Refresh token request (falls back to the refreshToken cookie)."""
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    """Change password for logged-in user."""
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)


class CompanyUserCreate(BaseModel):
    """
    Create a user inside a company.
    company_id is only honoured for SUPERADMIN callers.
    """
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    role: str = UserRole.USER
    phone_number: Optional[str] = None
    company_id: Optional[uuid.UUID] = None

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "name": "New Hire",
                "email": "new@acme.com",
                "password": "changeme123",
                "role": "USER"
            }
        }

    @field_validator("role")
    @classmethod
    def role_must_be_assignable(cls, value: str) -> str:
        if value not in UserRole.ASSIGNABLE:
            raise ValueError(f"role must be one of {UserRole.ASSIGNABLE}")
        return value


class ChangeRoleRequest(BaseModel):
    # Any known role is accepted here; the policy rejects SUPERADMIN
    role: str

    @field_validator("role")
    @classmethod
    def role_must_exist(cls, value: str) -> str:
        if value not in UserRole.ALL:
            raise ValueError("Invalid user role")
        return value
