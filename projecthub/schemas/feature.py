"""
Feature schemas.
"""
import uuid
from typing import Optional, List, ClassVar, Set, Literal
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from projecthub.models.feature import FeatureStatus, FeaturePriority
from projecthub.schemas.common import PartialUpdate, UserSummary, ProjectSummary
from projecthub.schemas.project import to_naive_utc


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in FeatureStatus.ALL:
        raise ValueError("Invalid status value")
    return value


def _check_priority(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in FeaturePriority.ALL:
        raise ValueError("Invalid priority value")
    return value


class FeatureCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = ""
    priority: str = FeaturePriority.LOW
    status: str = FeatureStatus.PENDING
    project_id: uuid.UUID
    deadline: Optional[datetime] = None
    tags: List[str] = []

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "title": "Login page",
                "priority": "high",
                "project_id": "1b4e28ba-2fa1-11d2-883f-0016d3cca427",
                "tags": ["frontend"]
            }
        }

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: str) -> str:
        return _check_status(value)

    @field_validator("priority")
    @classmethod
    def priority_must_be_known(cls, value: str) -> str:
        return _check_priority(value)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class FeatureUpdate(PartialUpdate):
    nullable_fields: ClassVar[Set[str]] = {"description", "deadline"}

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    deadline: Optional[datetime] = None
    tags: Optional[List[str]] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_status(value)

    @field_validator("priority")
    @classmethod
    def priority_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_priority(value)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class FeatureListQuery(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    is_completed: Optional[bool] = None
    sort_by: Literal["created_at", "updated_at", "deadline", "priority", "status", "title"] = "created_at"
    order: Literal["asc", "desc"] = "desc"

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_status(value)

    @field_validator("priority")
    @classmethod
    def priority_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_priority(value)


class AssignUsersRequest(BaseModel):
    user_ids: List[uuid.UUID] = Field(min_length=1)


class RemoveUserRequest(BaseModel):
    user_id: uuid.UUID


class CommentCreate(BaseModel):
    text: str = Field(min_length=1)

    class Config:
        str_strip_whitespace = True


class CommentResponse(BaseModel):
    id: uuid.UUID
    text: str
    created_by: Optional[UserSummary] = None
    created_at: datetime


class FeatureResponse(BaseModel):
    """Feature with project, creator, assignees and comments expanded."""
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    project: Optional[ProjectSummary] = None
    project_id: uuid.UUID
    created_by: Optional[UserSummary] = None
    assigned_to: List[UserSummary] = []
    deadline: Optional[datetime] = None
    tags: List[str] = []
    comments: List[CommentResponse] = []
    is_completed: bool
    created_at: datetime
    updated_at: datetime
