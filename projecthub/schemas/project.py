"""
Project schemas.
"""
import uuid
from typing import Optional, List, ClassVar, Set
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from projecthub.models.project import ProjectStatus
from projecthub.core.pagination import PaginationParams
from projecthub.schemas.common import PartialUpdate, UserSummary, FeatureSummary


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in ProjectStatus.ALL:
        raise ValueError("Invalid project status")
    return value


class ProjectCreate(BaseModel):
    """Create a project in the caller's company."""
    name: str = Field(min_length=1)
    description: Optional[str] = ""
    deadline: Optional[datetime] = None
    members: List[uuid.UUID] = []

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "name": "Website relaunch",
                "description": "New marketing site",
                "deadline": "2030-01-31",
                "members": []
            }
        }

    @field_validator("deadline")
    @classmethod
    def deadline_not_in_past(cls, value: Optional[datetime]) -> Optional[datetime]:
        value = to_naive_utc(value)
        if value is not None and value.date() < datetime.utcnow().date():
            raise ValueError("Deadline must be today or a future date")
        return value


class ProjectUpdate(PartialUpdate):
    nullable_fields: ClassVar[Set[str]] = {"description", "deadline"}

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_status(value)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class ProjectListQuery(PaginationParams):
    status: Optional[str] = None
    search: Optional[str] = None
    company_id: Optional[uuid.UUID] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        return _check_status(value)


class MemberRequest(BaseModel):
    user_id: uuid.UUID


class FeatureLinkRequest(BaseModel):
    feature_id: uuid.UUID


class ProjectResponse(BaseModel):
    """Project with creator, members and features expanded."""
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    company_id: Optional[uuid.UUID] = None
    created_by: Optional[UserSummary] = None
    members: List[UserSummary] = []
    features: List[FeatureSummary] = []
    status: str
    deadline: Optional[datetime] = None
    is_shown: bool
    created_at: datetime
    updated_at: datetime
