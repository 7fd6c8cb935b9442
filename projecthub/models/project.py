"""
Project model plus the member and feature link tables.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class ProjectStatus:
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"

    ALL = [DRAFT, ACTIVE, ARCHIVED, COMPLETED]


class Project(SQLModel, table=True):
    """
    Project entity. Owns its features: deleting a project deletes them.
    The creator is an implicit member and is not stored in project_member.
    """
    __table_args__ = (UniqueConstraint("name", "company_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = Field(default="")
    company_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="company.id", index=True, ondelete="SET NULL"
    )
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)

    status: str = Field(default=ProjectStatus.ACTIVE, index=True)
    deadline: Optional[datetime] = None
    is_shown: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_member"
    __table_args__ = (UniqueConstraint("project_id", "user_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    added_by: Optional[uuid.UUID] = None
    added_at: datetime = Field(default_factory=datetime.utcnow)


class ProjectFeature(SQLModel, table=True):
    """
    The project's features list. Kept separately from Feature.project_id so a
    feature can be linked and unlinked without moving it.
    """
    __tablename__ = "project_feature"
    __table_args__ = (UniqueConstraint("project_id", "feature_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True)
    feature_id: uuid.UUID = Field(foreign_key="feature.id", index=True)
    added_at: datetime = Field(default_factory=datetime.utcnow)
