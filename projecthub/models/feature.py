"""
Feature (work item) model with assignees and comments.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field


class FeatureStatus:
    PENDING = "pending"
    WORKING = "working"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    ALL = [PENDING, WORKING, COMPLETED, BLOCKED]


class FeaturePriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    ALL = [LOW, MEDIUM, HIGH, URGENT]


class Feature(SQLModel, table=True):
    """
    Feature entity.
    is_completed mirrors status == "completed" and is never set on its own.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")

    title: str
    description: Optional[str] = Field(default="")
    status: str = Field(default=FeatureStatus.PENDING, index=True)
    priority: str = Field(default=FeaturePriority.LOW, index=True)
    deadline: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_completed: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def sync_completion(self) -> None:
        self.is_completed = self.status == FeatureStatus.COMPLETED


class FeatureAssignee(SQLModel, table=True):
    __tablename__ = "feature_assignee"
    __table_args__ = (UniqueConstraint("feature_id", "user_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    feature_id: uuid.UUID = Field(foreign_key="feature.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    assigned_at: datetime = Field(default_factory=datetime.utcnow)


class FeatureComment(SQLModel, table=True):
    __tablename__ = "feature_comment"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    feature_id: uuid.UUID = Field(foreign_key="feature.id", index=True)
    text: str
    created_by: uuid.UUID = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
