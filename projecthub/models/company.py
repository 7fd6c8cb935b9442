"""
Company (tenant) model and its membership link table.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class CompanyStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    ALL = [ACTIVE, INACTIVE, SUSPENDED]


class Company(SQLModel, table=True):
    """
    Company/Tenant model.
    The owner is the SUPERADMIN who created it and is always one of its users.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    email: str = Field(unique=True, index=True)
    domain: Optional[str] = None
    status: str = Field(default=CompanyStatus.ACTIVE, index=True)

    # Plain reference, resolved through UserRepository
    owner_id: uuid.UUID = Field(index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CompanyUser(SQLModel, table=True):
    """
    The company's users list. Membership only: deleting a row never deletes
    the user.
    """
    __tablename__ = "company_user"
    __table_args__ = (UniqueConstraint("company_id", "user_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    added_at: datetime = Field(default_factory=datetime.utcnow)
