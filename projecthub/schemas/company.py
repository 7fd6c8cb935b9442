"""
Company schemas.
"""
import uuid
from typing import Optional, List, ClassVar, Set
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from projecthub.models.company import CompanyStatus
from projecthub.schemas.common import PartialUpdate, UserSummary


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    domain: Optional[str] = None

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {"name": "Acme", "email": "a@acme.com", "domain": "acme.com"}
        }


class CompanyUpdate(PartialUpdate):
    nullable_fields: ClassVar[Set[str]] = {"domain"}

    name: Optional[str] = Field(default=None, min_length=1)
    domain: Optional[str] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in CompanyStatus.ALL:
            raise ValueError("Invalid company status")
        return value


class CompanyResponse(BaseModel):
    """Company with owner and users expanded."""
    id: uuid.UUID
    name: str
    email: str
    domain: Optional[str] = None
    status: str
    owner: Optional[UserSummary] = None
    users: List[UserSummary] = []
    created_at: datetime
    updated_at: datetime
