"""
Common schemas used across multiple endpoints.
"""
import uuid
from typing import Any, ClassVar, Optional, Set

from pydantic import BaseModel, Field, model_validator


class ApiResponse(BaseModel):
    """Success envelope returned by every endpoint."""
    status_code: int = Field(default=200, alias="statusCode")
    data: Any = None
    message: str = "Success"
    success: bool = True

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"statusCode": 200, "data": {}, "message": "Success", "success": True}
        }


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> ApiResponse:
    return ApiResponse(status_code=status_code, data=data, message=message)


class ErrorResponse(BaseModel):
    """Error envelope."""
    status_code: int = Field(alias="statusCode")
    message: str
    success: bool = False
    errors: list = []

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"statusCode": 404, "message": "Project not found", "success": False, "errors": []}
        }


class PartialUpdate(BaseModel):
    """
    Base for PATCH bodies.

    Only fields present in the request are applied. An explicit null is
    accepted for the fields listed in nullable_fields and rejected for the rest.
    """
    nullable_fields: ClassVar[Set[str]] = set()

    class Config:
        str_strip_whitespace = True

    @model_validator(mode="after")
    def reject_null_for_required_fields(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.nullable_fields:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class UserSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str


class ProjectSummary(BaseModel):
    id: uuid.UUID
    name: str


class FeatureSummary(BaseModel):
    id: uuid.UUID
    title: str
    status: str
    priority: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
    database: Optional[str] = None
