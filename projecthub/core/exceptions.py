"""
Custom exceptions for ProjectHub API.
Every domain error carries the HTTP status it is reported with, so the
handlers in main.py can turn it into the uniform error envelope.
"""
from typing import List, Optional

from fastapi import status


class ProjectHubException(Exception):
    """Base exception for ProjectHub"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred", errors: Optional[List] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)


class UnauthenticatedError(ProjectHubException):
    """Authentication failed"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized request"):
        super().__init__(message)


class ForbiddenError(ProjectHubException):
    """Access denied"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class RoleInsufficientError(ForbiddenError):
    def __init__(self, message: str = "Your role does not allow this action"):
        super().__init__(message)


class CrossTenantDeniedError(ForbiddenError):
    def __init__(self, message: str = "You cannot access resources of another company"):
        super().__init__(message)


class NotOwnerError(ForbiddenError):
    def __init__(self, message: str = "Only the owner can perform this action"):
        super().__init__(message)


class ImmutableRoleError(ForbiddenError):
    def __init__(self, message: str = "The SUPERADMIN role cannot be assigned or changed"):
        super().__init__(message)


class CompanySuspendedError(ForbiddenError):
    def __init__(self, message: str = "Company is suspended"):
        super().__init__(message)


class NotFoundError(ProjectHubException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ConflictError(ProjectHubException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Request conflicts with the current state"):
        super().__init__(message)


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class SameRoleError(ConflictError):
    def __init__(self, role: str):
        super().__init__(f"User already has the role {role}")


class ValidationError(ProjectHubException):
    """Validation failed"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed", field: str = None, errors: Optional[List] = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message, errors)


class InvalidStateError(ProjectHubException):
    """The caller's account is not in a state that allows the operation"""
    status_code = status.HTTP_400_BAD_REQUEST


class InternalFailureError(ProjectHubException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)


class ExternalServiceError(ProjectHubException):
    """External service call failed"""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, service: str = "External service", message: str = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


# Helpers keep service call sites short
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    raise NotFoundError(resource, resource_id)


def raise_already_exists(resource: str = "Resource", field: str = None, value: str = None):
    raise AlreadyExistsError(resource, field, value)


def raise_unauthorized(message: str = "Unauthorized request"):
    raise UnauthenticatedError(message)


def raise_validation_error(message: str = "Validation failed", field: str = None):
    raise ValidationError(message, field)
