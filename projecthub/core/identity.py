"""
Identity of the authenticated caller.
Every protected service method receives one of these instead of a User row.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from projecthub.core.exceptions import raise_unauthorized
from projecthub.models.user import User, UserRole


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    role: str
    company_id: Optional[uuid.UUID] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.SUPERADMIN

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def identity_from_user(user: Optional[User]) -> Identity:
    if user is None:
        raise_unauthorized()
    return Identity(id=user.id, role=user.role, company_id=user.company_id)
