"""
Authorization policy.

can_perform() is a pure decision function: it only looks at the identity, the
already loaded target and any extra context the caller passes in. Services
call enforce(), which raises the matching 403/409 exception on deny.
"""
from dataclasses import dataclass
from typing import Any, Collection, Optional

from projecthub.core.exceptions import (
    CompanySuspendedError,
    CrossTenantDeniedError,
    ImmutableRoleError,
    NotOwnerError,
    ProjectHubException,
    RoleInsufficientError,
    SameRoleError,
)
from projecthub.core.identity import Identity
from projecthub.models.company import CompanyStatus
from projecthub.models.user import UserRole


class Action:
    # Companies
    CREATE_COMPANY = "create_company"
    READ_COMPANY = "read_company"
    LIST_COMPANIES = "list_companies"
    UPDATE_COMPANY = "update_company"
    DELETE_COMPANY = "delete_company"
    MANAGE_COMPANY_USERS = "manage_company_users"  # role gate, checked before tenancy
    CREATE_COMPANY_USER = "create_company_user"
    CHANGE_USER_ROLE = "change_user_role"
    LIST_COMPANY_USERS = "list_company_users"

    # Projects
    CREATE_PROJECT = "create_project"
    READ_PROJECT = "read_project"
    UPDATE_PROJECT = "update_project"
    DELETE_PROJECT = "delete_project"
    MANAGE_PROJECT = "manage_project"  # visibility, members, feature links

    # Features
    CREATE_FEATURE = "create_feature"
    READ_FEATURE = "read_feature"
    UPDATE_FEATURE = "update_feature"
    DELETE_FEATURE = "delete_feature"
    COMMENT_FEATURE = "comment_feature"
    ASSIGN_FEATURE = "assign_feature"
    TOGGLE_FEATURE = "toggle_feature"


class DenyReason:
    NOT_OWNER = "NotOwner"
    ROLE_INSUFFICIENT = "RoleInsufficient"
    COMPANY_SUSPENDED = "CompanySuspended"
    CROSS_TENANT_DENIED = "CrossTenantDenied"
    IMMUTABLE_ROLE = "ImmutableRole"
    SAME_ROLE = "SameRole"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str, message: Optional[str] = None) -> "Decision":
        return cls(False, reason, message)


# Actions any authenticated identity may perform
_OPEN_ACTIONS = {
    Action.READ_COMPANY,
    Action.CREATE_PROJECT,
    Action.READ_PROJECT,
    Action.CREATE_FEATURE,
    Action.READ_FEATURE,
    Action.UPDATE_FEATURE,
    Action.DELETE_FEATURE,
    Action.COMMENT_FEATURE,
    Action.ASSIGN_FEATURE,
    Action.TOGGLE_FEATURE,
}


def _superadmin_only(identity: Identity) -> Decision:
    if identity.is_superadmin:
        return Decision.allow()
    return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "Only a SUPERADMIN can perform this action")


def _company_owner(identity: Identity, company) -> Decision:
    if company.owner_id == identity.id or identity.is_superadmin:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_OWNER, "You are not authorized to modify this company")


def _project_owner(identity: Identity, project) -> Decision:
    if project.created_by == identity.id or identity.is_superadmin:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_OWNER, "Only the project creator can modify this project")


def _company_manager(identity: Identity, message: str) -> Decision:
    if identity.role in (UserRole.ADMIN, UserRole.SUPERADMIN):
        return Decision.allow()
    return Decision.deny(DenyReason.ROLE_INSUFFICIENT, message)


def _create_company_user(identity: Identity, company) -> Decision:
    decision = _company_manager(identity, "Only an ADMIN or SUPERADMIN can create users")
    if not decision.allowed:
        return decision
    if identity.is_admin and company.id != identity.company_id:
        return Decision.deny(DenyReason.CROSS_TENANT_DENIED)
    if company.status == CompanyStatus.SUSPENDED:
        return Decision.deny(DenyReason.COMPANY_SUSPENDED, "Cannot create users in a suspended company")
    return Decision.allow()


def _change_user_role(identity: Identity, target, new_role: str) -> Decision:
    if new_role == UserRole.SUPERADMIN or target.role == UserRole.SUPERADMIN:
        return Decision.deny(DenyReason.IMMUTABLE_ROLE)
    if not identity.is_admin:
        return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "Only an ADMIN can change user roles")
    if target.company_id != identity.company_id:
        return Decision.deny(DenyReason.CROSS_TENANT_DENIED)
    if new_role == target.role:
        return Decision.deny(DenyReason.SAME_ROLE, new_role)
    return Decision.allow()


def _list_company_users(identity: Identity, company, member_ids: Collection) -> Decision:
    if identity.is_superadmin:
        return Decision.allow()
    if not identity.is_admin:
        return Decision.deny(DenyReason.ROLE_INSUFFICIENT, "Only an ADMIN or SUPERADMIN can list company users")
    # The token's company must really be this admin's company
    if company.id != identity.company_id:
        return Decision.deny(DenyReason.CROSS_TENANT_DENIED)
    if company.owner_id != identity.id and identity.id not in member_ids:
        return Decision.deny(DenyReason.CROSS_TENANT_DENIED, "You are not a member of this company")
    return Decision.allow()


def can_perform(identity: Identity, action: str, target: Any = None, **context) -> Decision:
    """
    Decide whether identity may perform action on target.

    Context keys:
        new_role: CHANGE_USER_ROLE
        member_ids: LIST_COMPANY_USERS, ids of the company's users list
    """
    if action in _OPEN_ACTIONS:
        return Decision.allow()

    if action in (Action.CREATE_COMPANY, Action.LIST_COMPANIES):
        return _superadmin_only(identity)
    if action in (Action.UPDATE_COMPANY, Action.DELETE_COMPANY):
        return _company_owner(identity, target)
    if action == Action.MANAGE_COMPANY_USERS:
        return _company_manager(identity, "Only an ADMIN or SUPERADMIN can manage company users")
    if action == Action.CREATE_COMPANY_USER:
        return _create_company_user(identity, target)
    if action == Action.CHANGE_USER_ROLE:
        return _change_user_role(identity, target, context["new_role"])
    if action == Action.LIST_COMPANY_USERS:
        return _list_company_users(identity, target, context.get("member_ids", ()))
    if action in (Action.UPDATE_PROJECT, Action.DELETE_PROJECT, Action.MANAGE_PROJECT):
        return _project_owner(identity, target)

    raise ValueError(f"Unknown action: {action}")


_REASON_ERRORS = {
    DenyReason.NOT_OWNER: NotOwnerError,
    DenyReason.ROLE_INSUFFICIENT: RoleInsufficientError,
    DenyReason.COMPANY_SUSPENDED: CompanySuspendedError,
    DenyReason.CROSS_TENANT_DENIED: CrossTenantDeniedError,
    DenyReason.IMMUTABLE_ROLE: ImmutableRoleError,
}


def error_for(decision: Decision) -> ProjectHubException:
    if decision.reason == DenyReason.SAME_ROLE:
        return SameRoleError(decision.message)
    error_cls = _REASON_ERRORS[decision.reason]
    return error_cls(decision.message) if decision.message else error_cls()


def enforce(identity: Identity, action: str, target: Any = None, **context) -> None:
    """Raise the exception matching the deny reason, if any."""
    decision = can_perform(identity, action, target, **context)
    if not decision.allowed:
        raise error_for(decision)
