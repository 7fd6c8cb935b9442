"""Tests for the authorization policy."""
import uuid

import pytest

from projecthub.core.exceptions import (
    CompanySuspendedError,
    CrossTenantDeniedError,
    ImmutableRoleError,
    NotOwnerError,
    RoleInsufficientError,
    SameRoleError,
)
from projecthub.core.identity import Identity
from projecthub.core.policy import Action, DenyReason, can_perform, enforce
from projecthub.models.company import Company, CompanyStatus
from projecthub.models.project import Project
from projecthub.models.user import User, UserRole


COMPANY_ID = uuid.uuid4()
OTHER_COMPANY_ID = uuid.uuid4()


def identity(role=UserRole.USER, company_id=COMPANY_ID):
    return Identity(id=uuid.uuid4(), role=role, company_id=company_id)


def company(owner_id=None, company_id=COMPANY_ID, status=CompanyStatus.ACTIVE):
    return Company(
        id=company_id, name="Acme", email="hello@acme.io",
        owner_id=owner_id or uuid.uuid4(), status=status
    )


def user(role=UserRole.USER, company_id=COMPANY_ID):
    return User(
        id=uuid.uuid4(), email="u@acme.io", username="u", password_hash="x",
        role=role, company_id=company_id
    )


class TestCompanyActions:
    def test_only_superadmin_creates_companies(self):
        assert can_perform(identity(UserRole.SUPERADMIN), Action.CREATE_COMPANY).allowed

        decision = can_perform(identity(UserRole.ADMIN), Action.CREATE_COMPANY)
        assert not decision.allowed
        assert decision.reason == DenyReason.ROLE_INSUFFICIENT

    def test_only_owner_updates_company(self):
        caller = identity(UserRole.ADMIN)
        assert can_perform(caller, Action.UPDATE_COMPANY, company(owner_id=caller.id)).allowed

        with pytest.raises(NotOwnerError):
            enforce(caller, Action.DELETE_COMPANY, company())

    def test_any_identity_reads_company(self):
        assert can_perform(identity(), Action.READ_COMPANY, company()).allowed


class TestManageCompanyUsers:
    def test_plain_user_is_rejected_without_company(self):
        with pytest.raises(RoleInsufficientError):
            enforce(identity(company_id=None), Action.MANAGE_COMPANY_USERS)

    def test_admin_and_superadmin_pass(self):
        assert can_perform(identity(UserRole.ADMIN, company_id=None), Action.MANAGE_COMPANY_USERS).allowed
        assert can_perform(identity(UserRole.SUPERADMIN), Action.MANAGE_COMPANY_USERS).allowed


class TestCreateCompanyUser:
    def test_user_role_is_rejected(self):
        with pytest.raises(RoleInsufficientError):
            enforce(identity(), Action.CREATE_COMPANY_USER, company())

    def test_admin_of_other_company_is_rejected(self):
        with pytest.raises(CrossTenantDeniedError):
            enforce(identity(UserRole.ADMIN), Action.CREATE_COMPANY_USER, company(company_id=OTHER_COMPANY_ID))

    def test_suspended_company_is_rejected(self):
        with pytest.raises(CompanySuspendedError):
            enforce(identity(UserRole.ADMIN), Action.CREATE_COMPANY_USER, company(status=CompanyStatus.SUSPENDED))

    def test_superadmin_may_target_any_company(self):
        decision = can_perform(
            identity(UserRole.SUPERADMIN), Action.CREATE_COMPANY_USER, company(company_id=OTHER_COMPANY_ID)
        )
        assert decision.allowed


class TestChangeRole:
    def test_superadmin_role_cannot_be_granted(self):
        with pytest.raises(ImmutableRoleError):
            enforce(identity(UserRole.ADMIN), Action.CHANGE_USER_ROLE, user(), new_role=UserRole.SUPERADMIN)

    def test_superadmin_role_cannot_be_removed(self):
        target = user(role=UserRole.SUPERADMIN)
        with pytest.raises(ImmutableRoleError):
            enforce(identity(UserRole.ADMIN), Action.CHANGE_USER_ROLE, target, new_role=UserRole.USER)

    def test_only_admin_changes_roles(self):
        with pytest.raises(RoleInsufficientError):
            enforce(identity(UserRole.SUPERADMIN), Action.CHANGE_USER_ROLE, user(), new_role=UserRole.ADMIN)

    def test_target_must_share_company(self):
        target = user(company_id=OTHER_COMPANY_ID)
        with pytest.raises(CrossTenantDeniedError):
            enforce(identity(UserRole.ADMIN), Action.CHANGE_USER_ROLE, target, new_role=UserRole.ADMIN)

    def test_same_role_is_a_conflict(self):
        with pytest.raises(SameRoleError) as exc_info:
            enforce(identity(UserRole.ADMIN), Action.CHANGE_USER_ROLE, user(), new_role=UserRole.USER)
        assert exc_info.value.status_code == 409

    def test_admin_promotes_user(self):
        assert can_perform(
            identity(UserRole.ADMIN), Action.CHANGE_USER_ROLE, user(), new_role=UserRole.ADMIN
        ).allowed


class TestListCompanyUsers:
    def test_admin_listed_in_company_is_allowed(self):
        caller = identity(UserRole.ADMIN)
        decision = can_perform(caller, Action.LIST_COMPANY_USERS, company(), member_ids=[caller.id])
        assert decision.allowed

    def test_admin_missing_from_users_list_is_denied(self):
        decision = can_perform(identity(UserRole.ADMIN), Action.LIST_COMPANY_USERS, company(), member_ids=[])
        assert decision.reason == DenyReason.CROSS_TENANT_DENIED

    def test_plain_user_is_denied(self):
        caller = identity()
        decision = can_perform(caller, Action.LIST_COMPANY_USERS, company(), member_ids=[caller.id])
        assert decision.reason == DenyReason.ROLE_INSUFFICIENT


class TestProjectActions:
    def test_creator_manages_project(self):
        caller = identity()
        project = Project(name="Site", created_by=caller.id)
        for action in (Action.UPDATE_PROJECT, Action.DELETE_PROJECT, Action.MANAGE_PROJECT):
            assert can_perform(caller, action, project).allowed

    def test_other_user_cannot_manage_project(self):
        project = Project(name="Site", created_by=uuid.uuid4())
        with pytest.raises(NotOwnerError):
            enforce(identity(UserRole.ADMIN), Action.UPDATE_PROJECT, project)

    def test_superadmin_manages_any_project(self):
        project = Project(name="Site", created_by=uuid.uuid4())
        assert can_perform(identity(UserRole.SUPERADMIN), Action.DELETE_PROJECT, project).allowed

    def test_feature_actions_are_open(self):
        for action in (Action.CREATE_FEATURE, Action.UPDATE_FEATURE, Action.ASSIGN_FEATURE, Action.TOGGLE_FEATURE):
            assert can_perform(identity(), action).allowed


def test_unknown_action_raises():
    with pytest.raises(ValueError):
        can_perform(identity(), "launch_rockets")
