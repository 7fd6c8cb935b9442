"""Tests for company scope resolution."""
import uuid

import pytest

from projecthub.core.exceptions import CrossTenantDeniedError, InvalidStateError
from projecthub.core.identity import Identity
from projecthub.core.tenancy import resolve_company_scope
from projecthub.models.user import UserRole


def test_defaults_to_own_company():
    company_id = uuid.uuid4()
    caller = Identity(id=uuid.uuid4(), role=UserRole.ADMIN, company_id=company_id)
    assert resolve_company_scope(caller) == company_id


def test_explicit_own_company_is_accepted():
    company_id = uuid.uuid4()
    caller = Identity(id=uuid.uuid4(), role=UserRole.USER, company_id=company_id)
    assert resolve_company_scope(caller, company_id) == company_id


def test_other_company_denied_for_admin():
    caller = Identity(id=uuid.uuid4(), role=UserRole.ADMIN, company_id=uuid.uuid4())
    with pytest.raises(CrossTenantDeniedError):
        resolve_company_scope(caller, uuid.uuid4())


def test_superadmin_may_target_other_company():
    target = uuid.uuid4()
    caller = Identity(id=uuid.uuid4(), role=UserRole.SUPERADMIN, company_id=uuid.uuid4())
    assert resolve_company_scope(caller, target) == target


def test_missing_company_when_required():
    caller = Identity(id=uuid.uuid4(), role=UserRole.USER)
    with pytest.raises(InvalidStateError):
        resolve_company_scope(caller)


def test_missing_company_when_optional():
    caller = Identity(id=uuid.uuid4(), role=UserRole.USER)
    assert resolve_company_scope(caller, required=False) is None
