"""Tests for CompanyService and IntegrityService.delete_company."""
import pytest
from sqlalchemy import delete
from sqlmodel import select

from projecthub.core.exceptions import AlreadyExistsError, NotFoundError, NotOwnerError, RoleInsufficientError
from projecthub.models.company import CompanyUser
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.schemas.company import CompanyCreate, CompanyUpdate
from projecthub.services.company_service import CompanyService

from tests.conftest import identity_of, make_user


class TestCreateCompany:
    async def test_owner_is_first_user(self, session, superadmin):
        service = CompanyService(session)

        company = await service.create_company(
            identity_of(superadmin), CompanyCreate(name="Globex", email="Info@Globex.io")
        )

        assert company.email == "info@globex.io"
        assert company.owner.id == superadmin.id
        assert [u.id for u in company.users] == [superadmin.id]

    async def test_requires_superadmin(self, session, admin):
        with pytest.raises(RoleInsufficientError):
            await CompanyService(session).create_company(
                identity_of(admin), CompanyCreate(name="Globex", email="info@globex.io")
            )

    async def test_duplicate_email(self, session, superadmin, company):
        with pytest.raises(AlreadyExistsError):
            await CompanyService(session).create_company(
                identity_of(superadmin), CompanyCreate(name="Acme 2", email=company.email)
            )


class TestUpdateCompany:
    async def test_partial_update_keeps_other_fields(self, session, superadmin, company):
        service = CompanyService(session)

        updated = await service.update_company(
            identity_of(superadmin), company.id, CompanyUpdate(domain="acme.io")
        )

        assert updated.domain == "acme.io"
        assert updated.name == "Acme"
        assert superadmin.id in [u.id for u in updated.users]

    async def test_domain_can_be_cleared(self, session, superadmin, company):
        service = CompanyService(session)
        await service.update_company(identity_of(superadmin), company.id, CompanyUpdate(domain="acme.io"))

        updated = await service.update_company(identity_of(superadmin), company.id, CompanyUpdate(domain=None))

        assert updated.domain is None

    async def test_owner_stays_in_users(self, session, superadmin, company):
        await session.exec(delete(CompanyUser).where(CompanyUser.company_id == company.id))
        await session.commit()

        updated = await CompanyService(session).update_company(
            identity_of(superadmin), company.id, CompanyUpdate(name="Acme Corp")
        )

        assert [u.id for u in updated.users] == [superadmin.id]

    async def test_non_owner_is_rejected(self, session, admin, company):
        with pytest.raises(NotOwnerError):
            await CompanyService(session).update_company(
                identity_of(admin), company.id, CompanyUpdate(name="Mine now")
            )


class TestDeleteCompany:
    async def test_users_and_projects_are_detached(self, session, superadmin, company, member):
        project = Project(name="Site", company_id=company.id, created_by=member.id)
        session.add(project)
        await session.commit()
        identity = identity_of(superadmin)
        company_id, member_id, project_id = company.id, member.id, project.id

        await CompanyService(session).delete_company(identity, company_id)

        user_company = (await session.exec(select(User.company_id).where(User.id == member_id))).first()
        project_company = (await session.exec(select(Project.company_id).where(Project.id == project_id))).first()
        memberships = (await session.exec(select(CompanyUser).where(CompanyUser.company_id == company_id))).all()
        assert user_company is None
        assert project_company is None
        assert memberships == []

        with pytest.raises(NotFoundError):
            await CompanyService(session).get_company(identity, company_id)


async def test_list_companies_for_superadmin(session, superadmin, company):
    other_owner = await make_user(session, "owner@globex.io")
    service = CompanyService(session)
    await service.create_company(identity_of(superadmin), CompanyCreate(name="Globex", email="info@globex.io"))

    companies = await service.list_companies(identity_of(superadmin))

    assert {c.name for c in companies} == {"Acme", "Globex"}
    with pytest.raises(RoleInsufficientError):
        await service.list_companies(identity_of(other_owner))
