"""
Shared fixtures: an in-memory SQLite database per test, model factories and
an HTTP client bound to the FastAPI app.
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEV_MODE"] = "true"

import uuid

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from projecthub import models  # noqa: F401
from projecthub.core.identity import Identity, identity_from_user
from projecthub.core.security import create_access_token, get_password_hash
from projecthub.database import get_session
from projecthub.main import app
from projecthub.models.company import Company, CompanyUser, CompanyStatus
from projecthub.models.user import User, UserRole
from projecthub.services.email_service import MockEmailService, set_email_service
from projecthub.services.integrations.oauth import OAuthRegistry

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def mail_outbox():
    outbox = MockEmailService()
    set_email_service(outbox)
    yield outbox
    set_email_service(None)


# =============================================================================
# FACTORIES
# =============================================================================

async def make_user(
    session: AsyncSession,
    email: str,
    role: str = UserRole.USER,
    company_id: uuid.UUID = None,
    name: str = None,
    **extra
) -> User:
    user = User(
        name=name or email.split("@")[0].title(),
        email=email,
        username=email.split("@")[0],
        password_hash=PASSWORD_HASH,
        role=role,
        company_id=company_id,
        **extra
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_company(
    session: AsyncSession,
    owner: User,
    name: str = "Acme",
    email: str = None,
    status: str = CompanyStatus.ACTIVE
) -> Company:
    company = Company(
        name=name,
        email=email or f"hello@{name.lower()}.io",
        owner_id=owner.id,
        status=status
    )
    session.add(company)
    await session.flush()
    session.add(CompanyUser(company_id=company.id, user_id=owner.id))
    await session.commit()
    await session.refresh(company)
    return company


async def add_to_company(session: AsyncSession, company: Company, user: User) -> User:
    user.company_id = company.id
    session.add(user)
    session.add(CompanyUser(company_id=company.id, user_id=user.id))
    await session.commit()
    await session.refresh(user)
    return user


def identity_of(user: User) -> Identity:
    return identity_from_user(user)


def auth_headers(user: User) -> dict:
    token = create_access_token({"user_id": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# COMMON ACTORS
# =============================================================================

@pytest_asyncio.fixture
async def superadmin(session):
    return await make_user(session, "root@acme.io", role=UserRole.SUPERADMIN)


@pytest_asyncio.fixture
async def company(session, superadmin):
    company = await make_company(session, superadmin)
    superadmin.company_id = company.id
    session.add(superadmin)
    await session.commit()
    await session.refresh(superadmin)
    return company


@pytest_asyncio.fixture
async def admin(session, company):
    user = await make_user(session, "boss@acme.io", role=UserRole.ADMIN)
    return await add_to_company(session, company, user)


@pytest_asyncio.fixture
async def member(session, company):
    user = await make_user(session, "dev@acme.io")
    return await add_to_company(session, company, user)


@pytest_asyncio.fixture
async def outsider(session):
    return await make_user(session, "stranger@elsewhere.io")


# =============================================================================
# HTTP CLIENT
# =============================================================================

@pytest_asyncio.fixture
async def client(session):
    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.state.oauth_registry = OAuthRegistry()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
