"""Tests for the generic repository operations."""
from projecthub.models.feature import FeatureStatus
from projecthub.models.project import Project
from projecthub.repositories.base import BaseRepository
from projecthub.repositories.feature_repo import FeatureRepository
from projecthub.repositories.project_repo import ProjectRepository
from projecthub.repositories.user_repo import UserRepository

from tests.conftest import make_user


async def test_update_writes_explicit_none(session, member):
    repo = ProjectRepository(session)
    project = await repo.create({"name": "Site", "description": "Keep", "created_by": member.id})

    updated = await repo.update(project.id, {"description": None})

    assert updated.description is None
    assert updated.name == "Site"


async def test_get_by_field_count_and_delete(session, member):
    repo = ProjectRepository(session)
    project = await repo.create({"name": "Site", "created_by": member.id})
    await repo.create({"name": "Shop", "created_by": member.id, "status": "archived"})

    assert (await repo.get_by_field("name", "Site")).id == project.id
    assert await repo.count() == 2
    assert await repo.count({"status": "archived"}) == 1

    assert await repo.delete(project.id) is True
    assert await repo.delete(project.id) is False
    assert await repo.exists(project.id) is False


async def test_list_paginated(session, member):
    repo = BaseRepository(Project, session)
    for index in range(5):
        await repo.create({"name": f"Project {index}", "created_by": member.id})

    page = await repo.list_paginated(page=2, limit=2, order_by="name", order_desc=False)

    assert [p.name for p in page["items"]] == ["Project 2", "Project 3"]
    assert page["total"] == 5
    assert page["pages"] == 3
    assert page["has_prev"] is True
    assert page["has_next"] is True


async def test_delete_many_with_list_filter(session, member):
    project = await ProjectRepository(session).create({"name": "Site", "created_by": member.id})
    repo = FeatureRepository(session)
    features = [
        await repo.create({"title": title, "project_id": project.id, "status": FeatureStatus.PENDING})
        for title in ("A", "B", "C")
    ]

    deleted = await repo.delete_many(commit=True, id=[features[0].id, features[1].id])

    assert deleted == 2
    assert [f.title for f in await repo.list()] == ["C"]


async def test_summaries_keep_order_and_skip_unknown(session):
    first = await make_user(session, "first@acme.io")
    second = await make_user(session, "second@acme.io")

    summaries = await UserRepository(session).summaries([second.id, first.id])

    assert [s["email"] for s in summaries] == ["second@acme.io", "first@acme.io"]
    assert set(summaries[0]) == {"id", "name", "email", "role"}
