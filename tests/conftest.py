"""
Shared fixtures: an app around fresh in-memory storage, and users of
every role with ready-made auth headers.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from taskboard.api.app import create_app
from taskboard.auth.jwt import create_token_pair, hash_password
from taskboard.config import Settings
from taskboard.core.models import Project, ProjectMember, Role, Task, User
from taskboard.storage import Collections, create_local_storage

PASSWORD = "secret1"

# Hashing is deliberately slow; hash the shared test password once
PASSWORD_HASH = hash_password(PASSWORD)


def token(user: User) -> str:
    """A fresh access token for a user."""
    return create_token_pair(user).access_token


def auth(user: User) -> dict[str, str]:
    """Authorization header for a user."""
    return {"Authorization": f"Bearer {token(user)}"}


# =============================================================================
# App
# =============================================================================


@pytest.fixture
def settings():
    return Settings(sentry_dsn="", environment="test")


@pytest.fixture
def storage():
    return create_local_storage()


@pytest.fixture
def app(storage, settings):
    return create_app(storage=storage, settings=settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# Seeding
# =============================================================================


@pytest.fixture
def make_user(storage):
    """Store a user directly (bypassing signup) and return it."""

    def _make(username: str, role: Role | None = None) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=PASSWORD_HASH,
            role=role,
        )
        asyncio.run(storage.metadata.save(Collections.USERS, user.id, user.to_record()))
        return user

    return _make


@pytest.fixture
def make_project(storage):
    def _make(name: str = "Apollo", member_ids: list[str] | None = None) -> Project:
        project = Project(
            name=name,
            start_date="2025-01-01T00:00:00Z",
            end_date="2025-06-30T00:00:00Z",
            progress=10,
            budget=1000,
        )

        async def _save():
            await storage.metadata.save(Collections.PROJECTS, project.id, project.to_record())
            for user_id in member_ids or []:
                member = ProjectMember(project_id=project.id, user_id=user_id)
                await storage.metadata.save(Collections.PROJECT_MEMBERS, member.id, member.to_record())

        asyncio.run(_save())
        return project

    return _make


@pytest.fixture
def make_task(storage):
    def _make(project: Project, title: str = "Write docs", assignee: User | None = None) -> Task:
        task = Task(
            title=title,
            project_id=project.id,
            assigned_to_id=assignee.id if assignee else None,
        )
        asyncio.run(storage.metadata.save(Collections.TASKS, task.id, task.to_record()))
        return task

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", Role.ADMIN)


@pytest.fixture
def manager(make_user):
    return make_user("manager", Role.PROJECT_MANAGER)


@pytest.fixture
def developer(make_user):
    return make_user("dev", Role.DEVELOPER)


@pytest.fixture
def newcomer(make_user):
    """Signed up, no role yet."""
    return make_user("newbie")


def stored(storage, collection: str, id: str):
    """Read a record straight from storage."""
    return asyncio.run(storage.metadata.get(collection, id))


def count(storage, collection: str, **filters) -> int:
    return len(asyncio.run(storage.metadata.query(collection, filters or None)))
