"""
Fixtures for API contract tests.

Each test gets a fresh SQLite file; the app lifespan creates the tables on
entry and disposes the engine on exit. Privileged roles are granted through
the repository because registration always creates MEMBERs.
"""

import itertools
from datetime import datetime, timedelta
from dataclasses import dataclass
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from config import settings
from src.database.connection import get_database
from src.database.models import RoleEnum, TaskDB
from src.database.repositories import get_user_repository
from src.main import app
from src.utils.datetime_utils import utc_now

PASSWORD = "Password123!"

_counter = itertools.count(1)


@dataclass
class ApiUser:
    id: str
    email: str
    token: str
    role: RoleEnum

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient bound to an empty per-test database."""
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Register a user and optionally promote it: make_user(RoleEnum.ADMIN)."""

    def _make_user(role: RoleEnum = RoleEnum.MEMBER, first_name: str = "Test", last_name: str = "User"):
        email = f"user{next(_counter)}@example.com"
        response = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": PASSWORD,
                "firstName": first_name,
                "lastName": last_name,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        user_id = data["user"]["id"]

        if role != RoleEnum.MEMBER:
            client.portal.call(get_user_repository().update, user_id, {"role": role})

        return ApiUser(id=user_id, email=email, token=data["token"], role=role)

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(RoleEnum.ADMIN, "Ada", "Admin")


@pytest.fixture
def maintainer(make_user):
    return make_user(RoleEnum.MAINTAINER, "Mia", "Maintainer")


@pytest.fixture
def member(make_user):
    return make_user(RoleEnum.MEMBER, "Max", "Member")


@pytest.fixture
def create_project(client):
    """POST a project as `owner` and return its JSON."""

    def _create_project(owner: ApiUser, name: str = "Website Relaunch", **fields):
        response = client.post(
            "/api/projects", json={"name": name, **fields}, headers=owner.headers
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_project


@pytest.fixture
def project(create_project, maintainer):
    """A project owned by `maintainer`."""
    return create_project(maintainer)


@pytest.fixture
def add_member(client):
    def _add_member(project_id: str, owner: ApiUser, user: ApiUser):
        response = client.post(
            f"/api/projects/{project_id}/members",
            json={"userId": user.id},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _add_member


@pytest.fixture
def statuses(client, project, maintainer):
    """The default columns of `project`, keyed by name."""
    response = client.get(f"/api/projects/{project['id']}/statuses", headers=maintainer.headers)
    assert response.status_code == 200
    return {s["name"]: s for s in response.json()["data"]}


@pytest.fixture
def create_task(client):
    def _create_task(project_id: str, user: ApiUser, status_id: str, title: str = "Task", **fields):
        response = client.post(
            f"/api/projects/{project_id}/tasks",
            json={"title": title, "statusId": status_id, **fields},
            headers=user.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_task


async def _set_task_updated_at(task_id: str, when: datetime):
    async with get_database().session() as session:
        await session.execute(update(TaskDB).where(TaskDB.id == task_id).values(updated_at=when))


@pytest.fixture
def backdate_task(client):
    """Push a task's updatedAt into the past and return the new stamp as served by the API."""

    def _backdate_task(project_id: str, user: ApiUser, task_id: str, days: int = 40) -> str:
        client.portal.call(_set_task_updated_at, task_id, utc_now() - timedelta(days=days))
        response = client.get(f"/api/projects/{project_id}/tasks/{task_id}", headers=user.headers)
        return response.json()["data"]["updatedAt"]

    return _backdate_task
