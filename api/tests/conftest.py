from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from auth import dependencies as auth_dependencies
from main import app

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_user(**overrides):
    user = {
        "id": 1,
        "email": "arthur@example.com",
        "password_hash": "",
        "name": "Arthur Dent",
        "image": None,
        "github_username": None,
        "is_admin": False,
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
    }
    user.update(overrides)
    return user


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "LEMONSQUEEZY_API_KEY",
        "LEMONSQUEEZY_WEBHOOK_SECRET",
        "REPLICATE_API_KEY",
        "GITHUB_TOKEN",
        "GITHUB_REPO_OWNER",
        "GITHUB_REPO_NAME",
        "ADMIN_EMAILS",
        "CONTENT_MODEL_TIER",
        "SITE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    # No context manager: the lifespan (DB pool) is not started.
    return TestClient(app)


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def admin_user():
    return make_user(id=42, email="zaphod@example.com", name="Zaphod", is_admin=True)


@pytest.fixture
def user_client(client, user):
    async def _current_user():
        return user

    app.dependency_overrides[auth_dependencies.get_current_user] = _current_user
    return client


@pytest.fixture
def admin_client(client, admin_user):
    async def _current_user():
        return admin_user

    app.dependency_overrides[auth_dependencies.get_current_user] = _current_user
    return client


@pytest.fixture
def user_factory():
    return make_user
