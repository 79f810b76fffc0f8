"""
Shared fixtures: settings pinned to the in-memory backend, an application
client, and helpers to create users and admins.
"""

from __future__ import annotations

import itertools

import pytest
from fastapi.testclient import TestClient

from vrai.config import VraiSettings
from vrai.context import build_memory_store
from vrai.main import create_app
from vrai.memory_store import MemoryDataService
from vrai.models.profile import CurrentUser

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n%test\n"

_emails = itertools.count(1)


@pytest.fixture
def settings() -> VraiSettings:
    return VraiSettings(
        _env_file=None,
        app_env="test",
        use_memory_store=True,
        jwt_secret_key="test-secret",
        cors_origins=["*"],
    )


@pytest.fixture
def store(settings) -> MemoryDataService:
    return build_memory_store(settings)


@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(id="user-1", email="owner@example.com", display_name="owner")


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, *, admin: bool = False, password: str = "secret123") -> dict:
    """Registers and logs in a fresh user; returns ``{id, email, headers}``."""
    email = f"user{next(_emails)}@example.com"
    response = client.post(
        "/register",
        json={"email": email, "password": password, "display_name": email.split("@")[0]},
    )
    assert response.status_code == 201, response.text
    user_id = response.json()["user_id"]

    if admin:
        remote = client.app.state.context.remote
        client.portal.call(
            lambda: remote.update("profiles", {"is_admin": True}, filters={"id": user_id})
        )

    login = client.post("/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    token = login.json()["access_token"]
    return {"id": user_id, "email": email, "headers": {"Authorization": f"Bearer {token}"}}


def png(name: str = "photo.png") -> tuple[str, bytes, str]:
    return (name, PNG_BYTES, "image/png")
