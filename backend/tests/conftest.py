from __future__ import annotations

import asyncio

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient

from diary.app import create_app, install_services
from diary.config import Settings
from diary.database.db import init_db
from diary.services.credentials import CredentialStore


def cheap_hasher() -> PasswordHasher:
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1, hash_len=16, salt_len=16)


@pytest.fixture()
def db_path(tmp_path) -> str:
    path = str(tmp_path / "diary.db")
    asyncio.run(init_db(path))
    return path


@pytest.fixture()
def credentials(db_path) -> CredentialStore:
    return CredentialStore(db_path=db_path, hasher=cheap_hasher())


@pytest.fixture()
def settings(db_path) -> Settings:
    return Settings(DATABASE_PATH=db_path, SESSION_COOKIE_SECURE=False, API_PREFIX="/api")


@pytest.fixture()
def app(settings):
    application = create_app(settings)
    install_services(application, settings, hasher=cheap_hasher())
    return application


@pytest.fixture()
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, name="Alice", email="alice@example.com", password="secret123"):
    return client.post(
        "/api/auth/register",
        json={
            "name": name,
            "email": email,
            "password": password,
            "passwordConfirm": password,
        },
    )
