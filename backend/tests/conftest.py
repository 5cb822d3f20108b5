"""
Shared fixtures for the OrgAuth API tests.

The real FastAPI app is driven through TestClient with its backing services
swapped for in-process doubles:
  - MongoDB: a mongomock-motor database patched over every module-level `db`
  - Redis:   a fakeredis async client on the shared `cache` object
  - Email:   send_email() replaced by a recorder, so nothing leaves the process

Each test gets a fresh database, cache and mailbox.
"""
import asyncio
import importlib
import time
import uuid

import pytest
import resend
from fakeredis import FakeAsyncRedis, FakeServer
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from orgauth.core.cache import cache
from orgauth.main import app
from orgauth.services import email as email_service

DB_MODULES = [
    "orgauth.core.database",
    "orgauth.core.security",
    "orgauth.services.users",
    "orgauth.services.auth",
    "orgauth.services.organizations",
    "orgauth.main",
]

TEST_PASSWORD = "testpass123"


def run(coro):
    """Run a store coroutine from test code (mongomock-motor is loop-agnostic)."""
    return asyncio.run(coro)


def wait_for(predicate, timeout=2.0):
    """Poll until predicate() is truthy. Background email tasks finish after the response."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return bool(predicate())


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_db(monkeypatch):
    database = AsyncMongoMockClient()[f"orgauth_test_{uuid.uuid4().hex[:8]}"]
    for module in DB_MODULES:
        monkeypatch.setattr(importlib.import_module(module), "db", database)
    return database


@pytest.fixture
def fake_cache(monkeypatch):
    monkeypatch.setattr(cache, "client", FakeAsyncRedis(server=FakeServer(), decode_responses=True))
    return cache


@pytest.fixture
def sent_emails(monkeypatch):
    """Record every email instead of sending it."""
    outbox = []

    async def fake_send_email(to, subject, template_name, context):
        outbox.append({"to": to, "subject": subject, "template": template_name, "context": context})
        return True

    monkeypatch.setattr(resend, "api_key", "")
    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return outbox


@pytest.fixture
def client(mock_db, fake_cache, sent_emails):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Create a user through POST /users and sign in. Returns a dict with id, email, tokens, headers."""

    def _make_user(name="Test User", email=None, password=TEST_PASSWORD):
        email = email or f"TEST_{uuid.uuid4().hex[:8]}@example.com"
        response = client.post("/users", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, f"User create failed: {response.text}"
        user = response.json()

        response = client.post("/auth/signin", json={"email": email, "password": password})
        assert response.status_code == 200, f"Signin failed: {response.text}"
        tokens = response.json()
        return {
            "id": user["id"],
            "name": name,
            "email": user["email"],
            "password": password,
            "access_token": tokens["accessToken"],
            "refresh_token": tokens["refreshToken"],
            "headers": auth_headers(tokens["accessToken"]),
        }

    return _make_user
