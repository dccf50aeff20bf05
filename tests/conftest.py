"""Shared fixtures.

The app is built per test against an in-memory ``mongomock`` client, handed to
the connection manager through its client factory. Tokens are minted with the
same helper the API uses.
"""
from __future__ import annotations

from typing import Callable, Dict

import mongomock
import pytest
from fastapi.testclient import TestClient

from volunteer_api.config import Settings
from volunteer_api.db import ConnectionManager
from volunteer_api.main import create_app
from volunteer_api.services.auth_service import create_access_token

ALICE = "alice@example.com"
BOB = "bob@example.com"


def make_settings(**overrides) -> Settings:
    values = dict(
        MONGO_URI="mongodb://localhost:27017",
        DB_NAME="volunteer-test",
        SECRET_KEY="test-secret",
        COOKIE_SECURE=False,
        COOKIE_SAMESITE="strict",
        CORS_ORIGINS=["http://localhost:5173"],
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        DB_CONNECT_ATTEMPTS=2,
        DB_RETRY_MIN_WAIT=0,
        DB_RETRY_MAX_WAIT=0,
        DB_RETRY_JITTER=0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mongo_client() -> mongomock.MongoClient:
    return mongomock.MongoClient(tz_aware=True)


@pytest.fixture
def connection(settings: Settings, mongo_client) -> ConnectionManager:
    return ConnectionManager(settings, client_factory=lambda uri, **kwargs: mongo_client)


@pytest.fixture
def app(settings: Settings, connection: ConnectionManager):
    return create_app(settings=settings, connection=connection)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[str], Dict[str, str]]:
    def _headers(email: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(email, settings)}"}

    return _headers


@pytest.fixture
def make_post(client: TestClient, auth_headers):
    """Create a volunteer post as ``email`` and return its id."""

    def _make(email: str = ALICE, **fields) -> str:
        payload = {
            "title": "Park Cleanup",
            "description": "Pick up litter in the park",
            "category": "Environment",
            "location": "Springfield",
            "volunteersNeeded": 3,
            "deadline": "2026-12-31",
            "thumbnail": "https://example.com/park.png",
        }
        payload.update(fields)
        r = client.post("/volunteer", json=payload, headers=auth_headers(email))
        assert r.status_code == 201, r.text
        return r.json()["insertedId"]

    return _make
