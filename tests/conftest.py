"""Test fixtures: the app wired to an in-memory user store."""

import os

os.environ["USER_STORE"] = "inmemory"
os.environ.pop("DATABASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from main import app
from store import InMemoryUserStore, get_user_store
from schemas import Account


@pytest.fixture
def store():
    store = InMemoryUserStore()
    app.dependency_overrides[get_user_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def user_id(store):
    return store.create_user(Account(email="reader@example.com", name="Reader"))


@pytest.fixture
def auth_client(client):
    resp = client.post(
        "/auth/signup",
        json={"email": "reader@example.com", "password": "s3cret", "name": "Reader"},
    )
    assert resp.status_code == 200
    client.headers["Authorization"] = f"Bearer {resp.json()['token']}"
    return client
