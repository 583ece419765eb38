"""
Shared pytest fixtures for backend tests.
Uses a temp-file SQLite database for isolation and httpx.MockTransport in
place of the model provider.
"""
import pytest
import sqlite3
import sys
import os

import httpx

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database

PROVIDER_ENV_VARS = ("DOUBAO_API_KEY", "ARK_API_KEY", "DOUBAO_MODEL", "DOUBAO_API_BASE_URL")


def chat_reply(content) -> dict:
    """A minimal chat-completion response body."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeProvider:
    """Records requests and answers with a canned chat-completion reply."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = chat_reply("[]")
        self.error = None

    def reply(self, content, status_code: int = 200):
        self.body = chat_reply(content)
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, text=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider settings that a developer's .env might have loaded."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create an isolated test database for each test.
    Uses a temp file (not :memory:) because database.py opens new connections per operation.
    """
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(database, "DATABASE_PATH", db_path)
    monkeypatch.setattr(database, "init_db", lambda: None)

    # Create tables directly (skip alembic for tests)
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE local_storage (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL,
            updated_at TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()

    yield db_path


@pytest.fixture
def app_client(test_db, clean_env, provider, monkeypatch):
    """
    Create a test client for the FastAPI app.
    Skips alembic and routes provider calls to the FakeProvider.
    """
    from fastapi.testclient import TestClient
    import main

    # main imported init_db by name, so patch it there too
    monkeypatch.setattr(main, "init_db", lambda: None)

    with TestClient(main.app) as client:
        client.app.state.http_client = provider.client()
        yield client
