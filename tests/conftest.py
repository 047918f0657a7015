"""Pytest configuration and fixtures."""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from mysqlweb.api.main import create_app
from mysqlweb.core.config import Settings
from mysqlweb.database.connection_manager import SessionRegistry
from mysqlweb.database.descriptor import ConnectionDescriptor
from mysqlweb.services.bookmark_service import BookmarkStore

SERVER_VERSION = "8.0.36-test"

SHOP_URL = "proto://user@localhost:3306/shopdb"


def sqlite_engine_factory(descriptor: ConnectionDescriptor):
    """
    Build an in-memory SQLite engine standing in for a MySQL server.

    VERSION(), USER() and DATABASE() are registered as SQL functions so the
    server info query runs unchanged.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _register_functions(dbapi_connection, connection_record):
        dbapi_connection.create_function("version", 0, lambda: SERVER_VERSION)
        dbapi_connection.create_function(
            "user", 0, lambda: f"{descriptor.username}@{descriptor.host}"
        )
        dbapi_connection.create_function("database", 0, lambda: descriptor.database)

    return engine


def unreachable_engine_factory(descriptor: ConnectionDescriptor):
    """Engine whose connect() always fails."""
    return create_engine("sqlite:////nonexistent-mysqlweb-dir/missing/db.sqlite")


def seed_users(client) -> None:
    """Create the users table used across tests."""
    client.query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    client.query("INSERT INTO users (id, name) VALUES (1, 'a'), (2, 'b')")


@pytest.fixture
def registry():
    registry = SessionRegistry(engine_factory=sqlite_engine_factory, history_limit=1000)
    yield registry
    registry.close_all()


@pytest.fixture
def shop_session(registry):
    """An open session with a seeded users table and empty history."""
    client = registry.open(SHOP_URL)
    seed_users(client)
    client._history.clear()
    return client


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_name="mysqlweb-test",
        app_env="test",
        log_level="WARNING",
        log_dir=None,
        host="127.0.0.1",
        port=8080,
        bookmark_dir=tmp_path / "bookmarks",
        query_history_limit=1000,
        connect_timeout_seconds=5,
        enforce_where_clause=True,
        enable_audit_logging=True,
    )


@pytest.fixture
def bookmark_store(test_settings) -> BookmarkStore:
    return BookmarkStore(test_settings.bookmark_dir)


@pytest.fixture
def app(test_settings, registry, bookmark_store):
    return create_app(settings=test_settings, registry=registry, bookmark_store=bookmark_store)


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def conn_id(client):
    """Connect through the API and seed the users table."""
    response = client.post("/api/connect", data={"url": SHOP_URL})
    assert response.status_code == 200
    key = response.json()["connId"]

    headers = {"X-CONN-ID": key}
    for statement in (
        "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)",
        "INSERT INTO users (id, name) VALUES (1, 'a'), (2, 'b')",
    ):
        assert client.post("/api/query", data={"query": statement}, headers=headers).status_code == 200
    return key
