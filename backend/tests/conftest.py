"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.helpers import get_current_user_id, get_plaid_client
from database import Base, configure_sqlite_engine, get_db
from main import app
from services.sync_service import SyncService
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    USER_ID,
    account,
    assignment,
    connection,
    credit_account,
    trip,
)
from tests.fixtures.mocks import MockPlaidClient


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_sync_locks():
    """Per-connection sync locks are process-wide; start every test clean."""
    SyncService._connection_locks.clear()
    yield
    SyncService._connection_locks.clear()


@pytest.fixture(name="mock_plaid")
def mock_plaid_fixture():
    """A MockPlaidClient with the sample balances and no delta pages."""
    return MockPlaidClient()


@pytest.fixture(name="client")
def client_fixture(db, mock_plaid):
    """Create a test client with the test database and mock Plaid client.

    Tests that need scripted delta pages set ``mock_plaid._pages`` or
    override ``get_plaid_client`` themselves.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plaid_client] = lambda: mock_plaid
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
