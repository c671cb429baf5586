"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src import models  # noqa: F401
from src.api.dependencies import get_identity_verifier
from src.database import Base, get_db
from src.main import app
from src.services.identity import IdentityVerificationError, VerifiedIdentity

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    base_url, _, db_name = os.getenv("DATABASE_URL").rpartition("/")
    SQLALCHEMY_DATABASE_URL = f"{base_url}/{db_name}_test"
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeVerifier:
    """Identity verifier that trusts a fixed table of tokens."""

    def __init__(self):
        self.identities: dict[str, VerifiedIdentity] = {}
        self.closed = False

    def add(self, token: str, email: str, name: str, picture: str | None = None) -> str:
        self.identities[token] = VerifiedIdentity(email=email, name=name, picture=picture)
        return token

    async def verify(self, token: str) -> VerifiedIdentity:
        try:
            return self.identities[token]
        except KeyError:
            raise IdentityVerificationError("Invalid token") from None

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def verifier():
    """Fake Google verifier shared by the test client."""
    return FakeVerifier()


@pytest.fixture(scope="function")
def client(db, verifier):
    """Create a test client with database and verifier overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signup_data():
    """A valid signup body."""
    return {"fullname": "Alice Example", "email": "alice@example.com", "password": "Abc123!"}


@pytest.fixture
def alice(client, signup_data):
    """Sign up Alice and return the response body."""
    response = client.post("/signup", json=signup_data)
    assert response.status_code == 200
    return response.json()
