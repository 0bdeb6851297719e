"""
Real Estate API - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool so all sessions share one connection) with the schema
       created from the ORM models.

Fixture Hierarchy:
    settings          Settings pointing at in-memory SQLite
    └── database      Database with tables created, disposed afterwards
        ├── db_session  AsyncSession for service-level tests
        └── app         create_app(settings, database)
            └── client  HTTPX AsyncClient over ASGITransport
    auth_headers      Bearer header for the "admin" user
    sample_image_bytes  Minimal JPEG payload
"""

import os

# Before any realestate import: the module-level app in realestate.main
# builds its Settings from the environment
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from realestate.config import Settings
from realestate.database import Database
from realestate.main import create_app
from realestate.security import issue_token
from realestate.services.property_service import property_service

TEST_JWT_SECRET = "test-signing-secret-0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=TEST_JWT_SECRET,
        auth_users="admin:admin123:Admin,user:user123:User",
        log_level="WARNING",
        max_image_size=1024 * 1024,
    )


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    db = Database(
        settings,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for calling services directly.

    Services only flush; tests that need data visible to another session
    commit explicitly.
    """
    async with database.session() as session:
        yield session


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX client routed straight into the app.

    ASGITransport does not run the lifespan; the `database` fixture has
    already created the tables.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings) -> dict:
    token = issue_token(settings, settings.demo_users["admin"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def property_payload() -> dict:
    """A valid POST /api/properties body."""
    return {
        "codeInternal": "PROP-001",
        "name": "Casa Azul",
        "address": "Calle 10 #20-30",
        "year": 2015,
        "price": 250000,
    }


async def seed_property(db: AsyncSession, code: str = "PROP-001", **overrides) -> int:
    """Create a property through the service and return its id."""
    fields = {
        "code_internal": code,
        "name": "Casa Azul",
        "address": "Calle 10 #20-30",
        "year": 2015,
        "price": Decimal("250000"),
    }
    fields.update(overrides)
    return await property_service.create_property(db, **fields)


@pytest.fixture
def make_property():
    """Factory fixture: `await make_property(db, "CODE", price=Decimal("10"))`."""
    return seed_property
