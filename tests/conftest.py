"""
Shared test fixtures for the Pontaj HR test suite.

Async throughout (aiosqlite + AsyncSession).  Auth dependencies are
overridden with an in-memory admin user (id=1); self-service routes find
their employee through ``Employee.user_id == 1``.
"""

import itertools
import os
import sys
from datetime import date, timedelta
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.db.base import Base
from pontaj.main import app
from pontaj.models.employee import Employee
from pontaj.models.user import User

# Create a test engine for the entire session
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user():
    return User(id=1, email="admin@example.com", is_active=True, role="admin")


async def _override_require_admin():
    return User(id=1, email="admin@example.com", is_active=True, role="admin")


app.dependency_overrides[get_current_active_user] = _override_get_current_active_user
app.dependency_overrides[require_admin] = _override_require_admin


# ── Data helpers ────────────────────────────────────────────────────
_email_seq = itertools.count(1)


@pytest.fixture
def past_weekday() -> date:
    """Most recent Monday-Friday strictly before today."""
    day = date.today() - timedelta(days=1)
    while day.weekday() >= 5:
        day -= timedelta(days=1)
    return day


@pytest.fixture
def past_saturday() -> date:
    day = date.today() - timedelta(days=1)
    while day.weekday() != 5:
        day -= timedelta(days=1)
    return day


@pytest.fixture
def make_employee(db_session: AsyncSession):
    """Factory inserting employees directly, bypassing the API."""

    async def _make(**fields) -> Employee:
        values = {
            "name": "Test Employee",
            "email": f"emp{next(_email_seq)}@example.com",
            "department": "Engineering",
            "position": "Developer",
            "is_active": True,
            "test_eligible": False,
        }
        values.update(fields)
        employee = Employee(**values)
        db_session.add(employee)
        await db_session.commit()
        await db_session.refresh(employee)
        return employee

    return _make


@pytest.fixture
async def linked_employee(make_employee) -> Employee:
    """Employee linked to the overridden user, for self-service routes."""
    return await make_employee(name="Self Service", email="self@example.com", user_id=1)
