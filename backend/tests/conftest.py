"""
Pytest fixtures for test database, client, authentication and blob storage.

Each test gets a freshly created schema. Requests run in their own session
with the same commit/rollback behaviour as production `get_db`; fixtures seed
data through a separate session.

TEST_DATABASE_URL selects the database (default: a SQLite file per test).
"""

import json
import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.api.deps import get_blob_store
from app.core.permissions import Role
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.session import get_db
from app.infrastructure.local_blob_store import LocalBlobStore
from app.models.event import Event
from app.models.registration import EventRegistration
from app.models.user import User
from app.services.interfaces.blob_store import BlobStore, BlobStoreError

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n%test evidence\n"


class FailingBlobStore(BlobStore):
    """Blob store whose writes always fail."""

    def __init__(self):
        self.deleted = []

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        raise BlobStoreError("storage offline")

    async def download(self, path: str) -> bytes:
        raise BlobStoreError("storage offline")

    async def delete(self, path: str) -> None:
        self.deleted.append(path)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding fixtures and calling services directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, blob_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB and blob store dependencies pointed at test resources."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def failing_blob_store(client) -> FailingBlobStore:
    """Replace the blob store with one that cannot write. Requested after `client`."""
    store = FailingBlobStore()
    app.dependency_overrides[get_blob_store] = lambda: store
    return store


async def _create_user(db: AsyncSession, email: str, role: Role, **extra) -> User:
    user = User(
        email=email,
        hashed_password=hash_password("testpassword123"),
        first_name=extra.get("first_name", "Test"),
        last_name=extra.get("last_name", "User"),
        phone_number=extra.get("phone_number", "+255700000001"),
        role=role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """An ordinary user with a complete profile."""
    return await _create_user(db_session, "test@example.com", Role.ORDINARY)


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", Role.ORDINARY, first_name="Other")


@pytest_asyncio.fixture
async def super_admin(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "root@example.com", Role.SUPER_ADMIN)


@pytest_asyncio.fixture
async def finance_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "finance@example.com", Role.FINANCE)


@pytest_asyncio.fixture
async def event_manager(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "events@example.com", Role.EVENT_MANAGER)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authorization headers for the ordinary test user."""
    return headers_for(test_user)


@pytest.fixture
def admin_headers(super_admin: User) -> dict:
    return headers_for(super_admin)


@pytest.fixture
def finance_headers(finance_user: User) -> dict:
    return headers_for(finance_user)


@pytest.fixture
def manager_headers(event_manager: User) -> dict:
    return headers_for(event_manager)


async def _create_event(db: AsyncSession, title: str, max_attendees, current_attendees: int = 0, **extra) -> Event:
    start = datetime.now(timezone.utc) + timedelta(days=30)
    event = Event(
        title=title,
        description=extra.get("description", "A test event"),
        start_date=start,
        end_date=start + timedelta(days=2),
        location=extra.get("location", "Dar es Salaam"),
        price=extra.get("price", Decimal("150.00")),
        max_attendees=max_attendees,
        current_attendees=current_attendees,
        tags=extra.get("tags", ["health"]),
        featured=extra.get("featured", False),
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """An event with 100 spots."""
    return await _create_event(db_session, "Health Summit", 100)


@pytest_asyncio.fixture
async def single_spot_event(db_session: AsyncSession) -> Event:
    return await _create_event(db_session, "Roundtable", 1)


@pytest_asyncio.fixture
async def full_event(db_session: AsyncSession) -> Event:
    return await _create_event(db_session, "Sold Out Forum", 50, current_attendees=50)


@pytest_asyncio.fixture
async def uncapped_event(db_session: AsyncSession) -> Event:
    return await _create_event(db_session, "Open Webinar", None, price=Decimal("0"))


def registration_form(user_id: int, event_id: int, **overrides) -> dict:
    """Multipart form fields for POST /events/register."""
    payload = {
        "event_id": event_id,
        "user_id": user_id,
        "delegate_type": "private",
        "country": "Tanzania",
        "organization": "Ministry of Health",
        "position": "Analyst",
        "payment_method": "cash",
    }
    payload.update(overrides)
    return {"payload": json.dumps(payload)}


def evidence_file(content: bytes = PNG_BYTES, content_type: str = "image/png", name: str = "receipt.png") -> dict:
    return {"evidence_file": (name, content, content_type)}


async def fetch_event(session_factory, event_id: int) -> Event:
    """Read the current row through a fresh session."""
    async with session_factory() as session:
        return (await session.execute(select(Event).where(Event.id == event_id))).scalar_one()


async def fetch_registrations(session_factory, **filters) -> list[EventRegistration]:
    async with session_factory() as session:
        query = select(EventRegistration).order_by(EventRegistration.id)
        for key, value in filters.items():
            query = query.where(getattr(EventRegistration, key) == value)
        return list((await session.execute(query)).scalars().all())
