"""Pytest configuration and fixtures for LegalHub tests.

Tests run against an in-memory SQLite database (aiosqlite) so they need
no external services.  Redis is replaced by an in-memory fake, the event
bus by a recorder, and document storage by a temp directory.
"""

import fnmatch
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from legalhub.auth.jwt import create_access_token
from legalhub.database import Base, get_db
from legalhub.main import app
from legalhub.models import *  # noqa: F401,F403
from legalhub.models.reference import Language, PracticeArea, Specialization
from legalhub.models.user import User, UserRole
from legalhub.services.onboarding.handlers import build_default_handlers
from legalhub.services.onboarding.registry import build_default_registry
from legalhub.services.onboarding.service import OnboardingService
from legalhub.utils import cache as cache_module
from legalhub.utils import events as events_module
from legalhub.utils.events import get_event_bus
from legalhub.utils.storage import DocumentUpload, LocalDocumentStorage, get_document_storage


# ── Fakes ────────────────────────────────────────────────────────

class FakeRedis:
    """The handful of redis.asyncio calls the app makes, kept in a dict."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.published: list[tuple[str, str]] = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value):
        self.store[key] = value

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 1

    async def ping(self):
        return True


class RecordingEventBus:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def publish(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


# ── Database ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test, with SAVEPOINT support."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()

    async def _get_redis():
        return fake

    monkeypatch.setattr(cache_module, "get_redis", _get_redis)
    monkeypatch.setattr(events_module, "get_redis", _get_redis)
    return fake


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def storage(tmp_path) -> LocalDocumentStorage:
    return LocalDocumentStorage(tmp_path / "documents")


@pytest_asyncio.fixture
async def client(db_session, event_bus, storage, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """Test client with DB session, event bus and storage overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_document_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Domain fixtures ──────────────────────────────────────────────

@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def handlers(registry):
    return build_default_handlers(registry)


@pytest.fixture
def service(db_session, registry, handlers, event_bus, storage) -> OnboardingService:
    return OnboardingService(db_session, registry, handlers, event_bus, storage)


@pytest_asyncio.fixture
async def reference_data(db_session: AsyncSession) -> dict[str, list[int]]:
    """Two practice areas, two specializations, two languages."""
    rows = {
        "practice_areas": [PracticeArea(name="Corporate Law"), PracticeArea(name="Family Law")],
        "specializations": [
            Specialization(name="Patent Law"), Specialization(name="Estate Planning"),
        ],
        "languages": [Language(name="English"), Language(name="Yoruba")],
    }
    for items in rows.values():
        db_session.add_all(items)
    await db_session.flush()
    return {key: [item.id for item in items] for key, items in rows.items()}


async def _make_user(db_session: AsyncSession, email: str, role: UserRole) -> User:
    user = User(email=email, full_name=email.split("@")[0].title(), role=role, is_active=True)
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def lawyer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "ada@example.com", UserRole.LAWYER)


@pytest_asyncio.fixture
async def other_lawyer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "bola@example.com", UserRole.LAWYER)


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "chidi@example.com", UserRole.CLIENT)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", UserRole.ADMIN)


def _headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def lawyer_headers(lawyer: User) -> dict[str, str]:
    return _headers(lawyer)


@pytest.fixture
def client_headers(client_user: User) -> dict[str, str]:
    return _headers(client_user)


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return _headers(admin)


# ── Step payloads ────────────────────────────────────────────────

@pytest.fixture
def personal_info_payload() -> dict:
    return {
        "phone_number": "+2348012345678",
        "country": "Nigeria",
        "state": "Lagos",
        "city": "Ikeja",
        "office_address": "12 Allen Avenue, Ikeja",
        "bio": "Commercial litigator.",
    }


@pytest.fixture
def professional_info_payload(reference_data) -> dict:
    return {
        "enrollment_number": "SCN/2015/0042",
        "year_of_call": 2015,
        "law_school": "Nigerian Law School, Lagos",
        "graduation_year": 2014,
        "practice_areas": reference_data["practice_areas"],
        "specializations": reference_data["specializations"][:1],
        "languages": reference_data["languages"],
    }


@pytest.fixture
def documents_payload() -> dict:
    return {
        "nba_certificate": DocumentUpload(
            filename="certificate.pdf", content_type="application/pdf", content=b"%PDF-1.4 cert"
        ),
        "cv": DocumentUpload(
            filename="cv.docx", content_type="application/octet-stream", content=b"PK cv"
        ),
    }


@pytest.fixture
def availability_payload() -> dict:
    return {
        "consultation_fee": 15000,
        "hourly_rate": 50000,
        "availability": {
            "monday": {"start": "09:00", "end": "17:00"},
            "wednesday": {"start": "10:00", "end": "14:30"},
        },
    }
