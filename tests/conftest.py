"""Pytest configuration and fixtures."""

import fnmatch
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models import Company, User, UserRole, WhatsAppAccount
from app.services.message_service import MessageService
from app.services.whatsapp_client import WhatsAppCloudClient

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
GRAPH_BASE_URL = "https://graph.test"


@pytest.fixture
async def async_engine():
    """Create async engine for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    session_maker = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def company(db_session: AsyncSession) -> Company:
    """Create the company most tests act in."""
    company = Company(name="Acme")
    db_session.add(company)
    await db_session.commit()
    await db_session.refresh(company)
    return company


@pytest.fixture
async def other_company(db_session: AsyncSession) -> Company:
    """A second tenant whose data must stay invisible to the first."""
    company = Company(name="Globex")
    db_session.add(company)
    await db_session.commit()
    await db_session.refresh(company)
    return company


@pytest.fixture
async def user(db_session: AsyncSession, company: Company) -> User:
    """Create an admin user of the company."""
    user = User(company_id=company.id, name="Ana Admin", email="ana@acme.test", role=UserRole.ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession, company: Company) -> User:
    """Create a second, non-admin user of the same company."""
    user = User(company_id=company.id, name="Bruno Agent", email="bruno@acme.test")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def sample_account_data() -> dict[str, Any]:
    """Sample WhatsApp account data for testing."""
    return {
        "name": "Main line",
        "phone_number_id": "1098765",
        "business_account_id": "55501",
        "access_token": "EAAG-test-token",
        "app_secret": None,
        "is_default": True,
    }


@pytest.fixture
async def account(
    db_session: AsyncSession, company: Company, sample_account_data
) -> WhatsAppAccount:
    """Create the company's default sending account."""
    account = WhatsAppAccount(company_id=company.id, **sample_account_data)
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


class GraphApiStub:
    """Stands in for the Cloud API messages endpoint.

    Queued responses are served in order; once the queue is empty every
    request succeeds with a fresh ``wamid``. An exception in the queue is
    raised from the transport instead of answering.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []

    def queue(self, status_code: int, json: Any = None, text: str | None = None) -> None:
        if text is not None:
            self.responses.append(httpx.Response(status_code, text=text))
        else:
            self.responses.append(httpx.Response(status_code, json=json))

    def queue_error(self, error: Exception) -> None:
        self.responses.append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return httpx.Response(
            200, json={"messages": [{"id": f"wamid.{len(self.requests)}"}]}
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, phone_number_id: str = "1098765", access_token: str = "token"):
        return WhatsAppCloudClient(
            phone_number_id,
            access_token,
            base_url=GRAPH_BASE_URL,
            api_version="v18.0",
            transport=self.transport,
        )

    def client_factory(self, account: WhatsAppAccount) -> WhatsAppCloudClient:
        return self.client(account.phone_number_id, account.access_token)


@pytest.fixture
def graph_api() -> GraphApiStub:
    """Cloud API stub behind an httpx MockTransport."""
    return GraphApiStub()


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def message_service(db_session, company, user, graph_api, sleeps) -> MessageService:
    """Message service wired to the Cloud API stub, without real backoff waits."""
    return MessageService(
        db_session,
        company.id,
        user.id,
        client_factory=graph_api.client_factory,
        max_attempts=3,
        retry_base_delay_ms=1000,
        sleep=sleeps,
    )


class FakeRedis:
    """In-memory subset of the redis.asyncio commands the webhook store uses."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = {}
        self.expiries: dict[str, int] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        if ex is not None:
            self.expiries[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed

    async def lpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def ltrim(self, key, start, end):
        items = self.lists.get(key, [])
        self.lists[key] = items[start : None if end == -1 else end + 1]
        return True

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start : None if end == -1 else end + 1]

    async def lset(self, key, index, value):
        self.lists[key][index] = value
        return True

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    def keys_matching(self, pattern: str) -> list[str]:
        return [key for key in self.values if fnmatch.fnmatch(key, pattern)]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def db_outage(monkeypatch):
    """Make a repository method fail the way a dropped connection does.

    Usage: ``db_outage(ConversationRepository, "list")``.
    """

    def break_method(repository_class, method_name: str) -> None:
        async def fail(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        monkeypatch.setattr(repository_class, method_name, fail)

    return break_method
