"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets a fresh in-memory SQLite database (aiosqlite).
- Everything a test writes happens inside one outer transaction that is
  rolled back afterwards; SAVEPOINTs used by the services nest inside it.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from parkpulse.auth.jwt import Identity, create_identity_token
from parkpulse.database import Base, enable_sqlite_savepoints, get_db
from parkpulse.events import discard_events
from parkpulse.main import app
from parkpulse.models.booking import Booking
from parkpulse.models.listing import Listing
from parkpulse.notifications.dispatcher import dispatch_pending, dispatcher
from parkpulse.notifications.notifier import Notifier
from parkpulse.schemas.listing import ListingCreate
from parkpulse.services.booking_lifecycle import request_booking
from parkpulse.services.listing_registry import create_listing

BOOKING_DAY = date(2030, 6, 1)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """A private in-memory database; StaticPool keeps it on one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class RecordingNotifier(Notifier):
    """Collects messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, address: str, subject: str, body: str) -> None:
        self.sent.append((address, subject, body))

    @property
    def recipients(self) -> list[str]:
        return [address for address, _, _ in self.sent]


@pytest.fixture
def notifier(monkeypatch) -> RecordingNotifier:
    """Swap the process-wide dispatcher's notifier for a recording one."""
    recording = RecordingNotifier()
    monkeypatch.setattr(dispatcher, "notifier", recording)
    return recording


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session.

    Each request flushes instead of committing, then dispatches its events
    the way the real unit of work does after a commit.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.flush()
        except Exception:
            discard_events(db_session)
            raise
        await dispatch_pending(db_session)

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


def _identity(name: str) -> Identity:
    unique = uuid.uuid4().hex[:8]
    return Identity(
        user_id=f"user-{unique}",
        name=name,
        email=f"{name.lower()}-{unique}@test.com",
    )


def _headers(identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_identity_token(identity)}"}


@pytest.fixture
def owner() -> Identity:
    return _identity("Olivia")


@pytest.fixture
def requester() -> Identity:
    return _identity("Rafael")


@pytest.fixture
def other_requester() -> Identity:
    return _identity("Sana")


@pytest.fixture
def owner_headers(owner: Identity) -> dict[str, str]:
    return _headers(owner)


@pytest.fixture
def requester_headers(requester: Identity) -> dict[str, str]:
    return _headers(requester)


@pytest.fixture
def other_requester_headers(other_requester: Identity) -> dict[str, str]:
    return _headers(other_requester)


# ---------------------------------------------------------------------------
# Convenience fixtures: listing and booking helpers
# ---------------------------------------------------------------------------


def listing_payload(**overrides) -> dict:
    """JSON body for ``POST /api/v1/listings``: 10 Elm St, 09:00-17:00 at $5/h."""
    payload = {
        "address": "10 Elm St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
        "rate_per_hour": "5.00",
        "available_date": BOOKING_DAY.isoformat(),
        "start_time": "09:00",
        "end_time": "17:00",
        "contact_email": "olivia@test.com",
        "description": "Covered driveway spot",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def listing(db_session: AsyncSession, owner: Identity) -> Listing:
    """A 09:00-17:00 listing created through the registry."""
    data = ListingCreate(
        **listing_payload(contact_email=owner.email, rate_per_hour=Decimal("5.00"), available_date=BOOKING_DAY)
    )
    return await create_listing(db_session, owner.user_id, data)


@pytest.fixture
def book(db_session: AsyncSession, listing: Listing, requester: Identity):
    """Factory: ``await book("10:00", "12:00")`` requests a window on the listing."""

    async def _book(start: str, end: str, who: Identity | None = None) -> Booking:
        who = who or requester
        return await request_booking(
            db_session,
            listing.id,
            requester_id=who.user_id,
            requester_name=who.name,
            requester_contact=who.email,
            start_time=start,
            end_time=end,
        )

    return _book


@pytest_asyncio.fixture
async def api_listing(client: AsyncClient, owner_headers: dict) -> dict:
    """Create and return a listing via the API."""
    response = await client.post("/api/v1/listings", json=listing_payload(), headers=owner_headers)
    assert response.status_code == 201, f"Failed to create listing: {response.text}"
    return response.json()
