"""Async SQLAlchemy engine, session factory, declarative base and unit of work."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from parkpulse.config import settings
from parkpulse.events import discard_events
from parkpulse.exceptions import DependencyError

logger = logging.getLogger(__name__)


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN on SQLite so SAVEPOINT works.

    The sqlite3 driver issues its own BEGIN lazily, which breaks nested
    transactions. This is the documented SQLAlchemy recipe for aiosqlite.

    Transactions start with ``BEGIN IMMEDIATE``: the write lock is taken up
    front, so a second writer waits for the first to commit (up to the
    driver's busy timeout) and then reads the committed schedule.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _make_engine() -> AsyncEngine:
    if settings.is_sqlite:
        sqlite_engine = create_async_engine(settings.async_database_url, echo=settings.debug)
        enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine
    return create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


engine = _make_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDPrimaryKeyMixin:
    """Mixin that adds a UUID primary key column."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Run one user action in a session: commit on success, then notify.

    Domain events queued on the session are only handed to the notification
    dispatcher after the commit succeeds. On failure the transaction is
    rolled back and the queued events are dropped. Connectivity failures of
    the store surface as ``DependencyError``.

    Usage::

        async with unit_of_work() as db:
            await approve_booking(db, booking_id)
    """
    from parkpulse.notifications.dispatcher import dispatch_pending

    factory = session_factory or async_session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except (OperationalError, InterfaceError) as exc:
            await session.rollback()
            discard_events(session)
            logger.exception("Store unavailable, unit of work rolled back")
            raise DependencyError("The booking store is unavailable. Please try again.") from exc
        except Exception:
            await session.rollback()
            discard_events(session)
            raise
        await dispatch_pending(session)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield an async database session for FastAPI dependency injection.

    Usage::

        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with unit_of_work() as session:
        yield session
