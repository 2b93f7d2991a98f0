import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import DateTime, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from .config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite keeps no offset, so values are stored as UTC and tagged as UTC
    again when read back.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# Created in init_engine() at startup, never at import time.
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None

DEFAULT_CATEGORIES = [
    ("Theft", "Stolen property or robbery", "#ef4444"),
    ("Vandalism", "Damage to public or private property", "#f97316"),
    ("Assault", "Physical violence against a person", "#dc2626"),
    ("Suspicious Activity", "Unusual behaviour worth checking", "#eab308"),
    ("Fire", "Fires, smoke or burning hazards", "#b91c1c"),
    ("Traffic Accident", "Collisions and road hazards", "#3b82f6"),
    ("Harassment", "Threats, stalking or intimidation", "#a855f7"),
    ("Other", None, "#6b7280"),
]


def init_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create the process-wide engine and session factory."""
    global engine, AsyncSessionLocal

    url = url or settings.DATABASE_URL
    options = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW

    engine = create_async_engine(url, **options)
    AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("Database engine created (%s)", engine.url.render_as_string(hide_password=True))
    return engine


async def dispose_engine():
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
        logger.info("Database pool disposed")
    engine = None
    AsyncSessionLocal = None


async def create_all():
    if engine is None:
        raise RuntimeError("Database engine has not been initialized. Call init_engine() first.")
    # Register every table on Base.metadata before creating them.
    from incident_portal.models import category, incident, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_categories():
    from incident_portal.models.category import Category

    async with session_scope() as session:
        async with transaction(session):
            count = (await session.execute(select(func.count(Category.id)))).scalar_one()
            if count:
                return
            for name, description, color in DEFAULT_CATEGORIES:
                session.add(Category(name=name, description=description, color=color))
    logger.info("Seeded %d default incident categories", len(DEFAULT_CATEGORIES))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Check out one pooled connection and release it on every exit path."""
    if AsyncSessionLocal is None:
        raise RuntimeError("Database session factory has not been initialized.")
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception:
            logger.warning("Failed to release database connection", exc_info=True)


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed statements as one unit of work.

    Commits on success; rolls back and re-raises on any exception. A read-only
    transaction opened implicitly by earlier queries on the session is rolled
    back first so nothing pending leaks into the block and it runs under a
    single BEGIN.
    """
    if session.in_transaction():
        await session.rollback()
    async with session.begin():
        yield session


async def get_db():
    async with session_scope() as session:
        yield session


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())
