"""Async SQLAlchemy engine and session factory shared by every module.

Every query is raw SQL through text() (see sc_wallet.infrastructure); there are
no ORM models, the Alembic migrations own the schema.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One AsyncSession per request.

    Services own commit and rollback; a session closed with work still pending
    is rolled back by SQLAlchemy, so a request that raises commits nothing.
    """
    async with async_session_factory() as session:
        yield session
