# db.py
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from config import settings
from db_base import Base


def is_sqlite(url: str | None) -> bool:
    return bool(url) and url.startswith("sqlite")


def engine_options(url: str | None) -> dict:
    """Driver-specific engine arguments."""
    if is_sqlite(url):
        # aiosqlite runs the connection in a worker thread
        return {"connect_args": {"check_same_thread": False}}
    # Stale pooled connections are replaced before use
    return {"pool_pre_ping": True}


# ---------- Engine & Session (async) ----------

engine = create_async_engine(
    settings.DATABASE_URL,  # postgresql+asyncpg://... or sqlite+aiosqlite://
    echo=settings.DEBUG,
    future=True,
    **engine_options(settings.DATABASE_URL),
)

# Objects stay usable after commit; custody reads refresh with populate_existing
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def init_db() -> None:
    """
    Create holders, assets and custody_events from ORM metadata.

    Used for SQLite databases at startup. PostgreSQL schemas are managed by
    Alembic migrations.
    """
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------- FastAPI dependency ----------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; uncommitted work is rolled back on close."""
    async with AsyncSessionLocal() as session:
        yield session
