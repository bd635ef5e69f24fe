"""Database engine and session utilities.

Attributes:
    engine (AsyncEngine): Primary SQLModel async engine (PostgreSQL + pgvector in production, SQLite locally).
    SessionLocal (async_sessionmaker): Factory for yielding AsyncSession objects.

Functions:
    init_db(): Create database tables (and the pgvector extension on PostgreSQL).
    get_session(): Dependency that yields an AsyncSession for request handlers.
    get_session_factory(): Dependency returning the session factory used by the stores.
    tenant_session(tenant_id, factory): Open a transaction bound to a single tenant.
    dialect_name(session): Name of the SQL dialect a session talks to.
    dispose_engine(): Close the connection pool.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from plagiarism_guard.core.config import get_settings

_settings = get_settings()

if _settings.database_url.startswith("sqlite+aiosqlite:///"):
    _db_path = Path(_settings.database_url.replace("sqlite+aiosqlite:///", "")).resolve()
    if _db_path.parent.name:
        _db_path.parent.mkdir(parents=True, exist_ok=True)

engine: AsyncEngine = create_async_engine(
    _settings.database_url,
    echo=False,
    future=True,
    connect_args=(
        {"check_same_thread": False}
        if _settings.database_url.startswith("sqlite")
        else {}
    ),
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: AsyncEngine | None = None) -> None:
    bind = bind or engine
    async with bind.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.exec_driver_sql("CREATE EXTENSION IF NOT EXISTS vector")
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    return SessionLocal


def dialect_name(session: AsyncSession) -> str:
    return session.bind.dialect.name


@asynccontextmanager
async def tenant_session(
    tenant_id: str,
    factory: async_sessionmaker | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session whose transaction is scoped to ``tenant_id``.

    On PostgreSQL the tenant is published through ``app.current_tenant`` for the lifetime of
    the transaction so row level security policies apply. The transaction commits when the
    block exits cleanly and rolls back otherwise.
    """

    factory = factory or SessionLocal
    async with factory() as session:
        async with session.begin():
            if dialect_name(session) == "postgresql":
                await session.execute(
                    text("SELECT set_config('app.current_tenant', :tenant_id, true)"),
                    {"tenant_id": tenant_id},
                )
            yield session


async def dispose_engine(bind: AsyncEngine | None = None) -> None:
    await (bind or engine).dispose()
