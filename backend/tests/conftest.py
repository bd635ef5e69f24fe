import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

os.environ["EMBEDDING_DIM"] = "2"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["THRESHOLD_CACHE_TTL_SECONDS"] = "0"
os.environ["ENABLE_CONSUMER"] = "false"

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from plagiarism_guard.core.config import get_settings
from plagiarism_guard.core.errors import EmbeddingError
from plagiarism_guard.models import Submission, SubmissionEmbedding, Tenant

_BASE_TIME = datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FakeEmbeddingClient:
    """Returns a fixed vector per text; unknown texts fail like an unreachable provider."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text not in self.vectors:
            raise EmbeddingError(f"no vector for {text!r}")
        return list(self.vectors[text])


@pytest.fixture()
def settings():
    return get_settings()


@pytest_asyncio.fixture()
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'plagiarism.db'}",
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
def add_submission(session_factory):
    counter = {"n": 0}

    async def _add(
        submission_id: str,
        *,
        tenant_id: str = "t1",
        course_id: str = "c1",
        user_id: str | None = None,
        text: str = "",
    ) -> Submission:
        counter["n"] += 1
        submission = Submission(
            id=submission_id,
            tenant_id=tenant_id,
            course_id=course_id,
            user_id=user_id or f"user-{submission_id}",
            text_content=text,
            submitted_at=_BASE_TIME + timedelta(minutes=counter["n"]),
        )
        async with session_factory() as session:
            session.add(submission)
            await session.commit()
        return submission

    return _add


@pytest.fixture()
def add_tenant(session_factory):
    async def _add(tenant_id: str, settings: dict | None = None) -> Tenant:
        tenant = Tenant(id=tenant_id, name=tenant_id, settings=settings)
        async with session_factory() as session:
            session.add(tenant)
            await session.commit()
        return tenant

    return _add


@pytest.fixture()
def fetch_submission(session_factory):
    async def _fetch(submission_id: str) -> Submission | None:
        async with session_factory() as session:
            return await session.get(Submission, submission_id)

    return _fetch


@pytest.fixture()
def count_embeddings(session_factory):
    async def _count(submission_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(SubmissionEmbedding)
        if submission_id is not None:
            stmt = stmt.where(SubmissionEmbedding.submission_id == submission_id)
        async with session_factory() as session:
            result = await session.exec(stmt)
            return int(result.scalar_one())

    return _count
