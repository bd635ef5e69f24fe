"""Tenant-scoped access to submissions and tenant settings."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from plagiarism_guard.core.errors import PersistenceError
from plagiarism_guard.db.session import tenant_session
from plagiarism_guard.models import Submission, Tenant


class SubmissionStore:
    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, submission_id: str, tenant_id: str) -> Optional[Submission]:
        async with tenant_session(tenant_id, self._session_factory) as session:
            result = await session.exec(
                select(Submission).where(
                    Submission.id == submission_id,
                    Submission.tenant_id == tenant_id,
                )
            )
            return result.scalars().first()

    async def set_flagged(self, submission_id: str, tenant_id: str) -> None:
        """Mark the submission as flagged; flags are never cleared here."""

        try:
            async with tenant_session(tenant_id, self._session_factory) as session:
                await session.execute(
                    update(Submission)
                    .where(
                        Submission.id == submission_id,
                        Submission.tenant_id == tenant_id,
                    )
                    .values(is_flagged=True)
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"flag write failed for submission {submission_id}: {exc}") from exc

    async def get_tenant_settings(self, tenant_id: str) -> Optional[dict[str, Any]]:
        async with tenant_session(tenant_id, self._session_factory) as session:
            result = await session.exec(select(Tenant.settings).where(Tenant.id == tenant_id))
            settings = result.scalars().first()
        return settings if isinstance(settings, dict) else None
