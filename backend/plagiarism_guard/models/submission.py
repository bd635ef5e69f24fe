"""Text submission persistence model.

Classes:
    Submission: A learner's text submission; owned by the course subsystem, only `is_flagged` is written here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class Submission(SQLModel, table=True):
    __tablename__ = "text_submissions"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    tenant_id: str = Field(index=True)
    course_id: str = Field(index=True)
    user_id: str = Field(index=True)
    text_content: str = Field(sa_column=Column(Text, nullable=False))
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    is_flagged: bool = Field(default=False)
