"""Tenant persistence model.

Classes:
    Tenant: Tenant row carrying the free-form settings blob (e.g. `plagiarism_threshold`).
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Tenant(SQLModel, table=True):
    __tablename__ = "tenants"

    id: str = Field(primary_key=True)
    name: str = Field(default="")
    settings: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
