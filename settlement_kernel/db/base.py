"""
Module: settlement_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models.  Provides the
    type annotation map for consistent column types and the TrackedBase mixin
    for row timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, domain/, or outer layers.

Invariants enforced:
    - Timestamps are timezone-aware: type_annotation_map maps datetime to
      DateTime(timezone=True).
    - Document payloads are stored as JSON: dict maps to the generic JSON
      type, so the same schema runs on SQLite and PostgreSQL.

Failure modes:
    - IntegrityError if a model attempts to INSERT a duplicate primary key.
"""

from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - datetime maps to DateTime(timezone=True) -- always timezone-aware.
        - dict maps to JSON -- portable document payloads.
        - str maps to String(255) unless a column overrides it.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        dict[str, Any]: JSON,
        str: String(255),
    }


class TrackedBase(Base):
    """
    Abstract base with row timestamps.

    Guarantees:
        - created_at is set to server NOW() on INSERT and never changes.
        - updated_at is set on INSERT and auto-updates on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
