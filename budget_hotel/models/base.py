"""
SQLAlchemy model mixins for reusable functionality.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func


# Largest key a 32-bit INTEGER column holds
MAX_ID = 2_147_483_647


class IntegerIdMixin:
    """Integer surrogate key. Booking ids appear in printed QR payloads."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Provides created_at and updated_at fields maintained by the database.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        comment="Record creation timestamp",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Record last update timestamp",
    )


class SoftDeleteMixin:
    """
    Mixin for soft delete capability.

    Soft-deleted rows are excluded from every business query.
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Soft delete flag",
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Deletion timestamp",
    )

    def soft_delete(self, when: Optional[datetime] = None) -> None:
        self.is_deleted = True
        self.deleted_at = when or datetime.now()
