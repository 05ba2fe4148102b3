"""
MergeLog model: append-only audit record of person merges.

Each merge stores a rollback snapshot so it can be undone exactly once.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import (
    DateTime,
    Enum,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from lifebook.models.base import Base, JSONType, utcnow


class MergeStrategy(str, PyEnum):
    """Which record's attributes win when two people are merged."""

    keep_primary = "keep_primary"
    keep_secondary = "keep_secondary"
    custom = "custom"


class MergeLogStatus(str, PyEnum):
    """Lifecycle of a merge log."""

    active = "active"
    undone = "undone"


class MergeLog(Base):
    """
    Record of one secondary person merged into a primary.

    Attributes:
        merge_strategy: Strategy used to combine the two records
        details: Counts shown in the merge history (aliases, photos, ...)
        rollback_data: Deep snapshot of the secondary and its associations
        status: active until the merge is undone
    """

    __tablename__ = "person_merge_logs"
    __table_args__ = (
        Index("idx_person_merge_logs_project", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    primary_person_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    secondary_person_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    merge_strategy: Mapped[MergeStrategy] = mapped_column(
        Enum(MergeStrategy, name="merge_strategy_type", native_enum=False, length=20),
        nullable=False,
    )
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    rollback_data: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        comment="Pre-merge snapshot used by undo",
    )
    status: Mapped[MergeLogStatus] = mapped_column(
        Enum(MergeLogStatus, name="merge_log_status_type", native_enum=False, length=20),
        nullable=False,
        default=MergeLogStatus.active,
    )
    merged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    undone_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<MergeLog("
            f"primary={self.primary_person_id}, "
            f"secondary={self.secondary_person_id}, "
            f"status={self.status.value})>"
        )
