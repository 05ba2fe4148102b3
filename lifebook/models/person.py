"""
Person model for people extracted from a project's narrative.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    String,
    Text,
    Float,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from lifebook.models.base import Base, JSONType, utcnow


class ExtractionStatus(str, PyEnum):
    """Review state of an extracted person."""

    pending = "pending"
    confirmed = "confirmed"
    merged = "merged"


class Person(Base):
    """
    A candidate real-world individual extracted from narrative text.

    A person with extraction_status=merged is a tombstone: it has been
    absorbed into the person referenced by merged_from_id and is kept only
    for referential integrity and undo.
    """

    __tablename__ = "people"
    __table_args__ = (
        Index("idx_people_project_status", "project_id", "extraction_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    aliases: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Alternate names, original casing",
    )
    relationship_to_user: Mapped[str | None] = mapped_column(String(255))
    bio_snippet: Mapped[str | None] = mapped_column(Text)
    importance_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Mention-weighted importance",
    )
    confidence_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=1.0,
    )
    extraction_status: Mapped[ExtractionStatus] = mapped_column(
        Enum(
            ExtractionStatus,
            name="extraction_status_type",
            native_enum=False,
            length=20,
        ),
        nullable=False,
        default=ExtractionStatus.pending,
    )
    merged_from_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("people.id", ondelete="SET NULL"),
        nullable=True,
        comment="Surviving primary this person was merged into",
    )
    merged_from_ids: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Ids of secondaries absorbed into this person",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.name}', status={self.extraction_status.value})>"

    @property
    def is_merged(self) -> bool:
        """Check if this person has been absorbed into another."""
        return self.extraction_status == ExtractionStatus.merged
