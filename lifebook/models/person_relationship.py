"""
PersonRelationship model for storing person-to-person relationships.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from lifebook.models.base import Base, utcnow


class RelationshipRole(str, PyEnum):
    """Endpoint of a relationship row."""

    person_a = "person_a"
    person_b = "person_b"

    @property
    def column(self) -> str:
        return f"{self.value}_id"


class PersonRelationship(Base):
    """
    Person-to-person relationship (e.g. "sister", "colleague").

    When a merge re-points one endpoint, merged_at and merge_log_id record
    which merge did it; an undo clears them again.
    """

    __tablename__ = "person_relationships"
    __table_args__ = (
        Index("idx_person_relationships_a", "person_a_id"),
        Index("idx_person_relationships_b", "person_b_id"),
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
    person_a_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    person_b_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    relationship_type: Mapped[str | None] = mapped_column(String(100))
    merged_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    merge_log_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<PersonRelationship(a={self.person_a_id}, b={self.person_b_id})>"
