"""
Duplicate exclusion model.

Stores pairs of people that have been marked as "not duplicates"
so they don't appear in future duplicate detection results.
"""

from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Uuid

from lifebook.models.base import Base, utcnow


class DuplicateExclusion(Base):
    """
    Stores pairs of people that should not be considered duplicates.

    The pair is always stored with the smaller UUID as person1_id
    and the larger UUID as person2_id to ensure uniqueness.
    """
    __tablename__ = "duplicate_exclusions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(Uuid, nullable=False)
    person1_id = Column(Uuid, ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    person2_id = Column(Uuid, ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Ensure the pair is unique regardless of order
    __table_args__ = (
        Index('ix_duplicate_exclusions_pair', 'person1_id', 'person2_id', unique=True),
    )

    @classmethod
    def make_ordered_pair(cls, id1: UUID, id2: UUID) -> tuple[UUID, UUID]:
        """Return the IDs in consistent order (smaller first) for storage."""
        if str(id1) < str(id2):
            return id1, id2
        return id2, id1
