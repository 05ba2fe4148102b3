"""
PersonPhoto model linking uploaded photos to people.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from lifebook.models.base import Base, utcnow


class PersonPhoto(Base):
    """Association between a photo and the person it shows."""

    __tablename__ = "person_photos"
    __table_args__ = (
        Index("idx_person_photos_person_id", "person_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    photo_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    caption: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<PersonPhoto(id={self.id}, person_id={self.person_id})>"
