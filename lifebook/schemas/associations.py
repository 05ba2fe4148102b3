"""
Pydantic schemas for rows that reference a person (photos, relationships).
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from lifebook.models.person_relationship import RelationshipRole


class PhotoAssociationRecord(BaseModel):
    """Photo linked to a person."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    photo_url: str
    caption: Optional[str] = None


class RelationshipRecord(BaseModel):
    """Relationship between two people of a project."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    person_a_id: UUID
    person_b_id: UUID
    relationship_type: Optional[str] = None

    def endpoint(self, role: RelationshipRole) -> UUID:
        return getattr(self, role.column)


class RelationshipSnapshot(RelationshipRecord):
    """Relationship as captured before a merge, with its original endpoints."""
    original_person_a_id: UUID
    original_person_b_id: UUID

    @classmethod
    def capture(cls, record: RelationshipRecord) -> "RelationshipSnapshot":
        return cls(
            **record.model_dump(),
            original_person_a_id=record.person_a_id,
            original_person_b_id=record.person_b_id,
        )

    def original_endpoint(self, role: RelationshipRole) -> UUID:
        return getattr(self, f"original_{role.column}")
