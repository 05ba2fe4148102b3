"""
Pydantic schemas for merge, undo and merge history.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lifebook.models.merge_log import MergeStrategy, MergeLogStatus
from lifebook.schemas.associations import PhotoAssociationRecord, RelationshipSnapshot
from lifebook.schemas.base import CamelModel
from lifebook.schemas.person import PersonResponse


class PersonFieldsSnapshot(BaseModel):
    """Descriptive fields of a person that a merge may overwrite."""
    model_config = ConfigDict(from_attributes=True)

    name: str
    aliases: List[str] = Field(default_factory=list)
    bio_snippet: Optional[str] = None
    relationship_to_user: Optional[str] = None


class RollbackData(BaseModel):
    """
    Everything undo needs to reverse one merge.

    Stored as JSON on the merge log, so it is an independent copy of the
    pre-merge state.
    """
    person: PersonResponse
    photos: List[PhotoAssociationRecord] = Field(default_factory=list)
    relationships: List[RelationshipSnapshot] = Field(default_factory=list)
    primary_before: Optional[PersonFieldsSnapshot] = None
    primary_after: Optional[PersonFieldsSnapshot] = None


class MergeLogRecord(BaseModel):
    """A merge log as read from or written to the store."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    primary_person_id: UUID
    secondary_person_id: UUID
    merge_strategy: MergeStrategy
    details: dict[str, Any] = Field(default_factory=dict)
    rollback_data: RollbackData
    status: MergeLogStatus = MergeLogStatus.active
    merged_at: Optional[datetime] = None
    undone_at: Optional[datetime] = None


class CustomMergeData(CamelModel):
    """Caller-chosen values for the custom merge strategy."""
    name: Optional[str] = Field(None, max_length=255)
    aliases: Optional[List[str]] = None
    bio_snippet: Optional[str] = None
    relationship_to_user: Optional[str] = Field(None, max_length=255)


class MergeRequest(CamelModel):
    """Request to merge a secondary person into a primary."""
    project_id: UUID
    primary_person_id: UUID
    secondary_person_id: UUID
    strategy: MergeStrategy = MergeStrategy.keep_primary
    custom_data: Optional[CustomMergeData] = None


class MergeResponse(CamelModel):
    """Result of a merge."""
    success: bool = True
    merge_log_id: UUID
    merged_person: PersonResponse
    photo_count: int = 0
    relationship_count: int = 0
    skipped_associations: int = 0


class UndoMergeRequest(CamelModel):
    """Request to undo one merge."""
    project_id: UUID
    merge_log_id: UUID


class UndoMergeResponse(CamelModel):
    """Result of an undo."""
    success: bool = True
    restored_secondary_person: PersonResponse
    message: str
    skipped_associations: int = 0


class MergeLogResponse(CamelModel):
    """Merge history entry (without the rollback snapshot)."""
    id: UUID
    primary_person_id: UUID
    secondary_person_id: UUID
    merge_strategy: MergeStrategy
    status: MergeLogStatus
    details: dict[str, Any] = Field(default_factory=dict)
    merged_at: Optional[datetime] = None
    undone_at: Optional[datetime] = None


class MergeLogListResponse(CamelModel):
    """Merge history of a project."""
    merge_logs: List[MergeLogResponse] = Field(default_factory=list)
