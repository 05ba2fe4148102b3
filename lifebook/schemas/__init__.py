"""
Pydantic schemas for API request/response validation.
"""

from lifebook.schemas.person import (
    PersonResponse,
    PersonSummary,
    PersonListResponse,
    ExtractedPerson,
    IngestRequest,
    IngestResponse,
)
from lifebook.schemas.associations import (
    PhotoAssociationRecord,
    RelationshipRecord,
    RelationshipSnapshot,
)
from lifebook.schemas.merge import (
    PersonFieldsSnapshot,
    RollbackData,
    MergeLogRecord,
    CustomMergeData,
    MergeRequest,
    MergeResponse,
    UndoMergeRequest,
    UndoMergeResponse,
    MergeLogResponse,
    MergeLogListResponse,
)

__all__ = [
    # Person
    "PersonResponse",
    "PersonSummary",
    "PersonListResponse",
    "ExtractedPerson",
    "IngestRequest",
    "IngestResponse",
    # Associations
    "PhotoAssociationRecord",
    "RelationshipRecord",
    "RelationshipSnapshot",
    # Merge
    "PersonFieldsSnapshot",
    "RollbackData",
    "MergeLogRecord",
    "CustomMergeData",
    "MergeRequest",
    "MergeResponse",
    "UndoMergeRequest",
    "UndoMergeResponse",
    "MergeLogResponse",
    "MergeLogListResponse",
]
