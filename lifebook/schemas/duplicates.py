"""
Pydantic schemas for duplicate detection and "not duplicates" exclusions.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import Field

from lifebook.schemas.base import CamelModel
from lifebook.schemas.person import PersonSummary
from lifebook.services.similarity import SimilarityReason


class DetectDuplicatesRequest(CamelModel):
    """Request to scan a project for duplicate people."""
    project_id: UUID
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0)


class SimilarityPairResponse(CamelModel):
    """Two people whose similarity reached the threshold."""
    person_a_id: UUID
    person_b_id: UUID
    score: float
    reason: SimilarityReason


class DuplicateGroupResponse(CamelModel):
    """People connected through a chain of similar pairs."""
    group_id: str
    person_ids: List[UUID]
    pairs: List[SimilarityPairResponse] = Field(default_factory=list)
    details: List[PersonSummary] = Field(default_factory=list)


class DetectDuplicatesResponse(CamelModel):
    """Payload consumed by the duplicate review UI."""
    success: bool = True
    duplicate_groups: List[DuplicateGroupResponse] = Field(default_factory=list)
    total_duplicates: int = 0
    processing_time_ms: float = 0.0


class ExclusionRequest(CamelModel):
    """People that should never be reported as duplicates of each other."""
    project_id: UUID
    person_ids: List[UUID] = Field(..., min_length=2)


class ExclusionResponse(CamelModel):
    """Result of creating or removing exclusions."""
    created: int = 0
    removed: bool = False
