"""
Pydantic schemas for person records and extraction oracle payloads.
"""

from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lifebook.models.person import ExtractionStatus
from lifebook.schemas.base import CamelModel


class PersonResponse(CamelModel):
    """A person record as read from the store."""
    id: UUID
    project_id: UUID
    name: str
    aliases: List[str] = Field(default_factory=list)
    relationship_to_user: Optional[str] = None
    bio_snippet: Optional[str] = None
    importance_score: float = 0.0
    confidence_score: float = 1.0
    extraction_status: ExtractionStatus = ExtractionStatus.pending
    merged_from_id: Optional[UUID] = None
    merged_from_ids: List[UUID] = Field(default_factory=list)

    @field_validator("aliases", "merged_from_ids", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class PersonSummary(CamelModel):
    """Compact person info shown in duplicate review."""
    id: UUID
    name: str
    aliases: List[str] = Field(default_factory=list)
    importance_score: float = 0.0


class PersonListResponse(CamelModel):
    """People of one project."""
    people: List[PersonResponse] = Field(default_factory=list)


class ExtractedPerson(BaseModel):
    """
    One person as returned by the entity extraction oracle.

    The oracle payload is untrusted: blank names are rejected, aliases are
    cleaned, and confidence must be finite and is clamped into [0, 1].
    """
    name: str = Field(..., max_length=255)
    aliases: List[str] = Field(default_factory=list)
    relationship: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    confidence: float = Field(1.0, allow_inf_nan=False)
    mentions: int = Field(1, ge=0)

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _clean_aliases(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            return value
        return [a.strip() for a in value if isinstance(a, str) and a.strip()]

    @field_validator("relationship", "description", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        return 1.0 if value is None else value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return min(max(value, 0.0), 1.0)


class IngestRequest(CamelModel):
    """Raw oracle output for one project."""
    project_id: UUID
    people: List[Any] = Field(default_factory=list)


class IngestResponse(CamelModel):
    """Result of ingesting oracle output."""
    created: List[PersonResponse] = Field(default_factory=list)
    rejected: int = 0
