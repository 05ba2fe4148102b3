"""
SQLAlchemy models for Lifebook people resolution.

All models are imported here for easy access and to ensure
they are registered with the declarative base.
"""

from lifebook.models.base import Base
from lifebook.models.person import Person, ExtractionStatus
from lifebook.models.person_photo import PersonPhoto
from lifebook.models.person_relationship import PersonRelationship, RelationshipRole
from lifebook.models.merge_log import MergeLog, MergeStrategy, MergeLogStatus
from lifebook.models.duplicate_exclusion import DuplicateExclusion

__all__ = [
    # Base
    "Base",
    # People
    "Person",
    "ExtractionStatus",
    "PersonPhoto",
    "PersonRelationship",
    "RelationshipRole",
    # Merge audit
    "MergeLog",
    "MergeStrategy",
    "MergeLogStatus",
    "DuplicateExclusion",
]
