"""
Record store contract for the people resolution services.

Duplicate detection, merge and undo only talk to a PersonStore, never to
a database session directly, so the persistence engine can be swapped.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any
from uuid import UUID

from lifebook.models.merge_log import MergeLogStatus
from lifebook.models.person import ExtractionStatus
from lifebook.models.person_relationship import RelationshipRole
from lifebook.schemas.associations import PhotoAssociationRecord, RelationshipRecord
from lifebook.schemas.merge import MergeLogRecord
from lifebook.schemas.person import PersonResponse


class StoreError(Exception):
    """Base exception for record store errors."""
    pass


class AssociationUpdateError(StoreError):
    """Raised when a photo or relationship row cannot be re-pointed."""
    pass


class PersonStore(ABC):
    """
    Abstract record store for people, their associations and merge logs.

    Mutating calls made inside transaction() are committed together when
    the block exits normally and rolled back if it raises.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open a unit of work."""
        pass

    # ==================== People ====================

    @abstractmethod
    def list_people(
        self,
        project_id: UUID,
        exclude_status: ExtractionStatus | None = None,
    ) -> list[PersonResponse]:
        """List a project's people, most important first."""
        pass

    @abstractmethod
    def get_person(self, person_id: UUID, for_update: bool = False) -> PersonResponse | None:
        """Get one person; for_update locks the row until the transaction ends."""
        pass

    @abstractmethod
    def create_person(self, project_id: UUID, fields: dict[str, Any]) -> PersonResponse:
        pass

    @abstractmethod
    def update_person(self, person_id: UUID, patch: dict[str, Any]) -> PersonResponse:
        """Apply a partial update and return the new state."""
        pass

    @abstractmethod
    def tombstone_person(self, person_id: UUID, primary_id: UUID) -> bool:
        """
        Mark a person as merged into primary_id.

        Returns False, changing nothing, if the person is already merged.
        """
        pass

    # ==================== Associations ====================

    @abstractmethod
    def list_photo_associations(self, person_id: UUID) -> list[PhotoAssociationRecord]:
        pass

    @abstractmethod
    def add_photo_association(
        self,
        person_id: UUID,
        photo_url: str,
        caption: str | None = None,
    ) -> PhotoAssociationRecord:
        pass

    @abstractmethod
    def reassign_photo_association(self, association_id: UUID, new_person_id: UUID) -> None:
        """Point a photo association at another person; raises AssociationUpdateError."""
        pass

    @abstractmethod
    def list_relationships(self, person_id: UUID) -> list[RelationshipRecord]:
        """Relationships where the person is either endpoint."""
        pass

    @abstractmethod
    def add_relationship(
        self,
        project_id: UUID,
        person_a_id: UUID,
        person_b_id: UUID,
        relationship_type: str | None = None,
    ) -> RelationshipRecord:
        pass

    @abstractmethod
    def reassign_relationship_endpoint(
        self,
        relationship_id: UUID,
        role: RelationshipRole,
        new_person_id: UUID,
        merge_log_id: UUID | None = None,
    ) -> None:
        """
        Point one endpoint of a relationship at another person.

        merge_log_id records the merge that moved it; None clears it.
        Raises AssociationUpdateError.
        """
        pass

    # ==================== Merge logs ====================

    @abstractmethod
    def insert_merge_log(self, log: MergeLogRecord) -> MergeLogRecord:
        pass

    @abstractmethod
    def get_merge_log(self, log_id: UUID) -> MergeLogRecord | None:
        pass

    @abstractmethod
    def list_merge_logs(
        self,
        project_id: UUID,
        status: MergeLogStatus | None = None,
    ) -> list[MergeLogRecord]:
        """Merge history of a project, newest first."""
        pass

    @abstractmethod
    def update_merge_log_status(
        self,
        log_id: UUID,
        status: MergeLogStatus,
        expected_status: MergeLogStatus | None = None,
    ) -> bool:
        """
        Change a log's status.

        With expected_status set, only updates a log currently in that
        status and returns False otherwise.
        """
        pass

    # ==================== Duplicate exclusions ====================

    @abstractmethod
    def get_excluded_pairs(self, project_id: UUID) -> set[tuple[UUID, UUID]]:
        """Excluded pairs as (smaller_id, larger_id) tuples."""
        pass

    @abstractmethod
    def add_exclusion(self, project_id: UUID, id1: UUID, id2: UUID) -> bool:
        """Returns False if the pair was already excluded."""
        pass

    @abstractmethod
    def remove_exclusion(self, project_id: UUID, id1: UUID, id2: UUID) -> bool:
        pass
