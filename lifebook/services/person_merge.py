"""
Person merge service for combining duplicate people.

A merge folds a secondary person into a primary: aliases and importance
are combined, photos and relationships are re-pointed to the primary,
and the secondary is kept as a "merged" tombstone. Every merge writes a
MergeLog holding a snapshot of the pre-merge state so that it can be
undone (see merge_undo).
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid4

from lifebook.models.merge_log import MergeStrategy, MergeLogStatus
from lifebook.models.person import ExtractionStatus
from lifebook.models.person_relationship import RelationshipRole
from lifebook.schemas.associations import RelationshipSnapshot
from lifebook.schemas.merge import (
    CustomMergeData,
    MergeLogRecord,
    PersonFieldsSnapshot,
    RollbackData,
)
from lifebook.schemas.person import PersonResponse
from lifebook.services.normalization import merge_aliases
from lifebook.services.person_store import PersonStore, AssociationUpdateError

logger = logging.getLogger(__name__)

BIO_SEPARATOR = " | "


class PersonMergeError(Exception):
    """Base exception for person merge errors."""
    pass


class MergeValidationError(PersonMergeError):
    """Raised when a merge or undo request is not allowed."""
    pass


class SamePersonError(MergeValidationError):
    """Raised when trying to merge a person with themselves."""
    pass


class AlreadyMergedError(MergeValidationError):
    """Raised when a person involved in a merge has already been merged."""
    pass


class MergeLogNotActiveError(MergeValidationError):
    """Raised when undoing a merge that has already been undone."""
    pass


class RecordNotFoundError(PersonMergeError):
    """Raised when a referenced record does not exist."""
    pass


class PersonNotFoundError(RecordNotFoundError):
    """Raised when a person is not found."""
    pass


class MergeLogNotFoundError(RecordNotFoundError):
    """Raised when a merge log is not found."""
    pass


@dataclass
class MergeResult:
    """Result of a merge operation."""
    merge_log: MergeLogRecord
    merged_person: PersonResponse
    photos_transferred: int
    relationships_transferred: int
    skipped_associations: int


def load_project_person(
    store: PersonStore,
    project_id: UUID,
    person_id: UUID,
    label: str = "Person",
    for_update: bool = False,
) -> PersonResponse:
    """Get a person of the project or raise PersonNotFoundError."""
    person = store.get_person(person_id, for_update=for_update)
    if not person or person.project_id != project_id:
        raise PersonNotFoundError(f"{label} person not found: {person_id}")
    return person


def join_bios(*bios: str | None) -> str | None:
    """Join non-empty bio snippets, skipping repeats."""
    parts: list[str] = []
    for bio in bios:
        if bio and bio not in parts:
            parts.append(bio)
    return BIO_SEPARATOR.join(parts) or None


def fields_snapshot(person: PersonResponse) -> PersonFieldsSnapshot:
    return PersonFieldsSnapshot.model_validate(person)


class PersonMergeService:
    """Service for merging duplicate people of a project."""

    def __init__(self, store: PersonStore):
        self.store = store

    def merge(
        self,
        project_id: UUID,
        primary_id: UUID,
        secondary_id: UUID,
        strategy: MergeStrategy = MergeStrategy.keep_primary,
        custom_data: CustomMergeData | None = None,
    ) -> MergeResult:
        """
        Merge secondary person into primary person.

        Runs in a single store transaction: either every step is applied
        or none is. Photo and relationship rows that can no longer be
        re-pointed are skipped and counted instead of failing the merge.

        Args:
            project_id: Project both people belong to
            primary_id: Person to keep
            secondary_id: Person to absorb (kept as a merged tombstone)
            strategy: Which record's name/aliases/bio take precedence
            custom_data: Values to use with MergeStrategy.custom

        Returns:
            MergeResult with the new merge log and the updated primary

        Raises:
            SamePersonError: If primary_id == secondary_id
            AlreadyMergedError: If either person has already been merged
            PersonNotFoundError: If either person is not in the project
            MergeValidationError: If strategy is custom without custom_data
        """
        if primary_id == secondary_id:
            raise SamePersonError("Cannot merge a person with themselves")
        if strategy == MergeStrategy.custom and custom_data is None:
            raise MergeValidationError("Custom merge strategy requires custom data")

        with self.store.transaction():
            primary = load_project_person(
                self.store, project_id, primary_id, "Primary", for_update=True
            )
            secondary = load_project_person(
                self.store, project_id, secondary_id, "Secondary", for_update=True
            )

            if secondary.extraction_status == ExtractionStatus.merged:
                raise AlreadyMergedError(
                    f"Cannot merge '{secondary.name}': it has already been merged"
                )
            if primary.extraction_status == ExtractionStatus.merged:
                raise AlreadyMergedError(
                    f"Cannot merge into '{primary.name}': it has already been merged"
                )

            # 1. Snapshot before any mutation
            photos = self.store.list_photo_associations(secondary_id)
            relationships = [
                RelationshipSnapshot.capture(r)
                for r in self.store.list_relationships(secondary_id)
            ]
            log_id = uuid4()

            # 2-4. Combine attributes into the primary
            patch = self._build_primary_patch(primary, secondary, strategy, custom_data)
            merged_person = self.store.update_person(primary_id, patch)

            # 5. Re-point associations
            skipped = 0
            photos_transferred = 0
            for photo in photos:
                try:
                    self.store.reassign_photo_association(photo.id, primary_id)
                    photos_transferred += 1
                except AssociationUpdateError as e:
                    logger.warning("Skipping photo %s during merge: %s", photo.id, e)
                    skipped += 1

            relationships_transferred = 0
            for relationship in relationships:
                for role in RelationshipRole:
                    if relationship.endpoint(role) != secondary_id:
                        continue
                    try:
                        self.store.reassign_relationship_endpoint(
                            relationship.id, role, primary_id, merge_log_id=log_id
                        )
                        relationships_transferred += 1
                    except AssociationUpdateError as e:
                        logger.warning(
                            "Skipping relationship %s during merge: %s", relationship.id, e
                        )
                        skipped += 1

            # Tombstone last; fails if a concurrent merge already claimed it
            if not self.store.tombstone_person(secondary_id, primary_id):
                raise AlreadyMergedError(
                    f"Cannot merge '{secondary.name}': it has already been merged"
                )

            # 6. Persist the audit record
            merge_log = self.store.insert_merge_log(MergeLogRecord(
                id=log_id,
                project_id=project_id,
                primary_person_id=primary_id,
                secondary_person_id=secondary_id,
                merge_strategy=strategy,
                details={
                    "alias_count": len(secondary.aliases),
                    "photo_count": len(photos),
                    "relationship_count": len(relationships),
                    "bio_source": (
                        "secondary" if strategy == MergeStrategy.keep_secondary else "primary"
                    ),
                    "skipped_associations": skipped,
                },
                rollback_data=RollbackData(
                    person=secondary,
                    photos=photos,
                    relationships=relationships,
                    primary_before=fields_snapshot(primary),
                    primary_after=fields_snapshot(merged_person),
                ),
                status=MergeLogStatus.active,
            ))

        logger.info(
            "Merged '%s' (%s) into '%s' (%s): %d photos, %d relationships, %d skipped",
            secondary.name, secondary_id, primary.name, primary_id,
            photos_transferred, relationships_transferred, skipped,
        )
        return MergeResult(
            merge_log=merge_log,
            merged_person=merged_person,
            photos_transferred=photos_transferred,
            relationships_transferred=relationships_transferred,
            skipped_associations=skipped,
        )

    def merge_group(
        self,
        project_id: UUID,
        primary_id: UUID,
        secondary_ids: list[UUID],
        strategy: MergeStrategy = MergeStrategy.keep_primary,
    ) -> list[MergeResult]:
        """
        Merge every person of a reviewed duplicate group into one primary.

        Each secondary gets its own merge log, so each can be undone
        separately. Stops at the first failing merge; earlier merges stay.
        """
        results = []
        for secondary_id in secondary_ids:
            if secondary_id == primary_id:
                continue
            results.append(self.merge(project_id, primary_id, secondary_id, strategy))
        return results

    def list_merge_logs(
        self,
        project_id: UUID,
        status: MergeLogStatus | None = None,
    ) -> list[MergeLogRecord]:
        """Merge history of a project, newest first."""
        return self.store.list_merge_logs(project_id, status=status)

    def _build_primary_patch(
        self,
        primary: PersonResponse,
        secondary: PersonResponse,
        strategy: MergeStrategy,
        custom_data: CustomMergeData | None,
    ) -> dict[str, Any]:
        """Compute the primary's new field values for the given strategy."""
        if strategy == MergeStrategy.keep_secondary:
            patch = {
                "name": secondary.name,
                "aliases": merge_aliases(secondary.aliases, primary.aliases),
                "bio_snippet": join_bios(secondary.bio_snippet, primary.bio_snippet),
                "relationship_to_user": (
                    secondary.relationship_to_user or primary.relationship_to_user
                ),
            }
        elif strategy == MergeStrategy.custom:
            patch = {
                "name": custom_data.name or primary.name,
                "aliases": merge_aliases(
                    custom_data.aliases if custom_data.aliases is not None else primary.aliases,
                    [],
                ),
                "bio_snippet": join_bios(
                    custom_data.bio_snippet, primary.bio_snippet, secondary.bio_snippet
                ),
                "relationship_to_user": (
                    custom_data.relationship_to_user or primary.relationship_to_user
                ),
            }
        else:
            patch = {
                "aliases": merge_aliases(primary.aliases, secondary.aliases),
                "bio_snippet": join_bios(primary.bio_snippet, secondary.bio_snippet),
                "relationship_to_user": (
                    primary.relationship_to_user or secondary.relationship_to_user
                ),
            }

        merged_from_ids = [i for i in primary.merged_from_ids if i != primary.id]
        if secondary.id not in merged_from_ids:
            merged_from_ids.append(secondary.id)

        patch.update({
            "importance_score": primary.importance_score + secondary.importance_score,
            "merged_from_ids": merged_from_ids,
            "extraction_status": ExtractionStatus.confirmed,
        })
        return patch


def get_person_merge_service(store: PersonStore) -> PersonMergeService:
    """Get a PersonMergeService instance."""
    return PersonMergeService(store)
