"""
Undo service for person merges.

Reverses one merge from the snapshot stored on its merge log: the
secondary is restored, its photos and relationships are pointed back at
it, and the primary gives back what the merge added.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from lifebook.models.merge_log import MergeStrategy, MergeLogStatus
from lifebook.models.person import ExtractionStatus
from lifebook.models.person_relationship import RelationshipRole
from lifebook.schemas.merge import MergeLogRecord, RollbackData
from lifebook.schemas.person import PersonResponse
from lifebook.services.normalization import normalize_name
from lifebook.services.person_merge import (
    MergeValidationError,
    MergeLogNotActiveError,
    MergeLogNotFoundError,
    PersonNotFoundError,
)
from lifebook.services.person_store import PersonStore, AssociationUpdateError

logger = logging.getLogger(__name__)

# Fields restored on the primary when the merge is the last thing that changed them
RESTORABLE_FIELDS = ("name", "bio_snippet", "relationship_to_user")


@dataclass
class UndoResult:
    """Result of undoing a merge."""
    restored_person: PersonResponse
    merge_log: MergeLogRecord
    skipped_associations: int
    message: str


class MergeUndoService:
    """Service for undoing person merges."""

    def __init__(self, store: PersonStore):
        self.store = store

    def undo(self, project_id: UUID, merge_log_id: UUID) -> UndoResult:
        """
        Undo a merge operation.

        Merges into the same primary can be undone in any order. A merge
        whose primary has itself been merged away cannot be undone until
        that later merge is undone.

        Args:
            project_id: Project the merge belongs to
            merge_log_id: Merge log to reverse

        Returns:
            UndoResult with the restored secondary person

        Raises:
            MergeLogNotFoundError: If the log is not in the project
            MergeLogNotActiveError: If the merge was already undone
            MergeValidationError: If the primary has since been merged away
            PersonNotFoundError: If the tombstoned secondary no longer exists
        """
        with self.store.transaction():
            log = self.store.get_merge_log(merge_log_id)
            if not log or log.project_id != project_id:
                raise MergeLogNotFoundError(f"Merge log not found: {merge_log_id}")
            if log.status != MergeLogStatus.active:
                raise MergeLogNotActiveError("This merge has already been undone")

            primary = self.store.get_person(log.primary_person_id, for_update=True)
            if primary and primary.extraction_status == ExtractionStatus.merged:
                raise MergeValidationError(
                    f"Cannot undo: '{primary.name}' has since been merged into another "
                    f"person. Undo that merge first."
                )

            secondary = self.store.get_person(log.secondary_person_id, for_update=True)
            if not secondary:
                raise PersonNotFoundError(
                    f"Merged person not found: {log.secondary_person_id}"
                )

            rollback = log.rollback_data
            restored = self._restore_secondary(rollback)
            skipped = self._restore_associations(log, rollback)

            if primary:
                self._revert_primary(primary, log)
            else:
                logger.warning(
                    "Primary person %s of merge %s no longer exists; restoring secondary only",
                    log.primary_person_id, log.id,
                )

            if not self.store.update_merge_log_status(
                log.id, MergeLogStatus.undone, expected_status=MergeLogStatus.active
            ):
                raise MergeLogNotActiveError("This merge has already been undone")

            log = self.store.get_merge_log(log.id)

        logger.info(
            "Undid merge %s: restored '%s' (%s) from %s, %d associations skipped",
            merge_log_id, restored.name, restored.id, log.primary_person_id, skipped,
        )
        return UndoResult(
            restored_person=restored,
            merge_log=log,
            skipped_associations=skipped,
            message=f"Successfully restored {restored.name}",
        )

    def _restore_secondary(self, rollback: RollbackData) -> PersonResponse:
        """Write the pre-merge snapshot back onto the tombstone."""
        snapshot = rollback.person
        return self.store.update_person(snapshot.id, {
            "name": snapshot.name,
            "aliases": snapshot.aliases,
            "relationship_to_user": snapshot.relationship_to_user,
            "bio_snippet": snapshot.bio_snippet,
            "importance_score": snapshot.importance_score,
            "confidence_score": snapshot.confidence_score,
            "merged_from_ids": snapshot.merged_from_ids,
            "merged_from_id": None,
            "extraction_status": ExtractionStatus.confirmed,
        })

    def _restore_associations(self, log: MergeLogRecord, rollback: RollbackData) -> int:
        """Point moved photos and relationship endpoints back; returns skipped count."""
        skipped = 0
        secondary_id = log.secondary_person_id
        primary_id = log.primary_person_id

        for photo in rollback.photos:
            try:
                self.store.reassign_photo_association(photo.id, secondary_id)
            except AssociationUpdateError as e:
                logger.warning("Skipping photo %s during undo: %s", photo.id, e)
                skipped += 1

        # Compare against live rows: an endpoint moved elsewhere since the merge stays put
        live = {r.id: r for r in self.store.list_relationships(primary_id)}
        for snapshot in rollback.relationships:
            relationship = live.get(snapshot.id)
            for role in RelationshipRole:
                if snapshot.original_endpoint(role) != secondary_id:
                    continue
                if relationship is None or relationship.endpoint(role) != primary_id:
                    logger.warning(
                        "Relationship %s no longer points at %s; leaving it",
                        snapshot.id, primary_id,
                    )
                    skipped += 1
                    continue
                try:
                    self.store.reassign_relationship_endpoint(
                        snapshot.id, role, secondary_id, merge_log_id=None
                    )
                except AssociationUpdateError as e:
                    logger.warning("Skipping relationship %s during undo: %s", snapshot.id, e)
                    skipped += 1

        return skipped

    def _revert_primary(self, primary: PersonResponse, log: MergeLogRecord) -> None:
        """Take back from the primary what this merge contributed."""
        rollback = log.rollback_data
        secondary = rollback.person

        merged_from_ids = [i for i in primary.merged_from_ids if i != secondary.id]
        patch: dict[str, Any] = {
            "importance_score": max(0.0, primary.importance_score - secondary.importance_score),
            "merged_from_ids": merged_from_ids,
        }
        if not merged_from_ids:
            patch["merged_from_id"] = None

        before = rollback.primary_before
        after = rollback.primary_after

        if log.merge_strategy == MergeStrategy.keep_primary:
            # Only drop aliases the secondary brought in
            kept = {normalize_name(a) for a in (before.aliases if before else [])}
            contributed = {normalize_name(a) for a in secondary.aliases} - kept
            patch["aliases"] = [
                a for a in primary.aliases if normalize_name(a) not in contributed
            ]

        if before and after:
            for field_name in RESTORABLE_FIELDS:
                if getattr(primary, field_name) == getattr(after, field_name):
                    patch[field_name] = getattr(before, field_name)

        self.store.update_person(primary.id, patch)


def get_merge_undo_service(store: PersonStore) -> MergeUndoService:
    """Get a MergeUndoService instance."""
    return MergeUndoService(store)
