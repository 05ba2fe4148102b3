"""
SQLAlchemy implementation of the PersonStore contract.
"""

from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lifebook.models import (
    Person,
    ExtractionStatus,
    PersonPhoto,
    PersonRelationship,
    RelationshipRole,
    MergeLog,
    MergeLogStatus,
    DuplicateExclusion,
)
from lifebook.models.base import utcnow
from lifebook.schemas.associations import PhotoAssociationRecord, RelationshipRecord
from lifebook.schemas.merge import MergeLogRecord
from lifebook.schemas.person import PersonResponse
from lifebook.services.person_store import (
    PersonStore,
    StoreError,
    AssociationUpdateError,
)

# Fields a patch may change through update_person
UPDATABLE_PERSON_FIELDS = {
    "name",
    "aliases",
    "relationship_to_user",
    "bio_snippet",
    "importance_score",
    "confidence_score",
    "extraction_status",
    "merged_from_id",
    "merged_from_ids",
}


class SqlPersonStore(PersonStore):
    """PersonStore backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ==================== People ====================

    def _get_person_model(self, person_id: UUID, for_update: bool = False) -> Person | None:
        query = self.db.query(Person).filter(Person.id == person_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_people(
        self,
        project_id: UUID,
        exclude_status: ExtractionStatus | None = None,
    ) -> list[PersonResponse]:
        query = self.db.query(Person).filter(Person.project_id == project_id)
        if exclude_status is not None:
            query = query.filter(Person.extraction_status != exclude_status)

        people = query.order_by(
            Person.importance_score.desc(),
            Person.created_at,
            Person.id,
        ).all()
        return [PersonResponse.model_validate(p) for p in people]

    def get_person(self, person_id: UUID, for_update: bool = False) -> PersonResponse | None:
        person = self._get_person_model(person_id, for_update=for_update)
        if not person:
            return None
        return PersonResponse.model_validate(person)

    def create_person(self, project_id: UUID, fields: dict[str, Any]) -> PersonResponse:
        unknown = set(fields) - UPDATABLE_PERSON_FIELDS
        if unknown:
            raise StoreError(f"Unknown person fields: {sorted(unknown)}")

        person = Person(project_id=project_id, **_to_columns(fields))
        self.db.add(person)
        self.db.flush()
        return PersonResponse.model_validate(person)

    def update_person(self, person_id: UUID, patch: dict[str, Any]) -> PersonResponse:
        unknown = set(patch) - UPDATABLE_PERSON_FIELDS
        if unknown:
            raise StoreError(f"Unknown person fields: {sorted(unknown)}")

        person = self._get_person_model(person_id)
        if not person:
            raise StoreError(f"Person not found: {person_id}")

        for field_name, value in _to_columns(patch).items():
            setattr(person, field_name, value)
        self.db.flush()
        return PersonResponse.model_validate(person)

    def tombstone_person(self, person_id: UUID, primary_id: UUID) -> bool:
        updated = (
            self.db.query(Person)
            .filter(Person.id == person_id)
            .filter(Person.extraction_status != ExtractionStatus.merged)
            .update(
                {
                    Person.extraction_status: ExtractionStatus.merged,
                    Person.merged_from_id: primary_id,
                    Person.updated_at: utcnow(),
                },
                synchronize_session="fetch",
            )
        )
        return updated == 1

    # ==================== Associations ====================

    def list_photo_associations(self, person_id: UUID) -> list[PhotoAssociationRecord]:
        photos = (
            self.db.query(PersonPhoto)
            .filter(PersonPhoto.person_id == person_id)
            .order_by(PersonPhoto.created_at, PersonPhoto.id)
            .all()
        )
        return [PhotoAssociationRecord.model_validate(p) for p in photos]

    def add_photo_association(
        self,
        person_id: UUID,
        photo_url: str,
        caption: str | None = None,
    ) -> PhotoAssociationRecord:
        photo = PersonPhoto(person_id=person_id, photo_url=photo_url, caption=caption)
        self.db.add(photo)
        self.db.flush()
        return PhotoAssociationRecord.model_validate(photo)

    def reassign_photo_association(self, association_id: UUID, new_person_id: UUID) -> None:
        photo = self.db.query(PersonPhoto).filter_by(id=association_id).first()
        if not photo:
            raise AssociationUpdateError(f"Photo association not found: {association_id}")
        photo.person_id = new_person_id
        self.db.flush()

    def list_relationships(self, person_id: UUID) -> list[RelationshipRecord]:
        relationships = (
            self.db.query(PersonRelationship)
            .filter(or_(
                PersonRelationship.person_a_id == person_id,
                PersonRelationship.person_b_id == person_id,
            ))
            .order_by(PersonRelationship.created_at, PersonRelationship.id)
            .all()
        )
        return [RelationshipRecord.model_validate(r) for r in relationships]

    def add_relationship(
        self,
        project_id: UUID,
        person_a_id: UUID,
        person_b_id: UUID,
        relationship_type: str | None = None,
    ) -> RelationshipRecord:
        relationship = PersonRelationship(
            project_id=project_id,
            person_a_id=person_a_id,
            person_b_id=person_b_id,
            relationship_type=relationship_type,
        )
        self.db.add(relationship)
        self.db.flush()
        return RelationshipRecord.model_validate(relationship)

    def reassign_relationship_endpoint(
        self,
        relationship_id: UUID,
        role: RelationshipRole,
        new_person_id: UUID,
        merge_log_id: UUID | None = None,
    ) -> None:
        relationship = self.db.query(PersonRelationship).filter_by(id=relationship_id).first()
        if not relationship:
            raise AssociationUpdateError(f"Relationship not found: {relationship_id}")

        setattr(relationship, role.column, new_person_id)
        relationship.merge_log_id = merge_log_id
        relationship.merged_at = utcnow() if merge_log_id else None
        self.db.flush()

    # ==================== Merge logs ====================

    def insert_merge_log(self, log: MergeLogRecord) -> MergeLogRecord:
        row = MergeLog(
            id=log.id,
            project_id=log.project_id,
            primary_person_id=log.primary_person_id,
            secondary_person_id=log.secondary_person_id,
            merge_strategy=log.merge_strategy,
            details=log.details,
            rollback_data=log.rollback_data.model_dump(mode="json"),
            status=log.status,
            merged_at=log.merged_at or utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return MergeLogRecord.model_validate(row)

    def get_merge_log(self, log_id: UUID) -> MergeLogRecord | None:
        row = (
            self.db.query(MergeLog)
            .filter(MergeLog.id == log_id)
            .populate_existing()
            .first()
        )
        if not row:
            return None
        return MergeLogRecord.model_validate(row)

    def list_merge_logs(
        self,
        project_id: UUID,
        status: MergeLogStatus | None = None,
    ) -> list[MergeLogRecord]:
        query = self.db.query(MergeLog).filter(MergeLog.project_id == project_id)
        if status is not None:
            query = query.filter(MergeLog.status == status)
        rows = query.order_by(MergeLog.merged_at.desc(), MergeLog.id).all()
        return [MergeLogRecord.model_validate(row) for row in rows]

    def update_merge_log_status(
        self,
        log_id: UUID,
        status: MergeLogStatus,
        expected_status: MergeLogStatus | None = None,
    ) -> bool:
        query = self.db.query(MergeLog).filter(MergeLog.id == log_id)
        if expected_status is not None:
            query = query.filter(MergeLog.status == expected_status)

        updated = query.update(
            {
                MergeLog.status: status,
                MergeLog.undone_at: utcnow() if status == MergeLogStatus.undone else None,
            },
            synchronize_session="fetch",
        )
        return updated == 1

    # ==================== Duplicate exclusions ====================

    def get_excluded_pairs(self, project_id: UUID) -> set[tuple[UUID, UUID]]:
        exclusions = self.db.query(DuplicateExclusion).filter_by(project_id=project_id).all()
        return {(e.person1_id, e.person2_id) for e in exclusions}

    def add_exclusion(self, project_id: UUID, id1: UUID, id2: UUID) -> bool:
        ordered = DuplicateExclusion.make_ordered_pair(id1, id2)

        existing = self.db.query(DuplicateExclusion).filter_by(
            person1_id=ordered[0],
            person2_id=ordered[1],
        ).first()
        if existing:
            return False

        self.db.add(DuplicateExclusion(
            project_id=project_id,
            person1_id=ordered[0],
            person2_id=ordered[1],
        ))
        self.db.flush()
        return True

    def remove_exclusion(self, project_id: UUID, id1: UUID, id2: UUID) -> bool:
        ordered = DuplicateExclusion.make_ordered_pair(id1, id2)
        exclusion = self.db.query(DuplicateExclusion).filter_by(
            project_id=project_id,
            person1_id=ordered[0],
            person2_id=ordered[1],
        ).first()

        if exclusion:
            self.db.delete(exclusion)
            self.db.flush()
            return True
        return False


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Copy list values so JSON columns see a new object; ids stored as strings."""
    values = dict(fields)
    if "aliases" in values:
        values["aliases"] = list(values["aliases"] or [])
    if "merged_from_ids" in values:
        values["merged_from_ids"] = [str(v) for v in values["merged_from_ids"] or []]
    return values
