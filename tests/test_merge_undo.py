"""
Tests for undoing person merges.
"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from lifebook.models import ExtractionStatus, MergeLogStatus, MergeStrategy, RelationshipRole
from lifebook.schemas.merge import CustomMergeData
from lifebook.services.merge_undo import MergeUndoService
from lifebook.services.person_merge import (
    PersonMergeService,
    MergeValidationError,
    MergeLogNotActiveError,
    MergeLogNotFoundError,
)
from lifebook.services.person_store import AssociationUpdateError


@pytest.fixture
def merger(store):
    return PersonMergeService(store)


@pytest.fixture
def undoer(store):
    return MergeUndoService(store)


@pytest.fixture
def people(make_person):
    """Three people of the same project."""
    return (
        make_person("Alice Wong", ["Ali"], importance=3.0, bio_snippet="Nurse in Hong Kong"),
        make_person("Alice W.", ["Allie"], importance=2.0, bio_snippet="Moved to Boston"),
        make_person("A. Wong", ["Lissy"], importance=1.0),
    )


def identity(person):
    return (
        person.name,
        person.aliases,
        person.importance_score,
        person.bio_snippet,
        person.merged_from_ids,
    )


class TestMergeUndoService:
    """Tests for MergeUndoService.undo."""

    def test_round_trip_restores_both_people(self, merger, undoer, store, project_id, people):
        """Test that merge followed by undo gives back the original records."""
        a, b, _ = people
        before_a, before_b = identity(a), identity(b)

        result = merger.merge(project_id, a.id, b.id)
        undo = undoer.undo(project_id, result.merge_log.id)

        restored_a = store.get_person(a.id)
        restored_b = store.get_person(b.id)
        assert identity(restored_a) == before_a
        assert identity(restored_b) == before_b
        assert restored_b.extraction_status == ExtractionStatus.confirmed
        assert restored_b.merged_from_id is None
        assert undo.message == "Successfully restored Alice W."
        assert undo.merge_log.status == MergeLogStatus.undone
        assert undo.merge_log.undone_at is not None

    def test_restored_person_visible_to_detection(self, merger, undoer, store, project_id, people):
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id)
        undoer.undo(project_id, result.merge_log.id)

        listed = store.list_people(project_id, exclude_status=ExtractionStatus.merged)
        assert b.id in {p.id for p in listed}

    def test_keep_secondary_round_trip(self, merger, undoer, store, project_id, people):
        """Test that the name taken from the secondary is given back."""
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id, strategy=MergeStrategy.keep_secondary)
        assert result.merged_person.name == "Alice W."

        undoer.undo(project_id, result.merge_log.id)

        restored = store.get_person(a.id)
        assert restored.name == "Alice Wong"
        assert restored.bio_snippet == "Nurse in Hong Kong"
        assert restored.importance_score == 3.0

    def test_keep_secondary_undo_leaves_aliases(self, merger, undoer, store, project_id, people):
        """Test that only keep_primary undo removes aliases from the primary."""
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id, strategy=MergeStrategy.keep_secondary)
        assert result.merged_person.aliases == ["Allie", "Ali"]

        undoer.undo(project_id, result.merge_log.id)

        assert store.get_person(a.id).aliases == ["Allie", "Ali"]

    def test_custom_undo_leaves_aliases(self, merger, undoer, store, project_id, people):
        a, b, _ = people
        custom = CustomMergeData(name="Alice Wong", aliases=["Allie", "Lissy W"])
        result = merger.merge(
            project_id, a.id, b.id, strategy=MergeStrategy.custom, custom_data=custom
        )

        undoer.undo(project_id, result.merge_log.id)

        assert store.get_person(a.id).aliases == ["Allie", "Lissy W"]

    def test_undo_twice_fails(self, merger, undoer, project_id, people):
        """Test that undo is not idempotent."""
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id)
        undoer.undo(project_id, result.merge_log.id)

        with pytest.raises(MergeLogNotActiveError):
            undoer.undo(project_id, result.merge_log.id)

    def test_unknown_log(self, undoer, project_id):
        with pytest.raises(MergeLogNotFoundError):
            undoer.undo(project_id, uuid4())

    def test_log_of_other_project(self, merger, undoer, project_id, people):
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id)

        with pytest.raises(MergeLogNotFoundError):
            undoer.undo(uuid4(), result.merge_log.id)

    def test_importance_floored_at_zero(self, merger, undoer, store, project_id, people):
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id)
        with store.transaction():
            store.update_person(a.id, {"importance_score": 1.0})

        undoer.undo(project_id, result.merge_log.id)

        assert store.get_person(a.id).importance_score == 0.0

    def test_edited_fields_are_kept(self, merger, undoer, store, project_id, people):
        """Test that a bio edited after the merge is not reset."""
        a, b, _ = people
        result = merger.merge(project_id, a.id, b.id)
        with store.transaction():
            store.update_person(a.id, {"bio_snippet": "Edited by hand"})

        undoer.undo(project_id, result.merge_log.id)

        assert store.get_person(a.id).bio_snippet == "Edited by hand"


class TestMergeChains:
    """Tests for undoing several merges on the same people."""

    def test_reverse_order_restores_every_state(self, merger, undoer, store, project_id, people):
        """Test A<-B then A<-C undone in reverse order."""
        a, b, c = people
        log_b = merger.merge(project_id, a.id, b.id).merge_log
        after_first = identity(store.get_person(a.id))
        log_c = merger.merge(project_id, a.id, c.id).merge_log

        undoer.undo(project_id, log_c.id)
        assert identity(store.get_person(a.id)) == after_first
        assert identity(store.get_person(c.id)) == identity(c)

        undoer.undo(project_id, log_b.id)
        assert identity(store.get_person(a.id)) == identity(a)
        assert identity(store.get_person(b.id)) == identity(b)

    def test_undo_middle_of_chain_rejected(self, merger, undoer, store, project_id, people):
        """Test that a merge into a person that was merged away cannot be undone first."""
        a, b, c = people
        log_c_into_b = merger.merge(project_id, b.id, c.id).merge_log
        log_b_into_a = merger.merge(project_id, a.id, b.id).merge_log

        with pytest.raises(MergeValidationError):
            undoer.undo(project_id, log_c_into_b.id)

        undoer.undo(project_id, log_b_into_a.id)
        undoer.undo(project_id, log_c_into_b.id)

        for original in people:
            assert identity(store.get_person(original.id)) == identity(original)


class TestUndoAssociations:
    """Tests for moving photos and relationships back on undo."""

    def test_photo_round_trip(self, merger, undoer, store, project_id, people):
        """Test that photos follow the merge and come back on undo."""
        a, b, _ = people
        with store.transaction():
            photo_ids = {
                store.add_photo_association(b.id, "https://img/b1.jpg").id,
                store.add_photo_association(b.id, "https://img/b2.jpg").id,
            }

        result = merger.merge(project_id, a.id, b.id)
        assert result.photos_transferred == 2
        assert {p.id for p in store.list_photo_associations(a.id)} == photo_ids
        assert store.list_photo_associations(b.id) == []

        undoer.undo(project_id, result.merge_log.id)
        assert {p.id for p in store.list_photo_associations(b.id)} == photo_ids
        assert store.list_photo_associations(a.id) == []

    def test_relationship_round_trip(self, merger, undoer, store, project_id, people):
        """Test that only endpoints that were the secondary are moved back."""
        a, b, c = people
        with store.transaction():
            to_primary = store.add_relationship(project_id, a.id, b.id, "colleague")
            to_other = store.add_relationship(project_id, c.id, b.id, "friend")

        result = merger.merge(project_id, a.id, b.id)
        undoer.undo(project_id, result.merge_log.id)

        relationships = {r.id: r for r in store.list_relationships(b.id)}
        assert relationships[to_primary.id].person_a_id == a.id
        assert relationships[to_primary.id].person_b_id == b.id
        assert relationships[to_other.id].person_a_id == c.id
        assert relationships[to_other.id].person_b_id == b.id

    def test_relationship_moved_after_merge_stays(self, merger, undoer, store, project_id, make_person, people):
        """Test that an endpoint re-pointed since the merge is left alone and counted."""
        a, b, c = people
        d = make_person("Dora Wong", importance=0.5)
        with store.transaction():
            rel = store.add_relationship(project_id, b.id, c.id, "sister")

        result = merger.merge(project_id, a.id, b.id)
        with store.transaction():
            store.reassign_relationship_endpoint(rel.id, RelationshipRole.person_a, d.id)

        undo = undoer.undo(project_id, result.merge_log.id)

        [moved] = store.list_relationships(d.id)
        assert moved.id == rel.id
        assert moved.person_a_id == d.id
        assert moved.person_b_id == c.id
        assert undo.skipped_associations == 1
        assert store.list_relationships(b.id) == []

    def test_association_failure_is_counted(self, merger, undoer, store, project_id, people):
        """Test that a photo that cannot be moved back does not block the undo."""
        a, b, _ = people
        with store.transaction():
            store.add_photo_association(b.id, "https://img/b.jpg")
        result = merger.merge(project_id, a.id, b.id)

        with patch.object(
            store, "reassign_photo_association", side_effect=AssociationUpdateError("gone")
        ):
            undo = undoer.undo(project_id, result.merge_log.id)

        assert undo.skipped_associations == 1
        assert store.get_person(b.id).extraction_status == ExtractionStatus.confirmed
        assert store.get_merge_log(result.merge_log.id).status == MergeLogStatus.undone
