"""
Tests for ingesting extraction oracle output.
"""

import pytest
from pydantic import ValidationError

from lifebook.models import ExtractionStatus
from lifebook.schemas.person import ExtractedPerson
from lifebook.services.extraction_ingest import ingest_extracted_people


class TestExtractedPerson:
    """Tests for oracle item validation."""

    def test_defaults(self):
        item = ExtractedPerson.model_validate({"name": " 刘雪丽 "})

        assert item.name == "刘雪丽"
        assert item.aliases == []
        assert item.confidence == 1.0
        assert item.mentions == 1

    def test_cleans_aliases(self):
        """Test that blank and non-string aliases are dropped."""
        item = ExtractedPerson.model_validate({"name": "Ann", "aliases": ["  Annie ", "", None, 3]})
        assert item.aliases == ["Annie"]

    def test_single_alias_string(self):
        item = ExtractedPerson.model_validate({"name": "Ann", "aliases": "Annie"})
        assert item.aliases == ["Annie"]

    def test_confidence_clamped(self):
        assert ExtractedPerson.model_validate({"name": "A", "confidence": 1.7}).confidence == 1.0
        assert ExtractedPerson.model_validate({"name": "A", "confidence": -2}).confidence == 0.0

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_confidence_rejected(self, value):
        """Test that NaN or infinite confidence never reaches the store."""
        with pytest.raises(ValidationError):
            ExtractedPerson.model_validate({"name": "A", "confidence": value})

    @pytest.mark.parametrize("payload", [
        {},
        {"name": None},
        {"name": "   "},
        {"name": "Ann", "mentions": -1},
        {"name": "Ann", "confidence": "high"},
    ])
    def test_invalid_items(self, payload):
        with pytest.raises(ValidationError):
            ExtractedPerson.model_validate(payload)


class TestIngestExtractedPeople:
    """Tests for ingest_extracted_people."""

    def test_creates_pending_people(self, store, project_id):
        """Test that oracle fields map onto person columns."""
        result = ingest_extracted_people(store, project_id, [{
            "name": "刘雪丽",
            "aliases": ["雪丽", "刘 雪丽", "雪丽"],
            "relationship": "sister",
            "description": "Grew up in Chengdu",
            "confidence": 0.9,
            "mentions": 4,
        }])

        assert result.rejected == 0
        [person] = result.created
        assert person.aliases == ["雪丽"]
        assert person.relationship_to_user == "sister"
        assert person.bio_snippet == "Grew up in Chengdu"
        assert person.importance_score == 4.0
        assert person.confidence_score == 0.9
        assert person.extraction_status == ExtractionStatus.pending
        assert store.get_person(person.id) is not None

    def test_invalid_items_rejected_without_failing_batch(self, store, project_id):
        result = ingest_extracted_people(store, project_id, [
            {"name": "Ann"},
            {"name": ""},
            {"aliases": ["nameless"]},
            {"name": "Bob", "mentions": 2},
        ])

        assert result.rejected == 2
        assert [p.name for p in result.created] == ["Ann", "Bob"]
        assert len(store.list_people(project_id)) == 2

    def test_non_object_items_rejected(self, store, project_id):
        """Test that strings and nulls in the payload are counted as rejected."""
        result = ingest_extracted_people(store, project_id, [
            {"name": "张三"},
            "garbage",
            None,
            ["李四"],
        ])

        assert result.rejected == 3
        assert [p.name for p in result.created] == ["张三"]

    def test_empty_payload(self, store, project_id):
        result = ingest_extracted_people(store, project_id, [])

        assert result.created == []
        assert result.rejected == 0
