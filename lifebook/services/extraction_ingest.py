"""
Ingest of people returned by the entity extraction oracle.

Oracle output is untrusted JSON; every item is validated before it
becomes a Person row, and bad items are dropped without failing the batch.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import UUID

from pydantic import ValidationError

from lifebook.models.person import ExtractionStatus
from lifebook.schemas.person import ExtractedPerson, PersonResponse
from lifebook.services.normalization import merge_aliases, normalize_name
from lifebook.services.person_store import PersonStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """People created from one oracle payload."""
    created: list[PersonResponse] = field(default_factory=list)
    rejected: int = 0


def to_person_fields(item: ExtractedPerson) -> dict[str, Any]:
    """Map a validated oracle item onto Person columns."""
    name_key = normalize_name(item.name)
    aliases = [a for a in merge_aliases(item.aliases, []) if normalize_name(a) != name_key]
    return {
        "name": item.name,
        "aliases": aliases,
        "relationship_to_user": item.relationship,
        "bio_snippet": item.description,
        "importance_score": float(item.mentions),
        "confidence_score": item.confidence,
        "extraction_status": ExtractionStatus.pending,
    }


def ingest_extracted_people(
    store: PersonStore,
    project_id: UUID,
    payload: Iterable[Any] | None,
) -> IngestResult:
    """
    Validate oracle output and create pending people for a project.

    Args:
        store: Record store to write to
        project_id: Project the narrative belongs to
        payload: Raw items as decoded from the oracle's JSON; items that are
            not objects are rejected like any other invalid item

    Returns:
        IngestResult with the created people and the number of rejected items
    """
    result = IngestResult()
    if not payload:
        return result

    valid: list[ExtractedPerson] = []
    for index, raw in enumerate(payload):
        try:
            valid.append(ExtractedPerson.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Rejected extracted person #%d for project %s: %s",
                index, project_id, e.errors(include_url=False),
            )
            result.rejected += 1

    with store.transaction():
        for item in valid:
            result.created.append(store.create_person(project_id, to_person_fields(item)))

    logger.info(
        "Ingested %d people for project %s (%d rejected)",
        len(result.created), project_id, result.rejected,
    )
    return result
