"""
Duplicate detection service for extracted people.

Scores every pair of a project's people, keeps the pairs above a
threshold, and clusters them transitively into duplicate groups for
human review. Pairs marked as "not duplicates" are skipped.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from lifebook.models.duplicate_exclusion import DuplicateExclusion
from lifebook.models.person import ExtractionStatus
from lifebook.schemas.person import PersonResponse
from lifebook.services.person_merge import load_project_person
from lifebook.services.person_store import PersonStore
from lifebook.services.similarity import SimilarityReason, calculate_similarity
from lifebook.services.union_find import group_similar_people

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7


@dataclass(frozen=True)
class SimilarityPair:
    """Two people whose similarity reached the threshold (a before b in input order)."""
    person_a_id: UUID
    person_b_id: UUID
    score: float
    reason: SimilarityReason


@dataclass
class DuplicateGroup:
    """People connected through a chain of similar pairs."""
    group_id: str
    person_ids: list[UUID]
    pairs: list[SimilarityPair] = field(default_factory=list)
    details: list[PersonResponse] = field(default_factory=list)


@dataclass
class DuplicateDetectionResult:
    """Result of scanning a project for duplicates."""
    duplicate_groups: list[DuplicateGroup]
    total_duplicates: int
    processing_time_ms: float


def detect_similar_pairs(
    people: Sequence[PersonResponse],
    threshold: float = DEFAULT_THRESHOLD,
    excluded_pairs: set[tuple[UUID, UUID]] | None = None,
) -> list[SimilarityPair]:
    """
    Find all pairs of people whose similarity is at least threshold.

    Merged people are ignored entirely. The result is sorted by score,
    highest first; equal scores keep their input order.

    Args:
        people: People of one project
        threshold: Minimum score for a pair to be kept (inclusive)
        excluded_pairs: Ordered (smaller, larger) id pairs never to report
    """
    candidates = [p for p in people if p.extraction_status != ExtractionStatus.merged]
    excluded_pairs = excluded_pairs or set()

    pairs: list[SimilarityPair] = []
    for i, person_a in enumerate(candidates):
        for person_b in candidates[i + 1:]:
            if DuplicateExclusion.make_ordered_pair(person_a.id, person_b.id) in excluded_pairs:
                continue

            result = calculate_similarity(person_a, person_b)
            if result.score >= threshold:
                logger.debug(
                    "Duplicate pair: %r and %r (score=%.3f, reason=%s)",
                    person_a.name, person_b.name, result.score, result.reason.value,
                )
                pairs.append(SimilarityPair(
                    person_a_id=person_a.id,
                    person_b_id=person_b.id,
                    score=result.score,
                    reason=result.reason,
                ))

    # list.sort is stable, also with reverse=True
    pairs.sort(key=lambda p: p.score, reverse=True)
    return pairs


class DuplicateService:
    """Service for detecting duplicate people and managing exclusions."""

    def __init__(self, store: PersonStore):
        self.store = store

    def detect_duplicates(
        self,
        project_id: UUID,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> DuplicateDetectionResult:
        """
        Find groups of likely duplicate people in a project.

        A project without people is a valid, empty result.
        """
        start = time.perf_counter()

        people = self.store.list_people(project_id, exclude_status=ExtractionStatus.merged)
        if len(people) < 2:
            return DuplicateDetectionResult([], 0, _elapsed_ms(start))

        excluded_pairs = self.store.get_excluded_pairs(project_id)
        pairs = detect_similar_pairs(people, threshold, excluded_pairs)

        groups = []
        for index, member_ids in enumerate(group_similar_people(pairs), start=1):
            members = set(member_ids)
            groups.append(DuplicateGroup(
                group_id=f"group-{index}",
                person_ids=member_ids,
                pairs=[
                    p for p in pairs
                    if p.person_a_id in members and p.person_b_id in members
                ],
                details=[p for p in people if p.id in members],
            ))

        elapsed = _elapsed_ms(start)
        logger.info(
            "Duplicate detection for project %s: %d people, %d pairs, %d groups in %.1fms",
            project_id, len(people), len(pairs), len(groups), elapsed,
        )
        return DuplicateDetectionResult(
            duplicate_groups=groups,
            total_duplicates=len(groups),
            processing_time_ms=elapsed,
        )

    # ==================== Duplicate Exclusion Methods ====================

    def exclude_duplicates(self, project_id: UUID, person_ids: list[UUID]) -> int:
        """
        Mark all pairs in the given list as "not duplicates".

        Args:
            project_id: Project the people belong to
            person_ids: People that should not be considered duplicates of each other

        Returns:
            Number of exclusion pairs created

        Raises:
            PersonNotFoundError: If a person is missing or belongs to another project
        """
        if len(person_ids) < 2:
            return 0

        created = 0
        with self.store.transaction():
            for person_id in dict.fromkeys(person_ids):
                load_project_person(self.store, project_id, person_id)
            for i, id1 in enumerate(person_ids):
                for id2 in person_ids[i + 1:]:
                    if id1 != id2 and self.store.add_exclusion(project_id, id1, id2):
                        created += 1
        return created

    def remove_exclusion(self, project_id: UUID, id1: UUID, id2: UUID) -> bool:
        """Remove an exclusion for a pair of people."""
        with self.store.transaction():
            return self.store.remove_exclusion(project_id, id1, id2)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def get_duplicate_service(store: PersonStore) -> DuplicateService:
    """Get a DuplicateService instance."""
    return DuplicateService(store)
