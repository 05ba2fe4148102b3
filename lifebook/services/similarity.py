"""
Pairwise similarity scoring between person records.

Scoring is a four-tier cascade evaluated strictly in order; the first tier
that matches decides the score:

1. exact_alias        - a name/alias key of A equals one of B        (0.95)
2. alias_match        - one key contains the other, both >= 2 chars  (0.88)
3. name_similar       - canonical names have Levenshtein similarity
                        above 0.80                          (similarity * 0.85)
4. alias_intersection - some pair of keys (>= 2 chars) has Levenshtein
                        similarity above 0.75                          (0.75)

The tier order and cutoffs decide which people get merged, so they must
not change between releases.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

from rapidfuzz.distance import Levenshtein

from lifebook.services.normalization import alias_keys, normalize_name

logger = logging.getLogger(__name__)

EXACT_ALIAS_SCORE = 0.95
ALIAS_MATCH_SCORE = 0.88
NAME_SIMILARITY_CUTOFF = 0.8
NAME_SIMILARITY_WEIGHT = 0.85
ALIAS_INTERSECTION_CUTOFF = 0.75
ALIAS_INTERSECTION_SCORE = 0.75
# Shorter keys are skipped by the fuzzy tiers; single characters match too much
MIN_ALIAS_LENGTH = 2


class SimilarityReason(str, Enum):
    """Which cascade tier produced a score."""

    exact_alias = "exact_alias"
    alias_match = "alias_match"
    name_similar = "name_similar"
    alias_intersection = "alias_intersection"
    no_match = "no_match"


class NamedRecord(Protocol):
    """Anything with a name and aliases (ORM Person, PersonResponse, ...)."""

    name: str
    aliases: list[str]


@dataclass(frozen=True)
class SimilarityResult:
    """Score in [0, 1] and the tier that produced it."""
    score: float
    reason: SimilarityReason


NO_MATCH = SimilarityResult(score=0.0, reason=SimilarityReason.no_match)


def levenshtein_similarity(a: str, b: str) -> float:
    """
    Normalized Levenshtein similarity: 1 - distance / max(len).

    Two empty strings are identical (1.0).
    """
    return Levenshtein.normalized_similarity(a, b)


def _has_exact_match(keys_a: list[str], keys_b: list[str]) -> bool:
    return not set(keys_a).isdisjoint(keys_b)


def _has_containment(keys_a: Iterable[str], keys_b: list[str]) -> bool:
    for key_a in keys_a:
        if len(key_a) < MIN_ALIAS_LENGTH:
            continue
        for key_b in keys_b:
            if len(key_b) < MIN_ALIAS_LENGTH:
                continue
            if key_a in key_b or key_b in key_a:
                return True
    return False


def _has_close_alias(keys_a: Iterable[str], keys_b: list[str]) -> bool:
    for key_a in keys_a:
        if len(key_a) < MIN_ALIAS_LENGTH:
            continue
        for key_b in keys_b:
            if len(key_b) < MIN_ALIAS_LENGTH:
                continue
            if levenshtein_similarity(key_a, key_b) > ALIAS_INTERSECTION_CUTOFF:
                return True
    return False


def calculate_similarity(person_a: NamedRecord, person_b: NamedRecord) -> SimilarityResult:
    """
    Score how likely two person records denote the same individual.

    The result is symmetric: calculate_similarity(a, b) equals
    calculate_similarity(b, a).
    """
    keys_a = alias_keys(person_a.name, person_a.aliases)
    keys_b = alias_keys(person_b.name, person_b.aliases)

    if _has_exact_match(keys_a, keys_b):
        return SimilarityResult(EXACT_ALIAS_SCORE, SimilarityReason.exact_alias)

    if _has_containment(keys_a, keys_b):
        return SimilarityResult(ALIAS_MATCH_SCORE, SimilarityReason.alias_match)

    name_similarity = levenshtein_similarity(
        normalize_name(person_a.name),
        normalize_name(person_b.name),
    )
    if name_similarity > NAME_SIMILARITY_CUTOFF:
        logger.debug(
            "Name similar: %r vs %r (similarity=%.3f)",
            person_a.name, person_b.name, name_similarity,
        )
        return SimilarityResult(
            name_similarity * NAME_SIMILARITY_WEIGHT,
            SimilarityReason.name_similar,
        )

    if _has_close_alias(keys_a, keys_b):
        return SimilarityResult(ALIAS_INTERSECTION_SCORE, SimilarityReason.alias_intersection)

    return NO_MATCH
