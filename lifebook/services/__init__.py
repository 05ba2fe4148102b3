"""
People resolution services for Lifebook.
"""

from lifebook.services.normalization import normalize_name, alias_keys, merge_aliases
from lifebook.services.similarity import (
    SimilarityReason,
    SimilarityResult,
    calculate_similarity,
    levenshtein_similarity,
)
from lifebook.services.union_find import UnionFind, group_similar_people

__all__ = [
    # Normalization
    "normalize_name",
    "alias_keys",
    "merge_aliases",
    # Similarity
    "SimilarityReason",
    "SimilarityResult",
    "calculate_similarity",
    "levenshtein_similarity",
    # Grouping
    "UnionFind",
    "group_similar_people",
]
