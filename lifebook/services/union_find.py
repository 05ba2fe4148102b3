"""
Union-find (disjoint set) for grouping duplicate people transitively.

If A~B and B~C then {A, B, C} form one group, even when A and C were
never similar enough on their own.
"""

from typing import Hashable, Iterable, Protocol, TypeVar

T = TypeVar("T", bound=Hashable)


class PairLike(Protocol):
    person_a_id: Hashable
    person_b_id: Hashable


class UnionFind:
    """Disjoint-set forest with path compression and union by rank."""

    def __init__(self) -> None:
        self.parent: dict = {}
        self.rank: dict = {}

    def add(self, item: T) -> None:
        if item not in self.parent:
            self.parent[item] = item
            self.rank[item] = 0

    def find(self, item: T) -> T:
        """Return the root of item's set, registering item if unseen."""
        self.add(item)
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: T, b: T) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return

        rank_a = self.rank[root_a]
        rank_b = self.rank[root_b]
        if rank_a < rank_b:
            self.parent[root_a] = root_b
        elif rank_a > rank_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_b] = root_a
            self.rank[root_a] = rank_a + 1

    def groups(self) -> dict:
        """
        Connected components keyed by root.

        Members are listed in the order they were first seen.
        """
        components: dict = {}
        for item in self.parent:
            components.setdefault(self.find(item), []).append(item)
        return components


def group_similar_people(pairs: Iterable[PairLike]) -> list[list]:
    """
    Cluster similar pairs into duplicate groups.

    Only components with at least two members are returned.
    """
    uf = UnionFind()
    for pair in pairs:
        uf.union(pair.person_a_id, pair.person_b_id)

    return [group for group in uf.groups().values() if len(group) > 1]
