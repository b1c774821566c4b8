# src/circuitsim_core/topology/union_find.py
from typing import List


class DisjointSet:
    """
    Union-find over dense integer ids 0..size-1, with union by rank and path
    halving. Posts (terminals, wire endpoints) are addressed by index only.
    """

    def __init__(self, size: int):
        self.parent: List[int] = list(range(size))
        self.rank: List[int] = [0] * size

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, item: int) -> int:
        parent = self.parent
        while parent[item] != item:
            parent[item] = parent[parent[item]]
            item = parent[item]
        return item

    def union(self, a: int, b: int) -> int:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return root_a
        if self.rank[root_a] < self.rank[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        if self.rank[root_a] == self.rank[root_b]:
            self.rank[root_a] += 1
        return root_a

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)
