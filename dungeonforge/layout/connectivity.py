"""Region graph construction.

``ConnectivityBuilder.connect`` returns a minimum spanning tree over region
centroids (Kruskal with union-find). ``add_variety_edges`` is an optional
pass layering secret passages and teleporters on top of that tree.
"""
from __future__ import annotations

import random
from typing import Dict, List, Sequence, Set, Tuple

from .errors import GraphIntegrityError
from .model import Connection, ConnectionKind, Region, RegionRole


class _DisjointSet:
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, a: int) -> int:
        parent = self.parent
        while parent[a] != a:
            parent[a] = parent[parent[a]]
            a = parent[a]
        return a

    def union(self, a: int, b: int) -> bool:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        self.parent[rb] = ra
        return True


def _edge_kind(a: Region, b: Region) -> ConnectionKind:
    if RegionRole.BOSS in (a.role, b.role):
        return ConnectionKind.BOSS
    return ConnectionKind.NORMAL


def _edge_difficulty(a: Region, b: Region) -> float:
    return (a.difficulty + b.difficulty) / 2


def candidate_edges(regions: Sequence[Region]) -> List[Tuple[float, int, int]]:
    """All region pairs as (distance, i, j), ascending; ties keep (i, j) order."""
    edges = []
    for i in range(len(regions)):
        for j in range(i + 1, len(regions)):
            edges.append((regions[i].distance_to(regions[j]), i, j))
    edges.sort()
    return edges


class ConnectivityBuilder:
    def __init__(self, id_prefix: str = "conn"):
        self.id_prefix = id_prefix

    def connect(self, regions: Sequence[Region]) -> List[Connection]:
        ids = [r.id for r in regions]
        if len(set(ids)) != len(ids):
            raise GraphIntegrityError("duplicate region ids cannot be connected")
        dsu = _DisjointSet(len(regions))
        tree: List[Connection] = []
        for _d, i, j in candidate_edges(regions):
            if not dsu.union(i, j):
                continue
            a, b = regions[i], regions[j]
            tree.append(
                Connection(
                    id=f"{self.id_prefix}_{len(tree)}",
                    source_id=a.id,
                    target_id=b.id,
                    kind=_edge_kind(a, b),
                    difficulty=_edge_difficulty(a, b),
                )
            )
            if len(tree) == len(regions) - 1:
                break
        return tree

    def add_variety_edges(
        self,
        regions: Sequence[Region],
        connections: Sequence[Connection],
        rng: random.Random,
        chance: float,
        teleport_ratio: float = 0.5,
    ) -> List[Connection]:
        """Return ``connections`` plus optional shortcut edges.

        Each non-adjacent pair is considered nearest first; with probability
        ``chance`` it gains a TELEPORT (``teleport_ratio``) or SECRET edge.
        Existing edges, self-loops and duplicate pairs are never produced.
        """
        by_id: Dict[str, Region] = {r.id: r for r in regions}
        for c in connections:
            if c.source_id not in by_id or c.target_id not in by_id:
                raise GraphIntegrityError(f"connection {c.id} references a missing region")
        out = list(connections)
        if chance <= 0 or len(regions) < 3:
            return out
        seen: Set[frozenset] = {c.pair for c in out}
        taken = {c.id for c in out}
        counter = len(out)
        for _d, i, j in candidate_edges(regions):
            a, b = regions[i], regions[j]
            key = frozenset((a.id, b.id))
            if key in seen:
                continue
            if rng.random() >= chance:
                continue
            kind = ConnectionKind.TELEPORT if rng.random() < teleport_ratio else ConnectionKind.SECRET
            while f"{self.id_prefix}_{counter}" in taken:
                counter += 1
            cid = f"{self.id_prefix}_{counter}"
            taken.add(cid)
            out.append(Connection(id=cid, source_id=a.id, target_id=b.id, kind=kind, difficulty=_edge_difficulty(a, b)))
            seen.add(key)
        return out


__all__ = ["ConnectivityBuilder", "candidate_edges"]
