"""Graph queries over a layout's region adjacency.

Everything that walks the region graph (validator, quality analyzer, feature
annotation, HTTP path queries) goes through this module.
"""
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Set

from .model import ConnectionKind, DungeonMap


class RegionGraph:
    """Undirected adjacency lists keyed by region id.

    Neighbour order follows connection order. Connections with an endpoint
    that is not a region are skipped, as are self-loops.
    """

    def __init__(self, nodes: Iterable[str] = ()):
        self.adjacency: Dict[str, List[str]] = {}
        for n in nodes:
            self.adjacency.setdefault(n, [])

    @classmethod
    def from_map(cls, layout: DungeonMap, kinds: Optional[Iterable[ConnectionKind]] = None) -> "RegionGraph":
        allowed = set(kinds) if kinds is not None else None
        graph = cls(layout.region_ids())
        for c in layout.connections:
            if allowed is not None and c.kind not in allowed:
                continue
            graph.add_edge(c.source_id, c.target_id)
        return graph

    def add_edge(self, a: str, b: str) -> None:
        if a == b or a not in self.adjacency or b not in self.adjacency:
            return
        self.adjacency[a].append(b)
        self.adjacency[b].append(a)

    def neighbors(self, node: str) -> List[str]:
        return self.adjacency.get(node, [])

    def __contains__(self, node: str) -> bool:
        return node in self.adjacency

    def __len__(self) -> int:
        return len(self.adjacency)


def shortest_path(graph: RegionGraph, start: str, end: str) -> Optional[List[str]]:
    """Fewest-hop path from ``start`` to ``end`` inclusive, or None when no path exists."""
    if start not in graph or end not in graph:
        return None
    if start == end:
        return [start]
    parent: Dict[str, Optional[str]] = {start: None}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        for nb in graph.neighbors(cur):
            if nb in parent:
                continue
            parent[nb] = cur
            if nb == end:
                path = [nb]
                step = cur
                while step is not None:
                    path.append(step)
                    step = parent[step]
                path.reverse()
                return path
            queue.append(nb)
    return None


def hop_distances(graph: RegionGraph, start: str) -> Dict[str, int]:
    if start not in graph:
        return {}
    dist = {start: 0}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        for nb in graph.neighbors(cur):
            if nb not in dist:
                dist[nb] = dist[cur] + 1
                queue.append(nb)
    return dist


def reachable(graph: RegionGraph, start: str) -> Set[str]:
    return set(hop_distances(graph, start))


def find_cycles(graph: RegionGraph) -> List[List[str]]:
    """Cycles found by depth-first search, each reported once.

    A cycle is recorded when a neighbour (other than the edge just walked)
    is already on the current path. Cycles are rotated to start at their
    smallest id and oriented so duplicates found from other directions
    collapse.
    """
    seen_keys: Set[tuple] = set()
    cycles: List[List[str]] = []
    visited: Set[str] = set()
    for root in graph.adjacency:
        if root in visited:
            continue
        # iterative DFS; each frame is (node, parent, neighbour iterator)
        path: List[str] = [root]
        on_path = {root: 0}
        visited.add(root)
        stack = [(root, None, iter(graph.neighbors(root)))]
        while stack:
            node, parent, it = stack[-1]
            advanced = False
            for nb in it:
                if nb == parent:
                    continue
                if nb in on_path:
                    cycle = path[on_path[nb]:]
                    if len(cycle) >= 3:
                        key = _normalize(cycle)
                        if key not in seen_keys:
                            seen_keys.add(key)
                            cycles.append(list(key))
                    continue
                if nb in visited:
                    continue
                visited.add(nb)
                on_path[nb] = len(path)
                path.append(nb)
                stack.append((nb, node, iter(graph.neighbors(nb))))
                advanced = True
                break
            if not advanced:
                stack.pop()
                done = path.pop()
                del on_path[done]
    return cycles


def _normalize(cycle: List[str]) -> tuple:
    pivot = cycle.index(min(cycle))
    rotated = cycle[pivot:] + cycle[:pivot]
    reverse = [rotated[0]] + rotated[:0:-1]
    return tuple(min(rotated, reverse))


__all__ = ["RegionGraph", "shortest_path", "hop_distances", "reachable", "find_cycles"]
