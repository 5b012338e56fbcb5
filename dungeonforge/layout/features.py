"""Post-connectivity annotation of regions and connections.

Runs after the graph exists because difficulty ramps with hop distance from
the spawn region:

  * each region gets ``difficulty = base + hops`` capped at MAX_DIFFICULTY
    (regions the spawn cannot reach keep ``base``);
  * every region takes the map level;
  * role traits are rebuilt so they see the new difficulty/level;
  * connection difficulty is re-derived as the endpoint mean.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import MAX_DIFFICULTY, MIN_DIFFICULTY
from .model import Connection, DungeonMap, Region
from .pathfinding import RegionGraph, hop_distances


def ramp_difficulty(base: int, hops: Optional[int]) -> int:
    if hops is None:
        return max(MIN_DIFFICULTY, min(base, MAX_DIFFICULTY))
    return max(MIN_DIFFICULTY, min(base + hops, MAX_DIFFICULTY))


def assign_features(
    regions: Sequence[Region],
    connections: Sequence[Connection],
    difficulty: int,
    level: int,
    metrics: Optional[Dict[str, Any]] = None,
) -> Tuple[List[Region], List[Connection]]:
    probe = DungeonMap(id="_", width=1, height=1, regions=regions, connections=connections)
    spawn = probe.spawn_region()
    hops = hop_distances(RegionGraph.from_map(probe), spawn.id) if spawn is not None else {}

    out_regions: List[Region] = []
    for r in regions:
        updated = Region(
            id=r.id,
            x=r.x,
            y=r.y,
            width=r.width,
            height=r.height,
            role=None,
            difficulty=ramp_difficulty(difficulty, hops.get(r.id)),
            level=level,
            name=r.name,
            extras=dict(r.extras),
        )
        out_regions.append(updated.with_role(r.role) if r.role is not None else updated)

    by_id = {}
    for r in out_regions:
        by_id.setdefault(r.id, r)
    out_conns: List[Connection] = []
    for c in connections:
        a, b = by_id.get(c.source_id), by_id.get(c.target_id)
        weight = (a.difficulty + b.difficulty) / 2 if a is not None and b is not None else c.difficulty
        out_conns.append(
            Connection(id=c.id, source_id=c.source_id, target_id=c.target_id, kind=c.kind, difficulty=weight, extras=dict(c.extras))
        )

    if metrics is not None:
        counts = Counter(r.role.value for r in out_regions if r.role is not None)
        for role, n in counts.items():
            metrics[f"feature_{role}_regions"] = n
        metrics["max_hops_from_spawn"] = max(hops.values()) if hops else 0
    return out_regions, out_conns


__all__ = ["assign_features", "ramp_difficulty"]
