"""Structural validation for finished layouts.

``GraphValidator.validate`` runs every check and returns the violations it
found as data. It does not raise for structural problems, so a map decoded
from bad input (dangling endpoints, duplicate ids) can still be diagnosed.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from . import constants as C
from .model import DungeonMap, Region, RegionRole
from .pathfinding import RegionGraph, reachable

SPACING_SCOPES = ("all", "adjacent")

# Codes that make a map unplayable; the regenerate loop retries on these.
BLOCKING_CODES = frozenset(
    {
        "region_bounds",
        "duplicate_region_id",
        "missing_endpoint",
        "self_loop",
        "duplicate_connection_id",
        "duplicate_connection",
        "overlap",
        "isolated_region",
        "missing_spawn",
        "multiple_spawn",
        "missing_boss",
        "unreachable_region",
    }
)


@dataclass(frozen=True)
class ValidationViolation:
    code: str
    message: str
    region_ids: Tuple[str, ...] = ()
    connection_ids: Tuple[str, ...] = ()

    @property
    def blocking(self) -> bool:
        return self.code in BLOCKING_CODES

    def to_dict(self) -> Dict[str, object]:
        return {
            "code": self.code,
            "message": self.message,
            "region_ids": list(self.region_ids),
            "connection_ids": list(self.connection_ids),
            "blocking": self.blocking,
        }


def is_playable(violations: Iterable[ValidationViolation]) -> bool:
    return not any(v.blocking for v in violations)


@dataclass
class GraphValidator:
    spacing_scope: str = "all"
    min_spacing: int = C.MIN_REGION_SPACING
    max_spacing: int = C.MAX_REGION_SPACING

    def __post_init__(self):
        if self.spacing_scope not in SPACING_SCOPES:
            raise ValueError(f"spacing_scope must be one of {SPACING_SCOPES}, got {self.spacing_scope!r}")

    def validate(self, layout: DungeonMap) -> List[ValidationViolation]:
        out: List[ValidationViolation] = []

        def add(code, msg, regions=(), conns=()):
            out.append(ValidationViolation(code, msg, tuple(regions), tuple(conns)))

        self._check_map(layout, add)
        self._check_regions(layout, add)
        self._check_connections(layout, add)
        self._check_overlap_and_spacing(layout, add)
        self._check_graph(layout, add)
        self._check_metrics(layout, add)
        return out

    # --- map level ---------------------------------------------------------
    def _check_map(self, layout: DungeonMap, add) -> None:
        if not (
            C.MIN_MAP_SIZE <= layout.width <= C.MAX_MAP_SIZE
            and C.MIN_MAP_SIZE <= layout.height <= C.MAX_MAP_SIZE
        ):
            add("map_size", f"Invalid map size: {layout.width}x{layout.height}")
        n = len(layout.regions)
        if not C.MIN_ROOM_COUNT <= n <= C.MAX_ROOM_COUNT:
            add("room_count", f"Invalid region count: {n}")
        if not C.MIN_DIFFICULTY <= layout.difficulty <= C.MAX_DIFFICULTY:
            add("difficulty", f"Invalid map difficulty: {layout.difficulty}")
        if not C.MIN_LEVEL <= layout.level <= C.MAX_LEVEL:
            add("level", f"Invalid map level: {layout.level}")

    # --- regions -----------------------------------------------------------
    def _check_regions(self, layout: DungeonMap, add) -> None:
        seen = set()
        for r in layout.regions:
            if r.id in seen:
                add("duplicate_region_id", f"Duplicate region ID: {r.id}", [r.id])
            seen.add(r.id)
            for dim in (r.width, r.height):
                if not C.MIN_REGION_SIZE <= dim <= C.MAX_REGION_SIZE:
                    add("region_size", f"Invalid region size for {r.id}: {r.width}x{r.height}", [r.id])
                    break
            if r.x < 0 or r.y < 0 or r.x + r.width > layout.width or r.y + r.height > layout.height:
                add("region_bounds", f"Region {r.id} is outside map bounds", [r.id])
            if not C.MIN_DIFFICULTY <= r.difficulty <= C.MAX_DIFFICULTY:
                add("difficulty", f"Invalid difficulty for region {r.id}: {r.difficulty}", [r.id])
            if not C.MIN_LEVEL <= r.level <= C.MAX_LEVEL:
                add("level", f"Invalid level for region {r.id}: {r.level}", [r.id])

    # --- connections -------------------------------------------------------
    def _check_connections(self, layout: DungeonMap, add) -> None:
        ids = set(layout.region_ids())
        seen_ids = set()
        seen_pairs = set()
        for c in layout.connections:
            if c.id in seen_ids:
                add("duplicate_connection_id", f"Duplicate connection ID: {c.id}", conns=[c.id])
            seen_ids.add(c.id)
            if c.source_id not in ids:
                add("missing_endpoint", f"Source region not found for connection {c.id}", [c.source_id], [c.id])
            if c.target_id not in ids:
                add("missing_endpoint", f"Target region not found for connection {c.id}", [c.target_id], [c.id])
            if c.source_id == c.target_id:
                add("self_loop", f"Connection {c.id} connects a region to itself", [c.source_id], [c.id])
                continue
            if c.pair in seen_pairs:
                add(
                    "duplicate_connection",
                    f"Duplicate connection between regions {c.source_id} and {c.target_id}",
                    [c.source_id, c.target_id],
                    [c.id],
                )
            seen_pairs.add(c.pair)

    # --- pairwise geometry -------------------------------------------------
    def _check_overlap_and_spacing(self, layout: DungeonMap, add) -> None:
        regions = layout.regions
        adjacent = {c.pair for c in layout.connections}
        for i in range(len(regions)):
            a = regions[i]
            for j in range(i + 1, len(regions)):
                b = regions[j]
                overlap = a.overlap_area(b)
                if overlap > 0:
                    add("overlap", f"Regions {a.id} and {b.id} overlap by {overlap} square units", [a.id, b.id])
                    continue
                if self.spacing_scope == "adjacent" and frozenset((a.id, b.id)) not in adjacent:
                    continue
                s = a.spacing(b)
                if not self.min_spacing <= s <= self.max_spacing:
                    add("spacing", f"Invalid spacing between regions {a.id} and {b.id}: {s}", [a.id, b.id])

    # --- graph -------------------------------------------------------------
    def _check_graph(self, layout: DungeonMap, add) -> None:
        degree = Counter()
        for c in layout.connections:
            degree[c.source_id] += 1
            degree[c.target_id] += 1
        for r in layout.regions:
            if degree[r.id] == 0:
                add("isolated_region", f"Region {r.id} has no connections", [r.id])

        spawns = layout.regions_by_role(RegionRole.SPAWN)
        if not spawns:
            add("missing_spawn", "Map has no spawn region")
        elif len(spawns) > 1:
            add("multiple_spawn", f"Map has {len(spawns)} spawn regions", [r.id for r in spawns])
        if not layout.boss_regions():
            add("missing_boss", "Map has no boss region")

        if spawns:
            seen = reachable(RegionGraph.from_map(layout), spawns[0].id)
            for r in _unique(layout.regions):
                if r.id not in seen:
                    add("unreachable_region", f"Region {r.id} is not reachable from spawn", [r.id])

    # --- aggregate metrics -------------------------------------------------
    def _check_metrics(self, layout: DungeonMap, add) -> None:
        density = layout.density()
        if not C.MIN_DENSITY <= density <= C.MAX_DENSITY:
            add("density", f"Invalid map density: {density:.3f}")
        ratio = layout.connectivity_ratio()
        if not C.MIN_CONNECTIVITY <= ratio <= C.MAX_CONNECTIVITY:
            add("connectivity", f"Invalid map connectivity: {ratio:.3f}")
        complexity = layout.complexity_score()
        if not C.MIN_COMPLEXITY <= complexity <= C.MAX_COMPLEXITY:
            add("complexity", f"Invalid map complexity: {complexity:.2f}")


def _unique(regions: Iterable[Region]) -> List[Region]:
    seen = set()
    out = []
    for r in regions:
        if r.id not in seen:
            seen.add(r.id)
            out.append(r)
    return out


__all__ = ["ValidationViolation", "GraphValidator", "BLOCKING_CODES", "SPACING_SCOPES", "is_playable"]
