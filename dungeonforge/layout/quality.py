"""Quality scoring and improvement suggestions for finished layouts.

Scores are heuristics in 0..100 grouped into four categories:

  gameplay     critical path length, teleporter count, role variety
  balance      combat ratio, treasure ratio, difficulty progression
  performance  bottleneck severity for region/connection counts and an
               estimated memory footprint
  layout       number of region-layout and connection-structure suggestions

overall = gameplay*0.4 + balance*0.3 + performance*0.2 + layout*0.1

The analyzer only reads the map; a map with no Spawn->Boss path is still
scored (path length 0) and gets a CRITICAL suggestion.
"""
from __future__ import annotations

import enum
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .model import ConnectionKind, DungeonMap, RegionRole
from .pathfinding import RegionGraph, find_cycles, shortest_path


class SuggestionType(str, enum.Enum):
    REGION_LAYOUT = "region_layout"
    CONNECTION_STRUCTURE = "connection_structure"
    PERFORMANCE = "performance"
    GAMEPLAY = "gameplay"
    BALANCE = "balance"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


CRITERIA_WEIGHTS: Dict[str, float] = {
    "path_length": 0.15,
    "teleporter_count": 0.10,
    "region_variety": 0.15,
    "combat_balance": 0.10,
    "treasure_distribution": 0.10,
    "difficulty_progression": 0.10,
    "region_count": 0.10,
    "connection_count": 0.10,
    "memory_usage": 0.10,
}

CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "gameplay": ("path_length", "teleporter_count", "region_variety"),
    "balance": ("combat_balance", "treasure_distribution", "difficulty_progression"),
    "performance": ("region_count", "connection_count", "memory_usage"),
}

CATEGORY_WEIGHTS = {"gameplay": 0.4, "balance": 0.3, "performance": 0.2, "layout": 0.1}

SMALL_REGION_AREA = 10_000
MEMORY_THRESHOLD_BYTES = 500 * 1024 * 1024
SEVERITY_SCORES = {None: 100, "low": 80, "medium": 60, "high": 40}


@dataclass(frozen=True)
class Suggestion:
    type: SuggestionType
    priority: Priority
    description: str
    affected_regions: Tuple[str, ...] = ()
    affected_connections: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "description": self.description,
            "affected_regions": list(self.affected_regions),
            "affected_connections": list(self.affected_connections),
        }


@dataclass(frozen=True)
class Bottleneck:
    type: str
    severity: str
    value: float


@dataclass
class QualityReport:
    map_id: str
    overall: float
    gameplay: float
    balance: float
    performance: float
    layout: float
    details: Dict[str, float] = field(default_factory=dict)
    suggestions: List[Suggestion] = field(default_factory=list)
    critical_path: Optional[List[str]] = None

    def summary(self) -> Dict[str, Any]:
        by_priority = Counter(s.priority.value for s in self.suggestions)
        by_type = Counter(s.type.value for s in self.suggestions)
        return {
            "total": len(self.suggestions),
            "by_priority": {p.value: by_priority.get(p.value, 0) for p in Priority},
            "by_type": {t.value: by_type.get(t.value, 0) for t in SuggestionType},
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "map_id": self.map_id,
            "overall": round(self.overall, 2),
            "gameplay": round(self.gameplay, 2),
            "balance": round(self.balance, 2),
            "performance": round(self.performance, 2),
            "layout": round(self.layout, 2),
            "details": dict(self.details),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": self.summary(),
            "critical_path": list(self.critical_path) if self.critical_path is not None else None,
        }


# --- banded scoring helpers --------------------------------------------------


def score_path_length(nodes: Optional[int]) -> int:
    if not nodes:
        return 0
    if nodes <= 5:
        return 100
    if nodes <= 8:
        return 80
    if nodes <= 12:
        return 60
    if nodes <= 15:
        return 40
    return 20


def score_teleporters(count: int) -> int:
    if count == 0:
        return 100
    if count <= 2:
        return 80
    if count <= 4:
        return 60
    if count <= 6:
        return 40
    return 20


def score_variety(distinct_roles: int) -> int:
    if distinct_roles >= 5:
        return 100
    if distinct_roles >= 4:
        return 80
    if distinct_roles >= 3:
        return 60
    if distinct_roles >= 2:
        return 40
    return 20


def _ratio_band(ratio: float, bands: Sequence[Tuple[float, float]]) -> int:
    for score, (lo, hi) in zip((100, 80, 60, 40), bands):
        if lo <= ratio <= hi:
            return score
    return 20


def score_combat_ratio(ratio: float) -> int:
    return _ratio_band(ratio, ((0.3, 0.5), (0.2, 0.6), (0.1, 0.7), (0.05, 0.8)))


def score_treasure_ratio(ratio: float) -> int:
    return _ratio_band(ratio, ((0.1, 0.2), (0.05, 0.25), (0.02, 0.3), (0.01, 0.4)))


def score_suggestion_count(count: int) -> int:
    if count == 0:
        return 100
    if count <= 2:
        return 80
    if count <= 4:
        return 60
    if count <= 6:
        return 40
    return 20


def estimate_memory(layout: DungeonMap) -> int:
    """Rough byte estimate: 1 MiB base + 1 KiB per region + 512 B per connection."""
    return 1024 * 1024 + len(layout.regions) * 1024 + len(layout.connections) * 512


def find_bottlenecks(layout: DungeonMap) -> List[Bottleneck]:
    out = []
    n_regions = len(layout.regions)
    if n_regions > 100:
        out.append(Bottleneck("region_count", "high", n_regions))
    elif n_regions > 50:
        out.append(Bottleneck("region_count", "medium", n_regions))
    n_conns = len(layout.connections)
    if n_conns > 200:
        out.append(Bottleneck("connection_count", "high", n_conns))
    elif n_conns > 100:
        out.append(Bottleneck("connection_count", "medium", n_conns))
    memory = estimate_memory(layout)
    if memory > MEMORY_THRESHOLD_BYTES:
        out.append(Bottleneck("memory_usage", "high", memory))
    elif memory > MEMORY_THRESHOLD_BYTES * 0.7:
        out.append(Bottleneck("memory_usage", "medium", memory))
    return out


def teleporter_cycles(layout: DungeonMap) -> List[List[str]]:
    """Loops made only of teleport connections."""
    return find_cycles(RegionGraph.from_map(layout, kinds=[ConnectionKind.TELEPORT]))


def critical_path(layout: DungeonMap, graph: Optional[RegionGraph] = None) -> Optional[List[str]]:
    """Shortest Spawn -> first Boss path, or None when either end is missing or unreachable."""
    spawn = layout.spawn_region()
    bosses = layout.boss_regions()
    if spawn is None or not bosses:
        return None
    if graph is None:
        graph = RegionGraph.from_map(layout)
    return shortest_path(graph, spawn.id, bosses[0].id)


# --- analyzer -----------------------------------------------------------------


class QualityAnalyzer:
    def analyze(self, layout: DungeonMap) -> QualityReport:
        graph = RegionGraph.from_map(layout)
        path = critical_path(layout, graph)
        bottlenecks = find_bottlenecks(layout)
        suggestions = self.suggest(layout, path, bottlenecks)

        n = len(layout.regions)
        roles = Counter(r.role for r in layout.regions)
        teleporters = sum(1 for c in layout.connections if c.kind is ConnectionKind.TELEPORT)
        severity = {b.type: b.severity for b in bottlenecks}

        details = {
            "path_length": score_path_length(len(path) if path else None),
            "teleporter_count": score_teleporters(teleporters),
            "region_variety": score_variety(len({r for r in roles if r is not None})),
            "combat_balance": score_combat_ratio(roles[RegionRole.COMBAT] / n) if n else 20,
            "treasure_distribution": score_treasure_ratio(roles[RegionRole.TREASURE] / n) if n else 20,
            "difficulty_progression": self._progression(layout, path),
            "region_count": SEVERITY_SCORES[severity.get("region_count")],
            "connection_count": SEVERITY_SCORES[severity.get("connection_count")],
            "memory_usage": SEVERITY_SCORES[severity.get("memory_usage")],
        }
        categories = {name: _weighted(details, keys) for name, keys in CATEGORIES.items()}
        layout_suggestions = [
            s for s in suggestions if s.type in (SuggestionType.REGION_LAYOUT, SuggestionType.CONNECTION_STRUCTURE)
        ]
        categories["layout"] = score_suggestion_count(len(layout_suggestions))
        overall = sum(categories[k] * w for k, w in CATEGORY_WEIGHTS.items())
        return QualityReport(
            map_id=layout.id,
            overall=overall,
            gameplay=categories["gameplay"],
            balance=categories["balance"],
            performance=categories["performance"],
            layout=categories["layout"],
            details=details,
            suggestions=suggestions,
            critical_path=path,
        )

    @staticmethod
    def _progression(layout: DungeonMap, path: Optional[List[str]]) -> int:
        if not path or len(path) < 2:
            return 50
        diffs = [layout.get_region(rid).difficulty for rid in path]
        return 100 if all(a <= b for a, b in zip(diffs, diffs[1:])) else 50

    def suggest(
        self,
        layout: DungeonMap,
        path: Optional[List[str]],
        bottlenecks: Sequence[Bottleneck],
    ) -> List[Suggestion]:
        out: List[Suggestion] = []
        regions = layout.regions

        small = [r.id for r in regions if r.area < SMALL_REGION_AREA]
        if small:
            out.append(Suggestion(SuggestionType.REGION_LAYOUT, Priority.MEDIUM, "Some regions are too small", tuple(small)))
        balanced, far = _quadrant_balance(layout)
        if not balanced:
            out.append(
                Suggestion(SuggestionType.REGION_LAYOUT, Priority.HIGH, "Regions are unevenly distributed", tuple(far))
            )

        degree = Counter()
        for c in layout.connections:
            degree[c.source_id] += 1
            degree[c.target_id] += 1
        under = [r.id for r in regions if degree[r.id] < 2]
        if under:
            out.append(
                Suggestion(SuggestionType.CONNECTION_STRUCTURE, Priority.HIGH, "Some regions have too few connections", tuple(under))
            )
        over = [r.id for r in regions if degree[r.id] > 4]
        if over:
            out.append(
                Suggestion(SuggestionType.CONNECTION_STRUCTURE, Priority.MEDIUM, "Some regions have too many connections", tuple(over))
            )

        labels = {
            "region_count": "Too many regions",
            "connection_count": "Too many connections",
            "memory_usage": "Estimated memory usage is too high",
        }
        for b in bottlenecks:
            out.append(Suggestion(SuggestionType.PERFORMANCE, Priority(b.severity), labels[b.type]))

        if path is None:
            out.append(Suggestion(SuggestionType.GAMEPLAY, Priority.CRITICAL, "No path from spawn to boss"))
        elif len(path) > 10:
            out.append(Suggestion(SuggestionType.GAMEPLAY, Priority.HIGH, "Path from spawn to boss is too long", tuple(path)))
        teleports = [c.id for c in layout.connections if c.kind is ConnectionKind.TELEPORT]
        if len(teleports) > 5:
            out.append(
                Suggestion(SuggestionType.GAMEPLAY, Priority.MEDIUM, "Too many teleporters", affected_connections=tuple(teleports))
            )
        if teleports:
            looped = teleporter_cycles(layout)
            if looped:
                ids = tuple(sorted({rid for cycle in looped for rid in cycle}))
                out.append(Suggestion(SuggestionType.GAMEPLAY, Priority.MEDIUM, "Teleporters form a loop", ids))

        roles = Counter(r.role for r in regions)
        if roles[RegionRole.COMBAT] < 3:
            out.append(Suggestion(SuggestionType.BALANCE, Priority.HIGH, "Not enough combat regions"))
        if roles[RegionRole.TREASURE] == 0:
            out.append(Suggestion(SuggestionType.BALANCE, Priority.MEDIUM, "No treasure regions"))
        if path and len(path) >= 2 and self._progression(layout, path) < 100:
            out.append(
                Suggestion(SuggestionType.BALANCE, Priority.MEDIUM, "Difficulty drops along the critical path", tuple(path))
            )
        return out


def _weighted(details: Dict[str, float], keys: Sequence[str]) -> float:
    total = math.fsum(CRITERIA_WEIGHTS[k] for k in keys)
    if not total:
        return 0.0
    return round(math.fsum(details[k] * CRITERIA_WEIGHTS[k] for k in keys) / total, 6)


def _quadrant_balance(layout: DungeonMap) -> Tuple[bool, List[str]]:
    cx, cy = layout.width / 2, layout.height / 2
    buckets = [0, 0, 0, 0]
    far = []
    for r in layout.regions:
        x, y = r.center
        buckets[(x >= cx) + 2 * (y >= cy)] += 1
        if math.hypot(x - cx, y - cy) > layout.width * 0.4:
            far.append(r.id)
    mean = sum(buckets) / 4
    balanced = all(abs(b - mean) <= mean * 0.5 for b in buckets)
    return balanced, far


__all__ = [
    "SuggestionType",
    "Priority",
    "Suggestion",
    "Bottleneck",
    "QualityReport",
    "QualityAnalyzer",
    "CRITERIA_WEIGHTS",
    "critical_path",
    "estimate_memory",
    "find_bottlenecks",
    "score_path_length",
    "teleporter_cycles",
]
