"""Immutable layout records: regions, connections and the map that owns them.

Connections reference regions by id only. The map keeps flat tuples of both
record types plus first-wins id indexes, so a deserialized map with
duplicate ids can still be handed to the validator.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

Point = Tuple[float, float]
Scalar = Union[str, int, float, bool, bytes]


class RegionRole(str, enum.Enum):
    SPAWN = "spawn"
    COMBAT = "combat"
    TREASURE = "treasure"
    BOSS = "boss"
    SAFE = "safe"


class ConnectionKind(str, enum.Enum):
    NORMAL = "normal"
    BOSS = "boss"
    SECRET = "secret"
    TELEPORT = "teleport"


# --- role traits (one payload type per role) ----------------------------------


@dataclass(frozen=True)
class SpawnTraits:
    spawn_points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class CombatTraits:
    encounter_count: int = 1


@dataclass(frozen=True)
class TreasureTraits:
    chest_count: int = 1
    locked: bool = False
    visible: bool = True


@dataclass(frozen=True)
class BossTraits:
    boss_level: int = 1
    locked: bool = True
    visible: bool = False


@dataclass(frozen=True)
class SafeTraits:
    rest_points: Tuple[Point, ...] = ()


RoleTraits = Union[SpawnTraits, CombatTraits, TreasureTraits, BossTraits, SafeTraits]

TRAIT_TYPES = {
    RegionRole.SPAWN: SpawnTraits,
    RegionRole.COMBAT: CombatTraits,
    RegionRole.TREASURE: TreasureTraits,
    RegionRole.BOSS: BossTraits,
    RegionRole.SAFE: SafeTraits,
}


def default_traits(role: RegionRole, region: "Region") -> RoleTraits:
    center = region.center
    if role is RegionRole.SPAWN:
        return SpawnTraits(spawn_points=(center,))
    if role is RegionRole.COMBAT:
        return CombatTraits(encounter_count=max(1, region.difficulty))
    if role is RegionRole.TREASURE:
        return TreasureTraits()
    if role is RegionRole.BOSS:
        return BossTraits(boss_level=region.level)
    return SafeTraits(rest_points=(center,))


# --- records --------------------------------------------------------------------


@dataclass(frozen=True)
class Region:
    id: str
    x: int
    y: int
    width: int
    height: int
    role: Optional[RegionRole] = None
    difficulty: int = 1
    level: int = 1
    name: str = ""
    traits: Optional[RoleTraits] = None
    extras: Dict[str, Scalar] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # traits always match the role: filled in when missing, rejected when foreign
        if self.role is None:
            if self.traits is not None:
                raise ValueError(f"region {self.id}: traits {type(self.traits).__name__} without a role")
            return
        if self.traits is None:
            object.__setattr__(self, "traits", default_traits(self.role, self))
        elif type(self.traits) is not TRAIT_TYPES[self.role]:
            raise ValueError(
                f"region {self.id}: {type(self.traits).__name__} does not belong to role {self.role.value}"
            )

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def overlap_area(self, other: "Region") -> int:
        ax1, ay1, ax2, ay2 = self.bounds
        bx1, by1, bx2, by2 = other.bounds
        ox = max(0, min(ax2, bx2) - max(ax1, bx1))
        oy = max(0, min(ay2, by2) - max(ay1, by1))
        return ox * oy

    def overlaps(self, other: "Region") -> bool:
        return self.overlap_area(other) > 0

    def spacing(self, other: "Region") -> int:
        """Boundary gap: the larger per-axis gap, 0 on an axis whose projections overlap."""
        ax1, ay1, ax2, ay2 = self.bounds
        bx1, by1, bx2, by2 = other.bounds
        gx = max(0, max(ax1, bx1) - min(ax2, bx2))
        gy = max(0, max(ay1, by1) - min(ay2, by2))
        return max(gx, gy)

    def distance_to(self, other: "Region") -> float:
        (ax, ay), (bx, by) = self.center, other.center
        return math.hypot(bx - ax, by - ay)

    def with_role(self, role: RegionRole, traits: Optional[RoleTraits] = None) -> "Region":
        return replace(self, role=role, traits=traits)


@dataclass(frozen=True)
class Connection:
    id: str
    source_id: str
    target_id: str
    kind: ConnectionKind = ConnectionKind.NORMAL
    difficulty: float = 1.0
    extras: Dict[str, Scalar] = field(default_factory=dict, hash=False)

    @property
    def pair(self) -> FrozenSet[str]:
        return frozenset((self.source_id, self.target_id))

    def touches(self, region_id: str) -> bool:
        return region_id in (self.source_id, self.target_id)

    def other_end(self, region_id: str) -> Optional[str]:
        if region_id == self.source_id:
            return self.target_id
        if region_id == self.target_id:
            return self.source_id
        return None


class DungeonMap:
    """Published layout snapshot.

    Region and connection collections are tuples and the object exposes no
    mutators; ``with_elements`` returns a new map.
    """

    __slots__ = (
        "_id",
        "_name",
        "_map_type",
        "_width",
        "_height",
        "_level",
        "_difficulty",
        "_regions",
        "_connections",
        "_region_index",
        "_connection_index",
    )

    def __init__(
        self,
        id: str,
        width: int,
        height: int,
        regions: Iterable[Region] = (),
        connections: Iterable[Connection] = (),
        level: int = 1,
        difficulty: int = 1,
        name: str = "",
        map_type: str = "dungeon",
    ):
        self._id = id
        self._name = name
        self._map_type = map_type
        self._width = width
        self._height = height
        self._level = level
        self._difficulty = difficulty
        self._regions: Tuple[Region, ...] = tuple(regions)
        self._connections: Tuple[Connection, ...] = tuple(connections)
        self._region_index: Dict[str, Region] = {}
        for r in self._regions:
            self._region_index.setdefault(r.id, r)
        self._connection_index: Dict[str, Connection] = {}
        for c in self._connections:
            self._connection_index.setdefault(c.id, c)

    def __setattr__(self, name, value):
        if hasattr(self, "_connection_index"):
            raise AttributeError("DungeonMap is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self):
        return f"<DungeonMap {self._id} {self._width}x{self._height} regions={len(self._regions)} connections={len(self._connections)}>"

    id = property(lambda self: self._id)
    name = property(lambda self: self._name)
    map_type = property(lambda self: self._map_type)
    width = property(lambda self: self._width)
    height = property(lambda self: self._height)
    level = property(lambda self: self._level)
    difficulty = property(lambda self: self._difficulty)
    regions = property(lambda self: self._regions)
    connections = property(lambda self: self._connections)

    @property
    def area(self) -> int:
        return self._width * self._height

    def get_region(self, region_id: str) -> Optional[Region]:
        return self._region_index.get(region_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connection_index.get(connection_id)

    def region_ids(self) -> List[str]:
        return [r.id for r in self._regions]

    def regions_by_role(self, role: RegionRole) -> List[Region]:
        return [r for r in self._regions if r.role is role]

    def spawn_region(self) -> Optional[Region]:
        spawns = self.regions_by_role(RegionRole.SPAWN)
        return spawns[0] if spawns else None

    def boss_regions(self) -> List[Region]:
        return self.regions_by_role(RegionRole.BOSS)

    def connections_of(self, region_id: str) -> List[Connection]:
        return [c for c in self._connections if c.touches(region_id)]

    def degree(self, region_id: str) -> int:
        return len(self.connections_of(region_id))

    # gameplay collaborator queries
    def region_containing(self, px: float, py: float) -> Optional[Region]:
        for r in self._regions:
            if r.contains_point(px, py):
                return r
        return None

    def connected_regions(self, region_id: str) -> List[Region]:
        found = []
        for c in self._connections:
            other = c.other_end(region_id)
            if other is None or other == region_id:
                continue
            region = self._region_index.get(other)
            if region is not None:
                found.append(region)
        return found

    # structural metrics
    def density(self) -> float:
        if self.area <= 0:
            return 0.0
        return sum(r.area for r in self._regions) / self.area

    def connectivity_ratio(self) -> float:
        n = len(self._regions)
        max_edges = n * (n - 1) / 2
        if max_edges == 0:
            return 0.0
        return len(self._connections) / max_edges

    def complexity_score(self) -> float:
        return (
            len(self._regions) * 0.4
            + len(self._connections) * 0.3
            + self._difficulty * 0.2
            + self._level * 0.1
        )

    def with_elements(
        self,
        regions: Optional[Iterable[Region]] = None,
        connections: Optional[Iterable[Connection]] = None,
    ) -> "DungeonMap":
        return DungeonMap(
            id=self._id,
            width=self._width,
            height=self._height,
            regions=self._regions if regions is None else regions,
            connections=self._connections if connections is None else connections,
            level=self._level,
            difficulty=self._difficulty,
            name=self._name,
            map_type=self._map_type,
        )


__all__ = [
    "Point",
    "Scalar",
    "RegionRole",
    "ConnectionKind",
    "SpawnTraits",
    "CombatTraits",
    "TreasureTraits",
    "BossTraits",
    "SafeTraits",
    "RoleTraits",
    "TRAIT_TYPES",
    "default_traits",
    "Region",
    "Connection",
    "DungeonMap",
]
