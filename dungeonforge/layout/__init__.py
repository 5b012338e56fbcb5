"""Layout generation package.

Public surface re-exported here; see ``pipeline.generate`` for the entry
point and ``validation`` / ``quality`` for read-only analysis of a map.
"""
from .config import GenerationConfig, PlacementConfig
from .connectivity import ConnectivityBuilder
from .corridors import Corridor, CorridorSynthesizer
from .errors import ConfigurationError, GraphIntegrityError, LayoutError, PlacementExhausted, SerializationError
from .model import (
    BossTraits,
    CombatTraits,
    Connection,
    ConnectionKind,
    DungeonMap,
    Region,
    RegionRole,
    SafeTraits,
    SpawnTraits,
    TreasureTraits,
)
from .pathfinding import RegionGraph, find_cycles, hop_distances, reachable, shortest_path
from .pipeline import GenerationResult, generate, generate_validated
from .placement import RegionPlacer
from .quality import QualityAnalyzer, QualityReport, Suggestion
from .roles import RegionRoleAssigner
from .serialization import deserialize, from_json, serialize, to_json
from .validation import BLOCKING_CODES, GraphValidator, ValidationViolation, is_playable

__all__ = [
    "GenerationConfig",
    "PlacementConfig",
    "ConnectivityBuilder",
    "Corridor",
    "CorridorSynthesizer",
    "ConfigurationError",
    "GraphIntegrityError",
    "LayoutError",
    "PlacementExhausted",
    "SerializationError",
    "BossTraits",
    "CombatTraits",
    "Connection",
    "ConnectionKind",
    "DungeonMap",
    "Region",
    "RegionRole",
    "SafeTraits",
    "SpawnTraits",
    "TreasureTraits",
    "RegionGraph",
    "find_cycles",
    "hop_distances",
    "reachable",
    "shortest_path",
    "GenerationResult",
    "generate",
    "generate_validated",
    "RegionPlacer",
    "QualityAnalyzer",
    "QualityReport",
    "Suggestion",
    "RegionRoleAssigner",
    "deserialize",
    "from_json",
    "serialize",
    "to_json",
    "BLOCKING_CODES",
    "GraphValidator",
    "ValidationViolation",
    "is_playable",
]
