from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from . import constants as C
from .errors import ConfigurationError


@dataclass
class PlacementConfig:
    width: int
    height: int
    target_count: int
    min_size: int
    max_size: int


@dataclass
class GenerationConfig:
    map_id: Optional[str] = None
    width: int = 800
    height: int = 800
    room_count: int = 5
    min_room_size: int = 100
    max_room_size: int = 200
    difficulty: int = 1
    level: int = 1
    name: str = "Random Dungeon"
    region_padding: int = 0
    extra_connection_chance: float = 0.0
    teleport_ratio: float = 0.5

    # camelCase keys accepted from external callers
    _ALIASES = {
        "mapId": "map_id",
        "roomCount": "room_count",
        "minRoomSize": "min_room_size",
        "maxRoomSize": "max_room_size",
        "regionPadding": "region_padding",
        "extraConnectionChance": "extra_connection_chance",
        "teleportRatio": "teleport_ratio",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationConfig":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = cls._ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        try:
            cfg = cls(**kwargs)
        except TypeError as exc:  # pragma: no cover - guarded by the filter above
            raise ConfigurationError(str(exc)) from exc
        for name in ("width", "height", "room_count", "min_room_size", "max_room_size", "difficulty", "level", "region_padding"):
            value = getattr(cfg, name)
            if isinstance(value, bool) or not isinstance(value, int):
                try:
                    setattr(cfg, name, int(value))
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
        for name in ("extra_connection_chance", "teleport_ratio"):
            try:
                setattr(cfg, name, float(getattr(cfg, name)))
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{name} must be a number") from exc
        return cfg

    def validate(self) -> "GenerationConfig":
        """Raise ConfigurationError for the first out-of-bounds field."""
        if self.map_id is not None and (not isinstance(self.map_id, str) or not self.map_id.strip()):
            raise ConfigurationError(f"map_id must be a non-empty string, got {self.map_id!r}")
        if not isinstance(self.name, str):
            raise ConfigurationError(f"name must be a string, got {type(self.name).__name__}")
        for axis in ("width", "height"):
            value = getattr(self, axis)
            if not C.MIN_MAP_SIZE <= value <= C.MAX_MAP_SIZE:
                raise ConfigurationError(f"{axis} {value} outside [{C.MIN_MAP_SIZE}, {C.MAX_MAP_SIZE}]")
        if not C.MIN_ROOM_COUNT <= self.room_count <= C.MAX_ROOM_COUNT:
            raise ConfigurationError(
                f"room_count {self.room_count} outside [{C.MIN_ROOM_COUNT}, {C.MAX_ROOM_COUNT}]"
            )
        for name in ("min_room_size", "max_room_size"):
            value = getattr(self, name)
            if not C.MIN_REGION_SIZE <= value <= C.MAX_REGION_SIZE:
                raise ConfigurationError(f"{name} {value} outside [{C.MIN_REGION_SIZE}, {C.MAX_REGION_SIZE}]")
        if self.min_room_size > self.max_room_size:
            raise ConfigurationError(
                f"min_room_size {self.min_room_size} greater than max_room_size {self.max_room_size}"
            )
        if not C.MIN_DIFFICULTY <= self.difficulty <= C.MAX_DIFFICULTY:
            raise ConfigurationError(
                f"difficulty {self.difficulty} outside [{C.MIN_DIFFICULTY}, {C.MAX_DIFFICULTY}]"
            )
        if not C.MIN_LEVEL <= self.level <= C.MAX_LEVEL:
            raise ConfigurationError(f"level {self.level} outside [{C.MIN_LEVEL}, {C.MAX_LEVEL}]")
        if self.region_padding < 0:
            raise ConfigurationError("region_padding must be non-negative")
        if not 0.0 <= self.extra_connection_chance <= 1.0:
            raise ConfigurationError("extra_connection_chance must be within [0, 1]")
        if not 0.0 <= self.teleport_ratio <= 1.0:
            raise ConfigurationError("teleport_ratio must be within [0, 1]")
        return self

    def placement(self) -> PlacementConfig:
        return PlacementConfig(
            width=self.width,
            height=self.height,
            target_count=self.room_count,
            min_size=self.min_room_size,
            max_size=self.max_room_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["GenerationConfig", "PlacementConfig"]
