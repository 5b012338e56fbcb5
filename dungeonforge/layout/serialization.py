"""Plain-tree codec for ``DungeonMap``.

Tree shape::

    {id, type, name, level, difficulty, size: {width, height},
     regions: [{id, type, name, position: {x, y}, size: {width, height}, properties}],
     connections: [{id, type, sourceRegionId, targetRegionId, properties}]}

Region ``properties`` carry ``difficulty``, ``level``, the role trait fields
and the extras table; connection ``properties`` carry ``difficulty`` and
extras. Extras may not reuse those reserved names.

``to_json``/``from_json`` wrap the tree in JSON, encoding ``bytes`` values as
``{"$bytes": "<base64>"}``.
"""
from __future__ import annotations

import base64
import json
from dataclasses import asdict, fields
from typing import Any, Dict, List, Optional

from .errors import GraphIntegrityError, SerializationError
from .model import TRAIT_TYPES, Connection, ConnectionKind, DungeonMap, Region, RegionRole

_SCALARS = (str, int, float, bool, bytes)
_REGION_RESERVED = {"difficulty", "level"}
_CONNECTION_RESERVED = {"difficulty"}
_POINT_FIELDS = {"spawn_points", "rest_points"}
_TRAIT_FIELD_TYPES = {
    "encounter_count": int,
    "chest_count": int,
    "boss_level": int,
    "locked": bool,
    "visible": bool,
}


# --- encode -----------------------------------------------------------------


def serialize(layout: DungeonMap) -> Dict[str, Any]:
    return {
        "id": layout.id,
        "type": layout.map_type,
        "name": layout.name,
        "level": layout.level,
        "difficulty": layout.difficulty,
        "size": {"width": layout.width, "height": layout.height},
        "regions": [region_to_tree(r) for r in layout.regions],
        "connections": [connection_to_tree(c) for c in layout.connections],
    }


def region_to_tree(r: Region) -> Dict[str, Any]:
    trait_fields: Dict[str, Any] = {}
    if r.traits is not None:
        for key, value in asdict(r.traits).items():
            if key in _POINT_FIELDS:
                value = [list(p) for p in value]
            trait_fields[key] = value
    reserved = _REGION_RESERVED | set(trait_fields)
    clash = reserved.intersection(r.extras)
    if clash:
        raise SerializationError(f"region {r.id} extras shadow reserved properties: {sorted(clash)}")
    props = dict(r.extras)
    props.update(trait_fields)
    props["difficulty"] = r.difficulty
    props["level"] = r.level
    return {
        "id": r.id,
        "type": r.role.value if r.role is not None else None,
        "name": r.name,
        "position": {"x": r.x, "y": r.y},
        "size": {"width": r.width, "height": r.height},
        "properties": props,
    }


def connection_to_tree(c: Connection) -> Dict[str, Any]:
    if "difficulty" in c.extras:
        raise SerializationError(f"connection {c.id} extras shadow reserved property 'difficulty'")
    props = dict(c.extras)
    props["difficulty"] = c.difficulty
    return {
        "id": c.id,
        "type": c.kind.value,
        "sourceRegionId": c.source_id,
        "targetRegionId": c.target_id,
        "properties": props,
    }


# --- decode -----------------------------------------------------------------


def _get(tree: Dict[str, Any], key: str, types, where: str, default: Any = ...):
    if not isinstance(tree, dict):
        raise SerializationError(f"{where}: expected an object, got {type(tree).__name__}")
    if key not in tree:
        if default is not ...:
            return default
        raise SerializationError(f"{where}: missing '{key}'")
    value = tree[key]
    if not isinstance(value, types) or (isinstance(value, bool) and bool not in _as_tuple(types)):
        raise SerializationError(f"{where}: '{key}' has type {type(value).__name__}")
    return value


def _as_tuple(types):
    return types if isinstance(types, tuple) else (types,)


def _points(value, where: str):
    if not isinstance(value, list):
        raise SerializationError(f"{where}: expected a list of [x, y] pairs")
    out = []
    for p in value:
        if (
            not isinstance(p, (list, tuple))
            or len(p) != 2
            or any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in p)
        ):
            raise SerializationError(f"{where}: malformed point {p!r}")
        out.append((float(p[0]), float(p[1])))
    return tuple(out)


def _extras(props: Dict[str, Any], skip, where: str) -> Dict[str, Any]:
    out = {}
    for key, value in props.items():
        if key in skip:
            continue
        if not isinstance(value, _SCALARS):
            raise SerializationError(f"{where}: property '{key}' is not a scalar")
        out[key] = value
    return out


def _region_from_tree(tree: Dict[str, Any], index: int) -> Region:
    where = f"regions[{index}]"
    rid = _get(tree, "id", str, where)
    raw_type = _get(tree, "type", (str, type(None)), where, None)
    try:
        role = RegionRole(raw_type) if raw_type is not None else None
    except ValueError as exc:
        raise SerializationError(f"{where}: unknown region type {raw_type!r}") from exc
    pos = _get(tree, "position", dict, where)
    size = _get(tree, "size", dict, where)
    props = _get(tree, "properties", dict, where, {})

    traits = None
    trait_names: set = set()
    if role is not None:
        cls = TRAIT_TYPES[role]
        trait_names = {f.name for f in fields(cls)}
        kwargs = {}
        for name in trait_names & set(props):
            if name in _POINT_FIELDS:
                kwargs[name] = _points(props[name], f"{where}.properties.{name}")
            else:
                kwargs[name] = _get(props, name, _TRAIT_FIELD_TYPES[name], where + ".properties")
        traits = cls(**kwargs) if kwargs else None

    region = Region(
        id=rid,
        x=_get(pos, "x", (int, float), where + ".position"),
        y=_get(pos, "y", (int, float), where + ".position"),
        width=_get(size, "width", (int, float), where + ".size"),
        height=_get(size, "height", (int, float), where + ".size"),
        role=None,
        difficulty=_get(props, "difficulty", int, where + ".properties", 1),
        level=_get(props, "level", int, where + ".properties", 1),
        name=_get(tree, "name", str, where, ""),
        extras=_extras(props, _REGION_RESERVED | trait_names, where),
    )
    if role is None:
        return region
    return region.with_role(role, traits)


def _connection_from_tree(tree: Dict[str, Any], index: int) -> Connection:
    where = f"connections[{index}]"
    raw_type = _get(tree, "type", str, where, ConnectionKind.NORMAL.value)
    try:
        kind = ConnectionKind(raw_type)
    except ValueError as exc:
        raise SerializationError(f"{where}: unknown connection type {raw_type!r}") from exc
    props = _get(tree, "properties", dict, where, {})
    return Connection(
        id=_get(tree, "id", str, where),
        source_id=_get(tree, "sourceRegionId", str, where),
        target_id=_get(tree, "targetRegionId", str, where),
        kind=kind,
        difficulty=float(_get(props, "difficulty", (int, float), where + ".properties", 1.0)),
        extras=_extras(props, _CONNECTION_RESERVED, where),
    )


def deserialize(tree: Dict[str, Any], strict: bool = True) -> DungeonMap:
    """Rebuild a map from ``serialize`` output.

    With ``strict`` (the default) a connection whose endpoint is not a region
    raises ``GraphIntegrityError``; pass ``strict=False`` to load such a map
    for diagnosis by the validator.
    """
    size = _get(tree, "size", dict, "map")
    region_trees = _get(tree, "regions", list, "map")
    connection_trees = _get(tree, "connections", list, "map", [])
    regions = [_region_from_tree(t, i) for i, t in enumerate(region_trees)]
    connections = [_connection_from_tree(t, i) for i, t in enumerate(connection_trees)]
    if strict:
        ids = {r.id for r in regions}
        for c in connections:
            missing = [e for e in (c.source_id, c.target_id) if e not in ids]
            if missing:
                raise GraphIntegrityError(f"connection {c.id} references missing region(s) {missing}")
    return DungeonMap(
        id=_get(tree, "id", str, "map"),
        width=_get(size, "width", int, "map.size"),
        height=_get(size, "height", int, "map.size"),
        regions=regions,
        connections=connections,
        level=_get(tree, "level", int, "map", 1),
        difficulty=_get(tree, "difficulty", int, "map", 1),
        name=_get(tree, "name", str, "map", ""),
        map_type=_get(tree, "type", str, "map", "dungeon"),
    )


# --- JSON -------------------------------------------------------------------


def _encode_default(obj):
    if isinstance(obj, bytes):
        return {"$bytes": base64.b64encode(obj).decode("ascii")}
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def _decode_hook(obj):
    if len(obj) == 1 and "$bytes" in obj:
        try:
            return base64.b64decode(obj["$bytes"], validate=True)
        except (ValueError, TypeError) as exc:
            raise SerializationError("invalid base64 blob") from exc
    return obj


def to_json(layout: DungeonMap, indent: Optional[int] = None) -> str:
    return json.dumps(serialize(layout), default=_encode_default, indent=indent)


def from_json(text: str, strict: bool = True) -> DungeonMap:
    try:
        tree = json.loads(text, object_hook=_decode_hook)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"invalid JSON: {exc}") from exc
    return deserialize(tree, strict=strict)


def tree_to_jsonable(tree: Any) -> Any:
    """Copy of ``tree`` with bytes replaced by ``{"$bytes": ...}`` objects (for JSON columns)."""
    if isinstance(tree, bytes):
        return _encode_default(tree)
    if isinstance(tree, dict):
        return {k: tree_to_jsonable(v) for k, v in tree.items()}
    if isinstance(tree, list):
        return [tree_to_jsonable(v) for v in tree]
    return tree


def tree_from_jsonable(tree: Any) -> Any:
    if isinstance(tree, dict):
        if len(tree) == 1 and "$bytes" in tree:
            return _decode_hook(tree)
        return {k: tree_from_jsonable(v) for k, v in tree.items()}
    if isinstance(tree, list):
        return [tree_from_jsonable(v) for v in tree]
    return tree


__all__: List[str] = [
    "serialize",
    "region_to_tree",
    "connection_to_tree",
    "deserialize",
    "to_json",
    "from_json",
    "tree_to_jsonable",
    "tree_from_jsonable",
]
