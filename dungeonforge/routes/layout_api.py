"""
project: Dungeon Forge
module: layout_api.py

Layout generation, validation, scoring and gameplay query routes.

Generated maps are persisted as ``LayoutRecord`` rows and kept in a small
in-process cache keyed by map id, so the read-only GET endpoints avoid
re-decoding the stored tree on every request.
"""

import hashlib
import random
import threading

from flask import Blueprint, current_app, jsonify, request

from dungeonforge import db
from dungeonforge.layout import (
    ConfigurationError,
    CorridorSynthesizer,
    GenerationConfig,
    GraphIntegrityError,
    GraphValidator,
    QualityAnalyzer,
    RegionGraph,
    SerializationError,
    generate_validated,
    shortest_path,
)
from dungeonforge.layout.quality import critical_path
from dungeonforge.layout.serialization import region_to_tree, serialize, tree_to_jsonable
from dungeonforge.logging_utils import get_logger
from dungeonforge.models.layout_record import LayoutRecord

log = get_logger("dungeonforge.routes.layout_api")

bp_layout = Blueprint("layout_api", __name__)

SQLITE_MAX_INT = 9223372036854775807
MAX_ATTEMPTS_CAP = 50
# leave room for seed, seed+1, ... in the regenerate loop
_SEED_SPACE = SQLITE_MAX_INT - MAX_ATTEMPTS_CAP


def _coerce_seed(payload_seed):
    """Convert provided seed (int or str) into a bounded 64-bit signed int."""
    if payload_seed is None or isinstance(payload_seed, bool):
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, int):
        return payload_seed % _SEED_SPACE
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if s.isdigit():
            return int(s) % _SEED_SPACE
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % _SEED_SPACE
    raise ConfigurationError(f"seed must be an int or string, got {type(payload_seed).__name__}")


# Small in-process cache map_id -> DungeonMap. Lock-protected for threaded servers.
_layout_cache = {}
_layout_cache_lock = threading.Lock()


def _cache_put(layout):
    cap = int(current_app.config.get("LAYOUT_CACHE_SIZE", 8))
    with _layout_cache_lock:
        _layout_cache.pop(layout.id, None)
        _layout_cache[layout.id] = layout
        while len(_layout_cache) > max(cap, 1):
            oldest = next(iter(_layout_cache))
            _layout_cache.pop(oldest, None)


def get_cached_layout(map_id: str):
    """Return the map for ``map_id`` from cache or the database, or None."""
    with _layout_cache_lock:
        layout = _layout_cache.get(map_id)
        if layout is not None:
            # refresh recency
            _layout_cache[map_id] = _layout_cache.pop(map_id)
            return layout
    record = LayoutRecord.query.filter_by(map_id=map_id).first()
    if record is None:
        return None
    layout = record.to_layout()
    _cache_put(layout)
    return layout


def clear_layout_cache():
    with _layout_cache_lock:
        _layout_cache.clear()


def _validator():
    return GraphValidator(spacing_scope=current_app.config.get("LAYOUT_SPACING_SCOPE", "all"))


def _not_found(what: str):
    return jsonify({"error": f"{what} not found"}), 404


@bp_layout.errorhandler(ConfigurationError)
@bp_layout.errorhandler(SerializationError)
def _bad_request(exc):
    return jsonify({"error": str(exc)}), 400


@bp_layout.errorhandler(GraphIntegrityError)
def _broken_graph(exc):
    return jsonify({"error": str(exc), "code": "graph_integrity"}), 422


@bp_layout.route("/api/layouts", methods=["POST"])
def create_layout():
    """Generate, validate, score and persist a layout.

    Body JSON: generation config (snake_case or camelCase keys) plus optional
    ``seed`` (int or str) and ``max_attempts``.

    Response 201: { map, seed, attempts, violations, quality, metrics }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("request body must be a JSON object")
    seed = _coerce_seed(data.get("seed"))
    try:
        max_attempts = int(data.get("max_attempts", current_app.config.get("LAYOUT_MAX_ATTEMPTS", 5)))
    except (TypeError, ValueError):
        raise ConfigurationError("max_attempts must be an integer")
    if not 1 <= max_attempts <= MAX_ATTEMPTS_CAP:
        raise ConfigurationError(f"max_attempts must be within [1, {MAX_ATTEMPTS_CAP}]")

    config = GenerationConfig.from_dict(data).validate()
    result = generate_validated(config, seed=seed, max_attempts=max_attempts, validator=_validator())
    report = QualityAnalyzer().analyze(result.layout)

    record = LayoutRecord.query.filter_by(map_id=result.layout.id).first()
    fresh = LayoutRecord.from_result(result, config=config, report=report)
    if record is None:
        db.session.add(fresh)
    else:
        record.seed = fresh.seed
        record.config = fresh.config
        record.payload = fresh.payload
        record.overall_score = fresh.overall_score
        record.violation_count = fresh.violation_count
    db.session.commit()
    _cache_put(result.layout)

    log.info(
        event="layout_created",
        map_id=result.layout.id,
        seed=result.seed,
        attempts=result.attempts,
        violations=len(result.violations),
        overall=round(report.overall, 2),
    )
    return (
        jsonify(
            {
                "map": tree_to_jsonable(serialize(result.layout)),
                "seed": result.seed,
                "attempts": result.attempts,
                "violations": [v.to_dict() for v in result.violations],
                "quality": report.to_dict(),
                "metrics": result.metrics,
                "notices": [str(n) for n in result.notices],
            }
        ),
        201,
    )


@bp_layout.route("/api/layouts/<map_id>")
def get_layout(map_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    return jsonify(tree_to_jsonable(serialize(layout)))


@bp_layout.route("/api/layouts/<map_id>/validation")
def validate_layout(map_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    violations = _validator().validate(layout)
    return jsonify(
        {
            "map_id": layout.id,
            "playable": not any(v.blocking for v in violations),
            "violations": [v.to_dict() for v in violations],
        }
    )


@bp_layout.route("/api/layouts/<map_id>/quality")
def layout_quality(map_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    return jsonify(QualityAnalyzer().analyze(layout).to_dict())


@bp_layout.route("/api/layouts/<map_id>/corridors")
def layout_corridors(map_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    corridors = CorridorSynthesizer().synthesize(layout.connections, layout.regions)
    return jsonify({"map_id": layout.id, "corridors": [c.to_dict() for c in corridors]})


@bp_layout.route("/api/layouts/<map_id>/path")
def layout_path(map_id):
    """Shortest region path. Query: from, to (default spawn -> first boss)."""
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    start = request.args.get("from")
    end = request.args.get("to")
    graph = RegionGraph.from_map(layout)
    if start is None and end is None:
        path = critical_path(layout, graph)
    else:
        if start is None:
            spawn = layout.spawn_region()
            start = spawn.id if spawn else None
        if end is None:
            bosses = layout.boss_regions()
            end = bosses[0].id if bosses else None
        path = shortest_path(graph, start, end) if start and end else None
    if path is None:
        return _not_found("path")
    return jsonify({"map_id": layout.id, "path": path, "hops": len(path) - 1})


@bp_layout.route("/api/layouts/<map_id>/region_at")
def region_at(map_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    try:
        x = float(request.args["x"])
        y = float(request.args["y"])
    except (KeyError, ValueError):
        return jsonify({"error": "x and y query parameters must be numbers"}), 400
    region = layout.region_containing(x, y)
    if region is None:
        return _not_found("region")
    return jsonify(tree_to_jsonable(region_to_tree(region)))


@bp_layout.route("/api/layouts/<map_id>/regions/<region_id>/neighbors")
def region_neighbors(map_id, region_id):
    layout = get_cached_layout(map_id)
    if layout is None:
        return _not_found("layout")
    if layout.get_region(region_id) is None:
        return _not_found("region")
    neighbors = layout.connected_regions(region_id)
    return jsonify(
        {
            "region_id": region_id,
            "neighbors": [tree_to_jsonable(region_to_tree(r)) for r in neighbors],
        }
    )
