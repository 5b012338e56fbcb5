"""Pipeline orchestration for layout generation.

``generate`` runs the phases in order with one private ``random.Random``:

  place -> assign_roles -> connect -> variety_edges -> assign_features -> corridors

and returns a ``GenerationResult``. ``generate_validated`` wraps it in a
regenerate loop that walks seed, seed+1, ... until the validator reports no
blocking violations or the attempt budget is spent.

Phase timing is recorded in ``metrics['phase_ms']`` when metrics are enabled
(``enable_metrics`` argument, else ``LAYOUT_ENABLE_GENERATION_METRICS`` from
the Flask app config or environment).
"""
from __future__ import annotations

import os
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..logging_utils import get_logger
from .config import GenerationConfig
from .connectivity import ConnectivityBuilder
from .corridors import Corridor, CorridorSynthesizer
from .errors import LayoutError, PlacementExhausted
from .features import assign_features
from .metrics import init_metrics
from .model import DungeonMap
from .placement import RegionPlacer
from .roles import RegionRoleAssigner
from .validation import GraphValidator, ValidationViolation, is_playable

log = get_logger("dungeonforge.layout")

DEFAULT_MAX_ATTEMPTS = 5


@dataclass
class GenerationResult:
    layout: DungeonMap
    corridors: List[Corridor]
    seed: int
    metrics: Dict[str, Any] = field(default_factory=dict)
    notices: List[LayoutError] = field(default_factory=list)
    violations: List[ValidationViolation] = field(default_factory=list)
    attempts: int = 1

    @property
    def playable(self) -> bool:
        return is_playable(self.violations)


def setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """Look up a layout setting: Flask app config first, then the environment."""
    from flask import current_app, has_app_context

    if has_app_context() and name in current_app.config:
        value = current_app.config[name]
        return None if value is None else str(value)
    return os.getenv(name, default)


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() not in {"0", "false", "no", "off", ""}


def generate(
    config: Union[GenerationConfig, Dict[str, Any]],
    seed: Optional[int] = None,
    enable_metrics: Optional[bool] = None,
) -> GenerationResult:
    if not isinstance(config, GenerationConfig):
        config = GenerationConfig.from_dict(config)
    config.validate()
    # 0 is a valid deterministic seed; None => random
    if seed is None:
        seed = random.randint(1, 1_000_000)
    if enable_metrics is None:
        enable_metrics = _truthy(setting("LAYOUT_ENABLE_GENERATION_METRICS", "1"))

    map_id = config.map_id or f"dungeon_{seed}"
    run_log = log.bind(map_id=map_id, seed=seed)
    rng = random.Random(seed)
    metrics: Dict[str, Any] = init_metrics() if enable_metrics else {}
    notices: List[LayoutError] = []
    phase_times: Dict[str, int] = {}
    start = time.perf_counter()

    def _phase(label, fn, *a, **k):
        if not enable_metrics:
            return fn(*a, **k)
        ps = time.perf_counter()
        r = fn(*a, **k)
        phase_times[label] = int((time.perf_counter() - ps) * 1000)
        return r

    placer = RegionPlacer(padding=config.region_padding)
    regions = _phase("place", placer.place, config.placement(), rng)
    if len(regions) < config.room_count:
        notice = PlacementExhausted(config.room_count, len(regions), placer.last_attempts)
        notices.append(notice)
        run_log.warn(
            event="placement_exhausted",
            requested=notice.requested,
            placed=notice.placed,
            attempts=notice.attempts,
        )

    regions = _phase("assign_roles", RegionRoleAssigner().assign, regions)

    builder = ConnectivityBuilder()
    connections = _phase("connect", builder.connect, regions)
    tree_size = len(connections)
    if config.extra_connection_chance > 0:
        connections = _phase(
            "variety_edges",
            builder.add_variety_edges,
            regions,
            connections,
            rng,
            config.extra_connection_chance,
            config.teleport_ratio,
        )

    regions, connections = _phase(
        "assign_features",
        assign_features,
        regions,
        connections,
        config.difficulty,
        config.level,
        metrics if enable_metrics else None,
    )

    corridors = _phase("corridors", CorridorSynthesizer().synthesize, connections, regions)

    layout = DungeonMap(
        id=map_id,
        width=config.width,
        height=config.height,
        regions=regions,
        connections=connections,
        level=config.level,
        difficulty=config.difficulty,
        name=config.name,
    )

    runtime_ms = int((time.perf_counter() - start) * 1000)
    if enable_metrics:
        metrics.update(
            regions_requested=config.room_count,
            regions_placed=len(regions),
            placement_attempts=placer.last_attempts,
            placement_exhausted=bool(notices),
            connections=len(connections),
            variety_edges=len(connections) - tree_size,
            corridors=len(corridors),
            runtime_ms=runtime_ms,
            phase_ms=phase_times,
        )
    run_log.debug(
        event="layout_generated",
        regions=len(regions),
        connections=len(connections),
        runtime_ms=runtime_ms,
        phase_ms=phase_times,
    )
    return GenerationResult(layout=layout, corridors=corridors, seed=seed, metrics=metrics, notices=notices)


def generate_validated(
    config: Union[GenerationConfig, Dict[str, Any]],
    seed: Optional[int] = None,
    max_attempts: Optional[int] = None,
    validator: Optional[GraphValidator] = None,
    enable_metrics: Optional[bool] = None,
) -> GenerationResult:
    """Regenerate with consecutive seeds until the map has no blocking violations.

    Returns the first playable result, or the last attempt (with its
    violations attached) once ``max_attempts`` is spent.
    """
    if not isinstance(config, GenerationConfig):
        config = GenerationConfig.from_dict(config)
    if max_attempts is None:
        max_attempts = int(setting("LAYOUT_MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS)))
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if validator is None:
        validator = GraphValidator(spacing_scope=setting("LAYOUT_SPACING_SCOPE", "all"))
    if seed is None:
        seed = random.randint(1, 1_000_000)

    result = None
    for attempt in range(1, max_attempts + 1):
        result = generate(config, seed=seed + attempt - 1, enable_metrics=enable_metrics)
        result.violations = validator.validate(result.layout)
        result.attempts = attempt
        if result.playable:
            break
        log.info(
            event="layout_rejected",
            seed=result.seed,
            attempt=attempt,
            blocking={v.code for v in result.violations if v.blocking},
        )
    else:
        log.warn(event="layout_attempts_exhausted", seed=seed, attempts=max_attempts)
    return result


__all__ = ["GenerationResult", "generate", "generate_validated", "setting", "DEFAULT_MAX_ATTEMPTS"]
