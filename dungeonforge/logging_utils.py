"""Structured event logging for layout generation and the HTTP layer.

Emits key=value pairs (or one JSON object per line) with a timestamp and
level. Generation runs log under a logger bound to the map id and seed, so
every event from one run can be grepped together.

Usage:
    from dungeonforge.logging_utils import get_logger
    log = get_logger("dungeonforge.layout")
    run = log.bind(map_id="dungeon_42", seed=42)
    run.info(event="layout_generated", regions=5, phase_ms={"place": 1})

Environment:
    DUNGEONFORGE_LOG_LEVEL  debug | info | warn | error   (default info)
    DUNGEONFORGE_LOG_JSON   1/true/yes/on for JSON lines

Formatting in key=value mode: floats are rounded to 3 places, lists, tuples
and sets are joined with commas, dicts become ``k:v`` pairs, other values
are str()'d with spaces replaced by underscores. Reserved keys: level, ts.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("DUNGEONFORGE_LOG_LEVEL", "info").lower(), 20)
JSON_MODE = os.getenv("DUNGEONFORGE_LOG_JSON", "0").lower() in ("1", "true", "yes", "on")


def _text(v) -> str:
    if isinstance(v, bool):
        return str(v).lower()
    if isinstance(v, float):
        return str(round(v, 3))
    if isinstance(v, int):
        return str(v)
    if isinstance(v, dict):
        return ",".join(f"{k}:{_text(x)}" for k, x in v.items())
    if isinstance(v, (list, tuple, set, frozenset)):
        items = sorted(v) if isinstance(v, (set, frozenset)) else v
        return ",".join(_text(x) for x in items)
    return str(v).replace(" ", "_")


def _format(level: str, **fields):
    if JSON_MODE:
        rec = {k: (sorted(v) if isinstance(v, (set, frozenset)) else v) for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        parts.append(f"{k}={_text(v)}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None, context: dict | None = None):
        self.name = name or "dungeonforge"
        self.context = dict(context or {})

    def bind(self, **context) -> "_Logger":
        """Child logger that adds ``context`` to every event it emits."""
        merged = dict(self.context)
        merged.update(context)
        return _Logger(self.name, merged)

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        rec = {"logger": self.name}
        rec.update(self.context)
        rec.update(fields)
        print(_format(lvl, **rec), file=sys.stdout if lvl != "error" else sys.stderr)

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE = {}


def get_logger(name: str):
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("dungeonforge")
