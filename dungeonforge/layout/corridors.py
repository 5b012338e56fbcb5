"""Corridor geometry for connections.

Corridors are presentation data only: the connection graph is the source of
truth and nothing here feeds back into validation or scoring.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .constants import CORRIDOR_WIDTH
from .errors import GraphIntegrityError
from .model import Connection, ConnectionKind, Point, Region


@dataclass(frozen=True)
class Corridor:
    connection_id: str
    kind: ConnectionKind
    points: Tuple[Point, ...]
    width: int = CORRIDOR_WIDTH

    @property
    def length(self) -> float:
        return sum(math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in zip(self.points, self.points[1:]))

    def to_dict(self) -> Dict[str, object]:
        return {
            "connection_id": self.connection_id,
            "kind": self.kind.value,
            "points": [list(p) for p in self.points],
            "width": self.width,
            "length": round(self.length, 3),
        }


class CorridorSynthesizer:
    def __init__(self, width: int = CORRIDOR_WIDTH):
        self.width = width

    def synthesize(self, connections: Sequence[Connection], regions: Sequence[Region]) -> List[Corridor]:
        by_id: Dict[str, Region] = {}
        for r in regions:
            by_id.setdefault(r.id, r)
        out: List[Corridor] = []
        for c in connections:
            src = by_id.get(c.source_id)
            dst = by_id.get(c.target_id)
            if src is None or dst is None:
                missing = [e for e in (c.source_id, c.target_id) if e not in by_id]
                raise GraphIntegrityError(f"connection {c.id} references missing region(s) {missing}")
            if c.source_id == c.target_id:
                raise GraphIntegrityError(f"connection {c.id} connects a region to itself")
            if c.kind is ConnectionKind.TELEPORT:
                continue
            out.append(Corridor(connection_id=c.id, kind=c.kind, points=route(src, dst), width=self.width))
        return out


def route(src: Region, dst: Region) -> Tuple[Point, ...]:
    """Boundary-to-boundary polyline between two regions."""
    ax1, ay1, ax2, ay2 = src.bounds
    bx1, by1, bx2, by2 = dst.bounds
    (scx, scy), (dcx, dcy) = src.center, dst.center

    lo_x, hi_x = max(ax1, bx1), min(ax2, bx2)
    if lo_x <= hi_x:
        x = (lo_x + hi_x) / 2
        if scy <= dcy:
            return ((x, ay2), (x, by1))
        return ((x, ay1), (x, by2))

    lo_y, hi_y = max(ay1, by1), min(ay2, by2)
    if lo_y <= hi_y:
        y = (lo_y + hi_y) / 2
        if scx <= dcx:
            return ((ax2, y), (bx1, y))
        return ((ax1, y), (bx2, y))

    # L-shape: leave src horizontally, enter dst vertically
    start = (ax2 if dcx > scx else ax1, scy)
    end = (dcx, by1 if dcy > scy else by2)
    corner = (end[0], start[1])
    return (start, corner, end)


__all__ = ["Corridor", "CorridorSynthesizer", "route"]
