"""Error taxonomy for layout generation.

Only malformed input aborts a call. Structural imperfections found in a
finished map are reported as ``ValidationViolation`` data by the validator
(see ``validation.py``), never raised.
"""
from __future__ import annotations


class LayoutError(Exception):
    """Base class for every error raised by the layout package."""


class ConfigurationError(LayoutError, ValueError):
    """Generation config is out of bounds or self-contradictory."""


class GraphIntegrityError(LayoutError):
    """A connection references a missing region or links a region to itself."""


class SerializationError(LayoutError, ValueError):
    """A serialized map tree is malformed."""


class PlacementExhausted(LayoutError):
    """Retry budget ran out before the requested region count was placed.

    Not raised by the pipeline: an instance is recorded in
    ``GenerationResult.notices`` and generation continues with fewer regions.
    """

    def __init__(self, requested: int, placed: int, attempts: int):
        self.requested = requested
        self.placed = placed
        self.attempts = attempts
        super().__init__(f"placed {placed}/{requested} regions after {attempts} attempts")


__all__ = [
    "LayoutError",
    "ConfigurationError",
    "GraphIntegrityError",
    "SerializationError",
    "PlacementExhausted",
]
