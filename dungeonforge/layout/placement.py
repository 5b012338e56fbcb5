import random
from typing import List, Optional, Union

from .config import GenerationConfig, PlacementConfig
from .constants import PLACEMENT_ATTEMPTS_PER_REGION
from .errors import ConfigurationError
from .model import Region


class RegionPlacer:
    """Rejection-sample non-overlapping rectangles inside the map bounds.

    Randomness comes only from the injected generator; the placer keeps no
    state between calls.
    """

    def __init__(self, padding: int = 0):
        if padding < 0:
            raise ConfigurationError("padding must be non-negative")
        self.padding = padding
        self.last_attempts = 0

    def place(self, config: Union[PlacementConfig, GenerationConfig], rng: Optional[random.Random] = None) -> List[Region]:
        """Return accepted regions in acceptance order.

        The retry budget is ``target_count * 3`` attempts; when it runs out the
        result is shorter than requested.
        """
        if isinstance(config, GenerationConfig):
            config = config.placement()
        _check(config)
        if rng is None:
            rng = random.Random()
        attempts = config.target_count * PLACEMENT_ATTEMPTS_PER_REGION
        used = 0
        regions: List[Region] = []
        while len(regions) < config.target_count and used < attempts:
            used += 1
            candidate = self.sample(config, rng, len(regions))
            if self.accepts(candidate, regions, config):
                regions.append(candidate)
        self.last_attempts = used
        return regions

    def sample(self, config: PlacementConfig, rng: random.Random, index: int) -> Region:
        w = rng.randint(config.min_size, config.max_size)
        h = rng.randint(config.min_size, config.max_size)
        x = rng.randint(0, config.width - w)
        y = rng.randint(0, config.height - h)
        return Region(id=f"region_{index}", x=x, y=y, width=w, height=h, name=f"Region {index}")

    def accepts(self, candidate: Region, accepted: List[Region], config: PlacementConfig) -> bool:
        if candidate.x < 0 or candidate.y < 0:
            return False
        if candidate.x + candidate.width > config.width or candidate.y + candidate.height > config.height:
            return False
        for dim in (candidate.width, candidate.height):
            if not config.min_size <= dim <= config.max_size:
                return False
        return not _touches_any(candidate, accepted, self.padding)


def _check(config: PlacementConfig) -> None:
    if config.target_count < 0:
        raise ConfigurationError("target_count must be non-negative")
    if config.min_size <= 0 or config.max_size <= 0:
        raise ConfigurationError("region sizes must be positive")
    if config.min_size > config.max_size:
        raise ConfigurationError(f"min_size {config.min_size} greater than max_size {config.max_size}")
    if config.max_size > config.width or config.max_size > config.height:
        raise ConfigurationError(f"max_size {config.max_size} does not fit a {config.width}x{config.height} map")


def _touches_any(room: Region, existing: List[Region], pad: int) -> bool:
    # touching edges count as intersecting
    for r in existing:
        if (
            room.x - pad <= r.x + r.width
            and room.x + room.width + pad >= r.x
            and room.y - pad <= r.y + r.height
            and room.y + room.height + pad >= r.y
        ):
            return True
    return False


__all__ = ["RegionPlacer"]
