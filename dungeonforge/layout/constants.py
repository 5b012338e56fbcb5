# Structural bounds shared by the generator, validator and quality analyzer.
MIN_MAP_SIZE = 800
MAX_MAP_SIZE = 2000

MIN_REGION_SIZE = 100
MAX_REGION_SIZE = 500

MIN_ROOM_COUNT = 3
MAX_ROOM_COUNT = 10

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10

MIN_LEVEL = 1
MAX_LEVEL = 100

MIN_REGION_SPACING = 50
MAX_REGION_SPACING = 200

MIN_DENSITY = 0.1
MAX_DENSITY = 0.9

MIN_CONNECTIVITY = 0.1
MAX_CONNECTIVITY = 1.0

MIN_COMPLEXITY = 1.0
MAX_COMPLEXITY = 10.0

# Placement retries per requested region before giving up.
PLACEMENT_ATTEMPTS_PER_REGION = 3

CORRIDOR_WIDTH = 20

__all__ = [
    "MIN_MAP_SIZE",
    "MAX_MAP_SIZE",
    "MIN_REGION_SIZE",
    "MAX_REGION_SIZE",
    "MIN_ROOM_COUNT",
    "MAX_ROOM_COUNT",
    "MIN_DIFFICULTY",
    "MAX_DIFFICULTY",
    "MIN_LEVEL",
    "MAX_LEVEL",
    "MIN_REGION_SPACING",
    "MAX_REGION_SPACING",
    "MIN_DENSITY",
    "MAX_DENSITY",
    "MIN_CONNECTIVITY",
    "MAX_CONNECTIVITY",
    "MIN_COMPLEXITY",
    "MAX_COMPLEXITY",
    "PLACEMENT_ATTEMPTS_PER_REGION",
    "CORRIDOR_WIDTH",
]
