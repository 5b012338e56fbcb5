from typing import Dict


def init_metrics() -> Dict[str, int | float | bool]:
    return {
        'regions_requested': 0,
        'regions_placed': 0,
        'placement_attempts': 0,
        'placement_exhausted': False,
        'connections': 0,
        'variety_edges': 0,
        'corridors': 0,
        'runtime_ms': 0.0,
    }
