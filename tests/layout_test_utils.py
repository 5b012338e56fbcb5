"""Hand-built layouts shared by the layout tests."""

from dungeonforge.layout import Connection, ConnectionKind, DungeonMap, Region, RegionRole


def region(rid, x, y, w=200, h=200, role=None, **kw):
    r = Region(id=rid, x=x, y=y, width=w, height=h, name=rid, **kw)
    return r.with_role(role) if role is not None else r


def three_region_map(**overrides):
    """800x800 map: R1 (spawn) - R2 (combat) - R3 (boss), 100 units apart pairwise."""
    regions = overrides.pop(
        "regions",
        [
            region("R1", 100, 100, role=RegionRole.SPAWN),
            region("R2", 400, 100, role=RegionRole.COMBAT),
            region("R3", 250, 400, role=RegionRole.BOSS),
        ],
    )
    connections = overrides.pop(
        "connections",
        [
            Connection(id="c1", source_id="R1", target_id="R2"),
            Connection(id="c2", source_id="R2", target_id="R3", kind=ConnectionKind.BOSS),
        ],
    )
    params = dict(id="three", width=800, height=800, level=1, difficulty=1, name="Three")
    params.update(overrides)
    return DungeonMap(regions=regions, connections=connections, **params)


def chain_map(length, boss_index, total=16):
    """Regions laid out in a 4-wide grid, chained 0-1-2-...; spawn at 0, boss at ``boss_index``."""
    regions = []
    for i in range(total):
        role = RegionRole.SPAWN if i == 0 else RegionRole.BOSS if i == boss_index else RegionRole.COMBAT
        regions.append(region(f"r{i}", (i % 4) * 250, (i // 4) * 250, 100, 100, role=role))
    connections = [
        Connection(id=f"c{i}", source_id=f"r{i}", target_id=f"r{i + 1}") for i in range(min(length, total) - 1)
    ]
    return DungeonMap(id=f"chain_{boss_index}", width=1000, height=1000, regions=regions, connections=connections)


def codes(violations):
    return [v.code for v in violations]
