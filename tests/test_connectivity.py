import random

import pytest

from dungeonforge.layout import (
    ConnectionKind,
    ConnectivityBuilder,
    DungeonMap,
    GraphIntegrityError,
    GraphValidator,
    Region,
    RegionGraph,
    RegionPlacer,
    RegionRole,
    RegionRoleAssigner,
    PlacementConfig,
    reachable,
)
from layout_test_utils import codes, region


def _placed(seed, n=8):
    cfg = PlacementConfig(width=1200, height=1200, target_count=n, min_size=100, max_size=200)
    return RegionRoleAssigner().assign(RegionPlacer().place(cfg, random.Random(seed)))


@pytest.mark.parametrize("seed", range(10))
def test_spanning_tree_reaches_every_region(seed):
    regions = _placed(seed)
    conns = ConnectivityBuilder().connect(regions)
    assert len(conns) == len(regions) - 1
    assert [c.id for c in conns] == [f"conn_{k}" for k in range(len(conns))]
    layout = DungeonMap(id="t", width=1200, height=1200, regions=regions, connections=conns)
    spawn = layout.spawn_region()
    assert reachable(RegionGraph.from_map(layout), spawn.id) == set(layout.region_ids())
    found = codes(GraphValidator().validate(layout))
    assert "isolated_region" not in found
    assert "unreachable_region" not in found


def test_nearest_neighbours_are_joined():
    regions = [
        region("a", 0, 0, 100, 100),
        region("b", 300, 0, 100, 100),
        region("c", 600, 0, 100, 100),
    ]
    conns = ConnectivityBuilder().connect(regions)
    assert {c.pair for c in conns} == {frozenset(("a", "b")), frozenset(("b", "c"))}


def test_boss_edges_and_difficulty_weight():
    regions = [
        region("a", 0, 0, 100, 100, role=RegionRole.SPAWN, difficulty=2),
        region("b", 300, 0, 100, 100, role=RegionRole.BOSS, difficulty=6),
    ]
    (conn,) = ConnectivityBuilder().connect(regions)
    assert conn.kind is ConnectionKind.BOSS
    assert conn.difficulty == 4.0


def test_duplicate_region_ids_raise():
    regions = [region("a", 0, 0), region("a", 400, 0)]
    with pytest.raises(GraphIntegrityError):
        ConnectivityBuilder().connect(regions)


def test_empty_and_single():
    assert ConnectivityBuilder().connect([]) == []
    assert ConnectivityBuilder().connect([region("a", 0, 0)]) == []


def test_variety_edges_fill_non_adjacent_pairs_without_duplicates():
    regions = _placed(7, n=6)
    builder = ConnectivityBuilder()
    tree = builder.connect(regions)
    out = builder.add_variety_edges(regions, tree, random.Random(1), chance=1.0, teleport_ratio=1.0)
    n = len(regions)
    assert len(out) == n * (n - 1) // 2
    pairs = [c.pair for c in out]
    assert len(set(pairs)) == len(pairs)
    assert all(c.source_id != c.target_id for c in out)
    assert len({c.id for c in out}) == len(out)
    extra = out[len(tree):]
    assert extra and all(c.kind is ConnectionKind.TELEPORT for c in extra)


def test_variety_edges_disabled_by_zero_chance():
    regions = _placed(2, n=5)
    builder = ConnectivityBuilder()
    tree = builder.connect(regions)
    assert builder.add_variety_edges(regions, tree, random.Random(0), chance=0.0) == tree


def test_variety_edges_reject_dangling_connection():
    regions = [region("a", 0, 0), region("b", 400, 0), region("c", 0, 400)]
    tree = ConnectivityBuilder().connect(regions)
    with pytest.raises(GraphIntegrityError):
        ConnectivityBuilder().add_variety_edges(regions[:2], tree, random.Random(0), chance=1.0)


def test_region_helpers():
    a = Region(id="a", x=0, y=0, width=100, height=100)
    b = Region(id="b", x=150, y=50, width=100, height=100)
    assert a.spacing(b) == 50
    assert not a.overlaps(b)
    assert a.contains_point(100, 100)
    assert not a.contains_point(101, 50)
