import pytest

from dungeonforge.layout import Connection, ConnectionKind, CorridorSynthesizer, GraphIntegrityError
from layout_test_utils import region, three_region_map


def test_straight_corridor_when_projections_overlap():
    layout = three_region_map()
    corridors = CorridorSynthesizer().synthesize(layout.connections, layout.regions)
    by_id = {c.connection_id: c for c in corridors}
    # R1 [100,300]x[100,300] -> R2 [400,600]x[100,300]: shared y band, midpoint 200
    assert by_id["c1"].points == ((300, 200.0), (400, 200.0))
    assert by_id["c1"].length == 100
    # R2 -> R3 share x band [400,450]; R3 is below
    assert by_id["c2"].points == ((425.0, 300), (425.0, 400))
    assert all(c.width == 20 for c in corridors)


def test_l_shaped_corridor():
    a = region("a", 0, 0, 100, 100)
    b = region("b", 300, 300, 100, 100)
    (corridor,) = CorridorSynthesizer().synthesize([Connection(id="x", source_id="a", target_id="b")], [a, b])
    assert corridor.points == ((100, 50.0), (350.0, 50.0), (350.0, 300))
    assert corridor.length == 500


def test_teleport_connections_have_no_geometry():
    layout = three_region_map()
    conns = list(layout.connections) + [
        Connection(id="t", source_id="R1", target_id="R3", kind=ConnectionKind.TELEPORT)
    ]
    corridors = CorridorSynthesizer().synthesize(conns, layout.regions)
    assert [c.connection_id for c in corridors] == ["c1", "c2"]


def test_missing_endpoint_and_self_loop_raise():
    layout = three_region_map()
    with pytest.raises(GraphIntegrityError):
        CorridorSynthesizer().synthesize([Connection(id="bad", source_id="R1", target_id="nope")], layout.regions)
    with pytest.raises(GraphIntegrityError):
        CorridorSynthesizer().synthesize([Connection(id="loop", source_id="R1", target_id="R1")], layout.regions)


def test_to_dict_shape():
    layout = three_region_map()
    (first, _) = CorridorSynthesizer().synthesize(layout.connections, layout.regions)
    d = first.to_dict()
    assert d["connection_id"] == "c1"
    assert d["kind"] == "normal"
    assert d["points"][0] == [300, 200.0]
