from dungeonforge import db
from dungeonforge.models import LayoutRecord
from dungeonforge.routes.layout_api import _coerce_seed, clear_layout_cache


def _create(client, **body):
    payload = {"width": 800, "height": 800, "room_count": 5, "seed": 42}
    payload.update(body)
    return client.post("/api/layouts", json=payload)


def test_create_layout(client, test_app):
    r = _create(client)
    assert r.status_code == 201
    data = r.get_json()
    assert set(data) >= {"map", "seed", "violations", "quality", "metrics"}
    assert data["seed"] >= 42
    assert data["map"]["id"] == f"dungeon_{data['seed']}"
    assert data["quality"]["map_id"] == data["map"]["id"]
    assert not [v for v in data["violations"] if v["blocking"]]
    with test_app.app_context():
        rec = LayoutRecord.query.filter_by(map_id=data["map"]["id"]).first()
        assert rec is not None
        assert rec.violation_count == len(data["violations"])
        assert rec.to_layout().id == data["map"]["id"]


def test_invalid_config_is_400(client):
    r = _create(client, width=100)
    assert r.status_code == 400
    assert "width" in r.get_json()["error"]


def test_bad_max_attempts_is_400(client):
    assert _create(client, max_attempts=0).status_code == 400
    assert _create(client, max_attempts="lots").status_code == 400


def test_string_seeds_are_deterministic(client):
    a = _create(client, seed="crypt of ages", map_id="a").get_json()
    b = _create(client, seed="crypt of ages", map_id="b").get_json()
    assert a["seed"] == b["seed"]
    assert a["map"]["regions"] == b["map"]["regions"]


def test_get_layout_and_unknown(client):
    created = _create(client, map_id="m1").get_json()
    r = client.get("/api/layouts/m1")
    assert r.status_code == 200
    assert r.get_json() == created["map"]
    assert client.get("/api/layouts/nope").status_code == 404


def test_layout_loads_from_database_after_cache_clear(client):
    _create(client, map_id="persisted")
    clear_layout_cache()
    r = client.get("/api/layouts/persisted")
    assert r.status_code == 200
    assert r.get_json()["id"] == "persisted"


def test_validation_quality_and_corridors(client):
    _create(client, map_id="m2")
    v = client.get("/api/layouts/m2/validation").get_json()
    assert v["map_id"] == "m2" and v["playable"] is True
    q = client.get("/api/layouts/m2/quality").get_json()
    assert 0 <= q["overall"] <= 100
    assert "summary" in q
    c = client.get("/api/layouts/m2/corridors").get_json()
    assert c["map_id"] == "m2"
    assert all(cor["width"] == 20 for cor in c["corridors"])


def test_path_queries(client):
    data = _create(client, map_id="m3").get_json()
    regions = data["map"]["regions"]
    spawn = next(r["id"] for r in regions if r["type"] == "spawn")
    boss = next(r["id"] for r in regions if r["type"] == "boss")
    r = client.get("/api/layouts/m3/path")
    assert r.status_code == 200
    path = r.get_json()["path"]
    assert path[0] == spawn and path[-1] == boss
    r = client.get(f"/api/layouts/m3/path?from={boss}&to={spawn}")
    assert r.get_json()["path"] == list(reversed(path))
    assert client.get(f"/api/layouts/m3/path?from={spawn}&to=ghost").status_code == 404


def test_region_at_and_neighbors(client):
    data = _create(client, map_id="m4").get_json()
    first = data["map"]["regions"][0]
    x = first["position"]["x"] + first["size"]["width"] / 2
    y = first["position"]["y"] + first["size"]["height"] / 2
    r = client.get(f"/api/layouts/m4/region_at?x={x}&y={y}")
    assert r.status_code == 200
    assert r.get_json()["id"] == first["id"]
    assert client.get("/api/layouts/m4/region_at?x=abc&y=1").status_code == 400

    n = client.get(f"/api/layouts/m4/regions/{first['id']}/neighbors").get_json()
    expected = set()
    for c in data["map"]["connections"]:
        if c["sourceRegionId"] == first["id"]:
            expected.add(c["targetRegionId"])
        elif c["targetRegionId"] == first["id"]:
            expected.add(c["sourceRegionId"])
    assert {r["id"] for r in n["neighbors"]} == expected
    assert client.get("/api/layouts/m4/regions/ghost/neighbors").status_code == 404


def test_regenerating_same_map_id_updates_record(client, test_app):
    _create(client, map_id="same", seed=1)
    _create(client, map_id="same", seed=2)
    with test_app.app_context():
        assert db.session.query(LayoutRecord).filter_by(map_id="same").count() == 1


def test_coerce_seed():
    assert _coerce_seed(42) == 42
    assert _coerce_seed("42") == 42
    assert _coerce_seed("abc") == _coerce_seed("abc")
    assert isinstance(_coerce_seed(None), int)


def test_non_string_map_id_is_400(client):
    r = _create(client, mapId=123)
    assert r.status_code == 400
    assert "map_id" in r.get_json()["error"]
    assert _create(client, map_id="   ").status_code == 400
    assert _create(client, name=["x"]).status_code == 400


def test_corridors_for_dangling_connection_is_422(client, test_app):
    _create(client, map_id="broken")
    with test_app.app_context():
        rec = LayoutRecord.query.filter_by(map_id="broken").first()
        payload = dict(rec.payload)
        conns = [dict(c) for c in payload["connections"]]
        conns[0]["targetRegionId"] = "ghost"
        payload["connections"] = conns
        rec.payload = payload
        db.session.commit()
    clear_layout_cache()
    r = client.get("/api/layouts/broken/corridors")
    assert r.status_code == 422
    assert "ghost" in r.get_json()["error"]
    v = client.get("/api/layouts/broken/validation").get_json()
    assert v["playable"] is False
    assert "missing_endpoint" in [x["code"] for x in v["violations"]]
