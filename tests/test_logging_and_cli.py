import json
import logging

import run
from dungeonforge import logging_utils
from dungeonforge.logging_utils import get_logger
from dungeonforge.server import _configure_logging


def test_configure_logging_creates_file(test_app, tmp_path, monkeypatch):
    monkeypatch.setattr(test_app, "instance_path", str(tmp_path))
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    try:
        # twice to exercise the handler-replace path
        _configure_logging(test_app)
        path = _configure_logging(test_app)
        assert len(root.handlers) == 2
        logging.getLogger("dungeonforge.test").info("hello")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
    assert (tmp_path / "app.log").exists()
    assert "hello" in open(path, encoding="utf-8").read()


def test_key_value_output(capsys):
    get_logger("t").info(event="layout_generated", map_id="dungeon 1", regions=5)
    out = capsys.readouterr().out.strip()
    assert "level=info" in out
    assert "event=layout_generated" in out
    assert "map_id=dungeon_1" in out
    assert "regions=5" in out
    assert "logger=t" in out


def test_json_mode(capsys, monkeypatch):
    monkeypatch.setattr(logging_utils, "JSON_MODE", True)
    get_logger("t").warn(event="placement_exhausted", placed=2)
    rec = json.loads(capsys.readouterr().out.strip())
    assert rec["event"] == "placement_exhausted" and rec["level"] == "warn" and rec["placed"] == 2


def test_level_threshold(capsys, monkeypatch):
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", logging_utils.LEVELS["warn"])
    get_logger("t").info(event="quiet")
    get_logger("t").error(event="loud")
    captured = capsys.readouterr()
    assert "quiet" not in captured.out
    assert "event=loud" in captured.err


def test_cli_generate_validate_analyze(tmp_path, capsys):
    out = tmp_path / "layout.json"
    code = run.main(["generate", "--seed", "42", "--out", str(out), "--attempts", "10"])
    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["type"] == "dungeon"
    assert run.main(["validate", str(out), "--spacing-scope", "adjacent"]) in (0, 1)
    assert run.main(["analyze", str(out)]) == 0
    assert "overall" in capsys.readouterr().out


def test_cli_generate_rejects_bad_config(capsys):
    assert run.main(["generate", "--width", "100"]) == 2
    assert "ERROR" in capsys.readouterr().err


def test_cli_validate_missing_file(tmp_path):
    assert run.main(["validate", str(tmp_path / "missing.json")]) == 2


def test_bound_logger_carries_context(capsys):
    run_log = get_logger("t").bind(map_id="dungeon_7", seed=7)
    run_log.info(event="layout_rejected", blocking={"overlap", "missing_boss"}, phase_ms={"place": 2})
    out = capsys.readouterr().out
    assert "map_id=dungeon_7" in out and "seed=7" in out
    assert "blocking=missing_boss,overlap" in out
    assert "phase_ms=place:2" in out


def test_cli_generate_rejects_zero_attempts(capsys):
    assert run.main(["generate", "--seed", "1", "--attempts", "0"]) == 2
    assert "max_attempts" in capsys.readouterr().err


def test_cli_generate_rejects_bad_env_attempts(monkeypatch, capsys):
    monkeypatch.setenv("LAYOUT_MAX_ATTEMPTS", "lots")
    assert run.main(["generate", "--seed", "1"]) == 2


def test_cli_validate_rejects_bad_spacing_scope(tmp_path, monkeypatch):
    out = tmp_path / "layout.json"
    run.main(["generate", "--seed", "3", "--out", str(out)])
    monkeypatch.setenv("LAYOUT_SPACING_SCOPE", "nearby")
    assert run.main(["validate", str(out)]) == 2


def test_cli_validate_malformed_points(tmp_path):
    out = tmp_path / "layout.json"
    run.main(["generate", "--seed", "3", "--out", str(out)])
    data = json.loads(out.read_text(encoding="utf-8"))
    spawn = next(r for r in data["regions"] if r["type"] == "spawn")
    spawn["properties"]["spawn_points"] = [{"x": 1, "y": 2}]
    out.write_text(json.dumps(data), encoding="utf-8")
    assert run.main(["validate", str(out)]) == 2
    assert run.main(["analyze", str(out)]) == 2
