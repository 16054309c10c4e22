"""
Tests for the NeuroViz command line interface (scripts/neuroviz_cli.py).
"""

import json
import os
import sys

REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
SAMPLES = os.path.join(REPO_ROOT, "scripts", "samples")


def _ensure_scripts_on_path():
    scripts_dir = os.path.join(REPO_ROOT, "scripts")
    if scripts_dir not in sys.path:
        sys.path.insert(0, scripts_dir)


def _cli():
    _ensure_scripts_on_path()
    import neuroviz_cli

    return neuroviz_cli


def test_version(capsys):
    from neuroviz_core import __version__

    assert _cli().main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_list_samples(capsys):
    assert _cli().main(["--list-samples"]) == 0
    samples = json.loads(capsys.readouterr().out)
    names = {os.path.basename(p) for p in samples}
    assert {"espresso.yaml", "malformed.json"} <= names


def test_missing_trace_argument():
    assert _cli().main([]) == 2


def test_unreadable_trace(tmp_path):
    assert _cli().main([str(tmp_path / "missing.yaml")]) == 2


def test_invalid_json_trace(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{oops", encoding="utf-8")

    assert _cli().main([str(path)]) == 2


def test_layout_output(capsys):
    assert _cli().main([os.path.join(SAMPLES, "espresso.yaml"), "--seed", "3"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert payload["seed"] == 3
    assert len(payload["positions"]) == 9
    assert payload["renderable_edges"] == 9
    spread = payload["metrics"]["lane_spread"]
    assert spread["lanes"] == 4
    assert spread["within_variance"] < spread["across_variance"]
    assert "elements" not in payload


def test_layout_to_file_with_elements(tmp_path):
    out = tmp_path / "layout.json"
    code = _cli().main([os.path.join(SAMPLES, "espresso.yaml"), "--elements", "--out", str(out)])

    assert code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert len(payload["elements"]["nodes"]) == 9
    assert len(payload["elements"]["stage_labels"]) == 4


def test_config_overrides():
    cli = _cli()
    args = cli.parse_args(["x.yaml", "--iterations", "10", "--stage-width", "12", "--clamp", "3"])
    cfg = cli.build_config(args)

    assert cfg.iterations == 10
    assert cfg.stage_width == 12.0
    assert cfg.coordinate_limit == 3.0
    assert cfg.charge_strength == -10.0


def test_clamp_override(capsys):
    assert _cli().main([os.path.join(SAMPLES, "espresso.yaml"), "--clamp", "1"]) == 0
    bounds = json.loads(capsys.readouterr().out)["metrics"]["bounds"]

    assert bounds["min_x"] >= -1.0 and bounds["max_x"] <= 1.0
    assert bounds["min_y"] >= -1.0 and bounds["max_y"] <= 1.0


def test_dry_run(capsys):
    assert _cli().main([os.path.join(SAMPLES, "malformed.json"), "--dry-run"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert payload == {"stages": 2, "nodes": 3, "edges": 2}


def test_validate_repaired_trace(capsys):
    assert _cli().main([os.path.join(SAMPLES, "malformed.json"), "--validate"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert payload["summary"]["errors"] == 0
    assert payload["summary"]["warnings"] > 0
    assert "input_repairs" in payload["results"]


def test_stats(capsys):
    assert _cli().main([os.path.join(SAMPLES, "espresso.yaml"), "--stats", "--dry-run"]) == 0
    stats = json.loads(capsys.readouterr().out)

    assert stats["basic_stats"]["nodes"] == 9
    assert stats["connectivity"]["weakly_connected_components"] == 1


def test_export_graphml(tmp_path, capsys):
    out = tmp_path / "espresso.graphml"
    code = _cli().main([os.path.join(SAMPLES, "espresso.yaml"), "--export-graphml", str(out), "--dry-run"])

    assert code == 0
    assert out.exists()
    assert "graphml" in out.read_text(encoding="utf-8")


def test_oversized_number_in_trace(tmp_path, capsys):
    path = tmp_path / "huge.json"
    path.write_text('{"nodes": [{"id": "a", "importance": %s}, {"id": "b"}]}' % ("9" * 400), encoding="utf-8")

    assert _cli().main([str(path)]) == 0
    assert len(json.loads(capsys.readouterr().out)["positions"]) == 2
