import json

import pytest
from typer.testing import CliRunner

from mapbuilder.cli import app
from mapbuilder.io.parser import load_layout

runner = CliRunner()


def _room(room_id, start_x, end_x, floor=0):
    return {"id": room_id, "floor": floor, "start_x": start_x, "end_x": end_x, "start_y": 0, "end_y": 128}


@pytest.fixture
def layout_file(tmp_path):
    path = tmp_path / "layout.json"
    path.write_text(json.dumps({"rooms": [_room("a", 0, 128), _room("b", 140, 268)]}), encoding="utf-8")
    return path


def test_check_consistent_layout(layout_file):
    result = runner.invoke(app, ["check", "--layout", str(layout_file)])
    assert result.exit_code == 0, result.output
    assert "consistent" in result.output


def test_check_reports_overlaps(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"rooms": [_room("a", 0, 128), _room("b", 64, 192)]}), encoding="utf-8")

    result = runner.invoke(app, ["check", "--layout", str(path)])

    assert result.exit_code == 1
    assert "violation" in result.output


def test_check_missing_file(tmp_path):
    result = runner.invoke(app, ["check", "--layout", str(tmp_path / "nope.json")])
    assert result.exit_code == 1


def test_apply_operations(layout_file, tmp_path):
    operations = tmp_path / "ops.json"
    operations.write_text(json.dumps([{"op": "move_room", "room": "a", "dx": 8, "dy": 0}]), encoding="utf-8")
    output = tmp_path / "out" / "result.json"

    result = runner.invoke(
        app, ["apply", "--layout", str(layout_file), "--operations", str(operations), "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    layout = load_layout(output)
    assert layout.rooms["a"].end_x == 140
    assert len(layout.connectors) == 1


def test_apply_with_failing_operation(layout_file, tmp_path):
    operations = tmp_path / "ops.json"
    operations.write_text(json.dumps([{"op": "move_room", "room": "zzz", "dx": 8}]), encoding="utf-8")

    result = runner.invoke(app, ["apply", "--layout", str(layout_file), "--operations", str(operations)])

    assert result.exit_code == 1
    assert load_layout(layout_file).rooms["a"].end_x == 128


def test_connect_adjacent_rooms(tmp_path):
    path = tmp_path / "flush.json"
    path.write_text(json.dumps({"rooms": [_room("a", 0, 128), _room("b", 128, 256)]}), encoding="utf-8")

    result = runner.invoke(app, ["connect", "--layout", str(path)])

    assert result.exit_code == 0, result.output
    connectors = list(load_layout(path).connectors.values())
    assert len(connectors) == 1
    assert (connectors[0].x, connectors[0].y, connectors[0].rotation) == (128, 64, 90)


def test_info(layout_file):
    result = runner.invoke(app, ["info", "--layout", str(layout_file), "--verbose"])
    assert result.exit_code == 0, result.output
    assert "Rooms" in result.output
