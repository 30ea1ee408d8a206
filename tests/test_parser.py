import json

import pytest

from mapbuilder.core.model import Camera, ConnectorState
from mapbuilder.io.parser import layout_from_dict, layout_to_dict, load_layout, save_layout

SAMPLE = {
    "rooms": [
        {"id": "hall", "floor": 0, "start_x": 0, "end_x": 128, "start_y": 0, "end_y": 128, "name": "Hall"},
        {"id": "kitchen", "floor": 0, "start_x": 128, "end_x": 256, "start_y": 0, "end_y": 128, "locked": True},
    ],
    "connectors": [
        {"id": "d1", "from_room": "hall", "to_room": "kitchen", "x": 128, "y": 64, "rotation": 90, "state": "open"}
    ],
    "furniture": [{"id": "f1", "room_id": "hall", "x": 8, "y": -8, "furniture_type": "table"}],
    "camera": {"x": 10, "y": 20, "zoom": 2.0},
}


def test_layout_from_dict():
    layout = layout_from_dict(SAMPLE)

    assert layout.rooms["hall"].name == "Hall"
    assert layout.rooms["hall"].type == "room"
    assert layout.rooms["kitchen"].locked
    assert layout.connectors["d1"].state is ConnectorState.OPEN
    assert layout.connectors["d1"].width == 32
    assert layout.furniture["f1"].furniture_type == "table"
    assert layout.camera == Camera(10, 20, 2.0)


def test_empty_layout():
    layout = layout_from_dict({})
    assert (layout.rooms, layout.connectors, layout.furniture, layout.camera) == ({}, {}, {}, None)


def test_layout_to_dict_uses_plain_values():
    data = layout_to_dict(layout_from_dict(SAMPLE))

    assert data["connectors"][0]["state"] == "open"
    assert [r["id"] for r in data["rooms"]] == ["hall", "kitchen"]
    assert data["camera"] == {"x": 10, "y": 20, "zoom": 2.0}
    json.dumps(data)


def test_save_and_load(tmp_path):
    path = tmp_path / "layout.json"
    layout = layout_from_dict(SAMPLE)

    save_layout(layout, path)
    loaded = load_layout(path)

    assert loaded == layout


@pytest.mark.parametrize(
    "data",
    [
        {"rooms": [{"id": "r", "floor": 0, "start_x": 0, "end_x": 1, "start_y": 0, "end_y": 1, "colour": "red"}]},
        {"rooms": [{"id": "r", "floor": 0}]},
        {"rooms": ["not an object"]},
        {"connectors": [{"id": "d", "from_room": "a", "to_room": "b", "x": 0, "y": 0, "state": "ajar"}]},
        {"furniture": [{"id": "f", "room_id": "r"}, {"id": "f", "room_id": "r"}]},
    ],
)
def test_malformed_entries_raise(data):
    with pytest.raises(ValueError):
        layout_from_dict(data)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_layout(tmp_path / "missing.json")


def test_load_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_layout(path)

    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_layout(path)
