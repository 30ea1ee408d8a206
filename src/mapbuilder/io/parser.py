"""Parser for map layout JSON files.

A layout file looks like::

    {
      "rooms": [{"id": "hall", "floor": 0, "start_x": 0, "end_x": 128, "start_y": 0, "end_y": 128}],
      "connectors": [{"id": "d1", "from_room": "hall", "to_room": "kitchen", "x": 128, "y": 64}],
      "furniture": [{"id": "f1", "room_id": "hall", "x": 0, "y": 0}],
      "camera": {"x": 0, "y": 0, "zoom": 1.0}
    }

Fields missing from an entry take the model defaults.
"""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict

from ..core.model import Camera, Connector, ConnectorState, Furniture, Layout, Room


def _build(cls, entry: Dict[str, Any], section: str):
    if not isinstance(entry, dict):
        raise ValueError(f"Invalid {section} entry: expected an object, got {type(entry).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = set(entry) - known
    if unknown:
        raise ValueError(f"Invalid {section} entry {entry.get('id')}: unknown fields {sorted(unknown)}")
    try:
        return cls(**entry)
    except TypeError as e:
        raise ValueError(f"Invalid {section} entry {entry.get('id')}: {e}") from e


def layout_from_dict(data: Dict[str, Any]) -> Layout:
    """Build a Layout from already decoded JSON data.

    Raises:
        ValueError: If an entry is malformed or an ID is repeated.
    """
    rooms: Dict[str, Room] = {}
    for entry in data.get("rooms", []):
        room = _build(Room, entry, "room")
        if room.id in rooms:
            raise ValueError(f"Duplicate room id: {room.id}")
        rooms[room.id] = room

    connectors: Dict[str, Connector] = {}
    for entry in data.get("connectors", []):
        entry = dict(entry) if isinstance(entry, dict) else entry
        if isinstance(entry, dict) and "state" in entry:
            try:
                entry["state"] = ConnectorState(entry["state"])
            except ValueError as e:
                raise ValueError(f"Invalid connector entry {entry.get('id')}: {e}") from e
        connector = _build(Connector, entry, "connector")
        if connector.id in connectors:
            raise ValueError(f"Duplicate connector id: {connector.id}")
        connectors[connector.id] = connector

    furniture: Dict[str, Furniture] = {}
    for entry in data.get("furniture", []):
        item = _build(Furniture, entry, "furniture")
        if item.id in furniture:
            raise ValueError(f"Duplicate furniture id: {item.id}")
        furniture[item.id] = item

    camera = _build(Camera, data["camera"], "camera") if data.get("camera") else None
    return Layout(rooms=rooms, connectors=connectors, furniture=furniture, camera=camera)


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    """Convert a Layout to JSON-ready data, entries sorted by ID."""
    connectors = []
    for connector in sorted(layout.connectors.values(), key=lambda c: c.id):
        entry = asdict(connector)
        entry["state"] = connector.state.value
        connectors.append(entry)

    data: Dict[str, Any] = {
        "rooms": [asdict(r) for r in sorted(layout.rooms.values(), key=lambda r: r.id)],
        "connectors": connectors,
        "furniture": [asdict(f) for f in sorted(layout.furniture.values(), key=lambda f: f.id)],
    }
    if layout.camera is not None:
        data["camera"] = asdict(layout.camera)
    return data


def load_layout(path: str | Path) -> Layout:
    """Load a map layout from a JSON file.

    Args:
        path: Path to the JSON file containing layout data.

    Returns:
        Layout object.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON data is invalid or malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Invalid layout file {path}: top level must be an object")
    return layout_from_dict(data)


def save_layout(layout: Layout, path: str | Path) -> None:
    """Write a layout to a JSON file."""
    file_path = Path(path)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(layout_to_dict(layout), f, indent=2)
        f.write("\n")
