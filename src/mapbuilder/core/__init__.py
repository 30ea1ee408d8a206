"""Core data models for map building."""

from .model import (
    Camera,
    Connector,
    ConnectorState,
    EntityKind,
    Furniture,
    Layout,
    Rect,
    Room,
    Selection,
)
from .topology import build_room_graph, connected_groups, isolated_rooms

__all__ = [
    "Camera",
    "Connector",
    "ConnectorState",
    "EntityKind",
    "Furniture",
    "Layout",
    "Rect",
    "Room",
    "Selection",
    "build_room_graph",
    "connected_groups",
    "isolated_rooms",
]
