"""Persistence contract used by the editing session, plus an in-memory store.

Update and delete on a missing ID return ``None``/``False`` instead of
raising, so the session can tell "not found" apart from a transport
failure (``PersistenceError``).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol

from ..core.model import Connector, Furniture, Layout, Room
from .validators import PersistenceError


class Persistence(Protocol):
    """Storage collaborator for rooms, connectors and furniture."""

    def list_rooms(self, floor: Optional[int] = None) -> List[Room]:
        ...

    def list_connectors(self, floor: Optional[int] = None) -> List[Connector]:
        ...

    def list_furniture(self, room_id: Optional[str] = None) -> List[Furniture]:
        ...

    def create_room(self, room: Room) -> Room:
        ...

    def update_room(self, room_id: str, partial: Dict[str, Any]) -> Optional[Room]:
        ...

    def delete_room(self, room_id: str) -> bool:
        ...

    def create_connector(self, connector: Connector) -> Connector:
        ...

    def update_connector(self, connector_id: str, partial: Dict[str, Any]) -> Optional[Connector]:
        ...

    def delete_connector(self, connector_id: str) -> bool:
        ...

    def create_furniture(self, furniture: Furniture) -> Furniture:
        ...

    def update_furniture(self, furniture_id: str, partial: Dict[str, Any]) -> Optional[Furniture]:
        ...

    def delete_furniture(self, furniture_id: str) -> bool:
        ...


class InMemoryStore:
    """Dictionary-backed store implementing the Persistence contract."""

    def __init__(self, layout: Optional[Layout] = None):
        self.rooms: Dict[str, Room] = dict(layout.rooms) if layout else {}
        self.connectors: Dict[str, Connector] = dict(layout.connectors) if layout else {}
        self.furniture: Dict[str, Furniture] = dict(layout.furniture) if layout else {}

    def to_layout(self) -> Layout:
        return Layout(rooms=dict(self.rooms), connectors=dict(self.connectors), furniture=dict(self.furniture))

    # Rooms

    def list_rooms(self, floor: Optional[int] = None) -> List[Room]:
        return [r for r in self.rooms.values() if floor is None or r.floor == floor]

    def create_room(self, room: Room) -> Room:
        if room.id in self.rooms:
            raise PersistenceError(f"Room '{room.id}' already exists")
        self.rooms[room.id] = room
        return room

    def update_room(self, room_id: str, partial: Dict[str, Any]) -> Optional[Room]:
        if room_id not in self.rooms:
            return None
        self.rooms[room_id] = replace(self.rooms[room_id], **partial)
        return self.rooms[room_id]

    def delete_room(self, room_id: str) -> bool:
        return self.rooms.pop(room_id, None) is not None

    # Connectors

    def list_connectors(self, floor: Optional[int] = None) -> List[Connector]:
        if floor is None:
            return list(self.connectors.values())
        on_floor = {r.id for r in self.rooms.values() if r.floor == floor}
        return [
            c for c in self.connectors.values()
            if c.from_room in on_floor or c.to_room in on_floor
        ]

    def create_connector(self, connector: Connector) -> Connector:
        if connector.id in self.connectors:
            raise PersistenceError(f"Connector '{connector.id}' already exists")
        self.connectors[connector.id] = connector
        return connector

    def update_connector(self, connector_id: str, partial: Dict[str, Any]) -> Optional[Connector]:
        if connector_id not in self.connectors:
            return None
        self.connectors[connector_id] = replace(self.connectors[connector_id], **partial)
        return self.connectors[connector_id]

    def delete_connector(self, connector_id: str) -> bool:
        return self.connectors.pop(connector_id, None) is not None

    # Furniture

    def list_furniture(self, room_id: Optional[str] = None) -> List[Furniture]:
        return [f for f in self.furniture.values() if room_id is None or f.room_id == room_id]

    def create_furniture(self, furniture: Furniture) -> Furniture:
        if furniture.id in self.furniture:
            raise PersistenceError(f"Furniture '{furniture.id}' already exists")
        self.furniture[furniture.id] = furniture
        return furniture

    def update_furniture(self, furniture_id: str, partial: Dict[str, Any]) -> Optional[Furniture]:
        if furniture_id not in self.furniture:
            return None
        self.furniture[furniture_id] = replace(self.furniture[furniture_id], **partial)
        return self.furniture[furniture_id]

    def delete_furniture(self, furniture_id: str) -> bool:
        return self.furniture.pop(furniture_id, None) is not None
