"""Core data models for the map builder.

This module defines the entities edited by the layout engine: rooms,
connectors (doors) between rooms, furniture placed inside rooms, and the
camera looking at the world plane.

World coordinates grow to the right (x) and downwards (y), so a room's
``start_y`` edge is its north side.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from shapely.geometry import Polygon, box


class EntityKind(str, Enum):
    """Kinds of editable entities."""

    ROOM = "room"
    CONNECTOR = "connector"
    FURNITURE = "furniture"


class ConnectorState(str, Enum):
    """Door state of a connector."""

    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle.

    Attributes:
        start_x: Left (west) edge.
        end_x: Right (east) edge.
        start_y: Top (north) edge.
        end_y: Bottom (south) edge.
    """

    start_x: float
    end_x: float
    start_y: float
    end_y: float

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> Rect:
        return cls(cx - width / 2, cx + width / 2, cy - height / 2, cy + height / 2)

    @property
    def width(self) -> float:
        return self.end_x - self.start_x

    @property
    def height(self) -> float:
        return self.end_y - self.start_y

    @property
    def center(self) -> tuple[float, float]:
        return ((self.start_x + self.end_x) / 2, (self.start_y + self.end_y) / 2)

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.start_x + dx, self.end_x + dx, self.start_y + dy, self.end_y + dy)

    def contains_point(self, x: float, y: float) -> bool:
        return self.start_x <= x <= self.end_x and self.start_y <= y <= self.end_y

    @property
    def polygon(self) -> Polygon:
        """The rectangle as a Shapely polygon."""
        return box(self.start_x, self.start_y, self.end_x, self.end_y)


@dataclass(frozen=True)
class Room:
    """Represents a rectangular room on one floor.

    Attributes:
        id: Unique identifier for the room.
        floor: Floor index the room belongs to.
        start_x: West edge in world units.
        end_x: East edge in world units.
        start_y: North edge in world units.
        end_y: South edge in world units.
        type: Free-form type tag (e.g. "corridor", "bridge").
        locked: Locked rooms cannot be moved or resized.
        name: Human-readable name of the room.
        description: Optional longer description.
    """

    id: str
    floor: int
    start_x: float
    end_x: float
    start_y: float
    end_y: float
    type: str = "room"
    locked: bool = False
    name: str = ""
    description: str = ""

    @property
    def rect(self) -> Rect:
        return Rect(self.start_x, self.end_x, self.start_y, self.end_y)

    @property
    def width(self) -> float:
        return self.end_x - self.start_x

    @property
    def height(self) -> float:
        return self.end_y - self.start_y

    @property
    def center(self) -> tuple[float, float]:
        return self.rect.center

    @property
    def polygon(self) -> Polygon:
        return self.rect.polygon

    @property
    def half_extents(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)

    def with_rect(self, rect: Rect) -> Room:
        """Return a copy of the room occupying ``rect``."""
        return replace(
            self,
            start_x=rect.start_x,
            end_x=rect.end_x,
            start_y=rect.start_y,
            end_y=rect.end_y,
        )


@dataclass(frozen=True)
class Connector:
    """Represents a door-like connector between two rooms.

    Attributes:
        id: Unique identifier for the connector.
        from_room: ID of the first room.
        to_room: ID of the second room.
        x: Center x in world units.
        y: Center y in world units.
        width: Footprint width before rotation.
        height: Footprint height before rotation.
        rotation: Rotation in degrees, one of 0/90/180/270.
        state: Open, closed or locked.
        is_automatic: True when synthesized by adjacency detection.
        open_direction: "inward" or "outward".
        style: Visual style tag.
        power_required: Power needed to operate the door.
    """

    id: str
    from_room: str
    to_room: str
    x: float
    y: float
    width: float = 32
    height: float = 8
    rotation: int = 0
    state: ConnectorState = ConnectorState.CLOSED
    is_automatic: bool = False
    open_direction: str = "inward"
    style: str = "standard"
    power_required: float = 0

    def connects(self, room_a: str, room_b: str) -> bool:
        """Check whether the connector links the two rooms in either direction."""
        return {self.from_room, self.to_room} == {room_a, room_b}

    @property
    def rect(self) -> Rect:
        """World-space footprint, taking 90/270 degree rotation into account."""
        if self.rotation in (90, 270):
            return Rect.from_center(self.x, self.y, self.height, self.width)
        return Rect.from_center(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Furniture:
    """Represents a furniture item placed inside a room.

    Position is relative to the owning room's center, so the item travels
    with the room when the room is translated.

    Attributes:
        id: Unique identifier for the furniture item.
        room_id: ID of the owning room.
        x: Offset of the item's center from the room center.
        y: Offset of the item's center from the room center.
        width: Item width.
        height: Item height.
        rotation: Rotation in degrees, one of 0/90/180/270.
        z_order: Drawing order among siblings.
        furniture_type: Kind of item ("console", "bed", ...).
        name: Human-readable name.
    """

    id: str
    room_id: str
    x: float = 0
    y: float = 0
    width: float = 32
    height: float = 32
    rotation: int = 0
    z_order: int = 0
    furniture_type: str = "generic"
    name: str = ""

    @property
    def rect(self) -> Rect:
        """Room-relative bounding box, taking 90/270 degree rotation into account."""
        if self.rotation in (90, 270):
            return Rect.from_center(self.x, self.y, self.height, self.width)
        return Rect.from_center(self.x, self.y, self.width, self.height)


@dataclass
class Camera:
    """World-space focal point and zoom factor of the viewport.

    The camera is the only mutable model object; it is owned by the
    editing session and is not stored through the persistence
    collaborator.
    """

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True)
class Selection:
    """Currently selected entity."""

    kind: EntityKind
    id: str


@dataclass(frozen=True)
class Layout:
    """Represents a complete map layout.

    Attributes:
        rooms: Mapping of room ID to Room objects.
        connectors: Mapping of connector ID to Connector objects.
        furniture: Mapping of furniture ID to Furniture objects.
        camera: Optional saved camera position.
    """

    rooms: Mapping[str, Room]
    connectors: Mapping[str, Connector]
    furniture: Mapping[str, Furniture]
    camera: Optional[Camera] = field(default=None)

    def rooms_on_floor(self, floor: int) -> list[Room]:
        return [room for room in self.rooms.values() if room.floor == floor]

    @property
    def floors(self) -> list[int]:
        return sorted({room.floor for room in self.rooms.values()})
