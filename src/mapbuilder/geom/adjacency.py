"""Exact edge adjacency between rooms and connector synthesis.

Two rooms are adjacent when an edge of one lies exactly on the opposite
edge of the other and their extents on the perpendicular axis overlap by a
positive length. Room geometry is grid or proximity snapped before it gets
here, so exact equality is expected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from shapely.geometry import LineString, Point

from .. import config
from ..core.model import Connector, ConnectorState, Room

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adjacency:
    """A shared boundary segment between two rooms.

    Attributes:
        room_id: The room that was scanned.
        other_id: The neighboring room.
        side: Side of ``room_id`` that is shared ("north", "south", "east", "west").
        segment: Shared boundary as ``(x1, y1, x2, y2)``.
    """

    room_id: str
    other_id: str
    side: str
    segment: tuple[float, float, float, float]

    @property
    def midpoint(self) -> tuple[float, float]:
        x1, y1, x2, y2 = self.segment
        return ((x1 + x2) / 2, (y1 + y2) / 2)

    @property
    def rotation(self) -> int:
        """90 for east/west (vertical) edges, 0 for north/south edges."""
        return 90 if self.side in ("east", "west") else 0

    @property
    def line(self) -> LineString:
        x1, y1, x2, y2 = self.segment
        return LineString([(x1, y1), (x2, y2)])


def shared_edge(room: Room, other: Room) -> Optional[Adjacency]:
    """Return the shared edge of two rooms, or None if they are not adjacent."""
    lo_y, hi_y = max(room.start_y, other.start_y), min(room.end_y, other.end_y)
    if hi_y > lo_y:
        if room.end_x == other.start_x:
            return Adjacency(room.id, other.id, "east", (room.end_x, lo_y, room.end_x, hi_y))
        if room.start_x == other.end_x:
            return Adjacency(room.id, other.id, "west", (room.start_x, lo_y, room.start_x, hi_y))

    lo_x, hi_x = max(room.start_x, other.start_x), min(room.end_x, other.end_x)
    if hi_x > lo_x:
        if room.end_y == other.start_y:
            return Adjacency(room.id, other.id, "south", (lo_x, room.end_y, hi_x, room.end_y))
        if room.start_y == other.end_y:
            return Adjacency(room.id, other.id, "north", (lo_x, room.start_y, hi_x, room.start_y))

    return None


class AdjacencyDetector:
    """Finds rooms touching a given room and proposes connectors for them."""

    def __init__(
        self,
        connector_width: float = config.CONNECTOR_WIDTH,
        connector_height: float = config.CONNECTOR_HEIGHT,
        dedup_tolerance: float = config.CONNECTOR_DEDUP_TOLERANCE,
    ):
        self.connector_width = connector_width
        self.connector_height = connector_height
        self.dedup_tolerance = dedup_tolerance

    def find_adjacencies(self, room: Room, others: Iterable[Room]) -> List[Adjacency]:
        """Return the shared edges between ``room`` and rooms on its floor."""
        found = []
        for other in others:
            if other.id == room.id or other.floor != room.floor:
                continue
            adjacency = shared_edge(room, other)
            if adjacency is not None:
                found.append(adjacency)
        return sorted(found, key=lambda a: a.other_id)

    def is_covered(self, adjacency: Adjacency, connectors: Iterable[Connector]) -> bool:
        """Check whether a connector for this room pair already sits on the edge."""
        line = adjacency.line
        for connector in connectors:
            if not connector.connects(adjacency.room_id, adjacency.other_id):
                continue
            if line.distance(Point(connector.x, connector.y)) <= self.dedup_tolerance:
                return True
        return False

    def propose_connectors(
        self,
        room: Room,
        others: Iterable[Room],
        connectors: Iterable[Connector],
        new_id: Callable[[], str],
    ) -> List[Connector]:
        """Build connectors for every uncovered adjacency of ``room``.

        Args:
            room: The room whose move or resize was just committed.
            others: Candidate neighbors (other floors are ignored).
            connectors: Existing connectors, used for deduplication.
            new_id: Factory for connector IDs.

        Returns:
            New, not yet persisted, connectors in closed state.
        """
        existing = list(connectors)
        proposed: List[Connector] = []

        for adjacency in self.find_adjacencies(room, others):
            if self.is_covered(adjacency, existing + proposed):
                LOGGER.debug("Adjacency %s-%s already has a connector", room.id, adjacency.other_id)
                continue
            x, y = adjacency.midpoint
            proposed.append(
                Connector(
                    id=new_id(),
                    from_room=room.id,
                    to_room=adjacency.other_id,
                    x=x,
                    y=y,
                    width=self.connector_width,
                    height=self.connector_height,
                    rotation=adjacency.rotation,
                    state=ConnectorState.CLOSED,
                    is_automatic=True,
                )
            )

        return proposed
