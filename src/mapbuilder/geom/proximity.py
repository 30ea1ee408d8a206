"""Edge-to-edge alignment snapping between a dragged room and its neighbors.

For every neighbor whose projection overlaps the moving room on the
perpendicular axis, the two facing edge distances are candidates:

* x axis: moving east edge -> neighbor west edge, moving west edge ->
  neighbor east edge;
* y axis: moving south edge -> neighbor north edge, moving north edge ->
  neighbor south edge.

Each axis independently takes the closest candidate within the threshold,
so a room can align horizontally with one neighbor and vertically with
another. Axes without a candidate fall back to grid snapping of the delta.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .. import config
from ..core.model import Rect, Room
from .grid import snap

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisSnap:
    """Chosen alignment on one axis.

    Attributes:
        neighbor_id: Room aligned against.
        offset: Translation added to the raw delta.
        distance: Absolute edge distance before snapping.
    """

    neighbor_id: str
    offset: float
    distance: float


@dataclass(frozen=True)
class SnapResult:
    """Snapped drag delta plus the alignment that produced each axis."""

    dx: float
    dy: float
    x_snap: Optional[AxisSnap]
    y_snap: Optional[AxisSnap]


def _projections_overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> bool:
    return a_start < b_end and a_end > b_start


def _best(current: Optional[AxisSnap], candidate: AxisSnap) -> AxisSnap:
    if current is None:
        return candidate
    # Distance first, neighbor ID breaks ties so iteration order never matters
    if (candidate.distance, candidate.neighbor_id) < (current.distance, current.neighbor_id):
        return candidate
    return current


class ProximitySnapper:
    """Aligns a moving room flush against nearby rooms on the same floor."""

    def __init__(
        self,
        threshold: float = config.PROXIMITY_SNAP_THRESHOLD,
        grid: float = config.ROOM_GRID,
    ):
        self.threshold = threshold
        self.grid = grid

    def candidates(self, moving: Rect, neighbors: Iterable[Room]) -> Tuple[Optional[AxisSnap], Optional[AxisSnap]]:
        """Return the best x and y alignments for ``moving``, if any."""
        best_x: Optional[AxisSnap] = None
        best_y: Optional[AxisSnap] = None

        for other in neighbors:
            if _projections_overlap(moving.start_y, moving.end_y, other.start_y, other.end_y):
                for offset in (other.start_x - moving.end_x, other.end_x - moving.start_x):
                    if abs(offset) <= self.threshold:
                        best_x = _best(best_x, AxisSnap(other.id, offset, abs(offset)))

            if _projections_overlap(moving.start_x, moving.end_x, other.start_x, other.end_x):
                for offset in (other.start_y - moving.end_y, other.end_y - moving.start_y):
                    if abs(offset) <= self.threshold:
                        best_y = _best(best_y, AxisSnap(other.id, offset, abs(offset)))

        return best_x, best_y

    def snap_move(self, original: Rect, raw_dx: float, raw_dy: float, neighbors: Iterable[Room]) -> SnapResult:
        """Snap a raw drag delta for a room that started at ``original``.

        Args:
            original: The room's rectangle at drag start.
            raw_dx: Unsnapped pointer delta on x.
            raw_dy: Unsnapped pointer delta on y.
            neighbors: Other rooms on the same floor (the moving room excluded).

        Returns:
            The delta to apply to ``original`` and the alignments used.
        """
        moving = original.translated(raw_dx, raw_dy)
        x_snap, y_snap = self.candidates(moving, list(neighbors))

        dx = raw_dx + x_snap.offset if x_snap else snap(raw_dx, self.grid)
        dy = raw_dy + y_snap.offset if y_snap else snap(raw_dy, self.grid)

        if x_snap or y_snap:
            LOGGER.debug(
                "Proximity snap: x=%s y=%s",
                x_snap.neighbor_id if x_snap else None,
                y_snap.neighbor_id if y_snap else None,
            )

        return SnapResult(dx, dy, x_snap, y_snap)
