"""Shared validate-and-repair path for proposed geometry.

Every geometry change (drag frames, drag commits, scripted operations and
property-editor patches) goes through a ``Placer`` so the same snapping,
clamping and collision rules apply regardless of where the change came
from. The placer never raises for geometry problems: it corrects them and
attaches ``GeometryWarning`` records to the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Generic, List, Optional, Sequence, TypeVar

from ..config import EngineConfig
from ..core.model import Connector, Furniture, Rect, Room
from ..geom.collision import (
    ResizeHandle,
    clamp_resize,
    find_nearest_valid_position,
    handle_raw_rect,
    is_within_bounds,
    overlapping,
    overlaps,
)
from ..geom.grid import snap
from ..geom.proximity import ProximitySnapper
from .validators import GeometryWarning

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Placement(Generic[T]):
    """A validated entity plus the corrections applied to reach it."""

    entity: T
    warnings: List[GeometryWarning] = field(default_factory=list)

    @property
    def corrected(self) -> bool:
        return bool(self.warnings)


class Placer:
    """Computes validated geometry for rooms, connectors and furniture."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.snapper = ProximitySnapper(
            threshold=self.config.proximity_snap_threshold,
            grid=self.config.room_grid,
        )

    # Rooms

    def _repair_room_position(
        self, room: Room, neighbors: Sequence[Room], fallback: Optional[Room]
    ) -> Placement[Room]:
        blockers = overlapping(room, neighbors)
        if not blockers:
            return Placement(room)

        result = find_nearest_valid_position(
            room.center,
            room.width,
            room.height,
            [n.rect for n in neighbors],
            step=self.config.room_grid,
            max_rings=self.config.max_search_rings,
        )
        if result.valid:
            moved = room.with_rect(Rect.from_center(result.x, result.y, room.width, room.height))
            message = (
                f"Room '{room.id}' repositioned due to collision with "
                + ", ".join(sorted(b.id for b in blockers))
            )
            LOGGER.warning(message)
            return Placement(moved, [GeometryWarning("collision", room.id, message)])

        if fallback is not None:
            message = f"Room '{room.id}' has no free position nearby; kept at its previous position"
            LOGGER.warning(message)
            return Placement(fallback, [GeometryWarning("unresolved", room.id, message)])

        message = f"Room '{room.id}' has no free position nearby and may still overlap"
        LOGGER.warning(message)
        return Placement(room, [GeometryWarning("unresolved", room.id, message)])

    def place_room_move(
        self, original: Room, raw_dx: float, raw_dy: float, neighbors: Sequence[Room]
    ) -> Placement[Room]:
        """Translate ``original`` by a raw pointer delta.

        The delta is proximity snapped against ``neighbors`` (grid snapped on
        axes without a nearby edge), then any remaining overlap is repaired
        by the nearest-valid-position search.
        """
        snapped = self.snapper.snap_move(original.rect, raw_dx, raw_dy, neighbors)
        candidate = original.with_rect(original.rect.translated(snapped.dx, snapped.dy))
        return self._repair_room_position(candidate, neighbors, fallback=original)

    def place_room(
        self, room: Room, neighbors: Sequence[Room], fallback: Optional[Room] = None
    ) -> Placement[Room]:
        """Grid-align a room, enforce the minimum size and avoid overlaps.

        Used for new rooms and for property patches that set geometry
        directly. ``fallback`` is restored when no free position exists.
        """
        grid = self.config.room_grid
        min_size = self.config.min_room_size
        warnings: List[GeometryWarning] = []

        width = max(snap(room.width, grid), min_size)
        height = max(snap(room.height, grid), min_size)
        if room.width < min_size or room.height < min_size:
            message = f"Room '{room.id}' enlarged to the minimum size {min_size}"
            LOGGER.warning(message)
            warnings.append(GeometryWarning("min_size", room.id, message))

        start_x = snap(room.start_x, grid)
        start_y = snap(room.start_y, grid)
        candidate = room.with_rect(Rect(start_x, start_x + width, start_y, start_y + height))

        placement = self._repair_room_position(candidate, neighbors, fallback=fallback)
        placement.warnings[:0] = warnings
        return placement

    def place_room_resize(
        self,
        original: Room,
        handle: ResizeHandle,
        raw_dx: float,
        raw_dy: float,
        neighbors: Sequence[Room],
    ) -> Placement[Room]:
        """Resize ``original`` by dragging ``handle`` by a raw pointer delta.

        Only the edges implied by the handle move. Spans are clamped to the
        minimum room size and moving edges are pulled back flush against any
        neighbor they would overlap. If no such correction works the room
        keeps its original geometry.
        """
        handle = ResizeHandle(handle)
        grid = self.config.room_grid
        min_size = self.config.min_room_size
        warnings: List[GeometryWarning] = []

        raw = handle_raw_rect(handle, original.rect, snap(raw_dx, grid), snap(raw_dy, grid))
        rect = clamp_resize(handle, original.rect, raw, min_size)
        if rect != raw:
            message = f"Room '{original.id}' clamped to the minimum size {min_size}"
            LOGGER.warning(message)
            warnings.append(GeometryWarning("min_size", original.id, message))

        blockers = overlapping(rect, neighbors)
        if blockers:
            rect = self._pull_back_edges(original.rect, handle, rect, neighbors)
            if rect is None:
                message = f"Room '{original.id}' resize blocked by a neighbor; kept its previous size"
                LOGGER.warning(message)
                warnings.append(GeometryWarning("unresolved", original.id, message))
                return Placement(original, warnings)
            message = (
                f"Room '{original.id}' resize stopped at "
                + ", ".join(sorted(b.id for b in blockers))
            )
            LOGGER.warning(message)
            warnings.append(GeometryWarning("collision", original.id, message))

        return Placement(original.with_rect(rect), warnings)

    def _pull_back_edges(
        self, original: Rect, handle: ResizeHandle, rect: Rect, neighbors: Sequence[Room]
    ) -> Optional[Rect]:
        """Move the handle's edges back to the facing edges of overlapped neighbors."""
        min_size = self.config.min_room_size
        for _ in range(len(neighbors) + 1):
            blockers = overlapping(rect, neighbors)
            if not blockers:
                return rect
            blocker = min(blockers, key=lambda b: b.id)

            options = []
            if handle.moves_east and blocker.start_x >= original.end_x:
                options.append(Rect(rect.start_x, blocker.start_x, rect.start_y, rect.end_y))
            if handle.moves_west and blocker.end_x <= original.start_x:
                options.append(Rect(blocker.end_x, rect.end_x, rect.start_y, rect.end_y))
            if handle.moves_south and blocker.start_y >= original.end_y:
                options.append(Rect(rect.start_x, rect.end_x, rect.start_y, blocker.start_y))
            if handle.moves_north and blocker.end_y <= original.start_y:
                options.append(Rect(rect.start_x, rect.end_x, blocker.end_y, rect.end_y))

            options = [
                o for o in options
                if o.width >= min_size and o.height >= min_size and not overlaps(o, blocker)
            ]
            if not options:
                return None
            rect = max(options, key=lambda o: (o.width * o.height, -o.start_x, -o.start_y))
        return None if overlapping(rect, neighbors) else rect

    # Connectors

    def place_connector_move(self, original: Connector, raw_dx: float, raw_dy: float) -> Placement[Connector]:
        grid = self.config.connector_grid
        return Placement(replace(original, x=original.x + snap(raw_dx, grid), y=original.y + snap(raw_dy, grid)))

    # Furniture

    def place_furniture(
        self,
        item: Furniture,
        room: Room,
        siblings: Sequence[Furniture],
        fallback: Optional[Furniture] = None,
    ) -> Placement[Furniture]:
        """Keep a furniture item inside its room and clear of its siblings.

        Args:
            item: Proposed item, position relative to the room center.
            room: Owning room.
            siblings: Other items in the same room (``item`` excluded).
            fallback: Geometry to restore when no valid position exists.
        """
        others = [s for s in siblings if s.id != item.id]
        inside = is_within_bounds(item.rect, room.half_extents)
        blockers = overlapping(item.rect, [s.rect for s in others])
        if inside and not blockers:
            return Placement(item)

        half_w, half_h = room.half_extents
        result = find_nearest_valid_position(
            (item.x, item.y),
            item.rect.width,
            item.rect.height,
            [s.rect for s in others],
            bounds=Rect(-half_w, half_w, -half_h, half_h),
            step=self.config.furniture_grid,
            max_rings=self.config.max_search_rings,
        )
        kind = "out_of_bounds" if not inside else "collision"

        if result.valid:
            message = f"Furniture '{item.id}' repositioned inside room '{room.id}'"
            LOGGER.warning(message)
            return Placement(replace(item, x=result.x, y=result.y), [GeometryWarning(kind, item.id, message)])

        if fallback is not None:
            message = f"Furniture '{item.id}' has no free position in room '{room.id}'; kept at its previous position"
            LOGGER.warning(message)
            return Placement(fallback, [GeometryWarning("unresolved", item.id, message)])

        message = f"Furniture '{item.id}' has no free position in room '{room.id}'"
        LOGGER.warning(message)
        return Placement(item, [GeometryWarning("unresolved", item.id, message)])

    def place_furniture_move(
        self,
        original: Furniture,
        raw_dx: float,
        raw_dy: float,
        room: Room,
        siblings: Sequence[Furniture],
    ) -> Placement[Furniture]:
        grid = self.config.furniture_grid
        candidate = replace(original, x=original.x + snap(raw_dx, grid), y=original.y + snap(raw_dy, grid))
        return self.place_furniture(candidate, room, siblings, fallback=original)

    def refit_furniture(self, room: Room, items: Sequence[Furniture]) -> List[Placement[Furniture]]:
        """Re-place items of a resized room, keeping items that still fit first."""
        ordered = sorted(items, key=lambda f: (not is_within_bounds(f.rect, room.half_extents), f.z_order, f.id))
        settled: List[Furniture] = []
        placements = []
        for item in ordered:
            placement = self.place_furniture(item, room, settled)
            settled.append(placement.entity)
            placements.append(placement)
        return placements
