"""Overlap testing, resize clamping and nearest-valid-position search.

Rectangles that merely share an edge do not overlap; this is what lets
rooms sit flush against each other and become adjacent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import box
from shapely.strtree import STRtree

from .. import config
from ..core.model import Rect

LOGGER = logging.getLogger(__name__)


class ResizeHandle(str, Enum):
    """The eight resize handles of a rectangle (corners and edge midpoints)."""

    NORTH = "n"
    SOUTH = "s"
    EAST = "e"
    WEST = "w"
    NORTH_EAST = "ne"
    NORTH_WEST = "nw"
    SOUTH_EAST = "se"
    SOUTH_WEST = "sw"

    @property
    def moves_north(self) -> bool:
        return "n" in self.value

    @property
    def moves_south(self) -> bool:
        return "s" in self.value

    @property
    def moves_east(self) -> bool:
        return "e" in self.value

    @property
    def moves_west(self) -> bool:
        return "w" in self.value


@dataclass(frozen=True)
class SearchResult:
    """Outcome of a nearest-valid-position search.

    Attributes:
        x: Center x of the chosen position.
        y: Center y of the chosen position.
        valid: False when the ring cap was reached and the original target
            was returned unmodified.
        rings: Number of rings examined before accepting a candidate.
    """

    x: float
    y: float
    valid: bool
    rings: int


def overlaps(a, b) -> bool:
    """Check whether two axis-aligned rectangles overlap.

    Accepts anything with ``start_x``/``end_x``/``start_y``/``end_y``
    attributes (``Rect`` or ``Room``). Touching edges do not count.
    """
    return (
        a.end_x > b.start_x
        and a.start_x < b.end_x
        and a.end_y > b.start_y
        and a.start_y < b.end_y
    )


def overlapping(rect, obstacles: Sequence) -> list:
    """Return the obstacles that overlap ``rect``."""
    return [other for other in obstacles if overlaps(rect, other)]


def is_within_bounds(rect: Rect, container_half_extents: Tuple[float, float]) -> bool:
    """Check that a center-relative rectangle lies inside a container.

    Args:
        rect: Rectangle expressed relative to the container's center.
        container_half_extents: ``(half_width, half_height)`` of the container.

    Returns:
        True if the rectangle is fully covered (touching the boundary is fine).
    """
    half_w, half_h = container_half_extents
    container = box(-half_w, -half_h, half_w, half_h)
    return container.covers(rect.polygon)


def _fits_inside(rect: Rect, bounds: Rect) -> bool:
    return (
        rect.start_x >= bounds.start_x
        and rect.end_x <= bounds.end_x
        and rect.start_y >= bounds.start_y
        and rect.end_y <= bounds.end_y
    )


def _ring_offsets(ring: int) -> List[Tuple[int, int]]:
    """Grid offsets on the square ring of Chebyshev radius ``ring``.

    Offsets are ordered by Euclidean distance, then row, then column, so
    the search is deterministic.
    """
    if ring == 0:
        return [(0, 0)]
    offsets = []
    for i in range(-ring, ring + 1):
        offsets.append((i, -ring))
        offsets.append((i, ring))
    for j in range(-ring + 1, ring):
        offsets.append((-ring, j))
        offsets.append((ring, j))
    offsets.sort(key=lambda o: (o[0] * o[0] + o[1] * o[1], o[1], o[0]))
    return offsets


def find_nearest_valid_position(
    target: Tuple[float, float],
    width: float,
    height: float,
    obstacles: Sequence[Rect],
    bounds: Optional[Rect] = None,
    step: float = config.ROOM_GRID,
    max_rings: int = config.MAX_SEARCH_RINGS,
) -> SearchResult:
    """Search outward from ``target`` for a position free of collisions.

    Candidates lie on square rings of increasing radius around the target,
    spaced by ``step`` (the active grid resolution), so a grid-aligned
    target yields grid-aligned candidates. The first candidate that
    overlaps no obstacle and, when ``bounds`` is given, lies inside it is
    accepted. This is a local search, not a global optimum.

    Args:
        target: Desired center ``(x, y)``.
        width: Width of the item being placed.
        height: Height of the item being placed.
        obstacles: Rectangles the item must not overlap.
        bounds: Optional containing rectangle.
        step: Ring spacing.
        max_rings: Number of rings examined before giving up.

    Returns:
        A SearchResult. When no candidate is found within ``max_rings`` the
        original target is returned with ``valid=False``; callers must treat
        this as a possibly remaining violation.
    """
    if step <= 0:
        raise ValueError(f"Search step must be positive, got {step}")

    tx, ty = target

    if bounds is not None and (width > bounds.width or height > bounds.height):
        LOGGER.debug("Item %sx%s cannot fit inside bounds %s", width, height, bounds)
        return SearchResult(tx, ty, valid=False, rings=0)

    tree = STRtree([o.polygon for o in obstacles]) if obstacles else None

    for ring in range(max_rings + 1):
        for ox, oy in _ring_offsets(ring):
            cx = tx + ox * step
            cy = ty + oy * step
            candidate = Rect.from_center(cx, cy, width, height)

            if bounds is not None and not _fits_inside(candidate, bounds):
                continue

            if tree is not None:
                hits = tree.query(candidate.polygon)
                if any(overlaps(candidate, obstacles[int(i)]) for i in hits):
                    continue

            return SearchResult(cx, cy, valid=True, rings=ring)

    LOGGER.debug("No valid position within %d rings of %s", max_rings, target)
    return SearchResult(tx, ty, valid=False, rings=max_rings)


def handle_raw_rect(handle: ResizeHandle, original: Rect, dx: float, dy: float) -> Rect:
    """Move the edges implied by ``handle`` by the drag delta, unclamped."""
    handle = ResizeHandle(handle)
    return Rect(
        original.start_x + dx if handle.moves_west else original.start_x,
        original.end_x + dx if handle.moves_east else original.end_x,
        original.start_y + dy if handle.moves_north else original.start_y,
        original.end_y + dy if handle.moves_south else original.end_y,
    )


def clamp_resize(handle: ResizeHandle, original: Rect, raw: Rect, min_size: float) -> Rect:
    """Clamp a resize so only the handle's edges move and spans stay >= ``min_size``.

    Edges not implied by the handle are taken from ``original``. If a span
    would fall below ``min_size`` the moving edge is pulled back so the
    span equals ``min_size`` exactly; the opposite edge never moves.

    Args:
        handle: The handle being dragged.
        original: Rectangle at drag start.
        raw: Proposed rectangle.
        min_size: Minimum span on each axis.

    Returns:
        The clamped rectangle.
    """
    handle = ResizeHandle(handle)

    start_x = raw.start_x if handle.moves_west else original.start_x
    end_x = raw.end_x if handle.moves_east else original.end_x
    start_y = raw.start_y if handle.moves_north else original.start_y
    end_y = raw.end_y if handle.moves_south else original.end_y

    if end_x - start_x < min_size:
        if handle.moves_west:
            start_x = end_x - min_size
        elif handle.moves_east:
            end_x = start_x + min_size

    if end_y - start_y < min_size:
        if handle.moves_north:
            start_y = end_y - min_size
        elif handle.moves_south:
            end_y = start_y + min_size

    return Rect(start_x, end_x, start_y, end_y)
