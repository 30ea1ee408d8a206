"""Geometry for map building: transforms, snapping, collisions and adjacency."""

from .adjacency import Adjacency, AdjacencyDetector, shared_edge
from .collision import (
    ResizeHandle,
    SearchResult,
    clamp_resize,
    find_nearest_valid_position,
    is_within_bounds,
    overlaps,
)
from .grid import snap, snap_point
from .proximity import ProximitySnapper, SnapResult
from .transform import CoordinateTransformer

__all__ = [
    "Adjacency",
    "AdjacencyDetector",
    "CoordinateTransformer",
    "ProximitySnapper",
    "ResizeHandle",
    "SearchResult",
    "SnapResult",
    "clamp_resize",
    "find_nearest_valid_position",
    "is_within_bounds",
    "overlaps",
    "shared_edge",
    "snap",
    "snap_point",
]
