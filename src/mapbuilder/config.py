"""
Configuration defaults for the map builder engine.

All distances are abstract world units unless the name says ``_PX``
(screen pixels, independent of zoom).
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

# Grid resolutions per entity class
ROOM_GRID = 32
CONNECTOR_GRID = 16
FURNITURE_GRID = 8

# Geometry limits
MIN_ROOM_SIZE = 32
DEFAULT_ROOM_SIZE = 128
DEFAULT_FURNITURE_SIZE = 32
CONNECTOR_WIDTH = 32
CONNECTOR_HEIGHT = 8
CONNECTOR_DEDUP_TOLERANCE = 32  # one structural cell

# Camera
MIN_ZOOM = 0.2
MAX_ZOOM = 8.0
ZOOM_STEP = 1.25
VIEWPORT_WIDTH = 1200
VIEWPORT_HEIGHT = 800

# Interaction
DRAG_THRESHOLD_PX = 3
HANDLE_TOLERANCE_PX = 6
PROXIMITY_SNAP_THRESHOLD = 16

# Nearest-valid-position search
MAX_SEARCH_RINGS = 64


@dataclass(frozen=True)
class EngineConfig:
    """Bundle of tunables handed to the engine components."""

    room_grid: float = ROOM_GRID
    connector_grid: float = CONNECTOR_GRID
    furniture_grid: float = FURNITURE_GRID
    min_room_size: float = MIN_ROOM_SIZE
    default_room_size: float = DEFAULT_ROOM_SIZE
    default_furniture_size: float = DEFAULT_FURNITURE_SIZE
    connector_width: float = CONNECTOR_WIDTH
    connector_height: float = CONNECTOR_HEIGHT
    connector_dedup_tolerance: float = CONNECTOR_DEDUP_TOLERANCE
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM
    zoom_step: float = ZOOM_STEP
    viewport_width: float = VIEWPORT_WIDTH
    viewport_height: float = VIEWPORT_HEIGHT
    drag_threshold_px: float = DRAG_THRESHOLD_PX
    handle_tolerance_px: float = HANDLE_TOLERANCE_PX
    proximity_snap_threshold: float = PROXIMITY_SNAP_THRESHOLD
    max_search_rings: int = MAX_SEARCH_RINGS

    def resolution_for(self, kind: str) -> float:
        """Return the grid resolution used for an entity kind.

        Args:
            kind: ``"room"``, ``"connector"`` or ``"furniture"``, or the matching
                ``EntityKind`` member.

        Raises:
            ValueError: If the kind is not recognized.
        """
        resolutions = {
            "room": self.room_grid,
            "connector": self.connector_grid,
            "furniture": self.furniture_grid,
        }
        try:
            return resolutions[getattr(kind, "value", kind)]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}")

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load an EngineConfig, applying overrides from a JSON file.

    Args:
        path: Optional path to a JSON object whose keys are EngineConfig
            field names.

    Returns:
        The default configuration with the overrides applied.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file contains unknown keys.
    """
    config = EngineConfig()
    if path is None:
        return config

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        overrides = json.load(f)

    known = {f.name for f in fields(EngineConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    return replace(config, **overrides)
