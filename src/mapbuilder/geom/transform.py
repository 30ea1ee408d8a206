"""Coordinate conversion between world, screen and room-relative space.

Screen space has its origin at the top-left corner of a ``W x H`` viewport;
the camera's focal point is drawn at the viewport center.
"""

from __future__ import annotations

import logging
import math

from .. import config
from ..core.model import Camera, Furniture, Rect, Room

LOGGER = logging.getLogger(__name__)


class CoordinateTransformer:
    """World <-> screen conversion and camera pan/zoom.

    Holds no state of its own beyond a reference to the session's camera
    and the viewport size.
    """

    def __init__(
        self,
        camera: Camera,
        viewport_width: float = config.VIEWPORT_WIDTH,
        viewport_height: float = config.VIEWPORT_HEIGHT,
        min_zoom: float = config.MIN_ZOOM,
        max_zoom: float = config.MAX_ZOOM,
        zoom_step: float = config.ZOOM_STEP,
    ):
        if viewport_width <= 0 or viewport_height <= 0:
            raise ValueError("Viewport size must be positive")
        if not 0 < min_zoom <= max_zoom:
            raise ValueError(f"Invalid zoom bounds [{min_zoom}, {max_zoom}]")
        self.camera = camera
        self.width = viewport_width
        self.height = viewport_height
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.zoom_step = zoom_step

    def world_to_screen(self, wx: float, wy: float) -> tuple[float, float]:
        cam = self.camera
        return (
            self.width / 2 + (wx - cam.x) * cam.zoom,
            self.height / 2 + (wy - cam.y) * cam.zoom,
        )

    def screen_to_world(self, sx: float, sy: float) -> tuple[float, float]:
        cam = self.camera
        return (
            cam.x + (sx - self.width / 2) / cam.zoom,
            cam.y + (sy - self.height / 2) / cam.zoom,
        )

    def screen_to_world_distance(self, pixels: float) -> float:
        """Convert a screen-space length (e.g. a hit tolerance) to world units."""
        return pixels / self.camera.zoom

    def clamp_zoom(self, zoom: float) -> float:
        """Clamp a zoom factor to the allowed range.

        NaN keeps the current zoom; infinities clamp to the nearest bound.
        """
        if math.isnan(zoom):
            return self.camera.zoom
        return max(self.min_zoom, min(zoom, self.max_zoom))

    def set_zoom(self, zoom: float) -> float:
        """Set the zoom around the camera's focal point and return the new value."""
        previous = self.camera.zoom
        self.camera.zoom = self.clamp_zoom(zoom)
        if self.camera.zoom != previous:
            LOGGER.debug("Zoom changed from %.3f to %.3f", previous, self.camera.zoom)
        return self.camera.zoom

    def zoom_at(self, screen_x: float, screen_y: float, factor: float) -> float:
        """Zoom by ``factor`` keeping the world point under the cursor fixed.

        Args:
            screen_x: Cursor x in screen space.
            screen_y: Cursor y in screen space.
            factor: Multiplier applied to the current zoom before clamping.

        Returns:
            The resulting zoom factor.
        """
        anchor_x, anchor_y = self.screen_to_world(screen_x, screen_y)
        new_zoom = self.set_zoom(self.camera.zoom * factor)

        # Solve screen_to_world(screen) == anchor for the camera position
        self.camera.x = anchor_x - (screen_x - self.width / 2) / new_zoom
        self.camera.y = anchor_y - (screen_y - self.height / 2) / new_zoom
        return new_zoom

    def zoom_in(self) -> float:
        return self.zoom_at(self.width / 2, self.height / 2, self.zoom_step)

    def zoom_out(self) -> float:
        return self.zoom_at(self.width / 2, self.height / 2, 1 / self.zoom_step)

    def pan_by(self, screen_dx: float, screen_dy: float) -> None:
        """Pan so the world moves with the pointer by the given screen delta."""
        self.camera.x -= screen_dx / self.camera.zoom
        self.camera.y -= screen_dy / self.camera.zoom

    def center_on(self, wx: float, wy: float) -> None:
        self.camera.x = wx
        self.camera.y = wy

    def visible_world_rect(self) -> Rect:
        """World-space rectangle currently covered by the viewport."""
        left, top = self.screen_to_world(0, 0)
        right, bottom = self.screen_to_world(self.width, self.height)
        return Rect(left, right, top, bottom)

    @staticmethod
    def room_to_world(furniture: Furniture, room: Room) -> tuple[float, float]:
        """World position of a furniture item's center."""
        cx, cy = room.center
        return cx + furniture.x, cy + furniture.y

    @staticmethod
    def world_to_room_relative(wx: float, wy: float, room: Room) -> tuple[float, float]:
        """Offset of a world point from the room center."""
        cx, cy = room.center
        return wx - cx, wy - cy
