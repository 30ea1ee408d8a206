"""Pointer-driven manipulation of the layout.

The state machine holds exactly one ``InteractionState`` value at a time,
so only one gesture can be in flight::

    Idle --down--> PendingDrag --move > threshold--> Panning
                                                     MovingRoom
                                                     ResizingRoom
                                                     MovingConnector
                                                     MovingFurniture
                                                     CreatingRoom
         <--up / cancel-----------------------------

Every drag frame recomputes the entity from the geometry snapshot taken
at drag start and the total pointer delta since then, never from the
previous frame.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ..core.model import Connector, EntityKind, Furniture, Rect, Room, Selection
from ..geom.collision import ResizeHandle
from .placement import Placement
from .session import HitTarget, LayoutSession

LOGGER = logging.getLogger(__name__)

Point = Tuple[float, float]


class Tool(str, Enum):
    """Active editing tool."""

    SELECT = "select"
    CREATE_ROOM = "create_room"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PendingDrag:
    """Pointer is down but has not moved past the drag threshold."""

    target: Optional[HitTarget]
    start_screen: Point
    start_world: Point
    pan: bool = False


@dataclass(frozen=True)
class Panning:
    start_screen: Point
    camera_origin: Point


@dataclass(frozen=True)
class MovingRoom:
    start_world: Point
    original: Room


@dataclass(frozen=True)
class ResizingRoom:
    start_world: Point
    original: Room
    handle: ResizeHandle


@dataclass(frozen=True)
class MovingConnector:
    start_world: Point
    original: Connector


@dataclass(frozen=True)
class MovingFurniture:
    start_world: Point
    original: Furniture


@dataclass(frozen=True)
class CreatingRoom:
    start_world: Point
    current_world: Point

    @property
    def rect(self) -> Rect:
        (x1, y1), (x2, y2) = self.start_world, self.current_world
        return Rect(min(x1, x2), max(x1, x2), min(y1, y2), max(y1, y2))


InteractionState = Union[
    Idle,
    PendingDrag,
    Panning,
    MovingRoom,
    ResizingRoom,
    MovingConnector,
    MovingFurniture,
    CreatingRoom,
]

_ENTITY_DRAGS = (MovingRoom, ResizingRoom, MovingConnector, MovingFurniture)


class InteractionStateMachine:
    """Turns pointer, wheel and key events into session changes."""

    def __init__(self, session: LayoutSession, tool: Tool = Tool.SELECT):
        self.session = session
        self.tool = Tool(tool)
        self.state: InteractionState = Idle()

    @property
    def transformer(self):
        return self.session.transformer

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def is_dragging(self) -> bool:
        return not isinstance(self.state, (Idle, PendingDrag))

    def set_tool(self, tool: Tool) -> None:
        if not self.is_idle:
            raise RuntimeError("Cannot switch tools during a gesture")
        self.tool = Tool(tool)

    def _reset(self) -> None:
        self.state = Idle()
        self.session.drag_highlight = None

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, sx: float, sy: float, pan: bool = False) -> InteractionState:
        """Start a gesture at a screen position.

        Args:
            sx: Pointer x in screen space.
            sy: Pointer y in screen space.
            pan: Force a pan gesture (middle button or modifier key).
        """
        if not self.is_idle:
            LOGGER.debug("Ignoring pointer down while in %s", type(self.state).__name__)
            return self.state

        world = self.transformer.screen_to_world(sx, sy)
        target = None if pan else self.session.hit_test(*world)
        self.state = PendingDrag(target, (sx, sy), world, pan)
        return self.state

    def pointer_move(self, sx: float, sy: float) -> InteractionState:
        state = self.state
        if isinstance(state, Idle):
            return state

        if isinstance(state, PendingDrag):
            moved = math.hypot(sx - state.start_screen[0], sy - state.start_screen[1])
            if moved < self.session.config.drag_threshold_px:
                return state
            self.state = self._begin_drag(state)
            LOGGER.debug("Drag started: %s", type(self.state).__name__)

        self._drag_frame(sx, sy)
        return self.state

    def pointer_up(self, sx: float, sy: float) -> InteractionState:
        """Finish the gesture: a click selects, a drag commits.

        Raises:
            CommitError: If persistence rejects the committed geometry. The
                entity has already been reverted to its drag-start snapshot.
        """
        state = self.state
        try:
            if isinstance(state, PendingDrag):
                if not state.pan:
                    self.session.select(state.target)
            elif isinstance(state, Panning):
                self._pan_to(state, sx, sy)
            elif isinstance(state, CreatingRoom):
                state = CreatingRoom(state.start_world, self.transformer.screen_to_world(sx, sy))
                room = self.session.create_room(state.rect)
                self.session.select(HitTarget(EntityKind.ROOM, room.id))
            elif isinstance(state, _ENTITY_DRAGS):
                self._commit(state, self.transformer.screen_to_world(sx, sy))
        finally:
            self._reset()
        return self.state

    def cancel(self) -> InteractionState:
        """Abort the gesture without committing; dragged geometry is rolled back."""
        state = self.state
        if isinstance(state, Panning):
            self.session.camera.x, self.session.camera.y = state.camera_origin
        elif isinstance(state, _ENTITY_DRAGS):
            self.session.revert(self._kind(state), state.original)
        if not isinstance(state, Idle):
            LOGGER.debug("Cancelled %s", type(state).__name__)
        self._reset()
        return self.state

    # Losing pointer capture behaves like Escape
    lost_capture = cancel

    # ------------------------------------------------------------------
    # Wheel and keyboard
    # ------------------------------------------------------------------

    def wheel(self, sx: float, sy: float, steps: float) -> float:
        """Zoom around the cursor; positive steps zoom in."""
        factor = self.transformer.zoom_step ** steps
        return self.transformer.zoom_at(sx, sy, factor)

    def key_down(self, key: str) -> bool:
        """Handle a key press. Returns True if the key was consumed."""
        if key == "Escape":
            consumed = not self.is_idle
            self.cancel()
            return consumed

        if key in ("Delete", "Backspace") and self.is_idle:
            selection = self.session.selection
            if selection is None:
                return False
            delete = getattr(self.session, f"delete_{EntityKind(selection.kind).value}")
            delete(selection.id)
            self.session.selection = None
            return True

        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin_drag(self, pending: PendingDrag) -> InteractionState:
        target = pending.target
        camera = self.session.camera
        pan = Panning(pending.start_screen, (camera.x, camera.y))

        if pending.pan:
            return pan
        if target is None:
            if self.tool is Tool.CREATE_ROOM:
                return CreatingRoom(pending.start_world, pending.start_world)
            return pan

        entity = self.session.get(target.kind, target.id)
        if entity is None:
            return pan
        self.session.select(target)

        if target.kind is EntityKind.ROOM:
            if entity.locked:
                LOGGER.debug("Room '%s' is locked; panning instead", entity.id)
                return pan
            if target.handle is not None:
                return ResizingRoom(pending.start_world, entity, target.handle)
            return MovingRoom(pending.start_world, entity)
        if target.kind is EntityKind.CONNECTOR:
            return MovingConnector(pending.start_world, entity)
        return MovingFurniture(pending.start_world, entity)

    def _drag_frame(self, sx: float, sy: float) -> None:
        state = self.state
        if isinstance(state, Panning):
            self._pan_to(state, sx, sy)
            return

        world = self.transformer.screen_to_world(sx, sy)
        if isinstance(state, CreatingRoom):
            self.state = CreatingRoom(state.start_world, world)
            self.session.drag_highlight = self.state.rect
            return

        placement = self._place(state, world)
        kind = self._kind(state)
        self.session.stage(kind, placement.entity)
        self.session.drag_highlight = Selection(kind, placement.entity.id)

    def _pan_to(self, state: Panning, sx: float, sy: float) -> None:
        camera = self.session.camera
        camera.x = state.camera_origin[0] - (sx - state.start_screen[0]) / camera.zoom
        camera.y = state.camera_origin[1] - (sy - state.start_screen[1]) / camera.zoom

    def _place(self, state, world: Point) -> Placement:
        """Validated geometry for the drag-start snapshot plus the total delta."""
        dx = world[0] - state.start_world[0]
        dy = world[1] - state.start_world[1]
        session = self.session
        placer = session.placer

        if isinstance(state, MovingRoom):
            return placer.place_room_move(state.original, dx, dy, session.neighbors(state.original))
        if isinstance(state, ResizingRoom):
            return placer.place_room_resize(
                state.original, state.handle, dx, dy, session.neighbors(state.original)
            )
        if isinstance(state, MovingConnector):
            return placer.place_connector_move(state.original, dx, dy)

        room = session.require_room(state.original.room_id)
        return placer.place_furniture_move(state.original, dx, dy, room, session.room_furniture(room.id))

    def _commit(self, state, world: Point) -> None:
        entity = self.session.record(self._place(state, world))
        if isinstance(state, (MovingRoom, ResizingRoom)):
            self.session.commit_room(entity, state.original)
        elif isinstance(state, MovingConnector):
            self.session.commit_connector(entity, state.original)
        else:
            self.session.commit_furniture(entity, state.original)

    @staticmethod
    def _kind(state) -> EntityKind:
        if isinstance(state, (MovingRoom, ResizingRoom)):
            return EntityKind.ROOM
        if isinstance(state, MovingConnector):
            return EntityKind.CONNECTOR
        return EntityKind.FURNITURE
