"""The editing session: sole owner of the live layout.

``LayoutSession`` holds the in-memory rooms, connectors, furniture and
camera. Other components receive references and hand back proposed
geometry; only the session mutates the collections.

Changes are applied optimistically (the in-memory model updates at once)
and then handed to the persistence collaborator. A rejected commit reverts
the entity to its pre-change snapshot and raises ``CommitError``. Connector
synthesis after a room commit is independent of the room change: a
rejected connector is logged and dropped, the room change stands.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from shapely.geometry import Point

from ..config import EngineConfig
from ..core.model import (
    Camera,
    Connector,
    ConnectorState,
    EntityKind,
    Furniture,
    Layout,
    Rect,
    Room,
    Selection,
    VALID_ROTATIONS,
)
from ..geom.adjacency import AdjacencyDetector, shared_edge
from ..geom.collision import ResizeHandle
from ..geom.grid import snap
from ..geom.transform import CoordinateTransformer
from .persistence import Persistence
from .placement import Placement, Placer
from .validators import CommitError, GeometryWarning, InvalidOperation

LOGGER = logging.getLogger(__name__)

Entity = Union[Room, Connector, Furniture]

_ROOM_GEOMETRY = ("start_x", "end_x", "start_y", "end_y")


@dataclass(frozen=True)
class HitTarget:
    """Entity under the pointer, with the resize handle when on a room edge."""

    kind: EntityKind
    id: str
    handle: Optional[ResizeHandle] = None


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything a renderer needs to draw one frame of the active floor."""

    floor: int
    rooms: Tuple[Room, ...]
    connectors: Tuple[Connector, ...]
    furniture: Tuple[Furniture, ...]
    camera: Camera
    selection: Optional[Selection]
    active_drag_highlight: Union[Selection, Rect, None]
    warnings: Tuple[GeometryWarning, ...]


def _changes(before: Entity, after: Entity) -> Dict[str, Any]:
    """Fields that differ between two versions of an entity."""
    old, new = asdict(before), asdict(after)
    return {k: v for k, v in new.items() if k != "id" and old.get(k) != v}


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class LayoutSession:
    """Owns the live layout of a map and exposes its query/mutation API."""

    def __init__(
        self,
        store: Persistence,
        config: Optional[EngineConfig] = None,
        floor: int = 0,
        camera: Optional[Camera] = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.floor = floor
        self.camera = camera or Camera()

        self.rooms: Dict[str, Room] = {}
        self.connectors: Dict[str, Connector] = {}
        self.furniture: Dict[str, Furniture] = {}

        self.selection: Optional[Selection] = None
        self.drag_highlight: Union[Selection, Rect, None] = None
        self.warnings: List[GeometryWarning] = []

        self.placer = Placer(self.config)
        self.detector = AdjacencyDetector(
            connector_width=self.config.connector_width,
            connector_height=self.config.connector_height,
            dedup_tolerance=self.config.connector_dedup_tolerance,
        )
        self.transformer = CoordinateTransformer(
            self.camera,
            self.config.viewport_width,
            self.config.viewport_height,
            min_zoom=self.config.min_zoom,
            max_zoom=self.config.max_zoom,
            zoom_step=self.config.zoom_step,
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """(Re)load every entity from the persistence collaborator.

        Pending warnings refer to the replaced in-memory state and are dropped.
        """
        self.rooms = {r.id: r for r in self.store.list_rooms()}
        self.connectors = {c.id: c for c in self.store.list_connectors()}
        self.furniture = {f.id: f for f in self.store.list_furniture()}
        self.warnings = []
        self.drag_highlight = None
        if self.selection and self.get(self.selection.kind, self.selection.id) is None:
            self.selection = None
        LOGGER.info(
            "Loaded %d rooms, %d connectors, %d furniture items",
            len(self.rooms),
            len(self.connectors),
            len(self.furniture),
        )

    def set_floor(self, floor: int) -> None:
        self.floor = floor
        self.selection = None
        self.drag_highlight = None

    def to_layout(self) -> Layout:
        return Layout(
            rooms=dict(self.rooms),
            connectors=dict(self.connectors),
            furniture=dict(self.furniture),
            camera=replace(self.camera),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _collection(self, kind: EntityKind) -> Dict[str, Any]:
        return {
            EntityKind.ROOM: self.rooms,
            EntityKind.CONNECTOR: self.connectors,
            EntityKind.FURNITURE: self.furniture,
        }[EntityKind(kind)]

    def get(self, kind: EntityKind, entity_id: str) -> Optional[Entity]:
        return self._collection(kind).get(entity_id)

    def require_room(self, room_id: str) -> Room:
        if room_id not in self.rooms:
            raise InvalidOperation(f"Room '{room_id}' does not exist")
        return self.rooms[room_id]

    def floor_rooms(self, floor: Optional[int] = None) -> List[Room]:
        floor = self.floor if floor is None else floor
        return sorted((r for r in self.rooms.values() if r.floor == floor), key=lambda r: r.id)

    def neighbors(self, room: Room) -> List[Room]:
        """Other rooms on the same floor as ``room``."""
        return [r for r in self.floor_rooms(room.floor) if r.id != room.id]

    def floor_connectors(self, floor: Optional[int] = None) -> List[Connector]:
        """Connectors with at least one endpoint on the floor."""
        on_floor = {r.id for r in self.floor_rooms(floor)}
        return sorted(
            (c for c in self.connectors.values() if c.from_room in on_floor or c.to_room in on_floor),
            key=lambda c: c.id,
        )

    def connectors_for_room(self, room_id: str) -> List[Connector]:
        return sorted(
            (c for c in self.connectors.values() if room_id in (c.from_room, c.to_room)),
            key=lambda c: c.id,
        )

    def room_furniture(self, room_id: str) -> List[Furniture]:
        return sorted(
            (f for f in self.furniture.values() if f.room_id == room_id),
            key=lambda f: (f.z_order, f.id),
        )

    def furniture_world_rect(self, item: Furniture) -> Rect:
        room = self.rooms[item.room_id]
        wx, wy = self.transformer.room_to_world(item, room)
        rect = item.rect
        return Rect.from_center(wx, wy, rect.width, rect.height)

    def hit_test(self, wx: float, wy: float) -> Optional[HitTarget]:
        """Find the entity under a world point on the active floor.

        Smaller targets win: connectors, then furniture (topmost first),
        then room resize handles, then room interiors.
        """
        for connector in self.floor_connectors():
            if connector.rect.contains_point(wx, wy):
                return HitTarget(EntityKind.CONNECTOR, connector.id)

        rooms = self.floor_rooms()
        items = [f for r in rooms for f in self.room_furniture(r.id)]
        for item in sorted(items, key=lambda f: (-f.z_order, f.id)):
            if self.furniture_world_rect(item).contains_point(wx, wy):
                return HitTarget(EntityKind.FURNITURE, item.id)

        tol = self.transformer.screen_to_world_distance(self.config.handle_tolerance_px)
        for room in rooms:
            handle = self._handle_at(room, wx, wy, tol)
            if handle is not None:
                return HitTarget(EntityKind.ROOM, room.id, handle)

        for room in rooms:
            if room.rect.contains_point(wx, wy):
                return HitTarget(EntityKind.ROOM, room.id)
        return None

    @staticmethod
    def _handle_at(room: Room, wx: float, wy: float, tol: float) -> Optional[ResizeHandle]:
        if not (room.start_x - tol <= wx <= room.end_x + tol and room.start_y - tol <= wy <= room.end_y + tol):
            return None
        vertical = "n" if abs(wy - room.start_y) <= tol else "s" if abs(wy - room.end_y) <= tol else ""
        horizontal = "w" if abs(wx - room.start_x) <= tol else "e" if abs(wx - room.end_x) <= tol else ""
        if not (vertical or horizontal):
            return None
        return ResizeHandle(vertical + horizontal)

    def select(self, target: Optional[HitTarget]) -> None:
        self.selection = Selection(target.kind, target.id) if target else None

    def selected_entity(self) -> Optional[Entity]:
        if self.selection is None:
            return None
        return self.get(self.selection.kind, self.selection.id)

    def snapshot(self) -> RenderSnapshot:
        rooms = self.floor_rooms()
        return RenderSnapshot(
            floor=self.floor,
            rooms=tuple(rooms),
            connectors=tuple(self.floor_connectors()),
            furniture=tuple(f for r in rooms for f in self.room_furniture(r.id)),
            camera=replace(self.camera),
            selection=self.selection,
            active_drag_highlight=self.drag_highlight,
            warnings=tuple(self.warnings),
        )

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------

    def record(self, placement: Placement) -> Any:
        """Keep the warnings of a placement and return its entity."""
        self.warnings.extend(placement.warnings)
        return placement.entity

    def drain_warnings(self) -> List[GeometryWarning]:
        drained, self.warnings = self.warnings, []
        return drained

    # ------------------------------------------------------------------
    # In-memory staging (drag previews)
    # ------------------------------------------------------------------

    def stage(self, kind: EntityKind, entity: Entity) -> None:
        """Apply an entity to the in-memory model without persisting it."""
        self._collection(kind)[entity.id] = entity

    def revert(self, kind: EntityKind, snapshot: Entity) -> None:
        """Restore an entity to a snapshot taken before a change."""
        self._collection(kind)[snapshot.id] = snapshot
        LOGGER.debug("Reverted %s '%s'", EntityKind(kind).value, snapshot.id)

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    def _commit_update(self, kind: EntityKind, entity: Entity, snapshot: Entity) -> Optional[Entity]:
        kind = EntityKind(kind)
        self.stage(kind, entity)
        partial = _changes(snapshot, entity)
        if not partial:
            return entity

        update = getattr(self.store, f"update_{kind.value}")
        try:
            stored = update(entity.id, partial)
        except Exception as e:
            self.revert(kind, snapshot)
            raise CommitError(entity.id, f"Could not save {kind.value} '{entity.id}': {e}") from e

        if stored is None:
            LOGGER.warning("%s '%s' no longer exists in storage; dropping it", kind.value, entity.id)
            self._collection(kind).pop(entity.id, None)
            return None

        self._collection(kind)[entity.id] = stored
        LOGGER.info("Committed %s '%s': %s", kind.value, entity.id, sorted(partial))
        return stored

    def _commit_create(self, kind: EntityKind, entity: Entity) -> Entity:
        kind = EntityKind(kind)
        self.stage(kind, entity)
        create = getattr(self.store, f"create_{kind.value}")
        try:
            stored = create(entity)
        except Exception as e:
            self._collection(kind).pop(entity.id, None)
            raise CommitError(entity.id, f"Could not create {kind.value} '{entity.id}': {e}") from e
        self._collection(kind)[stored.id] = stored
        LOGGER.info("Created %s '%s'", kind.value, stored.id)
        return stored

    def commit_room(self, room: Room, snapshot: Room) -> Optional[Room]:
        """Persist a moved or resized room, then refit furniture and connect neighbors.

        If a refitted furniture item cannot be saved, the room and the items
        already refitted are restored to their previous geometry before the
        ``CommitError`` propagates.
        """
        stored = self._commit_update(EntityKind.ROOM, room, snapshot)
        if stored is None:
            return None
        if (stored.width, stored.height) != (snapshot.width, snapshot.height):
            self._refit_furniture(stored, snapshot)
        self.connect_adjacent(stored)
        return stored

    def commit_connector(self, connector: Connector, snapshot: Connector) -> Optional[Connector]:
        return self._commit_update(EntityKind.CONNECTOR, connector, snapshot)

    def commit_furniture(self, item: Furniture, snapshot: Furniture) -> Optional[Furniture]:
        return self._commit_update(EntityKind.FURNITURE, item, snapshot)

    def _refit_furniture(self, room: Room, snapshot: Room) -> None:
        refitted: List[Furniture] = []
        warnings: List[GeometryWarning] = []
        for placement in self.placer.refit_furniture(room, self.room_furniture(room.id)):
            item = placement.entity
            before = self.furniture.get(item.id)
            if before is not None and before != item:
                try:
                    self._commit_update(EntityKind.FURNITURE, item, before)
                except CommitError:
                    self._undo_resize(room, snapshot, refitted)
                    raise
                refitted.append(before)
            warnings.extend(placement.warnings)
        self.warnings.extend(warnings)

    def _undo_resize(self, room: Room, snapshot: Room, refitted: List[Furniture]) -> None:
        LOGGER.warning("Restoring room '%s' after a failed furniture refit", room.id)
        try:
            for before in reversed(refitted):
                current = self.furniture.get(before.id)
                if current is not None:
                    self._commit_update(EntityKind.FURNITURE, before, current)
            current_room = self.rooms.get(room.id)
            if current_room is not None:
                self._commit_update(EntityKind.ROOM, snapshot, current_room)
        except CommitError as e:
            LOGGER.error("Could not restore room '%s' (%s); reloading from storage", room.id, e)
            self.load()

    def connect_adjacent(self, room: Room) -> List[Connector]:
        """Create connectors for exact edge adjacencies of ``room``.

        A connector the store rejects is logged and skipped; it never rolls
        back the room change that triggered the scan.
        """
        proposed = self.detector.propose_connectors(
            room,
            self.neighbors(room),
            self.connectors.values(),
            new_id=lambda: _new_id("door"),
        )
        created = []
        for connector in proposed:
            try:
                created.append(self._commit_create(EntityKind.CONNECTOR, connector))
            except CommitError as e:
                LOGGER.warning("Automatic connector between '%s' and '%s' skipped: %s",
                               connector.from_room, connector.to_room, e)
        return created

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def create_room(
        self,
        rect: Rect,
        floor: Optional[int] = None,
        room_id: Optional[str] = None,
        **attrs: Any,
    ) -> Room:
        """Place a new room at ``rect`` (grid aligned, collisions repaired)."""
        room = Room(
            id=room_id or _new_id("room"),
            floor=self.floor if floor is None else floor,
            start_x=rect.start_x,
            end_x=rect.end_x,
            start_y=rect.start_y,
            end_y=rect.end_y,
            **attrs,
        )
        if room.id in self.rooms:
            raise InvalidOperation(f"Room '{room.id}' already exists")
        room = self.record(self.placer.place_room(room, self.neighbors(room)))
        stored = self._commit_create(EntityKind.ROOM, room)
        self.connect_adjacent(stored)
        return stored

    def create_room_at(self, wx: float, wy: float, **attrs: Any) -> Room:
        """Create a default-sized room centered on a world point."""
        size = self.config.default_room_size
        return self.create_room(Rect.from_center(wx, wy, size, size), **attrs)

    def move_room(self, room_id: str, dx: float, dy: float) -> Optional[Room]:
        room = self.require_room(room_id)
        if room.locked:
            raise InvalidOperation(f"Room '{room_id}' is locked")
        moved = self.record(self.placer.place_room_move(room, dx, dy, self.neighbors(room)))
        return self.commit_room(moved, room)

    def resize_room(self, room_id: str, handle: ResizeHandle, dx: float, dy: float) -> Optional[Room]:
        room = self.require_room(room_id)
        if room.locked:
            raise InvalidOperation(f"Room '{room_id}' is locked")
        try:
            handle = ResizeHandle(handle)
        except ValueError:
            raise InvalidOperation(f"Unknown resize handle: {handle}")
        resized = self.record(self.placer.place_room_resize(room, handle, dx, dy, self.neighbors(room)))
        return self.commit_room(resized, room)

    def delete_room(self, room_id: str) -> bool:
        """Delete a room together with its connectors and furniture.

        Dependents are deleted first so storage never holds references to a
        missing room. If any delete fails, the session reloads from storage.
        """
        self.require_room(room_id)
        connectors = self.connectors_for_room(room_id)
        items = self.room_furniture(room_id)

        for connector in connectors:
            self.connectors.pop(connector.id, None)
        for item in items:
            self.furniture.pop(item.id, None)
        self.rooms.pop(room_id, None)
        if self.selection and self.get(self.selection.kind, self.selection.id) is None:
            self.selection = None

        try:
            for connector in connectors:
                self.store.delete_connector(connector.id)
            for item in items:
                self.store.delete_furniture(item.id)
            deleted = self.store.delete_room(room_id)
        except Exception as e:
            self.load()
            raise CommitError(room_id, f"Could not delete room '{room_id}': {e}") from e

        LOGGER.info(
            "Deleted room '%s' with %d connectors and %d furniture items",
            room_id,
            len(connectors),
            len(items),
        )
        return deleted

    # ------------------------------------------------------------------
    # Connectors
    # ------------------------------------------------------------------

    def _check_connector_rooms(self, from_room: str, to_room: str) -> Tuple[Room, Room]:
        if from_room == to_room:
            raise InvalidOperation(f"Connector must link two different rooms, got '{from_room}' twice")
        return self.require_room(from_room), self.require_room(to_room)

    def create_connector(self, from_room: str, to_room: str, x: float, y: float, **attrs: Any) -> Connector:
        """Create a connector on the shared boundary of two rooms.

        Raises:
            InvalidOperation: If the rooms are the same, missing, not
                adjacent, or the position is off their shared boundary.
        """
        room_a, room_b = self._check_connector_rooms(from_room, to_room)
        adjacency = shared_edge(room_a, room_b)
        if adjacency is None:
            raise InvalidOperation(f"Rooms '{from_room}' and '{to_room}' do not share a boundary")
        if adjacency.line.distance(Point(x, y)) > self.config.connector_grid:
            raise InvalidOperation(
                f"Position ({x}, {y}) is not on the boundary shared by '{from_room}' and '{to_room}'"
            )

        attrs.setdefault("rotation", adjacency.rotation)
        attrs.setdefault("width", self.config.connector_width)
        attrs.setdefault("height", self.config.connector_height)
        if attrs["rotation"] not in VALID_ROTATIONS:
            raise InvalidOperation(f"Invalid rotation {attrs['rotation']}")
        if "state" in attrs:
            attrs["state"] = ConnectorState(attrs["state"])

        connector = Connector(
            id=attrs.pop("id", None) or _new_id("door"),
            from_room=from_room,
            to_room=to_room,
            x=x,
            y=y,
            **attrs,
        )
        if connector.id in self.connectors:
            raise InvalidOperation(f"Connector '{connector.id}' already exists")
        return self._commit_create(EntityKind.CONNECTOR, connector)

    def move_connector(self, connector_id: str, dx: float, dy: float) -> Optional[Connector]:
        connector = self._require(EntityKind.CONNECTOR, connector_id)
        moved = self.record(self.placer.place_connector_move(connector, dx, dy))
        return self.commit_connector(moved, connector)

    def delete_connector(self, connector_id: str) -> bool:
        self._require(EntityKind.CONNECTOR, connector_id)
        return self._delete(EntityKind.CONNECTOR, connector_id)

    # ------------------------------------------------------------------
    # Furniture
    # ------------------------------------------------------------------

    def create_furniture(
        self,
        room_id: str,
        x: float = 0,
        y: float = 0,
        world: bool = False,
        **attrs: Any,
    ) -> Furniture:
        """Place a furniture item in a room.

        Args:
            room_id: Owning room.
            x: Position, room-relative unless ``world`` is True.
            y: Position, room-relative unless ``world`` is True.
            world: Interpret ``x``/``y`` as a world-space pointer position.
            **attrs: Other Furniture fields.
        """
        room = self.require_room(room_id)
        if world:
            x, y = self.transformer.world_to_room_relative(x, y, room)
        grid = self.config.furniture_grid
        attrs.setdefault("width", self.config.default_furniture_size)
        attrs.setdefault("height", self.config.default_furniture_size)

        item = Furniture(
            id=attrs.pop("id", None) or _new_id("furniture"),
            room_id=room_id,
            x=snap(x, grid),
            y=snap(y, grid),
            **attrs,
        )
        if item.id in self.furniture:
            raise InvalidOperation(f"Furniture '{item.id}' already exists")
        item = self.record(self.placer.place_furniture(item, room, self.room_furniture(room_id)))
        return self._commit_create(EntityKind.FURNITURE, item)

    def move_furniture(self, furniture_id: str, dx: float, dy: float) -> Optional[Furniture]:
        item = self._require(EntityKind.FURNITURE, furniture_id)
        room = self.require_room(item.room_id)
        moved = self.record(
            self.placer.place_furniture_move(item, dx, dy, room, self.room_furniture(room.id))
        )
        return self.commit_furniture(moved, item)

    def delete_furniture(self, furniture_id: str) -> bool:
        self._require(EntityKind.FURNITURE, furniture_id)
        return self._delete(EntityKind.FURNITURE, furniture_id)

    # ------------------------------------------------------------------
    # Property editor
    # ------------------------------------------------------------------

    def apply_patch(self, kind: EntityKind, entity_id: str, patch: Dict[str, Any]) -> Optional[Entity]:
        """Apply a property patch through the same validation path as a drag commit.

        Raises:
            InvalidOperation: For unknown entities or fields, invalid
                references, or geometry changes on a locked room.
        """
        kind = EntityKind(kind)
        original = self._require(kind, entity_id)
        allowed = {f.name for f in fields(original)} - {"id"}
        unknown = set(patch) - allowed
        if unknown:
            raise InvalidOperation(f"Unknown {kind.value} fields: {', '.join(sorted(unknown))}")

        if kind is EntityKind.ROOM:
            return self._patch_room(original, patch)
        if kind is EntityKind.CONNECTOR:
            return self._patch_connector(original, patch)
        return self._patch_furniture(original, patch)

    def _patch_room(self, room: Room, patch: Dict[str, Any]) -> Optional[Room]:
        geometry_changed = any(k in patch and patch[k] != getattr(room, k) for k in _ROOM_GEOMETRY)
        floor_changed = "floor" in patch and patch["floor"] != room.floor
        if room.locked and patch.get("locked", True) and (geometry_changed or floor_changed):
            raise InvalidOperation(f"Room '{room.id}' is locked")

        candidate = replace(room, **patch)
        if geometry_changed or floor_changed:
            candidate = self.record(
                self.placer.place_room(candidate, self.neighbors(candidate), fallback=room)
            )
        return self.commit_room(candidate, room)

    def _patch_connector(self, connector: Connector, patch: Dict[str, Any]) -> Optional[Connector]:
        patch = dict(patch)
        if "state" in patch:
            try:
                patch["state"] = ConnectorState(patch["state"])
            except ValueError:
                raise InvalidOperation(f"Invalid connector state: {patch['state']}")
        if "rotation" in patch and patch["rotation"] not in VALID_ROTATIONS:
            raise InvalidOperation(f"Invalid rotation {patch['rotation']}")

        candidate = replace(connector, **patch)
        if "from_room" in patch or "to_room" in patch:
            self._check_connector_rooms(candidate.from_room, candidate.to_room)
        return self.commit_connector(candidate, connector)

    def _patch_furniture(self, item: Furniture, patch: Dict[str, Any]) -> Optional[Furniture]:
        if "rotation" in patch and patch["rotation"] not in VALID_ROTATIONS:
            raise InvalidOperation(f"Invalid rotation {patch['rotation']}")
        candidate = replace(item, **patch)
        room = self.require_room(candidate.room_id)
        siblings = [f for f in self.room_furniture(room.id) if f.id != item.id]
        candidate = self.record(self.placer.place_furniture(candidate, room, siblings, fallback=item))
        return self.commit_furniture(candidate, item)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, kind: EntityKind, entity_id: str) -> Entity:
        entity = self.get(kind, entity_id)
        if entity is None:
            raise InvalidOperation(f"{EntityKind(kind).value.capitalize()} '{entity_id}' does not exist")
        return entity

    def _delete(self, kind: EntityKind, entity_id: str) -> bool:
        kind = EntityKind(kind)
        snapshot = self._collection(kind).pop(entity_id)
        if self.selection == Selection(kind, entity_id):
            self.selection = None
        delete = getattr(self.store, f"delete_{kind.value}")
        try:
            deleted = delete(entity_id)
        except Exception as e:
            self._collection(kind)[entity_id] = snapshot
            raise CommitError(entity_id, f"Could not delete {kind.value} '{entity_id}': {e}") from e
        if not deleted:
            LOGGER.warning("%s '%s' was already gone from storage", kind.value, entity_id)
        return deleted
