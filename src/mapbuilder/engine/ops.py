"""Named operations that can be applied to a layout session.

Each operation validates its parameters in ``precheck`` and performs the
change in ``apply``. Geometry passes through the same placement path as an
interactive drag, so an operation may be corrected (and warned about)
rather than rejected.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, Iterable, Optional, Protocol

from ..core.model import Connector, EntityKind, Furniture, Rect, Room
from ..geom.collision import ResizeHandle
from .session import LayoutSession
from .validators import InvalidOperation


class Operation(Protocol):
    """Protocol for layout operations.

    All operations must implement this interface to be compatible
    with the operation registry and execution engine.
    """

    def precheck(self, session: LayoutSession, **kwargs: Any) -> bool:
        """Validate that the operation can be applied to the session.

        Returns:
            True if the operation can be applied.

        Raises:
            InvalidOperation: If the operation would violate layout invariants.
        """
        ...

    def apply(self, session: LayoutSession, **kwargs: Any) -> Any:
        """Apply the operation and return the affected entity (or a flag)."""
        ...


def _require_editable_room(session: LayoutSession, room: str) -> None:
    if session.require_room(room).locked:
        raise InvalidOperation(f"Room '{room}' is locked")


def _require(session: LayoutSession, kind: EntityKind, entity_id: str) -> None:
    if session.get(kind, entity_id) is None:
        raise InvalidOperation(f"{kind.value.capitalize()} '{entity_id}' does not exist")


def _reject_unknown(cls, kwargs: Dict[str, Any], extra: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
    allowed = ({f.name for f in fields(cls)} | set(extra)) - set(exclude)
    unknown = set(kwargs) - allowed
    if unknown:
        raise InvalidOperation(f"Unknown {cls.__name__.lower()} fields: {', '.join(sorted(unknown))}")


class MoveRoomOp:
    """Translate a room by a world-space delta (proximity and grid snapped)."""

    def precheck(self, session: LayoutSession, room: str, dx: float = 0, dy: float = 0, **kwargs: Any) -> bool:
        _require_editable_room(session, room)
        return True

    def apply(self, session: LayoutSession, room: str, dx: float = 0, dy: float = 0, **kwargs: Any):
        return session.move_room(room, dx, dy)


class ResizeRoomOp:
    """Drag one of the eight resize handles of a room by a world-space delta."""

    def precheck(
        self, session: LayoutSession, room: str, handle: str, dx: float = 0, dy: float = 0, **kwargs: Any
    ) -> bool:
        _require_editable_room(session, room)
        try:
            ResizeHandle(handle)
        except ValueError:
            raise InvalidOperation(f"Unknown resize handle: {handle}")
        return True

    def apply(self, session: LayoutSession, room: str, handle: str, dx: float = 0, dy: float = 0, **kwargs: Any):
        return session.resize_room(room, ResizeHandle(handle), dx, dy)


class CreateRoomOp:
    """Create a room from explicit edges, or default-sized around ``x``/``y``.

    Parameters are either ``start_x``/``end_x``/``start_y``/``end_y`` or
    ``x``/``y`` (center). Other keyword arguments become Room fields.
    """

    _EDGES = ("start_x", "end_x", "start_y", "end_y")

    def precheck(self, session: LayoutSession, **kwargs: Any) -> bool:
        _reject_unknown(Room, kwargs, extra=("x", "y"))
        has_edges = all(k in kwargs for k in self._EDGES)
        has_center = "x" in kwargs and "y" in kwargs
        if not (has_edges or has_center):
            raise InvalidOperation("create_room needs start_x/end_x/start_y/end_y or x/y")
        if kwargs.get("id") in session.rooms:
            raise InvalidOperation(f"Room '{kwargs['id']}' already exists")
        return True

    def apply(self, session: LayoutSession, **kwargs: Any):
        attrs = dict(kwargs)
        room_id = attrs.pop("id", None)
        floor = attrs.pop("floor", None)
        if all(k in attrs for k in self._EDGES):
            rect = Rect(*(attrs.pop(k) for k in self._EDGES))
            attrs.pop("x", None)
            attrs.pop("y", None)
        else:
            size = session.config.default_room_size
            rect = Rect.from_center(attrs.pop("x"), attrs.pop("y"), size, size)
        return session.create_room(rect, floor=floor, room_id=room_id, **attrs)


class DeleteRoomOp:
    """Delete a room and cascade to its connectors and furniture."""

    def precheck(self, session: LayoutSession, room: str, **kwargs: Any) -> bool:
        session.require_room(room)
        return True

    def apply(self, session: LayoutSession, room: str, **kwargs: Any):
        return session.delete_room(room)


class CreateConnectorOp:
    """Create a connector on the shared boundary of two rooms."""

    def precheck(
        self, session: LayoutSession, from_room: str, to_room: str, x: float, y: float, **kwargs: Any
    ) -> bool:
        _reject_unknown(Connector, kwargs, exclude=("from_room", "to_room", "x", "y"))
        if from_room == to_room:
            raise InvalidOperation(f"Connector must link two different rooms, got '{from_room}' twice")
        session.require_room(from_room)
        session.require_room(to_room)
        return True

    def apply(self, session: LayoutSession, from_room: str, to_room: str, x: float, y: float, **kwargs: Any):
        return session.create_connector(from_room, to_room, x, y, **kwargs)


class MoveConnectorOp:
    def precheck(self, session: LayoutSession, connector: str, dx: float = 0, dy: float = 0, **kwargs: Any) -> bool:
        _require(session, EntityKind.CONNECTOR, connector)
        return True

    def apply(self, session: LayoutSession, connector: str, dx: float = 0, dy: float = 0, **kwargs: Any):
        return session.move_connector(connector, dx, dy)


class DeleteConnectorOp:
    def precheck(self, session: LayoutSession, connector: str, **kwargs: Any) -> bool:
        _require(session, EntityKind.CONNECTOR, connector)
        return True

    def apply(self, session: LayoutSession, connector: str, **kwargs: Any):
        return session.delete_connector(connector)


class CreateFurnitureOp:
    """Place a furniture item; ``x``/``y`` are room-relative unless ``world`` is set."""

    def precheck(self, session: LayoutSession, room: str, **kwargs: Any) -> bool:
        _reject_unknown(Furniture, kwargs, extra=("world",), exclude=("room_id",))
        session.require_room(room)
        if kwargs.get("id") in session.furniture:
            raise InvalidOperation(f"Furniture '{kwargs['id']}' already exists")
        return True

    def apply(self, session: LayoutSession, room: str, **kwargs: Any):
        return session.create_furniture(room, **kwargs)


class MoveFurnitureOp:
    def precheck(self, session: LayoutSession, furniture: str, dx: float = 0, dy: float = 0, **kwargs: Any) -> bool:
        _require(session, EntityKind.FURNITURE, furniture)
        return True

    def apply(self, session: LayoutSession, furniture: str, dx: float = 0, dy: float = 0, **kwargs: Any):
        return session.move_furniture(furniture, dx, dy)


class DeleteFurnitureOp:
    def precheck(self, session: LayoutSession, furniture: str, **kwargs: Any) -> bool:
        _require(session, EntityKind.FURNITURE, furniture)
        return True

    def apply(self, session: LayoutSession, furniture: str, **kwargs: Any):
        return session.delete_furniture(furniture)


class PatchOp:
    """Apply a property patch to any entity (the property-editor path).

    Example::

        {"op": "patch", "kind": "connector", "id": "door_1", "set": {"state": "open"}}
    """

    def precheck(
        self, session: LayoutSession, kind: str, id: str, set: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> bool:
        try:
            entity_kind = EntityKind(kind)
        except ValueError:
            raise InvalidOperation(f"Unknown entity kind: {kind}")
        _require(session, entity_kind, id)
        if not set:
            raise InvalidOperation("patch needs a non-empty 'set' mapping")
        return True

    def apply(
        self, session: LayoutSession, kind: str, id: str, set: Optional[Dict[str, Any]] = None, **kwargs: Any
    ):
        return session.apply_patch(EntityKind(kind), id, set or {})


# Registry of available operations
_OPERATIONS: Dict[str, Operation] = {
    "move_room": MoveRoomOp(),
    "resize_room": ResizeRoomOp(),
    "create_room": CreateRoomOp(),
    "delete_room": DeleteRoomOp(),
    "create_connector": CreateConnectorOp(),
    "move_connector": MoveConnectorOp(),
    "delete_connector": DeleteConnectorOp(),
    "create_furniture": CreateFurnitureOp(),
    "move_furniture": MoveFurnitureOp(),
    "delete_furniture": DeleteFurnitureOp(),
    "patch": PatchOp(),
}


def register_operation(name: str, operation: Operation) -> None:
    """Register a new operation in the registry.

    Args:
        name: Name of the operation.
        operation: Operation instance to register.
    """
    _OPERATIONS[name] = operation


def get_operation(name: str) -> Operation:
    """Get an operation by name.

    Raises:
        KeyError: If the operation is not registered.
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Operation '{name}' is not registered")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    return list(_OPERATIONS.keys())
