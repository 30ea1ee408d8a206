"""Invariant checks and error types for the layout engine.

Geometry violations are corrected locally and reported as
``GeometryWarning`` records. Invariant checks in this module are used to
audit a whole layout (CLI ``check``, tests) and by ``validate_all``,
which raises ``InvalidOperation`` on the first failing rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional

from ..core.model import Layout, VALID_ROTATIONS
from ..core.topology import build_room_graph, isolated_rooms
from ..geom.collision import is_within_bounds, overlaps


class InvalidOperation(Exception):
    """Raised when an operation violates layout invariants."""

    pass


class PersistenceError(Exception):
    """Raised by a persistence store when a request could not be carried out."""

    pass


class CommitError(PersistenceError):
    """Raised when a commit was rejected and the session reverted the entity."""

    def __init__(self, entity_id: str, message: str):
        super().__init__(message)
        self.entity_id = entity_id


@dataclass(frozen=True)
class GeometryWarning:
    """A geometry violation that was auto-corrected (or could not be).

    Attributes:
        kind: "collision", "out_of_bounds", "min_size" or "unresolved".
        entity_id: ID of the affected entity.
        message: Human-readable description for a UI layer.
    """

    kind: str
    entity_id: str
    message: str


@dataclass(frozen=True)
class Violation:
    """An invariant that does not hold in a layout."""

    rule: str
    entity_ids: tuple[str, ...]
    message: str


def find_room_overlaps(layout: Layout) -> List[Violation]:
    """Report pairs of rooms on the same floor whose rectangles overlap."""
    violations = []
    rooms = sorted(layout.rooms.values(), key=lambda r: r.id)
    for a, b in combinations(rooms, 2):
        if a.floor == b.floor and overlaps(a, b):
            violations.append(
                Violation("room_overlap", (a.id, b.id), f"Rooms '{a.id}' and '{b.id}' overlap")
            )
    return violations


def find_undersized_rooms(layout: Layout, min_size: float) -> List[Violation]:
    violations = []
    for room in sorted(layout.rooms.values(), key=lambda r: r.id):
        if room.width < min_size or room.height < min_size:
            violations.append(
                Violation(
                    "min_size",
                    (room.id,),
                    f"Room '{room.id}' is {room.width}x{room.height}, minimum is {min_size}",
                )
            )
    return violations


def find_dangling_references(layout: Layout) -> List[Violation]:
    """Report connectors and furniture pointing at missing rooms."""
    violations = []
    for connector in sorted(layout.connectors.values(), key=lambda c: c.id):
        if connector.from_room == connector.to_room:
            violations.append(
                Violation(
                    "self_connector",
                    (connector.id,),
                    f"Connector '{connector.id}' references room '{connector.from_room}' twice",
                )
            )
        for room_id in (connector.from_room, connector.to_room):
            if room_id not in layout.rooms:
                violations.append(
                    Violation(
                        "dangling_reference",
                        (connector.id, room_id),
                        f"Connector '{connector.id}' references missing room '{room_id}'",
                    )
                )
        if connector.rotation not in VALID_ROTATIONS:
            violations.append(
                Violation(
                    "rotation",
                    (connector.id,),
                    f"Connector '{connector.id}' has invalid rotation {connector.rotation}",
                )
            )

    for item in sorted(layout.furniture.values(), key=lambda f: f.id):
        if item.room_id not in layout.rooms:
            violations.append(
                Violation(
                    "dangling_reference",
                    (item.id, item.room_id),
                    f"Furniture '{item.id}' references missing room '{item.room_id}'",
                )
            )
    return violations


def find_furniture_violations(layout: Layout) -> List[Violation]:
    """Report furniture outside its room or overlapping a sibling."""
    violations = []
    by_room: Dict[str, list] = {}
    for item in sorted(layout.furniture.values(), key=lambda f: f.id):
        room = layout.rooms.get(item.room_id)
        if room is None:
            continue
        by_room.setdefault(room.id, []).append(item)
        if not is_within_bounds(item.rect, room.half_extents):
            violations.append(
                Violation(
                    "furniture_bounds",
                    (item.id, room.id),
                    f"Furniture '{item.id}' extends outside room '{room.id}'",
                )
            )

    for room_id, items in by_room.items():
        for a, b in combinations(items, 2):
            if overlaps(a.rect, b.rect):
                violations.append(
                    Violation(
                        "furniture_overlap",
                        (a.id, b.id),
                        f"Furniture '{a.id}' and '{b.id}' overlap in room '{room_id}'",
                    )
                )
    return violations


def find_violations(layout: Layout, min_size: float) -> List[Violation]:
    """Run every invariant check on a layout."""
    return (
        find_room_overlaps(layout)
        + find_undersized_rooms(layout, min_size)
        + find_dangling_references(layout)
        + find_furniture_violations(layout)
    )


def find_isolated_rooms(layout: Layout, floor: Optional[int] = None) -> List[str]:
    """Rooms without any connector. Informational, not an invariant."""
    graph = build_room_graph(layout.rooms.values(), layout.connectors.values(), floor)
    return isolated_rooms(graph)


def validate_all(layout: Layout, min_size: float) -> bool:
    """Run all validators on the layout.

    Returns:
        True if all validations pass.

    Raises:
        InvalidOperation: If any validation fails, with details about the failure.
    """
    violations = find_violations(layout, min_size)
    if violations:
        raise InvalidOperation(
            f"Layout validation failed: {violations[0].message}"
            + (f" (and {len(violations) - 1} more)" if len(violations) > 1 else "")
        )
    return True
