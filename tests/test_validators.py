import pytest

from mapbuilder.core.model import Connector, Furniture, Layout, Room
from mapbuilder.core.topology import build_room_graph, connected_groups, isolated_rooms, room_neighbors
from mapbuilder.engine.validators import (
    InvalidOperation,
    find_isolated_rooms,
    find_violations,
    validate_all,
)


def _layout(rooms=(), connectors=(), furniture=()):
    return Layout(
        rooms={r.id: r for r in rooms},
        connectors={c.id: c for c in connectors},
        furniture={f.id: f for f in furniture},
    )


def test_consistent_layout_has_no_violations():
    layout = _layout(
        rooms=[Room("a", 0, 0, 128, 0, 128), Room("b", 0, 128, 256, 0, 128)],
        connectors=[Connector("d", "a", "b", 128, 64, rotation=90)],
        furniture=[Furniture("f", "a", 0, 0)],
    )
    assert find_violations(layout, 32) == []
    assert validate_all(layout, 32)


def test_overlaps_only_count_on_the_same_floor():
    layout = _layout(rooms=[Room("a", 0, 0, 128, 0, 128), Room("b", 0, 64, 192, 0, 128), Room("c", 1, 0, 128, 0, 128)])
    rules = [(v.rule, v.entity_ids) for v in find_violations(layout, 32)]
    assert rules == [("room_overlap", ("a", "b"))]


def test_reference_and_size_violations():
    layout = _layout(
        rooms=[Room("a", 0, 0, 16, 0, 128)],
        connectors=[Connector("d1", "a", "gone", 0, 0), Connector("d2", "a", "a", 0, 0, rotation=45)],
        furniture=[Furniture("f", "gone")],
    )
    rules = sorted(v.rule for v in find_violations(layout, 32))
    assert rules == ["dangling_reference", "dangling_reference", "min_size", "rotation", "self_connector"]


def test_furniture_violations():
    layout = _layout(
        rooms=[Room("a", 0, 0, 64, 0, 64)],
        furniture=[Furniture("f1", "a", 40, 40), Furniture("f2", "a", 0, 0), Furniture("f3", "a", 8, 8)],
    )
    rules = sorted(v.rule for v in find_violations(layout, 32))
    assert rules == ["furniture_bounds", "furniture_overlap"]


def test_validate_all_raises():
    layout = _layout(rooms=[Room("a", 0, 0, 128, 0, 128), Room("b", 0, 64, 192, 0, 128)])
    with pytest.raises(InvalidOperation, match="overlap"):
        validate_all(layout, 32)


def test_room_graph():
    rooms = [Room("a", 0, 0, 128, 0, 128), Room("b", 0, 128, 256, 0, 128), Room("c", 0, 512, 640, 0, 128)]
    connectors = [Connector("d", "a", "b", 128, 64)]
    graph = build_room_graph(rooms, connectors)

    assert isolated_rooms(graph) == ["c"]
    assert connected_groups(graph) == [{"a", "b"}, {"c"}]
    assert room_neighbors(graph) == {"a": ["b"], "b": ["a"], "c": []}
    assert graph.edges["a", "b"]["state"] == "closed"


def test_isolated_rooms_per_floor():
    layout = _layout(
        rooms=[Room("a", 0, 0, 128, 0, 128), Room("up", 1, 0, 128, 0, 128)],
        connectors=[Connector("stairs", "a", "up", 64, 64)],
    )
    assert find_isolated_rooms(layout) == []
    assert find_isolated_rooms(layout, floor=0) == ["a"]
