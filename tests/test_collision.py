import pytest

from mapbuilder.core.model import Rect
from mapbuilder.geom.collision import (
    ResizeHandle,
    clamp_resize,
    find_nearest_valid_position,
    handle_raw_rect,
    is_within_bounds,
    overlapping,
    overlaps,
)

ROOM = Rect(0, 128, 0, 128)


def test_overlaps_is_strict():
    assert overlaps(ROOM, Rect(64, 192, 64, 192))
    assert not overlaps(ROOM, Rect(128, 256, 0, 128)), "Touching edges must not overlap"
    assert not overlaps(ROOM, Rect(128, 256, 128, 256)), "Touching corners must not overlap"
    assert not overlaps(ROOM, Rect(200, 300, 0, 128))


def test_overlapping_filters_obstacles():
    a, b = Rect(100, 200, 0, 50), Rect(300, 400, 0, 50)
    assert overlapping(ROOM, [a, b]) == [a]


def test_search_returns_target_when_free():
    result = find_nearest_valid_position((64, 64), 128, 128, [], step=32)
    assert (result.x, result.y, result.valid, result.rings) == (64, 64, True, 0)


def test_search_moves_to_nearest_free_ring():
    result = find_nearest_valid_position((64, 64), 128, 128, [ROOM], step=32)
    assert result.valid
    assert result.rings == 4
    assert (result.x, result.y) == (64, -64)
    assert not overlaps(Rect.from_center(result.x, result.y, 128, 128), ROOM)


def test_search_gives_up_after_ring_cap():
    wall = Rect(-10_000, 10_000, -10_000, 10_000)
    result = find_nearest_valid_position((5, 7), 32, 32, [wall], step=8, max_rings=2)
    assert not result.valid
    assert (result.x, result.y) == (5, 7)
    assert result.rings == 2


def test_search_respects_bounds():
    # 32x32 item at (40, 40) inside a 64x64 room
    bounds = Rect(-32, 32, -32, 32)
    result = find_nearest_valid_position((40, 40), 32, 32, [], bounds=bounds, step=8)
    assert result.valid
    assert (result.x, result.y) == (16, 16)


def test_search_item_larger_than_bounds():
    result = find_nearest_valid_position((0, 0), 100, 10, [], bounds=Rect(-32, 32, -32, 32), step=8)
    assert not result.valid
    assert result.rings == 0


def test_search_rejects_bad_step():
    with pytest.raises(ValueError):
        find_nearest_valid_position((0, 0), 10, 10, [], step=0)


def test_within_bounds():
    assert is_within_bounds(Rect(-16, 16, -16, 16), (32, 32))
    assert is_within_bounds(Rect(0, 32, 0, 32), (32, 32)), "Touching the wall is allowed"
    assert not is_within_bounds(Rect(24, 56, 24, 56), (32, 32))


def test_west_handle_clamps_to_min_size():
    raw = handle_raw_rect(ResizeHandle.WEST, ROOM, 118, 0)
    assert raw.width == 10
    rect = clamp_resize(ResizeHandle.WEST, ROOM, raw, 32)
    assert rect.width == 32
    assert rect.end_x == 128, "The opposite edge must not move"
    assert rect.start_x == 96


def test_east_handle_clamps_to_min_size():
    raw = handle_raw_rect(ResizeHandle.EAST, ROOM, -200, 0)
    rect = clamp_resize(ResizeHandle.EAST, ROOM, raw, 32)
    assert (rect.start_x, rect.end_x) == (0, 32)


def test_corner_handle_clamps_both_axes():
    raw = handle_raw_rect(ResizeHandle.NORTH_EAST, ROOM, -120, 120)
    rect = clamp_resize(ResizeHandle.NORTH_EAST, ROOM, raw, 32)
    assert rect == Rect(0, 32, 96, 128)


def test_clamp_only_moves_handle_edges():
    rect = clamp_resize("n", ROOM, Rect(50, 60, -10, 999), 32)
    assert rect == Rect(0, 128, -10, 128)


@pytest.mark.parametrize(
    "handle,expected",
    [
        ("n", Rect(0, 128, 10, 128)),
        ("s", Rect(0, 128, 0, 138)),
        ("e", Rect(0, 138, 0, 128)),
        ("w", Rect(10, 128, 0, 128)),
        ("se", Rect(0, 138, 0, 138)),
        ("nw", Rect(10, 128, 10, 128)),
    ],
)
def test_handle_raw_rect_moves_implied_edges(handle, expected):
    assert handle_raw_rect(handle, ROOM, 10, 10) == expected
