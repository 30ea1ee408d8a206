from mapbuilder.core.model import Rect, Room
from mapbuilder.geom.proximity import ProximitySnapper

A = Rect(0, 128, 0, 128)


def test_snaps_flush_against_east_neighbor():
    snapper = ProximitySnapper(threshold=16, grid=32)
    b = Room("b", 0, 140, 268, 0, 128)

    result = snapper.snap_move(A, 8, 0, [b])

    assert result.dx == 12
    assert A.end_x + result.dx == 140
    assert result.x_snap.neighbor_id == "b"
    assert result.y_snap is None
    assert result.dy == 0


def test_falls_back_to_grid_without_nearby_edges():
    snapper = ProximitySnapper(threshold=16, grid=32)
    far = Room("far", 0, 1000, 1128, 0, 128)

    result = snapper.snap_move(A, 20, 5, [far])

    assert (result.dx, result.dy) == (32, 0)
    assert result.x_snap is None and result.y_snap is None


def test_requires_perpendicular_overlap():
    snapper = ProximitySnapper(threshold=16, grid=32)
    # Close on x but entirely below the moving room
    below = Room("below", 0, 140, 268, 200, 328)

    result = snapper.snap_move(A, 8, 0, [below])

    assert result.x_snap is None
    assert result.dx == 0


def test_axes_snap_to_different_neighbors():
    snapper = ProximitySnapper(threshold=16, grid=32)
    east = Room("east", 0, 140, 268, 0, 128)
    south = Room("south", 0, 0, 128, 140, 268)

    result = snapper.snap_move(A, 8, 8, [east, south])

    assert (result.dx, result.dy) == (12, 12)
    assert result.x_snap.neighbor_id == "east"
    assert result.y_snap.neighbor_id == "south"


def test_equal_distances_break_ties_by_id():
    snapper = ProximitySnapper(threshold=16, grid=32)
    z = Room("z", 0, 140, 268, 0, 128)
    m = Room("m", 0, -124, 4, 0, 128)

    # Moved to [8, 136]: both neighbors are 4 units away
    for order in ([z, m], [m, z]):
        result = snapper.snap_move(A, 8, 0, order)
        assert result.x_snap.neighbor_id == "m"
        assert result.dx == 4


def test_threshold_is_inclusive():
    snapper = ProximitySnapper(threshold=4, grid=32)
    b = Room("b", 0, 140, 268, 0, 128)
    assert snapper.snap_move(A, 8, 0, [b]).dx == 12
    assert snapper.snap_move(A, 7, 0, [b]).dx == 0
