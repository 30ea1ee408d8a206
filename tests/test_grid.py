import math

import pytest

from mapbuilder.geom.grid import is_aligned, snap, snap_delta, snap_point


@pytest.mark.parametrize(
    "value,resolution,expected",
    [
        (37, 32, 32),
        (48, 32, 64),
        (-48, 32, -64),
        (16, 32, 32),
        (-16, 32, -32),
        (15.9, 32, 0),
        (12, 8, 16),
        (23, 16, 16),
    ],
)
def test_snap_rounds_to_nearest_multiple(value, resolution, expected):
    assert snap(value, resolution) == expected


@pytest.mark.parametrize("value", [-1000.5, -33, -0.4, 0, 3.3, 16, 47.999, 1e6 + 0.5])
@pytest.mark.parametrize("resolution", [8, 16, 32])
def test_snap_is_idempotent(value, resolution):
    once = snap(value, resolution)
    assert snap(once, resolution) == once


def test_snap_normalizes_negative_zero():
    result = snap(-1, 32)
    assert result == 0
    assert math.copysign(1, result) == 1


def test_snap_rejects_non_positive_resolution():
    with pytest.raises(ValueError):
        snap(10, 0)
    with pytest.raises(ValueError):
        snap(10, -8)


def test_snap_point_and_delta():
    assert snap_point(33, -17, 16) == (32, -16)
    assert snap_delta(5, 4, 8) == (8, 8)


def test_is_aligned():
    assert is_aligned(64, 32)
    assert not is_aligned(65, 32)
