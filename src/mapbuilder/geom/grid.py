"""Grid snapping.

Each entity class snaps at its own resolution (rooms coarse, connectors
medium, furniture fine). Snapping is applied to drag deltas so that a
sub-grid pointer motion keeps the entity aligned relative to its origin.
"""

from __future__ import annotations

import math

# Absorbs float noise such as 0.1 + 0.2 when dividing by the resolution
_ROUND_EPSILON = 1e-9


def snap(value: float, resolution: float) -> float:
    """Quantize a value to the nearest multiple of ``resolution``.

    Halves round away from zero, so snapping is symmetric for positive and
    negative deltas. The result is idempotent: ``snap(snap(x, r), r)``
    equals ``snap(x, r)``.

    Raises:
        ValueError: If the resolution is not positive.
    """
    if resolution <= 0:
        raise ValueError(f"Grid resolution must be positive, got {resolution}")

    steps = value / resolution
    rounded = math.copysign(math.floor(abs(steps) + 0.5 + _ROUND_EPSILON), steps)
    result = rounded * resolution
    # Normalize -0.0
    return result + 0.0


def snap_point(x: float, y: float, resolution: float) -> tuple[float, float]:
    return snap(x, resolution), snap(y, resolution)


def snap_delta(dx: float, dy: float, resolution: float) -> tuple[float, float]:
    """Snap a drag delta. Alias of ``snap_point`` kept for call-site clarity."""
    return snap_point(dx, dy, resolution)


def is_aligned(value: float, resolution: float) -> bool:
    return math.isclose(snap(value, resolution), value, abs_tol=1e-9)
