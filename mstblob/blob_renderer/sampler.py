"""Point sampler: relaxed Poisson-disk sampling inside a disk.

Draws `max_attempts` candidates from a seeded numpy RandomState (two uniform
doubles per attempt, x then y) and keeps a candidate only if it lies inside
the disk of radius 0.5 centered at (0.5, 0.5) and is at least `min_spacing`
away from every point accepted before it. This is rejection sampling, not
optimal packing: the accepted count depends on the seed.

Invariants:
    - Same (seed, min_spacing, max_attempts) → identical points in identical order
    - Point ids are 0..n-1 in acceptance order and are the only identity used
      downstream (edges, union-find, overlays)
    - The sampler is the only consumer of randomness in the pipeline
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DISK_CENTER = (0.5, 0.5)
DISK_RADIUS_SQ = 0.25
PACKING_DENSITY = 0.9069
ATTEMPT_BLOCK = 1 << 16


@dataclass(frozen=True)
class Point:
    """Immutable sample point in normalized [0,1]² space."""
    id: int
    x: float
    y: float


def default_max_attempts(min_spacing: float) -> int:
    """floor(1 / min_spacing²): expected coverage scales with the spacing."""
    if min_spacing <= 0:
        raise ValueError(f"min_spacing must be > 0, got {min_spacing}")
    return int(1.0 / (min_spacing * min_spacing))


def sample_points(
    seed: int,
    min_spacing: float,
    max_attempts: Optional[int] = None
) -> Tuple[Point, ...]:
    """Sample points inside the unit-square-inscribed disk with minimum spacing.

    Parameters
    ----------
    seed : int
        RandomState seed (0 <= seed < 2**32)
    min_spacing : float
        Minimum distance between accepted points (> 0)
    max_attempts : int, optional
        Number of candidates to draw; defaults to default_max_attempts()

    Returns
    -------
    tuple[Point, ...]
        Accepted points, ids 0..n-1 in acceptance order (possibly empty)

    Raises
    ------
    ValueError
        If min_spacing <= 0 or max_attempts < 0
    """
    if min_spacing <= 0:
        raise ValueError(f"min_spacing must be > 0, got {min_spacing}")
    if max_attempts is None:
        max_attempts = default_max_attempts(min_spacing)
    if max_attempts < 0:
        raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")

    rng = np.random.RandomState(seed)
    spacing_sq = min_spacing * min_spacing
    cx, cy = DISK_CENTER

    # Hexagonal packing density over the disk area; grown on demand
    capacity = min(max_attempts, int(PACKING_DENSITY / 4.0 / spacing_sq) + 1)
    accepted = np.empty((capacity, 2), dtype=np.float64)
    n = 0

    for start in range(0, max_attempts, ATTEMPT_BLOCK):
        # Row-major (block, 2) consumes the stream as x0, y0, x1, y1, ...
        block = rng.random_sample((min(ATTEMPT_BLOCK, max_attempts - start), 2))
        for x, y in block:
            if (x - cx) * (x - cx) + (y - cy) * (y - cy) > DISK_RADIUS_SQ:
                continue
            if n:
                dx = accepted[:n, 0] - x
                dy = accepted[:n, 1] - y
                if np.any(dx * dx + dy * dy < spacing_sq):
                    continue
            if n == len(accepted):
                accepted = np.concatenate([accepted, np.empty_like(accepted)])
            accepted[n, 0] = x
            accepted[n, 1] = y
            n += 1

    points = tuple(Point(i, float(accepted[i, 0]), float(accepted[i, 1])) for i in range(n))
    logger.info(f"Generated points: {n} (attempts={max_attempts}, min_spacing={min_spacing})")
    return points


def points_array(points: Sequence[Point]) -> np.ndarray:
    """Stack points into an (n, 2) float64 array indexed by point id."""
    arr = np.zeros((len(points), 2), dtype=np.float64)
    for p in points:
        arr[p.id, 0] = p.x
        arr[p.id, 1] = p.y
    return arr
