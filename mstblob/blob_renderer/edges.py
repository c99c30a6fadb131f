"""Edge enumeration and sorting for Kruskal's algorithm.

Every unordered pair of sampled points becomes a candidate Edge weighted by
squared Euclidean distance (a monotonic surrogate for distance: fine for
ordering, not for summing into lengths). The complete candidate graph is
what guarantees the spanning tree reaches every point.

Ordering:
    - Ascending weight, compared as floats (no truncation of differences)
    - Stable: exactly equal weights keep enumeration order, i.e. (a, b)
      lexicographic, so repeated runs order ties identically

Complexity: O(n²) edges, O(n² log n) sort. Intended for up to a few
thousand points.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .sampler import Point, points_array

logger = logging.getLogger(__name__)

NO_GROUP = -1
REJECTED = -2


@dataclass
class Edge:
    """Candidate connection between two point ids.

    `group` is written only by the spanning-tree builder: NO_GROUP until
    processed, the component label at acceptance, or REJECTED.
    """
    a: int
    b: int
    weight: float
    group: int = NO_GROUP

    def __post_init__(self):
        if self.a == self.b:
            raise ValueError(f"Edge endpoints must differ, got a=b={self.a}")

    @property
    def accepted(self) -> bool:
        return self.group >= 0

    @property
    def rejected(self) -> bool:
        return self.group == REJECTED


def enumerate_edges(points: Sequence[Point]) -> List[Edge]:
    """Build one Edge per unordered pair (i < j), in lexicographic order.

    Parameters
    ----------
    points : Sequence[Point]
        Sampled points with ids 0..n-1

    Returns
    -------
    list[Edge]
        n(n-1)/2 edges; empty for n <= 1
    """
    n = len(points)
    if n < 2:
        return []

    xy = points_array(points)
    ii, jj = np.triu_indices(n, k=1)
    dx = xy[ii, 0] - xy[jj, 0]
    dy = xy[ii, 1] - xy[jj, 1]
    weights = dx * dx + dy * dy

    edges = [Edge(int(i), int(j), float(w)) for i, j, w in zip(ii, jj, weights)]
    logger.info(f"Generated edges: {len(edges)}")
    return edges


def sort_edges(edges: Sequence[Edge]) -> List[Edge]:
    """Return edges sorted ascending by weight (stable for ties).

    Parameters
    ----------
    edges : Sequence[Edge]
        Candidate edges in enumeration order

    Returns
    -------
    list[Edge]
        New list referencing the same Edge objects
    """
    weights = np.fromiter((e.weight for e in edges), dtype=np.float64, count=len(edges))
    if not np.isfinite(weights).all():
        raise ValueError("Edge weights must be finite")
    order = np.argsort(weights, kind='stable')
    sorted_edges = [edges[k] for k in order]
    logger.debug(f"Sorted edges: {len(sorted_edges)}")
    return sorted_edges
