"""Minimum spanning tree via Kruskal's algorithm with union-find.

Edges are consumed in ascending weight order. An edge is accepted iff its
endpoints are in different components; acceptance merges the components and
appends the edge to the tree. Scanning stops as soon as n-1 edges are
accepted, so edges past that point keep their NO_GROUP marker.

Component tracking uses a disjoint-set forest keyed by point id, with path
compression and union by size (amortized near-constant find/union).

Edge.group after building:
    - accepted: union-find root of the merged component at acceptance time
      (later unions may re-root it; use DisjointSet.find for live membership)
    - REJECTED: would have closed a cycle
    - NO_GROUP: never examined (tree already complete)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .edges import REJECTED, Edge

logger = logging.getLogger(__name__)


class DisjointSet:
    """Union-find over the integers 0..n-1.

    Attributes
    ----------
    parent : list[int]
        Parent pointer per element (roots point to themselves)
    size : list[int]
        Component size, valid at roots only
    n_components : int
        Current number of disjoint components
    """

    def __init__(self, n: int):
        if n < 0:
            raise ValueError(f"DisjointSet size must be >= 0, got {n}")
        self.parent = list(range(n))
        self.size = [1] * n
        self.n_components = n

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, x: int) -> int:
        """Return the representative of x, compressing the path behind it."""
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> int:
        """Merge the components of a and b; return the resulting root.

        The larger component's root survives (ties keep a's root).
        """
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return ra
        if self.size[ra] < self.size[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        self.n_components -= 1
        return ra

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def component_size(self, x: int) -> int:
        return self.size[self.find(x)]


@dataclass
class SpanningTree:
    """Accepted edges in acceptance (ascending weight) order."""
    n_points: int
    edges: List[Edge] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.edges)

    def __iter__(self):
        return iter(self.edges)

    @property
    def total_weight(self) -> float:
        """Sum of squared edge lengths (the quantity Kruskal minimizes here)."""
        return float(sum(e.weight for e in self.edges))

    def is_spanning(self) -> bool:
        """True iff the edges form a tree over all n_points points.

        Checks n-1 edges, no cycle, and a single connected component.
        """
        if self.n_points <= 1:
            return not self.edges
        if len(self.edges) != self.n_points - 1:
            return False
        dsu = DisjointSet(self.n_points)
        for e in self.edges:
            if dsu.connected(e.a, e.b):
                return False
            dsu.union(e.a, e.b)
        return dsu.component_size(0) == self.n_points


def build_spanning_tree(sorted_edges: Sequence[Edge], n_points: int) -> SpanningTree:
    """Run Kruskal's algorithm over pre-sorted candidate edges.

    Parameters
    ----------
    sorted_edges : Sequence[Edge]
        Candidate edges sorted ascending by weight (see edges.sort_edges);
        their `group` fields are updated in place
    n_points : int
        Number of sampled points (ids 0..n_points-1)

    Returns
    -------
    SpanningTree
        Tree with n_points-1 edges when the candidate graph is connected
        (always, for a complete graph); empty for n_points <= 1

    Raises
    ------
    ValueError
        If an edge references a point id outside [0, n_points)
    """
    tree = SpanningTree(n_points=n_points)
    if n_points <= 1:
        logger.info("Generated tree, edges: 0")
        return tree

    target = n_points - 1
    dsu = DisjointSet(n_points)

    for edge in sorted_edges:
        if not (0 <= edge.a < n_points and 0 <= edge.b < n_points):
            raise ValueError(
                f"Edge ({edge.a}, {edge.b}) references a point outside [0, {n_points})"
            )
        if dsu.connected(edge.a, edge.b):
            edge.group = REJECTED
            continue

        edge.group = dsu.union(edge.a, edge.b)
        tree.edges.append(edge)
        if len(tree.edges) == target:
            break

    if len(tree.edges) != target:
        logger.warning(
            f"Candidate graph is disconnected: tree has {len(tree.edges)} edges, "
            f"expected {target}"
        )
    logger.info(f"Generated tree, edges: {len(tree.edges)}")
    return tree
