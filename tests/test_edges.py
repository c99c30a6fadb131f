"""Test edge enumeration and sorting.

Tests for mstblob.blob_renderer.edges:
    - One edge per unordered pair, weights are squared distances
    - Sorted order is non-decreasing and keeps duplicate weights
    - Ties keep (a, b) lexicographic order
    - Weights closer than 1 apart are still ordered (no integer truncation)
    - Self-edges and non-finite weights rejected

Run:
    pytest tests/test_edges.py -v
"""

import pytest

from mstblob.blob_renderer.edges import (
    NO_GROUP,
    REJECTED,
    Edge,
    enumerate_edges,
    sort_edges,
)
from mstblob.blob_renderer.sampler import Point, sample_points


@pytest.fixture
def square_points():
    """Unit-spaced square: four equal sides, two equal diagonals."""
    return (
        Point(0, 0.4, 0.4),
        Point(1, 0.6, 0.4),
        Point(2, 0.6, 0.6),
        Point(3, 0.4, 0.6),
    )


# ============================================================================
# ENUMERATION
# ============================================================================

def test_edge_count_is_n_choose_2():
    pts = sample_points(13, 0.1)
    n = len(pts)
    assert len(enumerate_edges(pts)) == n * (n - 1) // 2


@pytest.mark.parametrize("n", [0, 1])
def test_degenerate_point_sets_have_no_edges(n):
    pts = tuple(Point(i, 0.5, 0.5) for i in range(n))
    assert enumerate_edges(pts) == []


def test_weights_are_squared_distances(square_points):
    edges = {(e.a, e.b): e.weight for e in enumerate_edges(square_points)}
    assert edges[(0, 1)] == pytest.approx(0.04)
    assert edges[(0, 2)] == pytest.approx(0.08)


def test_enumeration_is_lexicographic(square_points):
    pairs = [(e.a, e.b) for e in enumerate_edges(square_points)]
    assert pairs == [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]


def test_new_edges_are_ungrouped(square_points):
    assert all(e.group == NO_GROUP for e in enumerate_edges(square_points))


def test_self_edge_rejected():
    with pytest.raises(ValueError):
        Edge(3, 3, 0.0)


def test_edge_status_flags():
    e = Edge(0, 1, 0.1)
    assert not e.accepted and not e.rejected
    e.group = REJECTED
    assert e.rejected and not e.accepted
    e.group = 0
    assert e.accepted


# ============================================================================
# SORTING
# ============================================================================

def test_sorted_is_non_decreasing():
    edges = sort_edges(enumerate_edges(sample_points(21, 0.08)))
    weights = [e.weight for e in edges]
    assert all(w0 <= w1 for w0, w1 in zip(weights, weights[1:]))


def test_sort_keeps_duplicates():
    edges = [Edge(0, 1, 0.5), Edge(0, 2, 0.1), Edge(1, 2, 0.5), Edge(2, 3, 0.3)]
    out = sort_edges(edges)
    assert len(out) == len(edges)
    assert [e.weight for e in out] == [0.1, 0.3, 0.5, 0.5]


def test_ties_keep_enumeration_order(square_points):
    out = sort_edges(enumerate_edges(square_points))
    sides = [(e.a, e.b) for e in out[:4]]
    diagonals = [(e.a, e.b) for e in out[4:]]
    assert sides == [(0, 1), (0, 3), (1, 2), (2, 3)]
    assert diagonals == [(0, 2), (1, 3)]


def test_sub_unit_differences_ordered():
    """Weights in [0, 2] differ by far less than 1 and must still sort."""
    edges = [Edge(0, 1, 0.3), Edge(0, 2, 0.2), Edge(1, 2, 1e-9), Edge(1, 3, 2e-9)]
    out = sort_edges(edges)
    assert [e.weight for e in out] == [1e-9, 2e-9, 0.2, 0.3]


def test_sort_returns_same_objects():
    edges = [Edge(0, 1, 0.2), Edge(0, 2, 0.1)]
    out = sort_edges(edges)
    assert out[0] is edges[1] and out[1] is edges[0]
    assert [e.weight for e in edges] == [0.2, 0.1]


def test_sort_empty():
    assert sort_edges([]) == []


def test_non_finite_weight_rejected():
    with pytest.raises(ValueError):
        sort_edges([Edge(0, 1, float("nan")), Edge(0, 2, 0.1)])
