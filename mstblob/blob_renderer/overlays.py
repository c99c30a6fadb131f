"""Debug overlays: sampled points and spanning-tree edges.

Overlay pixels take a fixed gray and bypass classification:
    - points: 0.75 where the squared distance to a point is < point_thickness_sq²
    - edges:  0.50 where the squared distance to a tree segment is
              < edge_thickness_sq² (and no point was drawn)
    - 0.0 elsewhere, meaning "use the classified kernel field"

Both tests compare a squared distance against the square of a "thickness
squared" constant. The constants scale with min_spacing / 0.05.
"""

from typing import Sequence

import numpy as np

from mstblob.utils import compute

from .kernel_rasterizer import segment_arrays
from .sampler import Point, points_array
from .spanning_tree import SpanningTree

POINT_VALUE = 0.75
EDGE_VALUE = 0.5


def render_overlays(
    points: Sequence[Point],
    tree: SpanningTree,
    config
) -> np.ndarray:
    """Rasterize the enabled debug overlays.

    Parameters
    ----------
    points : Sequence[Point]
        Sampled points
    tree : SpanningTree
        Spanning tree over points
    config : BlobConfigV1
        Uses resolution, zoom_out, debug flags and thickness constants

    Returns
    -------
    np.ndarray
        (resolution, resolution) float64 with POINT_VALUE, EDGE_VALUE or 0
    """
    res = config.resolution
    overlay = np.zeros((res, res), dtype=np.float64)
    if not (config.debug.view_points or config.debug.view_edges):
        return overlay

    axis = compute.px_to_normalized(np.arange(res, dtype=np.float64), res, config.zoom_out)
    xx = axis[None, :]
    yy = axis[:, None]

    if config.debug.view_points and len(points):
        limit = config.point_thickness_sq * config.point_thickness_sq
        hit = np.zeros((res, res), dtype=bool)
        for px, py in points_array(points):
            dx = px - xx
            dy = py - yy
            hit |= (dx * dx + dy * dy) < limit
        overlay[hit] = POINT_VALUE

    if config.debug.view_edges and len(tree):
        limit = config.edge_thickness_sq * config.edge_thickness_sq
        hit = np.zeros((res, res), dtype=bool)
        for ax, ay, dx, dy in segment_arrays(points, tree):
            norm = dx * dx + dy * dy
            t = np.clip(((xx - ax) * dx + (yy - ay) * dy) / norm, 0.0, 1.0)
            sx = ax + t * dx
            sy = ay + t * dy
            hit |= ((xx - sx) ** 2 + (yy - sy) ** 2) < limit
        overlay[hit & (overlay == 0)] = EDGE_VALUE

    return overlay
