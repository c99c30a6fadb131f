"""Tensor backend for the kernel rasterizer (torch, CPU or CUDA).

Evaluates the same closed-form integral as kernel_rasterizer.py, but
broadcasts each row chunk against all edges at once: (rows, W, E) in
float64, summed over E. No per-edge windowing, which suits GPUs.

Parity with the numpy reference is tested to floating tolerance
(tests/test_parity_numpy_vs_torch.py); summation order over edges differs,
so results are not bit-identical across backends.
"""

import logging
from typing import Sequence

import numpy as np
import torch

from mstblob.utils import compute

from .kernel_rasterizer import segment_arrays
from .sampler import Point
from .spanning_tree import SpanningTree

logger = logging.getLogger(__name__)


def segment_kernel_integral_torch(
    seg: torch.Tensor,
    px: torch.Tensor,
    py: torch.Tensor,
    radius: float
) -> torch.Tensor:
    """Per-pixel sum of kernel integrals over all segments.

    Parameters
    ----------
    seg : torch.Tensor
        (E, 4) float64 [ax, ay, dx, dy]
    px : torch.Tensor
        (1, W) column positions (normalized)
    py : torch.Tensor
        (h, 1) row positions (normalized)
    radius : float
        Kernel radius R (> 0)

    Returns
    -------
    torch.Tensor
        (h, W) float64 field values
    """
    ax, ay, dx, dy = (seg[:, k].reshape(1, 1, -1) for k in range(4))
    rx = ax - px.unsqueeze(-1)
    ry = ay - py.unsqueeze(-1)

    qa = dx * dx + dy * dy
    qb = 2 * (dx * rx + dy * ry)
    qc = rx * rx + ry * ry - radius * radius
    disc = qb * qb - 4 * qa * qc

    hit = disc >= 0
    root = torch.sqrt(torch.where(hit, disc, torch.zeros_like(disc)))
    t1 = (-qb - root) / (2 * qa)
    t2 = (-qb + root) / (2 * qa)
    hit = hit & (t2 > 0) & (t1 < 1)

    t1 = torch.clamp(t1, min=0.0)
    t2 = torch.clamp(t2, max=1.0)

    def antiderivative(t):
        return t * (t * (t * (t * (t * qa * qa / 5 + qa * qb / 2) + (2 * qa * qc + qb * qb) / 3) + qb * qc) + qc * qc)

    integral = antiderivative(t2) - antiderivative(t1)
    r5 = radius * radius * radius * radius * radius
    contrib = torch.where(hit, integral / r5 * torch.sqrt(qa), torch.zeros_like(integral))
    return contrib.sum(dim=-1)


class TorchKernelRasterizer:
    """Row-chunked tensor rasterizer; same interface as KernelRasterizer.

    Chunks are additionally capped so one (rows, W, E) temporary stays below
    MAX_CHUNK_ELEMENTS.
    """

    backend = "torch"
    MAX_CHUNK_ELEMENTS = 1 << 22

    def __init__(self, config):
        self.resolution = config.resolution
        self.radius = config.kernel_radius
        self.zoom_out = config.zoom_out
        self.rows_per_chunk = config.render.rows_per_chunk
        self.device = torch.device(config.render.device)

        axis = compute.px_to_normalized(
            np.arange(self.resolution, dtype=np.float64), self.resolution, self.zoom_out
        )
        self.axis = torch.from_numpy(axis).to(self.device)

    def rasterize(self, points: Sequence[Point], tree: SpanningTree) -> np.ndarray:
        """Compute the scalar field; returns a numpy (res, res) float64 array."""
        segments = segment_arrays(points, tree)
        if len(segments) == 0 or self.radius <= 0.0:
            logger.warning("Empty spanning tree or zero kernel radius: kernel field is zero everywhere")
            return np.zeros((self.resolution, self.resolution), dtype=np.float64)

        seg = torch.from_numpy(segments).to(self.device)
        field = torch.zeros((self.resolution, self.resolution), dtype=torch.float64, device=self.device)
        px = self.axis.view(1, -1)

        with torch.no_grad():
            per_row = self.resolution * len(segments)
            rows_per_chunk = max(1, min(self.rows_per_chunk, self.MAX_CHUNK_ELEMENTS // per_row))
            for rows in compute.row_chunks(self.resolution, rows_per_chunk):
                py = self.axis[rows].view(-1, 1)
                field[rows] = segment_kernel_integral_torch(seg, px, py, self.radius)

        compute.assert_finite(field, "kernel field")
        logger.debug(f"Rasterized {len(segments)} edges on {self.device} at {self.resolution}px")
        return field.cpu().numpy()
