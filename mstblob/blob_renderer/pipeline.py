"""End-to-end blob synthesis: config → pixel buffer.

Stages (sequential, each consumes the previous stage's full output):
    1. sample_points        seeded rejection sampling inside the disk
    2. enumerate/sort_edges complete graph, ascending squared length
    3. build_spanning_tree  Kruskal + union-find
    4. rasterize            analytic kernel integral per pixel (numpy or torch)
    5. classify/encode      threshold or raw → (H, W, 3) uint8 gray

Debug overlays (points > edges) replace the classified field where drawn.
The pipeline never writes files or opens windows; sinks live in
mstblob.utils.fs / mstblob.utils.preview and are driven by the CLI.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from mstblob.utils import hashing, profiler

from . import classifier
from .edges import Edge, enumerate_edges, sort_edges
from .kernel_rasterizer import KernelRasterizer
from .overlays import render_overlays
from .sampler import Point, sample_points
from .spanning_tree import SpanningTree, build_spanning_tree

logger = logging.getLogger(__name__)


@dataclass
class BlobResult:
    """Everything a run produced (read-only by convention)."""
    points: Tuple[Point, ...]
    edges: List[Edge]
    tree: SpanningTree
    field: np.ndarray
    intensity: np.ndarray
    buffer: np.ndarray
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def digest(self) -> str:
        """SHA-256 of the pixel buffer (equal for equal configs)."""
        return hashing.sha256_array(self.buffer)

    def foreground_fraction(self, threshold: float) -> float:
        """Share of pixels whose field value is above threshold."""
        return float(classifier.foreground_mask(self.field, threshold).mean())


def make_rasterizer(config):
    """Instantiate the rasterizer selected by config.render.backend."""
    if config.render.backend == "torch":
        from .torch_rasterizer import TorchKernelRasterizer
        return TorchKernelRasterizer(config)
    return KernelRasterizer(config)


def generate_blob(config) -> BlobResult:
    """Run the full pipeline for one validated configuration.

    Parameters
    ----------
    config : BlobConfigV1
        Frozen configuration (see mstblob.utils.validators)

    Returns
    -------
    BlobResult
        Points, sorted edges, tree, scalar field, intensities, pixel buffer
        and per-stage wall-clock timings
    """
    timings: Dict[str, float] = {}

    def record(name: str, elapsed: float) -> None:
        timings[name] = elapsed
        logger.debug(f"{name}: {elapsed:.3f} s")

    with profiler.timer("sample", sink=record):
        points = sample_points(config.seed, config.min_spacing, config.max_attempts)
    if len(points) <= 1:
        logger.warning(f"Degenerate point set ({len(points)} points): output is background only")

    with profiler.timer("sort", sink=record):
        edges = sort_edges(enumerate_edges(points))

    with profiler.timer("tree", sink=record):
        tree = build_spanning_tree(edges, len(points))

    with profiler.timer("rasterize", sink=record):
        kernel_field = make_rasterizer(config).rasterize(points, tree)

    with profiler.timer("classify", sink=record):
        intensity = classifier.classify(
            kernel_field, config.classify.threshold, config.classify.raw_output
        )
        overlay = render_overlays(points, tree, config)
        intensity = np.where(overlay > 0, overlay, intensity)
        buffer = classifier.encode_grayscale(intensity)

    logger.info(
        f"Generated image: {config.resolution}x{config.resolution}, "
        f"rasterize={timings['rasterize']:.2f} s"
    )
    return BlobResult(
        points=points,
        edges=edges,
        tree=tree,
        field=kernel_field,
        intensity=intensity,
        buffer=buffer,
        timings=timings,
    )
