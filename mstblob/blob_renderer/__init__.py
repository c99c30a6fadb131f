"""Blob synthesis core.

Modules:
    - sampler: seeded rejection sampling of points in a disk
    - edges: complete-graph edge enumeration and stable weight sort
    - spanning_tree: union-find and Kruskal's algorithm
    - kernel_rasterizer: analytic (R² − d²)² integral per pixel (numpy)
    - torch_rasterizer: same integral on tensors (CPU/CUDA)
    - overlays: debug drawing of points and tree edges
    - classifier: threshold/raw classification and grayscale encoding
    - pipeline: generate_blob(config) → BlobResult

Invariants:
    - Point identity is the integer id assigned at sampling
    - Only the sampler consumes randomness
    - The pixel loop has no cross-pixel state and may run on a thread pool
"""

from .classifier import RAW_NORMALIZATION, classify, encode_grayscale
from .edges import NO_GROUP, REJECTED, Edge, enumerate_edges, sort_edges
from .kernel_rasterizer import KernelRasterizer, segment_kernel_integral
from .pipeline import BlobResult, generate_blob, make_rasterizer
from .sampler import Point, sample_points
from .spanning_tree import DisjointSet, SpanningTree, build_spanning_tree

__all__ = [
    'RAW_NORMALIZATION', 'classify', 'encode_grayscale',
    'NO_GROUP', 'REJECTED', 'Edge', 'enumerate_edges', 'sort_edges',
    'KernelRasterizer', 'segment_kernel_integral',
    'BlobResult', 'generate_blob', 'make_rasterizer',
    'Point', 'sample_points',
    'DisjointSet', 'SpanningTree', 'build_spanning_tree',
]
