"""MST blob: procedural blob images from minimum spanning trees.

This package samples points in a disk, connects them with a minimum
spanning tree, and rasterizes the tree by integrating a radial kernel along
every edge analytically, then thresholds the result into a blob mask.

Architecture layers (strict one-way dependency):
    scripts/ → mstblob/blob_renderer/ → mstblob/utils/

Key invariants:
    - Geometry in normalized [0,1]² space; pixels only at the raster boundary
    - One frozen config object, passed explicitly to every stage
    - Deterministic: same config → byte-identical pixel buffer
    - YAML-only configs
"""

__version__ = "1.0.0"
