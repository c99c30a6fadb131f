"""Numerics, pixel/normalized conversions, and row chunking.

Core utilities:
    - Coordinate conversions: px_to_normalized()
    - Work splitting: row_chunks() for the row-parallel rasterizer
    - Finite checks: assert_finite() for numpy arrays and torch tensors

Invariants:
    - Normalized space is [0,1]×[0,1]; the sampling disk is centered at (0.5, 0.5)
    - The raster frame is zoomed out around (0.5, 0.5) by `zoom_out`, so the
      visible square is slightly larger than the unit square
    - Pixel index i samples the left/top edge of its cell (i / resolution),
      not the cell center
"""

from typing import List, Union

import numpy as np
import torch


def px_to_normalized(
    px: Union[np.ndarray, float],
    resolution: int,
    zoom_out: float
) -> Union[np.ndarray, float]:
    """Convert pixel indices to normalized coordinates.

    Parameters
    ----------
    px : np.ndarray or float
        Pixel index (column for x, row for y), any shape
    resolution : int
        Raster width = height in pixels
    zoom_out : float
        Field-of-view scale around the center, 1 + kernel radius

    Returns
    -------
    np.ndarray or float
        ((px / resolution - 0.5) * zoom_out) + 0.5
    """
    return ((px / resolution - 0.5) * zoom_out) + 0.5


def row_chunks(height: int, rows_per_chunk: int) -> List[slice]:
    """Split [0, height) into consecutive disjoint row slices.

    Parameters
    ----------
    height : int
        Number of rows
    rows_per_chunk : int
        Maximum rows per slice (>= 1)

    Returns
    -------
    list[slice]
        Slices covering every row exactly once, in order

    Raises
    ------
    ValueError
        If rows_per_chunk < 1
    """
    if rows_per_chunk < 1:
        raise ValueError(f"rows_per_chunk must be >= 1, got {rows_per_chunk}")
    return [
        slice(start, min(start + rows_per_chunk, height))
        for start in range(0, height, rows_per_chunk)
    ]


def assert_finite(x: Union[np.ndarray, torch.Tensor], name: str = "array") -> None:
    """Assert array or tensor contains no NaN or Inf values.

    Raises
    ------
    ValueError
        If x contains NaN or Inf
    """
    if isinstance(x, torch.Tensor):
        if not torch.isfinite(x).all():
            nan_count = torch.isnan(x).sum().item()
            inf_count = torch.isinf(x).sum().item()
            raise ValueError(
                f"{name} contains non-finite values: {nan_count} NaNs, {inf_count} Infs. "
                f"Shape: {tuple(x.shape)}, dtype: {x.dtype}, device: {x.device}"
            )
        return

    x = np.asarray(x)
    if not np.isfinite(x).all():
        raise ValueError(
            f"{name} contains non-finite values: {int(np.isnan(x).sum())} NaNs, "
            f"{int(np.isinf(x).sum())} Infs. Shape: {x.shape}, dtype: {x.dtype}"
        )
