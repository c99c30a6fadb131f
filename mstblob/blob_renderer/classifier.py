"""Pixel classification and grayscale encoding.

Threshold mode (default): value > threshold → 0 (black, inside the blob),
otherwise 1 (white). Raw mode: value / RAW_NORMALIZATION clamped to [0, 1].

RAW_NORMALIZATION is empirical, not derived from the kernel's analytic
bound; dense trees can exceed it and are clipped to 1.
"""

import numpy as np

RAW_NORMALIZATION = 2.5


def foreground_mask(field: np.ndarray, threshold: float) -> np.ndarray:
    """Pixels classified inside the blob (value strictly above threshold)."""
    return field > threshold


def classify_threshold(field: np.ndarray, threshold: float) -> np.ndarray:
    """Binary intensity: 0.0 for foreground, 1.0 for background."""
    return np.where(foreground_mask(field, threshold), 0.0, 1.0)


def classify_raw(field: np.ndarray) -> np.ndarray:
    """Soft intensity in [0, 1] (high coverage → bright)."""
    return np.clip(field / RAW_NORMALIZATION, 0.0, 1.0)


def classify(field: np.ndarray, threshold: float, raw_output: bool = False) -> np.ndarray:
    """Dispatch on the output mode."""
    if raw_output:
        return classify_raw(field)
    return classify_threshold(field, threshold)


def encode_grayscale(intensity: np.ndarray) -> np.ndarray:
    """Encode [0, 1] intensities as an (H, W, 3) uint8 buffer with R = G = B.

    Rounds half up: floor(v·255 + 0.5).
    """
    v = np.floor(np.clip(intensity, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    return np.repeat(v[:, :, None], 3, axis=2)
