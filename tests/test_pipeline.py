"""Test the end-to-end blob pipeline.

Tests for mstblob.blob_renderer.pipeline:
    - Same config → identical pixel buffer and digest
    - Different seed → different image
    - Buffer is (res, res, 3) uint8 gray, black/white in threshold mode
    - Degenerate point sets (0 or 1 point) → all-white image
    - Foreground shrinks as the threshold rises over a generated field
    - Raw mode encodes the clamped normalized field
    - Overlay pixels replace classified pixels
    - Backend selection (numpy / torch)

Run:
    pytest tests/test_pipeline.py -v
"""

import numpy as np
import pytest

from mstblob.blob_renderer import (
    RAW_NORMALIZATION,
    KernelRasterizer,
    generate_blob,
    make_rasterizer,
)
from mstblob.blob_renderer.classifier import classify_threshold
from mstblob.blob_renderer.overlays import EDGE_VALUE, render_overlays
from mstblob.utils import validators


def small_config(**overrides):
    data = {
        "seed": 385926,
        "resolution": 64,
        "points": {"min_spacing": 0.08},
        "render": {"workers": 2, "rows_per_chunk": 16},
        "output": {"display": False},
    }
    return validators.blob_config_from_dict(validators.merge_overrides(data, overrides))


@pytest.fixture(scope="module")
def result():
    return generate_blob(small_config())


# ============================================================================
# DETERMINISM
# ============================================================================

def test_same_config_same_image(result):
    again = generate_blob(small_config())
    assert np.array_equal(result.buffer, again.buffer)
    assert result.digest == again.digest


def test_seed_changes_image(result):
    other = generate_blob(small_config(seed=7))
    assert other.digest != result.digest


def test_workers_do_not_change_image(result):
    serial = generate_blob(small_config(render={"workers": 1, "rows_per_chunk": 64}))
    assert serial.digest == result.digest


# ============================================================================
# OUTPUT CONTRACT
# ============================================================================

def test_buffer_format(result):
    assert result.buffer.shape == (64, 64, 3)
    assert result.buffer.dtype == np.uint8
    assert set(np.unique(result.buffer)) <= {0, 255}
    assert np.array_equal(result.buffer[..., 0], result.buffer[..., 2])


def test_intermediates_consistent(result):
    n = len(result.points)
    assert len(result.edges) == n * (n - 1) // 2
    assert len(result.tree) == n - 1
    assert result.tree.is_spanning()
    assert result.field.shape == (64, 64)
    assert set(result.timings) == {"sample", "sort", "tree", "rasterize", "classify"}


def test_blob_has_foreground_and_background(result):
    fraction = result.foreground_fraction(0.4)
    assert 0.0 < fraction < 1.0
    black = (result.buffer[..., 0] == 0).mean()
    assert black == pytest.approx(fraction)


def test_foreground_monotone_over_generated_field(result):
    thresholds = np.linspace(0.0, result.field.max() + 0.1, 25)
    fg = [result.foreground_fraction(t) for t in thresholds]
    white = [(classify_threshold(result.field, t) == 1.0).sum() for t in thresholds]
    assert all(a >= b for a, b in zip(fg, fg[1:]))
    assert all(a <= b for a, b in zip(white, white[1:]))
    assert fg[-1] == 0.0


def test_negative_threshold_is_all_foreground():
    res = generate_blob(small_config(classify={"threshold": -1.0}))
    assert np.all(res.buffer == 0)


def test_no_points_gives_white_image(caplog):
    res = generate_blob(small_config(points={"max_attempts": 0}))
    assert len(res.points) == 0
    assert len(res.tree) == 0
    assert np.all(res.buffer == 255)
    assert "Degenerate point set" in caplog.text


def test_single_point_gives_white_image():
    # Spacing 1 leaves room for at most one point in the unit-diameter disk
    res = generate_blob(small_config(points={"min_spacing": 1.0, "max_attempts": 50}))
    assert len(res.points) <= 1
    assert not res.field.any()
    assert np.all(res.buffer == 255)


def test_raw_mode_encoding():
    config = small_config(classify={"raw_output": True})
    res = generate_blob(config)
    expected = np.floor(np.clip(res.field / RAW_NORMALIZATION, 0.0, 1.0) * 255.0 + 0.5)
    np.testing.assert_array_equal(res.buffer[..., 0], expected.astype(np.uint8))


def test_edge_overlay_replaces_field():
    config = small_config(resolution=128, debug={"view_edges": True})
    res = generate_blob(config)
    overlay = render_overlays(res.points, res.tree, config)
    drawn = overlay > 0
    assert drawn.any()
    assert np.all(res.intensity[drawn] == EDGE_VALUE)
    assert np.all(res.buffer[drawn][:, 0] == 128)


# ============================================================================
# BACKENDS
# ============================================================================

def test_make_rasterizer_numpy():
    assert isinstance(make_rasterizer(small_config()), KernelRasterizer)


def test_make_rasterizer_torch():
    pytest.importorskip("torch")
    rasterizer = make_rasterizer(small_config(render={"backend": "torch"}))
    assert rasterizer.backend == "torch"
