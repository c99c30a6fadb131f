"""Test atomic filesystem operations.

Tests for mstblob.utils.fs:
    - PNG save from numpy (H, W, 3) uint8 reads back pixel-identical
    - Float and torch buffers encoded with round-half-up
    - Overwrite leaves no tmp files behind
    - Unwritable target → RuntimeError (no partial file)
    - YAML roundtrip keeps insertion order; empty YAML → {}
    - ensure_dir creates parents, idempotent

Run:
    pytest tests/test_fs.py -v
"""

import numpy as np
import pytest
import torch
from PIL import Image

from mstblob.utils import fs


@pytest.fixture
def gray_buffer():
    v = np.arange(64, dtype=np.uint8).reshape(8, 8) * 4
    return np.repeat(v[:, :, None], 3, axis=2)


# ============================================================================
# IMAGES
# ============================================================================

def test_save_png_roundtrip(tmp_path, gray_buffer):
    path = tmp_path / "out" / "blob.png"
    fs.atomic_save_image(gray_buffer, path)
    loaded = np.array(Image.open(path))
    assert loaded.shape == (8, 8, 3)
    assert np.array_equal(loaded, gray_buffer)


def test_save_overwrites_without_tmp(tmp_path, gray_buffer):
    path = tmp_path / "blob.png"
    fs.atomic_save_image(gray_buffer, path)
    fs.atomic_save_image(255 - gray_buffer, path)
    assert np.array_equal(np.array(Image.open(path)), 255 - gray_buffer)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["blob.png"]


def test_save_failure_raises_runtime_error(tmp_path, gray_buffer):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(RuntimeError):
        fs.atomic_save_image(gray_buffer, blocker / "blob.png")


def test_float_buffer_rounds_half_up():
    img = fs.to_uint8_image(np.array([[0.0, 0.5, 1.0, 2.0]]))
    assert img.dtype == np.uint8
    assert img.tolist() == [[0, 128, 255, 255]]


def test_torch_chw_buffer(tmp_path):
    img = torch.zeros(3, 4, 5)
    img[:, 1, :] = 1.0
    out = fs.to_uint8_image(img)
    assert out.shape == (4, 5, 3)
    assert out[1].min() == 255 and out[0].max() == 0

    fs.atomic_save_image(img, tmp_path / "t.png")
    assert (tmp_path / "t.png").exists()


def test_single_channel_squeezed():
    out = fs.to_uint8_image(np.zeros((4, 4, 1), dtype=np.uint8))
    assert out.shape == (4, 4)


# ============================================================================
# BYTES / YAML
# ============================================================================

def test_atomic_write_bytes(tmp_path):
    path = tmp_path / "nested" / "data.bin"
    fs.atomic_write_bytes(path, b"abc")
    assert path.read_bytes() == b"abc"
    assert not (tmp_path / "nested" / "data.bin.tmp").exists()


def test_atomic_write_bytes_failure(tmp_path):
    with pytest.raises(RuntimeError):
        fs.atomic_write_bytes(tmp_path, b"abc")


def test_yaml_roundtrip_keeps_order(tmp_path):
    data = {"schema": "blob_run.v1", "counts": {"points": 3, "edges": 3}, "list": [1, 2]}
    path = tmp_path / "m.yaml"
    fs.atomic_yaml_dump(data, path)
    assert fs.load_yaml(path) == data
    assert path.read_text().splitlines()[0] == "schema: blob_run.v1"


def test_load_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert fs.load_yaml(path) == {}


def test_load_missing_yaml(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "missing.yaml")


def test_ensure_dir(tmp_path):
    new_dir = tmp_path / "a" / "b" / "c"
    assert fs.ensure_dir(new_dir) == new_dir
    fs.ensure_dir(new_dir)
    assert new_dir.is_dir()
