"""Atomic filesystem operations: image sink and YAML handling.

Provides:
    - Atomic writes: tmp file → fsync → rename (no half-written PNGs)
    - PNG/any-PIL-format image saving from numpy or torch buffers
    - YAML load/save (configs and run manifests)
    - Directory creation with exist_ok semantics

All paths use pathlib.Path. Every write failure is re-raised as
RuntimeError naming the target path, so callers can treat a sink failure as
fatal for that sink only.

Usage:
    from mstblob.utils import fs
    fs.atomic_save_image(result.buffer, "outputs/blob.png")
    fs.atomic_yaml_dump(manifest, "outputs/blob.metadata.yaml")
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import torch
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or rename fails (tmp file is removed)
    """
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        ensure_dir(path.parent)
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def to_uint8_image(img: Union[np.ndarray, torch.Tensor]) -> np.ndarray:
    """Convert an image buffer to a numpy uint8 array PIL can save.

    Parameters
    ----------
    img : Union[np.ndarray, torch.Tensor]
        - numpy: (H, W, 3) or (H, W) uint8, or float in [0, 1]
        - torch: (3, H, W), (H, W, 3) or (H, W), uint8 or float in [0, 1]

    Returns
    -------
    np.ndarray
        (H, W) or (H, W, 3) uint8
    """
    if isinstance(img, torch.Tensor):
        img = img.detach().cpu()
        if img.ndim == 3 and img.shape[0] in (1, 3) and img.shape[-1] not in (1, 3):
            img = img.permute(1, 2, 0)
        if img.is_floating_point():
            img = (img.clamp(0, 1) * 255.0 + 0.5).floor().to(torch.uint8)
        img = img.numpy()

    img = np.asarray(img)
    if np.issubdtype(img.dtype, np.floating):
        img = np.floor(np.clip(img, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 3 and img.shape[2] == 1:
        img = img.squeeze(2)
    return img


def atomic_save_image(
    img: Union[np.ndarray, torch.Tensor],
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save image atomically (extension determines format, e.g. PNG).

    Parameters
    ----------
    img : Union[np.ndarray, torch.Tensor]
        Image data, see to_uint8_image()
    path : Union[str, Path]
        Target file path
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., optimize=True)

    Raises
    ------
    RuntimeError
        If the image cannot be encoded or written
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}

    # tmp keeps the real extension so PIL can infer the format
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img = Image.fromarray(to_uint8_image(img))
        ensure_dir(path.parent)
        pil_img.save(tmp_path, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Save object as YAML atomically (safe_dump, insertion order kept)."""
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_bytes(Path(path), yaml_str.encode('utf-8'))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content ({} for an empty file)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
    return data if data is not None else {}
