"""SHA-256 hashing for run provenance and determinism checks.

Provides:
    - sha256_file(): Hash file contents (saved PNGs, config files)
    - sha256_array(): Hash numpy/torch buffer values (pixel buffers, fields)
    - hash_dict(): Order-independent hash of a config mapping

Two runs with identical configuration must produce identical pixel buffers;
the run manifest records sha256_array(buffer) so that can be checked without
keeping the images around.

Note: Module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
import json
from pathlib import Path
from typing import Union

import numpy as np
import torch


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Compute SHA-256 hash of file contents.

    Parameters
    ----------
    path : Union[str, Path]
        File path
    chunk_size : int
        Read chunk size in bytes, default 1 MB

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sha256 = hashlib.sha256()
    with open(path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            sha256.update(chunk)
    return sha256.hexdigest()


def sha256_array(a: Union[np.ndarray, torch.Tensor]) -> str:
    """Compute SHA-256 hash of buffer values.

    Parameters
    ----------
    a : Union[np.ndarray, torch.Tensor]
        Buffer to hash (any shape, dtype)

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Notes
    -----
    Dtype and shape are mixed into the digest, so a uint8 buffer and a
    float buffer with the same bytes never collide.
    """
    if isinstance(a, torch.Tensor):
        a = a.detach().cpu().numpy()
    a = np.ascontiguousarray(a)

    sha256 = hashlib.sha256()
    sha256.update(f"{a.dtype.str}{a.shape}".encode('utf-8'))
    sha256.update(a.tobytes())
    return sha256.hexdigest()


def sha256_string(s: str) -> str:
    """Compute SHA-256 hash of a string."""
    return hashlib.sha256(s.encode('utf-8')).hexdigest()


def hash_dict(d: dict) -> str:
    """Compute hash of dictionary (sorted JSON representation).

    Examples
    --------
    >>> hash_dict({'seed': 1, 'resolution': 64}) == hash_dict({'resolution': 64, 'seed': 1})
    True
    """
    return sha256_string(json.dumps(d, sort_keys=True, default=str))
