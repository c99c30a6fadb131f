"""YAML schema validation and config loading.

Provides centralized validation for the blob configuration using pydantic:
    - Blob schema (blob.v1.yaml): seed, resolution, point spacing, kernel,
      classification, debug overlays, render options, output sinks

The loaded config is frozen: it is constructed once at startup and passed
explicitly into every pipeline stage. Nothing mutates it afterwards.

Units:
    - Geometry: normalized [0,1] space (spacing, kernel radius)
    - Resolution: pixels (square raster)

Usage:
    from mstblob.utils import validators

    cfg = validators.load_blob_config("configs/blob_v1.yaml")
    cfg = validators.blob_config_from_dict({"seed": 7, "resolution": 256})
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import torch
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


_FROZEN = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# BLOB SCHEMA V1
# ============================================================================

class PointsConfig(BaseModel):
    """Point sampling parameters."""
    model_config = _FROZEN

    min_spacing: float = Field(0.05, gt=0.0, le=1.0, description="Minimum point separation (normalized)")
    max_attempts: Optional[int] = Field(
        None, ge=0,
        description="Candidate draws; None derives floor(1 / min_spacing^2)"
    )


class KernelConfig(BaseModel):
    """Blur kernel parameters."""
    model_config = _FROZEN

    radius_multiplier: float = Field(1.0, ge=0.0, description="Kernel radius as a multiple of min_spacing")


class ClassifyConfig(BaseModel):
    """Pixel classification parameters."""
    model_config = _FROZEN

    threshold: float = Field(0.4, description="Foreground cutoff in threshold mode")
    raw_output: bool = Field(False, description="Soft normalized output instead of binary")


class DebugConfig(BaseModel):
    """Debug overlays drawn instead of the kernel field (points > edges > field)."""
    model_config = _FROZEN

    view_points: bool = Field(False, description="Draw sampled points")
    view_edges: bool = Field(False, description="Draw spanning-tree edges")


class RenderConfig(BaseModel):
    """Rasterizer execution options (never change the result)."""
    model_config = _FROZEN

    backend: str = Field("numpy", description="numpy (reference) or torch")
    workers: int = Field(1, ge=1, le=256, description="Thread pool size for row chunks")
    rows_per_chunk: int = Field(32, ge=1, description="Rows per independent work unit")
    device: str = Field("cpu", description="Torch device for the torch backend")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = {'numpy', 'torch'}
        if v not in allowed:
            raise ValueError(f"backend must be one of {sorted(allowed)}, got '{v}'")
        return v

    @field_validator('device')
    @classmethod
    def validate_device(cls, v: str) -> str:
        try:
            torch.device(v)
        except RuntimeError as e:
            raise ValueError(f"device must be a torch device string, got '{v}': {e}") from e
        return v


class OutputConfig(BaseModel):
    """Sink options (outside the core)."""
    model_config = _FROZEN

    filename: Optional[str] = Field(None, description="PNG path, or None to skip saving")
    display: bool = Field(True, description="Show the image in a window")
    manifest: bool = Field(True, description="Write <filename>.metadata.yaml beside the image")

    @field_validator('filename')
    @classmethod
    def validate_filename(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("filename must be non-empty or null")
        return v


class BlobConfigV1(BaseModel):
    """Blob generator configuration (blob.v1 schema).

    Derived quantities are exposed as read-only properties so every stage
    computes them identically.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    schema_version: str = Field("blob.v1", alias="schema", description="Schema version")
    seed: int = Field(385926, ge=0, lt=2**32, description="Seed for point sampling")
    resolution: int = Field(2048, gt=0, le=65536, description="Raster width = height (px)")
    points: PointsConfig = Field(default_factory=PointsConfig)
    kernel: KernelConfig = Field(default_factory=KernelConfig)
    classify: ClassifyConfig = Field(default_factory=ClassifyConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "blob.v1":
            raise ValueError(f"Expected schema 'blob.v1', got '{v}'")
        return v

    @model_validator(mode='after')
    def validate_attempt_budget(self) -> 'BlobConfigV1':
        """Reject spacings so small the derived attempt budget explodes."""
        if self.points.max_attempts is None and self.max_attempts > 50_000_000:
            raise ValueError(
                f"min_spacing={self.points.min_spacing} derives {self.max_attempts} "
                f"sampling attempts; set points.max_attempts explicitly"
            )
        return self

    @property
    def min_spacing(self) -> float:
        return self.points.min_spacing

    @property
    def kernel_radius(self) -> float:
        """R = kernel radius multiplier × min spacing."""
        return self.kernel.radius_multiplier * self.points.min_spacing

    @property
    def zoom_out(self) -> float:
        """Field-of-view scale, leaves room for the kernel at the disk boundary."""
        return 1.0 + self.kernel_radius

    @property
    def max_attempts(self) -> int:
        """Sampling attempts, floor(1 / min_spacing^2) unless set explicitly."""
        if self.points.max_attempts is not None:
            return self.points.max_attempts
        return int(1.0 / (self.points.min_spacing * self.points.min_spacing))

    @property
    def point_thickness_sq(self) -> float:
        return (1.0 / 256.0) * (self.points.min_spacing / 0.05)

    @property
    def edge_thickness_sq(self) -> float:
        return (1.0 / 512.0) * (self.points.min_spacing / 0.05)


# ============================================================================
# PUBLIC API
# ============================================================================

def blob_config_from_dict(data: Optional[Dict[str, Any]]) -> BlobConfigV1:
    """Validate a config mapping (e.g. YAML content merged with CLI overrides).

    Raises
    ------
    ValueError
        If validation fails (pydantic message included)
    """
    try:
        return BlobConfigV1(**(data or {}))
    except Exception as e:
        raise ValueError(f"Blob config validation failed: {e}") from e


def load_blob_config(
    path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None
) -> BlobConfigV1:
    """Load and validate blob config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to blob.v1 YAML file
    overrides : dict, optional
        Nested mapping merged over the file content before validation
        (e.g. {"seed": 7, "output": {"display": False}})

    Returns
    -------
    BlobConfigV1
        Validated, frozen configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Blob config not found: {path}")

    data = merge_overrides(fs.load_yaml(path), overrides or {})
    try:
        return BlobConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Blob config validation failed at {path}: {e}") from e


def merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge overrides into a copy of base (overrides win)."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        else:
            merged[key] = value
    return merged


def flatten_config(cfg: Union[Dict, BaseModel], prefix: str = "") -> Dict[str, Any]:
    """Flatten a nested config into dotted keys (for manifests and log lines).

    Examples
    --------
    >>> flatten_config({"points": {"min_spacing": 0.05}})
    {'points.min_spacing': 0.05}
    """
    if isinstance(cfg, BaseModel):
        cfg = cfg.model_dump(by_alias=True)

    flat = {}
    for key, value in cfg.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten_config(value, name))
        else:
            flat[name] = value
    return flat
