#!/usr/bin/env python3
"""Blob generation CLI: config → PNG and/or preview window.

Runs the full pipeline for one configuration, then hands the finished pixel
buffer to the enabled sinks:
    1. Load configs/blob_v1.yaml (or --config) and merge CLI overrides
    2. Validate (fails fast, before any sampling)
    3. generate_blob(config)
    4. Save PNG atomically (output.filename / --output)
    5. Write <png>.metadata.yaml run manifest (config, counts, buffer and PNG SHA-256)
    6. Show a preview window (output.display, disabled by --no-display)

Sink failures are logged and do not stop the other sinks; the process then
exits with code 1.

CLI:
    python scripts/generate_blob.py --output outputs/blob.png --no-display
    python scripts/generate_blob.py --seed 7 --resolution 512 --threshold 0.3
    python scripts/generate_blob.py --view-edges --resolution 1024 --output edges.png

Exit codes:
    0: Success
    1: One or more sinks failed (image still generated)
    2: Invalid configuration
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from mstblob.blob_renderer import generate_blob
from mstblob.utils import fs, hashing, logging_config, validators

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "configs/blob_v1.yaml"

EXIT_OK = 0
EXIT_SINK_FAILED = 1
EXIT_BAD_CONFIG = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate an MST blob image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to blob.v1 YAML, default: {DEFAULT_CONFIG} if present')

    parser.add_argument('--seed', type=int, help='Sampling seed')
    parser.add_argument('--resolution', type=int, help='Output width = height (px)')
    parser.add_argument('--min-spacing', type=float, help='Minimum point spacing (normalized)')
    parser.add_argument('--kernel-radius-multiplier', type=float,
                        help='Kernel radius as a multiple of min spacing')
    parser.add_argument('--threshold', type=float, help='Classification threshold')
    parser.add_argument('--raw', action='store_true', default=None,
                        help='Soft raw output instead of thresholding')
    parser.add_argument('--view-points', action='store_true', default=None,
                        help='Overlay sampled points')
    parser.add_argument('--view-edges', action='store_true', default=None,
                        help='Overlay spanning-tree edges')

    parser.add_argument('--backend', choices=['numpy', 'torch'], help='Rasterizer backend')
    parser.add_argument('--workers', type=int, help='Rasterizer thread pool size')
    parser.add_argument('--device', type=str, help='Torch device (torch backend)')

    parser.add_argument('--output', type=str, help='PNG output path')
    parser.add_argument('--no-display', action='store_true', help='Do not open a preview window')
    parser.add_argument('--no-manifest', action='store_true', help='Do not write metadata.yaml')

    parser.add_argument('--log-level', type=str, default='INFO', help='Logging level, default: INFO')
    parser.add_argument('--log-file', type=str, default=None, help='Optional log file path')
    parser.add_argument('--json-logs', action='store_true', help='JSON-lines log format')
    return parser.parse_args(argv)


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate CLI flags into a nested override mapping (unset flags skipped)."""
    mapping = {
        ('seed',): args.seed,
        ('resolution',): args.resolution,
        ('points', 'min_spacing'): args.min_spacing,
        ('kernel', 'radius_multiplier'): args.kernel_radius_multiplier,
        ('classify', 'threshold'): args.threshold,
        ('classify', 'raw_output'): args.raw,
        ('debug', 'view_points'): args.view_points,
        ('debug', 'view_edges'): args.view_edges,
        ('render', 'backend'): args.backend,
        ('render', 'workers'): args.workers,
        ('render', 'device'): args.device,
        ('output', 'filename'): args.output,
        ('output', 'display'): False if args.no_display else None,
        ('output', 'manifest'): False if args.no_manifest else None,
    }

    overrides: Dict[str, Any] = {}
    for keys, value in mapping.items():
        if value is None:
            continue
        node = overrides
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value
    return overrides


def load_config(config_path: Optional[str], overrides: Dict[str, Any]):
    """Load the YAML config (or pure defaults) with overrides applied."""
    if config_path is None and Path(DEFAULT_CONFIG).exists():
        config_path = DEFAULT_CONFIG
    if config_path is None:
        return validators.blob_config_from_dict(overrides)
    return validators.load_blob_config(config_path, overrides)


def build_manifest(config, result) -> Dict[str, Any]:
    """Run manifest: what was generated, from what, and its fingerprint."""
    cfg = config.model_dump(by_alias=True)
    return {
        'schema': 'blob_run.v1',
        'config': cfg,
        'config_sha256': hashing.hash_dict(cfg),
        'counts': {
            'points': len(result.points),
            'edges': len(result.edges),
            'tree_edges': len(result.tree),
        },
        'tree_total_weight': result.tree.total_weight,
        'foreground_fraction': result.foreground_fraction(config.classify.threshold),
        'buffer_sha256': result.digest,
        'timings_s': {k: round(v, 4) for k, v in result.timings.items()},
    }


def write_sinks(config, result) -> List[str]:
    """Hand the buffer to every enabled sink; return the names of failed sinks."""
    failed = []
    filename = config.output.filename

    if filename is not None:
        try:
            fs.atomic_save_image(result.buffer, filename)
            logger.info(f"Saved image: {filename}")
        except RuntimeError as e:
            logger.error(f"Image sink failed: {e}")
            failed.append('image')

        if config.output.manifest:
            manifest_path = Path(filename).with_suffix('.metadata.yaml')
            manifest = build_manifest(config, result)
            if 'image' not in failed:
                manifest['image_sha256'] = hashing.sha256_file(filename)
            try:
                fs.atomic_yaml_dump(manifest, manifest_path)
                logger.info(f"Saved manifest: {manifest_path}")
            except RuntimeError as e:
                logger.error(f"Manifest sink failed: {e}")
                failed.append('manifest')

    if config.output.display:
        from mstblob.utils import preview
        try:
            preview.show_image(result.buffer, title=f"MST blob (seed {config.seed})")
        except RuntimeError as e:
            logger.error(f"Preview sink failed: {e}")
            failed.append('preview')

    return failed


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code."""
    args = parse_args(argv)

    logging_config.setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        json=args.json_logs,
        quiet_libs=['matplotlib', 'PIL'],
        context={'app': 'blob'},
    )
    logging_config.install_excepthook()

    try:
        config = load_config(args.config, overrides_from_args(args))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_BAD_CONFIG

    logger.debug("Config: " + " ".join(f"{k}={v}" for k, v in validators.flatten_config(config).items()))

    logging_config.push_context(seed=config.seed)
    logger.info(
        f"Generating blob: resolution={config.resolution}, "
        f"min_spacing={config.min_spacing}, kernel_radius={config.kernel_radius:.4f}, "
        f"backend={config.render.backend}"
    )

    result = generate_blob(config)
    logger.info(f"Buffer sha256: {result.digest}")

    failed = write_sinks(config, result)
    logging_config.pop_context(keys=['seed'])
    return EXIT_SINK_FAILED if failed else EXIT_OK


if __name__ == "__main__":
    exit_code = main()
    logging_config.shutdown()
    sys.exit(exit_code)
